"""Command-line interface for TerraPoster."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import NoReturn

from tqdm import tqdm

from .config import (
    DEFAULT_RADIUS,
    DEFAULT_SIZE,
    DEFAULT_THEME,
    POSTER_SIZES,
    CustomText,
    get_available_sizes,
    get_available_themes,
    get_posters_dir,
    load_theme,
)
from .geo import BoundsError, LocationInfo, UpstreamFetchError, reverse_geocode, search_city
from .preview import PosterSession
from .raster import EncodingError, derive_filename, encode_png, save_png
from .render import RENDER_PHASES


__all__ = ["cli", "main"]

logger = logging.getLogger(__name__)


def _print_examples() -> None:
    """Print usage examples."""
    print(
        """
City Map Poster Generator
=========================

Usage:
  terraposter --city <query> [options]
  terraposter --lat <lat> --lon <lon> [options]

Examples:
  # Iconic grid patterns
  terraposter -c "New York, USA" -t noir -r 12000
  terraposter -c "Barcelona, Spain" -t warm_beige -r 8000

  # Waterfront & canals
  terraposter -c "Venice, Italy" -t blueprint -r 4000
  terraposter -c "Amsterdam" -t ocean -s square -r 6000

  # Custom text
  terraposter -c "Paris" --title "Our City" --subtitle "Since 2015" --name "Anna & Leo"

  # From coordinates
  terraposter --lat 35.6762 --lon 139.6503 -t japanese_ink -r 15000

  # Quick low-resolution preview
  terraposter -c "Rome" -t warm_beige --preview 600

Options:
  --city, -c        Place to search for (e.g. "Tokyo, Japan")
  --lat, --lon      Coordinates to reverse geocode instead of a search
  --theme, -t       Theme name (default: noir)
  --size, -s        Size preset: portrait, square, landscape (default: portrait)
  --radius, -r      Map radius in meters (default: 10000)
  --title           Custom title (replaces the city and hides coordinates)
  --subtitle        Custom subtitle (replaces the country)
  --name            Caption line under the coordinates
  --preview WIDTH   Save a low-resolution preview WIDTH pixels wide instead
  --output-dir      Directory for generated posters (default: posters/)
  --list-themes     List all available themes
  --list-sizes      List all size presets

Radius guide:
  4000-6000m   Small/dense cities (Venice, Amsterdam old center)
  8000-12000m  Medium cities, focused downtown (Paris, Barcelona)
  15000-20000m Large metros, full city view (Tokyo, Mumbai)
"""
    )


def _list_themes() -> None:
    """List all available themes with descriptions."""
    available_themes = get_available_themes()
    if not available_themes:
        print("No themes found.")
        return

    print("\nAvailable Themes:")
    print("-" * 60)
    for theme_name in available_themes:
        try:
            theme = load_theme(theme_name)
            display_name = theme.name
            description = theme.description
        except (OSError, ValueError) as e:
            logger.warning("Could not read theme %s: %s", theme_name, e)
            display_name = theme_name
            description = ""

        print(f"  {theme_name}")
        print(f"    {display_name}")
        if description:
            print(f"    {description}")
        print()


def _list_sizes() -> None:
    """List the poster size presets."""
    print("\nAvailable Sizes:")
    print("-" * 60)
    for size_name in get_available_sizes():
        size = POSTER_SIZES[size_name]
        print(f"  {size_name:<10} {size.width}x{size.height}  {size.label}")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="terraposter",
        description="Generate minimalist map posters for any city",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  terraposter --city "New York, USA"
  terraposter --city Tokyo --theme midnight_blue --size landscape
  terraposter --lat 48.8566 --lon 2.3522 --radius 15000
  terraposter --list-themes
        """,
    )

    parser.add_argument(
        "--city",
        "-c",
        type=str,
        help="Place to search for",
    )
    parser.add_argument(
        "--lat",
        type=float,
        help="Latitude of the poster center",
    )
    parser.add_argument(
        "--lon",
        type=float,
        help="Longitude of the poster center",
    )
    parser.add_argument(
        "--theme",
        "-t",
        type=str,
        default=DEFAULT_THEME,
        help=f"Theme name (default: {DEFAULT_THEME})",
    )
    parser.add_argument(
        "--size",
        "-s",
        type=str,
        default=DEFAULT_SIZE,
        help=f"Poster size preset (default: {DEFAULT_SIZE})",
    )
    parser.add_argument(
        "--radius",
        "-r",
        type=float,
        default=DEFAULT_RADIUS,
        help=f"Map radius in meters (default: {DEFAULT_RADIUS})",
    )
    parser.add_argument(
        "--title",
        type=str,
        help="Custom poster title",
    )
    parser.add_argument(
        "--subtitle",
        type=str,
        help="Custom poster subtitle",
    )
    parser.add_argument(
        "--name",
        type=str,
        help="Caption line, e.g. a name or a date",
    )
    parser.add_argument(
        "--preview",
        type=int,
        metavar="WIDTH",
        help="Save a low-resolution preview of this width instead of the full poster",
    )
    parser.add_argument(
        "--output-dir",
        dest="output_dir",
        type=str,
        help="Directory for generated posters (default: posters/)",
    )
    parser.add_argument(
        "--list-themes",
        action="store_true",
        help="List all available themes",
    )
    parser.add_argument(
        "--list-sizes",
        action="store_true",
        help="List all poster size presets",
    )
    parser.add_argument(
        "--cache-stats",
        action="store_true",
        help="Show cache statistics and exit",
    )
    parser.add_argument(
        "--clear-cache",
        action="store_true",
        help="Clear all cached data and exit",
    )
    parser.add_argument(
        "--version",
        "-v",
        action="store_true",
        help="Show version and exit",
    )

    return parser


def _handle_info_commands(parsed: argparse.Namespace) -> int | None:
    """Handle informational commands that exit early.

    Returns:
        Exit code if handled, None if not handled.
    """
    if parsed.version:
        from . import __version__

        print(f"terraposter {__version__}")
        return 0

    if parsed.list_themes:
        _list_themes()
        return 0

    if parsed.list_sizes:
        _list_sizes()
        return 0

    if parsed.cache_stats:
        from .cache import get_cache_stats

        stats = get_cache_stats()
        print("\nCache Statistics:")
        print("-" * 60)
        print(f"  Total files: {stats['total_files']}")
        print(f"  Total size: {stats['total_size_mb']} MB")
        print("\n  By type:")
        for type_name, type_stats in stats["by_type"].items():
            print(f"    {type_name}: {type_stats['files']} files, {type_stats['size_mb']} MB")
        return 0

    if parsed.clear_cache:
        from .cache import clear_cache

        deleted = clear_cache()
        print(f"Cleared {deleted} cache files.")
        return 0

    return None


def _validate_location_options(parsed: argparse.Namespace) -> str | None:
    """Return an error message if the location or radius options are unusable."""
    has_coords = parsed.lat is not None or parsed.lon is not None
    if parsed.city and has_coords:
        return "--city cannot be combined with --lat/--lon."
    if has_coords and (parsed.lat is None or parsed.lon is None):
        return "--lat and --lon must be given together."
    if not parsed.city and not has_coords:
        return "--city or --lat/--lon is required."
    if parsed.radius <= 0:
        return "--radius must be a positive number of meters."
    if parsed.preview is not None and parsed.preview <= 0:
        return "--preview width must be positive."
    return None


def _resolve_location(parsed: argparse.Namespace) -> LocationInfo:
    if parsed.city:
        return search_city(parsed.city)
    return reverse_geocode(parsed.lat, parsed.lon)


@contextmanager
def _progress_bar(desc: str) -> Iterator[Callable[[str], None]]:
    """Drive a tqdm bar from the compositor's phase messages."""
    with tqdm(
        total=len(RENDER_PHASES),
        desc=desc,
        unit="step",
        bar_format="{l_bar}{bar}| {n_fmt}/{total_fmt}",
    ) as pbar:

        def on_progress(message: str) -> None:
            pbar.set_description(message.rstrip("."))
            pbar.update(1)

        yield on_progress


def cli(args: list[str] | None = None) -> int:
    """Run the CLI with the given arguments.

    Args:
        args: Command line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    # Configure logging for CLI usage
    logging.basicConfig(
        level=logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    parser = create_parser()
    parsed = parser.parse_args(args)

    # Check both sys.argv (command line) and explicit empty args list (tests)
    if (len(sys.argv) == 1 and args is None) or args == []:
        _print_examples()
        return 0

    info_result = _handle_info_commands(parsed)
    if info_result is not None:
        return info_result

    error = _validate_location_options(parsed)
    if error:
        print(f"Error: {error}\n")
        _print_examples()
        return 1

    available_themes = get_available_themes()
    if parsed.theme not in available_themes:
        print(f"Warning: Theme '{parsed.theme}' not found, using {DEFAULT_THEME}.")
    if parsed.size not in POSTER_SIZES:
        print(f"Warning: Size '{parsed.size}' not found, using {DEFAULT_SIZE}.")

    print("=" * 50)
    print("City Map Poster Generator")
    print("=" * 50)

    output_dir = Path(parsed.output_dir) if parsed.output_dir else get_posters_dir()

    try:
        location = _resolve_location(parsed)
        print(f"✓ Location: {location.city}, {location.country} ({location.lat:.4f}, {location.lon:.4f})")

        session = PosterSession(
            location,
            theme_name=parsed.theme,
            size_name=parsed.size,
            radius=parsed.radius,
            custom_text=CustomText.from_values(parsed.title, parsed.subtitle, parsed.name),
        )
        session.load()

        if parsed.preview is not None:
            with _progress_bar("Rendering preview") as on_progress:
                image = session.preview(parsed.preview, on_progress)
            name = session.custom_text.title or location.city
            filename = f"preview_{derive_filename(name, parsed.theme)}"
            output_file = save_png(encode_png(image), output_dir, filename)
        else:
            with _progress_bar("Rendering poster") as on_progress:
                artifact = session.export(on_progress)
            output_file = save_png(artifact.data, output_dir, artifact.filename)

        print("\n" + "=" * 50)
        print("✓ Poster generation complete!")
        print(f"  Saved to {output_file}")
        print("=" * 50)
        return 0

    except (UpstreamFetchError, BoundsError, EncodingError, OSError) as e:
        logger.debug("Poster generation failed", exc_info=True)
        print(f"\n✗ Error: {e}")
        return 1


def main() -> NoReturn:
    """Main entry point."""
    sys.exit(cli())


if __name__ == "__main__":
    main()
