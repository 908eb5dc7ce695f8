"""Configuration, theme lookup and poster size presets."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import cast


__all__ = [
    "DEFAULT_RADIUS",
    "DEFAULT_SIZE",
    "DEFAULT_THEME",
    "POSTER_SIZES",
    "CustomText",
    "OutputSize",
    "PosterSize",
    "Theme",
    "ThemeValidationError",
    "get_available_sizes",
    "get_available_themes",
    "get_fonts_dir",
    "get_package_dir",
    "get_poster_size",
    "get_posters_dir",
    "get_theme",
    "get_themes_dir",
    "load_theme",
]

logger = logging.getLogger(__name__)

DEFAULT_THEME = "noir"
DEFAULT_SIZE = "portrait"
DEFAULT_RADIUS = 10000


class ThemeValidationError(ValueError):
    """Raised when theme file is missing required keys."""

    pass


# Required keys that every theme must have
REQUIRED_THEME_KEYS = frozenset(
    {
        "name",
        "bg",
        "text",
        "gradient_color",
        "water",
        "parks",
        "road_motorway",
        "road_primary",
        "road_secondary",
        "road_tertiary",
        "road_residential",
        "road_default",
    }
)


@dataclass(frozen=True)
class Theme:
    """A named color palette applied uniformly across one render."""

    name: str
    bg: str
    text: str
    gradient_color: str
    water: str
    parks: str
    road_motorway: str
    road_primary: str
    road_secondary: str
    road_tertiary: str
    road_residential: str
    road_default: str
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, str]) -> Theme:
        """Build a Theme from a theme file mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})


@dataclass(frozen=True)
class OutputSize:
    """Pixel dimensions of one render target."""

    width: int
    height: int

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


@dataclass(frozen=True)
class PosterSize:
    """A named output resolution preset."""

    width: int
    height: int
    label: str

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    def to_output_size(self) -> OutputSize:
        return OutputSize(self.width, self.height)


# HD export presets (4K class)
POSTER_SIZES: dict[str, PosterSize] = {
    "portrait": PosterSize(4000, 5333, "Portrait (3:4)"),
    "square": PosterSize(4000, 4000, "Square (1:1)"),
    "landscape": PosterSize(5333, 4000, "Landscape (4:3)"),
}


@dataclass(frozen=True)
class CustomText:
    """Optional overrides for the poster's title, subtitle and caption.

    An empty string means "use the default" (city for the title, country for
    the subtitle, nothing for the caption).
    """

    title: str = ""
    subtitle: str = ""
    name: str = ""

    @classmethod
    def from_values(
        cls,
        title: str | None = None,
        subtitle: str | None = None,
        name: str | None = None,
    ) -> CustomText:
        """Build CustomText from optional raw input, trimming whitespace."""
        return cls(
            title=(title or "").strip(),
            subtitle=(subtitle or "").strip(),
            name=(name or "").strip(),
        )


def get_package_dir() -> Path:
    """Get the package installation directory."""
    return Path(__file__).parent


def get_themes_dir() -> Path:
    """Get the themes directory path."""
    # Check for themes in package data first, then fall back to cwd
    package_themes = get_package_dir() / "data" / "themes"
    if package_themes.exists():
        return package_themes

    cwd_themes = Path.cwd() / "themes"
    if cwd_themes.exists():
        return cwd_themes

    return package_themes


def get_fonts_dir() -> Path:
    """Get the fonts directory path."""
    package_fonts = get_package_dir() / "data" / "fonts"
    if package_fonts.exists():
        return package_fonts

    cwd_fonts = Path.cwd() / "fonts"
    if cwd_fonts.exists():
        return cwd_fonts

    return package_fonts


def get_posters_dir() -> Path:
    """Get the posters output directory, creating it if necessary."""
    posters_dir = Path.cwd() / "posters"
    posters_dir.mkdir(parents=True, exist_ok=True)
    return posters_dir


def get_available_themes() -> list[str]:
    """Scan the themes directory and return a sorted list of theme names."""
    themes_dir = get_themes_dir()
    if not themes_dir.exists():
        return []

    return sorted(f.stem for f in themes_dir.glob("*.json"))


def load_theme(theme_name: str = DEFAULT_THEME) -> Theme:
    """Load a theme from a JSON file in the themes directory.

    Args:
        theme_name: The name of the theme (without .json extension).

    Returns:
        The Theme. An unknown name resolves to the default theme.

    Raises:
        ThemeValidationError: If the theme file is missing required keys.
        ValueError: If the theme file is not a JSON object.
    """
    theme_file = get_themes_dir() / f"{theme_name}.json"

    if not theme_file.exists():
        logger.warning("Theme '%s' not found. Using default %s theme.", theme_name, DEFAULT_THEME)
        return _get_default_theme()

    with theme_file.open("r", encoding="utf-8") as f:
        theme = json.load(f)
        if not isinstance(theme, dict):
            raise ValueError(f"Theme file '{theme_file}' is not a JSON object.")
        theme_dict = cast(dict[str, str], theme)

        missing_keys = REQUIRED_THEME_KEYS - theme_dict.keys()
        if missing_keys:
            raise ThemeValidationError(
                f"Theme '{theme_name}' is missing required keys: {', '.join(sorted(missing_keys))}"
            )

        logger.debug("Loaded theme: %s", theme_dict.get("name", theme_name))
        return Theme.from_dict(theme_dict)


def get_theme(theme_name: str | None) -> Theme:
    """Resolve a theme by name, never failing for an unknown name."""
    return load_theme(theme_name or DEFAULT_THEME)


def _get_default_theme() -> Theme:
    """Return the default noir theme.

    Built in so an unknown name resolves even when no theme files are
    installed.
    """
    return Theme(
        name="Noir",
        description="Pure black background with white roads",
        bg="#0D0D0D",
        text="#FFFFFF",
        gradient_color="#0D0D0D",
        water="#1a1a1a",
        parks="#151515",
        road_motorway="#FFFFFF",
        road_primary="#E0E0E0",
        road_secondary="#C0C0C0",
        road_tertiary="#A0A0A0",
        road_residential="#707070",
        road_default="#808080",
    )


def get_available_sizes() -> list[str]:
    """Return the poster size preset names."""
    return list(POSTER_SIZES)


def get_poster_size(size_name: str | None) -> PosterSize:
    """Resolve a size preset by name, falling back to the default preset."""
    if size_name in POSTER_SIZES:
        return POSTER_SIZES[size_name]
    logger.warning("Unknown poster size '%s'. Using %s.", size_name, DEFAULT_SIZE)
    return POSTER_SIZES[DEFAULT_SIZE]
