"""Tests for the CLI module."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from PIL import Image

from terraposter.cli import cli, create_parser
from terraposter.geo import GeocodingError, LocationInfo, OSMFetchError
from terraposter.preview import ExportArtifact


class TestCLI:
    """Tests for CLI functionality."""

    def test_cli_no_args_shows_examples(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that CLI with no args shows examples and returns 0."""
        assert cli([]) == 0
        assert "Usage:" in capsys.readouterr().out

    def test_cli_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test --version flag."""
        assert cli(["--version"]) == 0
        assert capsys.readouterr().out.startswith("terraposter ")

    def test_cli_list_themes(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test --list-themes flag."""
        assert cli(["--list-themes"]) == 0
        out = capsys.readouterr().out
        assert "noir" in out
        assert "Pure black background with white roads" in out

    def test_cli_list_sizes(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test --list-sizes flag."""
        assert cli(["--list-sizes"]) == 0
        out = capsys.readouterr().out
        assert "portrait" in out
        assert "5333x4000" in out

    def test_cli_cache_stats(self, tmp_path: Path) -> None:
        """Test --cache-stats flag."""
        with patch.dict("os.environ", {"TERRAPOSTER_CACHE_DIR": str(tmp_path)}):
            assert cli(["--cache-stats"]) == 0

    def test_cli_clear_cache(self, tmp_path: Path) -> None:
        """Test --clear-cache flag."""
        (tmp_path / "old.loc.json").write_text("{}")
        with patch.dict("os.environ", {"TERRAPOSTER_CACHE_DIR": str(tmp_path)}):
            assert cli(["--clear-cache"]) == 0
        assert not (tmp_path / "old.loc.json").exists()

    @pytest.mark.parametrize(
        "args",
        [
            ["--theme", "noir"],
            ["--lat", "48.85"],
            ["--city", "Paris", "--lat", "48.85", "--lon", "2.35"],
            ["--city", "Paris", "--radius", "0"],
            ["--city", "Paris", "--preview", "-5"],
        ],
    )
    def test_cli_invalid_location_options(self, args: list[str]) -> None:
        """Test that unusable location options return an error before any lookup."""
        with patch("terraposter.cli.search_city") as mock_search:
            assert cli(args) == 1
        mock_search.assert_not_called()


class TestGeneration:
    """Tests for the poster generation path."""

    LOCATION = LocationInfo("Paris", "France", 48.8566, 2.3522)

    def test_export_saved(self, tmp_path: Path) -> None:
        """Test that a full export is written to the output directory."""
        artifact = ExportArtifact(b"\x89PNG fake", "paris_noir_20240101_000000.png")
        with (
            patch("terraposter.cli.search_city", return_value=self.LOCATION) as mock_search,
            patch("terraposter.cli.PosterSession.load", autospec=True) as mock_load,
            patch("terraposter.cli.PosterSession.export", return_value=artifact),
        ):
            result = cli(["--city", "Paris", "--output-dir", str(tmp_path)])

        assert result == 0
        mock_search.assert_called_once_with("Paris")
        mock_load.assert_called_once()
        assert (tmp_path / artifact.filename).read_bytes() == artifact.data

    def test_preview_saved(self, tmp_path: Path) -> None:
        """Test that --preview writes a preview image instead of the export."""
        preview = Image.new("RGB", (120, 160), "#0D0D0D")
        with (
            patch("terraposter.cli.reverse_geocode", return_value=self.LOCATION) as mock_reverse,
            patch("terraposter.cli.PosterSession.load"),
            patch("terraposter.cli.PosterSession.preview", return_value=preview) as mock_preview,
            patch("terraposter.cli.PosterSession.export") as mock_export,
        ):
            result = cli(
                ["--lat", "48.8566", "--lon", "2.3522", "--preview", "120", "--output-dir", str(tmp_path)]
            )

        assert result == 0
        mock_reverse.assert_called_once_with(48.8566, 2.3522)
        assert mock_preview.call_args[0][0] == 120
        mock_export.assert_not_called()
        written = list(tmp_path.glob("preview_paris_noir_*.png"))
        assert len(written) == 1
        assert Image.open(written[0]).size == (120, 160)

    def test_custom_text_passed_to_session(self, tmp_path: Path) -> None:
        """Test that title, subtitle and name reach the poster session."""
        artifact = ExportArtifact(b"png", "home.png")
        with (
            patch("terraposter.cli.search_city", return_value=self.LOCATION),
            patch("terraposter.cli.PosterSession.load"),
            patch("terraposter.cli.PosterSession.export", autospec=True, return_value=artifact) as mock_export,
        ):
            cli(
                [
                    "--city",
                    "Paris",
                    "--title",
                    " Home ",
                    "--name",
                    "Anna",
                    "--theme",
                    "ocean",
                    "--size",
                    "landscape",
                    "--radius",
                    "3000",
                    "--output-dir",
                    str(tmp_path),
                ]
            )

        session = mock_export.call_args[0][0]
        assert session.custom_text.title == "Home"
        assert session.custom_text.name == "Anna"
        assert session.theme_name == "ocean"
        assert session.size_name == "landscape"
        assert session.radius == 3000

    @pytest.mark.parametrize(
        "error",
        [GeocodingError("City not found: 'Atlantis'"), OSMFetchError("Rate limited by Overpass API")],
    )
    def test_upstream_errors_return_one(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str], error: Exception
    ) -> None:
        """Test that fetch failures are reported and exit with 1."""
        with (
            patch("terraposter.cli.search_city", return_value=self.LOCATION),
            patch("terraposter.cli.PosterSession.load", side_effect=error),
        ):
            assert cli(["--city", "Atlantis", "--output-dir", str(tmp_path)]) == 1
        assert str(error) in capsys.readouterr().out

    def test_unknown_theme_warns_and_continues(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that an unknown theme falls back instead of failing."""
        artifact = ExportArtifact(b"png", "x.png")
        with (
            patch("terraposter.cli.search_city", return_value=self.LOCATION),
            patch("terraposter.cli.PosterSession.load"),
            patch("terraposter.cli.PosterSession.export", return_value=artifact),
        ):
            assert cli(["--city", "Paris", "--theme", "nope", "--output-dir", str(tmp_path)]) == 0
        assert "Theme 'nope' not found" in capsys.readouterr().out


class TestParser:
    """Tests for argument parser."""

    def test_parser_defaults(self) -> None:
        """Test parser default values."""
        args = create_parser().parse_args(["--city", "Paris"])
        assert args.theme == "noir"
        assert args.size == "portrait"
        assert args.radius == 10000
        assert args.title is None
        assert args.preview is None
        assert args.output_dir is None

    def test_parser_custom_values(self) -> None:
        """Test parser with short flags and custom values."""
        args = create_parser().parse_args(
            ["-c", "Tokyo", "-t", "japanese_ink", "-s", "square", "-r", "15000", "--subtitle", "Japan"]
        )
        assert args.city == "Tokyo"
        assert args.theme == "japanese_ink"
        assert args.size == "square"
        assert args.radius == 15000
        assert args.subtitle == "Japan"

    def test_parser_fractional_radius(self) -> None:
        """Test that the radius accepts fractional meters."""
        args = create_parser().parse_args(["--city", "Paris", "--radius", "7500.5"])
        assert args.radius == pytest.approx(7500.5)

    def test_parser_coordinates(self) -> None:
        """Test that coordinates parse as floats."""
        args = create_parser().parse_args(["--lat", "-33.86", "--lon", "151.2"])
        assert args.lat == pytest.approx(-33.86)
        assert args.lon == pytest.approx(151.2)
