"""Tests for the fonts module."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from matplotlib.font_manager import FontProperties

from terraposter.fonts import FONT_FILES, FontSet, load_fonts, px_to_points


class TestPxToPoints:
    """Tests for px_to_points."""

    def test_72_dpi_is_identity(self) -> None:
        """Test that one pixel is one point at 72 dpi."""
        assert px_to_points(10.0, 72) == 10.0

    def test_64_dpi(self) -> None:
        """Test the conversion at the canvas resolution."""
        assert px_to_points(64.0, 64) == pytest.approx(72.0)


class TestFontSet:
    """Tests for FontSet class."""

    def test_font_set_is_loaded_all_present(self, tmp_path: Path) -> None:
        """Test is_loaded returns True when all fonts are set."""
        font_set = FontSet(
            bold=tmp_path / "bold.ttf",
            regular=tmp_path / "regular.ttf",
            light=tmp_path / "light.ttf",
        )
        assert font_set.is_loaded is True

    def test_font_set_is_loaded_missing_font(self, tmp_path: Path) -> None:
        """Test is_loaded returns False when a font is missing."""
        font_set = FontSet(bold=tmp_path / "bold.ttf", regular=tmp_path / "regular.ttf")
        assert font_set.is_loaded is False

    def test_font_set_is_loaded_all_none(self) -> None:
        """Test is_loaded returns False when all fonts are None."""
        assert FontSet().is_loaded is False


class TestGetProperties:
    """Tests for FontSet.get_properties method."""

    def test_get_properties_with_existing_font(self, tmp_path: Path) -> None:
        """Test get_properties points at the font file for the weight."""
        font_file = tmp_path / "bold.ttf"
        font_file.write_bytes(b"fake font data")

        props = FontSet(bold=font_file).get_properties("bold", 64.0, 64)

        assert isinstance(props, FontProperties)
        assert props.get_file() == str(font_file)
        assert props.get_size_in_points() == pytest.approx(72.0)

    def test_missing_weight_uses_regular(self, tmp_path: Path) -> None:
        """Test that a missing weight falls back to the regular file."""
        regular = tmp_path / "regular.ttf"
        regular.write_bytes(b"fake font data")

        props = FontSet(regular=regular).get_properties("light", 16.0, 64)

        assert props.get_file() == str(regular)

    def test_no_files_uses_system_family(self) -> None:
        """Test the sans-serif fallback when no font files are known."""
        props = FontSet().get_properties("bold", 32.0, 64)

        assert props.get_file() is None
        assert props.get_weight() == "bold"
        assert props.get_size_in_points() == pytest.approx(36.0)

    def test_vanished_file_uses_system_family(self, tmp_path: Path) -> None:
        """Test that a path that no longer exists is not used."""
        props = FontSet(regular=tmp_path / "gone.ttf").get_properties("regular", 12.0, 64)

        assert props.get_file() is None


class TestLoadFonts:
    """Tests for load_fonts."""

    def test_finds_all_files(self, tmp_path: Path) -> None:
        """Test that every weight is set when its file exists."""
        for filename in FONT_FILES.values():
            (tmp_path / filename).touch()

        with patch("terraposter.fonts.get_fonts_dir", return_value=tmp_path):
            font_set = load_fonts()

        assert font_set.is_loaded
        assert font_set.bold == tmp_path / "Roboto-Bold.ttf"

    def test_missing_files_left_unset(self, tmp_path: Path) -> None:
        """Test that weights without files stay None."""
        (tmp_path / FONT_FILES["regular"]).touch()

        with patch("terraposter.fonts.get_fonts_dir", return_value=tmp_path):
            font_set = load_fonts()

        assert font_set.regular == tmp_path / "Roboto-Regular.ttf"
        assert font_set.bold is None
        assert font_set.light is None
