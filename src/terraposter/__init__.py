"""Terraposter - Render decorative map posters from OpenStreetMap data.

This package fetches roads, water bodies and parks around a location and
paints them onto a raster poster using one of several named themes.
"""

from importlib.metadata import PackageNotFoundError, version


try:
    __version__ = version("terraposter")
except PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = ["__version__"]
