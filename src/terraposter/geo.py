"""Geographic data model, geocoding and map feature fetching."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

import requests
from geopy.geocoders import Nominatim
from requests.exceptions import ConnectionError as RequestsConnectionError
from requests.exceptions import HTTPError, RequestException, Timeout

from .cache import CacheType, cache_get, cache_set


if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


class UpstreamFetchError(Exception):
    """Base exception for failures of the geocoding or map data services."""


class GeocodingError(UpstreamFetchError):
    """Raised when geocoding fails."""


class OSMFetchError(UpstreamFetchError):
    """Raised when OSM data fetching fails."""


class BoundsError(ValueError):
    """Raised when a bounding box cannot be represented by the linear projection."""


__all__ = [
    "BoundsError",
    "Bounds",
    "Feature",
    "FeatureCategory",
    "GeoPoint",
    "GeocodingError",
    "LocationInfo",
    "MapDataSnapshot",
    "OSMFetchError",
    "UpstreamFetchError",
    "build_overpass_query",
    "fetch_map_data",
    "parse_overpass_elements",
    "reverse_geocode",
    "search_city",
]

logger = logging.getLogger(__name__)

METERS_PER_DEGREE_LAT = 111320.0
OVERPASS_URL = "https://overpass-api.de/api/interpreter"
OVERPASS_TIMEOUT = 60
USER_AGENT = "terraposter"

ROAD_TYPES = (
    "motorway",
    "motorway_link",
    "trunk",
    "trunk_link",
    "primary",
    "primary_link",
    "secondary",
    "secondary_link",
    "tertiary",
    "tertiary_link",
    "residential",
    "living_street",
    "unclassified",
)

# Address keys tried in order when Nominatim has no "city"
CITY_ADDRESS_KEYS = ("city", "town", "village", "municipality", "county")


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in degrees."""

    lat: float
    lon: float


class FeatureCategory(Enum):
    """Categories a fetched way can be assigned to."""

    ROAD = "road"
    WATER = "water"
    PARK = "park"


@dataclass(frozen=True)
class Feature:
    """A single road, water or park geometry with its source tags."""

    id: int
    coordinates: tuple[GeoPoint, ...]
    tags: Mapping[str, str]
    category: FeatureCategory
    road_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "coordinates": [[p.lat, p.lon] for p in self.coordinates],
            "tags": dict(self.tags),
            "category": self.category.value,
            "road_type": self.road_type,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Feature:
        return cls(
            id=int(data["id"]),
            coordinates=tuple(GeoPoint(lat, lon) for lat, lon in data["coordinates"]),
            tags=dict(data.get("tags", {})),
            category=FeatureCategory(data["category"]),
            road_type=data.get("road_type"),
        )


@dataclass(frozen=True)
class Bounds:
    """The rectangular region visible on the poster."""

    south: float
    north: float
    west: float
    east: float
    center: GeoPoint
    radius_meters: float

    @classmethod
    def from_center(cls, center: GeoPoint, radius_meters: float) -> Bounds:
        """Derive bounds around a center with the equirectangular approximation.

        Raises:
            BoundsError: If the radius is not positive, or the box would cross
                a pole or the antimeridian.
        """
        if not radius_meters > 0:
            raise BoundsError(f"Radius must be positive, got {radius_meters}")

        lat_delta = radius_meters / METERS_PER_DEGREE_LAT
        south = center.lat - lat_delta
        north = center.lat + lat_delta
        if south < -90.0 or north > 90.0:
            raise BoundsError(
                f"Bounds around ({center.lat}, {center.lon}) with radius "
                f"{radius_meters} m cross a pole"
            )

        lon_delta = radius_meters / (METERS_PER_DEGREE_LAT * math.cos(math.radians(center.lat)))
        west = center.lon - lon_delta
        east = center.lon + lon_delta
        if west < -180.0 or east > 180.0:
            raise BoundsError(
                f"Bounds around ({center.lat}, {center.lon}) with radius "
                f"{radius_meters} m cross the antimeridian"
            )

        return cls(
            south=south,
            north=north,
            west=west,
            east=east,
            center=center,
            radius_meters=radius_meters,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "south": self.south,
            "north": self.north,
            "west": self.west,
            "east": self.east,
            "center": [self.center.lat, self.center.lon],
            "radius_meters": self.radius_meters,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Bounds:
        lat, lon = data["center"]
        return cls(
            south=data["south"],
            north=data["north"],
            west=data["west"],
            east=data["east"],
            center=GeoPoint(lat, lon),
            radius_meters=data["radius_meters"],
        )


@dataclass(frozen=True)
class MapDataSnapshot:
    """Categorized features for one (location, radius) fetch."""

    bounds: Bounds
    roads: tuple[Feature, ...] = ()
    water: tuple[Feature, ...] = ()
    parks: tuple[Feature, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "bounds": self.bounds.to_dict(),
            "roads": [f.to_dict() for f in self.roads],
            "water": [f.to_dict() for f in self.water],
            "parks": [f.to_dict() for f in self.parks],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MapDataSnapshot:
        return cls(
            bounds=Bounds.from_dict(data["bounds"]),
            roads=tuple(Feature.from_dict(f) for f in data.get("roads", [])),
            water=tuple(Feature.from_dict(f) for f in data.get("water", [])),
            parks=tuple(Feature.from_dict(f) for f in data.get("parks", [])),
        )


@dataclass(frozen=True)
class LocationInfo:
    """A resolved location: display names plus center coordinates."""

    city: str
    country: str
    lat: float
    lon: float
    display_name: str = field(default="", compare=False)

    @property
    def center(self) -> GeoPoint:
        return GeoPoint(self.lat, self.lon)

    def to_dict(self) -> dict[str, Any]:
        return {
            "city": self.city,
            "country": self.country,
            "lat": self.lat,
            "lon": self.lon,
            "display_name": self.display_name,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LocationInfo:
        return cls(
            city=data["city"],
            country=data["country"],
            lat=float(data["lat"]),
            lon=float(data["lon"]),
            display_name=data.get("display_name", ""),
        )


def _city_from_address(address: Mapping[str, str], fallback: str | None = None) -> str:
    for key in CITY_ADDRESS_KEYS:
        if value := address.get(key):
            return value
    return fallback or "Unknown"


def _get_geolocator() -> Nominatim:
    geolocator = Nominatim(user_agent=USER_AGENT)
    geolocator.timeout = 10
    return geolocator


def search_city(query: str) -> LocationInfo:
    """Resolve a free-text place query to a location using Nominatim.

    Results are cached, and a live lookup is rate limited to be respectful
    to the geocoding service.

    Args:
        query: The place to search for, e.g. "Lisbon, Portugal".

    Returns:
        The resolved LocationInfo.

    Raises:
        GeocodingError: If the place cannot be found or a network error occurs.
    """
    cache_key = f"search_{query.strip().lower()}"
    cached = cache_get(cache_key, CacheType.COORDS)
    if cached is not None:
        logger.info("Using cached location for %s", query)
        return LocationInfo.from_dict(cached)

    logger.info("Looking up '%s'...", query)
    geolocator = _get_geolocator()

    try:
        location = geolocator.geocode(query, addressdetails=True)
    except (RequestsConnectionError, Timeout) as e:
        logger.error("Network error during geocoding: %s", e)
        raise GeocodingError(f"Network error during geocoding for '{query}'.") from e
    except Exception as e:
        logger.error("Geocoding failed: %s", e)
        raise GeocodingError(f"Geocoding failed for '{query}'.") from e

    if not location:
        raise GeocodingError(f"City not found: '{query}'")

    raw = getattr(location, "raw", None) or {}
    address = raw.get("address") or {}
    info = LocationInfo(
        city=_city_from_address(address, raw.get("name")),
        country=address.get("country", ""),
        lat=float(location.latitude),
        lon=float(location.longitude),
        display_name=raw.get("display_name", "") or getattr(location, "address", "") or "",
    )
    logger.info("Found: %s, %s (%s, %s)", info.city, info.country, info.lat, info.lon)

    # Rate limit AFTER successful API call
    time.sleep(1)

    if not cache_set(cache_key, info.to_dict(), CacheType.COORDS):
        logger.warning("Failed to cache location for %s", cache_key)
    return info


def reverse_geocode(lat: float, lon: float) -> LocationInfo:
    """Resolve coordinates to a city and country using Nominatim.

    Raises:
        GeocodingError: If the lookup fails.
    """
    cache_key = f"reverse_{lat:.5f}_{lon:.5f}"
    cached = cache_get(cache_key, CacheType.COORDS)
    if cached is not None:
        logger.info("Using cached location for %s, %s", lat, lon)
        return LocationInfo.from_dict(cached)

    geolocator = _get_geolocator()
    try:
        location = geolocator.reverse((lat, lon), addressdetails=True)
    except (RequestsConnectionError, Timeout) as e:
        logger.error("Network error during reverse geocoding: %s", e)
        raise GeocodingError(f"Network error during reverse geocoding for {lat}, {lon}.") from e
    except Exception as e:
        logger.error("Reverse geocoding failed: %s", e)
        raise GeocodingError(f"Reverse geocoding failed for {lat}, {lon}.") from e

    raw = (getattr(location, "raw", None) or {}) if location else {}
    address = raw.get("address") or {}
    info = LocationInfo(
        city=_city_from_address(address),
        country=address.get("country", ""),
        lat=lat,
        lon=lon,
        display_name=raw.get("display_name", ""),
    )

    time.sleep(1)

    if not cache_set(cache_key, info.to_dict(), CacheType.COORDS):
        logger.warning("Failed to cache location for %s", cache_key)
    return info


def build_overpass_query(bounds: Bounds, timeout: int = OVERPASS_TIMEOUT) -> str:
    """Build the Overpass QL query selecting roads, water and parks in bounds."""
    bbox = f"{bounds.south},{bounds.west},{bounds.north},{bounds.east}"
    highway_pattern = "|".join(ROAD_TYPES)
    return "\n".join(
        [
            f"[out:json][timeout:{timeout}];",
            "(",
            f'  way["highway"~"{highway_pattern}"]({bbox});',
            f'  way["natural"="water"]({bbox});',
            f'  way["waterway"~"river|riverbank|stream|canal"]({bbox});',
            f'  relation["natural"="water"]({bbox});',
            f'  way["leisure"="park"]({bbox});',
            f'  way["landuse"~"grass|forest|meadow"]({bbox});',
            f'  relation["leisure"="park"]({bbox});',
            ");",
            "out body;",
            ">;",
            "out skel qt;",
        ]
    )


def _categorize(tags: Mapping[str, str]) -> tuple[FeatureCategory, str | None] | None:
    if "highway" in tags:
        return FeatureCategory.ROAD, tags["highway"]
    if tags.get("natural") == "water" or "waterway" in tags:
        return FeatureCategory.WATER, None
    if tags.get("leisure") == "park" or "landuse" in tags:
        return FeatureCategory.PARK, None
    return None


def parse_overpass_elements(
    elements: Iterable[Mapping[str, Any]],
    bounds: Bounds,
) -> MapDataSnapshot:
    """Categorize raw Overpass elements into a MapDataSnapshot.

    Ways whose node references resolve to fewer than two coordinates and
    ways matching no category are dropped.
    """
    elements = list(elements)
    nodes = {
        element["id"]: GeoPoint(float(element["lat"]), float(element["lon"]))
        for element in elements
        if element.get("type") == "node" and "lat" in element and "lon" in element
    }

    buckets: dict[FeatureCategory, list[Feature]] = {category: [] for category in FeatureCategory}
    dropped = 0
    for element in elements:
        if element.get("type") != "way" or not element.get("nodes") or not element.get("tags"):
            continue

        coordinates = tuple(nodes[ref] for ref in element["nodes"] if ref in nodes)
        if len(coordinates) < 2:
            dropped += 1
            continue

        tags = element["tags"]
        categorized = _categorize(tags)
        if categorized is None:
            continue
        category, road_type = categorized
        buckets[category].append(
            Feature(
                id=element["id"],
                coordinates=coordinates,
                tags=dict(tags),
                category=category,
                road_type=road_type,
            )
        )

    if dropped:
        logger.debug("Dropped %d ways with fewer than 2 resolvable nodes", dropped)

    return MapDataSnapshot(
        bounds=bounds,
        roads=tuple(buckets[FeatureCategory.ROAD]),
        water=tuple(buckets[FeatureCategory.WATER]),
        parks=tuple(buckets[FeatureCategory.PARK]),
    )


def fetch_map_data(center: GeoPoint, radius_meters: float) -> MapDataSnapshot:
    """Fetch and categorize roads, water and parks around a center point.

    Args:
        center: The poster center.
        radius_meters: Half the side of the bounding box, in meters.

    Returns:
        A MapDataSnapshot for the requested region.

    Raises:
        BoundsError: If the region cannot be projected linearly.
        OSMFetchError: If the features cannot be fetched.
    """
    bounds = Bounds.from_center(center, radius_meters)
    cache_key = f"map_{center.lat:.5f}_{center.lon:.5f}_{radius_meters:.10g}"
    cached = cache_get(cache_key, CacheType.GEODATA)
    if cached is not None:
        logger.info("Using cached map data")
        return MapDataSnapshot.from_dict(cached)

    logger.info("Fetching map data (radius %s m)...", radius_meters)
    query = build_overpass_query(bounds)
    try:
        response = requests.post(OVERPASS_URL, data={"data": query}, timeout=OVERPASS_TIMEOUT)
        response.raise_for_status()
        payload = response.json()
    except (RequestsConnectionError, Timeout) as e:
        logger.error("Network error fetching map data: %s", e)
        raise OSMFetchError(f"Network error fetching map data: {e}") from e
    except HTTPError as e:
        if e.response is not None and e.response.status_code == 429:
            logger.error("Rate limited by Overpass API")
            raise OSMFetchError("Rate limited by Overpass API") from e
        logger.error("HTTP error from Overpass API: %s", e)
        raise OSMFetchError(f"HTTP error from Overpass API: {e}") from e
    except ValueError as e:
        logger.error("Invalid response from Overpass API: %s", e)
        raise OSMFetchError("Invalid response from Overpass API") from e
    except RequestException as e:
        logger.error("Request to Overpass API failed: %s", e)
        raise OSMFetchError(f"Request to Overpass API failed: {e}") from e

    if not isinstance(payload, dict):
        logger.error("Invalid response from Overpass API: %s", type(payload).__name__)
        raise OSMFetchError("Invalid response from Overpass API")

    logger.info("Processing map data...")
    snapshot = parse_overpass_elements(payload.get("elements", []), bounds)
    logger.info(
        "Map data ready: %d roads, %d water, %d parks",
        len(snapshot.roads),
        len(snapshot.water),
        len(snapshot.parks),
    )

    # Rate limit AFTER successful API call
    time.sleep(0.5)

    if not cache_set(cache_key, snapshot.to_dict(), CacheType.GEODATA):
        logger.warning("Failed to cache map data for %s", cache_key)
    return snapshot
