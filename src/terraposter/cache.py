"""Caching utilities for geocoding results and map data.

Everything is stored as plain JSON. No pickle serialization is used, so a
tampered cache file can at worst fail to parse.
"""

from __future__ import annotations

import json
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any


__all__ = [
    "CacheType",
    "cache_get",
    "cache_set",
    "clear_cache",
    "get_cache_dir",
    "get_cache_stats",
]


logger = logging.getLogger(__name__)


class CacheType(Enum):
    """Types of data that can be cached, each with its own file suffix."""

    COORDS = "coords"  # LocationInfo mappings
    GEODATA = "geodata"  # MapDataSnapshot mappings


def get_cache_dir() -> Path:
    """Get the cache directory path, creating it if necessary."""
    cache_path = Path(os.environ.get("TERRAPOSTER_CACHE_DIR", ".cache"))
    cache_path.mkdir(parents=True, exist_ok=True)
    return cache_path


def _get_extension(cache_type: CacheType) -> str:
    """Get the file suffix for a cache type."""
    extensions = {
        CacheType.COORDS: ".loc.json",
        CacheType.GEODATA: ".map.json",
    }
    return extensions[cache_type]


def _cache_path(key: str, cache_type: CacheType) -> Path:
    """Generate a safe cache file path for a given key and type."""
    safe = key.replace(os.sep, "_").replace("/", "_").replace("\\", "_")
    ext = _get_extension(cache_type)
    return get_cache_dir() / f"{safe}{ext}"


def cache_get(key: str, cache_type: CacheType) -> Any | None:
    """Retrieve a cached value by key.

    Args:
        key: The cache key to look up.
        cache_type: The type of data being cached.

    Returns:
        The decoded JSON value if found, None on cache miss or error.
    """
    try:
        path = _cache_path(key, cache_type)
        if not path.exists():
            logger.debug("Cache miss", extra={"key": key, "type": cache_type.value})
            return None

        data = json.loads(path.read_text(encoding="utf-8"))
        logger.debug("Cache hit", extra={"key": key, "type": cache_type.value})
        return data

    except Exception as e:
        logger.warning("Cache read error for %s: %s", key, e)
        return None


def cache_set(key: str, value: Any, cache_type: CacheType) -> bool:
    """Store a JSON-serializable value in the cache.

    Args:
        key: The cache key.
        value: The value to cache.
        cache_type: The type of data being cached.

    Returns:
        True if successful, False on error.
    """
    try:
        path = _cache_path(key, cache_type)
        path.write_text(json.dumps(value), encoding="utf-8")
        logger.debug("Cache write", extra={"key": key, "type": cache_type.value})
        return True

    except Exception as e:
        logger.warning("Cache write error for %s: %s", key, e)
        return False


def get_cache_stats() -> dict[str, Any]:
    """Get statistics about the cache.

    Returns:
        Dict with cache statistics including:
        - total_files: Number of cached files
        - total_size_mb: Total size in megabytes
        - by_type: Breakdown by cache type (coords, geodata)
    """
    cache_dir = get_cache_dir()
    stats: dict[str, Any] = {
        "total_files": 0,
        "total_size_bytes": 0,
        "total_size_mb": 0.0,
        "by_type": {ct.value: {"files": 0, "size_bytes": 0} for ct in CacheType},
    }

    for cache_type in CacheType:
        ext = _get_extension(cache_type)
        for path in cache_dir.glob(f"*{ext}"):
            size = path.stat().st_size
            stats["total_files"] += 1
            stats["total_size_bytes"] += size
            stats["by_type"][cache_type.value]["files"] += 1
            stats["by_type"][cache_type.value]["size_bytes"] += size

    stats["total_size_mb"] = round(stats["total_size_bytes"] / (1024 * 1024), 2)
    for cache_type in CacheType:
        bytes_val = stats["by_type"][cache_type.value]["size_bytes"]
        stats["by_type"][cache_type.value]["size_mb"] = round(bytes_val / (1024 * 1024), 2)

    return stats


def clear_cache(cache_type: CacheType | None = None) -> int:
    """Clear the cache.

    Args:
        cache_type: Optional type to clear. If None, clears all cache files.

    Returns:
        Number of files deleted.
    """
    cache_dir = get_cache_dir()
    deleted = 0

    types = [cache_type] if cache_type is not None else list(CacheType)
    for ct in types:
        for path in cache_dir.glob(f"*{_get_extension(ct)}"):
            try:
                path.unlink()
                deleted += 1
                logger.debug("Deleted cache file: %s", path)
            except OSError as e:
                logger.warning("Failed to delete %s: %s", path, e)

    logger.info("Cleared %d cache files", deleted)
    return deleted
