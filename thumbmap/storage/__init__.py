"""Storage layer - the map.json cache."""

from .cache_store import CacheStore

__all__ = ["CacheStore"]
