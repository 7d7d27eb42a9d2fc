"""Client-side helpers for consuming the OmaHub API."""

from omahub.client.favourites import CacheState, FavouritesCache, Notice

__all__ = ["CacheState", "FavouritesCache", "Notice"]
