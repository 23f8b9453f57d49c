"""Utility modules for the inventory kernel."""

from inventory_kernel.utils.cache import (
    BoundedCache,
    CacheEntry,
    CacheRegistry,
    CacheStats,
)

__all__ = [
    "BoundedCache",
    "CacheEntry",
    "CacheRegistry",
    "CacheStats",
]
