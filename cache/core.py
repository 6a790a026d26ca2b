"""
Core JSON cache functionality.

Values are JSON documents addressed by an entry type and a key. Stores are
async so that the in-memory store and the Redis store are interchangeable.
"""
import json
import time
from typing import Any, Dict, Optional

import structlog

from error_handling.errors import CacheUnavailable

logger = structlog.get_logger()


def cache_key(type: str, key: str) -> str:
    """Build the namespaced key for an entry type."""
    if not type or not key:
        raise ValueError("Both type and key are required for a cache key")
    return f"{type}:{key}"


class MemoryCache:
    """
    Process-local JSON cache with per-entry TTL.

    Values are stored serialized so callers never share mutable objects
    with the store.
    """

    def __init__(self, max_size: int = 1000, default_ttl: int = 600):
        """
        Initialize the cache with specified maximum size and default TTL.

        Args:
            max_size: Maximum number of items to store in the cache
            default_ttl: Default time-to-live in seconds for cached items
        """
        self._cache: Dict[str, Dict[str, Any]] = {}
        self._max_size = max_size
        self._default_ttl = default_ttl
        self._hits = 0
        self._misses = 0

    async def get(self, type: str, key: str) -> Optional[Dict[str, Any]]:
        """
        Get a value from the cache.

        Returns:
            The cached value or None if not found or expired
        """
        full_key = cache_key(type, key)
        entry = self._cache.get(full_key)

        if entry is None:
            self._misses += 1
            return None

        if entry['expiry'] < time.time():
            self._misses += 1
            del self._cache[full_key]
            return None

        self._hits += 1
        return json.loads(entry['value'])

    async def set(self, type: str, key: str, value: Dict[str, Any], ttl: Optional[int] = None) -> None:
        """
        Set a value in the cache.

        Args:
            type: Entry type
            key: Entry key
            value: JSON serializable value
            ttl: Time-to-live in seconds, or None to use default
        """
        full_key = cache_key(type, key)

        try:
            serialized = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise CacheUnavailable(f"value for {full_key} is not JSON serializable") from e

        # Enforce max size by removing oldest entry if needed
        if len(self._cache) >= self._max_size and full_key not in self._cache:
            oldest_key = min(self._cache.items(), key=lambda x: x[1]['timestamp'])[0]
            del self._cache[oldest_key]

        now = time.time()
        self._cache[full_key] = {
            'value': serialized,
            'expiry': now + (ttl if ttl is not None else self._default_ttl),
            'timestamp': now
        }

    async def delete(self, type: str, key: str) -> bool:
        """Delete a key from the cache, returning whether it existed."""
        return self._cache.pop(cache_key(type, key), None) is not None

    async def close(self) -> None:
        """Nothing to release for an in-process store."""

    def flush(self) -> None:
        """Clear all keys in the cache."""
        self._cache.clear()
        self._hits = 0
        self._misses = 0

    def get_stats(self) -> Dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dictionary with cache statistics
        """
        total_requests = self._hits + self._misses
        hit_ratio = self._hits / total_requests if total_requests > 0 else 0

        return {
            'size': len(self._cache),
            'max_size': self._max_size,
            'hits': self._hits,
            'misses': self._misses,
            'hit_ratio': hit_ratio,
        }
