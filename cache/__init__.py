"""
Transaction resolution caching module.

Provides the JSON cache stores used for cache-aside lookups of blocks and
transactions: an in-process store with TTL eviction and a Redis store
guarded by a circuit breaker.
"""

from .core import MemoryCache, cache_key
from .redis_manager import RedisCache
from .monitoring import CacheMonitor, get_monitor

__all__ = [
    'MemoryCache',
    'RedisCache',
    'cache_key',
    'CacheMonitor',
    'get_monitor'
]
