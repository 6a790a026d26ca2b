from typing import Any, Dict, Optional
import json

import redis.asyncio as redis
from redis.exceptions import RedisError
import structlog

from error_handling.circuit_breaker import CircuitBreaker
from error_handling.errors import CacheUnavailable
from .core import cache_key

logger = structlog.get_logger()


class RedisCache:
    def __init__(
        self,
        redis_url: str,
        default_ttl: int = 600,
        breaker: Optional[CircuitBreaker] = None,
        client: Optional[redis.Redis] = None
    ):
        """Initialize Redis cache with connection URL and default TTL."""
        self.redis_url = redis_url
        self.default_ttl = default_ttl
        self.breaker = breaker or CircuitBreaker(name="redis")
        self.redis: Optional[redis.Redis] = client

    async def connect(self) -> None:
        """Establish connection to Redis."""
        self.redis = redis.from_url(
            self.redis_url,
            encoding="utf-8",
            decode_responses=True
        )
        await self.redis.ping()
        logger.info("redis_connection_established")

    async def close(self) -> None:
        """Close Redis connection."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            logger.info("redis_connection_closed")

    async def get(self, type: str, key: str) -> Optional[Dict[str, Any]]:
        """Get value from cache."""
        full_key = cache_key(type, key)
        value = await self._guarded("get", full_key, self._get, full_key)
        if value is None:
            return None

        try:
            return json.loads(value)
        except ValueError as e:
            raise CacheUnavailable(f"corrupt cache entry {full_key}") from e

    async def set(self, type: str, key: str, value: Dict[str, Any], ttl: Optional[int] = None) -> None:
        """Set value in cache with optional TTL."""
        full_key = cache_key(type, key)
        serialized_value = json.dumps(value)
        await self._guarded("set", full_key, self._set, full_key, serialized_value, ttl or self.default_ttl)

    async def delete(self, type: str, key: str) -> bool:
        """Delete key from cache."""
        full_key = cache_key(type, key)
        removed = await self._guarded("delete", full_key, self._delete, full_key)
        return bool(removed)

    async def _get(self, full_key: str) -> Optional[str]:
        if not self.redis:
            await self.connect()
        return await self.redis.get(full_key)

    async def _set(self, full_key: str, value: str, ttl: int) -> None:
        if not self.redis:
            await self.connect()
        await self.redis.set(full_key, value, ex=ttl)

    async def _delete(self, full_key: str) -> int:
        if not self.redis:
            await self.connect()
        return await self.redis.delete(full_key)

    async def _guarded(self, operation: str, full_key: str, func, *args) -> Any:
        try:
            return await self.breaker.call(func, *args)
        except CircuitBreaker.CircuitBreakerError as e:
            raise CacheUnavailable(str(e)) from e
        except (RedisError, OSError) as e:
            logger.error(f"redis_{operation}_failed", key=full_key, error=str(e))
            raise CacheUnavailable(f"redis {operation} failed: {e}") from e
