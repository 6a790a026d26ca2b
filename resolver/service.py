"""Construction of a resolver from settings."""
from typing import Optional

import structlog

from blockchain.client import ChainClient
from cache.core import MemoryCache
from cache.redis_manager import RedisCache
from config.settings import Settings, get_settings
from error_handling.circuit_breaker import CircuitBreaker
from .engine import Resolver
from .memo import LastBlockMemo

logger = structlog.get_logger()


def build_cache(settings: Settings):
    """Create the configured cache store, or None when caching is off."""
    backend = settings.CACHE_BACKEND.strip().lower()

    if backend == "none":
        return None

    if backend == "memory":
        return MemoryCache(max_size=settings.CACHE_MAX_SIZE, default_ttl=settings.CACHE_TTL_SECONDS)

    if backend == "redis":
        breaker = CircuitBreaker(
            name="redis",
            failure_threshold=settings.CIRCUIT_FAILURE_THRESHOLD,
            recovery_timeout=settings.CIRCUIT_RECOVERY_TIMEOUT
        )
        return RedisCache(settings.REDIS_URL, default_ttl=settings.CACHE_TTL_SECONDS, breaker=breaker)

    raise ValueError(f"Unknown cache backend '{settings.CACHE_BACKEND}'. Use memory, redis or none.")


class ResolverService:
    """A resolver together with the resources it owns."""

    def __init__(self, resolver: Resolver):
        self.resolver = resolver

    async def __aenter__(self) -> Resolver:
        return self.resolver

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self.resolver.chain.close()
        if self.resolver.cache is not None:
            await self.resolver.cache.close()
        self.resolver.monitor.log_metrics()
        logger.info("resolver_closed")


def build_resolver(settings: Optional[Settings] = None, memo: Optional[LastBlockMemo] = None) -> ResolverService:
    """Wire a resolver with its chain client, cache store and memo."""
    settings = settings or get_settings()

    chain = ChainClient(
        settings.CHAIN_RPC_URLS,
        user=settings.CHAIN_RPC_USER,
        password=settings.CHAIN_RPC_PASSWORD,
        timeout=settings.REQUEST_TIMEOUT
    )
    resolver = Resolver(
        chain,
        cache=build_cache(settings),
        memo=memo if memo is not None else LastBlockMemo(),
        ttl=settings.CACHE_TTL_SECONDS
    )

    logger.info("resolver_built",
                cache_backend=settings.CACHE_BACKEND,
                networks=sorted(settings.CHAIN_RPC_URLS))
    return ResolverService(resolver)
