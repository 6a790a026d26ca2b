"""
Monitoring for transaction resolution caching.

Tracks hits and misses for the block cache, the transaction cache and the
last-block memo, plus failures of the cache backend.
"""
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator

import structlog
from prometheus_client import Counter, Histogram

from blockchain.constants import BLOCK_CACHE, MEMO_CACHE, TX_CACHE

logger = structlog.get_logger()

CACHE_HITS = Counter('txresolve_cache_hits_total', 'Total number of cache hits', ['cache_type'])
CACHE_MISSES = Counter('txresolve_cache_misses_total', 'Total number of cache misses', ['cache_type'])
CACHE_ERRORS = Counter('txresolve_cache_errors_total', 'Total number of cache backend failures',
                       ['cache_type', 'operation'])
CACHE_LATENCY = Histogram('txresolve_cache_latency_seconds', 'Cache operation latency in seconds',
                          ['cache_type', 'operation'])


class CacheMonitor:
    """Records cache metrics and produces hit ratio reports."""

    def __init__(self):
        self.start_time = time.time()

    def record_hit(self, cache_type: str) -> None:
        CACHE_HITS.labels(cache_type=cache_type).inc()

    def record_miss(self, cache_type: str) -> None:
        CACHE_MISSES.labels(cache_type=cache_type).inc()

    def record_error(self, cache_type: str, operation: str) -> None:
        CACHE_ERRORS.labels(cache_type=cache_type, operation=operation).inc()

    @contextmanager
    def timed(self, cache_type: str, operation: str) -> Iterator[None]:
        """Observe the latency of a cache operation."""
        start = time.perf_counter()
        try:
            yield
        finally:
            CACHE_LATENCY.labels(cache_type=cache_type, operation=operation).observe(
                time.perf_counter() - start
            )

    def get_hit_ratio(self, cache_type: str) -> float:
        """
        Get cache hit ratio for a specific cache type.

        Returns:
            Hit ratio as a float between 0 and 1
        """
        hits = CACHE_HITS.labels(cache_type=cache_type)._value.get()
        misses = CACHE_MISSES.labels(cache_type=cache_type)._value.get()
        total = hits + misses

        if total == 0:
            return 0.0

        return hits / total

    def get_metrics_report(self) -> Dict[str, Any]:
        return {
            'uptime_seconds': time.time() - self.start_time,
            'block_hit_ratio': self.get_hit_ratio(BLOCK_CACHE),
            'transaction_hit_ratio': self.get_hit_ratio(TX_CACHE),
            'memo_hit_ratio': self.get_hit_ratio(MEMO_CACHE),
        }

    def log_metrics(self) -> None:
        """Log current cache metrics."""
        logger.info("cache_metrics_report", **self.get_metrics_report())


monitor = CacheMonitor()


def get_monitor() -> CacheMonitor:
    """Get the global cache monitor instance."""
    return monitor
