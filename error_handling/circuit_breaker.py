"""Circuit breaker pattern implementation for async backends."""
import asyncio
import functools
import time

import structlog

logger = structlog.get_logger()


class CircuitBreaker:
    """
    Implements the Circuit Breaker pattern to prevent cascading failures.

    When a backend is experiencing issues, calling it repeatedly only adds
    latency to every request. The breaker stops calls to a failing backend
    once they exceed a threshold, allowing it time to recover.

    Circuit states:
    - CLOSED: Normal operation, calls pass through to the backend
    - OPEN: Calls are rejected immediately
    - HALF-OPEN: Limited testing of the backend to check if it's recovered
    """

    STATE_CLOSED = 'closed'
    STATE_OPEN = 'open'
    STATE_HALF_OPEN = 'half-open'

    class CircuitBreakerError(Exception):
        """Exception raised when a circuit is open."""
        pass

    def __init__(self, name="default", failure_threshold=5, recovery_timeout=30,
                 half_open_success_threshold=1):
        """
        Initialize a new Circuit Breaker.

        Args:
            name: Label used in log records
            failure_threshold: Number of consecutive failures before opening the circuit
            recovery_timeout: Time in seconds to wait before attempting recovery
            half_open_success_threshold: Number of successful calls needed to close circuit
        """
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.half_open_success_threshold = half_open_success_threshold

        self.state = self.STATE_CLOSED
        self.failure_count = 0
        self.success_count = 0
        self.last_failure_time = 0.0
        self._lock = asyncio.Lock()

    def __call__(self, func):
        """Use as a decorator on coroutine functions that might fail."""
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            return await self.call(func, *args, **kwargs)
        return wrapper

    async def call(self, func, *args, **kwargs):
        """
        Await the protected coroutine function with circuit breaker protection.

        Raises:
            CircuitBreakerError: If the circuit is open
            Exception: Any exception raised by the function
        """
        async with self._lock:
            if self.state == self.STATE_OPEN:
                if time.monotonic() - self.last_failure_time >= self.recovery_timeout:
                    logger.info("circuit_breaker_half_open",
                                breaker=self.name,
                                recovery_timeout=self.recovery_timeout)
                    self.state = self.STATE_HALF_OPEN
                    self.success_count = 0
                else:
                    raise self.CircuitBreakerError(
                        f"Circuit '{self.name}' is open, too many failures."
                    )

        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            async with self._lock:
                self._record_failure(e)
            raise

        async with self._lock:
            if self.state == self.STATE_HALF_OPEN:
                self.success_count += 1
                if self.success_count >= self.half_open_success_threshold:
                    logger.info("circuit_breaker_closed",
                                breaker=self.name,
                                success_count=self.success_count)
                    self.state = self.STATE_CLOSED
                    self.failure_count = 0
            elif self.state == self.STATE_CLOSED:
                self.failure_count = 0

        return result

    def _record_failure(self, error: Exception) -> None:
        self.failure_count += 1
        self.last_failure_time = time.monotonic()

        if self.state == self.STATE_CLOSED and self.failure_count >= self.failure_threshold:
            logger.warning("circuit_breaker_tripped",
                           breaker=self.name,
                           failure_count=self.failure_count,
                           exception=str(error))
            self.state = self.STATE_OPEN
        elif self.state == self.STATE_HALF_OPEN:
            logger.warning("circuit_breaker_recovery_failed",
                           breaker=self.name,
                           exception=str(error))
            self.state = self.STATE_OPEN

    def reset(self):
        """Reset the circuit breaker to closed state."""
        self.state = self.STATE_CLOSED
        self.failure_count = 0
        self.success_count = 0
        self.last_failure_time = 0.0
        logger.info("circuit_breaker_reset", breaker=self.name)

    def force_open(self):
        """Manually force the circuit into open state."""
        self.state = self.STATE_OPEN
        self.last_failure_time = time.monotonic()
        logger.warning("circuit_breaker_forced_open", breaker=self.name)

    def get_state(self):
        """Get the current state of the circuit breaker."""
        return {
            'state': self.state,
            'failure_count': self.failure_count,
            'success_count': self.success_count,
            'last_failure_time': self.last_failure_time
        }
