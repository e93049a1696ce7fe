"""
Circuit Breaker Core
====================
The main CircuitBreaker class guarding async operations.
"""

import time
from dataclasses import replace
from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog

from .models import (
    CircuitState,
    CircuitBreakerConfig,
    CircuitBreakerError,
    CircuitBreakerMetrics,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class CircuitBreaker:
    """
    Consecutive-failure circuit breaker for async operations.

    State changes happen between suspension points of the calling task, so
    no lock is needed on a single event loop. The OPEN -> HALF_OPEN move is
    evaluated lazily on the next ``execute()`` against the injected clock;
    nothing runs in the background.

    Example:
        breaker = CircuitBreaker(CircuitBreakerConfig(failure_threshold=3))

        try:
            result = await breaker.execute(fetch_users, page=2)
        except CircuitBreakerError as e:
            logger.warning("backend_unavailable", retry_after=e.retry_after)
    """

    def __init__(
        self,
        config: Optional[CircuitBreakerConfig] = None,
        name: str = "api",
        clock: Callable[[], float] = time.time,
    ):
        self.name = name
        self.config = config or CircuitBreakerConfig()
        self._clock = clock
        self._metrics = CircuitBreakerMetrics()
        self._next_attempt = clock()
        self._probe_in_flight = False

    @property
    def state(self) -> CircuitState:
        """Current circuit state."""
        return self._metrics.state

    @property
    def next_attempt(self) -> float:
        """Time before which OPEN-state calls are rejected."""
        return self._next_attempt

    def get_state(self) -> CircuitState:
        return self._metrics.state

    def get_metrics(self) -> CircuitBreakerMetrics:
        """Snapshot of the metrics; mutating it does not affect the breaker."""
        return replace(self._metrics)

    def is_expected_error(self, exc: BaseException) -> bool:
        """True if the error message or type name contains an expected substring."""
        message = str(exc)
        error_name = type(exc).__name__
        return any(
            expected in message or expected in error_name
            for expected in self.config.expected_errors
        )

    def _reject(self) -> CircuitBreakerError:
        retry_after = max(0.0, self._next_attempt - self._clock())
        return CircuitBreakerError(
            self.name, self._metrics.state, self._next_attempt, retry_after
        )

    def _acquire(self) -> bool:
        """
        Check and possibly transition state. Raises if the call is not allowed.

        Returns True when this call holds the HALF_OPEN probe slot.
        """
        metrics = self._metrics

        if metrics.state == CircuitState.OPEN:
            if self._clock() < self._next_attempt:
                raise self._reject()
            metrics.state = CircuitState.HALF_OPEN
            logger.info("circuit_half_open", service=self.name)

        if metrics.state == CircuitState.HALF_OPEN:
            if self._probe_in_flight:
                raise self._reject()
            self._probe_in_flight = True
            return True

        return False

    def _record_success(self, probing: bool) -> None:
        metrics = self._metrics
        metrics.total_requests += 1
        metrics.successful_requests += 1
        metrics.consecutive_failures = 0

        # Calls admitted before the circuit opened only update counters
        if probing and metrics.state == CircuitState.HALF_OPEN:
            metrics.state = CircuitState.CLOSED
            logger.info("circuit_closed", service=self.name)

    def _record_failure(self, exc: Exception, probing: bool) -> None:
        metrics = self._metrics
        now = self._clock()
        metrics.total_requests += 1
        metrics.failed_requests += 1
        metrics.consecutive_failures += 1
        metrics.last_failure_time = now

        if not self.is_expected_error(exc):
            logger.debug(
                "circuit_failure_unclassified",
                service=self.name,
                failures=metrics.consecutive_failures,
                error=str(exc),
            )
            return

        if probing and metrics.state == CircuitState.HALF_OPEN:
            self._trip(now)
            logger.warning("circuit_reopened", service=self.name, error=str(exc))
        elif (
            metrics.state == CircuitState.CLOSED
            and metrics.consecutive_failures >= self.config.failure_threshold
        ):
            self._trip(now)
            logger.warning(
                "circuit_opened",
                service=self.name,
                failures=metrics.consecutive_failures,
                error=str(exc),
            )

    def _trip(self, now: float) -> None:
        self._metrics.state = CircuitState.OPEN
        self._next_attempt = now + self.config.recovery_timeout

    async def execute(
        self,
        func: Callable[..., Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """
        Execute a function through the circuit breaker.

        A call is counted when it resolves. A call that ends in a
        ``BaseException`` such as task cancellation is not counted at all.

        Args:
            func: Async function to execute
            *args: Positional arguments
            **kwargs: Keyword arguments

        Returns:
            Result of func

        Raises:
            CircuitBreakerError: If the circuit is open, or a recovery probe
                is already running. ``func`` is not called in that case.
            Exception: Whatever ``func`` raised, unchanged.
        """
        probing = self._acquire()

        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            self._record_failure(e, probing)
            raise
        finally:
            if probing:
                self._probe_in_flight = False

        self._record_success(probing)
        return result

    # Manual overrides

    def reset(self) -> None:
        """Zero all metrics and close the circuit."""
        self._metrics = CircuitBreakerMetrics()
        self._next_attempt = self._clock()
        self._probe_in_flight = False
        logger.info("circuit_reset", service=self.name)

    def force_open(self) -> None:
        self._trip(self._clock())
        logger.warning("circuit_forced_open", service=self.name)

    def force_closed(self) -> None:
        self._metrics.state = CircuitState.CLOSED
        self._metrics.consecutive_failures = 0
        logger.info("circuit_forced_closed", service=self.name)

    def get_success_rate(self) -> float:
        """Lifetime success percentage; 100 before any request."""
        metrics = self._metrics
        if metrics.total_requests == 0:
            return 100.0
        return metrics.successful_requests / metrics.total_requests * 100

    def is_healthy(self) -> bool:
        """Closed and above 80% success."""
        return self._metrics.state == CircuitState.CLOSED and self.get_success_rate() > 80
