"""
Circuit Breaker Models
======================
Data models and enums for the circuit breaker pattern.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple


class CircuitState(str, Enum):
    """Circuit breaker states."""
    CLOSED = "CLOSED"        # Normal operation
    OPEN = "OPEN"            # Failing, reject requests
    HALF_OPEN = "HALF_OPEN"  # Single recovery probe


# Infrastructure faults that are allowed to trip the breaker. The first five
# are the spellings used by Node-style clients, the rest are what httpx and
# the socket layer put in exception names and messages.
DEFAULT_EXPECTED_ERRORS: Tuple[str, ...] = (
    "ECONNREFUSED",
    "ETIMEDOUT",
    "ENOTFOUND",
    "Network Error",
    "timeout",
    "Connection refused",
    "ConnectError",
    "ConnectTimeout",
    "ReadTimeout",
    "WriteTimeout",
    "PoolTimeout",
    "NetworkError",
    "Name or service not known",
)


class CircuitBreakerError(Exception):
    """Raised when circuit is open and request is rejected."""

    def __init__(
        self,
        service_name: str,
        state: CircuitState,
        next_attempt: float,
        retry_after: float,
    ):
        self.service_name = service_name
        self.state = state
        self.next_attempt = next_attempt
        self.retry_after = retry_after
        allowed_at = datetime.fromtimestamp(next_attempt, tz=timezone.utc).isoformat()
        super().__init__(
            f"Circuit breaker '{service_name}' is {state.value}. "
            f"Next attempt allowed at {allowed_at}"
        )


@dataclass(frozen=True)
class CircuitBreakerConfig:
    """Configuration for a circuit breaker."""
    failure_threshold: int = 5         # Consecutive failures before opening
    recovery_timeout: float = 60.0     # Seconds to stay open before probing
    monitoring_period: float = 10.0    # Reserved for windowed statistics
    expected_errors: Tuple[str, ...] = DEFAULT_EXPECTED_ERRORS

    def __post_init__(self):
        if self.failure_threshold < 1:
            raise ValueError("failure_threshold must be a positive integer")
        if self.recovery_timeout < 0:
            raise ValueError("recovery_timeout must not be negative")
        if self.monitoring_period < 0:
            raise ValueError("monitoring_period must not be negative")
        # Accept lists/sets from callers but keep the config hashable
        object.__setattr__(self, "expected_errors", tuple(self.expected_errors))


@dataclass
class CircuitBreakerMetrics:
    """Runtime counters of a circuit breaker."""
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    consecutive_failures: int = 0
    last_failure_time: Optional[float] = None
    state: CircuitState = CircuitState.CLOSED
