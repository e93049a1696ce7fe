"""
API Test Core - Circuit Breaker
===============================
Consecutive-failure circuit breaker for the API client.

Circuit breaker pattern stops hammering a backend that keeps failing.
States:

1. CLOSED: Normal operation, requests flow through
2. OPEN: Backend is failing, requests are immediately rejected
3. HALF_OPEN: One probe request tests whether the backend recovered

Usage:
    from apitest_core.circuit_breaker import CircuitBreaker, CircuitBreakerError

    breaker = CircuitBreaker(CircuitBreakerConfig(failure_threshold=3))
    users = await breaker.execute(client_call, "/api/users")
"""

from .models import (
    CircuitState,
    CircuitBreakerError,
    CircuitBreakerConfig,
    CircuitBreakerMetrics,
    DEFAULT_EXPECTED_ERRORS,
)

from .breaker import CircuitBreaker

__all__ = [
    # Models
    "CircuitState",
    "CircuitBreakerError",
    "CircuitBreakerConfig",
    "CircuitBreakerMetrics",
    "DEFAULT_EXPECTED_ERRORS",
    # Breaker
    "CircuitBreaker",
]
