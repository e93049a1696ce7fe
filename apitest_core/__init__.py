"""
API Test Core Library
=====================
Resilient HTTP client core for REST API test suites.
"""

__version__ = "0.1.0"

# Circuit Breaker
from apitest_core.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitBreakerError,
    CircuitBreakerMetrics,
    CircuitState,
)

# Retry
from apitest_core.retry import RetryPolicy, fixed_delay_retrying

# Configuration
from apitest_core.config import ApiClientConfig, ConfigurationError, ENVIRONMENTS

# HTTP
from apitest_core.http import (
    ResilientApiClient,
    ApiError,
    TransportError,
    ApiResponse,
    HttpMethod,
    RequestConfig,
    HttpxTransport,
)

# Logging
from apitest_core.log_config import setup_logging

__all__ = [
    "__version__",
    # Circuit Breaker
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitBreakerError",
    "CircuitBreakerMetrics",
    "CircuitState",
    # Retry
    "RetryPolicy",
    "fixed_delay_retrying",
    # Configuration
    "ApiClientConfig",
    "ConfigurationError",
    "ENVIRONMENTS",
    # HTTP
    "ResilientApiClient",
    "ApiError",
    "TransportError",
    "ApiResponse",
    "HttpMethod",
    "RequestConfig",
    "HttpxTransport",
    # Logging
    "setup_logging",
]
