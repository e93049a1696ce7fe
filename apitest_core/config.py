"""
Client Configuration
====================
Resolved configuration handed to ``ResilientApiClient``.

The client never reads process state itself. ``ApiClientConfig.from_env``
is the one place environment variables are consulted; callers resolve a
config there (or build one by hand) and inject it.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

import httpx
import structlog

from apitest_core.circuit_breaker import CircuitBreakerConfig
from apitest_core.retry import RetryPolicy

logger = structlog.get_logger(__name__)

DEFAULT_HEADERS: Dict[str, str] = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


class ConfigurationError(ValueError):
    """Raised when a client configuration is incomplete or malformed."""


@dataclass(frozen=True)
class ApiClientConfig:
    """Configuration for one API client instance."""
    base_url: str
    timeout: float = 30.0      # Default per-request timeout in seconds
    retries: int = 0           # Extra attempts per logical request
    retry_delay: float = 1.0   # Fixed seconds between attempts
    headers: Mapping[str, str] = field(default_factory=dict)
    circuit_breaker: Optional[CircuitBreakerConfig] = None

    def __post_init__(self):
        try:
            url = httpx.URL(self.base_url)
        except httpx.InvalidURL as e:
            raise ConfigurationError(f"Invalid base_url format: {self.base_url}") from e
        if url.scheme not in ("http", "https") or not url.host:
            raise ConfigurationError(f"Invalid base_url format: {self.base_url}")
        if self.timeout <= 0:
            raise ConfigurationError("timeout must be positive")
        if self.retries < 0:
            raise ConfigurationError("retries must not be negative")
        if self.retry_delay < 0:
            raise ConfigurationError("retry_delay must not be negative")
        object.__setattr__(self, "headers", dict(self.headers))

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(retries=self.retries, retry_delay=self.retry_delay)

    @property
    def breaker_config(self) -> CircuitBreakerConfig:
        return self.circuit_breaker or CircuitBreakerConfig()

    @classmethod
    def from_env(
        cls,
        environment: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "ApiClientConfig":
        """
        Resolve a config from an environment preset plus variable overrides.

        Args:
            environment: Preset name; defaults to ``APP_ENV`` or "development"
            environ: Variables to read; defaults to ``os.environ``

        Recognized variables:
            API_BASE_URL      replaces the preset base URL
            API_KEY           sent as the ``x-api-key`` header
            TEST_TIMEOUT      timeout in milliseconds
            TEST_RETRIES      retry count
            API_RETRY_DELAY   retry delay in milliseconds

        Raises:
            ConfigurationError: Unknown environment or malformed value
        """
        env = os.environ if environ is None else environ
        name = environment or env.get("APP_ENV") or "development"

        preset = ENVIRONMENTS.get(name)
        if preset is None:
            raise ConfigurationError(f"Unknown environment: {name}")

        headers = dict(preset.headers)
        api_key = env.get("API_KEY")
        if api_key:
            headers["x-api-key"] = api_key

        config = cls(
            base_url=env.get("API_BASE_URL") or preset.base_url,
            timeout=_millis(env, "TEST_TIMEOUT", preset.timeout),
            retries=_integer(env, "TEST_RETRIES", preset.retries),
            retry_delay=_millis(env, "API_RETRY_DELAY", preset.retry_delay),
            headers=headers,
            circuit_breaker=preset.circuit_breaker,
        )
        logger.debug(
            "client_config_resolved",
            environment=name,
            base_url=config.base_url,
            timeout=config.timeout,
            retries=config.retries,
        )
        return config


def _integer(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from None


def _millis(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if not raw:
        return default
    try:
        return int(raw) / 1000
    except ValueError:
        raise ConfigurationError(f"{key} must be milliseconds, got {raw!r}") from None


ENVIRONMENTS: Dict[str, ApiClientConfig] = {
    "development": ApiClientConfig(
        base_url="https://reqres.in",
        timeout=30.0,
        retries=1,
        retry_delay=1.0,
        headers={**DEFAULT_HEADERS, "x-api-key": "reqres-free-v1"},
    ),
    "staging": ApiClientConfig(
        base_url="https://staging-api.reqres.in",
        timeout=20.0,
        retries=2,
        retry_delay=2.0,
        headers={**DEFAULT_HEADERS, "x-api-key": "reqres-staging-v1"},
    ),
    "production": ApiClientConfig(
        base_url="https://api.reqres.in",
        timeout=15.0,
        retries=3,
        retry_delay=3.0,
        headers={**DEFAULT_HEADERS, "x-api-key": "reqres-prod-v1"},
    ),
    "local": ApiClientConfig(
        base_url="http://localhost:3000",
        timeout=10.0,
        retries=0,
        retry_delay=0.5,
        headers=dict(DEFAULT_HEADERS),
    ),
}
