import asyncio
import time
from dataclasses import replace
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Type

import httpx
import structlog
from pydantic import BaseModel

from apitest_core.circuit_breaker import CircuitBreaker, CircuitBreakerMetrics, CircuitState
from apitest_core.config import ApiClientConfig
from apitest_core.retry import fixed_delay_retrying

from .exceptions import ApiError
from .models import ApiResponse, HttpMethod, RequestConfig
from .transport import HttpxTransport, Transport, TransportResponse

logger = structlog.get_logger(__name__)


class ResilientApiClient:
    """
    Resilient async client for the API under test.

    Features:
    - Fixed-delay retries of every failed attempt (network error or non-2xx).
    - One circuit breaker per client; a logical request counts once no matter
      how many attempts it took.
    - Normalized ``ApiResponse`` envelopes and ``ApiError`` failures.
    - Optional Pydantic model validation of response bodies.
    """

    def __init__(
        self,
        config: ApiClientConfig,
        transport: Optional[Transport] = None,
        *,
        service_name: str = "api",
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.config = config
        self.service_name = service_name
        self._sleep = sleep
        self._owns_transport = transport is None
        self.transport: Transport = transport or HttpxTransport()
        self.circuit_breaker = CircuitBreaker(
            config.breaker_config,
            name=service_name,
            clock=clock,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()

    async def aclose(self):
        """Close the transport if this client created it."""
        if self._owns_transport:
            await self.transport.aclose()

    def set_transport(self, transport: Transport) -> None:
        """Swap the transport; the caller keeps ownership of the new one."""
        self.transport = transport
        self._owns_transport = False

    # Core request path

    async def request(
        self,
        request_config: RequestConfig,
        response_model: Optional[Type[BaseModel]] = None,
    ) -> ApiResponse:
        """
        Execute one logical request through the circuit breaker.

        Args:
            request_config: What to send
            response_model: Optional Pydantic model for the response body

        Returns:
            ApiResponse whose ``data`` is the parsed body (or model instance)

        Raises:
            CircuitBreakerError: The circuit is open; nothing was sent
            ApiError: The last attempt got a non-2xx status
            Exception: The last attempt's transport error, unchanged
        """
        full_url = self.build_url(request_config.url)
        headers = self.merge_headers(request_config.headers)

        logger.info(
            "request_started",
            method=request_config.method.value,
            url=full_url,
            params=request_config.params,
            circuit_state=self.circuit_breaker.state.value,
        )

        response = await self.circuit_breaker.execute(
            self._request_with_retries, request_config, full_url, headers
        )

        if response_model is not None:
            return replace(response, data=response_model.model_validate(response.data))
        return response

    async def _request_with_retries(
        self,
        request_config: RequestConfig,
        url: str,
        headers: Dict[str, str],
    ) -> ApiResponse:
        policy = self.config.retry_policy

        def on_retry(attempt: int, error: BaseException, delay: float) -> None:
            logger.warning(
                "request_retrying",
                attempt=attempt,
                max_attempts=policy.max_attempts,
                delay=delay,
                error=str(error),
                method=request_config.method.value,
                url=url,
                circuit_state=self.circuit_breaker.state.value,
            )

        try:
            async for attempt in fixed_delay_retrying(policy, self._sleep, on_retry):
                with attempt:
                    response = await self._execute_request(request_config, url, headers)
        except Exception as e:
            logger.error(
                "request_failed",
                attempts=policy.max_attempts,
                error=str(e),
                method=request_config.method.value,
                url=url,
                circuit_state=self.circuit_breaker.state.value,
            )
            raise

        logger.info(
            "request_succeeded",
            status=response.status,
            status_text=response.status_text,
            attempt=attempt.retry_state.attempt_number,
            circuit_state=self.circuit_breaker.state.value,
        )
        return response

    async def _execute_request(
        self,
        request_config: RequestConfig,
        url: str,
        headers: Dict[str, str],
    ) -> ApiResponse:
        """Single attempt: send, check the status, normalize the body."""
        options: Dict[str, Any] = {
            "headers": headers,
            "timeout": self.config.timeout if request_config.timeout is None else request_config.timeout,
        }
        if request_config.data is not None:
            options["data"] = request_config.data

        if request_config.params:
            url = self.append_params(url, request_config.params)

        send = getattr(self.transport, request_config.method.value.lower())
        response: TransportResponse = await send(url, **options)

        if not response.ok:
            body = await self._safe_json_parse(response)
            if not isinstance(body, dict):
                body = {}
            raise ApiError.from_response(response.status, response.status_text, body)

        data = await self._safe_json_parse(response)

        return ApiResponse(
            data=data,
            status=response.status,
            status_text=response.status_text,
            headers=dict(response.headers),
            config=request_config,
        )

    async def _safe_json_parse(self, response: TransportResponse) -> Any:
        try:
            return await response.json()
        except Exception as e:
            logger.warning("response_json_parse_failed", status=response.status, error=str(e))
            return {}

    # URL and header helpers

    def build_url(self, path: str) -> str:
        """Absolute URLs pass through; anything else is joined to the base URL."""
        if path.startswith(("http://", "https://")):
            return path

        base_url = self.config.base_url.rstrip("/")
        clean_path = path if path.startswith("/") else f"/{path}"
        return f"{base_url}{clean_path}"

    def merge_headers(self, request_headers: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        return {**self.config.headers, **(request_headers or {})}

    @staticmethod
    def append_params(url: str, params: Mapping[str, Any]) -> str:
        """Append query parameters, keeping any already in the URL. None values are skipped."""
        merged = httpx.URL(url)
        for key, value in params.items():
            if value is not None:
                merged = merged.copy_add_param(key, str(value))
        return str(merged)

    # HTTP method convenience wrappers

    async def get(
        self,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        response_model: Optional[Type[BaseModel]] = None,
    ) -> ApiResponse:
        return await self.request(
            RequestConfig(HttpMethod.GET, url, params=params, headers=headers),
            response_model=response_model,
        )

    async def post(
        self,
        url: str,
        data: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        response_model: Optional[Type[BaseModel]] = None,
    ) -> ApiResponse:
        return await self.request(
            RequestConfig(HttpMethod.POST, url, data=data, headers=headers),
            response_model=response_model,
        )

    async def put(
        self,
        url: str,
        data: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        response_model: Optional[Type[BaseModel]] = None,
    ) -> ApiResponse:
        return await self.request(
            RequestConfig(HttpMethod.PUT, url, data=data, headers=headers),
            response_model=response_model,
        )

    async def patch(
        self,
        url: str,
        data: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        response_model: Optional[Type[BaseModel]] = None,
    ) -> ApiResponse:
        return await self.request(
            RequestConfig(HttpMethod.PATCH, url, data=data, headers=headers),
            response_model=response_model,
        )

    async def delete(
        self,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        response_model: Optional[Type[BaseModel]] = None,
    ) -> ApiResponse:
        return await self.request(
            RequestConfig(HttpMethod.DELETE, url, headers=headers),
            response_model=response_model,
        )

    # Circuit breaker passthrough

    def get_circuit_breaker_metrics(self) -> CircuitBreakerMetrics:
        return self.circuit_breaker.get_metrics()

    def get_circuit_breaker_state(self) -> CircuitState:
        return self.circuit_breaker.state

    def reset_circuit_breaker(self) -> None:
        self.circuit_breaker.reset()
        logger.info("circuit_breaker_reset", service=self.service_name)

    def is_circuit_breaker_healthy(self) -> bool:
        return self.circuit_breaker.is_healthy()
