"""
HTTP Transports
===============
The I/O boundary of the API client.

A transport exposes one coroutine per HTTP verb and returns a
``TransportResponse``. Anything a transport raises is treated as a failed
attempt by the client. ``HttpxTransport`` is the default implementation;
tests plug in fakes that follow the same protocol.
"""

from typing import Any, Dict, Mapping, Optional, Protocol

import httpx
import structlog

from .exceptions import TransportError

logger = structlog.get_logger(__name__)


class TransportResponse(Protocol):
    """What the client reads back from a transport."""

    @property
    def status(self) -> int: ...

    @property
    def ok(self) -> bool: ...

    @property
    def status_text(self) -> str: ...

    @property
    def headers(self) -> Mapping[str, str]: ...

    async def json(self) -> Any: ...


class Transport(Protocol):
    """Per-verb request coroutines taking ``(url, *, headers, timeout, data)``."""

    async def get(self, url: str, **options: Any) -> TransportResponse: ...

    async def post(self, url: str, **options: Any) -> TransportResponse: ...

    async def put(self, url: str, **options: Any) -> TransportResponse: ...

    async def patch(self, url: str, **options: Any) -> TransportResponse: ...

    async def delete(self, url: str, **options: Any) -> TransportResponse: ...


class HttpxResponse:
    """Adapts ``httpx.Response`` to ``TransportResponse``."""

    def __init__(self, response: httpx.Response):
        self._response = response

    @property
    def status(self) -> int:
        return self._response.status_code

    @property
    def ok(self) -> bool:
        return self._response.is_success

    @property
    def status_text(self) -> str:
        return self._response.reason_phrase or httpx.codes.get_reason_phrase(
            self._response.status_code
        )

    @property
    def headers(self) -> Dict[str, str]:
        return dict(self._response.headers)

    async def json(self) -> Any:
        return self._response.json()


class HttpxTransport:
    """
    Transport backed by ``httpx.AsyncClient``.

    Features:
    - Connection pooling (via httpx.AsyncClient).
    - dict/list bodies are sent as JSON, str/bytes as raw content.
    - httpx network errors are re-raised as ``TransportError`` keeping the
      httpx exception name in the message (e.g. ``ConnectError: ...``).
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient()

    async def aclose(self):
        """Close the underlying HTTP client if this transport created it."""
        if self._owns_client:
            await self.client.aclose()

    async def _send(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
        data: Any = None,
    ) -> HttpxResponse:
        kwargs: Dict[str, Any] = {"headers": headers}
        if timeout is not None:
            kwargs["timeout"] = timeout
        if data is not None:
            if isinstance(data, (str, bytes)):
                kwargs["content"] = data
            else:
                kwargs["json"] = data

        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.TransportError as e:
            logger.debug("transport_error", method=method, url=url, error=repr(e))
            raise TransportError(f"{type(e).__name__}: {e}", url=url, cause=e) from e

        return HttpxResponse(response)

    async def get(self, url: str, **options: Any) -> HttpxResponse:
        return await self._send("GET", url, **options)

    async def post(self, url: str, **options: Any) -> HttpxResponse:
        return await self._send("POST", url, **options)

    async def put(self, url: str, **options: Any) -> HttpxResponse:
        return await self._send("PUT", url, **options)

    async def patch(self, url: str, **options: Any) -> HttpxResponse:
        return await self._send("PATCH", url, **options)

    async def delete(self, url: str, **options: Any) -> HttpxResponse:
        return await self._send("DELETE", url, **options)
