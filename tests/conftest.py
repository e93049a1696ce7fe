"""
Shared fixtures: a controllable clock, a recording sleep and a scripted transport.
"""

from typing import Any, Dict, List, Optional

import pytest


class FakeClock:
    """Manually advanced replacement for ``time.time``."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeResponse:
    """TransportResponse with a canned status and body."""

    _REASONS = {
        200: "OK",
        201: "Created",
        204: "No Content",
        404: "Not Found",
        408: "Request Timeout",
        500: "Internal Server Error",
        504: "Gateway Timeout",
    }

    def __init__(self, status: int = 200, body: Any = None, headers: Optional[Dict[str, str]] = None, invalid_json: bool = False):
        self.status = status
        self.ok = 200 <= status < 300
        self.status_text = self._REASONS.get(status, "")
        self.headers = headers or {"content-type": "application/json"}
        self._body = body
        self._invalid_json = invalid_json

    async def json(self) -> Any:
        if self._invalid_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._body


class FakeTransport:
    """
    Transport that replays a script of outcomes.

    Each outcome is either a ``FakeResponse`` (returned) or an exception
    (raised). The last outcome repeats once the script runs out.
    """

    def __init__(self, *outcomes):
        self.outcomes: List[Any] = list(outcomes) or [FakeResponse(200, {})]
        self.calls: List[Dict[str, Any]] = []

    async def _dispatch(self, method: str, url: str, **options: Any) -> FakeResponse:
        self.calls.append({"method": method, "url": url, **options})
        index = min(len(self.calls), len(self.outcomes)) - 1
        outcome = self.outcomes[index]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def get(self, url: str, **options: Any) -> FakeResponse:
        return await self._dispatch("GET", url, **options)

    async def post(self, url: str, **options: Any) -> FakeResponse:
        return await self._dispatch("POST", url, **options)

    async def put(self, url: str, **options: Any) -> FakeResponse:
        return await self._dispatch("PUT", url, **options)

    async def patch(self, url: str, **options: Any) -> FakeResponse:
        return await self._dispatch("PATCH", url, **options)

    async def delete(self, url: str, **options: Any) -> FakeResponse:
        return await self._dispatch("DELETE", url, **options)


class RecordingSleep:
    """Async sleep that returns immediately and remembers the delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleep():
    return RecordingSleep()
