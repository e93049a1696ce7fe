from datetime import datetime, timezone
from typing import Any, Dict, Optional


class ApiError(Exception):
    """Raised when the API answers with a non-2xx status."""
    def __init__(
        self,
        error: str,
        message: str,
        status_code: int,
        timestamp: Optional[str] = None,
        body: Optional[Dict[str, Any]] = None,
    ):
        self.error = error
        self.message = message
        self.status_code = status_code
        self.timestamp = timestamp or datetime.now(timezone.utc).isoformat()
        self.body = body or {}
        super().__init__(f"API Error: {error} - {message}")

    @classmethod
    def from_response(cls, status_code: int, status_text: str, body: Dict[str, Any]) -> "ApiError":
        """Build from an upstream error payload, falling back to the status line."""
        return cls(
            error=str(body.get("error") or f"HTTP {status_code}"),
            message=str(body.get("message") or status_text),
            status_code=status_code,
            body=body,
        )


class TransportError(Exception):
    """Raised when the request never got an HTTP answer (connect, DNS, timeout)."""
    def __init__(self, message: str, url: str, cause: Optional[BaseException] = None):
        self.url = url
        self.cause = cause
        super().__init__(message)
