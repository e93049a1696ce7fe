"""
HTTP Models
===========
Request and response shapes shared by the client and its transports.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, Mapping, Optional, TypeVar, Union

T = TypeVar("T")


class HttpMethod(str, Enum):
    """Supported HTTP verbs."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


@dataclass(frozen=True)
class RequestConfig:
    """One logical request as the caller describes it."""
    method: Union[HttpMethod, str]
    url: str
    data: Any = None
    params: Optional[Mapping[str, Any]] = None
    headers: Optional[Mapping[str, str]] = None
    timeout: Optional[float] = None  # Seconds; client default when unset

    def __post_init__(self):
        method = self.method
        if not isinstance(method, HttpMethod):
            try:
                method = HttpMethod(str(method).upper())
            except ValueError:
                raise ValueError(f"Unsupported HTTP method: {self.method}") from None
        object.__setattr__(self, "method", method)


@dataclass(frozen=True)
class ApiResponse(Generic[T]):
    """Normalized response of a successful request."""
    data: T
    status: int
    status_text: str
    headers: Dict[str, str] = field(default_factory=dict)
    config: Optional[RequestConfig] = None
