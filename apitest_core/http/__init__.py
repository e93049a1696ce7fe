from .client import ResilientApiClient
from .exceptions import ApiError, TransportError
from .models import ApiResponse, HttpMethod, RequestConfig
from .transport import HttpxResponse, HttpxTransport, Transport, TransportResponse

__all__ = [
    "ResilientApiClient",
    "ApiError",
    "TransportError",
    "ApiResponse",
    "HttpMethod",
    "RequestConfig",
    "HttpxResponse",
    "HttpxTransport",
    "Transport",
    "TransportResponse",
]
