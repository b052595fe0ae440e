"""HTTP transports that execute signed requests."""

from .aiohttp_transport import AiohttpTransport
from .base import (
    CancelToken,
    HttpRequest,
    Transport,
    TransportAborted,
    TransportResponse,
)

__all__ = [
    "AiohttpTransport",
    "CancelToken",
    "HttpRequest",
    "Transport",
    "TransportAborted",
    "TransportResponse",
]
