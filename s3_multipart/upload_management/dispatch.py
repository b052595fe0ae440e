"""Cancellation-aware request dispatch.

Separates a caller's own cancellation from every other failure so callers
can skip retry and alerting for user-initiated aborts.
"""

import logging

from s3_multipart.exceptions import HttpError, TransportError, UserCanceled
from s3_multipart.transport.base import (
    CancelToken,
    HttpRequest,
    Transport,
    TransportAborted,
    TransportResponse,
)

logger = logging.getLogger(__name__)


async def dispatch(
    transport: Transport,
    request: HttpRequest,
    cancel_token: CancelToken | None = None,
) -> TransportResponse:
    """Send a request and classify transport failures.

    Args:
        transport: Transport that executes the request.
        request: Signed request.
        cancel_token: Token the transport observes while the request runs.

    Returns:
        The transport's response, whatever its status.

    Raises:
        UserCanceled: If the token fired before the response arrived.
        TransportError: If the transport failed for any other reason.
    """
    if cancel_token is not None and cancel_token.cancelled:
        raise UserCanceled(cancel_token.reason or "Request canceled by user")

    try:
        response = await transport.send(request, cancel_token)
    except TransportAborted as exc:
        logger.info("%s %s canceled by user", request.method, request.url)
        raise UserCanceled(str(exc) or "Request canceled by user") from exc
    except Exception as exc:
        if cancel_token is not None and cancel_token.cancelled:
            raise UserCanceled(
                cancel_token.reason or "Request canceled by user"
            ) from exc
        logger.warning(
            "Transport error for %s %s: %s", request.method, request.url, exc
        )
        raise TransportError(
            f"Transport error: {exc}",
            status=getattr(exc, "status", None),
            body=getattr(exc, "message", None),
        ) from exc

    logger.debug("%s %s -> HTTP %d", request.method, request.url, response.status)
    return response


def raise_for_status(response: TransportResponse, operation: str) -> None:
    """Raise ``HttpError`` with the store's diagnostic text on a non-2xx status."""
    if response.ok:
        return
    body = response.text()
    logger.warning("%s failed with HTTP %d", operation, response.status)
    raise HttpError(response.status, body, operation)
