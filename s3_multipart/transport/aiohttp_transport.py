"""Default transport built on aiohttp."""

import asyncio
import logging

import aiohttp
from multidict import CIMultiDict
from yarl import URL

from s3_multipart.const import DEFAULT_REQUEST_TIMEOUT_SECS
from s3_multipart.transport.base import (
    CancelToken,
    HttpRequest,
    TransportAborted,
    TransportResponse,
)

logger = logging.getLogger(__name__)


class AiohttpTransport:
    """Send signed requests through an ``aiohttp.ClientSession``.

    A session passed in is borrowed and left open; otherwise one is created
    on first use and closed by ``close``.
    """

    def __init__(
        self,
        client_session: aiohttp.ClientSession | None = None,
        timeout_secs: float = DEFAULT_REQUEST_TIMEOUT_SECS,
    ) -> None:
        """Initialise the transport.

        Args:
            client_session: Session to send requests through.
            timeout_secs: Total timeout applied to each request.
        """
        self._session = client_session
        self._owns_session = client_session is None
        self._timeout = aiohttp.ClientTimeout(total=timeout_secs)

    async def __aenter__(self) -> "AiohttpTransport":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self) -> None:
        """Close the session if this transport created it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def send(
        self, request: HttpRequest, cancel_token: CancelToken | None = None
    ) -> TransportResponse:
        """Send a request, abandoning it if the token fires first.

        Raises:
            TransportAborted: If ``cancel_token`` fired before the response arrived.
            aiohttp.ClientError: On connection or protocol failure.
            asyncio.TimeoutError: If the request exceeded the timeout.
        """
        if cancel_token is not None and cancel_token.cancelled:
            raise TransportAborted(cancel_token.reason or "Request canceled")

        request_task = asyncio.ensure_future(self._perform(request))
        if cancel_token is None:
            return await request_task

        cancel_task = asyncio.ensure_future(cancel_token.wait())
        try:
            done, _ = await asyncio.wait(
                {request_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            request_task.cancel()
            raise
        finally:
            cancel_task.cancel()

        if request_task in done:
            return request_task.result()

        request_task.cancel()
        await asyncio.gather(request_task, return_exceptions=True)
        logger.debug("Abandoned %s %s: token fired", request.method, request.url)
        raise TransportAborted(cancel_token.reason or "Request canceled")

    async def _perform(self, request: HttpRequest) -> TransportResponse:
        session = self._get_session()
        async with session.request(
            request.method,
            URL(request.url, encoded=True),
            headers=request.headers,
            data=request.body,
            timeout=self._timeout,
        ) as response:
            body = await response.read()
            return TransportResponse(
                status=response.status,
                headers=CIMultiDict(response.headers),
                body=body,
            )
