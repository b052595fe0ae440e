"""Transport collaborator interface.

The uploader builds and signs requests; a transport only executes them.
Any object with a matching ``send`` coroutine can be injected, which keeps
the uploader independent of the HTTP client in use.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Protocol

from multidict import CIMultiDict


class TransportAborted(Exception):
    """Raised by a transport when a request was abandoned because its token fired."""


class CancelToken:
    """Cooperative cancellation signal shared between a caller and a transport.

    Once cancelled a token stays cancelled; create a new one per attempt.
    """

    def __init__(self) -> None:
        """Create a token that has not fired."""
        self._event = asyncio.Event()
        self._reason: str | None = None

    @property
    def cancelled(self) -> bool:
        """True once ``cancel`` has been called."""
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        """Reason passed to ``cancel``, if any."""
        return self._reason

    def cancel(self, reason: str | None = None) -> None:
        """Fire the token. Further calls have no effect."""
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()

    async def wait(self) -> None:
        """Block until the token fires."""
        await self._event.wait()


@dataclass(frozen=True)
class HttpRequest:
    """A fully signed request, ready to be sent."""

    method: str
    url: str
    headers: dict[str, str]
    body: bytes = b""


@dataclass
class TransportResponse:
    """Status, headers and raw body of a completed exchange."""

    status: int
    headers: CIMultiDict = field(default_factory=CIMultiDict)
    body: bytes = b""

    @property
    def ok(self) -> bool:
        """True for any 2xx status."""
        return 200 <= self.status < 300

    def header(self, name: str) -> str | None:
        """Look a header up case-insensitively."""
        return self.headers.get(name)

    def text(self) -> str:
        """Decode the body as UTF-8, replacing undecodable bytes."""
        return self.body.decode("utf-8", errors="replace")


class Transport(Protocol):
    """Executes one HTTP request per call."""

    async def send(
        self, request: HttpRequest, cancel_token: CancelToken | None = None
    ) -> TransportResponse:
        """Send a request and return the response.

        Raises:
            TransportAborted: If ``cancel_token`` fired before completion.
        """
        ...
