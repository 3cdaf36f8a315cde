"""In-memory response writer that persists its results into the request state.

Code written against the usual header/write/write_header writer can run inside
a middleware through :class:`FakeResponseWriter`. Nothing reaches the
connection until the chain unwinds, so later middleware are still free to
change the status, header or body the writer produced.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Union

from .constants import ADAPTER_STATUS, BODY_KEY, HEADER_KEY, STATUS_KEY
from .exceptions import HijackUnsupported
from .header import Header
from .types import HijackedConnection

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from .state import RequestState

LOGGER = logging.getLogger(__name__)

ResponseTriple = tuple[int, Header, bytes]


class FakeResponseWriter:
    """Buffered status, header and body bound to one request state."""

    def __init__(
        self,
        state: "RequestState",
        *,
        status: int = ADAPTER_STATUS,
        header: Optional[Header] = None,
        body: Union[bytes, bytearray] = b"",
    ) -> None:
        self._state = state
        self._status = status
        self._header = header if header is not None else Header()
        self._body = bytearray(body)

    @classmethod
    def blank(cls, state: "RequestState") -> "FakeResponseWriter":
        """A writer with status 200, an empty header and an empty body."""

        return cls(state)

    @classmethod
    def filled(cls, state: "RequestState") -> "FakeResponseWriter":
        """A writer seeded from whatever ``state`` already holds.

        Each field falls back to the blank default on its own, so a state with
        only a body set still yields status 200 and an empty header.
        """

        status = state.get(STATUS_KEY)
        if not isinstance(status, int) or isinstance(status, bool):
            status = ADAPTER_STATUS
        header = state.get(HEADER_KEY)
        if not isinstance(header, Header):
            header = None
        body = state.get(BODY_KEY)
        if not isinstance(body, (bytes, bytearray)):
            body = b""
        return cls(state, status=status, header=header, body=body)

    @property
    def status(self) -> int:
        return self._status

    def header(self) -> Header:
        return self._header

    def write(self, data: Union[bytes, bytearray, memoryview]) -> int:
        self._body.extend(data)
        return len(data)

    def write_header(self, status: int) -> None:
        # Unlike a real writer the status may change after a write; the last
        # call before save() wins.
        self._status = int(status)

    def hijack(self) -> HijackedConnection:
        """Take over the connection from the writer the transport supplied.

        The state is flagged as hijacked only once the transport actually
        handed the connection over, so a failed attempt still lets the normal
        response go out.
        """

        writer = self._state.writer
        hijacker = writer.hijacker if writer is not None else None
        if hijacker is None:
            raise HijackUnsupported()
        connection = hijacker.hijack()
        self._state.hijacked = True
        LOGGER.debug("Connection hijacked by middleware")
        return connection

    def save(self) -> None:
        """Copy the buffered status, header and body into the state."""

        self._state.status = self._status
        self._state.header = self._header
        self._state.body = bytes(self._body)

    def results(self) -> ResponseTriple:
        return self._status, self._header, bytes(self._body)


def create_response(
    state: "RequestState",
    status: int,
    header: Header,
    body: Union[bytes, bytearray],
) -> FakeResponseWriter:
    """Build a writer from values the caller already has."""

    return FakeResponseWriter(state, status=status, header=header, body=body)


__all__ = ["FakeResponseWriter", "ResponseTriple", "create_response"]
