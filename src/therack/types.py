"""Common protocols and data types used across the rack package."""

from __future__ import annotations

import socket
from dataclasses import dataclass
from typing import TYPE_CHECKING, BinaryIO, Callable, Optional, Protocol, runtime_checkable

from .header import Header

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from .state import RequestState

Next = Callable[[], None]
"""Zero-argument continuation that runs the remainder of the chain."""


@runtime_checkable
class Middleware(Protocol):
    """A unit of request handling.

    ``run`` may do work before and after calling ``next``; not calling it
    short-circuits everything further down the chain.
    """

    def run(self, state: "RequestState", next: Next) -> None:  # pragma: no cover - protocol
        ...


MiddlewareFunc = Callable[["RequestState", Next], None]


@dataclass
class HijackedConnection:
    """Raw connection handed over by a successful hijack.

    ``rfile`` may already hold buffered bytes read past the request head, so
    read from it rather than from ``socket`` directly.
    """

    socket: socket.socket
    rfile: BinaryIO
    wfile: BinaryIO

    def close(self) -> None:
        for stream in (self.wfile, self.rfile):
            try:
                stream.close()
            except OSError:
                pass
        self.socket.close()


class Hijacker(Protocol):
    """Capability to take exclusive control of the underlying connection."""

    def hijack(self) -> HijackedConnection:  # pragma: no cover - protocol
        ...


class ResponseWriter(Protocol):
    """Conventional header/write/write_header response writer.

    ``hijacker`` is ``None`` when the transport cannot give up its connection.
    """

    hijacker: Optional[Hijacker]

    def header(self) -> Header:  # pragma: no cover - protocol
        ...

    def write(self, data: bytes) -> int:  # pragma: no cover - protocol
        ...

    def write_header(self, status: int) -> None:  # pragma: no cover - protocol
        ...


__all__ = [
    "HijackedConnection",
    "Hijacker",
    "Middleware",
    "MiddlewareFunc",
    "Next",
    "ResponseWriter",
]
