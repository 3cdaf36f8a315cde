"""Exceptions raised by the rack."""

from __future__ import annotations


class RackError(Exception):
    """Base class for errors raised by the rack and its transports."""


class HijackUnsupported(RackError):
    """The underlying response writer cannot hand over its connection."""

    def __init__(self, message: str = "hijack not implemented") -> None:
        super().__init__(message)


__all__ = ["HijackUnsupported", "RackError"]
