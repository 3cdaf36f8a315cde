"""Per-request shared state with typed access to the reserved fields."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any, Mapping, Optional, Union

import httpx

from .constants import (
    BODY_KEY,
    HEADER_KEY,
    HIJACKED_KEY,
    ORIGINAL_WRITER_KEY,
    REQUEST_KEY,
    STATUS_KEY,
)
from .header import Header
from .response import FakeResponseWriter
from .types import ResponseWriter
from .vars import Vars

BytesLike = Union[bytes, bytearray, memoryview]


class RequestState(Vars):
    """The store every middleware in a chain shares for a single request.

    Arbitrary extension data lives under any non-reserved key. The fields the
    transport cares about live under the ``http.*`` keys and are exposed as
    typed properties. Reading an unset field is routine (it depends on
    middleware order) and yields a zero value rather than an error: ``status``
    is 0, ``body`` is empty, ``request`` and ``writer`` are ``None``.
    """

    def __init__(
        self,
        values: Optional[Mapping[str, Any]] = None,
        *,
        request: Optional[httpx.Request] = None,
        writer: Optional[ResponseWriter] = None,
    ) -> None:
        super().__init__(values)
        if request is not None:
            self.request = request
        if writer is not None:
            self.writer = writer

    # -- reserved fields -------------------------------------------------

    @property
    def request(self) -> Optional[httpx.Request]:
        value = self.get(REQUEST_KEY)
        return value if isinstance(value, httpx.Request) else None

    @request.setter
    def request(self, request: httpx.Request) -> None:
        self.set(REQUEST_KEY, request)

    @property
    def writer(self) -> Optional[ResponseWriter]:
        """The transport's own response writer, borrowed for hijacking."""

        return self.get(ORIGINAL_WRITER_KEY)

    @writer.setter
    def writer(self, writer: ResponseWriter) -> None:
        self.set(ORIGINAL_WRITER_KEY, writer)

    @property
    def status(self) -> int:
        return self.get(STATUS_KEY) if self.has_status() else 0

    @status.setter
    def status(self, status: int) -> None:
        self.set(STATUS_KEY, int(status))

    @property
    def header(self) -> Header:
        """Response header; created empty and stored on first access."""

        value = self.get(HEADER_KEY)
        if not isinstance(value, Header):
            value = Header()
            self.set(HEADER_KEY, value)
        return value

    @header.setter
    def header(self, header: Header) -> None:
        self.set(HEADER_KEY, header)

    @property
    def body(self) -> bytes:
        value = self.get(BODY_KEY)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return bytes(value)
        return b""

    @body.setter
    def body(self, body: BytesLike) -> None:
        self.set(BODY_KEY, bytes(body))

    @property
    def hijacked(self) -> bool:
        return self.get(HIJACKED_KEY) is True

    @hijacked.setter
    def hijacked(self, hijacked: bool) -> None:
        self.set(HIJACKED_KEY, bool(hijacked))

    def has_status(self) -> bool:
        """Whether a usable status is stored; wrongly typed values count as unset."""

        value = self.get(STATUS_KEY)
        return isinstance(value, int) and not isinstance(value, bool)

    # -- body helpers ----------------------------------------------------

    def set_body(self, body: BytesLike) -> None:
        self.body = body

    def set_body_string(self, body: str, encoding: str = "utf-8") -> None:
        self.body = body.encode(encoding)

    def append_body(self, data: BytesLike) -> None:
        self.body = self.body + bytes(data)

    def append_body_string(self, data: str, encoding: str = "utf-8") -> None:
        self.append_body(data.encode(encoding))

    def reset_body(self) -> bytes:
        """Empty the body and return what it held."""

        previous = self.body
        self.body = b""
        return previous

    # -- status helpers --------------------------------------------------

    def set_status(self, status: int) -> None:
        self.status = status

    def status_ok(self) -> None:
        self.status = HTTPStatus.OK

    def status_redirect(self) -> None:
        self.status = HTTPStatus.FOUND

    def status_not_found(self) -> None:
        self.status = HTTPStatus.NOT_FOUND

    def status_error(self) -> None:
        self.status = HTTPStatus.INTERNAL_SERVER_ERROR

    # -- header helpers --------------------------------------------------

    def add_header(self, name: str, value: str) -> None:
        self.header.add(name, value)

    # -- response adapters -----------------------------------------------

    def blank_response(self) -> FakeResponseWriter:
        return FakeResponseWriter.blank(self)

    def filled_response(self) -> FakeResponseWriter:
        return FakeResponseWriter.filled(self)


__all__ = ["RequestState"]
