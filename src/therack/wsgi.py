"""Serve a middleware chain from any WSGI server."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any, Callable, Iterable, Optional
from urllib.parse import quote

import httpx

from .boundary import serve
from .config import FinalizeConfig
from .header import Header
from .types import Middleware

StartResponse = Callable[..., Any]


def _reason(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return "Unknown"


class _BufferedWriter:
    """Collects the response so it can be handed to ``start_response`` at once.

    WSGI gives middleware no access to the raw socket, so there is nothing to
    hijack.
    """

    hijacker = None

    def __init__(self) -> None:
        self._header = Header()
        self.status: Optional[int] = None
        self.body = bytearray()

    def header(self) -> Header:
        return self._header

    def write_header(self, status: int) -> None:
        if self.status is None:
            self.status = status

    def write(self, data: bytes) -> int:
        if self.status is None:
            self.status = 200
        self.body.extend(data)
        return len(data)


def request_from_environ(environ: dict[str, Any]) -> httpx.Request:
    """Rebuild the inbound request described by a WSGI ``environ``."""

    scheme = environ.get("wsgi.url_scheme", "http")
    host = environ.get("HTTP_HOST")
    if not host:
        host = environ.get("SERVER_NAME", "localhost")
        port = environ.get("SERVER_PORT")
        if port and port != ("443" if scheme == "https" else "80"):
            host = f"{host}:{port}"
    # WSGI hands over the raw path bytes decoded as latin-1.
    raw_path = (environ.get("SCRIPT_NAME", "") + environ.get("PATH_INFO", "")).encode("latin-1")
    path = quote(raw_path)
    query = environ.get("QUERY_STRING")
    url = f"{scheme}://{host}{path}" + (f"?{query}" if query else "")

    headers = [
        (key[5:].replace("_", "-").title(), value)
        for key, value in environ.items()
        if key.startswith("HTTP_")
    ]
    for key in ("CONTENT_TYPE", "CONTENT_LENGTH"):
        if environ.get(key):
            headers.append((key.replace("_", "-").title(), environ[key]))

    length = environ.get("CONTENT_LENGTH")
    stream = environ.get("wsgi.input")
    body = stream.read(int(length)) if length and stream is not None else b""
    return httpx.Request(environ.get("REQUEST_METHOD", "GET"), url, headers=headers, content=body)


class WSGIApp:
    """WSGI application wrapping a middleware chain."""

    def __init__(self, middleware: Middleware, config: Optional[FinalizeConfig] = None) -> None:
        self.middleware = middleware
        self.config = config or FinalizeConfig()

    def __call__(self, environ: dict[str, Any], start_response: StartResponse) -> Iterable[bytes]:
        writer = _BufferedWriter()
        serve(self.middleware, request_from_environ(environ), writer, self.config)
        status = writer.status if writer.status is not None else self.config.missing_status
        start_response(f"{status} {_reason(status)}", writer.header().multi_items())
        return [bytes(writer.body)]


__all__ = ["WSGIApp", "request_from_environ"]
