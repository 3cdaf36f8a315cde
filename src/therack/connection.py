"""HTTP and HTTPS listeners that serve a middleware chain.

Listeners are built explicitly from an address (and certificate files for
HTTPS); nothing is registered globally, so several racks can be served from
one process on different addresses.
"""

from __future__ import annotations

import logging
import socket
import ssl
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional, Protocol

import httpx

from .boundary import serve
from .config import ServerConfig, TLSConfig
from .exceptions import RackError
from .header import Header
from .types import HijackedConnection, Middleware

LOGGER = logging.getLogger(__name__)


class Connection(Protocol):
    """Something that uses a rack to answer requests, e.g. an HTTP listener."""

    def go(self, middleware: Middleware) -> None:  # pragma: no cover - protocol
        ...


class _HandlerHijacker:
    def __init__(self, handler: "RackRequestHandler") -> None:
        self._handler = handler

    def hijack(self) -> HijackedConnection:
        handler = self._handler
        if handler.hijacked:
            raise RackError("connection already hijacked")
        if handler.response_started:
            raise RackError("cannot hijack after the response was started")
        handler.wfile.flush()
        handler.server.release(handler.connection)
        handler.hijacked = True
        handler.close_connection = True
        return HijackedConnection(
            socket=handler.connection,
            rfile=handler.rfile,
            wfile=handler.connection.makefile("wb"),
        )


class _HandlerWriter:
    """Response writer over a ``BaseHTTPRequestHandler``."""

    def __init__(self, handler: "RackRequestHandler") -> None:
        self._handler = handler
        self._header = Header()
        self.hijacker = _HandlerHijacker(handler)

    def header(self) -> Header:
        return self._header

    def write_header(self, status: int) -> None:
        handler = self._handler
        if handler.response_started:
            LOGGER.warning("Superfluous write_header(%d) ignored", status)
            return
        handler.response_started = True
        handler.send_response(status)
        for name, value in self._header.multi_items():
            handler.send_header(name, value)
        handler.end_headers()

    def write(self, data: bytes) -> int:
        handler = self._handler
        if not handler.response_started:
            self.write_header(200)
        if handler.command != "HEAD" and data:
            handler.wfile.write(data)
        return len(data)


class RackRequestHandler(BaseHTTPRequestHandler):
    """Turns each inbound request into a run of the server's middleware."""

    server: "RackHTTPServer"

    def setup(self) -> None:
        super().setup()
        self.hijacked = False
        self.response_started = False

    def handle_one_request(self) -> None:
        self.response_started = False
        super().handle_one_request()

    def build_request(self) -> httpx.Request:
        length = self.headers.get("Content-Length")
        size = int(length) if length else 0
        if size < 0:
            raise ValueError(f"negative Content-Length {length!r}")
        body = self.rfile.read(size) if size else b""
        host = self.headers.get("Host") or "{}:{}".format(*self.server.server_address[:2])
        url = f"{self.server.scheme}://{host}{self.path}"
        return httpx.Request(
            self.command,
            url,
            headers=list(self.headers.items()),
            content=body,
        )

    def handle_rack(self) -> None:
        try:
            request = self.build_request()
        except (ValueError, httpx.InvalidURL) as exc:
            LOGGER.warning("Rejecting malformed %s request: %s", self.command, exc)
            self.response_started = True
            self.send_error(400)
            return
        serve(
            self.server.middleware,
            request,
            _HandlerWriter(self),
            self.server.config.finalize,
        )

    do_GET = do_HEAD = do_POST = do_PUT = do_PATCH = do_DELETE = do_OPTIONS = handle_rack

    def finish(self) -> None:
        # The hijacking middleware owns the streams now.
        if self.hijacked:
            return
        super().finish()

    def log_message(self, format: str, *args) -> None:  # noqa: A002 - stdlib signature
        LOGGER.info("%s - %s", self.address_string(), format % args)


class RackHTTPServer(ThreadingHTTPServer):
    """Threaded server holding the middleware and its configuration."""

    def __init__(self, middleware: Middleware, config: ServerConfig) -> None:
        self.middleware = middleware
        self.config = config
        self.scheme = "https" if config.tls else "http"
        self.daemon_threads = config.daemon_threads
        self.request_queue_size = config.request_queue_size
        self._released: set[socket.socket] = set()
        self._released_lock = threading.Lock()
        super().__init__(config.address, RackRequestHandler)
        if config.tls is not None:
            self.socket = _tls_context(config.tls).wrap_socket(self.socket, server_side=True)

    def release(self, request: socket.socket) -> None:
        """Stop managing ``request``; the server will no longer close it."""

        with self._released_lock:
            self._released.add(request)

    def shutdown_request(self, request) -> None:
        with self._released_lock:
            if request in self._released:
                self._released.discard(request)
                return
        super().shutdown_request(request)


def _tls_context(tls: TLSConfig) -> ssl.SSLContext:
    context = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
    context.load_cert_chain(tls.certfile, tls.keyfile)
    return context


class HttpConnection:
    """Plain HTTP listener; good for a basic website."""

    def __init__(self, address: str, *, config: Optional[ServerConfig] = None) -> None:
        parsed = ServerConfig.from_address(address)
        base = config or ServerConfig()
        self.config = base.model_copy(update={"host": parsed.host, "port": parsed.port})

    def serve(self, middleware: Middleware) -> RackHTTPServer:
        """Bind a server for ``middleware`` without starting its loop."""

        return RackHTTPServer(middleware, self.config)

    def go(self, middleware: Middleware) -> None:
        """Serve ``middleware`` until the process is interrupted."""

        with self.serve(middleware) as server:
            host, port = server.server_address[:2]
            LOGGER.info("Serving %s on %s://%s:%s", middleware, server.scheme, host, port)
            server.serve_forever()


class HttpsConnection(HttpConnection):
    """HTTPS listener; needs a certificate file and its key file."""

    def __init__(
        self,
        address: str,
        certfile: str,
        keyfile: str,
        *,
        config: Optional[ServerConfig] = None,
    ) -> None:
        super().__init__(address, config=config)
        tls = TLSConfig(certfile=certfile, keyfile=keyfile)
        self.config = self.config.model_copy(update={"tls": tls})


__all__ = [
    "Connection",
    "HttpConnection",
    "HttpsConnection",
    "RackHTTPServer",
    "RackRequestHandler",
]
