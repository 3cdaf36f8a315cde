import socket
import threading
from contextlib import contextmanager

import httpx
import pytest

from therack.connection import HttpConnection
from therack.rack import Func, Rack
from therack.vars import Vars


@contextmanager
def _running(middleware):
    server = HttpConnection("127.0.0.1:0").serve(middleware)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        host, port = server.server_address[:2]
        with httpx.Client(base_url=f"http://{host}:{port}", trust_env=False) as client:
            yield client
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)


def test_hello_world_over_http():
    def world(state, next):
        state.set("Object", "World")
        next()

    def hello(state, next):
        state.set_body_string("Hello " + state.get("Object"))

    with _running(Rack([Func(world), Func(hello)])) as client:
        response = client.get("/")

    assert response.status_code == 200
    assert response.text == "Hello World"


def test_unhandled_request_is_not_found():
    with _running(Rack()) as client:
        response = client.get("/missing")

    assert response.status_code == 404
    assert response.content == b""


def test_request_details_reach_middleware():
    def echo(state, next):
        request = state.request
        state.status_ok()
        state.add_header("X-Method", request.method)
        state.add_header("X-Path", request.url.path)
        state.set_body(request.read())

    with _running(Func(echo)) as client:
        response = client.post("/echo?x=1", content=b"payload")

    assert response.headers["X-Method"] == "POST"
    assert response.headers["X-Path"] == "/echo"
    assert response.content == b"payload"


def test_defaults_seeded_by_vars_and_multi_value_headers():
    def cookies(state, next):
        state.add_header("Set-Cookie", "a=1")
        state.add_header("Set-Cookie", "b=2")
        state.status = 201
        next()

    rack = Rack([Vars(greeting="hi"), Func(cookies)])

    with _running(rack) as client:
        response = client.get("/")

    assert response.status_code == 201
    assert response.headers.get_list("Set-Cookie") == ["a=1", "b=2"]


def test_unhandled_error_returns_500():
    def boom(state, next):
        state.set_body_string("partial")
        raise RuntimeError("boom")

    with _running(Func(boom)) as client:
        response = client.get("/")

    assert response.status_code == 500
    assert response.content == b""


def test_hijacked_connection_is_left_to_middleware():
    def raw(state, next):
        connection = state.blank_response().hijack()
        connection.wfile.write(b"HTTP/1.0 299 Raw\r\nContent-Length: 3\r\n\r\nraw")
        connection.wfile.flush()
        connection.close()
        # Ignored: the connection is no longer ours to answer on.
        state.set_body_string("ignored")
        state.status = 200

    with _running(Func(raw)) as client:
        response = client.get("/")

    assert response.status_code == 299
    assert response.content == b"raw"


@pytest.mark.parametrize("method", ["PUT", "DELETE", "PATCH", "OPTIONS"])
def test_every_common_method_is_dispatched(method):
    def name(state, next):
        state.set_body_string(state.request.method)

    with _running(Func(name)) as client:
        response = client.request(method, "/")

    assert response.text == method


def _raw_exchange(client: httpx.Client, payload: bytes) -> bytes:
    url = client.base_url
    with socket.create_connection((url.host, url.port), timeout=5) as sock:
        sock.sendall(payload)
        chunks = []
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


@pytest.mark.parametrize(
    "head",
    [
        b"POST / HTTP/1.0\r\nHost: localhost\r\nContent-Length: abc\r\n\r\n",
        b"POST / HTTP/1.0\r\nHost: localhost\r\nContent-Length: -5\r\n\r\n",
        b"GET / HTTP/1.0\r\nHost: localhost:notaport\r\n\r\n",
    ],
)
def test_malformed_request_is_answered_with_400(head):
    calls = []

    def record(state, next):
        calls.append(state.request)

    with _running(Func(record)) as client:
        reply = _raw_exchange(client, head)

    assert reply.startswith(b"HTTP/1.0 400")
    assert calls == []
