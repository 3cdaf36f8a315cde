import logging

import httpx
import pytest

from therack.boundary import apply_defaults, default_finalizer, flush, serve
from therack.config import FinalizeConfig
from therack.header import Header
from therack.rack import Func, Rack
from therack.state import RequestState
from therack.types import HijackedConnection


class RecordingWriter:
    """Stands in for a transport's response writer."""

    def __init__(self, hijacker=None) -> None:
        self.hijacker = hijacker
        self._header = Header()
        self.statuses: list[int] = []
        self.chunks: list[bytes] = []

    def header(self) -> Header:
        return self._header

    def write_header(self, status: int) -> None:
        self.statuses.append(status)

    def write(self, data: bytes) -> int:
        self.chunks.append(bytes(data))
        return len(data)

    @property
    def body(self) -> bytes:
        return b"".join(self.chunks)

    @property
    def touched(self) -> bool:
        return bool(self.statuses or self.chunks or len(self._header))


class StaticHijacker:
    def hijack(self):
        return HijackedConnection(socket=None, rfile=None, wfile=None)


def _request() -> httpx.Request:
    return httpx.Request("GET", "http://testserver/path")


def test_nothing_handled_yields_not_found():
    writer = RecordingWriter()

    state = serve(Rack(), _request(), writer)

    assert state.status == 404
    assert len(state.header) == 0
    assert state.body == b""
    assert writer.statuses == [404]
    assert writer.body == b""


def test_defaults_never_overwrite_set_fields():
    def created(state, next):
        state.status = 201
        next()

    writer = RecordingWriter()
    state = serve(Rack([Func(created)]), _request(), writer)

    assert state.status == 201
    assert len(state.header) == 0
    assert state.body == b""
    assert writer.statuses == [201]


def test_apply_defaults_only_fills_unset_fields():
    state = RequestState()
    state.set_body_string("kept")

    apply_defaults(state)

    assert state.status == 404
    assert state.body == b"kept"


def test_default_finalizer_uses_configured_status():
    state = RequestState()

    default_finalizer(state, FinalizeConfig(default_status=410))()

    assert state.status == 410


def test_reserved_keys_are_seeded():
    seen = {}

    def inspect(state, next):
        seen["request"] = state.request
        seen["writer"] = state.writer
        state.set_body_string("ok")

    request = _request()
    writer = RecordingWriter()
    serve(Func(inspect), request, writer)

    assert seen == {"request": request, "writer": writer}


def test_short_circuit_without_status_flushes_ok():
    def answer(state, next):
        state.set_body_string("Hello World")

    writer = RecordingWriter()
    serve(Func(answer), _request(), writer)

    assert writer.statuses == [200]
    assert writer.body == b"Hello World"


def test_wrongly_typed_status_flushes_as_missing():
    def answer(state, next):
        state.set("http.Status", "201")
        state.set_body_string("typed wrong")

    writer = RecordingWriter()
    serve(Func(answer), _request(), writer)

    assert writer.statuses == [200]
    assert writer.body == b"typed wrong"


def test_flush_copies_every_header_value():
    state = RequestState()
    state.add_header("Set-Cookie", "a=1")
    state.add_header("Set-Cookie", "b=2")
    state.status = 200
    writer = RecordingWriter()

    flush(state, writer)

    assert writer.header()["Set-Cookie"] == ["a=1", "b=2"]


def test_adapter_output_is_flushed():
    def legacy(state, next):
        w = state.blank_response()
        w.header().set("Content-Type", "text/plain")
        w.write(b"World")
        w.save()

    def hello(state, next):
        next()
        old = state.reset_body()
        state.set_body_string("Hello ")
        state.append_body(old)

    writer = RecordingWriter()
    serve(Rack([Func(hello), Func(legacy)]), _request(), writer)

    assert writer.statuses == [200]
    assert writer.header().get_first("Content-Type") == "text/plain"
    assert writer.body == b"Hello World"


def test_hijacked_request_writes_nothing():
    def take_over(state, next):
        state.set_body_string("ignored")
        state.filled_response().hijack()
        next()

    writer = RecordingWriter(hijacker=StaticHijacker())
    state = serve(Func(take_over), _request(), writer)

    assert state.hijacked is True
    assert not writer.touched


def test_unhandled_error_sends_bare_error_status(caplog):
    def partial(state, next):
        state.add_header("X-Partial", "1")
        state.set_body_string("half")
        next()

    def boom(state, next):
        raise RuntimeError("boom")

    writer = RecordingWriter()
    with caplog.at_level(logging.ERROR, logger="therack.boundary"):
        serve(Rack([Func(partial), Func(boom)]), _request(), writer)

    assert writer.statuses == [500]
    assert writer.body == b""
    assert "X-Partial" not in writer.header()
    assert "Unhandled error" in caplog.text


def test_unhandled_error_after_hijack_writes_nothing():
    def take_over(state, next):
        state.blank_response().hijack()
        raise RuntimeError("late failure")

    writer = RecordingWriter(hijacker=StaticHijacker())
    serve(Func(take_over), _request(), writer)

    assert not writer.touched


def test_propagate_errors_reraises():
    def boom(state, next):
        raise ValueError("bad")

    with pytest.raises(ValueError):
        serve(Func(boom), _request(), RecordingWriter(), FinalizeConfig(propagate_errors=True))


def test_recovery_middleware_built_on_the_same_contract():
    def recover(state, next):
        try:
            next()
        except RuntimeError:
            state.status_error()
            state.set_body_string("recovered")

    def boom(state, next):
        raise RuntimeError("boom")

    writer = RecordingWriter()
    serve(Rack([Func(recover), Func(boom)]), _request(), writer)

    assert writer.statuses == [500]
    assert writer.body == b"recovered"
