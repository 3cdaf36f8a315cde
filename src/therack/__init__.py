"""Public package interface for therack."""

from .boundary import apply_defaults, default_finalizer, flush, serve
from .config import FinalizeConfig, ServerConfig, TLSConfig
from .connection import Connection, HttpConnection, HttpsConnection
from .exceptions import HijackUnsupported, RackError
from .header import Header
from .rack import Func, Rack
from .response import FakeResponseWriter, create_response
from .state import RequestState
from .types import HijackedConnection, Hijacker, Middleware, ResponseWriter
from .vars import Vars
from .wsgi import WSGIApp

__all__ = [
    "Connection",
    "FakeResponseWriter",
    "FinalizeConfig",
    "Func",
    "Header",
    "HijackUnsupported",
    "HijackedConnection",
    "Hijacker",
    "HttpConnection",
    "HttpsConnection",
    "Middleware",
    "Rack",
    "RackError",
    "RequestState",
    "ResponseWriter",
    "ServerConfig",
    "TLSConfig",
    "Vars",
    "WSGIApp",
    "apply_defaults",
    "create_response",
    "default_finalizer",
    "flush",
    "serve",
]
