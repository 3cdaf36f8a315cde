"""Glue between a transport and a middleware chain.

For every inbound request a transport calls :func:`serve` with its request
and response writer. ``serve`` allocates a fresh :class:`RequestState`, runs
the chain with :func:`default_finalizer` as the innermost continuation and,
unless a middleware hijacked the connection, flushes the resulting status,
header and body onto the writer.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from .config import FinalizeConfig
from .constants import BODY_KEY, DEFAULT_STATUS, HEADER_KEY, STATUS_KEY
from .header import Header
from .state import RequestState
from .types import Middleware, Next, ResponseWriter

LOGGER = logging.getLogger(__name__)


def apply_defaults(state: RequestState, default_status: int = DEFAULT_STATUS) -> None:
    """Fill status, header and body with "not found" values where still unset."""

    state.set_if_empty(STATUS_KEY, default_status)
    state.set_if_empty(HEADER_KEY, Header())
    state.set_if_empty(BODY_KEY, b"")


def default_finalizer(state: RequestState, config: Optional[FinalizeConfig] = None) -> Next:
    """Terminal continuation for the outermost chain.

    Reaching it means no middleware handled the request.
    """

    default_status = (config or FinalizeConfig()).default_status

    def finalize() -> None:
        apply_defaults(state, default_status)

    return finalize


def flush(state: RequestState, writer: ResponseWriter, config: Optional[FinalizeConfig] = None) -> None:
    """Copy the final header, status and body from ``state`` onto ``writer``."""

    config = config or FinalizeConfig()
    target = writer.header()
    for name, values in state.header.items():
        target[name] = list(values)
    # A middleware answered without picking a status.
    status = state.status if state.has_status() else config.missing_status
    writer.write_header(status)
    writer.write(state.body)


def serve(
    middleware: Middleware,
    request: httpx.Request,
    writer: ResponseWriter,
    config: Optional[FinalizeConfig] = None,
) -> RequestState:
    """Run ``middleware`` for one request and write its response to ``writer``.

    An exception escaping the chain is logged and answered with a bare
    ``config.error_status`` response; nothing from the partially built state
    is sent. Once the connection has been hijacked nothing is written at all.
    """

    config = config or FinalizeConfig()
    state = RequestState(request=request, writer=writer)
    try:
        middleware.run(state, default_finalizer(state, config))
    except Exception:
        LOGGER.exception("Unhandled error while handling %s %s", request.method, request.url)
        if config.propagate_errors:
            raise
        if not state.hijacked:
            writer.write_header(config.error_status)
        return state

    if state.hijacked:
        LOGGER.debug("Skipping response for hijacked %s %s", request.method, request.url)
        return state

    flush(state, writer, config)
    return state


__all__ = ["apply_defaults", "default_finalizer", "flush", "serve"]
