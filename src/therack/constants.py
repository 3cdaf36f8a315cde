"""Reserved state keys and status defaults shared by the rack and its transports."""

from __future__ import annotations

from http import HTTPStatus

# Reserved keys forming the boundary protocol between transports and middleware.
REQUEST_KEY = "http.Request"
ORIGINAL_WRITER_KEY = "http.Original"
STATUS_KEY = "http.Status"
HEADER_KEY = "http.Header"
BODY_KEY = "http.Message"
HIJACKED_KEY = "http.Hijacked"

RESERVED_KEYS = frozenset(
    {
        REQUEST_KEY,
        ORIGINAL_WRITER_KEY,
        STATUS_KEY,
        HEADER_KEY,
        BODY_KEY,
        HIJACKED_KEY,
    }
)

# Nothing in the chain handled the request.
DEFAULT_STATUS = int(HTTPStatus.NOT_FOUND)
# A middleware produced a response but never set a status.
MISSING_STATUS = int(HTTPStatus.OK)
# The chain raised before producing a response.
ERROR_STATUS = int(HTTPStatus.INTERNAL_SERVER_ERROR)

# Status a fresh response adapter starts with.
ADAPTER_STATUS = int(HTTPStatus.OK)


__all__ = [
    "ADAPTER_STATUS",
    "BODY_KEY",
    "DEFAULT_STATUS",
    "ERROR_STATUS",
    "HEADER_KEY",
    "HIJACKED_KEY",
    "MISSING_STATUS",
    "ORIGINAL_WRITER_KEY",
    "REQUEST_KEY",
    "RESERVED_KEYS",
    "STATUS_KEY",
]
