"""
=============================================================================
HTTP PROTOCOL IMPLEMENTATION
=============================================================================

The wire-level half of the server: turning bytes from the connection into
a request, and a response back into bytes.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ reader.py        read_line()          bytes → one line (no CRLF)   │
    │ request.py       decode_request_line  line  → path                 │
    │                  decode_headers       lines → {name: value}        │
    │                  read_request         both  → HTTPRequest          │
    │ response.py      HTTPResponse         response → bytes             │
    │ status_codes.py  HTTPStatus           200 / 301 / 404              │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .reader import read_line
from .request import HTTPRequest, decode_request_line, decode_headers, read_request
from .response import (
    HTTPResponse,
    ResponseBuilder,
    ok,                  # 200 OK
    moved_permanently,   # 301 Moved Permanently
    not_found,           # 404 Not Found
)
from .status_codes import HTTPStatus

__all__ = [
    # Decoding
    "read_line",
    "HTTPRequest",
    "decode_request_line",
    "decode_headers",
    "read_request",

    # Encoding
    "HTTPResponse",
    "ResponseBuilder",
    "ok",
    "moved_permanently",
    "not_found",

    # Status codes
    "HTTPStatus",
]
