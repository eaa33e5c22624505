"""
=============================================================================
HTTP REQUEST DECODER
=============================================================================

Decodes the request line and header block of an HTTP/1.1 request straight
off the connection, one line at a time.

=============================================================================
WHAT WE ACCEPT
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │    GET /index.html HTTP/1.1\r\n      ← request line                 │
    │    ─┬─ ─────┬──── ────┬───                                          │
    │     │       │         │                                              │
    │   "GET"   path     "HTTP/1.1"      (exact, case-sensitive)          │
    │           (verbatim: no percent-decoding, query kept)               │
    │                                                                      │
    │    Host: example.com\r\n             ← headers                       │
    │    Accept: */*\r\n                                                   │
    │    \r\n                              ← end of headers                │
    │                                                                      │
    │    (no body is read)                                                 │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Request line failures, in the order they are checked:

    "GET /"                      → MalformedRequestLine (2 tokens)
    "GET  / HTTP/1.1"            → MalformedRequestLine (4 tokens)
    "POST / HTTP/1.1"            → UnsupportedMethod
    "GET / HTTP/1.0"             → UnsupportedVersion
    "GET index.html HTTP/1.1"    → MalformedRequestLine (path without "/")

Header rules:

    "Host: x"          → {"Host": "x"}
    "  Host :  x  "    → {"Host": "x"}         (both sides trimmed)
    "Date: 10:30"      → {"Date": "10:30"}     (split on first colon only)
    "A: 1" + "A: 2"    → {"A": "2"}            (last one wins)
    "NoColon"          → MalformedHeaderLine

Header names keep their case: "host" and "Host" are different keys.

=============================================================================
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from ..errors import (
    MalformedHeaderLine,
    MalformedRequestLine,
    MissingHostHeader,
    UnsupportedMethod,
    UnsupportedVersion,
)
from .reader import ByteSource, read_line


logger = logging.getLogger(__name__)


SUPPORTED_METHOD = "GET"
SUPPORTED_VERSION = "HTTP/1.1"


@dataclass(frozen=True)
class HTTPRequest:
    """
    A decoded request.

    Built fresh for every connection and never modified afterwards.

    Attributes:
        path: Request target exactly as sent, always starting with "/".
        headers: Header name → value, last occurrence wins.
    """

    path: str
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def host(self) -> Optional[str]:
        """Value of the Host header, or None if the client sent none."""
        return self.headers.get("Host")


def decode_request_line(source: ByteSource, max_length: Optional[int] = None) -> str:
    """
    Read the request line and return the requested path.

    Args:
        source: Byte source positioned at the start of the request.
        max_length: Maximum line length, None for unbounded.

    Returns:
        The path token, verbatim.

    Raises:
        TransportReadError: If the line could not be read.
        LineTooLong: If the line exceeds max_length.
        MalformedRequestLine: If the line is not three space-separated
                              tokens, or the path does not start with "/".
        UnsupportedMethod: If the method is not GET.
        UnsupportedVersion: If the version is not HTTP/1.1.
    """
    line = read_line(source, max_length)

    parts = line.split(" ")
    if len(parts) > 3:
        raise MalformedRequestLine("More than 3 parts in request line", line)
    if len(parts) < 3:
        raise MalformedRequestLine("Less than 3 parts in request line", line)

    method, path, version = parts

    if method != SUPPORTED_METHOD:
        raise UnsupportedMethod(f"Unhandled method {method!r}", line)

    if version != SUPPORTED_VERSION:
        raise UnsupportedVersion(f"Unhandled version {version!r}", line)

    if not path.startswith("/"):
        raise MalformedRequestLine(f"Path must start with '/': {path!r}", line)

    return path


def decode_headers(
    source: ByteSource,
    max_length: Optional[int] = None,
) -> Dict[str, str]:
    """
    Read header lines up to and including the blank line that ends them.

    Args:
        source: Byte source positioned just after the request line.
        max_length: Maximum line length, None for unbounded.

    Returns:
        Dictionary of header name → value.

    Raises:
        TransportReadError: If a line could not be read.
        LineTooLong: If a line exceeds max_length.
        MalformedHeaderLine: If a line has no colon.
    """
    headers: Dict[str, str] = {}

    while True:
        line = read_line(source, max_length)
        if not line:
            break

        name, sep, value = line.partition(":")
        if not sep:
            raise MalformedHeaderLine(line)

        name = name.strip()
        value = value.strip()
        logger.debug(f"Decoded header {name!r}: {value!r}")

        headers[name] = value

    return headers


def read_request(source: ByteSource, max_length: Optional[int] = None) -> HTTPRequest:
    """
    Decode a complete request: request line, headers and the Host check.

    Raises:
        ProtocolError: Any of the decoding errors above, or
                       MissingHostHeader if no Host header was sent.
    """
    path = decode_request_line(source, max_length)
    logger.info(f"Got new 'GET' request for {path}")

    headers = decode_headers(source, max_length)
    if "Host" not in headers:
        raise MissingHostHeader("Could not find 'Host' in request headers")

    return HTTPRequest(path=path, headers=headers)
