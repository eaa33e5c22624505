"""
=============================================================================
LINE READER
=============================================================================

Pulls a single CRLF-terminated line off a connection, one byte at a time.

=============================================================================
WHY ONE BYTE AT A TIME?
=============================================================================

TCP is a byte stream. A single recv(4096) might return the request line,
all the headers and the start of whatever the client sends next:

    recv(4096) → b"GET / HTTP/1.1\r\nHost: x\r\n\r\n..."

Reading exactly one byte per call means we never consume anything past
the CRLF we are looking for. Each call to read_line() leaves the stream
positioned at the first byte of the next line:

    source:   G E T ␣ / ␣ H T T P / 1 . 1 \r \n H o s t : ...
              └──────────── line 1 ───────────┘    └── next call ──

=============================================================================
LINE LENGTH LIMIT
=============================================================================

Without a cap, a client that never sends CRLF makes the buffer grow
forever. With max_length set, read_line() raises LineTooLong as soon as
the line content (CRLF excluded) is known to be longer than the limit:

    max_length = 4

    b"abcd\r\n"   → "abcd"
    b"abcd\r"     → still waiting (the \r may start the terminator)
    b"abcde"      → LineTooLong

=============================================================================
"""

import logging
from typing import Optional, Protocol

from ..errors import LineTooLong, TransportReadError


logger = logging.getLogger(__name__)


CRLF = b"\r\n"


class ByteSource(Protocol):
    """Anything with a socket-style recv(): sockets and Connection objects."""

    def recv(self, bufsize: int) -> bytes:
        ...


def read_line(source: ByteSource, max_length: Optional[int] = None) -> str:
    """
    Read one line from the source, without its terminating CRLF.

    Args:
        source: Blocking byte source with a recv() method.
        max_length: Maximum line length in bytes (CRLF excluded).
                    None means unbounded.

    Returns:
        The line decoded as UTF-8 (invalid bytes are replaced).

    Raises:
        TransportReadError: If the read fails or the source closes
                            before a CRLF arrives.
        LineTooLong: If the line exceeds max_length.
    """
    buffer = bytearray()

    while True:
        try:
            byte = source.recv(1)
        except OSError as e:
            raise TransportReadError(f"Could not read from connection: {e}") from e

        if not byte:
            raise TransportReadError(
                f"Connection closed after {len(buffer)} bytes without CRLF"
            )

        buffer += byte

        if buffer.endswith(CRLF):
            del buffer[-2:]
            break

        if max_length is not None:
            # A trailing \r may still turn out to be half of the terminator
            pending = len(buffer) - (1 if buffer.endswith(b"\r") else 0)
            if pending > max_length:
                raise LineTooLong(max_length)

    line = buffer.decode("utf-8", errors="replace")
    logger.debug(f"Read line: {line!r}")
    return line
