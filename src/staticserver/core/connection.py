"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps an accepted client socket for the lifetime of one request.

=============================================================================
ONE REQUEST PER CONNECTION
=============================================================================

The server does not keep connections alive. Every connection goes through
the same short life:

    NEW ──► READING ──► WRITING ──► CLOSING ──► CLOSED
     │         │                       ▲
     │         └── decode error ───────┤
     └─────────────────────────────────┘

Whatever happens in between, close() runs exactly once. The usual way to
guarantee that is the context manager:

    with conn:
        request = read_request(conn)
        conn.send_response(response.to_bytes())
    # socket closed here, even if read_request() raised

=============================================================================
BYTE SOURCE
=============================================================================

Connection exposes recv() with the same signature as socket.recv(), so
the line reader can be pointed at either one. The line reader asks for
one byte at a time and never reads past the end of a line.

=============================================================================
"""

import logging
import socket
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..errors import TransportWriteError


logger = logging.getLogger(__name__)


MAX_DRAIN_BYTES = 64 * 1024


class ConnectionState(Enum):
    """Connection lifecycle states, used in logs and for the close-once guard."""
    NEW = "new"              # Just accepted
    READING = "reading"      # Decoding the request
    WRITING = "writing"      # Sending the response
    CLOSING = "closing"      # Shutdown sequence running
    CLOSED = "closed"        # Socket released


@dataclass
class Connection:
    """
    Represents a client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short identifier used as a log prefix.
        state: Current connection state.
        created_at: Timestamp when the connection was accepted.
        timeout: Socket timeout in seconds, None for blocking reads.
    """

    socket: socket.socket
    address: tuple = ("", 0)

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    timeout: Optional[float] = None
    drain_timeout: float = 0.5

    def __post_init__(self):
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0] if self.address else ""

    @property
    def age(self) -> float:
        """Connection age in seconds."""
        return time.time() - self.created_at

    @property
    def closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    # =========================================================================
    # READING
    # =========================================================================

    def recv(self, bufsize: int) -> bytes:
        """
        Read up to bufsize bytes from the client.

        Returns b"" once the client has closed its side. Socket errors,
        including timeouts, propagate as OSError.
        """
        self.state = ConnectionState.READING
        return self.socket.recv(bufsize)

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> None:
        """
        Send the whole response to the client.

        sendall() blocks until every byte is handed to the kernel.

        Raises:
            TransportWriteError: If the client is gone or the socket fails.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
        except OSError as e:
            raise TransportWriteError(f"Could not write response: {e}") from e

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection. Safe to call more than once.

        ┌─────────────────────────────────────────────────────────────────┐
        │   1. shutdown(SHUT_WR)  send FIN, the client sees end of body  │
        │   2. drain              discard unread request bytes           │
        │   3. close()            release the file descriptor            │
        └─────────────────────────────────────────────────────────────────┘

        Unread request bytes left in the kernel buffer would make close()
        send RST instead of FIN, and the client could lose the response.
        """
        if self.state in (ConnectionState.CLOSING, ConnectionState.CLOSED):
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Client already gone

        self._drain()

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def _drain(self):
        """
        Discard what the client already sent, for at most drain_timeout
        seconds and MAX_DRAIN_BYTES bytes in total.
        """
        deadline = time.monotonic() + self.drain_timeout
        drained = 0

        try:
            while drained < MAX_DRAIN_BYTES:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                chunk = self.socket.recv(4096)
                if not chunk:
                    break
                drained += len(chunk)
        except OSError:
            pass  # Includes socket.timeout

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
