"""
=============================================================================
CONNECTION ACCEPTOR
=============================================================================

Owns the listening TCP socket and hands every accepted connection to a
callback. The callback (HTTPServer) queues it on the worker pool, so the
accept loop itself never blocks on a slow client.

=============================================================================
SOCKET LIFECYCLE (Server Side)
=============================================================================

    1. socket()    Create a TCP socket
    2. bind()      Reserve host:port           → BindError on failure
    3. listen()    Let the kernel queue clients (backlog)
    4. accept()    Wait for the next client    → AcceptError on failure
    5. close()     Release the listening socket

                    ┌───────────────────────┐
                    │   Listening Socket    │ ◄── Created once at startup
                    └───────────┬───────────┘
                                │ accept()
            ┌───────────────────┼───────────────────┐
            ▼                   ▼                   ▼
     ┌────────────┐      ┌────────────┐      ┌────────────┐
     │ Connection │      │ Connection │      │ Connection │
     │  client 1  │      │  client 2  │      │  client 3  │
     └────────────┘      └────────────┘      └────────────┘

=============================================================================
SHUTDOWN
=============================================================================

accept() on the listening socket times out every second, which gives the
loop a chance to notice that shutdown() was called (from a signal
handler or another thread). A timeout is not an error; any other
OSError from accept() while running is fatal and raised as AcceptError.

=============================================================================
"""

import logging
import signal
import socket
import threading
from typing import Callable, Dict, Optional, Tuple

from ..config import ServerConfig
from ..errors import AcceptError, BindError
from .connection import Connection


logger = logging.getLogger(__name__)


ACCEPT_POLL_INTERVAL = 1.0

STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)

ConnectionCallback = Callable[[Connection], None]


class SocketServer:
    """
    Listening socket plus accept loop.

    Usage:
        acceptor = SocketServer(config)
        acceptor.start(on_connection)  # Blocks until shutdown()

    on_connection is called on the accept thread with every new
    Connection and must return quickly.
    """

    def __init__(self, config: ServerConfig):
        self.config = config

        self._listener: Optional[socket.socket] = None
        self._bound_address: Optional[Tuple[str, int]] = None

        self._running = False
        self._ready_event = threading.Event()

        self._saved_handlers: Dict[int, object] = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """
        The bound (host, port). Before start() this is the configured
        address; afterwards it carries the real port when port 0 was used.
        """
        return self._bound_address or (self.config.host, self.config.port)

    def _open_listener(self) -> socket.socket:
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Rebind right after a restart while old connections sit in TIME_WAIT
        listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # Responses go out in one sendall(); don't hold small packets back
        listener.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        listener.settimeout(ACCEPT_POLL_INTERVAL)

        try:
            listener.bind((self.config.host, self.config.port))
        except OSError as e:
            listener.close()
            where = f"{self.config.host}:{self.config.port}"
            logger.error(f"Could not bind {where}: {e}")
            raise BindError(f"Cannot listen on {where}: {e}") from e

        listener.listen(self.config.backlog)
        return listener

    def _install_signal_handlers(self):
        """
        Make SIGINT and SIGTERM stop the accept loop.

        Python only lets the main thread install handlers. A server running
        on any other thread is stopped by calling shutdown() instead.
        """
        if threading.current_thread() is not threading.main_thread():
            return

        def on_signal(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, stopping")
            self.shutdown()

        for sig in STOP_SIGNALS:
            self._saved_handlers[sig] = signal.signal(sig, on_signal)

    def _restore_signal_handlers(self):
        while self._saved_handlers:
            sig, handler = self._saved_handlers.popitem()
            signal.signal(sig, handler)

    def start(self, on_connection: ConnectionCallback):
        """
        Bind, listen and accept connections until shutdown() is called.

        Raises:
            BindError: If the address cannot be bound.
            AcceptError: If accept() fails while the server is running.
        """
        self._listener = self._open_listener()
        self._bound_address = self._listener.getsockname()[:2]

        self._running = True
        self._install_signal_handlers()

        host, port = self._bound_address
        logger.info(f"Listening on {host}:{port}")
        self._ready_event.set()

        try:
            self._accept_loop(on_connection)
        finally:
            self._close_listener()

    def _accept_loop(self, on_connection: ConnectionCallback):
        while self._running:
            try:
                client, client_address = self._listener.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if not self._running:
                    break
                logger.error(f"Error accepting new connection: {e}")
                raise AcceptError(f"accept() failed: {e}") from e

            conn = Connection(
                socket=client,
                address=client_address,
                timeout=self.config.timeout,
            )
            logger.info(f"[{conn.id}] A new client connected from {conn.client_ip}")

            on_connection(conn)

    def shutdown(self):
        """Stop the accept loop. Idempotent and safe to call from any thread."""
        if self._running:
            logger.info("Stopping acceptor...")
        self._running = False

    def _close_listener(self):
        self._running = False
        self._restore_signal_handlers()

        if self._listener is not None:
            try:
                self._listener.close()
            except OSError as e:
                logger.debug(f"Closing listener: {e}")
            self._listener = None

        self._ready_event.clear()
        logger.info("Acceptor stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the socket is listening.

        Returns:
            True once listening, False on timeout.
        """
        return self._ready_event.wait(timeout)
