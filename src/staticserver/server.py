"""
=============================================================================
STATIC FILE SERVER
=============================================================================

The orchestrator: owns the acceptor and the worker pool, and runs the
per-connection request handler.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ┌─────────────────┐                          │
    │                        │   HTTPServer    │                          │
    │                        └────────┬────────┘                          │
    │            ┌────────────────────┼────────────────────┐              │
    │            ▼                    ▼                    ▼              │
    │    ┌──────────────┐    ┌──────────────┐    ┌──────────────────┐    │
    │    │ SocketServer │    │  ThreadPool  │    │StaticFileHandler │    │
    │    │  (accept)    │    │  (workers)   │    │ (root lookup)    │    │
    │    └──────────────┘    └──────────────┘    └──────────────────┘    │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
REQUEST LIFECYCLE (one worker thread, one connection)
=============================================================================

    1. READ REQUEST LINE   "GET /index.html HTTP/1.1"
       └── failure: log, close, no response
    2. READ HEADERS        until blank line, Host required
       └── failure: log, close, no response
    3. LOOK UP FILE        under the root, containment enforced
    4. BUILD RESPONSE      301 for "/", 404 on read failure, else 200
    5. ECHO HOST           response Host = request Host
    6. WRITE RESPONSE      failure: log, no retry
    7. CLOSE               always, exactly once

=============================================================================
"""

import logging
from typing import Optional

from .config import ServerConfig
from .core import Connection, SocketServer, ThreadPool
from .errors import ProtocolError, TransportWriteError
from .handlers import StaticFileHandler
from .http import read_request


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    HTTP/1.1 static file server.

    Usage:
        server = HTTPServer(ServerConfig(root_dir="./www"))
        server.run()  # Blocks until SIGINT/SIGTERM or shutdown()

    Several servers can live in one process; each keeps its own socket,
    pool and root.
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Args:
            config: Server configuration. Defaults to ServerConfig().

        Raises:
            ValueError: If the configuration is invalid or the root
                        directory does not exist.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self._static = StaticFileHandler(
            self.config.root_dir,
            index_location=self.config.index_location,
            not_found_body=self.config.not_found_body,
        )

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
            idle_timeout=self.config.worker_idle_timeout,
        )

        self._running = False

    @property
    def root_dir(self):
        """Absolute directory files are served from."""
        return self._static.root_dir

    @property
    def address(self):
        """Bound (host, port); meaningful once the server is listening."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._running

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self):
        """
        Start the server and block until it is shut down.

        Raises:
            BindError: If the listening socket cannot be bound.
            AcceptError: If accept() fails; the server stops.
        """
        self._running = True

        self._thread_pool.start()
        logger.info(f"The root directory of web server is: {self.root_dir}")

        try:
            self._socket_server.start(self._dispatch)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the server is accepting connections."""
        return self._socket_server.wait_until_ready(timeout)

    def shutdown(self):
        """Ask a running server to stop. Safe to call from any thread."""
        self._socket_server.shutdown()

    def print_banner(self):
        """Print where the server listens and what it serves."""
        host, port = self.address
        print()
        print("╔══════════════════════════════════════════════════════════════╗")
        print(f"  {self.config.server_name} running")
        print(f"  http://{host}:{port}")
        print(f"  Root: {self.root_dir}")
        ceiling = self.config.max_workers or "no limit"
        print(f"  Workers: {self.config.min_workers} (max {ceiling})")
        print("  Press Ctrl+C to stop")
        print("╚══════════════════════════════════════════════════════════════╝")
        print()

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._running = False
        self._thread_pool.shutdown(wait=True, timeout=30.0)
        logger.info("Server stopped")

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def _dispatch(self, conn: Connection):
        """Queue an accepted connection on the worker pool."""
        try:
            accepted = self._thread_pool.submit(self.handle, args=(conn,))
        except RuntimeError as e:
            logger.warning(f"[{conn.id}] Not dispatched: {e}")
            conn.close()
            return

        if not accepted:
            logger.warning(
                f"[{conn.id}] All {self.config.max_workers} workers busy, closing connection"
            )
            conn.close()

    def handle(self, conn: Connection):
        """
        Serve exactly one request on conn, then close it.

        Decoding errors end the exchange without a response; the client
        only sees the connection close. Write errors are logged.
        """
        with conn:
            try:
                request = read_request(conn, self.config.max_line_length)
            except ProtocolError as e:
                logger.warning(f"[{conn.id}] Dropping request: {type(e).__name__}: {e}")
                return

            response = self._static.handle(request)

            try:
                conn.send_response(response.to_bytes())
            except TransportWriteError as e:
                logger.warning(f"[{conn.id}] {e}")
                return

            logger.info(
                f"[{conn.id}] Sent response with status code: {response.status_code}"
            )


def create_app(config: Optional[ServerConfig] = None) -> HTTPServer:
    """Factory for HTTPServer instances."""
    return HTTPServer(config)
