"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Every tunable value of the server lives in one ServerConfig dataclass that
is passed explicitly into HTTPServer and SocketServer. Nothing is read from
module-level globals, so several servers with different settings can run in
the same process (the test suite does exactly that).

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m staticserver ./www/index.html --port 9000       │
    │                                                                      │
    │   2. Environment variables (ServerConfig.from_env)                  │
    │      └── STATICSERVER_PORT=9000 python -m staticserver ...         │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    │   The CLI always takes the root from its PATH argument, so        │
    │   STATICSERVER_ROOT only applies when embedding the server.       │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


DEFAULT_NOT_FOUND_BODY = "The requested page not found"


@dataclass
class ServerConfig:
    """
    Configuration for the static file server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK
    - host, port, backlog, timeout

    PROTOCOL
    - max_line_length

    THREADING
    - min_workers, max_workers, worker_idle_timeout

    CONTENT
    - root_dir, index_location, not_found_body

    LOGGING
    - log_level

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "localhost"
    """Host name or IP address to bind to."""

    port: int = 9980
    """Port to listen on. 0 lets the OS pick a free port."""

    backlog: int = 128
    """Maximum number of connections queued by the kernel before accept()."""

    timeout: Optional[float] = None
    """
    Socket timeout for client connections in seconds.
    None = blocking reads with no limit; a silent client holds its
    worker until it disconnects.
    """

    # ─────────────────────────────────────────────────────────────────────
    # PROTOCOL SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    max_line_length: Optional[int] = 8192
    """
    Maximum length of a request line or header line in bytes, CRLF
    excluded. None disables the check.
    """

    # ─────────────────────────────────────────────────────────────────────
    # THREAD POOL SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    min_workers: int = 4
    """Worker threads started with the server."""

    max_workers: Optional[int] = None
    """
    Upper bound on worker threads, i.e. on connections served at once.
    None = no ceiling, every accepted connection gets a thread. With a
    ceiling, a connection accepted while all workers are busy is closed
    without a response.
    """

    worker_idle_timeout: float = 5.0
    """Seconds a worker above min_workers stays around without a job."""

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT
    # ─────────────────────────────────────────────────────────────────────

    root_dir: str = "."
    """Directory files are served from. Made absolute at server start."""

    index_location: str = "index.html"
    """Location header sent when "/" is requested."""

    not_found_body: str = DEFAULT_NOT_FOUND_BODY
    """Body of every 404 response."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING / IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR)."""

    server_name: str = "staticserver/1.0"
    """Shown in the startup banner."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        STATICSERVER_HOST       Bind host (default: localhost)
        STATICSERVER_PORT       Bind port (default: 9980)
        STATICSERVER_WORKERS    Max worker threads (default: no ceiling)
        STATICSERVER_ROOT       Served directory (default: .)
        STATICSERVER_LOG_LEVEL  Logging level (default: INFO)

        =====================================================================
        """
        defaults = cls()
        workers = os.getenv("STATICSERVER_WORKERS")

        return cls(
            host=os.getenv("STATICSERVER_HOST", defaults.host),
            port=int(os.getenv("STATICSERVER_PORT", str(defaults.port))),
            max_workers=int(workers) if workers else defaults.max_workers,
            root_dir=os.getenv("STATICSERVER_ROOT", defaults.root_dir),
            log_level=os.getenv("STATICSERVER_LOG_LEVEL", defaults.log_level),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: On the first invalid value found.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")

        if self.max_workers is not None and self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")

        if self.worker_idle_timeout <= 0:
            raise ValueError("worker_idle_timeout must be > 0")

        if self.max_line_length is not None and self.max_line_length < 1:
            raise ValueError("max_line_length must be >= 1")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")
