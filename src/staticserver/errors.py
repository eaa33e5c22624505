"""
=============================================================================
ERROR TAXONOMY
=============================================================================

Every failure the server can hit while serving a connection has its own
exception type. The type decides what happens to the connection:

    ┌─────────────────────────────┬──────────────────────────────────────┐
    │  Exception                  │  Outcome                             │
    ├─────────────────────────────┼──────────────────────────────────────┤
    │  ProtocolError (and below)  │  log, close, no response written     │
    │  FileAccessError            │  turned into 404 Not Found           │
    │  TransportWriteError        │  log, close, no retry                │
    │  StartupError (and below)   │  fatal, process exits non-zero       │
    └─────────────────────────────┴──────────────────────────────────────┘

    ServerError
    ├── ProtocolError
    │   ├── TransportReadError
    │   ├── LineTooLong
    │   ├── RequestLineError
    │   │   ├── MalformedRequestLine
    │   │   ├── UnsupportedMethod
    │   │   └── UnsupportedVersion
    │   ├── MalformedHeaderLine
    │   └── MissingHostHeader
    ├── FileAccessError
    ├── TransportWriteError
    └── StartupError
        ├── BindError
        └── AcceptError

=============================================================================
"""


class ServerError(Exception):
    """Base class for all errors raised by the server."""


# =============================================================================
# REQUEST DECODING
# =============================================================================

class ProtocolError(ServerError):
    """
    Raised when a request cannot be decoded.

    The client gets no response for these: the connection is closed.
    """


class TransportReadError(ProtocolError):
    """The connection failed or closed before a full line arrived."""


class LineTooLong(ProtocolError):
    """A request line or header line exceeded the configured maximum."""

    def __init__(self, limit: int):
        super().__init__(f"Line exceeds maximum length of {limit} bytes")
        self.limit = limit


class RequestLineError(ProtocolError):
    """
    The request line is not a valid retrieval request.

    Carries the offending line for logging.
    """

    def __init__(self, message: str, line: str = ""):
        super().__init__(message)
        self.line = line


class MalformedRequestLine(RequestLineError):
    """The request line is not METHOD SP PATH SP VERSION."""


class UnsupportedMethod(RequestLineError):
    """The method is anything other than GET."""


class UnsupportedVersion(RequestLineError):
    """The version is anything other than HTTP/1.1."""


class MalformedHeaderLine(ProtocolError):
    """A header line has no colon separator."""

    def __init__(self, line: str):
        super().__init__(f"Header line has no ':' separator: {line!r}")
        self.line = line


class MissingHostHeader(ProtocolError):
    """The request carries no Host header."""


# =============================================================================
# FILESYSTEM AND RESPONSE
# =============================================================================

class FileAccessError(ServerError):
    """
    The requested file could not be read.

    Covers missing files, directories, permission problems and paths
    that resolve outside the server root. Always answered with 404.
    """

    def __init__(self, path: str, reason: str = ""):
        message = f"Cannot read {path!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.path = path


class TransportWriteError(ServerError):
    """Sending the response to the client failed."""


# =============================================================================
# STARTUP AND ACCEPT LOOP
# =============================================================================

class StartupError(ServerError):
    """Fatal error that stops the whole server process."""


class BindError(StartupError):
    """The listening socket could not be bound."""


class AcceptError(StartupError):
    """accept() failed on the listening socket."""
