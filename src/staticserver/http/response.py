"""
=============================================================================
HTTP RESPONSE ENCODER
=============================================================================

Holds an outgoing response and serializes it to the exact bytes written
back on the connection.

=============================================================================
WIRE FORMAT
=============================================================================

    HTTP/1.1 200 OK\r\n                 ← status line
    Content-Length: 2\r\n               ← headers, in insertion order
    Host: example.com\r\n
    \r\n                                ← blank line
    hi                                  ← body bytes, untouched

Nothing is added behind the caller's back: no Date, no Server, and no
Content-Length unless the handler set one. A 404 therefore goes out
without Content-Length and the client reads the body until the server
closes the connection.

=============================================================================
BUILDING RESPONSES
=============================================================================

    # Builder style
    response = (ResponseBuilder()
        .status(HTTPStatus.OK)
        .header("Content-Length", "2")
        .body(b"hi")
        .build())

    # Shortcuts for the three responses the server sends
    ok(b"hi")                        # 200 with Content-Length
    moved_permanently("index.html")  # 301 with Location
    not_found("Nothing here")        # 404, no Content-Length

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Union

from .status_codes import HTTPStatus


CRLF = "\r\n"
HTTP_VERSION = "HTTP/1.1"


@dataclass
class HTTPResponse:
    """
    An HTTP response ready to be encoded.

    Attributes:
        status_code: Numeric status code (200, 301, 404).
        status_message: Reason phrase that follows the code.
        headers: Header name → value, written in insertion order.
        body: Raw body bytes.
    """

    status_code: int = HTTPStatus.OK.value
    status_message: str = HTTPStatus.OK.phrase
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @classmethod
    def for_status(cls, status: HTTPStatus, **kwargs) -> "HTTPResponse":
        """Create a response whose code and phrase come from an HTTPStatus."""
        return cls(status_code=status.value, status_message=status.phrase, **kwargs)

    @property
    def status_line(self) -> str:
        """
        The first line of the response, without CRLF.

        Example: "HTTP/1.1 404 Not Found"
        """
        return f"{HTTP_VERSION} {self.status_code} {self.status_message}"

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a header, replacing any previous value. Returns self."""
        self.headers[name] = value
        return self

    def to_bytes(self) -> bytes:
        """
        Serialize the response.

        Returns:
            Status line, headers, blank line and body as one bytes object,
            ready for socket.sendall().
        """
        lines = [self.status_line]
        for name, value in self.headers.items():
            lines.append(f"{name}: {value}")

        head = CRLF.join(lines) + CRLF + CRLF
        return head.encode("utf-8") + self.body


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

    Every method returns the builder, so calls chain:

        ResponseBuilder().status(HTTPStatus.NOT_FOUND).body("gone").build()
    """

    def __init__(self):
        self._response = HTTPResponse()

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._response.status_code = status.value
        self._response.status_message = status.phrase
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._response.headers[name] = value
        return self

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """Set the body. Strings are encoded as UTF-8."""
        if isinstance(body, str):
            body = body.encode("utf-8")
        self._response.body = body
        return self

    def content_length(self) -> "ResponseBuilder":
        """Set Content-Length from the current body."""
        return self.header("Content-Length", str(len(self._response.body)))

    def build(self) -> HTTPResponse:
        return self._response


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def ok(content: bytes) -> HTTPResponse:
    """200 OK carrying the file content and its Content-Length."""
    return (ResponseBuilder()
        .status(HTTPStatus.OK)
        .body(content)
        .content_length()
        .build())


def moved_permanently(location: str) -> HTTPResponse:
    """301 Moved Permanently pointing at location, with an empty body."""
    return (ResponseBuilder()
        .status(HTTPStatus.MOVED_PERMANENTLY)
        .header("Location", location)
        .build())


def not_found(message: Union[str, bytes]) -> HTTPResponse:
    """404 Not Found with a fixed message body and no Content-Length."""
    return (ResponseBuilder()
        .status(HTTPStatus.NOT_FOUND)
        .body(message)
        .build())
