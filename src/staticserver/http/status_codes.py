"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The server only ever answers with three status codes:

    ┌────────┬─────────────────────┬──────────────────────────────────────┐
    │  Code  │  Reason phrase      │  When                                │
    ├────────┼─────────────────────┼──────────────────────────────────────┤
    │  200   │  OK                 │  File found and read                 │
    │  301   │  Moved Permanently  │  Request for "/" (→ index.html)      │
    │  404   │  Not Found          │  File missing or unreadable          │
    └────────┴─────────────────────┴──────────────────────────────────────┘

Requests that cannot be decoded get no status at all: the connection is
simply closed.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    IntEnum members compare and format as plain integers:

        HTTPStatus.OK == 200          # True
        f"{HTTPStatus.NOT_FOUND}"     # "404"
    """

    OK = 200
    MOVED_PERMANENTLY = 301
    NOT_FOUND = 404

    def __str__(self) -> str:
        return str(self.value)

    @property
    def phrase(self) -> str:
        """Reason phrase used in the status line."""
        return _STATUS_PHRASES[self]

    @property
    def is_success(self) -> bool:
        return 200 <= self.value < 300

    @property
    def is_redirect(self) -> bool:
        return 300 <= self.value < 400


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.MOVED_PERMANENTLY: "Moved Permanently",
    HTTPStatus.NOT_FOUND: "Not Found",
}
