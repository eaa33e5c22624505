"""
=============================================================================
STATIC FILE HANDLER
=============================================================================

Maps a decoded request path onto a file under the server root and turns
the outcome into one of the three responses the server knows.

=============================================================================
DECISION TABLE
=============================================================================

    ┌──────────────────────────┬────────────────────────────────────────┐
    │  Request path            │  Response                              │
    ├──────────────────────────┼────────────────────────────────────────┤
    │  "/"                     │  301, Location: index.html, no body    │
    │  file read fails         │  404, fixed message, no Content-Length │
    │  file read succeeds      │  200, file bytes, Content-Length       │
    └──────────────────────────┴────────────────────────────────────────┘

Every response also echoes the request's Host header back verbatim.

=============================================================================
PATH CONTAINMENT
=============================================================================

The path is used as sent (no percent-decoding, query string included), so
"/a.txt?x=1" looks for a file literally named "a.txt?x=1". Before reading,
the joined path is resolved (".." collapsed, symlinks followed) and must
still lie inside the root:

    root = /srv/www

    /index.html            → /srv/www/index.html       read
    /docs/../index.html    → /srv/www/index.html       read
    /../etc/passwd         → /srv/etc/passwd           outside → 404

A path outside the root is treated exactly like a missing file.

=============================================================================
"""

import logging
from pathlib import Path
from typing import Union

from ..errors import FileAccessError
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, moved_permanently, not_found, ok
from ..config import DEFAULT_NOT_FOUND_BODY


logger = logging.getLogger(__name__)


ROOT_PATH = "/"


class StaticFileHandler:
    """
    Serves files from a single root directory.

    Usage:
        static = StaticFileHandler("/srv/www")
        response = static.handle(request)

    The handler keeps no per-request state; one instance is shared by all
    worker threads.
    """

    def __init__(
        self,
        root_dir: Union[str, Path],
        index_location: str = "index.html",
        not_found_body: str = DEFAULT_NOT_FOUND_BODY,
    ):
        """
        Args:
            root_dir: Directory to serve. Made absolute here, once.
            index_location: Location header value for "/" requests.
            not_found_body: Body of every 404 response.

        Raises:
            ValueError: If root_dir is not an existing directory.
        """
        self.root_dir = Path(root_dir).resolve()
        self.index_location = index_location
        self.not_found_body = not_found_body

        if not self.root_dir.is_dir():
            raise ValueError(f"Root directory does not exist: {root_dir}")

    def resolve(self, path: str) -> Path:
        """
        Map a request path to a filesystem path inside the root.

        Raises:
            FileAccessError: If the resolved path escapes the root or
                             cannot be resolved at all.
        """
        try:
            full_path = (self.root_dir / path.lstrip("/")).resolve()
        except (OSError, RuntimeError, ValueError) as e:
            raise FileAccessError(path, str(e)) from e

        try:
            full_path.relative_to(self.root_dir)
        except ValueError:
            logger.warning(f"Path traversal attempt: {path}")
            raise FileAccessError(path, "outside server root")

        return full_path

    def read(self, path: str) -> bytes:
        """
        Read the file behind a request path.

        Raises:
            FileAccessError: If the file is missing, is a directory, is not
                             readable, or lies outside the root.
        """
        full_path = self.resolve(path)
        try:
            return full_path.read_bytes()
        except (OSError, ValueError) as e:
            raise FileAccessError(path, str(e)) from e

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Build the response for a decoded request.

        Returns:
            A 301, 404 or 200 response carrying the request's Host header.
        """
        if request.path == ROOT_PATH:
            response = moved_permanently(self.index_location)
        else:
            try:
                content = self.read(request.path)
            except FileAccessError as e:
                logger.debug(str(e))
                response = not_found(self.not_found_body)
            else:
                response = ok(content)

        response.set_header("Host", request.headers.get("Host", ""))
        return response
