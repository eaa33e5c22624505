"""
=============================================================================
STATICSERVER - Minimal HTTP/1.1 Static File Server
=============================================================================

Serves files from one directory over a raw TCP socket. Requests are read
off the socket one byte at a time and decoded by hand; responses are
encoded by hand. No part of the standard library's HTTP stack is used.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    staticserver/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m staticserver)
    ├── server.py            # HTTPServer: lifecycle + request handler
    ├── config.py            # ServerConfig dataclass
    ├── errors.py            # Exception hierarchy
    ├── core/                # Transport
    │   ├── socket_server.py # Bind, listen, accept loop
    │   ├── connection.py    # Client socket wrapper
    │   └── thread_pool.py   # Bounded worker pool
    ├── http/                # Protocol
    │   ├── reader.py        # CRLF line reader
    │   ├── request.py       # Request line + header decoding
    │   ├── response.py      # Response encoding
    │   └── status_codes.py  # 200 / 301 / 404
    └── handlers/
        └── static.py        # File lookup under the root

=============================================================================
QUICK START
=============================================================================

    $ python -m staticserver ./www/index.html
    $ curl -i http://localhost:9980/index.html

    from staticserver import HTTPServer, ServerConfig

    server = HTTPServer(ServerConfig(root_dir="./www", port=9980))
    server.run()

=============================================================================
"""

__version__ = "1.0.0"

from .server import HTTPServer, create_app
from .config import ServerConfig

__all__ = ["HTTPServer", "ServerConfig", "create_app", "__version__"]
