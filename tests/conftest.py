"""
pytest configuration and fixtures.
"""

import errno
import socket
import threading
from pathlib import Path
from typing import Generator, List, Union

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from staticserver import HTTPServer, ServerConfig
from staticserver.core import Connection, SocketServer


class ByteSource:
    """
    In-memory stand-in for a socket.

    Hands out the scripted bytes through recv() and then behaves like a
    closed connection (b""), or raises if an error is scripted.
    """

    def __init__(self, data: bytes, error: Union[OSError, None] = None):
        self._data = data
        self._pos = 0
        self._error = error
        self.recv_calls = 0

    def recv(self, bufsize: int) -> bytes:
        self.recv_calls += 1
        if self._pos >= len(self._data) and self._error is not None:
            raise self._error
        chunk = self._data[self._pos:self._pos + bufsize]
        self._pos += len(chunk)
        return chunk

    @property
    def remaining(self) -> bytes:
        return self._data[self._pos:]


@pytest.fixture
def source_factory():
    """Build ByteSource objects from raw bytes."""
    return ByteSource


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    """Served directory with index.html containing "hi"."""
    root = tmp_path / "www"
    root.mkdir()
    (root / "index.html").write_bytes(b"hi")
    (root / "docs").mkdir()
    (root / "docs" / "guide.txt").write_bytes(b"read me\n")
    (tmp_path / "secret.txt").write_bytes(b"outside the root")
    return root


@pytest.fixture
def config(site_root: Path) -> ServerConfig:
    """Test server configuration on an ephemeral port."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        root_dir=str(site_root),
        min_workers=2,
        log_level="WARNING",
    )


class ConnectionPair:
    """
    A server-side Connection wired to a client socket via socketpair().

    The client writes a request, the test runs the handler on the
    server side, then the client reads the whole response.
    """

    def __init__(self):
        server_sock, self.client = socket.socketpair()
        self.server = Connection(socket=server_sock, drain_timeout=0.1)

    def send(self, data: bytes):
        self.client.sendall(data)

    def read_all(self, timeout: float = 5.0) -> bytes:
        self.client.settimeout(timeout)
        chunks: List[bytes] = []
        while True:
            chunk = self.client.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
        return b"".join(chunks)

    def close(self):
        self.client.close()
        self.server.close()


@pytest.fixture
def connection_pair() -> Generator[ConnectionPair, None, None]:
    pair = ConnectionPair()
    yield pair
    pair.close()


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False  # Not a test class

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: threading.Thread = None
        self.error: BaseException = None

    def _run(self):
        try:
            self.server.run()
        except BaseException as e:
            self.error = e

    def start(self):
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()
        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError(f"Server failed to start: {self.error}")

    @property
    def port(self) -> int:
        return self.server.address[1]

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)


@pytest.fixture
def test_server(config: ServerConfig) -> Generator[TestServer, None, None]:
    """A running server bound to 127.0.0.1 on a free port."""
    srv = TestServer(HTTPServer(config))
    srv.start()

    yield srv

    srv.stop()


def _exchange(port: int, request: bytes, timeout: float = 5.0) -> bytes:
    """Send raw request bytes to 127.0.0.1:port and read until close."""
    with socket.create_connection(("127.0.0.1", port), timeout=timeout) as sock:
        sock.sendall(request)
        chunks = []
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


@pytest.fixture
def exchange():
    """Raw request/response over loopback TCP: exchange(port, request_bytes)."""
    return _exchange


@pytest.fixture
def make_server() -> Generator:
    """
    Build and start extra servers: make_server(config) -> TestServer.

    Every server started through the factory is stopped at teardown.
    """
    started: List[TestServer] = []

    def factory(config: ServerConfig) -> TestServer:
        srv = TestServer(HTTPServer(config))
        srv.start()
        started.append(srv)
        return srv

    yield factory

    for srv in started:
        srv.stop()


class BrokenListener:
    """A listening socket whose accept() fails like a full fd table."""

    def __init__(self, sock: socket.socket):
        self._sock = sock

    def accept(self):
        raise OSError(errno.EMFILE, "Too many open files")

    def __getattr__(self, name):
        return getattr(self._sock, name)


@pytest.fixture
def broken_accept(monkeypatch):
    """Every server started in the test binds fine, then accept() fails."""
    open_listener = SocketServer._open_listener

    def open_broken(self):
        return BrokenListener(open_listener(self))

    monkeypatch.setattr(SocketServer, "_open_listener", open_broken)
