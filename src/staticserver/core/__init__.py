"""
=============================================================================
CORE NETWORKING COMPONENTS
=============================================================================

Transport-level building blocks, independent of HTTP:

    socket_server.py   SocketServer   bind, listen, accept loop
    connection.py      Connection     one client socket, closed exactly once
    thread_pool.py     ThreadPool     bounded workers for accepted connections

=============================================================================
"""

from .connection import Connection, ConnectionState
from .socket_server import SocketServer
from .thread_pool import ThreadPool

__all__ = ["Connection", "ConnectionState", "SocketServer", "ThreadPool"]
