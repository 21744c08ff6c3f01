"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking plumbing under the HTTP layer.

    ┌─────────────────────────────────────────────────────────────────────┐
    │  SocketServer   listening socket, accept loop, signal handling      │
    └──────────────────────────────┬──────────────────────────────────────┘
                                   │ Connection per client
                                   ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │  ThreadPool     bounded queue + workers, one connection per task    │
    └──────────────────────────────┬──────────────────────────────────────┘
                                   │
                                   ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │  Connection     read_request() → lines, send_response(), close()    │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .connection import Connection, ConnectionState
from .socket_server import SocketServer
from .thread_pool import ThreadPool

__all__ = [
    "Connection",
    "ConnectionState",
    "SocketServer",
    "ThreadPool",
]
