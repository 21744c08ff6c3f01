"""
=============================================================================
MINIHTTP - Minimal HTTP/1.1 Server on Raw Sockets
=============================================================================

Accepts TCP connections, parses one request per connection, routes it
to a small set of handlers and writes the framed response back,
gzip-compressed when the client asks for it.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    minihttp/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m minihttp)
    ├── server.py            # HTTPServer, build_router, create_app
    ├── config.py            # ServerConfig dataclass
    ├── core/
    │   ├── socket_server.py # Listening socket, accept loop
    │   ├── connection.py    # Read request lines, send, close
    │   └── thread_pool.py   # Bounded worker pool
    ├── http/
    │   ├── request.py       # HTTPRequest, RequestParser
    │   ├── response.py      # HTTPResponse, ResponseBuilder, encoder
    │   ├── negotiation.py   # Accept-Encoding → gzip or not
    │   ├── router.py        # Exact / prefix route table
    │   └── status_codes.py  # HTTPStatus
    ├── middleware/
    │   ├── base.py          # Middleware, MiddlewarePipeline
    │   ├── errors.py        # Handler exception → 500
    │   └── logging.py       # Access log
    └── handlers/
        ├── basic.py         # /, /echo/{text}, /user-agent
        └── files.py         # /files/{filename}

=============================================================================
QUICK START
=============================================================================

    from minihttp import create_app, ServerConfig

    app = create_app(ServerConfig(port=4221, directory="/tmp/data"))
    app.run()

    $ curl -v http://localhost:4221/echo/abc
    $ curl -v --data "hello" http://localhost:4221/files/hello.txt

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .server import HTTPServer, build_router, create_app
from .http import HTTPRequest, HTTPResponse, HTTPStatus, Router

__all__ = [
    "__version__",
    "ServerConfig",
    "HTTPServer",
    "build_router",
    "create_app",
    "HTTPRequest",
    "HTTPResponse",
    "HTTPStatus",
    "Router",
]
