"""
=============================================================================
MAIN HTTP SERVER
=============================================================================

Ties the pieces together: socket server, worker pool, parser, middleware
and router.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    HTTP SERVER ARCHITECTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │                        ┌─────────────────┐                          │
    │                        │   HTTPServer    │                          │
    │                        └────────┬────────┘                          │
    │            ┌────────────────────┼────────────────────┐              │
    │            ▼                    ▼                    ▼              │
    │    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐        │
    │    │ SocketServer │    │  ThreadPool  │    │    Router    │        │
    │    └──────┬───────┘    └──────┬───────┘    └──────┬───────┘        │
    │           ▼                   ▼                   ▼                 │
    │    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐        │
    │    │  Connection  │    │ one worker   │    │   Handlers   │        │
    │    │              │    │ per conn     │    │              │        │
    │    └──────────────┘    └──────────────┘    └──────────────┘        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
REQUEST LIFECYCLE
=============================================================================

    1. SocketServer accepts, wraps the socket in a Connection
    2. Connection is queued in the ThreadPool  (queue full → 503 and close,
                                                 on a throwaway thread)
    3. Worker: conn.read_request()             → list of lines
    4. RequestParser.parse(lines)              → HTTPRequest
                                                 (failure → log, close,
                                                  no response)
    5. Logging → Errors → router.handle        → HTTPResponse
    6. response.to_bytes() → conn.send_response()
    7. Close. One request per connection.

=============================================================================
DEFAULT ROUTE TABLE
=============================================================================

    exact   /                   → root
    prefix  /echo/{text}        → echo
    exact   /user-agent         → user_agent
    prefix  /files/{filename}   → FileHandler(directory).handle
    (none)                      → 404 Not Found

=============================================================================
"""

import logging
import threading
from typing import Optional, Callable, Sequence

from .config import ServerConfig
from .core import SocketServer, Connection, ThreadPool
from .core.connection import ConnectionState
from .handlers import root, echo, user_agent, FileHandler
from .http import (
    HTTPRequest, RequestParser, HTTPParseError, RequestTooLarge,
    HTTPResponse, Router, service_unavailable,
)
from .middleware import MiddlewarePipeline, Middleware, LoggingMiddleware, ErrorMiddleware


logger = logging.getLogger(__name__)


def build_router(directory: Optional[str] = None) -> Router:
    """
    The route table, in priority order. First match wins.

    Args:
        directory: Root for /files/. None leaves the route in place but
                   every file request answers 404.
    """
    router = Router()
    router.exact("/", root)
    router.prefix("/echo/", echo, param="text")
    router.exact("/user-agent", user_agent)
    router.prefix("/files/", FileHandler(directory).handle, param="filename", name="files")
    return router


class HTTPServer:
    """
    HTTP/1.1 server, one request per connection.

    Usage:
        server = HTTPServer(ServerConfig(directory="/tmp/data"))
        server.use(LoggingMiddleware())
        server.run()                 # blocks until Ctrl+C / shutdown()

    Without a socket (tests, tools):
        response = server.process(["GET / HTTP/1.1", "Host: x", "", ""])
    """

    def __init__(self, config: Optional[ServerConfig] = None, router: Optional[Router] = None):
        """
        Args:
            config: Server configuration; defaults when omitted.
            router: Route table; build_router(config.directory) when omitted.

        Raises:
            ValueError: The configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        # ─────────────────────────────────────────────────────────────────
        # CORE COMPONENTS
        # ─────────────────────────────────────────────────────────────────

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
            queue_size=self.config.queue_size,
        )
        self._parser = RequestParser()

        # ─────────────────────────────────────────────────────────────────
        # APPLICATION COMPONENTS
        # ─────────────────────────────────────────────────────────────────

        self._router = router if router is not None else build_router(self.config.directory)
        self._middleware = MiddlewarePipeline()

        # middleware.wrap(router.handle), built on first use
        self._handler: Optional[Callable[[HTTPRequest], HTTPResponse]] = None

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    def use(self, middleware: Middleware) -> "HTTPServer":
        """Add middleware (first added = outermost)."""
        self._middleware.add(middleware)
        self._handler = None
        return self

    @property
    def router(self) -> Router:
        return self._router

    @property
    def address(self) -> tuple[str, int]:
        """Bound (host, port); the real port once listening."""
        return self._socket_server.address

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self, host: Optional[str] = None, port: Optional[int] = None):
        """
        Start the server. Blocks until shutdown() or SIGINT/SIGTERM.

        Args:
            host: Override config host.
            port: Override config port.
        """
        if host:
            self.config.host = host
        if port is not None:
            self.config.port = port

        self._setup_logging()
        self._thread_pool.start()

        logger.info(f"Starting HTTP server on {self.config.host}:{self.config.port}")
        logger.info(f"Serving files from {self.config.directory or '(no directory)'}")
        for line in self._router.describe():
            logger.debug(f"Route: {line}")

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def shutdown(self):
        """Ask the accept loop to stop. run() returns once it has."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the server is accepting connections."""
        return self._socket_server.wait_until_ready(timeout)

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        # No-op when the root logger is already configured (tests, embedding)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("minihttp").setLevel(level)

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._thread_pool.shutdown(wait=True, timeout=self.config.timeout)
        logger.info("Server stopped")

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def _build_handler(self) -> Callable[[HTTPRequest], HTTPResponse]:
        # ErrorMiddleware always sits innermost, next to the router
        pipeline = MiddlewarePipeline().use(*self._middleware, ErrorMiddleware())
        return pipeline.wrap(self._router.handle)

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """Run a parsed request through middleware and the router."""
        if self._handler is None:
            self._handler = self._build_handler()
        return self._handler(request)

    def process(
        self,
        lines: Sequence[str],
        client_address: tuple[str, int] = ("", 0),
    ) -> Optional[HTTPResponse]:
        """
        Parse request lines and produce the response.

        Returns:
            The response, or None when the lines do not parse (the
            connection is then closed without a response).
        """
        try:
            request = self._parser.parse(lines, client_address)
        except HTTPParseError as e:
            logger.warning(f"Unparseable request from {client_address[0] or '-'}: {e}")
            return None

        return self.handle(request)

    def _handle_connection(self, conn: Connection):
        """
        Queue an accepted connection for a worker. Called on the accept
        thread, so it never blocks: a full queue gets 503, written and
        closed on a throwaway thread so a slow client cannot stall accept().
        """
        submitted = self._thread_pool.submit(
            self._process_connection,
            args=(conn,),
            block=False,
        )

        if not submitted:
            logger.warning(f"[{conn.id}] Thread pool full, rejecting connection")
            threading.Thread(
                target=self._reject_connection,
                args=(conn,),
                name=f"reject-{conn.id}",
                daemon=True,
            ).start()

    def _reject_connection(self, conn: Connection):
        with conn:
            conn.send_response(service_unavailable().to_bytes())

    def _process_connection(self, conn: Connection):
        """Full lifecycle of one connection (runs on a worker thread)."""
        with conn:
            try:
                lines = conn.read_request()
            except RequestTooLarge as e:
                logger.warning(f"[{conn.id}] {e}, closing")
                return
            except TimeoutError:
                logger.warning(f"[{conn.id}] Request read timeout, closing")
                return

            conn.state = ConnectionState.PROCESSING
            response = self.process(lines, conn.address)
            if response is None:
                return

            conn.send_response(response.to_bytes())


def create_app(config: Optional[ServerConfig] = None) -> HTTPServer:
    """
    Build the server with its standard middleware.

    Example:
        app = create_app(ServerConfig(port=4221, directory="/tmp"))
        app.run()
    """
    config = config or ServerConfig()
    server = HTTPServer(config)
    server.use(LoggingMiddleware(log_format=config.log_format))
    return server
