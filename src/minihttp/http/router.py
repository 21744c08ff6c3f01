"""
=============================================================================
URL ROUTER
=============================================================================

Maps a request target to the handler that answers it.

=============================================================================
ROUTE KINDS
=============================================================================

Routes come in two kinds, a tagged variant rather than regexes:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         ROUTE KINDS                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   EXACT    pattern "/user-agent"                                     │
    │            matches  "/user-agent"                                    │
    │            rejects  "/user-agent/", "/user-agents"                   │
    │                                                                      │
    │   PREFIX   pattern "/echo/"   param "text"                           │
    │            matches  "/echo/abc"     → {"text": "abc"}                │
    │            matches  "/echo/"        → {"text": ""}                   │
    │            matches  "/echo/a/b"     → {"text": "a/b"}                │
    │            rejects  "/echo"                                          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
MATCHING ORDER
=============================================================================

Routes are tried in registration order and the first match wins. There
is no backtracking and no "most specific" ranking; register narrow
routes first. When nothing matches, the router answers 404 itself, so
every (method, target) pair produces exactly one response.

Methods are not part of a route. A handler that only supports some
methods (the file handler) checks request.method itself and answers
405 for the rest.

=============================================================================
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Optional
import logging

from .request import HTTPRequest
from .response import HTTPResponse, not_found


logger = logging.getLogger(__name__)


# Handler type: takes a request, returns a response
Handler = Callable[[HTTPRequest], HTTPResponse]


class RouteKind(Enum):
    """How a route's pattern is compared with a target."""

    EXACT = "exact"     # target == pattern
    PREFIX = "prefix"   # target starts with pattern, remainder captured


@dataclass
class Route:
    """
    A pattern bound to a handler.

        Route("/files/", RouteKind.PREFIX, files.handle, param="filename")
    """

    pattern: str
    kind: RouteKind
    handler: Handler
    param: Optional[str] = None
    name: Optional[str] = None

    def match(self, target: str) -> Optional[dict[str, str]]:
        """
        Compare a target against this route.

        Returns:
            The captured path parameters ({} for exact routes), or None
            when the route does not match.
        """
        if self.kind is RouteKind.EXACT:
            return {} if target == self.pattern else None

        if not target.startswith(self.pattern):
            return None

        remainder = target[len(self.pattern):]
        return {self.param: remainder} if self.param else {}


@dataclass
class RouteMatch:
    """Result of a successful route lookup."""

    route: Route
    params: dict[str, str] = field(default_factory=dict)


class Router:
    """
    Ordered route table.

    Usage:
        router = Router()
        router.exact("/", root)
        router.prefix("/echo/", echo, param="text")

        response = router.handle(request)
    """

    def __init__(self):
        self._routes: list[Route] = []

    # =========================================================================
    # ROUTE REGISTRATION
    # =========================================================================

    def add_route(
        self,
        pattern: str,
        handler: Handler,
        kind: RouteKind = RouteKind.EXACT,
        param: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Route:
        """
        Append a route to the table.

        Args:
            pattern: Exact target, or the prefix for PREFIX routes.
            handler: Callable taking the request, returning a response.
            kind: EXACT or PREFIX.
            param: Name under which a PREFIX route exposes the remainder
                   in request.path_params.
            name: Optional label, shown by describe().
        """
        if kind is RouteKind.PREFIX and not param:
            raise ValueError(f"Prefix route {pattern!r} needs a param name")

        route = Route(
            pattern=pattern,
            kind=kind,
            handler=handler,
            param=param,
            name=name or getattr(handler, "__name__", None),
        )
        self._routes.append(route)
        return route

    def exact(self, pattern: str, handler: Handler, **kwargs) -> Route:
        """Register an EXACT route."""
        return self.add_route(pattern, handler, RouteKind.EXACT, **kwargs)

    def prefix(self, pattern: str, handler: Handler, param: str, **kwargs) -> Route:
        """Register a PREFIX route capturing the remainder as `param`."""
        return self.add_route(pattern, handler, RouteKind.PREFIX, param=param, **kwargs)

    # =========================================================================
    # DISPATCH
    # =========================================================================

    def match(self, target: str) -> Optional[RouteMatch]:
        """
        First route matching the target, or None.

        Pure: depends only on the target and the route table.
        """
        for route in self._routes:
            params = route.match(target)
            if params is not None:
                return RouteMatch(route=route, params=params)
        return None

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Route a request to its handler.

        The handler receives a copy of the request carrying path_params;
        unmatched targets get 404 Not Found.
        """
        match = self.match(request.target)

        if match is None:
            logger.debug(f"No route for {request.method.value} {request.target}")
            return not_found()

        return match.route.handler(replace(request, path_params=match.params))

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    @property
    def routes(self) -> list[Route]:
        """Copy of the route table in priority order."""
        return list(self._routes)

    def describe(self) -> list[str]:
        """One line per route, for the startup log."""
        lines = []
        for route in self._routes:
            shown = route.pattern
            if route.kind is RouteKind.PREFIX:
                shown += "{" + route.param + "}"
            lines.append(f"{route.kind.value:<7} {shown:<24} → {route.name}")
        return lines
