"""
=============================================================================
BASE MIDDLEWARE INTERFACE
=============================================================================

A middleware wraps the router: it sees the request on the way in and the
response on the way out, and decides whether to call the next layer.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                       PIPELINE (onion)                               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Request ──────────────────────────────────────────►                │
    │                                                                      │
    │   ┌──────────────┐    ┌──────────────┐    ┌──────────────┐           │
    │   │   Logging    │───►│    Errors    │───►│ router.handle│           │
    │   └──────────────┘    └──────────────┘    └──────────────┘           │
    │   start timer          catch handler        route + run              │
    │   log access line      exceptions → 500     handler                  │
    │                                                                      │
    │   ◄────────────────────────────────────────────── Response           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

First added is outermost.

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Callable
import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


# The next middleware, or the router at the end of the chain
NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """
    Abstract base class for middleware.

        class Timing(Middleware):
            def __call__(self, request, next):
                # before
                response = next(request)
                # after
                return response

    Returning without calling next() short-circuits the chain.
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        ...

    @property
    def name(self) -> str:
        return self.__class__.__name__


class MiddlewarePipeline:
    """
    Ordered middleware list that can wrap a final handler.

    Usage:
        pipeline = MiddlewarePipeline()
        pipeline.use(LoggingMiddleware(), ErrorMiddleware())

        handler = pipeline.wrap(router.handle)
        response = handler(request)
    """

    def __init__(self):
        self._middleware: list[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        """Append one middleware (first added = outermost)."""
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def use(self, *middleware: Middleware) -> "MiddlewarePipeline":
        for mw in middleware:
            self.add(mw)
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Build the chain around `handler`.

        Given [A, B] the result calls A → B → handler. Wrapping runs in
        reverse so the first-added middleware ends up outermost.
        """
        current = handler
        for middleware in reversed(self._middleware):
            current = self._bind(middleware, current)
        return current

    @staticmethod
    def _bind(middleware: Middleware, next_handler: NextHandler) -> NextHandler:
        def wrapped(request: HTTPRequest) -> HTTPResponse:
            return middleware(request, next_handler)
        return wrapped

    def __len__(self) -> int:
        return len(self._middleware)

    def __iter__(self):
        return iter(self._middleware)
