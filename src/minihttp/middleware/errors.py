"""
Turns unexpected handler exceptions into 500 Internal Server Error.

Handlers report expected conditions (missing file, existing file, bad
method) as responses. Anything they raise is a bug or an environment
failure; it is logged with its traceback and the client gets a bare 500
instead of a dropped connection.
"""

import logging

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, internal_error


logger = logging.getLogger(__name__)


class ErrorMiddleware(Middleware):
    """Innermost layer: catches everything the router and handlers raise."""

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        try:
            return next(request)
        except Exception:
            logger.exception(
                f"Unhandled error in handler for {request.method.value} {request.target}"
            )
            return internal_error()
