"""
=============================================================================
MIDDLEWARE MODULE
=============================================================================

Layers wrapped around router.handle by HTTPServer:

    LoggingMiddleware    access log line per request ("minihttp.access")
    ErrorMiddleware      handler exception → logged traceback + 500

Neither adds response headers.

=============================================================================
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .errors import ErrorMiddleware
from .logging import LoggingMiddleware, RequestLog

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "ErrorMiddleware",
    "LoggingMiddleware",
    "RequestLog",
]
