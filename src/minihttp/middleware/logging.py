"""
=============================================================================
ACCESS LOG MIDDLEWARE
=============================================================================

One line per request on the "minihttp.access" logger, in Apache-like
text or as JSON:

    127.0.0.1 - - [19/Oct/2026:10:15:02 +0000] "GET /echo/abc" 200 3 0.41ms

    {"method": "GET", "path": "/echo/abc", "status_code": 200, ...}

Unlike many access loggers this one never touches the response: no
X-Request-ID or timing header is added, so the bytes on the wire are
exactly what the handler produced.

Configure it like any logger:

    logging.getLogger("minihttp.access").setLevel(logging.WARNING)  # mute

=============================================================================
"""

import time
import json
import logging
from typing import Optional
from dataclasses import dataclass, asdict

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger("minihttp.access")


@dataclass
class RequestLog:
    """
    Structured access log entry.

    content_length is the size of the body the handler returned, before
    any gzip framing.
    """

    method: str
    path: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    encoding: str
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        entry = asdict(self)
        entry["duration_ms"] = round(self.duration_ms, 2)
        return entry

    def to_text(self) -> str:
        return (
            f'{self.client_ip or "-"} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


class LoggingMiddleware(Middleware):
    """
    Request logging middleware. Put it first so it times everything
    downstream and sees every request.

    Usage:
        pipeline.add(LoggingMiddleware())                   # text
        pipeline.add(LoggingMiddleware(log_format="json"))  # JSON
    """

    def __init__(
        self,
        log_format: str = "text",
        log_level: int = logging.INFO,
        skip_paths: Optional[list[str]] = None,
    ):
        """
        Args:
            log_format: "text" or "json".
            log_level: Level the access lines are emitted at.
            skip_paths: Exact targets that are not logged.
        """
        if log_format not in ("text", "json"):
            raise ValueError(f"Unknown log format: {log_format!r}")

        self.log_format = log_format
        self.log_level = log_level
        self.skip_paths = set(skip_paths or [])

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        start_time = time.perf_counter()

        try:
            response = next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"Request failed: {request.method.value} {request.path} "
                f"- {type(e).__name__}: {e} ({duration_ms:.2f}ms)"
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000

        if request.path in self.skip_paths:
            return response

        entry = RequestLog(
            method=request.method.value,
            path=request.path,
            client_ip=request.client_address[0],
            user_agent=request.user_agent or "-",
            status_code=int(response.status),
            content_length=len(response.body),
            encoding=response.content_encoding.value,
            duration_ms=duration_ms,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        if self.log_format == "json":
            logger.log(self.log_level, json.dumps(entry.to_dict()))
        else:
            logger.log(self.log_level, entry.to_text())

        return response
