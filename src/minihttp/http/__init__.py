"""
=============================================================================
HTTP PROTOCOL MODULE
=============================================================================

Everything that knows the HTTP/1.1 wire format: turning request lines
into HTTPRequest objects, deciding on gzip, routing, and framing
HTTPResponse objects back into bytes.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                       HTTP PIPELINE                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   lines ──► RequestParser ──► HTTPRequest                            │
    │                                    │                                 │
    │                                    ▼                                 │
    │                                 Router ──► handler                   │
    │                                               │                      │
    │                     negotiate_encoding ◄──────┤                      │
    │                                               ▼                      │
    │   bytes ◄── HTTPResponse.to_bytes() ◄── HTTPResponse                 │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError, RequestTooLarge, Method, parse_request
from .response import (
    HTTPResponse,
    ResponseBuilder,
    ok,                  # 200 OK
    created,             # 201 Created
    forbidden,           # 403 Forbidden
    not_found,           # 404 Not Found
    method_not_allowed,  # 405 Method Not Allowed
    conflict,            # 409 Conflict
    internal_error,      # 500 Internal Server Error
    service_unavailable, # 503 Service Unavailable
)
from .negotiation import ContentEncoding, accepts_gzip, negotiate_encoding
from .router import Router, Route, RouteKind, RouteMatch
from .status_codes import HTTPStatus

__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "RequestTooLarge",
    "Method",
    "parse_request",

    # Response building
    "HTTPResponse",
    "ResponseBuilder",
    "ok",
    "created",
    "forbidden",
    "not_found",
    "method_not_allowed",
    "conflict",
    "internal_error",
    "service_unavailable",

    # Content negotiation
    "ContentEncoding",
    "accepts_gzip",
    "negotiate_encoding",

    # Routing
    "Router",
    "Route",
    "RouteKind",
    "RouteMatch",

    # Status codes
    "HTTPStatus",
]
