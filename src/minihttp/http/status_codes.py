"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The small set of status codes this server can produce, with the reason
phrase that goes on the status line.

=============================================================================
WHERE STATUS CODES APPEAR
=============================================================================

    HTTP/1.1 404 Not Found\r\n
             ─┬─ ────┬────
              │      │
              │      └── Reason phrase (HTTPStatus.phrase)
              └───────── Status code (int value of the enum)

    ┌─────────────────────────────────────────────────────────────────────┐
    │                  STATUS CODES PRODUCED BY ROUTE                     │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   /                    200 OK                                        │
    │   /echo/{text}         200 OK                                        │
    │   /user-agent          200 OK                                        │
    │   GET  /files/{name}   200 OK          │ 404 Not Found               │
    │   POST /files/{name}   201 Created     │ 409 Conflict                │
    │   PUT  /files/{name}   405 Method Not Allowed                        │
    │   anything else        404 Not Found                                 │
    │                                                                      │
    │   Server-side trouble:                                               │
    │   403 Forbidden (path escapes the file root)                         │
    │   500 Internal Server Error (handler crashed)                        │
    │   503 Service Unavailable (worker queue full)                        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    IntEnum so a status compares equal to its integer code:

        >>> HTTPStatus.CREATED == 201
        True
        >>> HTTPStatus.CREATED.phrase
        'Created'
    """

    # 2xx SUCCESS
    OK = 200
    CREATED = 201

    # 4xx CLIENT ERRORS
    BAD_REQUEST = 400
    FORBIDDEN = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    CONFLICT = 409              # File already exists (create-only POST)
    PAYLOAD_TOO_LARGE = 413

    # 5xx SERVER ERRORS
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503

    @property
    def phrase(self) -> str:
        """Reason phrase for the status line."""
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_success(self) -> bool:
        """True for 2xx codes."""
        return 200 <= self < 300

    @property
    def is_error(self) -> bool:
        """True for 4xx and 5xx codes."""
        return self >= 400


# =============================================================================
# REASON PHRASES
# =============================================================================
#
# Per RFC 7230 the reason phrase is informational; clients key off the
# numeric code. We still emit the standard wording.
#
# =============================================================================

_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.CONFLICT: "Conflict",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
}
