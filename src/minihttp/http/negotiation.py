"""
=============================================================================
CONTENT NEGOTIATION
=============================================================================

Decides whether a response body should be gzip-compressed, based on the
client's Accept-Encoding header.

    Request:
    ┌───────────────────────────────────────────────────────────────┐
    │ GET /echo/abc HTTP/1.1                                        │
    │ Accept-Encoding: deflate, gzip                                │
    │                            │                                  │
    │                            └── "gzip" listed → compress       │
    └───────────────────────────────────────────────────────────────┘

    Response:
    ┌───────────────────────────────────────────────────────────────┐
    │ HTTP/1.1 200 OK                                               │
    │ Content-Type: text/plain                                      │
    │ Content-Encoding: gzip                                        │
    │ Content-Length: 23      (compressed size)                     │
    └───────────────────────────────────────────────────────────────┘

Rules:
- The list is split on ", " (comma plus one space), entries untouched
- "deflate,gzip" is one entry, so it does not select gzip
- An entry must equal "gzip" exactly (case-sensitive)
- Quality values and wildcards are not understood: "gzip;q=0.5" and
  "*" do not select gzip
- A missing header, or a list without gzip, means no compression

=============================================================================
"""

from enum import Enum

from .request import HTTPRequest


GZIP = "gzip"
LIST_SEPARATOR = ", "


class ContentEncoding(Enum):
    """Body encodings the response encoder can apply."""

    NONE = "none"
    GZIP = GZIP


def accepts_gzip(accept_encoding: str) -> bool:
    """
    Check an Accept-Encoding value for an exact "gzip" entry.

    Example:
        accepts_gzip("deflate, gzip")   # True
        accepts_gzip("GZIP")            # False
        accepts_gzip("")                # False
    """
    return GZIP in accept_encoding.split(LIST_SEPARATOR)


def negotiate_encoding(request: HTTPRequest) -> ContentEncoding:
    """Pick the body encoding for a response to this request."""
    if accepts_gzip(request.accept_encoding):
        return ContentEncoding.GZIP
    return ContentEncoding.NONE
