"""
Root, echo and user-agent handlers.

These three never touch the filesystem; each is a plain function of the
request.

    GET /                   →  200 OK, empty
    GET /echo/abc           →  200 OK, text/plain "abc" (gzip if accepted)
    GET /user-agent         →  200 OK, text/plain <User-Agent value>
"""

import logging

from ..http.negotiation import negotiate_encoding
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder, ok


logger = logging.getLogger(__name__)


def root(request: HTTPRequest) -> HTTPResponse:
    """200 OK with no headers and no body, whatever the method."""
    return ok()


def echo(request: HTTPRequest) -> HTTPResponse:
    """
    Echo the text after "/echo/" back as text/plain.

    The text is sent verbatim (no URL decoding). When the client lists
    gzip in Accept-Encoding the body is compressed at framing time and
    Content-Length is rewritten to the compressed size.
    """
    text = request.path_params.get("text", "")
    encoding = negotiate_encoding(request)

    logger.debug(f"Echo {len(text)} chars, encoding={encoding.value}")

    return (ResponseBuilder()
        .text(text)
        .encoding(encoding)
        .build())


def user_agent(request: HTTPRequest) -> HTTPResponse:
    """
    Reflect the User-Agent header as text/plain.

    Looked up by name, so header order does not matter. A request
    without the header gets an empty body.
    """
    value = request.user_agent
    if value is None:
        logger.debug("Request has no User-Agent header")
        value = ""

    return ResponseBuilder().text(value).build()
