"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds HTTP/1.1 responses and frames them into wire bytes.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  ┌─ STATUS LINE ──────────────────────────────────────────────────┐ │
    │  │    HTTP/1.1 200 OK\r\n                                         │ │
    │  │    ────┬─── ─┬─ ─┬─                                            │ │
    │  │    Version  Code Phrase                                        │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ HEADERS (in insertion order, duplicates allowed) ─────────────┐ │
    │  │    Content-Type: text/plain\r\n                                │ │
    │  │    Content-Length: 3\r\n                                       │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ BLANK LINE (always present, even with zero headers) ──────────┐ │
    │  │    \r\n                                                        │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ BODY ─────────────────────────────────────────────────────────┐ │
    │  │    abc                                                         │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Nothing is added behind the handler's back: no Date, no Server, no
automatic Content-Length. A bare 200 is exactly "HTTP/1.1 200 OK\r\n\r\n".

=============================================================================
GZIP FRAMING
=============================================================================

When a response carries ContentEncoding.GZIP, to_bytes():

    1. gzip-compresses the body
    2. drops any Content-Length / Content-Encoding the handler set
    3. appends, after the remaining handler headers:
           Content-Encoding: gzip
           Content-Length: <len(compressed)>
    4. writes the compressed bytes as-is after the blank line

So Content-Length always describes the bytes actually on the wire.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Optional, Union
import gzip

from .negotiation import ContentEncoding
from .status_codes import HTTPStatus


CRLF = "\r\n"

Header = tuple[str, str]


@dataclass
class HTTPResponse:
    """
    Represents an HTTP response to be sent to the client.

    Use ResponseBuilder (or the helpers at the bottom of this module)
    for a more convenient way to construct one.

    =========================================================================
    RESPONSE LIFECYCLE
    =========================================================================

        Handler returns          to_bytes()              Connection sends
        HTTPResponse    ─────►   frames (and      ─────►   raw bytes
                                 maybe gzips)

    =========================================================================
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: list[Header] = field(default_factory=list)
    body: bytes = b""
    version: str = "HTTP/1.1"
    content_encoding: ContentEncoding = ContentEncoding.NONE

    @property
    def reason_phrase(self) -> str:
        return self.status.phrase

    @property
    def status_line(self) -> str:
        """Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE"""
        return f"{self.version} {int(self.status)} {self.reason_phrase}"

    def add_header(self, name: str, value: str) -> "HTTPResponse":
        """Append a header (never replaces). Returns self for chaining."""
        self.headers.append((name, value))
        return self

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """First value of a header, matched case-insensitively."""
        wanted = name.lower()
        for header_name, value in self.headers:
            if header_name.lower() == wanted:
                return value
        return default

    def set_body(self, body: Union[str, bytes]) -> "HTTPResponse":
        """Set the body, encoding strings as UTF-8."""
        self.body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def wire_body(self) -> bytes:
        """The body bytes as they will appear on the wire."""
        if self.content_encoding is ContentEncoding.GZIP:
            return gzip.compress(self.body)
        return self.body

    def wire_headers(self, body: bytes) -> list[Header]:
        """
        The header list as it will appear on the wire.

        Args:
            body: The wire body (already compressed when gzip applies).
        """
        if self.content_encoding is not ContentEncoding.GZIP:
            return list(self.headers)

        headers = [
            (name, value) for name, value in self.headers
            if name.lower() not in ("content-length", "content-encoding")
        ]
        headers.append(("Content-Encoding", self.content_encoding.value))
        headers.append(("Content-Length", str(len(body))))
        return headers

    def to_bytes(self) -> bytes:
        """
        Serialize the response for Connection.send_response().

            {status line}\r\n
            {name}: {value}\r\n     ← zero or more
            \r\n                    ← always
            {body}
        """
        body = self.wire_body()

        head = self.status_line + CRLF
        for name, value in self.wire_headers(body):
            head += f"{name}: {value}{CRLF}"
        head += CRLF

        return head.encode("utf-8") + body

    @classmethod
    def from_bytes(cls, data: bytes) -> "HTTPResponse":
        """
        Decode wire bytes back into an HTTPResponse.

        The inverse of to_bytes() for uncompressed responses. For gzip
        responses the result holds the wire form: the compressed body and
        the Content-Encoding / Content-Length headers as sent.

        Raises:
            ValueError: Missing head terminator, malformed status line,
                        malformed header line or unknown status code.
        """
        head, sep, body = data.partition(b"\r\n\r\n")
        if not sep:
            raise ValueError("Incomplete response: no header terminator")

        lines = head.decode("utf-8").split(CRLF)

        parts = lines[0].split(" ", 2)
        if len(parts) < 2 or not parts[1].isdigit():
            raise ValueError(f"Invalid status line: {lines[0]!r}")

        version, code = parts[0], int(parts[1])

        headers: list[Header] = []
        for line in lines[1:]:
            name, colon, value = line.partition(": ")
            if not colon:
                raise ValueError(f"Invalid header line: {line!r}")
            headers.append((name, value))

        return cls(
            status=HTTPStatus(code),
            headers=headers,
            body=body,
            version=version,
        )


class ResponseBuilder:
    """
    Fluent builder for constructing HTTP responses.

    Usage:
        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .text("abc")
            .encoding(ContentEncoding.GZIP)
            .build())
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: list[Header] = []
        self._body = b""
        self._encoding = ContentEncoding.NONE

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        """Append a header. Order is preserved and duplicates are allowed."""
        self._headers.append((name, value))
        return self

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """Set the raw body without touching the headers."""
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def text(self, text: str) -> "ResponseBuilder":
        """
        Plain-text body with Content-Type and Content-Length.

        Content-Length counts UTF-8 bytes, not characters.
        """
        self.body(text)
        self.header("Content-Type", "text/plain")
        self.header("Content-Length", str(len(self._body)))
        return self

    def octet_stream(self, content: bytes) -> "ResponseBuilder":
        """Binary body (file download) with Content-Type and Content-Length."""
        self._body = content
        self.header("Content-Type", "application/octet-stream")
        self.header("Content-Length", str(len(content)))
        return self

    def encoding(self, encoding: ContentEncoding) -> "ResponseBuilder":
        """Select the body encoding applied at framing time."""
        self._encoding = encoding
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=list(self._headers),
            body=self._body,
            content_encoding=self._encoding,
        )

    def to_bytes(self) -> bytes:
        """Build and serialize in one step."""
        return self.build().to_bytes()


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================
#
# One-liners for the responses handlers return most. Error responses
# here carry no body: the status line says everything.
#
#     return ok()
#     return not_found()
#     return method_not_allowed(["GET", "POST"])
#
# =============================================================================

def ok() -> HTTPResponse:
    """200 OK with no headers and no body."""
    return HTTPResponse(status=HTTPStatus.OK)


def created() -> HTTPResponse:
    """201 Created with no body."""
    return HTTPResponse(status=HTTPStatus.CREATED)


def forbidden() -> HTTPResponse:
    return HTTPResponse(status=HTTPStatus.FORBIDDEN)


def not_found() -> HTTPResponse:
    """404 Not Found: "HTTP/1.1 404 Not Found\\r\\n\\r\\n" on the wire."""
    return HTTPResponse(status=HTTPStatus.NOT_FOUND)


def method_not_allowed(allowed_methods: list[str]) -> HTTPResponse:
    """
    405 Method Not Allowed.

    Includes the Allow header listing valid methods (RFC 7231).
    """
    return (ResponseBuilder()
        .status(HTTPStatus.METHOD_NOT_ALLOWED)
        .header("Allow", ", ".join(allowed_methods))
        .build())


def conflict() -> HTTPResponse:
    """409 Conflict: the resource already exists."""
    return HTTPResponse(status=HTTPStatus.CONFLICT)


def internal_error() -> HTTPResponse:
    return HTTPResponse(status=HTTPStatus.INTERNAL_SERVER_ERROR)


def service_unavailable() -> HTTPResponse:
    return HTTPResponse(status=HTTPStatus.SERVICE_UNAVAILABLE)
