"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the line sequence read from a connection into a structured,
immutable HTTPRequest.

=============================================================================
HTTP REQUEST ANATOMY
=============================================================================

The connection reader hands us the raw request text already split on
CRLF. For a typical request that looks like this:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     REQUEST AS A LINE SEQUENCE                      │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   POST /files/new.txt HTTP/1.1\r\n                                   │
    │   Host: localhost:4221\r\n                                           │
    │   User-Agent: curl/8.4.0\r\n                                         │
    │   \r\n                                                               │
    │   hello                                                              │
    │                                                                      │
    │        .split("\r\n")                                                │
    │              │                                                       │
    │              ▼                                                       │
    │                                                                      │
    │   [0]  "POST /files/new.txt HTTP/1.1"   ← request line               │
    │   [1]  "Host: localhost:4221"           ┐                            │
    │   [2]  "User-Agent: curl/8.4.0"         ├ header lines               │
    │   [3]  ""                               ┘ (blank separator)          │
    │   [-1] "hello"                          ← body                       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The first element is the request line, the last element is the body and
everything in between is the header block.

KNOWN LIMITATION: a body containing CRLF is split as well, so only its
final line survives. Multi-line and binary bodies are not supported.

=============================================================================
REQUEST LINE
=============================================================================

    METHOD SP TARGET SP VERSION

    "GET /echo/abc HTTP/1.1"
     ─┬─ ────┬──── ────┬───
      │      │         │
      │      │         └── Version, kept as-is
      │      └──────────── Target, used for routing
      └─────────────────── Method, must be GET, POST, PUT or DELETE

Anything other than exactly three space-separated tokens is rejected,
as is a method outside the enumeration.

=============================================================================
HEADERS
=============================================================================

Handlers never index header lines by position. Every "Name: Value" line
is folded into a mapping keyed by the lowercased name, so lookups like
request.get_header("User-Agent") work whatever order the client sent.

=============================================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Sequence, Union


class HTTPParseError(Exception):
    """
    Raised when a request cannot be parsed.

    Carries the HTTP status that best describes the failure so callers
    that want to answer (tests, tooling) know what to send:

        400 Bad Request        - Malformed request line
        405 Method Not Allowed - Method outside GET/POST/PUT/DELETE
        413 Payload Too Large  - Request exceeded the size limit

    The server itself treats every parse failure as fatal for the
    connection and closes it without a response.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class RequestTooLarge(HTTPParseError):
    """Raised by the connection reader when a request outgrows max_request_size."""

    def __init__(self, size: int):
        super().__init__(f"Request too large: {size} bytes", status_code=413)
        self.size = size


class Method(Enum):
    """The closed set of request methods this server understands."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


@dataclass(frozen=True)
class HTTPRequest:
    """
    A parsed HTTP request.

    Frozen: built once per connection and never mutated. The router
    derives a copy carrying path_params instead of writing into this one.

    Attributes:
        method:         Parsed Method enum member.
        target:         Request target exactly as sent ("/echo/abc").
        version:        Version token ("HTTP/1.1").
        header_lines:   Raw "Name: Value" lines in arrival order.
        body:           Request body (the line after the header block).
        headers:        Lowercased header name → value.
        path_params:    Values captured by the matched route.
        client_address: (ip, port) of the peer, for logging.
    """

    method: Method
    target: str
    version: str = "HTTP/1.1"
    header_lines: tuple[str, ...] = ()
    body: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    path_params: Mapping[str, str] = field(default_factory=dict)
    client_address: tuple[str, int] = ("", 0)

    @property
    def path(self) -> str:
        """Alias of target; the access log and router speak in paths."""
        return self.target

    @property
    def user_agent(self) -> Optional[str]:
        """User-Agent header value, or None when the client sent none."""
        return self.headers.get("user-agent")

    @property
    def accept_encoding(self) -> str:
        """Raw Accept-Encoding value ("" when absent)."""
        return self.headers.get("accept-encoding", "")

    @property
    def content_length(self) -> int:
        """Declared Content-Length, 0 when missing or not a number."""
        try:
            return int(self.headers.get("content-length", 0))
        except ValueError:
            return 0

    def get_header(self, name: str, default: str = "") -> str:
        """
        Case-insensitive header lookup.

        Example:
            request.get_header("Accept-Encoding")
            request.get_header("accept-encoding")   # same thing
        """
        return self.headers.get(name.lower(), default)


class RequestParser:
    """
    Parses a request line sequence into an HTTPRequest.

    =========================================================================
    PARSING ALGORITHM
    =========================================================================

    1. Reject an empty sequence (peer closed before sending anything)
    2. Split lines[0] on single spaces → exactly (method, target, version)
    3. Validate the method against the Method enum
    4. Header lines = lines[1:-1]
    5. Body = lines[-1]
    6. Fold header lines into a lowercased name → value mapping

    =========================================================================
    """

    def parse(
        self,
        lines: Sequence[str],
        client_address: tuple[str, int] = ("", 0),
    ) -> HTTPRequest:
        """
        Parse a request line sequence.

        Args:
            lines: Raw request text split on CRLF. The first element is
                   the request line, the last is the body.
            client_address: Peer (ip, port), carried through for logging.

        Returns:
            The parsed request.

        Raises:
            HTTPParseError: Empty input, malformed request line or
                            unsupported method.
        """
        if not lines:
            raise HTTPParseError("Empty request")

        method, target, version = self._parse_request_line(lines[0])

        # With a single element the request line doubles as the last
        # element; there is no header block and no body.
        header_lines = tuple(lines[1:-1])
        body = lines[-1] if len(lines) > 1 else ""

        return HTTPRequest(
            method=method,
            target=target,
            version=version,
            header_lines=header_lines,
            body=body,
            headers=MappingProxyType(self._parse_headers(header_lines)),
            client_address=client_address,
        )

    def _parse_request_line(self, line: str) -> tuple[Method, str, str]:
        """
        Split and validate "METHOD SP TARGET SP VERSION".

        Raises:
            HTTPParseError: Wrong token count (400) or unknown method (405).
        """
        tokens = line.split(" ")
        if len(tokens) != 3:
            raise HTTPParseError(f"Invalid request line: {line!r}")

        raw_method, target, version = tokens

        try:
            method = Method(raw_method)
        except ValueError:
            raise HTTPParseError(
                f"Invalid method: {raw_method!r}",
                status_code=405,
            ) from None

        return method, target, version

    def _parse_headers(self, lines: Sequence[str]) -> dict[str, str]:
        """
        Fold "Name: Value" lines into a dictionary.

        - Names are lowercased ("User-Agent" and "user-agent" are one header)
        - Values are stripped of surrounding whitespace
        - A repeated name is joined with ", " (RFC 7230 list semantics)
        - Blank lines and lines without a colon are skipped
        """
        headers: dict[str, str] = {}

        for line in lines:
            if not line or ":" not in line:
                continue

            name, value = line.split(":", 1)
            name = name.strip().lower()
            value = value.strip()

            if name in headers:
                headers[name] += ", " + value
            else:
                headers[name] = value

        return headers


# =============================================================================
# CONVENIENCE FUNCTION
# =============================================================================

def parse_request(
    raw: Union[bytes, str],
    client_address: tuple[str, int] = ("", 0),
) -> HTTPRequest:
    """
    Parse a complete raw request in one call.

    Splits the text on CRLF exactly like the connection reader does,
    then runs RequestParser over the lines. Handy in tests and tools.

    Example:
        request = parse_request(b"GET / HTTP/1.1\\r\\nHost: x\\r\\n\\r\\n")
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")

    lines = raw.split("\r\n") if raw else []
    return RequestParser().parse(lines, client_address)
