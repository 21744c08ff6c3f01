"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket: reads the request, writes the
response, closes. One request per connection; there is no keep-alive.

=============================================================================
TCP IS A BYTE STREAM
=============================================================================

TCP does not preserve message boundaries. A request sent in one write
can arrive in several recv() chunks:

    Client sends:
        "GET /echo/abc HTTP/1.1\r\nHost: x\r\n\r\n"

    Server might receive:
        recv() → "GET /echo/a"
        recv() → "bc HTTP/1.1\r\nHo"
        recv() → "st: x\r\n\r\n"

So the reader buffers until it sees the head terminator (\r\n\r\n).

=============================================================================
WHAT read_request() RETURNS
=============================================================================

The accumulated text, decoded as UTF-8 and split on CRLF:

    "POST /files/a HTTP/1.1\r\nContent-Length: 5\r\n\r\nhello"

    → ["POST /files/a HTTP/1.1", "Content-Length: 5", "", "hello"]
       └─── request line ────┘  └──── headers ────┘  └┘  └─body─┘

The last element is the body. A body containing CRLF is therefore cut
down to its last line; this server does not frame bodies by length.

    ┌─────────────────────────────────────────────────────────────────┐
    │                    read_request() Flow                           │
    ├─────────────────────────────────────────────────────────────────┤
    │                                                                  │
    │   while no \r\n\r\n in buffer:                                   │
    │       recv() → buffer          (zero bytes: stop, peer closed)   │
    │                                                                  │
    │   Content-Length larger than what arrived after \r\n\r\n?        │
    │       recv() until it has arrived (or peer closes)               │
    │                                                                  │
    │   buffer.decode("utf-8", errors="replace").split("\r\n")         │
    │                                                                  │
    └─────────────────────────────────────────────────────────────────┘

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    NEW ──► READING ──► PROCESSING ──► WRITING ──► CLOSING ──► CLOSED
              │                                       ▲
              └───────────── (error) ─────────────────┘

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional
import uuid

from ..http.request import RequestTooLarge


logger = logging.getLogger(__name__)


HEAD_TERMINATOR = b"\r\n\r\n"

# Upper bound on the whole post-response drain, not per recv()
DRAIN_TIMEOUT = 0.5


class ConnectionState(Enum):
    """Connection lifecycle states, used for logging and close()."""
    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    Represents a client connection.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    Connection Responsibilities                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  1. BUFFERED READING                                                 │
    │     └── accumulate recv() chunks until the head terminator          │
    │     └── refuse to grow past max_request_size                         │
    │                                                                      │
    │  2. WRITING                                                          │
    │     └── sendall() the framed response                                │
    │                                                                      │
    │  3. GRACEFUL CLOSE                                                   │
    │     └── shutdown(SHUT_WR), short drain, close()                      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short unique identifier for log lines.
        state: Current connection state.
        created_at: Timestamp when the connection was accepted.
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    # Configuration (passed from ServerConfig)
    buffer_size: int = 1024
    timeout: Optional[float] = 30.0
    max_request_size: int = 10 * 1024 * 1024

    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def client_port(self) -> int:
        return self.address[1]

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self) -> list[str]:
        """
        Read one request and return it split on CRLF.

        Returns:
            The request lines (last element is the body). An empty list
            when the peer closed without sending a byte.

        Raises:
            RequestTooLarge: The request outgrew max_request_size.
            TimeoutError: The peer went silent for longer than timeout.
        """
        self.state = ConnectionState.READING

        try:
            while HEAD_TERMINATOR not in self._buffer:
                chunk = self._recv()
                if not chunk:
                    break
                self._append(chunk)

            header_end = self._buffer.find(HEAD_TERMINATOR)
            if header_end != -1:
                body_start = header_end + len(HEAD_TERMINATOR)
                content_length = self._parse_content_length(self._buffer[:header_end])

                while len(self._buffer) - body_start < content_length:
                    chunk = self._recv()
                    if not chunk:
                        break
                    self._append(chunk)

        except socket.timeout:
            raise TimeoutError(f"[{self.id}] Request read timeout") from None

        if not self._buffer:
            return []

        text = self._buffer.decode("utf-8", errors="replace")
        self._buffer = b""
        return text.split("\r\n")

    def _append(self, chunk: bytes):
        self._buffer += chunk
        if len(self._buffer) > self.max_request_size:
            raise RequestTooLarge(len(self._buffer))

    def _recv(self) -> bytes:
        """recv() that maps an abrupt disconnect to end-of-stream."""
        try:
            return self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            logger.debug(f"[{self.id}] Peer reset during read")
            return b""

    def _parse_content_length(self, head: bytes) -> int:
        """
        Content-Length from the raw head, 0 if absent or not a number.

        Only used to decide how long to keep reading; the parser builds
        the real header map later.
        """
        for line in head.decode("utf-8", errors="replace").split("\r\n")[1:]:
            name, _, value = line.partition(":")
            if name.strip().lower() == "content-length":
                try:
                    return max(int(value.strip()), 0)
                except ValueError:
                    return 0
        return 0

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send all response bytes.

        Returns:
            True if sent, False if the peer was already gone.
        """
        self.state = ConnectionState.WRITING

        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection gracefully. Safe to call twice.

            shutdown(SHUT_WR)  → FIN to the client
            drain              → discard anything still in flight,
                                 for at most DRAIN_TIMEOUT in total
            close()            → release the descriptor

        A peer that keeps trickling bytes cannot hold the caller past
        the drain deadline.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone

        deadline = time.monotonic() + DRAIN_TIMEOUT
        try:
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    logger.debug(f"[{self.id}] Drain deadline reached")
                    break
                self.socket.settimeout(remaining)
                if not self.socket.recv(1024):
                    break
        except OSError:
            pass  # Includes socket.timeout

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def __enter__(self):
        """
        Allows:

            with conn:
                lines = conn.read_request()
                conn.send_response(data)
            # closed here
        """
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
