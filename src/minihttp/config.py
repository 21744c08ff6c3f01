"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All tunables live in one dataclass. Values come from, in order of
precedence:

    1. Command-line flags       (python -m minihttp --directory /tmp/data)
    2. Environment variables    (MINIHTTP_DIRECTORY=/tmp/data)
    3. Dataclass defaults       (below)

=============================================================================
ENVIRONMENT VARIABLES
=============================================================================

    MINIHTTP_HOST        Bind address            (default: 0.0.0.0)
    MINIHTTP_PORT        Listening port          (default: 4221)
    MINIHTTP_WORKERS     Max worker threads      (default: 16)
    MINIHTTP_TIMEOUT     Socket timeout, seconds (default: 30)
    MINIHTTP_DIRECTORY   File-serving root       (default: none)
    MINIHTTP_LOG_LEVEL   Logging level           (default: INFO)
    MINIHTTP_LOG_FORMAT  Access log: text, json  (default: text)

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class ServerConfig:
    """
    Configuration for the HTTP server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK     host, port, backlog, buffer_size, timeout
    HTTP        max_request_size
    THREADING   min_workers, max_workers, queue_size
    FILES       directory
    LOGGING     log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """IPv4 address to bind. "0.0.0.0" listens on every interface."""

    port: int = 4221
    """TCP port. 0 lets the OS pick a free one (tests)."""

    backlog: int = 128
    """Accept queue length handed to listen()."""

    buffer_size: int = 1024
    """Bytes requested per recv() call. Must be at least 1024."""

    timeout: Optional[float] = 30.0
    """
    Per-connection socket timeout in seconds.
    None blocks forever on a silent client.
    """

    # ─────────────────────────────────────────────────────────────────────
    # HTTP SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    max_request_size: int = 10 * 1024 * 1024  # 10 MB
    """A connection that sends more than this is dropped."""

    # ─────────────────────────────────────────────────────────────────────
    # THREAD POOL SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    min_workers: int = 4
    """Worker threads started with the server."""

    max_workers: int = 16
    """Upper bound the pool may grow to under load."""

    queue_size: int = 100
    """Accepted connections waiting for a worker. Beyond this: 503."""

    # ─────────────────────────────────────────────────────────────────────
    # FILES
    # ─────────────────────────────────────────────────────────────────────

    directory: Optional[str] = None
    """
    Root for /files/{name}. Treated as opaque by routing; only the file
    handler joins filenames onto it.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """DEBUG, INFO, WARNING or ERROR."""

    log_format: str = "text"
    """Access log format: "text" or "json"."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from MINIHTTP_* environment variables.

        Example:
            MINIHTTP_PORT=8080 MINIHTTP_DIRECTORY=/tmp python -m minihttp
        """
        max_workers = int(os.getenv("MINIHTTP_WORKERS", "16"))

        return cls(
            host=os.getenv("MINIHTTP_HOST", "0.0.0.0"),
            port=int(os.getenv("MINIHTTP_PORT", "4221")),
            min_workers=min(cls.min_workers, max_workers),
            max_workers=max_workers,
            timeout=float(os.getenv("MINIHTTP_TIMEOUT", "30")),
            directory=os.getenv("MINIHTTP_DIRECTORY"),
            log_level=os.getenv("MINIHTTP_LOG_LEVEL", "INFO"),
            log_format=os.getenv("MINIHTTP_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called by HTTPServer at construction so a bad value fails at
        startup, not on the first request.

        Raises:
            ValueError: On the first invalid setting found.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")

        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.log_format not in ("text", "json"):
            raise ValueError(f"Invalid log_format: {self.log_format}")

        if self.directory is not None and not os.path.isdir(self.directory):
            raise ValueError(f"Directory does not exist: {self.directory}")
