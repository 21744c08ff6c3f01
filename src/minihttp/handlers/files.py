"""
=============================================================================
FILE HANDLER
=============================================================================

Reads and creates files inside a configured root directory.

=============================================================================
FLOW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      /files/{filename}                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   method?                                                            │
    │     ├── GET   → resolve → is a file?  ── no ──► 404 Not Found        │
    │     │                        │                                       │
    │     │                       yes ─────────────► 200 + file bytes      │
    │     │                                                                │
    │     ├── POST  → resolve → open(path, "xb")                           │
    │     │                        ├── FileExistsError ► 409 Conflict      │
    │     │                        └── written ───────► 201 Created        │
    │     │                                                                │
    │     └── other ─────────────────────────────────► 405 + Allow         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
CREATE-ONLY WRITES
=============================================================================

POST never overwrites. The existence check and the create are a single
system call: "x" mode maps to O_CREAT | O_EXCL, so when two workers race
for the same name exactly one of them gets the file and the other gets
FileExistsError. There is no check-then-write window.

=============================================================================
PATH SAFETY
=============================================================================

The filename comes straight from the request target. It is joined to
the root and resolved (following ".." and symlinks); anything that lands
outside the root is refused with 403 Forbidden.

    root = /srv/files
    /files/notes.txt            → /srv/files/notes.txt        OK
    /files/../../etc/passwd     → /etc/passwd                 403

=============================================================================
"""

import logging
from pathlib import Path
from typing import Optional, Union

from ..http.request import HTTPRequest, Method
from ..http.response import (
    HTTPResponse, ResponseBuilder,
    created, conflict, forbidden, not_found, method_not_allowed, internal_error,
)


logger = logging.getLogger(__name__)


class FileHandler:
    """
    Handler for GET and POST on /files/{filename}.

    Usage:
        files = FileHandler("/tmp/data")
        router.prefix("/files/", files.handle, param="filename")
    """

    ALLOWED_METHODS = [Method.GET.value, Method.POST.value]

    def __init__(self, root_dir: Optional[Union[str, Path]]):
        """
        Args:
            root_dir: Directory files are read from and written to. None
                      means no directory was configured; every file
                      request then answers 404.
        """
        self.root_dir = Path(root_dir).resolve() if root_dir is not None else None

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """Dispatch on method: GET reads, POST creates, anything else is 405."""
        if request.method is Method.GET:
            return self.get(request)
        if request.method is Method.POST:
            return self.post(request)

        return method_not_allowed(self.ALLOWED_METHODS)

    def get(self, request: HTTPRequest) -> HTTPResponse:
        """Serve the file's full content as application/octet-stream."""
        path = self._resolve(request)
        if isinstance(path, HTTPResponse):
            return path

        if not path.is_file():
            return not_found()

        try:
            content = path.read_bytes()
        except PermissionError:
            return forbidden()
        except OSError as e:
            logger.error(f"Error reading {path}: {e}")
            return internal_error()

        return ResponseBuilder().octet_stream(content).build()

    def post(self, request: HTTPRequest) -> HTTPResponse:
        """Create the file with the request body; never overwrite."""
        path = self._resolve(request)
        if isinstance(path, HTTPResponse):
            return path

        try:
            with open(path, "xb") as f:
                f.write(request.body.encode("utf-8"))
        except FileExistsError:
            return conflict()
        except FileNotFoundError:
            # Parent directory missing; POST does not create directories
            return not_found()
        except PermissionError:
            return forbidden()
        except OSError as e:
            logger.error(f"Error creating {path}: {e}")
            return internal_error()

        logger.info(f"Created {path} ({len(request.body)} chars)")
        return created()

    def _resolve(self, request: HTTPRequest) -> Union[Path, HTTPResponse]:
        """
        Map the filename parameter to a path inside root_dir.

        Returns:
            The resolved path, or the error response to send instead.
        """
        if self.root_dir is None:
            logger.warning("File request but no directory is configured")
            return not_found()

        filename = request.path_params.get("filename", "")
        if not filename:
            return not_found()

        path = (self.root_dir / filename).resolve()

        try:
            path.relative_to(self.root_dir)
        except ValueError:
            logger.warning(f"Path traversal attempt: {filename}")
            return forbidden()

        return path
