"""
=============================================================================
HANDLERS MODULE
=============================================================================

Request handlers: functions (or bound methods) that take an HTTPRequest
and return an HTTPResponse.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    REQUEST → HANDLER → RESPONSE                     │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   basic.root          /                 200, empty                  │
    │   basic.echo          /echo/{text}      200, text (maybe gzip)      │
    │   basic.user_agent    /user-agent       200, User-Agent value       │
    │   FileHandler.handle  /files/{name}     200/404, 201/409, 405       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .basic import root, echo, user_agent
from .files import FileHandler

__all__ = ["root", "echo", "user_agent", "FileHandler"]
