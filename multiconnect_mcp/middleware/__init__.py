"""multiconnect middleware components."""

from multiconnect_mcp.middleware.base import MultiConnectMiddleware
from multiconnect_mcp.middleware.errors import ErrorHandlingMiddleware
from multiconnect_mcp.middleware.logging import LoggingMiddleware, redact

__all__ = [
    "ErrorHandlingMiddleware",
    "LoggingMiddleware",
    "MultiConnectMiddleware",
    "redact",
]
