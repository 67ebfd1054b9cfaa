"""Error handling middleware for consistent error responses."""

import logging
import traceback
from collections import defaultdict
from collections.abc import Callable
from typing import Any

from fastmcp.exceptions import ToolError
from fastmcp.server.middleware import MiddlewareContext

from multiconnect_mcp.errors import MultiConnectError
from multiconnect_mcp.middleware.base import MultiConnectMiddleware

ErrorCallback = Callable[[Exception, MiddlewareContext], None]


class ErrorHandlingMiddleware(MultiConnectMiddleware):
    """Middleware that logs, counts, and normalizes errors.

    Domain errors that escape a handler are re-raised as ``ToolError`` so
    the client sees a readable message instead of an internal failure.
    Everything else is re-raised unchanged.

    Example:
        >>> def on_error(exc, ctx):
        ...     print(f"Error in {ctx.method}: {exc}")
        >>> middleware = ErrorHandlingMiddleware(error_callback=on_error)
        >>> mcp.add_middleware(middleware)
    """

    def __init__(
        self,
        logger: logging.Logger | None = None,
        include_traceback: bool = False,
        error_callback: ErrorCallback | None = None,
    ) -> None:
        """Initialize error handling middleware.

        Args:
            logger: Optional custom logger.
            include_traceback: Whether to include full traceback in logs.
            error_callback: Optional callback called on each error.
                Receives (exception, context) as arguments.
        """
        super().__init__(logger=logger)
        self.include_traceback = include_traceback
        self.error_callback = error_callback
        self._error_counts: dict[str, int] = defaultdict(int)

    def get_error_stats(self) -> dict[str, int]:
        """Get error statistics by exception type."""
        return dict(self._error_counts)

    def reset_stats(self) -> None:
        """Reset error statistics."""
        self._error_counts.clear()

    async def on_message(
        self,
        context: MiddlewareContext,
        call_next: Any,
    ) -> Any:
        """Handle errors during request processing.

        Raises:
            ToolError: For domain errors raised by a handler
            Exception: Any other exception, re-raised after logging
        """
        try:
            return await call_next(context)

        except Exception as e:
            error_type = type(e).__name__
            method = context.method

            self._error_counts[error_type] += 1

            if self.include_traceback:
                self.logger.error(
                    "Error in %s: %s: %s\n%s",
                    method,
                    error_type,
                    str(e),
                    traceback.format_exc(),
                )
            else:
                self.logger.error("Error in %s: %s: %s", method, error_type, str(e))

            if self.error_callback:
                try:
                    self.error_callback(e, context)
                except Exception as callback_error:
                    self.logger.warning("Error callback failed: %s", str(callback_error))

            if isinstance(e, MultiConnectError):
                raise ToolError(str(e)) from e
            raise
