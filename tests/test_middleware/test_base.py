"""Tests for the middleware base class."""

import logging
from unittest.mock import MagicMock

from multiconnect_mcp.middleware import (
    ErrorHandlingMiddleware,
    LoggingMiddleware,
    MultiConnectMiddleware,
)


def test_default_logger() -> None:
    """Without a logger the module logger is used."""
    middleware = MultiConnectMiddleware()

    assert isinstance(middleware.logger, logging.Logger)


def test_custom_logger() -> None:
    """A custom logger is kept."""
    custom_logger = MagicMock()

    assert MultiConnectMiddleware(logger=custom_logger).logger is custom_logger


def test_concrete_middleware_share_base() -> None:
    """Both server middleware derive from the base class."""
    assert issubclass(ErrorHandlingMiddleware, MultiConnectMiddleware)
    assert issubclass(LoggingMiddleware, MultiConnectMiddleware)
