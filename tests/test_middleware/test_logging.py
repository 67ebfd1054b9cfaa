"""Tests for logging middleware."""

import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from multiconnect_mcp.middleware.logging import LoggingMiddleware, redact


@pytest.fixture
def mock_logger() -> MagicMock:
    """Logger mock capturing every call."""
    return MagicMock()


@pytest.fixture
def tool_context() -> MagicMock:
    """Context for a connect tool call carrying a password."""
    context = MagicMock()
    context.method = "tools/call"
    context.message.name = "connect"
    context.message.arguments = {"alias": "web", "password": "hunter2"}
    return context


def test_redact_masks_secrets() -> None:
    """Passwords and passphrases are replaced, other values kept."""
    result = redact({"alias": "web", "password": "pw", "Passphrase": "pp", "user": "u"})

    assert result == {"alias": "web", "password": "***", "Passphrase": "***", "user": "u"}


def test_redact_keeps_empty_secrets() -> None:
    """Unset secrets are shown as unset."""
    assert redact({"password": None}) == {"password": None}
    assert redact(None) == {}


@pytest.mark.asyncio
async def test_tool_call_never_logs_password(
    mock_logger: MagicMock, tool_context: MagicMock
) -> None:
    """Neither the summary nor the payload log contains the password."""
    middleware = LoggingMiddleware(logger=mock_logger, include_payloads=True)

    await middleware.on_call_tool(tool_context, AsyncMock(return_value="ok"))

    logged = str(mock_logger.mock_calls)
    assert "hunter2" not in logged
    assert "password='***'" in logged


@pytest.mark.asyncio
async def test_tool_call_logs_summary(
    mock_logger: MagicMock, tool_context: MagicMock
) -> None:
    """Tool name and result size are logged on completion."""
    middleware = LoggingMiddleware(logger=mock_logger)

    result = await middleware.on_call_tool(
        tool_context, AsyncMock(return_value="line one\nline two")
    )

    assert result == "line one\nline two"
    first = mock_logger.info.call_args_list[0].args
    assert first[0] == ">>> TOOL: %s%s"
    assert first[1] == "connect"
    level, fmt, name, summary, _duration = mock_logger.log.call_args.args
    assert level == logging.INFO
    assert name == "connect"
    assert summary == "17 chars, 2 lines"


@pytest.mark.asyncio
async def test_slow_tool_call_warns(
    mock_logger: MagicMock, tool_context: MagicMock
) -> None:
    """Calls over the threshold are logged at WARNING."""
    middleware = LoggingMiddleware(logger=mock_logger, slow_threshold_ms=0)

    await middleware.on_call_tool(tool_context, AsyncMock(return_value="ok"))

    assert mock_logger.log.call_args.args[0] == logging.WARNING
    assert mock_logger.log.call_args.args[-1].endswith("SLOW!")


@pytest.mark.asyncio
async def test_tool_call_error_logged_and_reraised(
    mock_logger: MagicMock, tool_context: MagicMock
) -> None:
    """Failures are logged and propagated."""
    middleware = LoggingMiddleware(logger=mock_logger)

    with pytest.raises(RuntimeError):
        await middleware.on_call_tool(
            tool_context, AsyncMock(side_effect=RuntimeError("lost"))
        )

    args = mock_logger.error.call_args.args
    assert args[1:4] == ("connect", "RuntimeError", "lost")


@pytest.mark.asyncio
async def test_resource_read_logged(mock_logger: MagicMock) -> None:
    """Resource reads log the URI."""
    context = MagicMock()
    context.method = "resources/read"
    context.message.uri = "connections://tree"
    middleware = LoggingMiddleware(logger=mock_logger)

    await middleware.on_read_resource(context, AsyncMock(return_value=["x"]))

    mock_logger.info.assert_called_once_with(">>> RESOURCE: %s", "connections://tree")
    assert mock_logger.log.call_args.args[3] == "1 items"


@pytest.mark.asyncio
async def test_on_message_skips_tool_calls(
    mock_logger: MagicMock, tool_context: MagicMock
) -> None:
    """Tool calls are left to on_call_tool."""
    middleware = LoggingMiddleware(logger=mock_logger)

    await middleware.on_message(tool_context, AsyncMock(return_value=None))

    mock_logger.debug.assert_not_called()


@pytest.mark.asyncio
async def test_on_message_logs_other_methods(mock_logger: MagicMock) -> None:
    """Other MCP methods are logged at debug level."""
    context = MagicMock()
    context.method = "tools/list"
    middleware = LoggingMiddleware(logger=mock_logger)

    await middleware.on_message(context, AsyncMock(return_value=[]))

    assert mock_logger.debug.call_count == 2


def test_truncate_long_payload() -> None:
    """Long payloads are cut at the configured length."""
    middleware = LoggingMiddleware(max_payload_length=10)

    assert middleware._truncate("x" * 50).endswith("... [truncated]")
