"""Tests for the console log formatters."""

import logging
import sys

import pytest

from multiconnect_mcp.utils.console import (
    COLORS,
    ColorfulFormatter,
    MCPRequestFormatter,
)


def make_record(
    message: str, name: str = "multiconnect_mcp.services.registry"
) -> logging.LogRecord:
    """Build a log record."""
    return logging.LogRecord(name, logging.INFO, __file__, 1, message, None, None)


def test_plain_format_has_columns() -> None:
    """Without colors the line is time | level | component | message."""
    formatter = ColorfulFormatter(use_colors=False)

    line = formatter.format(make_record("web state=connected"))

    parts = [part.strip() for part in line.split("|")]
    assert parts[1] == "INFO"
    assert parts[2] == "services.registry"
    assert parts[3] == "web state=connected"
    assert "\033[" not in line


def test_component_color_prefers_specific_prefix() -> None:
    """The registry logger gets its own color."""
    formatter = ColorfulFormatter()

    color = formatter._get_component_color
    assert color("multiconnect_mcp.services.registry") == COLORS["bright_magenta"]
    assert color("multiconnect_mcp.services.browser") == COLORS["bright_blue"]
    assert color("asyncssh") == COLORS["white"]


def test_highlights_state_and_fingerprint() -> None:
    """Session states and fingerprints are colored."""
    formatter = ColorfulFormatter()

    line = formatter.format(make_record("web state=disconnected key SHA256:abc+/="))

    assert f"state={COLORS['bright_yellow']}disconnected" in line
    assert f"{COLORS['cyan']}SHA256:abc+/=" in line


def test_exception_appended() -> None:
    """Tracebacks follow the formatted line."""
    formatter = ColorfulFormatter(use_colors=False)
    try:
        raise ValueError("boom")
    except ValueError:
        record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", None, None)
        record.exc_info = sys.exc_info()

    assert "ValueError: boom" in formatter.format(record)


@pytest.mark.parametrize(
    "message,marker",
    [
        ("Server ready", ">>>"),
        ("Shutting down", "<<<"),
        ("Connect to web failed", "!!"),
        ("web: host key changed", "!"),
        ("web state=connected", "+"),
        ("web state=disconnected (terminal closed)", "-"),
    ],
)
def test_request_formatter_markers(message: str, marker: str) -> None:
    """Each event kind gets a leading marker."""
    line = MCPRequestFormatter().format(make_record(message))

    assert line.split(COLORS["reset"], 1)[0].endswith(marker)


def test_request_formatter_without_colors() -> None:
    """No marker column without colors."""
    line = MCPRequestFormatter(use_colors=False).format(make_record("Server ready"))

    assert not line.startswith(">>>")
