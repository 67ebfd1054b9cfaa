"""Colorful console logging formatter."""

import logging
import re
from datetime import datetime

# ANSI color codes
COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "white": "\033[37m",
    "cyan": "\033[36m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "bright_black": "\033[90m",
    "bright_red": "\033[91m",
    "bright_green": "\033[92m",
    "bright_yellow": "\033[93m",
    "bright_blue": "\033[94m",
    "bright_magenta": "\033[95m",
    "bright_cyan": "\033[96m",
    "bg_red": "\033[41m",
}

# Log level colors
LEVEL_COLORS = {
    "DEBUG": COLORS["bright_black"],
    "INFO": COLORS["bright_green"],
    "WARNING": COLORS["bright_yellow"],
    "ERROR": COLORS["bright_red"],
    "CRITICAL": COLORS["bg_red"] + COLORS["white"] + COLORS["bold"],
}

# Component colors for logger names
COMPONENT_COLORS = {
    "multiconnect_mcp.server": COLORS["bright_cyan"],
    "multiconnect_mcp.services.registry": COLORS["bright_magenta"],
    "multiconnect_mcp.services": COLORS["bright_blue"],
    "multiconnect_mcp.tools": COLORS["bright_blue"],
    "multiconnect_mcp.resources": COLORS["cyan"],
    "multiconnect_mcp.middleware": COLORS["yellow"],
    "multiconnect_mcp.config": COLORS["green"],
    "default": COLORS["white"],
}

PACKAGE_PREFIX = "multiconnect_mcp."

STATE_COLORS = {
    "connected": COLORS["bright_green"],
    "connecting": COLORS["bright_cyan"],
    "disconnected": COLORS["bright_yellow"],
}

_URI_RE = re.compile(r"(\w+://[^\s]+)")
_DURATION_RE = re.compile(r"(\d+\.?\d*ms)")
_SSH_TARGET_RE = re.compile(r"([\w.\-]+@[\w.\-]+:\d+)")
_STATE_RE = re.compile(r"state=(connected|connecting|disconnected)\b")
_FINGERPRINT_RE = re.compile(r"(SHA256:[A-Za-z0-9+/=]+)")


class ColorfulFormatter(logging.Formatter):
    """Colorful log formatter with component highlighting."""

    def __init__(self, use_colors: bool = True) -> None:
        """Initialize the formatter.

        Args:
            use_colors: Whether to use ANSI colors.
        """
        super().__init__()
        self.use_colors = use_colors

    def _colorize(self, text: str, color: str) -> str:
        if not self.use_colors:
            return text
        return f"{color}{text}{COLORS['reset']}"

    def _get_component_color(self, name: str) -> str:
        """Get color for a logger name (first matching prefix wins)."""
        for prefix, color in COMPONENT_COLORS.items():
            if prefix != "default" and name.startswith(prefix):
                return color
        return COMPONENT_COLORS["default"]

    def _format_timestamp(self, record: logging.LogRecord) -> str:
        dt = datetime.fromtimestamp(record.created)
        return f"{dt.strftime('%H:%M:%S')}.{int(record.msecs):03d} {dt.strftime('%m/%d')}"

    def _format_level(self, record: logging.LogRecord) -> str:
        color = LEVEL_COLORS.get(record.levelname, COLORS["white"])
        return self._colorize(f"{record.levelname:<8}", color)

    def _format_component(self, record: logging.LogRecord) -> str:
        name = record.name
        if name.startswith(PACKAGE_PREFIX):
            name = name[len(PACKAGE_PREFIX) :]
        color = self._get_component_color(record.name)
        return self._colorize(f"{name:<20}", color)

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as ``time | level | component | message``."""
        timestamp = self._colorize(self._format_timestamp(record), COLORS["dim"])
        level = self._format_level(record)
        component = self._format_component(record)
        sep = self._colorize("|", COLORS["dim"])
        message = self._highlight_message(record.getMessage())

        line = f"{timestamp} {sep} {level} {sep} {component} {sep} {message}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line

    def _highlight_message(self, message: str) -> str:
        """Highlight URIs, durations, SSH targets, states and fingerprints."""
        if not self.use_colors:
            return message

        reset = COLORS["reset"]
        if "://" in message:
            message = _URI_RE.sub(f"{COLORS['bright_blue']}\\1{reset}", message)
        if "ms" in message:
            message = _DURATION_RE.sub(f"{COLORS['bright_yellow']}\\1{reset}", message)
        if "@" in message:
            message = _SSH_TARGET_RE.sub(f"{COLORS['bright_magenta']}\\1{reset}", message)
        if "state=" in message:
            message = _STATE_RE.sub(
                lambda m: f"state={STATE_COLORS[m.group(1)]}{m.group(1)}{reset}",
                message,
            )
        if "SHA256:" in message:
            message = _FINGERPRINT_RE.sub(f"{COLORS['cyan']}\\1{reset}", message)
        return message


class MCPRequestFormatter(ColorfulFormatter):
    """Extended formatter with a leading marker per event kind."""

    def format(self, record: logging.LogRecord) -> str:
        """Format with an event marker column."""
        base = super().format(record)
        if not self.use_colors:
            return base

        message = record.getMessage().lower()
        if "starting" in message or "ready" in message:
            return f"{COLORS['bright_green']}>>>{COLORS['reset']} {base}"
        if "shutting down" in message or "shutdown" in message:
            return f"{COLORS['bright_red']}<<<{COLORS['reset']} {base}"
        if "error" in message or "failed" in message:
            return f"{COLORS['bright_red']}!!{COLORS['reset']}  {base}"
        if "changed" in message or "slow" in message:
            return f"{COLORS['bright_yellow']}!{COLORS['reset']}   {base}"
        if "opening" in message or "state=connected" in message:
            return f"{COLORS['bright_cyan']}+{COLORS['reset']}   {base}"
        if "closing" in message or "state=disconnected" in message:
            return f"{COLORS['bright_yellow']}-{COLORS['reset']}   {base}"
        return f"    {base}"
