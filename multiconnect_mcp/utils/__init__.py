"""Utilities for multiconnect."""

from multiconnect_mcp.utils.console import ColorfulFormatter, MCPRequestFormatter
from multiconnect_mcp.utils.validation import (
    join_remote,
    normalize_folder_tag,
    validate_alias,
    validate_hostname,
    validate_port,
    validate_remote_name,
)

__all__ = [
    "ColorfulFormatter",
    "MCPRequestFormatter",
    "join_remote",
    "normalize_folder_tag",
    "validate_alias",
    "validate_hostname",
    "validate_port",
    "validate_remote_name",
]
