"""MCP-UI resources for multiconnect."""

from multiconnect_mcp.ui.generators import (
    create_broadcast_panel_ui,
    create_remote_explorer_ui,
)

__all__ = [
    "create_broadcast_panel_ui",
    "create_remote_explorer_ui",
]
