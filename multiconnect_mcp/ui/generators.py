"""UI resource generators for the remote explorer and broadcast panel."""

from mcp_ui_server import create_ui_resource
from mcp_ui_server.core import UIResource

from multiconnect_mcp.models import RemoteEntry
from multiconnect_mcp.ui.templates import (
    get_broadcast_panel_html,
    get_remote_explorer_html,
)


def create_remote_explorer_ui(
    alias: str, path: str, entries: list[RemoteEntry]
) -> UIResource:
    """Create interactive file explorer UI for a remote directory.

    Args:
        alias: Connection alias
        path: Listed directory
        entries: Sorted directory entries

    Returns:
        UIResource with rawHtml content
    """
    html = get_remote_explorer_html(alias, path, entries)
    # Construct URI without double slashes
    return create_ui_resource({
        "uri": f"ui://multiconnect-explorer/{alias}/{path.lstrip('/')}",
        "content": {"type": "rawHtml", "htmlString": html},
        "encoding": "text",
    })


def create_broadcast_panel_ui(targets: list[tuple[str, str]]) -> UIResource:
    """Create the command broadcast panel UI.

    Args:
        targets: (alias, label) pairs of connected sessions

    Returns:
        UIResource with rawHtml content
    """
    html = get_broadcast_panel_html(targets)
    return create_ui_resource({
        "uri": "ui://multiconnect-broadcast/panel",
        "content": {"type": "rawHtml", "htmlString": html},
        "encoding": "text",
    })
