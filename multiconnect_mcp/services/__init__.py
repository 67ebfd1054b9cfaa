"""Services for multiconnect."""

from multiconnect_mcp.services.broadcast import CommandBroadcaster
from multiconnect_mcp.services.browser import RemoteFileBrowser, sort_entries
from multiconnect_mcp.services.connector import Credentials, SSHConnector
from multiconnect_mcp.services.registry import (
    NO_CONNECTION_TITLE,
    Selection,
    SessionRegistry,
)
from multiconnect_mcp.services.terminal import RemoteTerminal

__all__ = [
    "NO_CONNECTION_TITLE",
    "CommandBroadcaster",
    "Credentials",
    "RemoteFileBrowser",
    "RemoteTerminal",
    "SSHConnector",
    "Selection",
    "SessionRegistry",
    "sort_entries",
]
