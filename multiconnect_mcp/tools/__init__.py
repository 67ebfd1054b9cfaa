"""MCP tools for multiconnect."""

from multiconnect_mcp.tools.broadcast import broadcast_command, broadcast_panel
from multiconnect_mcp.tools.connections import (
    add_connection,
    connect,
    disconnect,
    list_connections,
    move_to_folder,
    read_terminal,
    remove_connection,
    select_connection,
)
from multiconnect_mcp.tools.files import (
    close_remote_file,
    create_remote_file,
    create_remote_folder,
    list_remote_dir,
    open_remote_file,
    save_remote_file,
)
from multiconnect_mcp.tools.prompts import ContextPrompter

__all__ = [
    "ContextPrompter",
    "add_connection",
    "broadcast_command",
    "broadcast_panel",
    "close_remote_file",
    "connect",
    "create_remote_file",
    "create_remote_folder",
    "disconnect",
    "list_connections",
    "list_remote_dir",
    "move_to_folder",
    "open_remote_file",
    "read_terminal",
    "remove_connection",
    "save_remote_file",
    "select_connection",
]
