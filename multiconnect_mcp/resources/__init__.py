"""MCP resources for multiconnect."""

from multiconnect_mcp.resources.connections import (
    connection_resource,
    connection_tree_resource,
)

__all__ = [
    "connection_resource",
    "connection_tree_resource",
]
