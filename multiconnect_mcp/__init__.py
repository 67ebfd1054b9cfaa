"""multiconnect MCP server: SSH multi-session manager."""

__version__ = "0.1.0"
