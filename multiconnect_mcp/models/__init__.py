"""Data models for multiconnect."""

from multiconnect_mcp.models.broadcast import BroadcastResult
from multiconnect_mcp.models.connection import ConnectionRecord
from multiconnect_mcp.models.remote import RemoteEntry, RemoteFileHandle
from multiconnect_mcp.models.session import (
    KnownHostStatus,
    LiveSession,
    SessionState,
)

__all__ = [
    "BroadcastResult",
    "ConnectionRecord",
    "KnownHostStatus",
    "LiveSession",
    "RemoteEntry",
    "RemoteFileHandle",
    "SessionState",
]
