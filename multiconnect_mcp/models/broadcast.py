"""Broadcast operation results for multi-session commands."""

from dataclasses import dataclass


@dataclass
class BroadcastResult:
    """Delivery outcome of a broadcast command for a single alias."""

    alias: str
    command: str
    success: bool
    error: str | None = None
