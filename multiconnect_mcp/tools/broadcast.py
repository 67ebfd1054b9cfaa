"""Command broadcast tools."""

import logging

from mcp_ui_server.core import UIResource

from multiconnect_mcp.models import BroadcastResult
from multiconnect_mcp.services.state import get_deps
from multiconnect_mcp.ui import create_broadcast_panel_ui

logger = logging.getLogger(__name__)


def _format_broadcast_results(results: list[BroadcastResult]) -> str:
    """Format broadcast results for display.

    One header per target, failed targets flagged with their error.
    """
    lines = []

    for r in results:
        header = f"═══ {r.alias} "
        if r.success:
            header += "═" * (60 - len(header))
        else:
            header += "[FAILED] " + "═" * (50 - len(header))

        lines.append(header)

        if r.success:
            lines.append(f"sent: {r.command}")
        else:
            lines.append(f"Error: {r.error}")

        lines.append("")

    success_count = sum(1 for r in results if r.success)
    lines.append(f"─── {success_count}/{len(results)} terminals received the command ───")

    return "\n".join(lines)


async def broadcast_command(command: str, aliases: list[str] | None = None) -> str:
    """Type one command into the terminals of several connected sessions.

    Delivery is fire-and-forget: use read_terminal to see each result.

    Args:
        command: Command line to send
        aliases: Target connections (default: every connected session)

    Returns:
        Per-target delivery report
    """
    broadcaster = get_deps().broadcaster
    if aliases is not None and not aliases:
        return "Error: Select at least one connection."
    try:
        results = broadcaster.send(command, aliases)
    except ValueError as e:
        return f"Error: {e}"
    if not results:
        return "Error: No connected sessions to broadcast to."
    return _format_broadcast_results(results)


async def broadcast_panel() -> list[UIResource] | str:
    """Show the broadcast panel for the currently connected sessions.

    Returns:
        Interactive panel UI when enabled, otherwise the target list
    """
    deps = get_deps()
    targets = []
    for alias in deps.broadcaster.targets:
        record = deps.registry.get_record(alias)
        targets.append((alias, record.label if record else alias))

    if deps.config.enable_ui:
        return [create_broadcast_panel_ui(targets)]
    if not targets:
        return "No active connections."
    lines = ["Broadcast targets:"]
    lines.extend(f"  {alias} ({label})" for alias, label in targets)
    return "\n".join(lines)
