"""Connection tree and detail resources."""

from dataclasses import dataclass, field

from fastmcp.exceptions import ResourceError

from multiconnect_mcp.errors import NotConnectedError
from multiconnect_mcp.models import ConnectionRecord, SessionState
from multiconnect_mcp.services.state import get_deps


@dataclass
class FolderNode:
    """One folder of the connection tree."""

    name: str
    folders: dict[str, "FolderNode"] = field(default_factory=dict)
    connections: list[ConnectionRecord] = field(default_factory=list)


def build_tree(records: list[ConnectionRecord]) -> FolderNode:
    """Group records by their folder tag.

    Folders keep first-seen order, connections keep file order.
    """
    root = FolderNode(name="")
    for record in records:
        node = root
        for part in record.folder_parts:
            node = node.folders.setdefault(part, FolderNode(name=part))
        node.connections.append(record)
    return root


def render_tree(
    node: FolderNode,
    state_of: dict[str, SessionState],
    depth: int = 0,
) -> list[str]:
    """Indented text lines for a folder node and everything below it."""
    indent = "  " * depth
    lines = []
    for child in node.folders.values():
        lines.append(f"{indent}{child.name}/")
        lines.extend(render_tree(child, state_of, depth + 1))
    for record in node.connections:
        state = state_of.get(record.alias, SessionState.DISCONNECTED)
        lines.append(f"{indent}{record.alias} [{state.value}] {record.label}")
    return lines


async def connection_tree_resource() -> str:
    """Folder tree of all connections with their session state.

    Returns:
        Indented tree, folders before connections at every level
    """
    registry = get_deps().registry
    records = registry.list_connections()
    if not records:
        return "No SSH connections configured."

    state_of = {record.alias: registry.state(record.alias) for record in records}
    lines = ["SSH Connections", "=" * 40, ""]
    lines.extend(render_tree(build_tree(records), state_of))
    return "\n".join(lines)


async def connection_resource(alias: str) -> str:
    """Details and session state of one connection.

    Args:
        alias: Connection alias

    Returns:
        Formatted connection details

    Raises:
        ResourceError: If the alias does not exist
    """
    registry = get_deps().registry
    record = registry.get_record(alias)
    if record is None:
        raise ResourceError(f"Unknown connection '{alias}'")

    session = registry.session(alias)
    state = session.state if session is not None else SessionState.DISCONNECTED
    lines = [
        f"Connection: {record.alias}",
        f"  Host:     {record.hostname}:{record.port}",
        f"  User:     {record.user or (session.username if session else None) or '(prompted)'}",
        f"  Auth:     {'key ' + record.identity_file if record.identity_file else 'password'}",
        f"  Folder:   {record.folder_tag or '(top level)'}",
        f"  State:    {state.value}",
    ]
    for key, value in record.options:
        lines.append(f"  {key}: {value}")

    if state is SessionState.CONNECTED:
        try:
            browser = registry.browser(alias)
        except NotConnectedError:
            browser = None
        if browser is not None and browser.handles:
            lines.append("  Open files:")
            for handle in browser.handles:
                lines.append(f"    {handle.remote_path} -> {handle.local_path}")
    return "\n".join(lines)
