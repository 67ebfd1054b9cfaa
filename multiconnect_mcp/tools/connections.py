"""Connection management tools.

Each tool returns readable text. Failures come back as ``Error: ...``
strings so the calling model can react instead of seeing a crashed call.
"""

import logging

from fastmcp import Context

from multiconnect_mcp.errors import MultiConnectError
from multiconnect_mcp.models import ConnectionRecord, SessionState
from multiconnect_mcp.services.state import get_deps
from multiconnect_mcp.tools.prompts import ContextPrompter

logger = logging.getLogger(__name__)

STATE_ICONS = {
    SessionState.CONNECTED: "●",
    SessionState.CONNECTING: "◐",
    SessionState.DISCONNECTED: "○",
}


def _describe(record: ConnectionRecord, state: SessionState) -> str:
    folder = f" [{record.folder_tag}]" if record.folder_tag else ""
    auth = f" key={record.identity_file}" if record.identity_file else ""
    return (
        f"  {STATE_ICONS[state]} {record.alias} ({state.value}) "
        f"-> {record.label}{auth}{folder}"
    )


async def list_connections() -> str:
    """List configured SSH connections with their session state.

    Returns:
        One line per connection, in config file order
    """
    registry = get_deps().registry
    records = registry.list_connections()
    if not records:
        return "No SSH connections configured."

    lines = ["Connections:"]
    for record in records:
        lines.append(_describe(record, registry.state(record.alias)))
    return "\n".join(lines)


async def add_connection(
    alias: str,
    hostname: str,
    user: str | None = None,
    port: int = 22,
    identity_file: str | None = None,
    folder_tag: str | None = None,
) -> str:
    """Add a new SSH connection to the config file.

    Args:
        alias: Unique name for the connection (the ``Host`` value)
        hostname: Server address
        user: Login user (prompted on connect when omitted)
        port: SSH port
        identity_file: Private key path; password auth is used when omitted
        folder_tag: Display folder such as ``prod/web``

    Returns:
        Confirmation or error message
    """
    registry = get_deps().registry
    try:
        record = registry.add_connection(
            ConnectionRecord(
                alias=alias,
                hostname=hostname,
                user=user,
                port=port,
                identity_file=identity_file,
                folder_tag=folder_tag,
            )
        )
    except MultiConnectError as e:
        return f"Error: {e}"
    return f"Added connection '{record.alias}' -> {record.label}"


async def connect(
    alias: str,
    username: str | None = None,
    password: str | None = None,
    passphrase: str | None = None,
    approve_host_key: bool | None = None,
    ctx: Context | None = None,
) -> str:
    """Open an SSH session with an interactive terminal for a connection.

    Missing credentials are requested from the user through the client.
    Secrets are kept in memory for the session only.

    Args:
        alias: Connection to open
        username: Login user when the connection has none configured
        password: Password for password authentication
        passphrase: Passphrase for an encrypted private key
        approve_host_key: Answer to a changed host key prompt
        ctx: MCP request context

    Returns:
        Connection status or error message
    """
    registry = get_deps().registry
    prompter = ContextPrompter(
        ctx,
        username=username,
        password=password,
        passphrase=passphrase,
        approve_host_key=approve_host_key,
    )
    already = registry.state(alias) is not SessionState.DISCONNECTED
    try:
        session = await registry.connect(alias, prompter=prompter)
    except MultiConnectError as e:
        return f"Error: Connection to '{alias}' failed: {e}"

    if already:
        return f"'{alias}' is already {session.state.value}."
    selection = registry.select(alias)
    return f"{selection.title} ({session.username}) as '{alias}'."


async def disconnect(alias: str) -> str:
    """Close the SSH session of a connection.

    Args:
        alias: Connection to close

    Returns:
        Status message
    """
    closed = await get_deps().registry.disconnect(alias)
    if not closed:
        return f"'{alias}' is not connected."
    return f"Disconnected '{alias}'."


async def remove_connection(alias: str) -> str:
    """Delete a connection from the config file, closing its session.

    Args:
        alias: Connection to delete

    Returns:
        Confirmation or error message
    """
    try:
        await get_deps().registry.remove_connection(alias)
    except MultiConnectError as e:
        return f"Error: {e}"
    return f"Removed connection '{alias}'."


async def move_to_folder(alias: str, folder_tag: str | None = None) -> str:
    """Move a connection into a display folder.

    Args:
        alias: Connection to move
        folder_tag: Slash-separated folder path; empty moves it to the top level

    Returns:
        Confirmation or error message
    """
    try:
        record = get_deps().registry.move_to_folder(alias, folder_tag)
    except MultiConnectError as e:
        return f"Error: {e}"
    return f"Moved '{alias}' to {record.folder_tag or 'the top level'}."


async def select_connection(alias: str) -> str:
    """Show what the terminal and file views display for a connection.

    Args:
        alias: Connection to select

    Returns:
        Title line, plus the latest terminal output when connected
    """
    selection = get_deps().registry.select(alias)
    if not selection.connected:
        return selection.title

    lines = [selection.title]
    if selection.terminal is not None:
        output = selection.terminal.read_output(clear=False)
        if output:
            lines.extend(["", output[-2000:]])
    if selection.browser is not None and selection.browser.handles:
        lines.append("")
        lines.append("Open files:")
        for handle in selection.browser.handles:
            lines.append(f"  {handle.remote_path} -> {handle.local_path}")
    return "\n".join(lines)


async def read_terminal(alias: str, clear: bool = True) -> str:
    """Read buffered output from a connection's interactive terminal.

    Args:
        alias: Connected connection
        clear: Drop the returned output from the buffer

    Returns:
        Terminal output or error message
    """
    terminal = get_deps().registry.terminal(alias)
    if terminal is None:
        return f"Error: '{alias}' has no open terminal."
    output = terminal.read_output(clear=clear)
    return output or "(no new output)"
