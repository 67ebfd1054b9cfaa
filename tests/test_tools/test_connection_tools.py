"""Tests for connection management tools."""

import pytest

from multiconnect_mcp.dependencies import Dependencies
from multiconnect_mcp.tools import (
    add_connection,
    connect,
    disconnect,
    list_connections,
    move_to_folder,
    read_terminal,
    remove_connection,
    select_connection,
)


@pytest.mark.asyncio
async def test_list_connections_shows_state(deps: Dependencies) -> None:
    """Every record is listed in file order with its session state."""
    await deps.registry.reload()
    await connect("web", password="pw")

    result = await list_connections()

    lines = result.splitlines()
    assert lines[0] == "Connections:"
    assert lines[1] == "  ● web (connected) -> deploy@10.0.0.1"
    assert lines[2].startswith("  ○ keyed (disconnected) -> ops@10.0.0.2 key=")
    assert lines[2].endswith("[prod]")
    assert lines[3] == "  ○ anon (disconnected) -> 10.0.0.3"


@pytest.mark.asyncio
async def test_list_connections_empty(deps: Dependencies) -> None:
    """An empty config reports that nothing is configured."""
    for alias in ("web", "keyed", "anon"):
        deps.config.store.remove_by_alias(alias)
    await deps.registry.reload()

    assert await list_connections() == "No SSH connections configured."


@pytest.mark.asyncio
async def test_add_connection(deps: Dependencies) -> None:
    """A new connection is written to the config file."""
    result = await add_connection("db", "10.0.0.9", user="admin", folder_tag="data")

    assert result == "Added connection 'db' -> admin@10.0.0.9"
    record = deps.config.store.get("db")
    assert record is not None
    assert record.folder_tag == "data"


@pytest.mark.asyncio
async def test_add_connection_duplicate(deps: Dependencies) -> None:
    """Duplicate aliases come back as an error string."""
    result = await add_connection("web", "10.0.0.9")

    assert result == "Error: Connection 'web' already exists"


@pytest.mark.asyncio
async def test_add_connection_invalid_port(deps: Dependencies) -> None:
    """Out-of-range ports are rejected."""
    result = await add_connection("db", "10.0.0.9", port=0)

    assert result.startswith("Error: Port out of range")
    assert deps.config.store.get("db") is None


@pytest.mark.asyncio
async def test_connect_with_password(deps: Dependencies) -> None:
    """A password argument answers the password prompt."""
    result = await connect("web", password="pw")

    assert result == "Connected to 10.0.0.1 (deploy) as 'web'."
    assert deps.connector.credentials[0].password == "pw"


@pytest.mark.asyncio
async def test_connect_twice(deps: Dependencies) -> None:
    """A second connect reports the existing session."""
    await connect("web", password="pw")

    result = await connect("web", password="pw")

    assert result == "'web' is already connected."
    assert len(deps.connector.clients) == 1


@pytest.mark.asyncio
async def test_connect_without_password(deps: Dependencies) -> None:
    """No password and no client to ask means the connect is cancelled."""
    result = await connect("web")

    assert result == (
        "Error: Connection to 'web' failed: Connection cancelled. No password provided."
    )
    assert deps.connector.clients == []


@pytest.mark.asyncio
async def test_connect_with_username(deps: Dependencies) -> None:
    """The username argument fills in a record without a user."""
    result = await connect("anon", username="guest", password="pw")

    assert result == "Connected to 10.0.0.3 (guest) as 'anon'."


@pytest.mark.asyncio
async def test_connect_changed_key_needs_approval(deps: Dependencies) -> None:
    """A changed host key is refused unless approved."""
    deps.config.host_keys.stored[("10.0.0.1", 22)] = "SHA256:oldkey"
    deps.config.host_keys.current[("10.0.0.1", 22)] = "SHA256:newkey"
    deps.connector.fingerprint = "SHA256:newkey"

    refused = await connect("web", password="pw")
    approved = await connect("web", password="pw", approve_host_key=True)

    assert refused.startswith("Error: Connection to 'web' failed: Host key for web changed")
    assert approved == "Connected to 10.0.0.1 (deploy) as 'web'."
    assert deps.config.host_keys.stored[("10.0.0.1", 22)] == "SHA256:newkey"


@pytest.mark.asyncio
async def test_connect_unknown_alias(deps: Dependencies) -> None:
    """Unknown aliases are reported, not raised."""
    result = await connect("ghost", password="pw")

    assert result == "Error: Connection to 'ghost' failed: Unknown connection 'ghost'"


@pytest.mark.asyncio
async def test_disconnect(deps: Dependencies) -> None:
    """disconnect reports whether there was a session."""
    await connect("web", password="pw")

    assert await disconnect("web") == "Disconnected 'web'."
    assert await disconnect("web") == "'web' is not connected."


@pytest.mark.asyncio
async def test_remove_connection(deps: Dependencies) -> None:
    """Removing deletes the block from the config file."""
    assert await remove_connection("web") == "Removed connection 'web'."
    assert deps.config.store.get("web") is None


@pytest.mark.asyncio
async def test_remove_connection_without_user(deps: Dependencies) -> None:
    """A record without a user cannot be removed."""
    result = await remove_connection("anon")

    assert result == "Error: Cannot remove 'anon': host and user are required"


@pytest.mark.asyncio
async def test_move_to_folder(deps: Dependencies) -> None:
    """Folder moves report the new location."""
    assert await move_to_folder("web", "/prod//web/") == "Moved 'web' to prod/web."
    assert await move_to_folder("web") == "Moved 'web' to the top level."
    assert await move_to_folder("ghost", "x") == "Error: Unknown connection 'ghost'"


@pytest.mark.asyncio
async def test_select_disconnected(deps: Dependencies) -> None:
    """An idle alias shows the placeholder title."""
    assert await select_connection("web") == "No Active Connection"


@pytest.mark.asyncio
async def test_select_connected_lists_open_files(deps: Dependencies) -> None:
    """A connected alias shows its title, output and open files."""
    session = await deps.registry.connect("web")
    session.terminal._append("$ uptime\n up 3 days\n")
    await deps.registry.browser("web").open("/etc/hosts")

    result = await select_connection("web")

    lines = result.splitlines()
    assert lines[0] == "Connected to 10.0.0.1"
    assert "$ uptime" in result
    assert "Open files:" in lines
    assert any(line.startswith("  /etc/hosts -> ") for line in lines)


@pytest.mark.asyncio
async def test_read_terminal(deps: Dependencies) -> None:
    """Buffered output is returned once."""
    await connect("web", password="pw")
    deps.registry.terminal("web")._append("hello\n")

    assert await read_terminal("web", clear=False) == "hello\n"
    assert await read_terminal("web") == "hello\n"
    assert await read_terminal("web") == "(no new output)"


@pytest.mark.asyncio
async def test_read_terminal_not_connected(deps: Dependencies) -> None:
    """An idle alias has no terminal."""
    assert await read_terminal("web") == "Error: 'web' has no open terminal."
