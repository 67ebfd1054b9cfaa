"""Remote file browser tools."""

import logging
import posixpath

from mcp_ui_server.core import UIResource

from multiconnect_mcp.errors import MultiConnectError
from multiconnect_mcp.models import RemoteEntry, RemoteFileHandle
from multiconnect_mcp.services.state import get_deps
from multiconnect_mcp.ui import create_remote_explorer_ui

logger = logging.getLogger(__name__)


def _format_listing(alias: str, path: str, entries: list[RemoteEntry]) -> str:
    lines = [f"{alias}:{path}"]
    if not entries:
        lines.append("  (empty)")
    for entry in entries:
        if entry.is_directory:
            lines.append(f"  {entry.name}/")
        else:
            size = "" if entry.size is None else f"  ({entry.size} bytes)"
            lines.append(f"  {entry.name}{size}")
    return "\n".join(lines)


def _format_handle(handle: RemoteFileHandle) -> str:
    return (
        f"Opened {handle.alias}:{handle.remote_path}\n"
        f"Local copy: {handle.local_path}\n"
        f"Edit the local copy, then call save_remote_file or close_remote_file."
    )


def _listed_path(path: str, entries: list[RemoteEntry]) -> str:
    if entries:
        return posixpath.dirname(entries[0].path) or "/"
    return path


async def list_remote_dir(alias: str, path: str = ".") -> list[UIResource] | str:
    """List a remote directory of a connected session.

    Directories come first, then files, each sorted case-insensitively.

    Args:
        alias: Connected connection
        path: Remote directory (default: login directory)

    Returns:
        Interactive explorer UI when enabled, otherwise a text listing
    """
    deps = get_deps()
    try:
        entries = await deps.registry.browser(alias).list(path)
    except MultiConnectError as e:
        return f"Error: {e}"

    listed = _listed_path(path, entries)
    if deps.config.enable_ui:
        return [create_remote_explorer_ui(alias, listed, entries)]
    return _format_listing(alias, listed, entries)


async def open_remote_file(alias: str, path: str) -> str:
    """Download a remote file to a local copy for editing.

    Args:
        alias: Connected connection
        path: Remote file path

    Returns:
        Local copy location or error message
    """
    try:
        handle = await get_deps().registry.browser(alias).open(path)
    except MultiConnectError as e:
        return f"Error: {e}"
    return _format_handle(handle)


async def save_remote_file(alias: str, local_path: str) -> str:
    """Upload an edited local copy back to the server.

    The local copy is deleted after a successful upload and kept if the
    upload fails.

    Args:
        alias: Connection the file was opened from
        local_path: Local copy returned by open_remote_file

    Returns:
        Confirmation or error message
    """
    try:
        remote_path = await get_deps().registry.browser(alias).save(local_path)
    except MultiConnectError as e:
        return f"Error: {e}"
    return f"Saved to {alias}:{remote_path}"


async def close_remote_file(alias: str, local_path: str) -> str:
    """Discard a local copy without uploading it.

    Args:
        alias: Connection the file was opened from
        local_path: Local copy returned by open_remote_file

    Returns:
        Status message
    """
    try:
        closed = get_deps().registry.browser(alias).close(local_path)
    except MultiConnectError as e:
        return f"Error: {e}"
    if not closed:
        return f"Error: {local_path} is not an open remote file."
    return f"Closed {local_path} without saving."


async def create_remote_file(alias: str, parent: str, name: str) -> str:
    """Create an empty remote file and open it for editing.

    Args:
        alias: Connected connection
        parent: Remote directory to create the file in
        name: New file name

    Returns:
        Local copy location or error message
    """
    try:
        handle = await get_deps().registry.browser(alias).create_file(parent, name)
    except (MultiConnectError, ValueError) as e:
        return f"Error: {e}"
    return _format_handle(handle)


async def create_remote_folder(alias: str, parent: str, name: str) -> str:
    """Create a remote directory.

    Args:
        alias: Connected connection
        parent: Remote directory to create the folder in
        name: New folder name

    Returns:
        Refreshed listing of the parent or error message
    """
    try:
        entries = await get_deps().registry.browser(alias).create_folder(parent, name)
    except (MultiConnectError, ValueError) as e:
        return f"Error: {e}"
    return _format_listing(alias, _listed_path(parent, entries), entries)
