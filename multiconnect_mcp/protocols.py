"""Protocol interfaces for host collaborators.

The registry and file browser talk to the outside world (the person at
the keyboard and whatever edits local files) only through these
interfaces. The MCP server provides elicitation-backed implementations;
tests pass simple fakes.

Usage Example:

    class AlwaysYes:
        async def ask_text(self, prompt, default=None):
            return default
        async def ask_secret(self, prompt, kind="password"):
            return None
        async def confirm(self, prompt):
            return True

    registry = SessionRegistry(..., prompter=AlwaysYes())
"""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Protocol, runtime_checkable

from multiconnect_mcp.models import RemoteFileHandle

logger = logging.getLogger(__name__)

StateListener = Callable[[str | None], None]
"""Called with the affected alias after every registry mutation (None on reload)."""


@runtime_checkable
class Prompter(Protocol):
    """Asks the user for missing values during an operation.

    Every method returns None (or False) when the user declines; the
    caller treats that as a terminal failure of the attempt.
    """

    async def ask_text(self, prompt: str, default: str | None = None) -> str | None:
        """Ask for a plain value.

        Args:
            prompt: Question shown to the user
            default: Suggested value

        Returns:
            Entered value, or None if declined
        """
        ...

    async def ask_secret(self, prompt: str, kind: str = "password") -> str | None:
        """Ask for a password or passphrase.

        Args:
            prompt: Question shown to the user
            kind: ``"password"`` or ``"passphrase"`` (for a private key)

        Returns:
            Entered secret, or None if declined
        """
        ...

    async def confirm(self, prompt: str) -> bool:
        """Ask a yes/no question.

        Returns:
            True only on explicit approval
        """
        ...


@runtime_checkable
class EditorHost(Protocol):
    """Opens local copies of remote files for editing."""

    async def open_document(self, handle: RemoteFileHandle) -> None:
        """Present a downloaded file to the user.

        Args:
            handle: Mapping of the local copy to its remote path
        """
        ...

    def close_document(self, handle: RemoteFileHandle) -> None:
        """Forget a local copy that was saved or discarded."""
        ...


class DecliningPrompter:
    """Prompter that declines everything.

    Used when no interactive channel is available.
    """

    async def ask_text(self, prompt: str, default: str | None = None) -> str | None:
        logger.debug("Declining prompt (non-interactive): %s", prompt)
        return None

    async def ask_secret(self, prompt: str, kind: str = "password") -> str | None:
        logger.debug("Declining secret prompt (non-interactive): %s", prompt)
        return None

    async def confirm(self, prompt: str) -> bool:
        logger.debug("Declining confirmation (non-interactive): %s", prompt)
        return False


class LoggingEditorHost:
    """Editor host that tracks the documents currently open.

    MCP clients edit the local path themselves and call the save or
    close tools afterwards.
    """

    def __init__(self) -> None:
        self.opened: dict[Path, RemoteFileHandle] = {}

    async def open_document(self, handle: RemoteFileHandle) -> None:
        self.opened[handle.local_path] = handle
        logger.info(
            "Remote file %s:%s available at %s",
            handle.alias,
            handle.remote_path,
            handle.local_path,
        )

    def close_document(self, handle: RemoteFileHandle) -> None:
        if self.opened.pop(handle.local_path, None) is not None:
            logger.debug("Closed %s:%s", handle.alias, handle.remote_path)


__all__ = [
    "DecliningPrompter",
    "EditorHost",
    "LoggingEditorHost",
    "Prompter",
    "StateListener",
]
