"""Command broadcast to several live terminals.

Delivery is fire-and-forget: the command is typed into each target
terminal and nothing waits for it to finish. One unavailable target
never blocks delivery to the others.
"""

import logging
from collections.abc import Callable, Iterable

from multiconnect_mcp.errors import ProtocolError, TargetUnavailable
from multiconnect_mcp.models import BroadcastResult, LiveSession
from multiconnect_mcp.services.terminal import RemoteTerminal

logger = logging.getLogger(__name__)

TargetListener = Callable[[list[str]], None]


class CommandBroadcaster:
    """Types one command into many session terminals."""

    def __init__(self, terminal_lookup: Callable[[str], RemoteTerminal | None]):
        """Initialize broadcaster.

        Args:
            terminal_lookup: Returns the live terminal for an alias, if any
        """
        self._lookup = terminal_lookup
        self._targets: list[str] = []
        self._listeners: list[TargetListener] = []

    @property
    def targets(self) -> list[str]:
        """Aliases currently eligible as broadcast targets."""
        return list(self._targets)

    def add_listener(self, listener: TargetListener) -> Callable[[], None]:
        """Subscribe to target list changes.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def update_targets(self, sessions: Iterable[LiveSession]) -> list[str]:
        """Recompute eligible targets from the current sessions.

        Only Connected sessions are eligible.

        Returns:
            New target list
        """
        self._targets = [session.alias for session in sessions if session.is_connected]
        logger.debug("Broadcast targets: %s", ", ".join(self._targets) or "(none)")
        for listener in list(self._listeners):
            listener(self.targets)
        return self.targets

    def send(
        self,
        command: str,
        target_aliases: Iterable[str] | None = None,
    ) -> list[BroadcastResult]:
        """Type a command plus newline into each target terminal.

        Args:
            command: Command line to send
            target_aliases: Aliases to send to (default: every current target)

        Returns:
            One BroadcastResult per distinct alias, in request order

        Raises:
            ValueError: If the command is blank
        """
        if not command or not command.strip():
            raise ValueError("Command cannot be empty")

        aliases = list(target_aliases) if target_aliases is not None else self.targets
        results: list[BroadcastResult] = []
        for alias in dict.fromkeys(aliases):
            try:
                terminal = self._lookup(alias)
                if terminal is None or terminal.is_closed:
                    raise TargetUnavailable(alias)
                terminal.send_line(command)
            except (TargetUnavailable, ProtocolError) as e:
                logger.warning("Broadcast to %s failed: %s", alias, e)
                results.append(
                    BroadcastResult(alias=alias, command=command, success=False, error=str(e))
                )
            else:
                results.append(BroadcastResult(alias=alias, command=command, success=True))

        delivered = sum(1 for r in results if r.success)
        logger.info("Broadcast delivered to %d/%d target(s)", delivered, len(results))
        return results
