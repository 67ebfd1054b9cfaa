"""Live session and host key data models."""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import asyncssh

    from multiconnect_mcp.services.terminal import RemoteTerminal


class SessionState(Enum):
    """Lifecycle state of an alias."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass
class LiveSession:
    """In-memory bundle for an active alias.

    Owns its SSH client exclusively. Secrets live here only and are wiped
    on teardown.
    """

    alias: str
    state: SessionState = SessionState.CONNECTING
    client: "asyncssh.SSHClientConnection | None" = None
    terminal: "RemoteTerminal | None" = None
    username: str | None = None
    password: str | None = None
    passphrase: str | None = None

    @property
    def is_connected(self) -> bool:
        """True once the handshake finished and the client is live."""
        return self.state is SessionState.CONNECTED and self.client is not None

    def clear_secrets(self) -> None:
        """Drop transient credentials."""
        self.password = None
        self.passphrase = None


@dataclass(frozen=True)
class KnownHostStatus:
    """Result of a trust store lookup."""

    exists: bool
    fingerprint: str | None = None
