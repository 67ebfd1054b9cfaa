"""SSH client connection factory.

Opens asyncssh connections for connection records. Secrets are handed to
asyncssh in-process and never reach a command line. Host key checking is
switched off at the library level: the registry compares the observed
fingerprint with the trust store itself.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import asyncssh

from multiconnect_mcp.errors import AuthError, ProtocolError
from multiconnect_mcp.models import ConnectionRecord

logger = logging.getLogger(__name__)

# Trust key type -> host key algorithms offered in the handshake
HOST_KEY_ALGORITHMS: dict[str, list[str]] = {
    "ed25519": ["ssh-ed25519"],
    "ecdsa": ["ecdsa-sha2-nistp256", "ecdsa-sha2-nistp384", "ecdsa-sha2-nistp521"],
    "rsa": ["rsa-sha2-512", "rsa-sha2-256", "ssh-rsa"],
}

LostCallback = Callable[[asyncssh.SSHClientConnection, Exception | None], None]


@dataclass
class Credentials:
    """Resolved authentication material for one connect attempt."""

    username: str
    password: str | None = field(default=None, repr=False)
    passphrase: str | None = field(default=None, repr=False)
    identity_file: str | None = None


class _SessionClient(asyncssh.SSHClient):
    """Reports connection loss back to the owner of the connection."""

    def __init__(self, on_lost: LostCallback | None):
        self._on_lost = on_lost
        self._conn: asyncssh.SSHClientConnection | None = None

    def connection_made(self, conn: asyncssh.SSHClientConnection) -> None:
        self._conn = conn

    def connection_lost(self, exc: Exception | None) -> None:
        if self._on_lost is not None and self._conn is not None:
            self._on_lost(self._conn, exc)


class SSHConnector:
    """Creates authenticated SSH connections."""

    def __init__(self, connect_timeout: int = 15, key_type: str = "ed25519"):
        """Initialize connector.

        Args:
            connect_timeout: Seconds allowed for TCP connect, handshake and auth
            key_type: Host key type the trust store works with
        """
        self.connect_timeout = connect_timeout
        self.key_type = key_type

    def key_needs_passphrase(self, identity_file: str) -> bool:
        """Check whether a private key is encrypted.

        Args:
            identity_file: Path to the private key

        Returns:
            True if the key cannot be loaded without a passphrase

        Raises:
            AuthError: If the key is missing or not a readable private key
        """
        path = Path(identity_file).expanduser()
        if not path.is_file():
            raise AuthError(f"Identity file not found: {path}")
        try:
            asyncssh.read_private_key(str(path))
        except asyncssh.KeyEncryptionError:
            return True
        except asyncssh.KeyImportError as e:
            if "passphrase" in str(e).lower():
                return True
            raise AuthError(f"Cannot load identity file {path}: {e}") from e
        except OSError as e:
            raise AuthError(f"Cannot read identity file {path}: {e}") from e
        return False

    def _options(
        self,
        record: ConnectionRecord,
        credentials: Credentials,
    ) -> dict[str, Any]:
        options: dict[str, Any] = {
            "port": record.port,
            "username": credentials.username,
            "known_hosts": None,
            "config": None,
            "server_host_key_algs": HOST_KEY_ALGORITHMS.get(
                self.key_type, HOST_KEY_ALGORITHMS["ed25519"]
            ),
        }

        if credentials.identity_file:
            options["client_keys"] = [str(Path(credentials.identity_file).expanduser())]
            options["passphrase"] = credentials.passphrase
            options["agent_path"] = None
        else:
            options["client_keys"] = []
            options["password"] = credentials.password

        keepalive = record.option("ServerAliveInterval")
        if keepalive:
            try:
                options["keepalive_interval"] = int(keepalive)
            except ValueError:
                logger.warning(
                    "Ignoring invalid ServerAliveInterval %r for %s", keepalive, record.alias
                )
        return options

    async def connect(
        self,
        record: ConnectionRecord,
        credentials: Credentials,
        on_lost: LostCallback | None = None,
    ) -> asyncssh.SSHClientConnection:
        """Open and authenticate a connection.

        Args:
            record: Connection to open
            credentials: Username plus password or key material
            on_lost: Called with (connection, exc) when the connection closes

        Returns:
            Authenticated asyncssh client connection

        Raises:
            AuthError: If authentication fails or the key cannot be loaded
            ProtocolError: On network, handshake, or timeout failure
        """
        logger.info(
            "Opening SSH connection to %s (%s@%s:%d)",
            record.alias,
            credentials.username,
            record.hostname,
            record.port,
        )
        try:
            conn = await asyncio.wait_for(
                asyncssh.connect(
                    record.hostname,
                    client_factory=lambda: _SessionClient(on_lost),
                    **self._options(record, credentials),
                ),
                timeout=self.connect_timeout,
            )
        except (
            asyncssh.PermissionDenied,
            asyncssh.KeyImportError,
            asyncssh.KeyEncryptionError,
        ) as e:
            raise AuthError(f"Authentication failed for {record.alias}: {e}") from e
        except asyncio.TimeoutError as e:
            raise ProtocolError(
                f"Connection to {record.alias} timed out after {self.connect_timeout}s"
            ) from e
        except (OSError, asyncssh.Error) as e:
            raise ProtocolError(f"Cannot connect to {record.alias}: {e}") from e

        logger.info("SSH connection established to %s", record.alias)
        return conn

    @staticmethod
    def host_key_fingerprint(conn: asyncssh.SSHClientConnection) -> str:
        """SHA256 fingerprint of the key the server presented.

        Raises:
            ProtocolError: If the server key is not available
        """
        key = conn.get_server_host_key()
        if key is None:
            raise ProtocolError("Server host key not available")
        return key.get_fingerprint()
