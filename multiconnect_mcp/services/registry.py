"""Session registry.

Owns the live session for every alias and drives each one through
``disconnected -> connecting -> connected -> disconnected``. A failed
attempt returns straight to ``disconnected`` with nothing left behind;
there is no retry loop.

Concurrency: the presence check in ``connect`` runs before the first
``await``, so two overlapping connects for one alias cannot both create a
session. Different aliases interleave freely.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from pathlib import Path

import asyncssh

from multiconnect_mcp.config.host_keys import HostKeyStore
from multiconnect_mcp.config.store import ConnectionStore
from multiconnect_mcp.errors import (
    AuthError,
    ConfigError,
    ConnectionNotFoundError,
    MultiConnectError,
    NotConnectedError,
    ProtocolError,
    TrustError,
)
from multiconnect_mcp.models import ConnectionRecord, LiveSession, SessionState
from multiconnect_mcp.protocols import (
    DecliningPrompter,
    EditorHost,
    Prompter,
    StateListener,
)
from multiconnect_mcp.services.browser import RemoteFileBrowser
from multiconnect_mcp.services.connector import Credentials, SSHConnector
from multiconnect_mcp.services.terminal import RemoteTerminal
from multiconnect_mcp.utils.validation import (
    normalize_folder_tag,
    validate_alias,
    validate_config_value,
    validate_hostname,
    validate_port,
)

logger = logging.getLogger(__name__)

NO_CONNECTION_TITLE = "No Active Connection"


@dataclass
class Selection:
    """What the terminal and file views should show for an alias."""

    alias: str | None
    title: str
    connected: bool = False
    terminal: RemoteTerminal | None = None
    browser: RemoteFileBrowser | None = None


class SessionRegistry:
    """Connection records plus at most one live session per alias."""

    def __init__(
        self,
        store: ConnectionStore,
        host_keys: HostKeyStore,
        connector: SSHConnector,
        prompter: Prompter | None = None,
        editor: EditorHost | None = None,
        temp_dir: Path | str | None = None,
        term_type: str = "xterm-256color",
        open_terminal: bool = True,
        scrollback: int = 65536,
    ):
        """Initialize registry.

        Args:
            store: SSH config backed record store
            host_keys: Known-host trust store
            connector: Opens authenticated SSH connections
            prompter: Default source of usernames, secrets and approvals
            editor: Receives local copies opened by the file browsers
            temp_dir: Directory for local copies of remote files
            term_type: Terminal type requested for interactive shells
            open_terminal: Whether connect starts an interactive shell
            scrollback: Characters of terminal output kept per session
        """
        self.store = store
        self.host_keys = host_keys
        self.connector = connector
        self.prompter: Prompter = prompter or DecliningPrompter()
        self.editor = editor
        self.temp_dir = Path(temp_dir) if temp_dir else Path.home() / ".cache" / "multiconnect"
        self.term_type = term_type
        self.open_terminal = open_terminal
        self.scrollback = scrollback
        self.selected: str | None = None

        self._records: dict[str, ConnectionRecord] = {}
        self._sessions: dict[str, LiveSession] = {}
        self._browsers: dict[str, RemoteFileBrowser] = {}
        self._listeners: list[StateListener] = []

    # Notifications

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """Subscribe to state changes.

        Args:
            listener: Called with the affected alias (None after a reload)

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _notify(self, alias: str | None) -> None:
        for listener in list(self._listeners):
            listener(alias)

    def _set_state(self, session: LiveSession, state: SessionState) -> None:
        session.state = state
        logger.info("%s state=%s", session.alias, state.value)

    # Queries

    async def reload(self) -> list[ConnectionRecord]:
        """Re-read records from the config file.

        Sessions and browsers whose alias disappeared are torn down.

        Returns:
            Current records in file order
        """
        records = self.store.list_all()
        self._records = {record.alias: record for record in records}

        for alias in [a for a in self._sessions if a not in self._records]:
            self._teardown(self._sessions[alias], "removed from SSH config")
        for alias in [a for a in self._browsers if a not in self._records]:
            self._drop_browser(alias)
        if self.selected is not None and self.selected not in self._records:
            self.selected = None

        logger.debug("Loaded %d connection(s)", len(records))
        self._notify(None)
        return records

    def list_connections(self) -> list[ConnectionRecord]:
        """Known connection records in file order."""
        return list(self._records.values())

    def get_record(self, alias: str) -> ConnectionRecord | None:
        """Record for an alias, if known."""
        return self._records.get(alias)

    def _require_record(self, alias: str) -> ConnectionRecord:
        record = self._records.get(alias)
        if record is None:
            record = self.store.get(alias)
            if record is None:
                raise ConnectionNotFoundError(alias)
            self._records[alias] = record
        return record

    def state(self, alias: str) -> SessionState:
        """Lifecycle state of an alias."""
        session = self._sessions.get(alias)
        return session.state if session is not None else SessionState.DISCONNECTED

    def session(self, alias: str) -> LiveSession | None:
        """Live session for an alias (connecting or connected)."""
        return self._sessions.get(alias)

    def active_sessions(self) -> list[LiveSession]:
        """Connected sessions only."""
        return [s for s in self._sessions.values() if s.is_connected]

    def terminal(self, alias: str) -> RemoteTerminal | None:
        """Live terminal of a connected alias."""
        session = self._sessions.get(alias)
        if session is None or not session.is_connected:
            return None
        return session.terminal

    def browser(self, alias: str) -> RemoteFileBrowser:
        """File browser of a connected alias.

        Raises:
            NotConnectedError: If the alias has no connected session
        """
        session = self._sessions.get(alias)
        browser = self._browsers.get(alias)
        if session is None or not session.is_connected or browser is None:
            raise NotConnectedError(alias)
        return browser

    def select(self, alias: str | None) -> Selection:
        """Resolve what to show for an alias.

        Returns:
            Terminal and browser of a connected alias, otherwise a
            placeholder without a browser
        """
        session = self._sessions.get(alias) if alias else None
        if session is None or not session.is_connected:
            if alias:
                logger.debug("%s selected but not connected", alias)
            return Selection(alias=alias, title=NO_CONNECTION_TITLE)

        self.selected = alias
        record = self._records.get(alias)
        host = record.hostname if record else alias
        return Selection(
            alias=alias,
            title=f"Connected to {host}",
            connected=True,
            terminal=session.terminal,
            browser=self._browsers.get(alias),
        )

    # Record mutations

    def add_connection(self, record: ConnectionRecord) -> ConnectionRecord:
        """Validate and persist a new connection.

        Raises:
            ConfigError: If the record is invalid or the alias exists
        """
        try:
            alias = validate_alias(record.alias)
            hostname = validate_hostname(record.hostname)
            port = validate_port(record.port)
            user = validate_config_value(record.user, "User")
            identity_file = validate_config_value(record.identity_file, "IdentityFile")
            folder_tag = normalize_folder_tag(record.folder_tag)
        except ValueError as e:
            raise ConfigError(str(e)) from e

        if alias in self._records or self.store.get(alias) is not None:
            raise ConfigError(f"Connection '{alias}' already exists")

        record = replace(
            record,
            alias=alias,
            hostname=hostname,
            port=port,
            user=user,
            identity_file=identity_file,
            folder_tag=folder_tag,
        )
        self.store.upsert(record)
        self._records[alias] = record
        logger.info("Added connection %s (%s)", alias, record.label)
        self._notify(alias)
        return record

    def move_to_folder(self, alias: str, folder_tag: str | None) -> ConnectionRecord:
        """Change an alias's display folder.

        Only metadata changes: the live session, its secrets, its browser
        and open files are left alone. A blank tag removes the grouping.

        Raises:
            ConnectionNotFoundError: If the alias does not exist
            ConfigError: If the tag is invalid or the config file cannot be
                written
        """
        record = self.store.get(alias) or self._records.get(alias)
        if record is None:
            raise ConnectionNotFoundError(alias)

        try:
            folder_tag = normalize_folder_tag(folder_tag)
        except ValueError as e:
            raise ConfigError(str(e)) from e

        updated = replace(record, folder_tag=folder_tag)
        self.store.upsert(updated)
        self._records[alias] = updated
        logger.info("Moved %s to folder %s", alias, updated.folder_tag or "(root)")
        self._notify(alias)
        return updated

    async def remove_connection(self, alias: str) -> None:
        """Delete a connection and everything attached to it.

        Raises:
            ConnectionNotFoundError: If the alias does not exist
            ConfigError: If the user cannot be resolved or the file write fails
        """
        record = self._require_record(alias)
        session = self._sessions.get(alias)
        user = record.user or (session.username if session is not None else None)
        if not user:
            raise ConfigError(
                f"Cannot remove '{alias}': host and user are required"
            )

        self.store.remove_by_alias(alias)
        if session is not None:
            self._teardown(session, "connection removed")
        self._drop_browser(alias)
        self._records.pop(alias, None)
        if self.selected == alias:
            self.selected = None
        logger.info("Removed connection %s", alias)
        self._notify(alias)

    # Session lifecycle

    async def connect(self, alias: str, prompter: Prompter | None = None) -> LiveSession:
        """Open a session for an alias.

        Connecting an alias that already has a session returns it unchanged.

        Args:
            alias: Connection to open
            prompter: Prompt source for this attempt (default: registry's)

        Returns:
            The connected (or already existing) session

        Raises:
            ConnectionNotFoundError: If the alias does not exist
            AuthError: If credentials are declined or rejected
            TrustError: If the host key changed and was not approved
            ToolMissingError: If ssh-keygen or ssh-keyscan is missing
            ProtocolError: On network or handshake failure
        """
        record = self._require_record(alias)
        existing = self._sessions.get(alias)
        if existing is not None:
            logger.info("%s already %s, ignoring connect", alias, existing.state.value)
            return existing

        session = LiveSession(alias=alias)
        self._sessions[alias] = session
        logger.info("%s state=%s", alias, session.state.value)
        self._notify(alias)

        prompter = prompter or self.prompter
        try:
            credentials = await self._resolve_credentials(record, session, prompter)
            self._ensure_current(session)

            trusted = await self._verify_trust(record, prompter)
            self._ensure_current(session)

            client = await self.connector.connect(
                record, credentials, on_lost=self._lost_callback(alias)
            )
            session.client = client
            self._ensure_current(session)

            observed = self.connector.host_key_fingerprint(client)
            if trusted is None:
                await self._register_host_key(record, observed)
            elif observed != trusted:
                raise TrustError(
                    f"Host key for {alias} does not match the trusted key "
                    f"(expected {trusted}, got {observed})"
                )
            self._ensure_current(session)

            self._set_state(session, SessionState.CONNECTED)
            if self.open_terminal:
                session.terminal = await RemoteTerminal.open(
                    alias,
                    client,
                    term_type=self.term_type,
                    scrollback=self.scrollback,
                    on_closed=self._terminal_callback(alias),
                )
                self._ensure_current(session)

            browser = self._browsers.get(alias)
            if browser is None:
                browser = RemoteFileBrowser(alias, self.temp_dir, editor=self.editor)
                self._browsers[alias] = browser
            browser.attach(client)
        except (Exception, asyncio.CancelledError) as e:
            logger.warning("Connect to %s failed: %s", alias, str(e) or type(e).__name__)
            self._teardown(session, "connect failed")
            raise

        self._notify(alias)
        return session

    def _ensure_current(self, session: LiveSession) -> None:
        if self._sessions.get(session.alias) is not session:
            raise ProtocolError(f"Connection attempt for {session.alias} was cancelled")

    async def _resolve_credentials(
        self,
        record: ConnectionRecord,
        session: LiveSession,
        prompter: Prompter,
    ) -> Credentials:
        username = record.user
        if not username:
            username = await prompter.ask_text(
                f"Username for {record.alias} ({record.hostname})"
            )
            if not username:
                raise AuthError(f"Username is required to connect to {record.alias}")
        session.username = username

        if record.identity_file:
            if self.connector.key_needs_passphrase(record.identity_file):
                passphrase = await prompter.ask_secret(
                    f"Passphrase for {record.identity_file}", kind="passphrase"
                )
                if passphrase is None:
                    raise AuthError("No passphrase provided for the private key")
                session.passphrase = passphrase
            return Credentials(
                username=username,
                passphrase=session.passphrase,
                identity_file=record.identity_file,
            )

        password = await prompter.ask_secret(
            f"Password for {username}@{record.hostname}", kind="password"
        )
        if password is None:
            raise AuthError("Connection cancelled. No password provided.")
        session.password = password
        return Credentials(username=username, password=password)

    async def _verify_trust(
        self,
        record: ConnectionRecord,
        prompter: Prompter,
    ) -> str | None:
        """Check the host key before the handshake.

        Returns:
            Fingerprint the handshake must present, or None for a host seen
            for the first time

        Raises:
            TrustError: If a changed key is not approved
        """
        status = await self.host_keys.is_known(record.hostname, record.port)
        if not status.exists:
            logger.info("%s: host %s is not yet trusted", record.alias, record.hostname)
            return None

        current = await self.host_keys.fetch_fingerprint(record.hostname, record.port)
        if current == status.fingerprint:
            return current

        logger.warning(
            "%s: host key changed (stored %s, current %s)",
            record.alias,
            status.fingerprint,
            current,
        )
        approved = await prompter.confirm(
            f"The host key for {record.alias} ({record.hostname}) has changed.\n"
            f"Stored: {status.fingerprint}\n"
            f"Current: {current}\n"
            f"Trust the new key and connect?"
        )
        if not approved:
            raise TrustError(
                f"Host key for {record.alias} changed and was not approved"
            )

        await self.host_keys.remove(record.hostname, record.port)
        await self.host_keys.add(record.hostname, current, record.port)
        return current

    async def _register_host_key(self, record: ConnectionRecord, fingerprint: str) -> None:
        try:
            await self.host_keys.add(record.hostname, fingerprint, record.port)
        except MultiConnectError as e:
            logger.warning("Could not record host key for %s: %s", record.alias, e)

    def _lost_callback(
        self, alias: str
    ) -> Callable[[asyncssh.SSHClientConnection, Exception | None], None]:
        def on_lost(conn: asyncssh.SSHClientConnection, exc: Exception | None) -> None:
            self.handle_connection_lost(alias, conn, exc)

        return on_lost

    def _terminal_callback(self, alias: str) -> Callable[[RemoteTerminal], None]:
        def on_closed(terminal: RemoteTerminal) -> None:
            self.handle_terminal_closed(alias, terminal)

        return on_closed

    def handle_connection_lost(
        self,
        alias: str,
        client: asyncssh.SSHClientConnection,
        exc: Exception | None = None,
    ) -> bool:
        """Tear down after the SSH connection dropped.

        Ignored unless the client still belongs to the alias's session.

        Returns:
            True if a session was torn down
        """
        session = self._sessions.get(alias)
        if session is None or session.client is not client:
            logger.debug("Ignoring stale connection-lost event for %s", alias)
            return False
        self._teardown(session, f"connection lost: {exc}" if exc else "connection closed")
        return True

    def handle_terminal_closed(self, alias: str, terminal: RemoteTerminal) -> bool:
        """Tear down after the interactive shell ended.

        Ignored unless the terminal still belongs to the alias's session.

        Returns:
            True if a session was torn down
        """
        session = self._sessions.get(alias)
        if session is None or session.terminal is not terminal:
            logger.debug("Ignoring stale terminal-closed event for %s", alias)
            return False
        self._teardown(session, "terminal closed")
        return True

    async def disconnect(self, alias: str) -> bool:
        """Close an alias's session.

        Returns:
            True if a session was closed, False if there was none
        """
        session = self._sessions.get(alias)
        if session is None:
            logger.debug("%s is not connected, nothing to disconnect", alias)
            return False
        self._teardown(session, "disconnected")
        return True

    def _teardown(self, session: LiveSession, reason: str) -> None:
        alias = session.alias
        owned = self._sessions.get(alias) is session
        if owned:
            del self._sessions[alias]

        terminal, session.terminal = session.terminal, None
        if terminal is not None:
            terminal.close()

        client, session.client = session.client, None
        if client is not None:
            client.close()

        if owned:
            browser = self._browsers.get(alias)
            if browser is not None:
                browser.cleanup()
                browser.detach()

        session.clear_secrets()
        session.state = SessionState.DISCONNECTED
        logger.info("%s state=%s (%s)", alias, session.state.value, reason)
        if owned:
            self._notify(alias)

    def _drop_browser(self, alias: str) -> None:
        browser = self._browsers.pop(alias, None)
        if browser is not None:
            browser.cleanup()
            browser.detach()

    async def close_all(self) -> None:
        """Tear down every session and discard local file copies."""
        sessions = list(self._sessions.values())
        if sessions:
            logger.info("Closing all %d session(s)", len(sessions))
        for session in sessions:
            self._teardown(session, "shutdown")
        for alias in list(self._browsers):
            self._drop_browser(alias)
