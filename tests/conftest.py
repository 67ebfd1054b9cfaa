"""Shared fakes for registry, tool and resource tests."""

import asyncio
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from multiconnect_mcp.config import Config, ConnectionStore, Settings
from multiconnect_mcp.dependencies import Dependencies
from multiconnect_mcp.models import ConnectionRecord, KnownHostStatus
from multiconnect_mcp.services import CommandBroadcaster, Credentials, SessionRegistry
from multiconnect_mcp.services.state import reset_state, set_deps

FP_OLD = "SHA256:oldkey"
FP_NEW = "SHA256:newkey"


class FakeHostKeys:
    """In-memory trust store with a scriptable current host key."""

    def __init__(self) -> None:
        self.stored: dict[tuple[str, int], str] = {}
        self.current: dict[tuple[str, int], str] = {}
        self.calls: list[tuple] = []

    async def is_known(self, hostname: str, port: int = 22) -> KnownHostStatus:
        fingerprint = self.stored.get((hostname, port))
        return KnownHostStatus(exists=fingerprint is not None, fingerprint=fingerprint)

    async def fetch_fingerprint(self, hostname: str, port: int = 22) -> str:
        self.calls.append(("scan", hostname, port))
        return self.current[(hostname, port)]

    async def add(self, hostname: str, fingerprint: str, port: int = 22) -> None:
        self.calls.append(("add", hostname, fingerprint, port))
        self.stored[(hostname, port)] = fingerprint

    async def remove(self, hostname: str, port: int = 22) -> None:
        self.calls.append(("remove", hostname, port))
        self.stored.pop((hostname, port), None)


class FakeConnector:
    """Connector handing out mock SSH clients."""

    def __init__(self) -> None:
        self.fingerprint = FP_OLD
        self.error: Exception | None = None
        self.encrypted_keys: set[str] = set()
        self.clients: list[MagicMock] = []
        self.credentials: list[Credentials] = []
        self.on_lost = None

    def key_needs_passphrase(self, identity_file: str) -> bool:
        return identity_file in self.encrypted_keys

    async def connect(self, record, credentials, on_lost=None):
        self.credentials.append(credentials)
        if self.error is not None:
            raise self.error
        client = make_client(self.fingerprint)
        self.clients.append(client)
        self.on_lost = on_lost
        return client

    @staticmethod
    def host_key_fingerprint(conn) -> str:
        return conn.fingerprint


class FakePrompter:
    """Prompter with canned answers that records every question."""

    def __init__(
        self,
        username: str | None = None,
        secret: str | None = "secret",
        approve: bool = False,
    ) -> None:
        self.username = username
        self.secret = secret
        self.approve = approve
        self.asked: list[str] = []
        self.kinds: list[str] = []

    async def ask_text(self, prompt: str, default: str | None = None) -> str | None:
        self.asked.append(prompt)
        return self.username

    async def ask_secret(self, prompt: str, kind: str = "password") -> str | None:
        self.asked.append(prompt)
        self.kinds.append(kind)
        return self.secret

    async def confirm(self, prompt: str) -> bool:
        self.asked.append(prompt)
        return self.approve


def make_client(fingerprint: str = FP_OLD) -> MagicMock:
    """Mock SSH client with a quiet shell and an SFTP channel."""
    client = MagicMock()
    client.fingerprint = fingerprint

    process = MagicMock()

    async def never(_size: int) -> str:
        await asyncio.Event().wait()
        return ""

    process.stdout.read = never
    client.create_process = AsyncMock(return_value=process)

    sftp = MagicMock()

    async def download(remote: str, local: str) -> None:
        Path(local).write_text(remote)

    sftp.stat = AsyncMock(return_value=MagicMock(permissions=0o100644))
    sftp.get = AsyncMock(side_effect=download)
    sftp.put = AsyncMock()
    sftp.realpath = AsyncMock(side_effect=lambda p: p)
    sftp.readdir = AsyncMock(return_value=[])
    client.start_sftp_client = AsyncMock(return_value=sftp)
    client.sftp = sftp
    return client


@pytest.fixture
def store(tmp_path: Path) -> ConnectionStore:
    """Config store with a password host, a key host and a userless host."""
    s = ConnectionStore(tmp_path / "ssh" / "config")
    s.upsert(ConnectionRecord(alias="web", hostname="10.0.0.1", user="deploy"))
    s.upsert(
        ConnectionRecord(
            alias="keyed",
            hostname="10.0.0.2",
            user="ops",
            identity_file=str(tmp_path / "id_ed25519"),
            folder_tag="prod",
        )
    )
    s.upsert(ConnectionRecord(alias="anon", hostname="10.0.0.3"))
    return s


@pytest.fixture
def host_keys() -> FakeHostKeys:
    """Empty fake trust store."""
    return FakeHostKeys()


@pytest.fixture
def connector() -> FakeConnector:
    """Fake connector presenting FP_OLD."""
    return FakeConnector()


@pytest.fixture
def prompter() -> FakePrompter:
    """Prompter answering the password prompt."""
    return FakePrompter()


@pytest.fixture
def registry(
    store: ConnectionStore,
    host_keys: FakeHostKeys,
    connector: FakeConnector,
    prompter: FakePrompter,
    tmp_path: Path,
) -> SessionRegistry:
    """Registry over the fakes with a temp dir for file copies."""
    return SessionRegistry(
        store=store,
        host_keys=host_keys,  # type: ignore[arg-type]
        connector=connector,  # type: ignore[arg-type]
        prompter=prompter,
        temp_dir=tmp_path / "copies",
    )


@pytest.fixture
def prompter_factory() -> type[FakePrompter]:
    """Build prompters with other canned answers."""
    return FakePrompter


@pytest.fixture
def deps(
    registry: SessionRegistry,
    store: ConnectionStore,
    host_keys: FakeHostKeys,
    connector: FakeConnector,
) -> Iterator[Dependencies]:
    """Global container over the fake registry, text output only."""
    config = Config(
        settings=Settings(ssh_config_path=str(store.config_path), enable_ui=False),
        store=store,
        host_keys=host_keys,  # type: ignore[arg-type]
    )
    broadcaster = CommandBroadcaster(registry.terminal)
    registry.add_listener(
        lambda _alias: broadcaster.update_targets(registry.active_sessions())
    )
    container = Dependencies(
        config=config,
        connector=connector,  # type: ignore[arg-type]
        registry=registry,
        broadcaster=broadcaster,
    )
    set_deps(container)
    yield container
    reset_state()
