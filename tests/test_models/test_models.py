"""Tests for data models."""

from unittest.mock import MagicMock

from multiconnect_mcp.models import (
    BroadcastResult,
    ConnectionRecord,
    LiveSession,
    SessionState,
)


def test_record_defaults() -> None:
    """Records default to port 22 without user, key or folder."""
    record = ConnectionRecord(alias="web", hostname="10.0.0.1")

    assert record.port == 22
    assert record.user is None
    assert not record.uses_key_auth
    assert record.folder_parts == ()
    assert record.options == []


def test_record_label() -> None:
    """The label includes the user when known."""
    assert ConnectionRecord(alias="a", hostname="h", user="u").label == "u@h"
    assert ConnectionRecord(alias="a", hostname="h").label == "h"


def test_record_folder_parts() -> None:
    """Folder tags split on slashes."""
    record = ConnectionRecord(alias="a", hostname="h", folder_tag="prod/eu/web")

    assert record.folder_parts == ("prod", "eu", "web")


def test_record_option_lookup_is_case_insensitive() -> None:
    """Pass-through options are found regardless of case, first match wins."""
    record = ConnectionRecord(
        alias="a",
        hostname="h",
        options=[("ProxyJump", "bastion"), ("proxyjump", "other")],
    )

    assert record.option("proxyjump") == "bastion"
    assert record.option("ForwardAgent") is None


def test_session_connected_requires_client() -> None:
    """A session counts as connected only with a live client."""
    session = LiveSession(alias="web", state=SessionState.CONNECTED)

    assert not session.is_connected
    session.client = MagicMock()
    assert session.is_connected


def test_session_starts_connecting() -> None:
    """New sessions begin in the connecting state."""
    assert LiveSession(alias="web").state is SessionState.CONNECTING


def test_clear_secrets() -> None:
    """Secrets are wiped but the username is kept."""
    session = LiveSession(alias="web", username="u", password="pw", passphrase="pp")

    session.clear_secrets()

    assert session.password is None
    assert session.passphrase is None
    assert session.username == "u"


def test_broadcast_result() -> None:
    """Successful results carry no error."""
    result = BroadcastResult(alias="web", command="ls", success=True)

    assert result.error is None
