"""Tests for environment settings and the Config aggregate."""

import os
from pathlib import Path

import pytest

from multiconnect_mcp.config import Config, Settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Start each test without MULTICONNECT_ variables."""
    for key in list(os.environ):
        if key.startswith("MULTICONNECT_"):
            monkeypatch.delenv(key)


def test_defaults() -> None:
    """Unset variables give the documented defaults."""
    settings = Settings.from_env()

    assert settings.ssh_config_path == "~/.ssh/config"
    assert settings.known_hosts_path == "~/.ssh/known_hosts"
    assert settings.host_key_type == "ed25519"
    assert settings.scan_timeout == 10
    assert settings.connect_timeout == 15
    assert settings.term_type == "xterm-256color"
    assert settings.open_terminal is True
    assert settings.watch_config is True
    assert settings.transport == "stdio"
    assert settings.http_port == 8000
    assert settings.log_level == "INFO"
    assert settings.enable_ui is True
    assert settings.temp_dir.endswith("multiconnect")


def test_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    """Variables override defaults."""
    monkeypatch.setenv("MULTICONNECT_SSH_CONFIG", "/etc/ssh/custom")
    monkeypatch.setenv("MULTICONNECT_HOST_KEY_TYPE", "RSA")
    monkeypatch.setenv("MULTICONNECT_CONNECT_TIMEOUT", "5")
    monkeypatch.setenv("MULTICONNECT_OPEN_TERMINAL", "false")
    monkeypatch.setenv("MULTICONNECT_TRANSPORT", "HTTP")
    monkeypatch.setenv("MULTICONNECT_LOG_LEVEL", "debug")

    settings = Settings.from_env()

    assert settings.ssh_config_path == "/etc/ssh/custom"
    assert settings.host_key_type == "rsa"
    assert settings.connect_timeout == 5
    assert settings.open_terminal is False
    assert settings.transport == "http"
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize("value", ["abc", "0", "-3"])
def test_invalid_int_falls_back(monkeypatch: pytest.MonkeyPatch, value: str) -> None:
    """Invalid or non-positive integers use the default."""
    monkeypatch.setenv("MULTICONNECT_SCAN_TIMEOUT", value)

    assert Settings.from_env().scan_timeout == 10


def test_unknown_key_type_falls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    """Unsupported host key types use ed25519."""
    monkeypatch.setenv("MULTICONNECT_HOST_KEY_TYPE", "dsa")

    assert Settings.from_env().host_key_type == "ed25519"


def test_unknown_transport_falls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    """Unsupported transports use stdio."""
    monkeypatch.setenv("MULTICONNECT_TRANSPORT", "carrier-pigeon")

    assert Settings.from_env().transport == "stdio"


def test_config_from_settings(tmp_path: Path) -> None:
    """Config builds both stores from settings."""
    settings = Settings(
        ssh_config_path=str(tmp_path / "config"),
        known_hosts_path=str(tmp_path / "known_hosts"),
        host_key_type="ecdsa",
        scan_timeout=3,
        temp_dir=str(tmp_path / "tmp"),
        enable_ui=False,
    )

    config = Config.from_settings(settings)

    assert config.ssh_config_path == tmp_path / "config"
    assert config.known_hosts_path == tmp_path / "known_hosts"
    assert config.host_keys.key_type == "ecdsa"
    assert config.host_keys.scan_timeout == 3
    assert config.temp_dir == tmp_path / "tmp"
    assert config.enable_ui is False
    assert config.transport == "stdio"
