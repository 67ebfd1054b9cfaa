"""Application configuration.

Delegates to specialized components:
- ConnectionStore: Reads and edits ~/.ssh/config
- HostKeyStore: Manages known_hosts
- Settings: Environment variables
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from multiconnect_mcp.config.host_keys import HostKeyStore
from multiconnect_mcp.config.settings import Settings
from multiconnect_mcp.config.store import ConnectionStore

logger = logging.getLogger(__name__)


@dataclass
class Config:
    """Application configuration.

    Aggregates settings, the SSH config store, and the host key store.
    """

    settings: Settings
    store: ConnectionStore
    host_keys: HostKeyStore

    @classmethod
    def from_env(cls) -> "Config":
        """Create config from environment.

        Returns:
            Configured instance with all components initialized
        """
        return cls.from_settings(Settings.from_env())

    @classmethod
    def from_settings(cls, settings: Settings) -> "Config":
        """Create config from explicit settings.

        Args:
            settings: Settings to build the stores from

        Returns:
            Configured instance
        """
        store = ConnectionStore(config_path=settings.ssh_config_path)
        host_keys = HostKeyStore(
            known_hosts_path=settings.known_hosts_path,
            key_type=settings.host_key_type,
            scan_timeout=settings.scan_timeout,
        )
        logger.debug(
            "Config: ssh_config=%s known_hosts=%s key_type=%s",
            store.config_path,
            host_keys.known_hosts_path,
            host_keys.key_type,
        )
        return cls(settings=settings, store=store, host_keys=host_keys)

    # Delegate to settings for convenience
    @property
    def ssh_config_path(self) -> Path:
        """Resolved SSH config file path."""
        return self.store.config_path

    @property
    def known_hosts_path(self) -> Path:
        """Resolved known_hosts file path."""
        return self.host_keys.known_hosts_path

    @property
    def temp_dir(self) -> Path:
        """Directory for local copies of remote files."""
        return Path(self.settings.temp_dir).expanduser()

    @property
    def transport(self) -> str:
        """Transport type (stdio or http)."""
        return self.settings.transport

    @property
    def http_host(self) -> str:
        """HTTP server bind address."""
        return self.settings.http_host

    @property
    def http_port(self) -> int:
        """HTTP server port."""
        return self.settings.http_port

    @property
    def enable_ui(self) -> bool:
        """Whether MCP-UI is enabled."""
        return self.settings.enable_ui
