"""Configuration module for multiconnect.

Provides focused classes for different configuration concerns:
- Config: Main configuration class (aggregates all components)
- ConnectionStore: Connection records in ~/.ssh/config
- HostKeyStore: Trusted host key fingerprints in known_hosts
- Settings: Environment variable configuration
- ConfigWatcher: Reloads when the SSH config file changes
"""

from multiconnect_mcp.config.host_keys import HostKeyStore
from multiconnect_mcp.config.main import Config
from multiconnect_mcp.config.parser import format_config, parse_config, render_record
from multiconnect_mcp.config.settings import Settings
from multiconnect_mcp.config.store import ConnectionStore
from multiconnect_mcp.config.watcher import ConfigWatcher

__all__ = [
    "Config",
    "ConfigWatcher",
    "ConnectionStore",
    "HostKeyStore",
    "Settings",
    "format_config",
    "parse_config",
    "render_record",
]
