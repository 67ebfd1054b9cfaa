"""Application settings from environment variables.

Centralized environment variable parsing and validation.
"""

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

ENV_PREFIX = "MULTICONNECT_"


def _default_temp_dir() -> str:
    return str(Path(tempfile.gettempdir()) / "multiconnect")


@dataclass
class Settings:
    """Application settings from environment.

    Handles parsing, validation, and defaults for all env vars.
    """

    # SSH files
    ssh_config_path: str = field(default="~/.ssh/config")
    known_hosts_path: str = field(default="~/.ssh/known_hosts")

    # Trust and connection
    host_key_type: str = field(default="ed25519")
    scan_timeout: int = field(default=10)
    connect_timeout: int = field(default=15)

    # Terminal
    term_type: str = field(default="xterm-256color")
    open_terminal: bool = field(default=True)
    scrollback: int = field(default=65536)

    # Remote files
    temp_dir: str = field(default_factory=_default_temp_dir)

    # Config watch
    watch_config: bool = field(default=True)

    # Transport
    transport: str = field(default="stdio")
    http_host: str = field(default="127.0.0.1")
    http_port: int = field(default=8000)

    # Logging
    log_level: str = field(default="INFO")
    log_colors: bool = field(default=True)
    log_payloads: bool = field(default=False)
    slow_threshold_ms: int = field(default=1000)
    include_traceback: bool = field(default=False)

    # UI
    enable_ui: bool = field(default=True)

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from MULTICONNECT_* environment variables.

        Returns:
            Settings instance with values from environment
        """
        return cls(
            ssh_config_path=cls._get_str("SSH_CONFIG", "~/.ssh/config"),
            known_hosts_path=cls._get_str("KNOWN_HOSTS", "~/.ssh/known_hosts"),
            host_key_type=cls._get_key_type(),
            scan_timeout=cls._get_int("SCAN_TIMEOUT", 10),
            connect_timeout=cls._get_int("CONNECT_TIMEOUT", 15),
            term_type=cls._get_str("TERM_TYPE", "xterm-256color"),
            open_terminal=cls._get_bool("OPEN_TERMINAL", True),
            scrollback=cls._get_int("SCROLLBACK", 65536),
            temp_dir=cls._get_str("TEMP_DIR", _default_temp_dir()),
            watch_config=cls._get_bool("WATCH_CONFIG", True),
            transport=cls._get_transport(),
            http_host=cls._get_str("HTTP_HOST", "127.0.0.1"),
            http_port=cls._get_int("HTTP_PORT", 8000),
            log_level=cls._get_str("LOG_LEVEL", "INFO").upper(),
            log_colors=cls._get_bool("LOG_COLORS", True),
            log_payloads=cls._get_bool("LOG_PAYLOADS", False),
            slow_threshold_ms=cls._get_int("SLOW_THRESHOLD_MS", 1000),
            include_traceback=cls._get_bool("INCLUDE_TRACEBACK", False),
            enable_ui=cls._get_bool("ENABLE_UI", True),
        )

    @staticmethod
    def _get_str(key: str, default: str) -> str:
        value = os.getenv(ENV_PREFIX + key, "").strip()
        return value or default

    @staticmethod
    def _get_int(key: str, default: int) -> int:
        """Get a positive integer from environment.

        Args:
            key: Variable name without the MULTICONNECT_ prefix
            default: Default value if not set or invalid

        Returns:
            Integer value from environment or default
        """
        value = os.getenv(ENV_PREFIX + key)
        if value is None:
            return default

        try:
            parsed = int(value)
        except ValueError:
            logger.warning(
                "Invalid int for %s%s: %s, using default %d", ENV_PREFIX, key, value, default
            )
            return default
        if parsed <= 0:
            logger.warning(
                "Non-positive %s%s: %d, using default %d", ENV_PREFIX, key, parsed, default
            )
            return default
        return parsed

    @staticmethod
    def _get_bool(key: str, default: bool) -> bool:
        """Get boolean from environment.

        Args:
            key: Variable name without the MULTICONNECT_ prefix
            default: Default value if not set

        Returns:
            Boolean value from environment or default
        """
        value = os.getenv(ENV_PREFIX + key)
        if value is None:
            return default
        return value.lower() in ("1", "true", "yes", "on")

    @staticmethod
    def _get_key_type() -> str:
        value = os.getenv(ENV_PREFIX + "HOST_KEY_TYPE", "").strip().lower()
        if not value:
            return "ed25519"
        if value in ("ed25519", "ecdsa", "rsa"):
            return value
        logger.warning("Unsupported host key type %s, using ed25519", value)
        return "ed25519"

    @staticmethod
    def _get_transport() -> str:
        """Get transport from environment with validation.

        Returns:
            Transport type ("stdio" or "http")
        """
        transport = os.getenv(ENV_PREFIX + "TRANSPORT", "").lower()
        if transport in ("http", "stdio"):
            return transport
        return "stdio"
