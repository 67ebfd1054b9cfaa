"""Connection store backed by the SSH client config file.

The file is shared with OpenSSH and edited by hand, so every operation
re-reads it in full instead of keeping an in-memory copy.
"""

import logging
import os
from pathlib import Path

from multiconnect_mcp.config.parser import ParsedConfig, parse_config
from multiconnect_mcp.errors import ConfigError
from multiconnect_mcp.models import ConnectionRecord

logger = logging.getLogger(__name__)

DIR_MODE = 0o700
FILE_MODE = 0o600


class ConnectionStore:
    """Read and mutate connection records in an SSH config file."""

    def __init__(self, config_path: Path | str | None = None):
        """Initialize connection store.

        Args:
            config_path: Path to SSH config file (default: ~/.ssh/config)
        """
        if config_path is None:
            config_path = Path.home() / ".ssh" / "config"
        self.config_path = Path(config_path).expanduser()

    def ensure_exists(self) -> None:
        """Create the config file (and its directory) with restrictive modes.

        Raises:
            ConfigError: If the file cannot be created
        """
        if self.config_path.exists():
            return
        try:
            self.config_path.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
            self.config_path.touch(mode=FILE_MODE)
            os.chmod(self.config_path, FILE_MODE)
        except OSError as e:
            raise ConfigError(f"Cannot create SSH config {self.config_path}: {e}") from e
        logger.info("Created SSH config at %s", self.config_path)

    def _read(self) -> ParsedConfig:
        if not self.config_path.exists():
            return ParsedConfig()
        try:
            content = self.config_path.read_text()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Cannot read SSH config %s: %s", self.config_path, e)
            return ParsedConfig()
        return parse_config(content)

    def _read_for_update(self) -> ParsedConfig:
        self.ensure_exists()
        try:
            return parse_config(self.config_path.read_text())
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigError(f"Cannot read SSH config {self.config_path}: {e}") from e

    def _write(self, parsed: ParsedConfig) -> None:
        try:
            self.config_path.write_text(parsed.render())
            os.chmod(self.config_path, FILE_MODE)
        except OSError as e:
            raise ConfigError(f"Cannot write SSH config {self.config_path}: {e}") from e

    def list_all(self) -> list[ConnectionRecord]:
        """Parse the config file into connection records.

        Returns:
            Records in file order; empty if the file is missing or unreadable
        """
        records = self._read().records()
        logger.debug("Parsed %d connection(s) from %s", len(records), self.config_path)
        return records

    def get(self, alias: str) -> ConnectionRecord | None:
        """Get a record by exact alias."""
        for record in self.list_all():
            if record.alias == alias:
                return record
        return None

    def upsert(self, record: ConnectionRecord) -> None:
        """Replace the record's block in place, or append it.

        Raises:
            ConfigError: If the record has multi-line values or the file
                cannot be read or written
        """
        parsed = self._read_for_update()
        try:
            replaced = parsed.upsert(record)
        except ValueError as e:
            raise ConfigError(f"Refusing to write Host {record.alias!r}: {e}") from e
        self._write(parsed)
        logger.info(
            "%s Host %s in %s",
            "Updated" if replaced else "Added",
            record.alias,
            self.config_path,
        )

    def remove_by_alias(self, alias: str) -> bool:
        """Delete the alias's block and its folder tag.

        Returns:
            True if a block was removed, False if the alias was not found

        Raises:
            ConfigError: If the file cannot be read or written
        """
        if not self.config_path.exists():
            return False
        parsed = self._read_for_update()
        if not parsed.remove(alias):
            logger.debug("Host %s not in %s, nothing to remove", alias, self.config_path)
            return False
        self._write(parsed)
        logger.info("Removed Host %s from %s", alias, self.config_path)
        return True
