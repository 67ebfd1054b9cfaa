"""Dependency injection container for multiconnect.

Builds the registry, connector and broadcaster from a Config and wires
the registry's state notifications into the broadcaster.
"""

import logging
from dataclasses import dataclass, field

from multiconnect_mcp.config import Config
from multiconnect_mcp.protocols import EditorHost, LoggingEditorHost, Prompter
from multiconnect_mcp.services.broadcast import CommandBroadcaster
from multiconnect_mcp.services.connector import SSHConnector
from multiconnect_mcp.services.registry import SessionRegistry

logger = logging.getLogger(__name__)


@dataclass
class Dependencies:
    """Container for multiconnect dependencies.

    Pass this to functions/tools that need the registry or broadcaster.

    Example:
        deps = Dependencies.create()
        await deps.registry.reload()
    """

    config: Config
    connector: SSHConnector
    registry: SessionRegistry
    broadcaster: CommandBroadcaster
    editor: EditorHost = field(default_factory=LoggingEditorHost)

    @classmethod
    def create(cls) -> "Dependencies":
        """Create dependencies with configuration from the environment.

        Returns:
            Initialized Dependencies instance
        """
        return cls.from_config(Config.from_env())

    @classmethod
    def from_config(
        cls,
        config: Config,
        prompter: Prompter | None = None,
        editor: EditorHost | None = None,
    ) -> "Dependencies":
        """Create dependencies with custom configuration.

        Args:
            config: Custom Config instance
            prompter: Default prompter for the registry
            editor: Editor host for opened remote files

        Returns:
            Dependencies with registry and broadcaster wired together
        """
        settings = config.settings
        editor = editor or LoggingEditorHost()
        connector = SSHConnector(
            connect_timeout=settings.connect_timeout,
            key_type=settings.host_key_type,
        )
        registry = SessionRegistry(
            store=config.store,
            host_keys=config.host_keys,
            connector=connector,
            prompter=prompter,
            editor=editor,
            temp_dir=config.temp_dir,
            term_type=settings.term_type,
            open_terminal=settings.open_terminal,
            scrollback=settings.scrollback,
        )
        broadcaster = CommandBroadcaster(registry.terminal)
        registry.add_listener(
            lambda _alias: broadcaster.update_targets(registry.active_sessions())
        )
        return cls(
            config=config,
            connector=connector,
            registry=registry,
            broadcaster=broadcaster,
            editor=editor,
        )

    async def cleanup(self) -> None:
        """Clean up resources (close all sessions)."""
        await self.registry.close_all()
