"""multiconnect FastMCP server.

This is a thin wrapper that wires together the MCP server with tools and resources.
All business logic is delegated to the tools/, resources/, and services/ modules.
"""

import logging
import os
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import PlainTextResponse

from multiconnect_mcp.config import ConfigWatcher, Settings
from multiconnect_mcp.dependencies import Dependencies
from multiconnect_mcp.errors import ConfigError
from multiconnect_mcp.middleware import ErrorHandlingMiddleware, LoggingMiddleware
from multiconnect_mcp.resources import connection_resource, connection_tree_resource
from multiconnect_mcp.services.state import set_deps
from multiconnect_mcp.tools import (
    add_connection,
    broadcast_command,
    broadcast_panel,
    close_remote_file,
    connect,
    create_remote_file,
    create_remote_folder,
    disconnect,
    list_connections,
    list_remote_dir,
    move_to_folder,
    open_remote_file,
    read_terminal,
    remove_connection,
    save_remote_file,
    select_connection,
)
from multiconnect_mcp.utils.console import MCPRequestFormatter


def _configure_logging() -> None:
    """Configure colorful logging for the multiconnect_mcp package.

    This is called at module load time to ensure logging is configured
    before any loggers are used, regardless of how the server is started.
    """
    log_level = os.getenv("MULTICONNECT_LOG_LEVEL", "INFO").upper()
    use_colors = os.getenv("MULTICONNECT_LOG_COLORS", "true").lower() != "false"

    # Disable colors if not a TTY
    if not sys.stderr.isatty():
        use_colors = False

    package_logger = logging.getLogger("multiconnect_mcp")
    package_logger.setLevel(getattr(logging, log_level, logging.INFO))

    # Only add handler if not already configured
    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(MCPRequestFormatter(use_colors=use_colors))
        package_logger.addHandler(handler)
        package_logger.propagate = False

    # Suppress noisy third-party loggers
    for noisy_logger in [
        "uvicorn",
        "uvicorn.access",
        "uvicorn.error",
        "asyncssh",
        "httpx",
        "httpcore",
        "fastmcp",
        "starlette",
        "anyio",
        "watchdog",
    ]:
        lg = logging.getLogger(noisy_logger)
        lg.setLevel(logging.WARNING)
        lg.handlers = []
        lg.propagate = False

    # Keep stdout clean for the stdio transport
    root_logger = logging.getLogger()
    root_logger.handlers = []
    root_logger.setLevel(logging.WARNING)


# Configure logging at module load time
_configure_logging()

logger = logging.getLogger(__name__)


def _ensure_config_file(deps: Dependencies) -> bool:
    """Create the SSH config file (and its directory) if missing."""
    try:
        deps.config.store.ensure_exists()
    except ConfigError as e:
        logger.warning("SSH config unavailable: %s", e)
        return False
    return True


def _start_watcher(deps: Dependencies) -> ConfigWatcher | None:
    """Watch the SSH config file and reload the registry on change."""
    if not deps.config.settings.watch_config:
        return None
    watcher = ConfigWatcher(deps.config.store.config_path, deps.registry.reload)
    watcher.start()
    return watcher


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
    """Build dependencies, load connections and watch the config file.

    On shutdown every session is closed and local file copies are removed.
    """
    logger.info("multiconnect server starting up")
    deps = Dependencies.create()
    set_deps(deps)
    server.deps = deps  # type: ignore[attr-defined]

    config_ready = _ensure_config_file(deps)
    records = await deps.registry.reload()
    logger.info(
        "Loaded %d connection(s) from %s",
        len(records),
        deps.config.ssh_config_path,
    )
    watcher = _start_watcher(deps) if config_ready else None
    logger.info("multiconnect server ready to accept connections")

    try:
        yield {"connections": [record.alias for record in records]}
    finally:
        logger.info("multiconnect server shutting down")
        if watcher is not None:
            watcher.stop()
        active = deps.registry.active_sessions()
        if active:
            logger.info(
                "Closing %d active SSH session(s): %s",
                len(active),
                ", ".join(session.alias for session in active),
            )
        await deps.cleanup()
        logger.info("multiconnect server shutdown complete")


def configure_middleware(server: FastMCP, settings: Settings | None = None) -> None:
    """Configure middleware stack for the server.

    Adds middleware in order: ErrorHandling -> Logging (with integrated timing)

    Args:
        server: The FastMCP server to configure.
        settings: Logging options (default: read from the environment)
    """
    settings = settings or Settings.from_env()

    # Add middleware in order (first added = innermost)
    server.add_middleware(
        ErrorHandlingMiddleware(include_traceback=settings.include_traceback)
    )
    server.add_middleware(
        LoggingMiddleware(
            include_payloads=settings.log_payloads,
            slow_threshold_ms=float(settings.slow_threshold_ms),
        )
    )


def create_server() -> FastMCP:
    """Create and configure the MCP server with all middleware and resources.

    Returns:
        Configured FastMCP server instance
    """
    server = FastMCP(
        "multiconnect_mcp",
        lifespan=app_lifespan,
    )

    configure_middleware(server)

    # Connection management
    server.tool(list_connections)
    server.tool(add_connection)
    server.tool(connect)
    server.tool(disconnect)
    server.tool(remove_connection)
    server.tool(move_to_folder)
    server.tool(select_connection)
    server.tool(read_terminal)

    # Remote files. list_remote_dir returns UIResource content, which needs
    # no outputSchema validation
    server.tool(output_schema=None)(list_remote_dir)
    server.tool(open_remote_file)
    server.tool(save_remote_file)
    server.tool(close_remote_file)
    server.tool(create_remote_file)
    server.tool(create_remote_folder)

    # Broadcast
    server.tool(broadcast_command)
    server.tool(output_schema=None)(broadcast_panel)

    # Register resources
    server.resource("connections://tree")(connection_tree_resource)
    server.resource("connections://{alias}")(connection_resource)

    # Add health check endpoint for HTTP transport
    @server.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> PlainTextResponse:
        """Health check endpoint."""
        client_host = request.client.host if request.client else "unknown"
        logger.debug("Health check from %s", client_host)
        return PlainTextResponse("OK")

    return server


# Default server instance used by __main__
mcp = create_server()
