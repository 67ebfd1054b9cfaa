"""Entry point for multiconnect_mcp server."""

import logging

from multiconnect_mcp.config import Settings
from multiconnect_mcp.server import mcp  # This import also configures logging

logger = logging.getLogger(__name__)


def run_server() -> None:
    """Run the MCP server with configured transport."""
    settings = Settings.from_env()
    logger.info(
        "Logging configured: level=%s, transport=%s",
        settings.log_level,
        settings.transport,
    )

    if settings.transport == "stdio":
        logger.info("Starting multiconnect server (transport=stdio)")
        mcp.run(transport="stdio")
    else:
        logger.info(
            "Starting multiconnect server (transport=http, host=%s, port=%d)",
            settings.http_host,
            settings.http_port,
        )
        mcp.run(
            transport="http",
            host=settings.http_host,
            port=settings.http_port,
        )


if __name__ == "__main__":
    run_server()
