#!/usr/bin/env python3
"""
Slack MCP Gateway
Multi-tenant MCP server in front of the Slack Web API

CRITICAL: The stdio transport uses stdout for MCP protocol communication.
- stdout is reserved for MCP JSON-RPC messages
- All logging/debug output must go to stderr
"""

import logging
import sys
from typing import Optional

# Configure logging to stderr only - NEVER stdout in MCP servers
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

from .config import ServerConfig  # noqa: E402
from .core.server import create_mcp_server  # noqa: E402

__all__ = ["ServerConfig", "create_mcp_server", "create_server", "http_main", "main"]

__version__ = "0.1.0"


def _apply_log_level(config: ServerConfig) -> None:
    level = logging.getLevelName(config.log_level.upper())
    if isinstance(level, int):
        logging.getLogger().setLevel(level)
    else:
        logger.warning(f"Unknown log level {config.log_level!r}, keeping WARNING")


def _load_config(config: Optional[ServerConfig]) -> ServerConfig:
    config = config or ServerConfig()
    _apply_log_level(config)
    try:
        config.validate()
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)
    return config


def create_server(config: Optional[ServerConfig] = None):
    """Create and return the MCP server instance.

    Returns:
        The configured FastMCP server with all tools registered.
    """
    return create_mcp_server(config or ServerConfig())


def main(config: Optional[ServerConfig] = None) -> None:
    """Run the MCP server with stdio transport (legacy single-token mode)"""
    config = _load_config(config)

    if config.oauth_enabled:
        logger.error(
            "OAuth mode needs the HTTP transport (set SLACK_MCP_TRANSPORT=http); "
            "stdio has no per-request bearer token"
        )
        sys.exit(1)

    logger.info("Starting Slack MCP Gateway (stdio)")
    try:
        create_server(config).run()
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


def http_main(config: Optional[ServerConfig] = None) -> None:
    """Run the gateway over HTTP: OAuth endpoints plus the /mcp endpoint."""
    import uvicorn

    from .transport import create_app

    config = _load_config(config)
    logger.info(
        f"Starting Slack MCP Gateway (HTTP) on {config.host}:{config.port}, "
        f"oauth_enabled={config.oauth_enabled}"
    )

    if config.oauth_enabled and not config.redirect_uri.startswith("https://"):
        logger.warning(
            f"OAuth redirect URI is not HTTPS ({config.redirect_uri}); "
            "Slack requires HTTPS redirect URIs outside local development"
        )

    try:
        app = create_app(config, mcp=create_server(config))

        uvicorn_config = uvicorn.Config(
            app=app,
            host=config.host,
            port=config.port,
            log_level="warning",  # Reduce uvicorn logging, let our logger handle it
            access_log=False,
        )
        uvicorn.Server(uvicorn_config).run()
    except KeyboardInterrupt:
        logger.info("Server shutdown requested")
    except Exception:
        logger.exception("Server error")
        raise
