"""
MCP Server setup and core decorators for Slack MCP Gateway
"""

import logging
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from ..auth.errors import AuthError, UpstreamUnreachableError
from ..config import ServerConfig
from ..security_utils import CredentialSanitizer

logger = logging.getLogger(__name__)

# Type variable for decorators
T = TypeVar("T")

SERVER_NAME = "slack-mcp-gateway"


def handle_tool_errors(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator to handle standard error patterns for MCP tools.

    Provides consistent error handling and logging across all tool functions.
    """
    # Deferred: clients.slack imports core.listing, which loads this package
    from ..clients.slack import SlackAPIError

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        tool_name = func.__name__
        try:
            return await func(*args, **kwargs)  # type: ignore[misc, return-value]
        except UpstreamUnreachableError as e:
            logger.warning(f"Slack unreachable in {tool_name}: {e}")
            return f"❌ **Slack API unreachable**: {e}"
        except AuthError as e:
            logger.warning(f"Authentication error in {tool_name}: {e.code}")
            return f"❌ **Authentication error**: {e}"
        except SlackAPIError as e:
            logger.warning(f"Slack API error in {tool_name}: {e.error}")
            return f"❌ **Slack API error**: {e}"
        except ValueError as e:
            logger.warning(f"Validation error in {tool_name}: {e}")
            return f"❌ **Invalid input**: {str(e)}"
        except Exception as e:
            logger.exception(f"Unexpected error in {tool_name}")
            return (
                f"❌ **Unexpected error in {tool_name}**: "
                f"{type(e).__name__}: {CredentialSanitizer.sanitize_error(e)}"
            )

    return wrapper  # type: ignore[misc, return-value]


def create_mcp_server(config: ServerConfig, client_factory: Any = None) -> Any:
    """Create the FastMCP server with all tools registered.

    Args:
        config: Server configuration
        client_factory: Optional Slack client factory override

    Returns:
        Configured FastMCP instance
    """
    from mcp.server.fastmcp import FastMCP

    from ..tools import register_channel_tools

    mcp = FastMCP(
        SERVER_NAME,
        host=config.host,
        port=config.port,
        stateless_http=True,
        json_response=True,
    )

    if client_factory is None:
        register_channel_tools(mcp, config)
    else:
        register_channel_tools(mcp, config, client_factory=client_factory)

    logger.info(f"MCP server created: oauth_enabled={config.oauth_enabled}")
    return mcp
