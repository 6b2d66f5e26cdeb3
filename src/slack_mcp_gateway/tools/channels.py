"""
Channel listing tool and channel directory resource
"""

import logging
from collections.abc import Callable
from typing import Any

from ..auth.context import require_user_context
from ..clients.slack import SlackWebClient, workspace_from_url
from ..config import ServerConfig
from ..core.listing import ALL_CHANNEL_TYPES, ChannelPage, list_channels, parse_channel_types
from ..core.server import handle_tool_errors
from ..formatting import format_channel_page

logger = logging.getLogger(__name__)

CHANNELS_LIST_DESCRIPTION = (
    "List Slack channels visible to you as CSV (id, name, topic, purpose, memberCount, cursor). "
    "channel_types is a comma-separated subset of public_channel, private_channel, im, mpim. "
    "sort=popularity orders the page by member count. Pass the cursor from the last row to "
    "fetch the next page."
)

CHANNELS_RESOURCE_URI = "slack://{workspace}/channels"
CHANNELS_RESOURCE_DESCRIPTION = "Directory of all channels in the workspace as CSV"


def resolve_slack_token(config: ServerConfig) -> str:
    """Pick the token the current request acts with.

    OAuth mode uses the authenticated caller's own token; legacy mode uses the
    single configured token.
    """
    if config.oauth_enabled:
        return require_user_context().access_token
    if not config.legacy_token:
        raise ValueError("SLACK_MCP_XOXP_TOKEN is not configured")
    return config.legacy_token


async def channels_list(
    config: ServerConfig,
    channel_types: str = "public_channel",
    sort: str = "popularity",
    limit: int = 0,
    cursor: str = "",
    client_factory: Callable[..., Any] = SlackWebClient,
) -> str:
    """
    List channels for the current caller.

    Args:
        config: Server configuration
        channel_types: Comma-separated channel types
        sort: Display order for the page ("popularity" or "")
        limit: Page size (0 for the default of 100, capped at 999)
        cursor: Cursor from a previous page
        client_factory: Builds the per-request Slack client

    Returns:
        CSV rendering of the page
    """
    types = parse_channel_types(channel_types)
    token = resolve_slack_token(config)

    logger.debug(f"channels_list: types={types}, sort={sort}, limit={limit}, cursor={bool(cursor)}")

    async with client_factory(token, timeout=config.upstream_timeout) as client:
        channels = await client.conversations_list(types)

    page = list_channels(channels, types, cursor=cursor, limit=limit, sort=sort)
    logger.debug(f"channels_list returning {len(page.channels)} channels, has_more={page.has_more}")
    return format_channel_page(page)


async def channels_resource(
    config: ServerConfig,
    workspace: str,
    client_factory: Callable[..., Any] = SlackWebClient,
) -> str:
    """
    Render every conversation in the caller's workspace as CSV.

    The workspace in the resource URI must be the one the caller's token
    belongs to, as reported by ``auth.test``.
    """
    token = resolve_slack_token(config)

    async with client_factory(token, timeout=config.upstream_timeout) as client:
        identity = await client.auth_test()
        caller_workspace = workspace_from_url(identity.get("url") or "")
        if workspace != caller_workspace:
            raise ValueError(
                f"Workspace {workspace!r} does not match the authenticated workspace "
                f"{caller_workspace!r}"
            )
        channels = await client.conversations_list(list(ALL_CHANNEL_TYPES))

    logger.debug(f"channels resource returning {len(channels)} channels for {workspace}")
    return format_channel_page(ChannelPage(channels=sorted(channels, key=lambda ch: ch.id)))


def register_channel_tools(
    mcp: Any, config: ServerConfig, client_factory: Callable[..., Any] = SlackWebClient
) -> None:
    """Register the channel tool and the channel directory resource on a FastMCP server."""

    @mcp.tool(name="channels_list", description=CHANNELS_LIST_DESCRIPTION)
    @handle_tool_errors
    async def channels_list_tool(
        channel_types: str = "public_channel",
        sort: str = "popularity",
        limit: int = 0,
        cursor: str = "",
    ) -> str:
        return await channels_list(
            config,
            channel_types=channel_types,
            sort=sort,
            limit=limit,
            cursor=cursor,
            client_factory=client_factory,
        )

    @mcp.resource(
        CHANNELS_RESOURCE_URI,
        name="channels",
        description=CHANNELS_RESOURCE_DESCRIPTION,
        mime_type="text/csv",
    )
    async def channels_directory(workspace: str) -> str:
        return await channels_resource(config, workspace, client_factory=client_factory)
