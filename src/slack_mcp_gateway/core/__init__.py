"""Core server module: listing engine, FastMCP factory and decorators"""

from .listing import Channel, ChannelPage, list_channels
from .server import create_mcp_server, handle_tool_errors

__all__ = ["Channel", "ChannelPage", "create_mcp_server", "handle_tool_errors", "list_channels"]
