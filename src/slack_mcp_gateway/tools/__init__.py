"""MCP tools and resources for Slack MCP Gateway"""

from .channels import channels_list, channels_resource, register_channel_tools

__all__ = [
    "channels_list",
    "channels_resource",
    "register_channel_tools",
]
