"""
Transport layer for Slack MCP Gateway.

Provides the Starlette HTTP application with:
- OAuth bootstrap endpoints (authorize, callback)
- Bearer-authenticated FastMCP streamable HTTP endpoint
- Health check
"""

from .http_server import OAuthHandler, create_app

__all__ = ["OAuthHandler", "create_app"]
