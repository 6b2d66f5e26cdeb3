"""HTTP server for Slack MCP Gateway.

Serves the OAuth bootstrap endpoints (``/oauth/authorize``,
``/oauth/callback``), a health check, and the FastMCP streamable HTTP
endpoint at ``/mcp`` behind the authentication middleware.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator
from typing import Any, Optional

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.routing import BaseRoute, Mount, Route

from ..auth import (
    AuthError,
    AuthMiddleware,
    InvalidOrExpiredStateError,
    MemoryCredentialStore,
    OAuthManager,
    StateRegistry,
)
from ..config import ServerConfig
from ..core.server import SERVER_NAME

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
}

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, private",
    "Pragma": "no-cache",
}

MESSAGE_USER_ONLY = "Authentication successful! Use this access_token in your MCP client."
MESSAGE_USER_AND_BOT = (
    "Authentication successful! Both user and bot tokens received. "
    "Messages will post as bot when post_as_bot=true."
)


class OAuthHandler:
    """Request handlers for the OAuth bootstrap endpoints."""

    def __init__(self, manager: OAuthManager):
        self.manager = manager

    async def handle_authorize(self, request: Request) -> Response:
        """Start the OAuth flow: issue a state and return the Slack URL."""
        authorization_url, state = self.manager.begin_authorization()
        return JSONResponse(
            {"authorization_url": authorization_url, "state": state},
            headers=SECURITY_HEADERS,
        )

    async def handle_callback(self, request: Request) -> Response:
        """Finish the OAuth flow: verify the state and exchange the code."""
        headers = {**SECURITY_HEADERS, **NO_CACHE_HEADERS}
        code = request.query_params.get("code", "")
        state = request.query_params.get("state", "")

        if not code or not state:
            return PlainTextResponse("Missing code or state", status_code=400, headers=headers)

        try:
            record = await self.manager.exchange_code(code, state)
        except InvalidOrExpiredStateError:
            logger.warning("OAuth callback with invalid or expired state")
            return PlainTextResponse("Invalid or expired state", status_code=400, headers=headers)
        except AuthError as e:
            logger.error(f"OAuth callback failed: {e}")
            return PlainTextResponse("Authentication failed", status_code=500, headers=headers)

        logger.info(f"User authenticated via OAuth: user={record.user_id}, team={record.team_id}")

        body = {
            "access_token": record.access_token,
            "user_id": record.user_id,
            "team_id": record.team_id,
            "message": MESSAGE_USER_ONLY,
        }
        if record.bot_token is not None:
            body["bot_token"] = record.bot_token
            body["bot_user_id"] = record.bot_user_id or ""
            body["message"] = MESSAGE_USER_AND_BOT

        return JSONResponse(body, headers=headers)


def create_app(
    config: ServerConfig,
    mcp: Any = None,
    manager: Optional[OAuthManager] = None,
    states: Optional[StateRegistry] = None,
) -> Starlette:
    """Create the Starlette application.

    Args:
        config: Server configuration
        mcp: FastMCP instance to serve at /mcp (omitted in tests of the
            OAuth surface)
        manager: OAuth manager override; built from config when omitted
        states: State registry override; built from config when omitted

    Returns:
        Starlette application instance
    """
    routes: list[BaseRoute] = []
    middleware: list[Middleware] = []

    async def health_check(request: Request) -> JSONResponse:
        """Health check endpoint for load balancers."""
        return JSONResponse(
            {
                "status": "healthy",
                "service": SERVER_NAME,
                "oauth_enabled": config.oauth_enabled,
            }
        )

    routes.append(Route("/health", health_check, methods=["GET"]))

    if config.oauth_enabled:
        if manager is None:
            if states is None:
                states = StateRegistry(
                    ttl=config.state_ttl_seconds,
                    sweep_interval=config.state_sweep_interval_seconds,
                )
            manager = OAuthManager(config, MemoryCredentialStore(), states)
        states = manager.states

        handler = OAuthHandler(manager)
        routes.append(Route("/oauth/authorize", handler.handle_authorize, methods=["GET"]))
        routes.append(Route("/oauth/callback", handler.handle_callback, methods=["GET"]))
        middleware.append(Middleware(AuthMiddleware, manager=manager, protected_prefixes=("/mcp",)))
        logger.info("OAuth mode enabled")
    else:
        logger.info("OAuth disabled, serving legacy single-token mode")

    if mcp is not None:
        routes.append(Mount("/", app=mcp.streamable_http_app()))

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        async with contextlib.AsyncExitStack() as stack:
            if states is not None:
                await states.start()
                stack.push_async_callback(states.stop)
            if manager is not None:
                stack.push_async_callback(manager.aclose)
            if mcp is not None:
                await stack.enter_async_context(mcp.session_manager.run())
            logger.info(f"HTTP server ready on http://{config.host}:{config.port}")
            yield

    return Starlette(routes=routes, middleware=middleware, lifespan=lifespan)
