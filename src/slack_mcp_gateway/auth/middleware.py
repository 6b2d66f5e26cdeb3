"""
Per-request authentication middleware.

Turns an ``Authorization: Bearer <token>`` header into a verified,
request-scoped UserContext before any protected handler runs.

Key Features:
- Bearer validation against Slack on every request (no caching)
- Fallback identity when no stored credential record exists
- 401 responses with WWW-Authenticate headers
- Request state and contextvar injection for downstream handlers
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from .context import reset_user_context, set_user_context
from .errors import AuthError, CredentialNotFoundError, MissingCredentialError
from .models import UserContext

if TYPE_CHECKING:
    from starlette.requests import Request

    from .oauth import OAuthManager

logger = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Strip the ``Bearer`` scheme from an Authorization header value.

    A value without the scheme prefix is taken as the raw token.

    Raises:
        MissingCredentialError: If the header is absent or holds no token
    """
    if not authorization:
        raise MissingCredentialError()
    token = authorization.strip()
    scheme, _, credentials = token.partition(" ")
    if scheme.lower() == BEARER_SCHEME:
        token = credentials.strip()
    if not token:
        raise MissingCredentialError()
    return token


async def resolve_user_context(
    authorization: Optional[str], manager: OAuthManager
) -> UserContext:
    """Authenticate a request from its Authorization header.

    Steps run strictly in order and each one is a hard gate:
    1. Extract the bearer token
    2. Validate it with Slack
    3. Look up the stored credential record for the bot token
    4. Build the request's UserContext

    Raises:
        MissingCredentialError: No token supplied
        InvalidCredentialError: Slack rejected the token
    """
    token = extract_bearer_token(authorization)
    info = await manager.validate_bearer(token)

    bot_token: Optional[str] = None
    bot_user_id: Optional[str] = None
    try:
        stored = manager.lookup_stored(info.user_id)
    except CredentialNotFoundError:
        logger.warning(
            f"No stored credentials for user={info.user_id}, continuing without bot token"
        )
    else:
        if stored.team_id and info.team_id and stored.team_id != info.team_id:
            logger.warning(
                f"Stored credentials for user={info.user_id} belong to team={stored.team_id}, "
                f"token validated for team={info.team_id}; ignoring stored bot token"
            )
        else:
            bot_token = stored.bot_token
            bot_user_id = stored.bot_user_id

    return UserContext(
        user_id=info.user_id,
        team_id=info.team_id,
        access_token=token,
        bot_token=bot_token,
        bot_user_id=bot_user_id,
    )


class AuthMiddleware(BaseHTTPMiddleware):
    """Bearer-token authentication for protected paths.

    Requests outside ``protected_prefixes`` (OAuth endpoints, health checks)
    pass through untouched.

    Attributes:
        manager: OAuth manager used for validation and record lookup
        protected_prefixes: Path prefixes that require authentication
    """

    def __init__(  # type: ignore[no-untyped-def]
        self,
        app,
        manager: OAuthManager,
        protected_prefixes: Iterable[str] = ("/mcp",),
        realm: str = "slack-mcp-gateway",
    ) -> None:
        super().__init__(app)
        self.manager = manager
        self.protected_prefixes = tuple(protected_prefixes)
        self.realm = realm

        logger.info(f"AuthMiddleware initialized: protected_prefixes={self.protected_prefixes}")

    def is_protected(self, path: str) -> bool:
        return any(path.startswith(prefix) for prefix in self.protected_prefixes)

    def get_www_authenticate_header(self, error: AuthError) -> str:
        if isinstance(error, MissingCredentialError):
            return f'Bearer realm="{self.realm}"'
        return f'Bearer realm="{self.realm}", error="invalid_token"'

    async def dispatch(self, request: Request, call_next):  # type: ignore[no-untyped-def]
        """Authenticate protected requests, then hand them downstream.

        Args:
            request: Incoming HTTP request
            call_next: Next middleware/handler in chain

        Returns:
            Response from downstream handler or 401 if auth fails
        """
        if not self.is_protected(request.url.path):
            return await call_next(request)

        try:
            user_context = await resolve_user_context(
                request.headers.get("authorization"), self.manager
            )
        except AuthError as e:
            logger.warning(
                f"Unauthorized request: path={request.url.path}, reason={e.code}, "
                f"client={request.client.host if request.client else 'unknown'}"
            )
            return JSONResponse(
                e.to_dict(),
                status_code=e.status_code,
                headers={"WWW-Authenticate": self.get_www_authenticate_header(e)},
            )

        request.state.user_context = user_context
        token = set_user_context(user_context)

        logger.debug(
            f"Authenticated request: user={user_context.user_id}, "
            f"team={user_context.team_id}, path={request.url.path}"
        )

        try:
            return await call_next(request)
        finally:
            reset_user_context(token)
