"""
Slack OAuth 2.0 (v2) authorization-code flow.

The manager builds the authorization URL, exchanges callback codes for user
and bot tokens, validates bearer tokens against ``auth.test`` and keeps the
resulting credential records in a CredentialStore.

Every upstream call is bounded by a 10 second timeout and is made outside of
any lock.
"""

from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import urlencode

import httpx

from ..config import ServerConfig
from ..security_utils import CredentialSanitizer
from .errors import (
    InvalidCredentialError,
    InvalidOrExpiredStateError,
    UpstreamRejectedError,
    UpstreamUnreachableError,
)
from .models import CredentialRecord, TokenInfo
from .state import StateRegistry
from .storage import CredentialStore

logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://slack.com/oauth/v2/authorize"
TOKEN_URL = "https://slack.com/api/oauth.v2.access"
AUTH_TEST_URL = "https://slack.com/api/auth.test"

UPSTREAM_TIMEOUT_SECONDS = 10.0

# Scopes for the acting-as-user token (xoxp-...)
USER_SCOPES: tuple[str, ...] = (
    "channels:history",
    "channels:read",
    "groups:history",
    "groups:read",
    "im:history",
    "im:read",
    "im:write",
    "mpim:history",
    "mpim:read",
    "mpim:write",
    "users:read",
    "chat:write",
    "search:read",
)

# Scopes for the optional bot token (xoxb-...)
BOT_SCOPES: tuple[str, ...] = (
    "channels:history",
    "channels:read",
    "groups:history",
    "groups:read",
    "im:history",
    "im:read",
    "im:write",
    "mpim:history",
    "mpim:read",
    "mpim:write",
    "users:read",
    "chat:write",
)


class OAuthManager:
    """Slack OAuth flow manager.

    Args:
        config: Server configuration (client id/secret, redirect URI)
        store: Credential store receiving successful exchanges
        states: Registry holding issued CSRF state tokens
        http_client: Optional pre-built client (tests pass one backed by
            ``httpx.MockTransport``); otherwise the manager owns its own
    """

    def __init__(
        self,
        config: ServerConfig,
        store: CredentialStore,
        states: StateRegistry,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.client_id = config.client_id
        self.client_secret = config.client_secret
        self.redirect_uri = config.redirect_uri
        self.store = store
        self.states = states
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=config.upstream_timeout or UPSTREAM_TIMEOUT_SECONDS
        )

        logger.info(
            f"OAuthManager initialized: client_id={self.client_id}, "
            f"redirect_uri={self.redirect_uri}"
        )

    async def aclose(self) -> None:
        """Close the HTTP client if the manager created it."""
        if self._owns_client:
            await self._http.aclose()

    def build_authorization_url(self, state: str) -> str:
        """Build the Slack authorization URL for ``state``.

        Pure function of the configuration and ``state``; no network access.

        Raises:
            ValueError: If ``state`` is empty
        """
        if not state:
            raise ValueError("state must be a non-empty string")

        params = {
            "client_id": self.client_id,
            "scope": ",".join(BOT_SCOPES),
            "user_scope": ",".join(USER_SCOPES),
            "redirect_uri": self.redirect_uri,
            "state": state,
        }
        return f"{AUTHORIZE_URL}?{urlencode(params)}"

    def begin_authorization(self) -> tuple[str, str]:
        """Issue a fresh state token and the matching authorization URL.

        Returns:
            Tuple of (authorization_url, state)
        """
        state = self.states.issue()
        return self.build_authorization_url(state), state

    async def exchange_code(self, code: str, state: str) -> CredentialRecord:
        """Exchange an authorization code for tokens and store them.

        The state is consumed before anything is sent upstream, so a state can
        back at most one exchange.

        Raises:
            InvalidOrExpiredStateError: If the state is unknown, expired or reused
            UpstreamUnreachableError: If Slack cannot be reached
            UpstreamRejectedError: If Slack rejects the code
        """
        if not self.states.consume(state):
            raise InvalidOrExpiredStateError()

        data = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "code": code,
            "redirect_uri": self.redirect_uri,
        }

        try:
            response = await self._http.post(TOKEN_URL, data=data)
        except httpx.HTTPError as e:
            logger.error(
                f"Token exchange request failed: {CredentialSanitizer.sanitize_error(e)}"
            )
            raise UpstreamUnreachableError(f"failed to exchange code: {type(e).__name__}") from e

        result = self._decode(response, on_error=UpstreamRejectedError)
        if not result.get("ok"):
            error = str(result.get("error") or "unknown_error")
            logger.warning(f"Slack rejected code exchange: {error}")
            raise UpstreamRejectedError(error)

        authed_user = result.get("authed_user") or {}
        team = result.get("team") or {}
        user_id = authed_user.get("id") or ""
        access_token = authed_user.get("access_token") or ""
        if not user_id or not access_token:
            raise UpstreamRejectedError("missing_authed_user")

        record = CredentialRecord(
            user_id=user_id,
            team_id=team.get("id") or "",
            access_token=access_token,
            bot_token=result.get("access_token") or None,
            bot_user_id=result.get("bot_user_id") or None,
        )
        self.store.store(record)

        if record.has_bot_token:
            logger.info(f"OAuth exchange for user={record.user_id} returned user and bot tokens")
        else:
            logger.info(f"OAuth exchange for user={record.user_id} returned a user token only")

        return record

    async def validate_bearer(self, token: str) -> TokenInfo:
        """Check a bearer token with Slack's ``auth.test``.

        Not cached: revocations are visible on the next request.

        Raises:
            InvalidCredentialError: On rejection or any failure to verify
        """
        if not token:
            raise InvalidCredentialError()

        try:
            response = await self._http.post(
                AUTH_TEST_URL,
                headers={
                    "Authorization": f"Bearer {token}",
                    "Content-Type": "application/x-www-form-urlencoded",
                },
            )
        except httpx.HTTPError as e:
            logger.warning(f"auth.test request failed: {type(e).__name__}")
            raise InvalidCredentialError("invalid authentication token: upstream unavailable") from e

        result = self._decode(response, on_error=InvalidCredentialError)
        if not result.get("ok"):
            raise InvalidCredentialError(
                f"invalid authentication token: {result.get('error') or 'unknown_error'}"
            )

        user_id = result.get("user_id") or ""
        if not user_id:
            raise InvalidCredentialError("invalid authentication token: no user")

        return TokenInfo(user_id=user_id, team_id=result.get("team_id") or "")

    def lookup_stored(self, user_id: str) -> CredentialRecord:
        """Return the stored credential record for ``user_id``.

        Raises:
            CredentialNotFoundError: If nothing is stored for the user
        """
        return self.store.get(user_id)

    @staticmethod
    def _decode(response: httpx.Response, on_error: type[Exception]) -> dict[str, Any]:
        if response.status_code >= 400:
            raise on_error(f"http_{response.status_code}")
        try:
            payload = response.json()
        except ValueError as e:
            raise on_error("invalid_response") from e
        if not isinstance(payload, dict):
            raise on_error("invalid_response")
        return payload
