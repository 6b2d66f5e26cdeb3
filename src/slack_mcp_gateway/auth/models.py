"""
Data models for authentication module.

Separated from __init__.py to avoid circular imports between
the main auth module and provider implementations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

# Slack user tokens do not expire unless token rotation is enabled; the
# recorded horizon is advisory only.
CREDENTIAL_HORIZON = timedelta(days=365)


def _default_issued_until() -> datetime:
    return datetime.now(timezone.utc) + CREDENTIAL_HORIZON


@dataclass(frozen=True)
class CredentialRecord:
    """Result of a successful OAuth code exchange for one Slack user.

    Attributes:
        user_id: Slack user ID (``authed_user.id``), unique storage key
        team_id: Slack workspace ID
        access_token: User token (xoxp-...), acts as the user
        bot_token: Bot token (xoxb-...) when bot scopes were granted, else None
        bot_user_id: Bot user ID when a bot token was granted, else None
        issued_until: Advisory expiry
    """

    user_id: str
    team_id: str
    access_token: str
    bot_token: Optional[str] = None
    bot_user_id: Optional[str] = None
    issued_until: datetime = field(default_factory=_default_issued_until)

    @property
    def has_bot_token(self) -> bool:
        return self.bot_token is not None

    def __repr__(self) -> str:
        return (
            f"CredentialRecord(user_id={self.user_id!r}, team_id={self.team_id!r}, "
            f"has_bot_token={self.has_bot_token})"
        )


@dataclass(frozen=True)
class TokenInfo:
    """Identity returned by Slack's ``auth.test`` for a bearer token."""

    user_id: str
    team_id: str


@dataclass(frozen=True)
class UserContext:
    """Identity attached to a single authenticated request.

    Built fresh for every request and never stored or shared.

    Attributes:
        user_id: Validated Slack user ID
        team_id: Validated Slack workspace ID
        access_token: The bearer token the request was authenticated with
        bot_token: Bot token from the stored credential record, if any
        bot_user_id: Bot user ID from the stored credential record, if any
    """

    user_id: str
    team_id: str
    access_token: str
    bot_token: Optional[str] = None
    bot_user_id: Optional[str] = None

    @property
    def has_bot_token(self) -> bool:
        return self.bot_token is not None

    def __repr__(self) -> str:
        return (
            f"UserContext(user_id={self.user_id!r}, team_id={self.team_id!r}, "
            f"has_bot_token={self.has_bot_token})"
        )
