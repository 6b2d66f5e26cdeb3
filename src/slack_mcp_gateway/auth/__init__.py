"""
Authentication boundary for the Slack MCP gateway.

Architecture:
- MemoryCredentialStore: per-process credential records keyed by Slack user ID
- StateRegistry: single-use, time bound OAuth state tokens with a sweep task
- OAuthManager: authorization URL, code exchange, bearer validation
- AuthMiddleware: per-request bearer validation producing a UserContext
- get_user_context(): access to the current request's identity from tools

Usage:
    store = MemoryCredentialStore()
    states = StateRegistry()
    manager = OAuthManager(config, store, states)

    app.add_middleware(AuthMiddleware, manager=manager)
"""

from .context import get_user_context, require_user_context
from .errors import (
    AuthError,
    CredentialNotFoundError,
    InvalidCredentialError,
    InvalidOrExpiredStateError,
    MissingCredentialError,
    StateGenerationError,
    UpstreamRejectedError,
    UpstreamUnreachableError,
)
from .middleware import AuthMiddleware, extract_bearer_token, resolve_user_context
from .models import CredentialRecord, TokenInfo, UserContext
from .oauth import BOT_SCOPES, USER_SCOPES, OAuthManager
from .state import StateRegistry
from .storage import CredentialStore, MemoryCredentialStore

__all__ = [
    # Models
    "CredentialRecord",
    "TokenInfo",
    "UserContext",
    # Errors
    "AuthError",
    "CredentialNotFoundError",
    "InvalidCredentialError",
    "InvalidOrExpiredStateError",
    "MissingCredentialError",
    "StateGenerationError",
    "UpstreamRejectedError",
    "UpstreamUnreachableError",
    # Storage
    "CredentialStore",
    "MemoryCredentialStore",
    "StateRegistry",
    # OAuth
    "BOT_SCOPES",
    "USER_SCOPES",
    "OAuthManager",
    # Middleware
    "AuthMiddleware",
    "extract_bearer_token",
    "get_user_context",
    "require_user_context",
    "resolve_user_context",
]
