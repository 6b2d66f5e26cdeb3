"""User context for MCP tool handlers using contextvars.

Tool handlers do not see the HTTP request directly, so the middleware
publishes the resolved identity in a context variable that is local to the
request's task.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar, Token
from typing import Optional

from .errors import MissingCredentialError
from .models import UserContext

logger = logging.getLogger(__name__)

_user_context: ContextVar[Optional[UserContext]] = ContextVar("user_context", default=None)


def set_user_context(context: UserContext) -> Token[Optional[UserContext]]:
    """Publish ``context`` for the current request; returns a reset token."""
    return _user_context.set(context)


def reset_user_context(token: Token[Optional[UserContext]]) -> None:
    _user_context.reset(token)


def get_user_context() -> Optional[UserContext]:
    """Get the identity of the current request, or None outside one."""
    return _user_context.get()


def require_user_context() -> UserContext:
    """Get the identity of the current request.

    Raises:
        MissingCredentialError: If no authenticated request is in progress
    """
    context = _user_context.get()
    if context is None:
        logger.warning("Tool called without an authenticated user context")
        raise MissingCredentialError("user context not found")
    return context
