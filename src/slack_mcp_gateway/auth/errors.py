"""
Error taxonomy for the authentication boundary.

Every error carries the HTTP status it maps to at the transport layer and a
stable machine-readable code. ``StateGenerationError`` sits outside this
hierarchy: nothing is allowed to handle it.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for authentication and authorization failures."""

    status_code: int = 401
    code: str = "auth_error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message())

    @classmethod
    def default_message(cls) -> str:
        return "Authentication failed"

    def to_dict(self) -> dict[str, str]:
        return {"error": self.code, "message": str(self)}


class MissingCredentialError(AuthError):
    """No bearer credential was supplied with the request."""

    code = "missing_credential"

    @classmethod
    def default_message(cls) -> str:
        return "Missing authentication token"


class InvalidCredentialError(AuthError):
    """The bearer credential was rejected or could not be verified."""

    code = "invalid_credential"

    @classmethod
    def default_message(cls) -> str:
        return "Invalid authentication token"


class CredentialNotFoundError(AuthError):
    """No credential record is stored for the requested user."""

    code = "not_found"

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__(f"Token not found for user {user_id}")


class InvalidOrExpiredStateError(AuthError):
    """The CSRF state token is unknown, expired or was already used."""

    status_code = 400
    code = "invalid_or_expired_state"

    @classmethod
    def default_message(cls) -> str:
        return "Invalid or expired state"


class UpstreamRejectedError(AuthError):
    """Slack answered the request with an error."""

    status_code = 500
    code = "upstream_rejected"

    def __init__(self, error: str) -> None:
        self.error = error
        super().__init__(f"Slack error: {error}")


class UpstreamUnreachableError(AuthError):
    """Slack could not be reached or did not answer in time."""

    status_code = 500
    code = "upstream_unreachable"

    @classmethod
    def default_message(cls) -> str:
        return "Slack API unreachable"


class StateGenerationError(RuntimeError):
    """The system random source failed; no state token can be issued safely."""
