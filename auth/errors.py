"""
auth/errors.py -- Error taxonomy for the login and client administration flows.

Every class carries the HTTP status, machine code and external message the
API layer renders. The external message is fixed per class: the internal
reason (unknown user vs wrong password, unknown client vs expired client)
goes to the log, never to the caller [anti-enumeration].
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for all expected authentication failures."""

    status_code: int = 401
    code: str = "unauthorized"
    message: str = "Authentication failed."

    def __init__(self, reason: str | None = None) -> None:
        # reason is for logs only; str(exc) never reaches a response body.
        super().__init__(reason or self.message)
        self.reason = reason or self.message


class InvalidCredentials(AuthError):
    """Unknown username or wrong password. The two are indistinguishable."""

    code = "bad_credentials"
    message = "Invalid username or password."


class AccountInactive(AuthError):
    code = "account_inactive"
    message = "User account is not active."


class InvalidClient(AuthError):
    """Unknown, revoked or mismatched client credentials."""

    code = "invalid_client"
    message = "Invalid client credentials."


class ClientExpired(InvalidClient):
    """Correct secret but expires_at has passed. Rendered exactly like InvalidClient."""


class UnsupportedGrantType(AuthError):
    status_code = 400
    code = "unsupported_grant_type"
    message = "Unsupported grant type."


class ValidationError(AuthError):
    """Administrative call without the tenant/actor context it needs."""

    status_code = 400
    code = "validation_error"
    message = "Missing tenant or user context."
