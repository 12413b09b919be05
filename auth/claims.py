"""
auth/claims.py -- Read-only view over a verified token payload.

TokenClaims is the only thing resource handlers receive from the auth core.
Tenant scoping must come from tenant_id() here, never from a path or query
parameter supplied by the caller.

None of the accessors raise. A missing or malformed claim reads as None and
the caller decides whether that is fatal (AuthService rejects a missing
tenant with ValidationError).
"""

from __future__ import annotations

from typing import Any


def _as_int(value: Any) -> int | None:
    # bool is an int subclass; a JSON true is not a tenant id.
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


class TokenClaims:
    """Accessors for the claims of a signature- and expiry-checked token."""

    def __init__(self, payload: dict) -> None:
        self._payload = dict(payload)

    def get(self, name: str, default: Any = None) -> Any:
        return self._payload.get(name, default)

    def tenant_id(self) -> int | None:
        """Numeric tenant id from tenantId, falling back to customerId."""
        tenant = _as_int(self._payload.get("tenantId"))
        if tenant is None:
            tenant = _as_int(self._payload.get("customerId"))
        return tenant

    def actor_id(self) -> int | None:
        """Numeric user id. None for client tokens."""
        return _as_int(self._payload.get("userId"))

    def role(self) -> str | None:
        """Role claim, or the first group when no role claim is present (client tokens)."""
        role = self._payload.get("role")
        if isinstance(role, str) and role:
            return role
        groups = self._payload.get("groups")
        if isinstance(groups, list) and groups and isinstance(groups[0], str):
            return groups[0]
        return None

    def principal_name(self) -> str | None:
        name = self._payload.get("sub") or self._payload.get("upn")
        return name if isinstance(name, str) else None

    def principal_kind(self) -> str | None:
        return self._payload.get("tokenType")

    def client_id(self) -> str | None:
        return self._payload.get("clientId")

    def scopes(self) -> str:
        """Raw comma-delimited scope string; empty for user tokens."""
        scopes = self._payload.get("scopes")
        return scopes if isinstance(scopes, str) else ""

    def __repr__(self) -> str:
        return (
            f"TokenClaims(principal={self.principal_name()!r}, kind={self.principal_kind()!r}, "
            f"tenant={self.tenant_id()!r}, role={self.role()!r})"
        )
