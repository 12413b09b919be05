"""
auth/tokens.py -- Signed bearer token construction and verification.

Security design decisions:
  JWT: python-jose, HS256 by default. Tokens are signed with SECRET_KEY and
       carry the tenant, the principal and its role or scopes. Verification
       returns None on any failure -- the dependency layer turns that into 401.

  Configuration is injected: TokenIssuer takes a Settings instance at
       construction and never reads ambient state afterwards, so a test can
       build an issuer with fixed durations and a fixed key.

  Claim names follow the MicroProfile JWT conventions the downstream
       resource services already verify against: upn and groups, plus the
       application claims userId, customerId/tenantId, role, deviceType,
       tokenType, clientId and scopes. tenantId and customerId carry the same
       value.

  Client tokens carry groups=["CLIENT"] and no role claim, so a client whose
       scope strings happen to read "ADMIN" still cannot pass a role check.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from auth.models import CLIENT_GROUP, PrincipalKind
from core.config import Settings

logger = logging.getLogger("tenantauth.auth.tokens")

DEVICE_WEB = "web"
DEVICE_APP = "app"


def normalize_device_category(device_category: str | None) -> str:
    """Map a caller-supplied device hint to "app" or "web" (the default)."""
    if device_category and device_category.strip().lower() == DEVICE_APP:
        return DEVICE_APP
    return DEVICE_WEB


class TokenIssuer:
    """Builds, signs and verifies bearer tokens. No store access, no side effects.

    Usage:
        issuer = TokenIssuer(get_settings())
        token, expires_in = issuer.issue_user_token(1, "alice", 7, "ADMIN", "app")
        payload = issuer.decode(token)
    """

    def __init__(self, settings: Settings) -> None:
        self._key = settings.secret_key
        self._algorithm = settings.jwt_algorithm
        self.issuer = settings.jwt_issuer
        self.web_duration = settings.token_duration_web
        self.app_duration = settings.token_duration_app
        self.client_duration = settings.token_duration_client

    # ------------------------------------------------------------------
    # Lifetimes
    # ------------------------------------------------------------------

    def token_duration(self, device_category: str | None) -> int:
        """Return the user token lifetime in seconds for a device hint."""
        if normalize_device_category(device_category) == DEVICE_APP:
            return self.app_duration
        return self.web_duration

    # ------------------------------------------------------------------
    # Issuance
    # ------------------------------------------------------------------

    def issue_user_token(
        self,
        user_id: int,
        username: str,
        tenant_id: int,
        role: str,
        device_category: str | None = None,
    ) -> tuple[str, int]:
        """Sign a token for a human user. Returns (token, expires_in seconds)."""
        device = normalize_device_category(device_category)
        duration = self.token_duration(device)
        claims = {
            "sub": username,
            "upn": username,
            "userId": user_id,
            "customerId": tenant_id,
            "tenantId": tenant_id,
            "role": role,
            "deviceType": device,
            "tokenType": PrincipalKind.USER.value,
            "groups": [role],
        }
        return self._sign(claims, duration), duration

    def issue_client_token(self, client_id: str, tenant_id: int, scopes: str | None) -> tuple[str, int]:
        """Sign a token for an API client. Returns (token, expires_in seconds).

        scopes is embedded as the raw comma-delimited string; it is not parsed.
        """
        claims = {
            "sub": client_id,
            "upn": client_id,
            "clientId": client_id,
            "customerId": tenant_id,
            "tenantId": tenant_id,
            "scopes": scopes or "",
            "tokenType": PrincipalKind.CLIENT.value,
            "groups": [CLIENT_GROUP],
        }
        return self._sign(claims, self.client_duration), self.client_duration

    def _sign(self, claims: dict, duration: int) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "iss": self.issuer,
            "iat": now,
            "exp": now + timedelta(seconds=duration),
            **claims,
        }
        return jwt.encode(payload, self._key, algorithm=self._algorithm)

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    def decode(self, token: str) -> dict | None:
        """Verify signature, expiry and issuer. Returns the payload or None on any failure.

        A token without exp or iat is rejected: every issued token carries both.

        Returning None (rather than raising) keeps the caller simple: any invalid
        token is treated as unauthenticated.
        """
        try:
            payload = jwt.decode(
                token,
                self._key,
                algorithms=[self._algorithm],
                issuer=self.issuer,
                options={"require_exp": True, "require_iat": True},
            )
        except JWTError as exc:
            logger.debug("Token rejected: %s", exc)
            return None
        if "sub" not in payload or payload.get("tokenType") not in (PrincipalKind.USER.value, PrincipalKind.CLIENT.value):
            return None
        return payload
