"""
auth/dependencies.py -- FastAPI Depends() helpers for authenticated routes.

The transport-level check: read "Authorization: Bearer <token>", verify
signature, expiry and issuer via app.state.token_issuer, and hand the route a
TokenClaims view. Nothing here touches the credential store -- a token is
trusted for its full lifetime (see DESIGN.md, revocation).

try_get_claims() is the soft variant (returns None on failure).
get_claims() wraps it and raises HTTP 401 if unauthenticated.
require_admin() wraps get_claims() and raises HTTP 403 unless the caller is a
human ADMIN. A token without a tenant claim is never treated as "unscoped":
AuthService rejects it with ValidationError before any tenant-scoped read or
write.

Layer rule: auth/dependencies.py may import from fastapi (for
HTTPException/Request) because this module is part of the FastAPI dependency
injection system. It does not import from api/.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from auth.claims import TokenClaims
from auth.models import PrincipalKind, Role
from auth.tokens import TokenIssuer


def try_get_claims(request: Request) -> TokenClaims | None:
    """Return the verified claims of the request's bearer token, or None. Never raises."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    token = auth_header[7:].strip()
    if not token:
        return None
    issuer: TokenIssuer = request.app.state.token_issuer
    payload = issuer.decode(token)
    if payload is None:
        return None
    return TokenClaims(payload)


def get_claims(request: Request) -> TokenClaims:
    """Require a valid bearer token. Raises HTTP 401 otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(claims: TokenClaims = Depends(get_claims)): ...
    """
    claims = try_get_claims(request)
    if claims is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return claims


def require_admin(claims: TokenClaims = Depends(get_claims)) -> TokenClaims:
    """Require a human ADMIN. Raises HTTP 401 if unauthenticated, HTTP 403 otherwise.

    Client tokens carry the CLIENT group and tokenType "client", so they fail
    here whatever their scopes say.
    """
    if claims.principal_kind() != PrincipalKind.USER.value or claims.role() != Role.ADMIN.value:
        raise HTTPException(
            status_code=403,
            detail={"code": "forbidden", "message": "Admin access required."},
        )
    return claims

