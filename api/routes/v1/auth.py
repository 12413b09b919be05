"""
api/routes/v1/auth.py -- Token endpoints for both principal kinds.

Routes:
  POST /api/v1/auth/login   -- password grant (JSON); returns a user token
  POST /api/v1/auth/token   -- OAuth2 client-credentials grant (form-encoded)
  GET  /api/v1/auth/me      -- claims of the presented token (requires auth)

Security:
  [H2] Both grant endpoints are rate-limited per IP (Settings.login_rate_limit).
  [C1] AuthService provides timing equalization and identical errors for
       unknown principals and wrong secrets -- never inline the lookup here.
  [M5] Cache-Control: no-store on every grant response, success or failure.
       The 429 handler in api/main.py applies no_store() as well.

Error bodies:
  /auth/login uses the shared {"error": {"code", "message"}} envelope.
  /auth/token uses the flat RFC 6749 body {"error": "<code>"} because OAuth2
  client libraries parse that shape, including for 429 rate_limited.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter, login_rate_limit
from api.models import ErrorDetail, ErrorResponse, LoginRequest, LoginResponse, MeResponse, OAuthErrorResponse
from auth.claims import TokenClaims
from auth.dependencies import get_claims
from auth.errors import AuthError
from auth.service import AuthService

logger = logging.getLogger("tenantauth.api.auth")

# Auth policy:
# - POST /api/v1/auth/login:  public -- login endpoint must be unauthenticated
# - POST /api/v1/auth/token:  public -- the client secret is the credential
# - GET  /api/v1/auth/me:     requires a valid bearer token (get_claims)
router = APIRouter()


def no_store(resp: JSONResponse) -> JSONResponse:
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    resp.headers["Pragma"] = "no-cache"
    return resp


# ---------------------------------------------------------------------------
# Password grant
# ---------------------------------------------------------------------------


@router.post("/auth/login", response_model=LoginResponse)
@limiter.limit(login_rate_limit)  # [H2]
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username and password; return a user token.

    Unknown username and wrong password both yield 401 bad_credentials. An
    inactive account yields 401 account_inactive.
    """
    service: AuthService = request.app.state.auth_service
    try:
        result = service.login(body.username, body.password, body.device_category)
    except AuthError as exc:
        return no_store(
            JSONResponse(
                status_code=exc.status_code,
                content=ErrorResponse(error=ErrorDetail(code=exc.code, message=exc.message)).model_dump(
                    exclude_none=True
                ),
            )
        )

    return no_store(
        JSONResponse(status_code=200, content=LoginResponse.from_result(result).model_dump(by_alias=True))
    )


# ---------------------------------------------------------------------------
# Client-credentials grant
# ---------------------------------------------------------------------------


@router.post("/auth/token", response_model=LoginResponse)
@limiter.limit(login_rate_limit)  # [H2]
def token(
    request: Request,
    grant_type: Optional[str] = Form(default=None),
    client_id: str = Form(default=""),
    client_secret: str = Form(default=""),
) -> JSONResponse:
    """Exchange client_id/client_secret for a client token.

    400 unsupported_grant_type is returned before any store access. Unknown,
    revoked, expired and mismatched clients are all 401 invalid_client.
    Anything unexpected is logged and answered with 500 server_error; the
    exception text never reaches the caller.
    """
    service: AuthService = request.app.state.auth_service
    try:
        result = service.client_credentials_login(grant_type, client_id, client_secret)
    except AuthError as exc:
        return no_store(
            JSONResponse(status_code=exc.status_code, content=OAuthErrorResponse(error=exc.code).model_dump())
        )
    except Exception:
        logger.exception("Client-credentials grant failed for client %r", client_id)
        return no_store(JSONResponse(status_code=500, content=OAuthErrorResponse(error="server_error").model_dump()))

    return no_store(
        JSONResponse(status_code=200, content=LoginResponse.from_result(result).model_dump(by_alias=True))
    )


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=MeResponse)
async def me(claims: TokenClaims = Depends(get_claims)) -> MeResponse:
    """Return the identity and tenant scoping the presented token carries."""
    return MeResponse(
        principal=claims.principal_name(),
        token_type=claims.principal_kind(),
        tenant_id=claims.tenant_id(),
        user_id=claims.actor_id(),
        client_id=claims.client_id(),
        role=claims.role(),
        scopes=claims.scopes(),
    )
