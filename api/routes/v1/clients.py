"""
api/routes/v1/clients.py -- API client administration for tenant admins.

Routes:
  POST   /clients        -- create client; the secret is in this response only
  GET    /clients        -- list the caller's tenant's clients
  GET    /clients/{id}   -- one client of the caller's tenant
  DELETE /clients/{id}   -- soft-delete (revoke) a client of the caller's tenant

Every route requires a human ADMIN token (router-level require_admin). The
tenant comes from the token's tenantId claim only; a client id from another
tenant is indistinguishable from a missing one (404). A token without a
tenant or user claim gets 400 validation_error from AuthService before any
write.

ClientResponse has no secret or hash field, so nothing but the creation
response can ever carry the plaintext secret.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from api.models import ClientCreate, ClientCreatedResponse, ClientResponse
from auth.claims import TokenClaims
from auth.dependencies import require_admin
from auth.service import AuthService

router = APIRouter(dependencies=[Depends(require_admin)])


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"code": "not_found", "message": "API client not found."},
    )


@router.post("/clients", response_model=ClientCreatedResponse, status_code=201)
def create_client(
    request: Request,
    body: ClientCreate,
    claims: TokenClaims = Depends(require_admin),
) -> ClientCreatedResponse:
    """Create an API client. The plaintext secret is shown ONCE and never stored."""
    service: AuthService = request.app.state.auth_service
    created = service.create_client(
        claims,
        name=body.name,
        scopes=body.scopes,
        description=body.description,
        expires_at=body.expires_at,
    )
    return ClientCreatedResponse.from_created(created)


@router.get("/clients", response_model=list[ClientResponse])
async def list_clients(
    request: Request,
    claims: TokenClaims = Depends(require_admin),
) -> list[ClientResponse]:
    """List the tenant's clients, newest first, revoked ones included."""
    service: AuthService = request.app.state.auth_service
    return [ClientResponse.from_client(c) for c in service.list_clients(claims)]


@router.get("/clients/{client_row_id}", response_model=ClientResponse)
async def get_client(
    request: Request,
    client_row_id: int,
    claims: TokenClaims = Depends(require_admin),
) -> ClientResponse:
    service: AuthService = request.app.state.auth_service
    client = service.get_client(claims, client_row_id)
    if client is None:
        raise _not_found()
    return ClientResponse.from_client(client)


@router.delete("/clients/{client_row_id}", status_code=204)
async def revoke_client(
    request: Request,
    client_row_id: int,
    claims: TokenClaims = Depends(require_admin),
) -> Response:
    """Revoke a client. The row stays for audit; only is_active flips [IDOR guard: tenant-scoped]."""
    service: AuthService = request.app.state.auth_service
    if not service.revoke_client(claims, client_row_id):
        raise _not_found()
    return Response(status_code=204)
