"""
API request and response models for TenantAuth REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Wire names are camelCase (userId, tenantId, expiresIn, clientSecret) because
existing API consumers read those names. Python attribute names stay
snake_case; the alias generator maps between them and populate_by_name lets
handlers construct models with either.
"""

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from auth.models import ApiClient, CreatedClient, LoginResult

SECRET_SHOWN_ONCE = "IMPORTANT: Save the client_secret now. It will not be shown again!"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class LoginRequest(_CamelModel):
    """Request body for POST /api/v1/auth/login.

    deviceCategory selects the token lifetime ("app" = long, anything else =
    web). deviceType is accepted as an alias for older clients. No whitespace
    stripping: leading or trailing spaces are part of a password.
    """

    username: str = Field(min_length=1, max_length=255)
    # bcrypt reads at most 72 bytes
    password: str = Field(min_length=1, max_length=72)
    device_category: Optional[str] = Field(
        default=None,
        max_length=30,
        validation_alias=AliasChoices("deviceCategory", "deviceType", "device_category"),
    )


class ClientCreate(_CamelModel):
    """Request body for POST /api/v1/clients."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=500)
    scopes: str = Field(default="", max_length=500, description="Comma-delimited, e.g. read:invoices,write:invoices")
    expires_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class LoginResponse(_CamelModel):
    """Response for both grants. For client tokens username is the client id and userId is null."""

    model_config = ConfigDict(frozen=True)

    token: str
    user_id: Optional[int] = None
    username: str
    tenant_id: int
    role: str
    expires_in: int

    @classmethod
    def from_result(cls, result: LoginResult) -> "LoginResponse":
        return cls(
            token=result.token,
            user_id=result.user_id,
            username=result.username,
            tenant_id=result.tenant_id,
            role=result.role,
            expires_in=result.expires_in,
        )


class ClientCreatedResponse(_CamelModel):
    """Returned exactly once, by POST /api/v1/clients. The only response that carries clientSecret."""

    model_config = ConfigDict(frozen=True)

    id: int
    client_id: str
    client_secret: str
    name: str
    description: Optional[str] = None
    scopes: str
    expires_at: Optional[str] = None
    message: str = SECRET_SHOWN_ONCE

    @classmethod
    def from_created(cls, created: CreatedClient) -> "ClientCreatedResponse":
        return cls(
            id=created.id,
            client_id=created.client_id,
            client_secret=created.client_secret,
            name=created.name,
            description=created.description,
            scopes=created.scopes,
            expires_at=created.expires_at,
        )


class ClientResponse(_CamelModel):
    """A stored API client. Deliberately has no secret or hash field."""

    model_config = ConfigDict(frozen=True)

    id: int
    client_id: str
    name: str
    description: Optional[str] = None
    scopes: str
    created_at: str
    expires_at: Optional[str] = None
    active: bool
    created_by: Optional[int] = None

    @classmethod
    def from_client(cls, client: ApiClient) -> "ClientResponse":
        return cls(
            id=client.id,
            client_id=client.client_id,
            name=client.name,
            description=client.description,
            scopes=client.scopes or "",
            created_at=client.created_at or "",
            expires_at=client.expires_at,
            active=client.is_active,
            created_by=client.created_by,
        )


class MeResponse(_CamelModel):
    """Claims of the presented token, as seen by resource handlers."""

    model_config = ConfigDict(frozen=True)

    principal: Optional[str]
    token_type: Optional[str]
    tenant_id: Optional[int]
    user_id: Optional[int] = None
    client_id: Optional[str] = None
    role: Optional[str]
    scopes: str = ""


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class OAuthErrorResponse(BaseModel):
    """RFC 6749 section 5.2 error body, used by POST /api/v1/auth/token only."""

    model_config = ConfigDict(frozen=True)

    error: str


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
