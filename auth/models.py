"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and the auth
service do the work; these only own the shape.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    ADMIN = "ADMIN"
    USER = "USER"
    ACCOUNTANT = "ACCOUNTANT"
    CLIENT = "CLIENT"


class PrincipalKind(str, Enum):
    """Discriminator carried in every token as the tokenType claim."""

    USER = "user"
    CLIENT = "client"


# Group tag on every client token. Never assigned to a human role check.
CLIENT_GROUP = Role.CLIENT.value


@dataclass
class Tenant:
    """An isolated customer organization. Provisioned outside the auth core."""

    name: str
    id: int | None = None
    created_at: str | None = None


@dataclass
class User:
    """A human principal that logs in with a password.

    password_hash is a bcrypt string; the plaintext is never stored. The auth
    core only ever writes last_login on an existing record.
    """

    username: str
    tenant_id: int
    role: str  # one of Role
    password_hash: str
    id: int | None = None
    is_active: bool = True
    last_login: str | None = None
    created_at: str | None = None


@dataclass
class ApiClient:
    """A machine principal for the client-credentials grant.

    Security design:
    - client_id is the public identifier ("client_" + 24 hex chars), generated
      by the store on insert.
    - secret_hash is bcrypt of the generated secret. The raw secret is returned
      ONCE at creation and is unrecoverable afterwards.
    - Revocation flips is_active to False. Rows are never deleted so the audit
      trail (created_by, created_at) survives.
    - expires_at (ISO 8601, UTC) is checked on every token request.
    """

    tenant_id: int
    name: str
    secret_hash: str
    client_id: str | None = None
    id: int | None = None
    description: str | None = None
    scopes: str | None = None  # comma-delimited, e.g. "read:invoices,write:invoices"
    created_at: str | None = None
    expires_at: str | None = None
    is_active: bool = True
    created_by: int | None = None


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a successful grant, tagged by principal kind.

    For client grants user_id is None and username holds the client_id.
    """

    kind: PrincipalKind
    token: str
    username: str
    tenant_id: int
    role: str
    expires_in: int
    user_id: int | None = None


@dataclass(frozen=True)
class CreatedClient:
    """Creation receipt for an ApiClient -- the only object that ever holds the raw secret."""

    id: int
    client_id: str
    client_secret: str
    name: str
    description: str | None
    scopes: str
    expires_at: str | None = None
