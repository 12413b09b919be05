"""
auth/service.py -- Login flows and API client administration.

AuthService coordinates the credential store, the secret hasher and the token
issuer. Every public method is one request-sized transition: it either
returns a result or raises an AuthError subclass from auth/errors.py. Nothing
is cached between calls.

Anti-enumeration [C1]:
  Unknown username and wrong password raise the same InvalidCredentials.
  Unknown client id, wrong secret and expired client all surface as
  InvalidClient. A bcrypt verification runs on every path, against a dummy
  hash when the principal does not exist, so timing does not tell them apart.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError

from auth.claims import TokenClaims
from auth.errors import (
    AccountInactive,
    ClientExpired,
    InvalidClient,
    InvalidCredentials,
    UnsupportedGrantType,
    ValidationError,
)
from auth.hashing import generate_client_secret, hash_secret, verify_dummy, verify_secret
from auth.models import ApiClient, CreatedClient, LoginResult, PrincipalKind, Role, User
from auth.store import CredentialStore
from auth.tokens import TokenIssuer

logger = logging.getLogger("tenantauth.auth.service")

CLIENT_CREDENTIALS_GRANT = "client_credentials"


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _format_timestamp(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def is_expired(client: ApiClient, now: datetime | None = None) -> bool:
    """Return True if the client has an expires_at that lies before now."""
    if not client.expires_at:
        return False
    now = now or datetime.now(timezone.utc)
    return _parse_timestamp(client.expires_at) < now


class AuthService:
    """Password grant, client-credentials grant and client administration.

    Usage:
        service = AuthService(store, TokenIssuer(get_settings()))
        result = service.login("alice", "s3cret", device_category="app")
    """

    def __init__(self, store: CredentialStore, issuer: TokenIssuer) -> None:
        self.store = store
        self.issuer = issuer

    # ------------------------------------------------------------------
    # Password grant
    # ------------------------------------------------------------------

    def login(self, username: str, password: str, device_category: str | None = None) -> LoginResult:
        """Authenticate a human user and issue a user token."""
        user = self.store.find_user_by_username(username)
        if user is None:
            verify_dummy(password)
            logger.info("Login rejected: unknown username %r", username)
            raise InvalidCredentials("unknown username")

        if not user.is_active:
            logger.info("Login rejected: inactive account %r", username)
            raise AccountInactive()

        if not verify_secret(password, user.password_hash):
            logger.info("Login rejected: wrong password for %r", username)
            raise InvalidCredentials("password mismatch")

        token, expires_in = self.issuer.issue_user_token(
            user.id, user.username, user.tenant_id, user.role, device_category
        )

        # last_login is advisory; a failed write must not fail the login.
        try:
            self.store.update_last_login(user.id, datetime.now(timezone.utc))
        except SQLAlchemyError:
            logger.warning("Could not record last_login for user id %s", user.id, exc_info=True)

        logger.info("User %r logged in (tenant=%s)", user.username, user.tenant_id)
        return LoginResult(
            kind=PrincipalKind.USER,
            token=token,
            user_id=user.id,
            username=user.username,
            tenant_id=user.tenant_id,
            role=user.role,
            expires_in=expires_in,
        )

    # ------------------------------------------------------------------
    # Client-credentials grant
    # ------------------------------------------------------------------

    def client_credentials_login(self, grant_type: str | None, client_id: str, client_secret: str) -> LoginResult:
        """Exchange a client id/secret pair for a client token.

        grant_type is checked before the store is touched.
        """
        if grant_type != CLIENT_CREDENTIALS_GRANT:
            raise UnsupportedGrantType(f"grant_type={grant_type!r}")

        client = self.store.find_active_client(client_id) if client_id else None
        if client is None:
            verify_dummy(client_secret)
            logger.info("Token rejected: unknown or revoked client %r", client_id)
            raise InvalidClient("unknown client")

        if not verify_secret(client_secret, client.secret_hash):
            logger.info("Token rejected: wrong secret for client %r", client_id)
            raise InvalidClient("secret mismatch")

        if is_expired(client):
            logger.info("Token rejected: client %r expired at %s", client_id, client.expires_at)
            raise ClientExpired("client expired")

        token, expires_in = self.issuer.issue_client_token(client.client_id, client.tenant_id, client.scopes or "")
        logger.info("Client %r issued token (tenant=%s)", client.client_id, client.tenant_id)
        return LoginResult(
            kind=PrincipalKind.CLIENT,
            token=token,
            user_id=None,
            username=client.client_id,
            tenant_id=client.tenant_id,
            role=Role.CLIENT.value,
            expires_in=expires_in,
        )

    # ------------------------------------------------------------------
    # Client administration (tenant admin only -- role checked upstream)
    # ------------------------------------------------------------------

    def create_client(
        self,
        claims: TokenClaims,
        name: str,
        scopes: str,
        description: str | None = None,
        expires_at: datetime | None = None,
    ) -> CreatedClient:
        """Create an API client for the caller's tenant.

        The returned CreatedClient is the only place the plaintext secret ever
        exists; only its bcrypt hash is persisted.
        """
        tenant_id = claims.tenant_id()
        actor_id = claims.actor_id()
        if tenant_id is None or actor_id is None:
            raise ValidationError("create_client without tenant or actor claim")

        secret = generate_client_secret()
        client = ApiClient(
            tenant_id=tenant_id,
            name=name,
            description=description,
            scopes=scopes,
            secret_hash=hash_secret(secret),
            expires_at=_format_timestamp(expires_at),
            created_by=actor_id,
        )
        # IntegrityError (client_id collision) propagates: creation fails loudly.
        row_id, client_id = self.store.create_client(client)
        logger.info("API client %r created in tenant %s by user %s", client_id, tenant_id, actor_id)

        return CreatedClient(
            id=row_id,
            client_id=client_id,
            client_secret=secret,
            name=name,
            description=description,
            scopes=scopes,
            expires_at=client.expires_at,
        )

    def list_clients(self, claims: TokenClaims) -> list[ApiClient]:
        return self.store.list_clients(self._require_tenant(claims))

    def get_client(self, claims: TokenClaims, row_id: int) -> ApiClient | None:
        return self.store.get_client(row_id, self._require_tenant(claims))

    def revoke_client(self, claims: TokenClaims, row_id: int) -> bool:
        """Soft-delete a client within the caller's tenant. False if not found there."""
        tenant_id = self._require_tenant(claims)
        revoked = self.store.deactivate_client(row_id, tenant_id)
        if revoked:
            logger.info("API client id %s revoked in tenant %s by %r", row_id, tenant_id, claims.principal_name())
        return revoked

    @staticmethod
    def _require_tenant(claims: TokenClaims) -> int:
        tenant_id = claims.tenant_id()
        if tenant_id is None:
            raise ValidationError("missing tenant claim")
        return tenant_id

    # ------------------------------------------------------------------
    # Registration (CLI and fixtures; no HTTP route)
    # ------------------------------------------------------------------

    def register_user(self, username: str, password: str, tenant_id: int, role: str = Role.USER.value) -> int:
        """Hash the password and persist a new user. Returns the new user id.

        Raises sqlalchemy.exc.IntegrityError if the username is taken.
        """
        if role not in {r.value for r in Role}:
            raise ValueError(f"Unknown role: {role!r}")
        user = User(username=username, tenant_id=tenant_id, role=role, password_hash=hash_secret(password))
        user_id = self.store.create_user(user)
        logger.info("Registered user %r (tenant=%s, role=%s)", username, tenant_id, role)
        return user_id
