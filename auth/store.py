"""
auth/store.py -- SQLAlchemy Core persistence layer for auth entities.

Pattern: Repository + Data Mapper.
CredentialStore is the repository; _row_to_user / _row_to_client are the
mappers. The auth service and routes never touch SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  find_active_client() filters is_active in the same SELECT that fetches the
  row, so a revoked client can never be read as active between two queries.

  get_client(), list_clients() and deactivate_client() always take the
  caller's tenant_id and put it in the WHERE clause. A client row id alone
  never authorizes anything [IDOR guard].

Each method opens its own connection and commits before returning, so each
statement is atomic on its own. Nothing spans two methods: the login read
and the later last_login write are separate transactions. Conditional
changes (revoke) are a single UPDATE ... WHERE, never read-then-write. No
application locks.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, ForeignKey, Integer, MetaData, String, Table, Text, create_engine, event, select
from sqlalchemy.engine import Engine

from auth.models import ApiClient, Tenant, User

CLIENT_ID_PREFIX = "client_"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_tenants = Table(
    "tenants",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("created_at", String(32), nullable=False),
)

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("tenant_id", Integer, ForeignKey("tenants.id"), nullable=False),
    Column("username", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("role", String(30), nullable=False, server_default="USER"),
    Column("is_active", Integer, nullable=False, server_default="1"),
    Column("last_login", String(32)),  # ISO 8601 timestamp of last successful login
    Column("created_at", String(32), nullable=False),
)

_api_clients = Table(
    "api_clients",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("tenant_id", Integer, ForeignKey("tenants.id"), nullable=False),
    Column("client_id", String(50), nullable=False, unique=True),
    Column("secret_hash", Text, nullable=False),  # bcrypt
    Column("name", String(255), nullable=False),
    Column("description", String(500)),
    Column("scopes", String(500)),  # comma-delimited, stored raw
    Column("created_at", String(32), nullable=False),
    Column("expires_at", String(32)),
    Column("is_active", Integer, nullable=False, server_default="1"),
    Column("created_by", Integer, ForeignKey("users.id")),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so logins can read while a revocation writes.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _to_iso(value: datetime | str | None) -> str | None:
    """Normalize a timestamp argument to an ISO 8601 UTC string."""
    if value is None or isinstance(value, str):
        return value
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def generate_client_id() -> str:
    """Return a new public client identifier: client_<24 hex chars> (96 random bits)."""
    return f"{CLIENT_ID_PREFIX}{uuid.uuid4().hex[:24]}"


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class CredentialStore:
    """Repository for Tenant, User and ApiClient records.

    Usage:
        store = CredentialStore("sqlite:///:memory:")
        tenant_id = store.create_tenant("Acme")
        store.create_user(User(username="admin", tenant_id=tenant_id, role="ADMIN",
                               password_hash=hash_secret("secret")))
        user = store.find_user_by_username("admin")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            return conn.execute(select(1)).scalar() == 1

    # ------------------------------------------------------------------
    # Tenants (provisioning helpers; the auth flows never write tenants)
    # ------------------------------------------------------------------

    def create_tenant(self, name: str) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(_tenants.insert().values(name=name, created_at=_now_iso()))
            conn.commit()
            return result.inserted_primary_key[0]

    def get_tenant(self, tenant_id: int) -> Tenant | None:
        with self.engine.connect() as conn:
            row = conn.execute(_tenants.select().where(_tenants.c.id == tenant_id)).fetchone()
        if row is None:
            return None
        return Tenant(id=row.id, name=row.name, created_at=row.created_at)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the username already exists.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    tenant_id=user.tenant_id,
                    username=user.username,
                    password_hash=user.password_hash,
                    role=user.role,
                    is_active=1 if user.is_active else 0,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def find_user_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_user_by_id(self, user_id: int) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def set_user_active(self, user_id: int, is_active: bool) -> bool:
        """Flip the active flag. Returns True if a row was updated."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update().where(_users.c.id == user_id).values(is_active=1 if is_active else 0)
            )
            conn.commit()
        return result.rowcount > 0

    def update_last_login(self, user_id: int, timestamp: datetime | str | None = None) -> None:
        """Stamp last_login for the given user (defaults to now, UTC)."""
        with self.engine.connect() as conn:
            conn.execute(
                _users.update().where(_users.c.id == user_id).values(last_login=_to_iso(timestamp) or _now_iso())
            )
            conn.commit()

    # ------------------------------------------------------------------
    # API clients
    # ------------------------------------------------------------------

    def create_client(self, client: ApiClient) -> tuple[int, str]:
        """Insert a new API client and return (row id, generated client_id).

        The public client_id is generated here unless the caller supplied one.
        A collision raises sqlalchemy.exc.IntegrityError from the UNIQUE
        constraint; it is not retried.
        """
        client_id = client.client_id or generate_client_id()
        with self.engine.connect() as conn:
            result = conn.execute(
                _api_clients.insert().values(
                    tenant_id=client.tenant_id,
                    client_id=client_id,
                    secret_hash=client.secret_hash,
                    name=client.name,
                    description=client.description,
                    scopes=client.scopes,
                    created_at=_now_iso(),
                    expires_at=_to_iso(client.expires_at),
                    is_active=1 if client.is_active else 0,
                    created_by=client.created_by,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0], client_id

    def find_active_client(self, client_id: str) -> ApiClient | None:
        """Look up an active client by its public identifier. O(1) via UNIQUE index."""
        with self.engine.connect() as conn:
            row = conn.execute(
                _api_clients.select().where((_api_clients.c.client_id == client_id) & (_api_clients.c.is_active == 1))
            ).fetchone()
        return _row_to_client(row) if row is not None else None

    def get_client(self, row_id: int, tenant_id: int) -> ApiClient | None:
        """Fetch one client owned by tenant_id, active or revoked."""
        with self.engine.connect() as conn:
            row = conn.execute(
                _api_clients.select().where((_api_clients.c.id == row_id) & (_api_clients.c.tenant_id == tenant_id))
            ).fetchone()
        return _row_to_client(row) if row is not None else None

    def list_clients(self, tenant_id: int) -> list[ApiClient]:
        """Return all clients of a tenant, newest first, revoked ones included."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _api_clients.select()
                .where(_api_clients.c.tenant_id == tenant_id)
                .order_by(_api_clients.c.created_at.desc(), _api_clients.c.id.desc())
            ).fetchall()
        return [_row_to_client(r) for r in rows]

    def deactivate_client(self, row_id: int, tenant_id: int) -> bool:
        """Soft-delete a client. Both id and tenant_id must match [IDOR guard].

        Returns True if a row was updated, False if not found in that tenant.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _api_clients.update()
                .where((_api_clients.c.id == row_id) & (_api_clients.c.tenant_id == tenant_id))
                .values(is_active=0)
            )
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        tenant_id=row.tenant_id,
        username=row.username,
        password_hash=row.password_hash,
        role=row.role,
        is_active=bool(row.is_active),
        last_login=row.last_login,
        created_at=row.created_at,
    )


def _row_to_client(row) -> ApiClient:
    return ApiClient(
        id=row.id,
        tenant_id=row.tenant_id,
        client_id=row.client_id,
        secret_hash=row.secret_hash,
        name=row.name,
        description=row.description,
        scopes=row.scopes,
        created_at=row.created_at,
        expires_at=row.expires_at,
        is_active=bool(row.is_active),
        created_by=row.created_by,
    )
