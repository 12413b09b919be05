"""
tests/conftest.py -- Shared test fixtures for TenantAuth.

This module provides:
  - store / issuer / service: unit-level collaborators on a private in-memory DB
  - _make_test_store(): named shared-memory DB for TestClient integration tests
  - _patch_lifespan(): wires the test store into app.state, bypassing real startup
  - api_client: TestClient plus a seeded two-tenant world (see Seeded)

Design: Named shared-memory SQLite URIs (not plain :memory:) are required for
the TestClient fixture because route handlers run in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread.

Environment must be set before any auth/core import:
  DEBUG=true            get_settings() auto-generates SECRET_KEY
  BCRYPT_ROUNDS=4       minimum bcrypt cost so the suite stays fast
  LOGIN_RATE_LIMIT      high enough that the suite never trips the limiter
"""

from __future__ import annotations

import os

# CRITICAL: Set before any auth/core import -- get_settings() is cached and
# auth/hashing.py reads the bcrypt cost factor at import time.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")

from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.hashing import hash_secret
from auth.models import User
from auth.service import AuthService
from auth.store import CredentialStore
from auth.tokens import TokenIssuer
from core.config import Settings

TEST_SECRET_KEY = "test-secret-key-0123456789abcdef0123456789"
WEB_DURATION = 86400
APP_DURATION = 2592000
CLIENT_DURATION = 3600


def make_settings(**overrides) -> Settings:
    values = {
        "debug": True,
        "secret_key": TEST_SECRET_KEY,
        "jwt_issuer": "https://tenantauth.test",
        "token_duration_web": WEB_DURATION,
        "token_duration_app": APP_DURATION,
        "token_duration_client": CLIENT_DURATION,
        "bcrypt_rounds": 4,
    }
    values.update(overrides)
    return Settings(**values)


# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[CredentialStore, None, None]:
    s = CredentialStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def issuer() -> TokenIssuer:
    return TokenIssuer(make_settings())


@pytest.fixture
def service(store: CredentialStore, issuer: TokenIssuer) -> AuthService:
    return AuthService(store, issuer)


@pytest.fixture
def tenant_id(store: CredentialStore) -> int:
    return store.create_tenant("Acme AS")


# ---------------------------------------------------------------------------
# Integration fixtures
# ---------------------------------------------------------------------------


@dataclass
class Seeded:
    """Two tenants, their users and passwords, plus a ready admin token."""

    client: TestClient
    store: CredentialStore
    issuer: TokenIssuer
    tenant_a: int
    tenant_b: int
    admin_id: int
    admin_token: str
    user_token: str
    admin_b_token: str


def _make_test_store(db_suffix: str) -> CredentialStore:
    return CredentialStore(f"sqlite:///file:test_auth_{db_suffix}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(store: CredentialStore, issuer: TokenIssuer):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.credential_store = store
        app.state.token_issuer = issuer
        app.state.auth_service = AuthService(store, issuer)
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(request) -> Generator[Seeded, None, None]:
    """Yield a Seeded world for API integration tests.

    tenant A: admin "alice" / "alicepass1" (ADMIN), "bob" / "bobpass123" (USER),
              "carol" / "carolpass1" (USER, inactive)
    tenant B: admin "dave" / "davepass12" (ADMIN)
    """
    store = _make_test_store(request.module.__name__.rsplit(".", 1)[-1])
    issuer = TokenIssuer(make_settings())

    tenant_a = store.create_tenant("Tenant A")
    tenant_b = store.create_tenant("Tenant B")
    admin_id = store.create_user(
        User(username="alice", tenant_id=tenant_a, role="ADMIN", password_hash=hash_secret("alicepass1"))
    )
    bob_id = store.create_user(
        User(username="bob", tenant_id=tenant_a, role="USER", password_hash=hash_secret("bobpass123"))
    )
    store.create_user(
        User(
            username="carol",
            tenant_id=tenant_a,
            role="USER",
            password_hash=hash_secret("carolpass1"),
            is_active=False,
        )
    )
    dave_id = store.create_user(
        User(username="dave", tenant_id=tenant_b, role="ADMIN", password_hash=hash_secret("davepass12"))
    )

    admin_token, _ = issuer.issue_user_token(admin_id, "alice", tenant_a, "ADMIN")
    user_token, _ = issuer.issue_user_token(bob_id, "bob", tenant_a, "USER")
    admin_b_token, _ = issuer.issue_user_token(dave_id, "dave", tenant_b, "ADMIN")

    app.router.lifespan_context = _patch_lifespan(store, issuer)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield Seeded(
            client=client,
            store=store,
            issuer=issuer,
            tenant_a=tenant_a,
            tenant_b=tenant_b,
            admin_id=admin_id,
            admin_token=admin_token,
            user_token=user_token,
            admin_b_token=admin_b_token,
        )

    store.close()


@pytest.fixture
def settings_factory():
    """Build Settings with the test defaults, overriding any field by keyword."""
    return make_settings
