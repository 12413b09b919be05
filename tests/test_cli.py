"""Tests for the administrative CLI in main.py."""

from __future__ import annotations

import pytest

import main
from auth.hashing import verify_secret
from auth.service import AuthService
from core.config import HashingSettings, get_settings


@pytest.fixture
def cli_service(store, issuer, monkeypatch) -> AuthService:
    service = AuthService(store, issuer)
    # The commands close the store when done; keep the fixture's DB alive.
    monkeypatch.setattr(store, "close", lambda: None)
    monkeypatch.setattr(main, "_service", lambda: service)
    return service


def test_hash_secret_argument(capsys) -> None:
    assert main.cli(["hash-secret", "s3cret-value"]) == 0
    hashed = capsys.readouterr().out.strip()
    assert verify_secret("s3cret-value", hashed)


def test_hash_secret_prompts(monkeypatch, capsys) -> None:
    monkeypatch.setattr(main.getpass, "getpass", lambda prompt="": "prompted-secret")
    assert main.cli(["hash-secret"]) == 0
    assert verify_secret("prompted-secret", capsys.readouterr().out.strip())


def test_hash_secret_mismatch_exits(monkeypatch) -> None:
    answers = iter(["first", "second"])
    monkeypatch.setattr(main.getpass, "getpass", lambda prompt="": next(answers))
    with pytest.raises(SystemExit) as exc:
        main.cli(["hash-secret"])
    assert exc.value.code == 2


def test_create_tenant_and_user(cli_service, monkeypatch, capsys) -> None:
    assert main.cli(["create-tenant", "Acme AS"]) == 0
    assert "created with id" in capsys.readouterr().out
    tenant_id = 1

    monkeypatch.setattr(main.getpass, "getpass", lambda prompt="": "alicepass1")
    assert main.cli(["create-user", "alice", "--tenant", str(tenant_id), "--role", "ADMIN"]) == 0

    user = cli_service.store.find_user_by_username("alice")
    assert user.role == "ADMIN"
    assert user.tenant_id == tenant_id
    assert cli_service.login("alice", "alicepass1").role == "ADMIN"


def test_create_user_unknown_tenant(cli_service, capsys) -> None:
    assert main.cli(["create-user", "alice", "--tenant", "42"]) == 1
    assert "does not exist" in capsys.readouterr().err


def test_create_user_duplicate(cli_service, tenant_id, monkeypatch, capsys) -> None:
    monkeypatch.setattr(main.getpass, "getpass", lambda prompt="": "alicepass1")
    assert main.cli(["create-user", "alice", "--tenant", str(tenant_id)]) == 0
    assert main.cli(["create-user", "alice", "--tenant", str(tenant_id)]) == 1
    assert "already taken" in capsys.readouterr().err


def test_create_user_rejects_unknown_role(cli_service) -> None:
    with pytest.raises(SystemExit):
        main.cli(["create-user", "alice", "--tenant", "1", "--role", "ROOT"])


def test_deactivate_user(cli_service, tenant_id, capsys) -> None:
    user_id = cli_service.register_user("bob", "bobpass123", tenant_id)
    assert main.cli(["deactivate-user", str(user_id)]) == 0
    assert cli_service.store.get_user_by_id(user_id).is_active is False
    assert main.cli(["deactivate-user", "9999"]) == 1


def test_hash_secret_needs_no_secret_key(monkeypatch, capsys) -> None:
    """hash-secret runs in production mode with no SECRET_KEY configured."""
    monkeypatch.setenv("DEBUG", "false")
    monkeypatch.delenv("SECRET_KEY", raising=False)
    get_settings.cache_clear()
    try:
        with pytest.raises(ValueError):
            get_settings()
        assert HashingSettings().bcrypt_rounds == 4
        assert main.cli(["hash-secret", "offline-secret"]) == 0
        assert verify_secret("offline-secret", capsys.readouterr().out.strip())
    finally:
        get_settings.cache_clear()
