"""Unit tests for auth/claims.py -- TokenClaims accessors never raise."""

from __future__ import annotations

import pytest

from auth.claims import TokenClaims


def test_user_claims(issuer) -> None:
    token, _ = issuer.issue_user_token(5, "alice", 3, "ADMIN")
    claims = TokenClaims(issuer.decode(token))
    assert claims.tenant_id() == 3
    assert claims.actor_id() == 5
    assert claims.role() == "ADMIN"
    assert claims.principal_name() == "alice"
    assert claims.principal_kind() == "user"
    assert claims.client_id() is None
    assert claims.scopes() == ""


def test_client_claims(issuer) -> None:
    token, _ = issuer.issue_client_token("client_x", 4, "read:invoices")
    claims = TokenClaims(issuer.decode(token))
    assert claims.tenant_id() == 4
    assert claims.actor_id() is None
    assert claims.role() == "CLIENT"
    assert claims.principal_kind() == "client"
    assert claims.client_id() == "client_x"
    assert claims.scopes() == "read:invoices"


def test_tenant_falls_back_to_customer_id() -> None:
    assert TokenClaims({"customerId": 12}).tenant_id() == 12
    assert TokenClaims({"tenantId": 1, "customerId": 12}).tenant_id() == 1


@pytest.mark.parametrize(
    "value, expected",
    [(7, 7), ("7", 7), (" 8 ", 8), (9.0, 9), (9.5, None), ("abc", None), (True, None), (None, None), ([], None)],
)
def test_tenant_id_coercion(value, expected) -> None:
    assert TokenClaims({"tenantId": value}).tenant_id() == expected


def test_missing_claims_read_as_none() -> None:
    claims = TokenClaims({})
    assert claims.tenant_id() is None
    assert claims.actor_id() is None
    assert claims.role() is None
    assert claims.principal_name() is None
    assert claims.principal_kind() is None
    assert claims.scopes() == ""


def test_role_prefers_role_claim_over_groups() -> None:
    assert TokenClaims({"role": "USER", "groups": ["ADMIN"]}).role() == "USER"
    assert TokenClaims({"groups": ["ACCOUNTANT"]}).role() == "ACCOUNTANT"
    assert TokenClaims({"groups": []}).role() is None


def test_principal_name_falls_back_to_upn() -> None:
    assert TokenClaims({"upn": "bob"}).principal_name() == "bob"


def test_payload_is_copied() -> None:
    payload = {"tenantId": 1}
    claims = TokenClaims(payload)
    payload["tenantId"] = 2
    assert claims.tenant_id() == 1
    assert claims.get("tenantId") == 1
    assert claims.get("missing", "x") == "x"


def test_repr_has_no_token_material() -> None:
    text = repr(TokenClaims({"sub": "alice", "tokenType": "user", "tenantId": 1, "role": "ADMIN"}))
    assert "alice" in text
    assert "ADMIN" in text
