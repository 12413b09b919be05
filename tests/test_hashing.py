"""Unit tests for auth/hashing.py -- bcrypt hashing and fail-closed verification.

Covers:
- hash then verify succeeds; a different secret never verifies
- two hashes of the same input differ (fresh salt per call)
- malformed, empty and None hashes return False instead of raising
- generated client secrets are prefixed, high-entropy and bcrypt-sized
"""

from __future__ import annotations

import pytest

from auth.hashing import CLIENT_SECRET_PREFIX, generate_client_secret, hash_secret, verify_dummy, verify_secret


@pytest.mark.parametrize("secret", ["a", "correct horse battery staple", "pässwörd-ünïcode", " padded "])
def test_hash_then_verify(secret: str) -> None:
    assert verify_secret(secret, hash_secret(secret)) is True


def test_other_secret_does_not_verify() -> None:
    hashed = hash_secret("right-secret")
    assert verify_secret("wrong-secret", hashed) is False
    assert verify_secret("right-secre", hashed) is False
    assert verify_secret("right-secret ", hashed) is False


def test_hash_is_salted_per_call() -> None:
    first = hash_secret("same-input")
    second = hash_secret("same-input")
    assert first != second
    assert verify_secret("same-input", first)
    assert verify_secret("same-input", second)


def test_hash_is_self_describing_bcrypt() -> None:
    hashed = hash_secret("x")
    # $2b$<cost>$<22-char salt><31-char digest>; cost comes from BCRYPT_ROUNDS=4 in conftest
    assert hashed.startswith("$2b$04$")
    assert len(hashed) == 60


@pytest.mark.parametrize("bad_hash", ["", None, "not-a-hash", "$2b$04$tooshort", "$argon2id$v=19$m=65536"])
def test_malformed_hash_fails_closed(bad_hash) -> None:
    assert verify_secret("anything", bad_hash) is False


def test_empty_plaintext_never_verifies() -> None:
    assert verify_secret("", hash_secret("x")) is False


def test_overlong_plaintext_fails_closed() -> None:
    # bcrypt>=4.1 rejects inputs over 72 bytes; verify_secret must turn that into a bool.
    hashed = hash_secret("a" * 72)
    assert isinstance(verify_secret("a" * 100, hashed), bool)


def test_verify_dummy_never_raises() -> None:
    verify_dummy("")
    verify_dummy("some password")


def test_generate_client_secret_format() -> None:
    secret = generate_client_secret()
    assert secret.startswith(CLIENT_SECRET_PREFIX)
    body = secret[len(CLIENT_SECRET_PREFIX) :]
    assert len(body) == 64
    int(body, 16)
    assert len(secret.encode("utf-8")) <= 72


def test_generate_client_secret_is_unique() -> None:
    assert len({generate_client_secret() for _ in range(50)}) == 50
