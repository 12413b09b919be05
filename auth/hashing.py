"""
auth/hashing.py -- One-way secret hashing for user passwords and client secrets.

Security design decisions:
  bcrypt, used directly (no passlib wrapper). Each call to hash_secret() draws
  a fresh salt, so two hashes of the same input never match -- comparison
  always goes through verify_secret(), never through string equality.

  The cost factor is HashingSettings.bcrypt_rounds, read once at module
  load. It is a deployment constant: no caller can lower it per request.

  verify_secret() fails closed. A corrupted or empty hash column yields False
  instead of an exception, so a bad row reads as "wrong secret" rather than
  a 500 that would reveal the row exists.

  Client secrets use the same bcrypt scheme as passwords. They are 256-bit
  random strings, so bcrypt's slowness is not strictly needed for them, but
  a single scheme keeps the stored format uniform and verification
  indistinguishable between principal kinds.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import secrets

import bcrypt

from core.config import get_hashing_settings

_ROUNDS: int = get_hashing_settings().bcrypt_rounds

CLIENT_SECRET_PREFIX = "secret_"


def hash_secret(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext secret.

    bcrypt only reads the first 72 bytes of input and bcrypt>=4.1 raises
    ValueError beyond that. The API layer caps passwords at 72 characters and
    generated client secrets are 71 bytes.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=_ROUNDS)).decode("utf-8")


def verify_secret(plain: str, hashed: str | None) -> bool:
    """Return True if the plaintext matches the bcrypt hash. Never raises."""
    if not plain or not hashed:
        return False
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (TypeError, ValueError):
        return False


# Timing equalization dummy hash [C1].
# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones. Unknown usernames and unknown client ids are
# verified against this hash so response time does not reveal existence.
_DUMMY_HASH: str = hash_secret("tenantauth_timing_dummy")


def verify_dummy(plain: str) -> None:
    """Spend one bcrypt verification on a principal that does not exist."""
    verify_secret(plain or "x", _DUMMY_HASH)


def generate_client_secret() -> str:
    """Generate a new client secret in the format: secret_<64 hex chars>.

    secrets.token_hex(32) produces 32 random bytes as 64 hex characters,
    giving 256 bits of entropy. The prefix makes leaked secrets easy to spot
    in logs and secret scanners.
    """
    return f"{CLIENT_SECRET_PREFIX}{secrets.token_hex(32)}"
