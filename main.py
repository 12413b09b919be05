#!/usr/bin/env python3
"""
TenantAuth -- administrative command line.

Provisioning happens outside the HTTP API: tenants and their first users are
created here, by an operator with database access.

Usage:
  python main.py hash-secret                 # prompts, prints a bcrypt hash
  python main.py create-tenant "Acme AS"
  python main.py create-user alice --tenant 1 --role ADMIN
  python main.py deactivate-user 7

Environment variables:
  DATABASE_URL  SQLAlchemy URL of the credential database.
  SECRET_KEY    Required unless DEBUG=true (see core/config.py). hash-secret
                does not need it.
  BCRYPT_ROUNDS bcrypt cost factor used for new hashes.
"""

import argparse
import getpass
import logging
import sys
from typing import Optional

from sqlalchemy.exc import IntegrityError

from auth.hashing import hash_secret
from auth.models import Role
from auth.service import AuthService
from auth.store import CredentialStore
from auth.tokens import TokenIssuer
from core.config import get_settings

logger = logging.getLogger("tenantauth.cli")


def _read_secret(prompt: str, confirm: bool = True) -> str:
    """Prompt for a secret without echo. Exits on mismatch or empty input."""
    secret = getpass.getpass(prompt)
    if not secret:
        print("  [!] Empty secret.", file=sys.stderr)
        sys.exit(2)
    if len(secret.encode("utf-8")) > 72:
        print("  [!] Secret longer than 72 bytes; bcrypt cannot hash it.", file=sys.stderr)
        sys.exit(2)
    if confirm and getpass.getpass("Repeat: ") != secret:
        print("  [!] Secrets do not match.", file=sys.stderr)
        sys.exit(2)
    return secret


def _service() -> AuthService:
    settings = get_settings()
    return AuthService(CredentialStore(settings.database_url), TokenIssuer(settings))


def cmd_hash_secret(args: argparse.Namespace) -> int:
    secret = args.secret if args.secret is not None else _read_secret("Secret: ")
    print(hash_secret(secret))
    return 0


def cmd_create_tenant(args: argparse.Namespace) -> int:
    service = _service()
    try:
        tenant_id = service.store.create_tenant(args.name)
    finally:
        service.store.close()
    print(f"Tenant {args.name!r} created with id {tenant_id}")
    return 0


def cmd_create_user(args: argparse.Namespace) -> int:
    service = _service()
    try:
        if service.store.get_tenant(args.tenant) is None:
            print(f"  [!] Tenant {args.tenant} does not exist.", file=sys.stderr)
            return 1
        password = _read_secret(f"Password for {args.username}: ")
        try:
            user_id = service.register_user(args.username, password, args.tenant, args.role)
        except IntegrityError:
            print(f"  [!] Username {args.username!r} is already taken.", file=sys.stderr)
            return 1
    finally:
        service.store.close()
    print(f"User {args.username!r} ({args.role}) created with id {user_id} in tenant {args.tenant}")
    return 0


def cmd_deactivate_user(args: argparse.Namespace) -> int:
    service = _service()
    try:
        updated = service.store.set_user_active(args.user_id, False)
    finally:
        service.store.close()
    if not updated:
        print(f"  [!] User {args.user_id} not found.", file=sys.stderr)
        return 1
    print(f"User {args.user_id} deactivated. Tokens already issued stay valid until they expire.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tenantauth",
        description="TenantAuth administration: tenants, users and secret hashes.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_hash = sub.add_parser("hash-secret", help="Print a bcrypt hash of a secret")
    p_hash.add_argument("secret", nargs="?", default=None, help="Secret to hash (prompted if omitted)")
    p_hash.set_defaults(func=cmd_hash_secret)

    p_tenant = sub.add_parser("create-tenant", help="Provision a new tenant")
    p_tenant.add_argument("name")
    p_tenant.set_defaults(func=cmd_create_tenant)

    p_user = sub.add_parser("create-user", help="Register a user in a tenant (password prompted)")
    p_user.add_argument("username")
    p_user.add_argument("--tenant", type=int, required=True, metavar="ID")
    p_user.add_argument("--role", choices=[r.value for r in Role], default=Role.USER.value)
    p_user.set_defaults(func=cmd_create_user)

    p_deact = sub.add_parser("deactivate-user", help="Block future logins for a user")
    p_deact.add_argument("user_id", type=int)
    p_deact.set_defaults(func=cmd_deactivate_user)

    return parser


def cli(argv: Optional[list[str]] = None) -> int:
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s %(message)s")
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(cli())
