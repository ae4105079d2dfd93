#!/usr/bin/env python3
"""
tokensmith -- Operator CLI for the bearer token and password credential core.

Usage:
  python main.py gen-secret
  python main.py check-secret
  python main.py check-secret --secret "$CANDIDATE"
  python main.py hash-password
  echo -n 'hunter2' | python main.py hash-password --stdin
  python main.py issue-token --sub u1 --name alice --email alice@example.com
  python main.py issue-token --sub u1 --name alice --email alice@example.com --claim role=admin
  python main.py inspect-token eyJhbGciOi...
  python main.py inspect-token eyJhbGciOi... --lenient

Environment variables (read through core.config.get_settings()):
  JWT_ISSUER, JWT_AUDIENCE     Empty disables the claim and its check.
  JWT_SECRET_KEY               base64 key or passphrase, >= 32 bytes either way.
  JWT_EXPIRES_IN_MINUTES       Token lifetime (default 60).
  PASSWORD_HASH_ITERATIONS     PBKDF2 work factor (default 100000).
  DEBUG                        true = auto-generate a throwaway secret if unset.
"""

import argparse
import base64
import getpass
import json
import logging
import secrets
import sys
from typing import Optional

from pydantic import ValidationError

from auth.errors import ConfigurationError
from auth.keys import MIN_KEY_BYTES, resolve_key_material
from auth.models import Identity
from auth.passwords import CredentialHasher
from auth.tokens import TokenIssuer, TokenValidator
from core.config import Settings, get_settings

logger = logging.getLogger("tokensmith.cli")


def _load_settings() -> Optional[Settings]:
    """Return Settings, or None after printing why the configuration is unusable."""
    try:
        return get_settings()
    except ValidationError as e:
        print("  [!] Configuration error:", file=sys.stderr)
        for err in e.errors():
            print(f"      {err['msg']}", file=sys.stderr)
        return None


def _parse_claims(pairs: list[str]) -> dict[str, str]:
    claims: dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise argparse.ArgumentTypeError(f"--claim expects NAME=VALUE, got {pair!r}")
        claims[name] = value
    return claims


def cmd_gen_secret(args: argparse.Namespace) -> int:
    if args.bytes < MIN_KEY_BYTES:
        print(f"  [!] --bytes must be at least {MIN_KEY_BYTES}.", file=sys.stderr)
        return 2
    print(base64.b64encode(secrets.token_bytes(args.bytes)).decode("ascii"))
    return 0


def cmd_check_secret(args: argparse.Namespace) -> int:
    if args.secret is not None:
        try:
            key = resolve_key_material(args.secret)
        except ConfigurationError as e:
            print(f"  [!] {e}", file=sys.stderr)
            return 1
    else:
        settings = _load_settings()
        if settings is None:
            return 1
        key = resolve_key_material(settings.jwt_secret_key)
    print(f"OK: signing key is {len(key)} bytes.")
    return 0


def cmd_hash_password(args: argparse.Namespace) -> int:
    if args.stdin:
        password = sys.stdin.read().rstrip("\n")
    else:
        password = getpass.getpass("Password: ")
    if not password:
        print("  [!] Password must not be empty.", file=sys.stderr)
        return 2

    iterations = args.iterations
    if iterations is None:
        settings = _load_settings()
        if settings is None:
            return 1
        iterations = settings.password_hash_iterations
    print(CredentialHasher(iterations=iterations).hash(password))
    return 0


def cmd_issue_token(args: argparse.Namespace) -> int:
    settings = _load_settings()
    if settings is None:
        return 1
    extra = _parse_claims(args.claim or [])
    issued = TokenIssuer.from_settings(settings).issue(
        Identity(id=args.sub, display_name=args.name, email=args.email),
        extra_claims=extra,
    )
    logger.debug("Issued %r", issued)
    if args.json:
        print(
            json.dumps(
                {
                    "token": issued.token,
                    "token_id": issued.token_id,
                    "issued_at": issued.issued_at.isoformat(),
                    "expires_at": issued.expires_at.isoformat(),
                },
                indent=2,
            )
        )
    else:
        print(issued.token)
    return 0


def cmd_inspect_token(args: argparse.Namespace) -> int:
    settings = _load_settings()
    if settings is None:
        return 1
    result = TokenValidator.from_settings(settings).validate(args.token, check_expiry=not args.lenient)
    if not result.ok:
        print(f"  [!] Token rejected: {result.reason.value} ({result.detail})", file=sys.stderr)
        return 1
    print(json.dumps(result.claims, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tokensmith",
        description="Issue and inspect bearer tokens, hash passwords, and check signing secrets.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py gen-secret >> .env-secret
  JWT_SECRET_KEY=... python main.py check-secret
  python main.py issue-token --sub u1 --name alice --email alice@example.com --json
  python main.py inspect-token "$TOKEN" --lenient
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    p = sub.add_parser("gen-secret", help="Print a fresh random base64 signing key")
    p.add_argument(
        "--bytes",
        type=int,
        default=MIN_KEY_BYTES,
        help=f"Key length in bytes (default and minimum: {MIN_KEY_BYTES})",
    )
    p.set_defaults(func=cmd_gen_secret)

    p = sub.add_parser("check-secret", help="Verify a signing secret resolves to a long enough key")
    p.add_argument("--secret", default=None, help="Secret to check instead of JWT_SECRET_KEY")
    p.set_defaults(func=cmd_check_secret)

    p = sub.add_parser("hash-password", help="Hash a password into a storable record")
    p.add_argument("--stdin", action="store_true", help="Read the password from stdin instead of prompting")
    p.add_argument(
        "--iterations",
        type=int,
        default=None,
        help="PBKDF2 iterations (default: PASSWORD_HASH_ITERATIONS)",
    )
    p.set_defaults(func=cmd_hash_password)

    p = sub.add_parser("issue-token", help="Sign a token for the given identity")
    p.add_argument("--sub", required=True, help="Subject (user id)")
    p.add_argument("--name", required=True, help="Display name")
    p.add_argument("--email", required=True, help="Email address")
    p.add_argument("--claim", action="append", metavar="NAME=VALUE", help="Extra claim (repeatable)")
    p.add_argument("--json", action="store_true", help="Print token with its metadata as JSON")
    p.set_defaults(func=cmd_issue_token)

    p = sub.add_parser("inspect-token", help="Validate a token and print its claims")
    p.add_argument("token", help="Compact JWT string")
    p.add_argument("--lenient", action="store_true", help="Skip the expiry/not-before check")
    p.set_defaults(func=cmd_inspect_token)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))


if __name__ == "__main__":
    sys.exit(main())
