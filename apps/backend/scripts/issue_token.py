"""
Name: Bearer Credential Script (local development)

Responsibilities:
  - Issue a signed bearer credential for a given e-mail and role
  - Sign with JWT_SECRET / JWT_ISSUER from the same Settings the API reads
  - Refuse to run against a production configuration
"""

from __future__ import annotations

import argparse
import os
import sys

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from research_repo.container import get_signing_keys  # noqa: E402
from research_repo.crosscutting.config import get_settings  # noqa: E402
from research_repo.domain.entities import Role  # noqa: E402
from research_repo.identity.bearer import create_access_token  # noqa: E402


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    argv = list(sys.argv[1:] if argv is None else argv)
    if argv and argv[0] == "--":
        argv = argv[1:]
    parser = argparse.ArgumentParser(
        description="Issue a bearer credential for local development."
    )
    parser.add_argument("--email", required=True, help="Identity (will be normalized)")
    parser.add_argument(
        "--role",
        default=Role.STUDENT.value,
        choices=[role.value for role in Role],
        help="Role claim (default: student)",
    )
    parser.add_argument(
        "--ttl-minutes",
        type=int,
        default=None,
        help="Lifetime in minutes (default: JWT_ACCESS_TTL_MINUTES)",
    )
    return parser.parse_args(argv)


def _normalize_email(email: str) -> str:
    normalized = email.strip().lower()
    if "@" not in normalized:
        raise SystemExit("A full e-mail address is required.")
    return normalized


def issue_token(email: str, role: str, ttl_minutes: int | None = None) -> str:
    settings = get_settings()
    if settings.is_production():
        raise SystemExit("Refusing to issue credentials with a production config.")

    minutes = ttl_minutes if ttl_minutes is not None else settings.jwt_access_ttl_minutes
    if minutes <= 0:
        raise SystemExit("--ttl-minutes must be greater than 0.")

    bearer_key, _ = get_signing_keys()
    identity = _normalize_email(email)
    token, _ = create_access_token(
        subject=f"user:{identity}",
        email=identity,
        role=Role(role),
        key=bearer_key,
        ttl_seconds=minutes * 60,
    )
    return token


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    print(issue_token(args.email, args.role, args.ttl_minutes))


if __name__ == "__main__":
    main()
