"""Mint a bearer token for an existing DocVault user.

Tokens normally come from the identity provider. This script signs one with
JWT_SECRET_KEY for local use and smoke tests. The role claim is copied from
the users table.

    python scripts/mint_token.py alice
    python scripts/mint_token.py --email alice@example.com --hours 1
"""

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from docvault.core.config import settings
from docvault.core.token_factory import create_token
from docvault.database import SessionLocal
from docvault.exceptions import DocVaultException, ValidationError
from docvault.services import user_service


def mint(user_id: Optional[str] = None, email: Optional[str] = None, hours: Optional[int] = None) -> str:
    """Return a signed token for the user named by id or email.

    Raises:
        UserNotFoundError: no such user.
        ValidationError: the account is deactivated, or neither/both refs given.
    """
    db = SessionLocal()
    try:
        user = user_service.resolve_user_ref(db, user_id=user_id, email=email)
        if not user.is_active:
            raise ValidationError(f"User {user.user_id} is deactivated", field="user_id")
        return create_token(
            subject=user.user_id,
            role=user.role,
            secret=settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
            expires_hours=hours if hours is not None else settings.token_ttl_hours,
        )
    finally:
        db.close()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Mint a DocVault bearer token")
    parser.add_argument("user_id", nargs="?", help="user id to sign for")
    parser.add_argument("--email", help="look the user up by email instead")
    parser.add_argument("--hours", type=int, default=None, help="lifetime (default TOKEN_TTL_HOURS)")
    args = parser.parse_args(argv)

    try:
        token = mint(args.user_id, args.email, args.hours)
    except DocVaultException as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    print(token)
    return 0


if __name__ == "__main__":
    sys.exit(main())
