"""Authentication dependencies for FastAPI routes.

Public interface:
    ``optional_principal`` -- Principal or None (anonymous); never raises for
                              a missing token, but rejects a token naming an
                              unknown or deactivated user.
    ``require_principal``  -- Principal or 401.
    ``require_admin``      -- Principal with the admin role or 403.
    ``get_session_verifier`` -- the injected verifier; tests may override it.

The role on the returned Principal comes from the users table, not the token,
so demoting a user takes effect on their next request.
"""

import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import settings
from .logging_config import principal_var
from .principal import Principal, SessionVerifier, TokenSessionVerifier
from ..database import get_db
from ..exceptions import AuthenticationError, ForbiddenError
from ..repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


def get_session_verifier() -> SessionVerifier:
    return TokenSessionVerifier(settings.jwt_secret_key, settings.jwt_algorithm)


def optional_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: Session = Depends(get_db),
    verifier: SessionVerifier = Depends(get_session_verifier),
) -> Optional[Principal]:
    """Resolve the caller, or None when no credential was sent.

    An invalid or expired token is treated as anonymous; a valid token for a
    user that no longer exists or is deactivated is rejected with 401.
    """
    if credentials is None:
        return None

    verified = verifier.verify(credentials.credentials)
    if verified is None:
        logger.info("Rejected bearer token; continuing as anonymous")
        return None

    return _load_principal(verified, db)


def require_principal(
    principal: Optional[Principal] = Depends(optional_principal),
) -> Principal:
    """Require an authenticated caller. Raises 401 otherwise."""
    if principal is None:
        raise AuthenticationError("Authentication required")
    return principal


def require_admin(
    principal: Principal = Depends(require_principal),
) -> Principal:
    """Require the authenticated user to be an admin. Raises 403 otherwise."""
    if not principal.is_admin:
        raise ForbiddenError("Admin access required")
    return principal


def _load_principal(verified: Principal, db: Session) -> Principal:
    user = UserRepository(db).get_by_id_optional(verified.id)
    if user is None:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("Account is deactivated")

    # Scoped to the request: RequestContextMiddleware resets it on the way out.
    principal_var.set(user.user_id)
    return Principal(id=user.user_id, role=user.role)
