"""Provision the bootstrap admin on first startup.

When ``BOOTSTRAP_ADMIN_EMAIL`` is set and no user with that email exists,
an admin account is created for it. Idempotent: an existing user is left
untouched, including its role.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def seed_bootstrap_admin(db: Session, email: str) -> Optional[str]:
    """Create the admin user for *email* if missing.

    Returns:
        The new user's id, or None when nothing was created.
    """
    from ..models.enums import UserRole
    from ..repositories.user_repository import UserRepository
    from ..services import user_service

    email = (email or "").strip().lower()
    if not email:
        logger.debug("No bootstrap admin configured")
        return None

    if UserRepository(db).get_by_email(email) is not None:
        logger.debug("Bootstrap admin %s already exists", email)
        return None

    user = user_service.provision_user(db, email, display_name="Administrator", role=UserRole.ADMIN.value)
    logger.info("Provisioned bootstrap admin %s (%s)", email, user.user_id)
    return user.user_id
