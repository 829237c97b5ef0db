"""User provisioning and lookup.

DocVault stores no passwords. Users are created by an admin (or by the
bootstrap seeder) and authenticate with tokens minted elsewhere against the
shared secret.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..exceptions import ConflictError, UserNotFoundError, ValidationError
from ..models.enums import UserRole
from ..models.user import User
from ..repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

# 12 hex chars of a UUID4: short enough for URLs, 48 bits of randomness.
USER_ID_LENGTH = 12


def provision_user(
    db: Session,
    email: Optional[str],
    display_name: str = "",
    role: str = UserRole.USER.value,
    user_id: Optional[str] = None,
) -> User:
    """Create a user. Raises ConflictError when the email or id is taken."""
    if role not in (UserRole.ADMIN.value, UserRole.USER.value):
        raise ValidationError(f"Invalid role: {role}. Must be admin or user.", field="role")
    if email is not None:
        email = email.strip().lower()
        if not email or "@" not in email:
            raise ValidationError("Valid email address required", field="email")

    users = UserRepository(db)
    if email and users.get_by_email(email) is not None:
        raise ConflictError("Email already registered", details={"email": email})
    if user_id and users.get_by_id_optional(user_id) is not None:
        raise ConflictError("User id already exists", details={"user_id": user_id})

    user_id = user_id or uuid.uuid4().hex[:USER_ID_LENGTH]
    try:
        user = users.create(user_id, email, display_name.strip(), role)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("User already exists", details={"user_id": user_id})

    db.refresh(user)
    logger.info("Provisioned user %s with role %s", user.user_id, user.role)
    return user


def resolve_user_ref(db: Session, user_id: Optional[str] = None, email: Optional[str] = None) -> User:
    """Find a user by id or by email; exactly one must be given."""
    if bool(user_id) == bool(email):
        raise ValidationError("Provide exactly one of user_id or email", field="user_id")

    users = UserRepository(db)
    if user_id:
        return users.get_by_id(user_id)

    user = users.get_by_email(email)
    if user is None:
        raise UserNotFoundError(email)
    return user
