"""User and AuditLog models.

Users are provisioned by the identity side; DocVault only needs their id,
role, and active flag to build a Principal. AuditLog records every
state-changing operation on repositories, resources, grants, and requests.
"""

from sqlalchemy import Column, String, DateTime, Boolean, Integer, Text, ForeignKey
from sqlalchemy.sql import func
from ..database import Base


class User(Base):
    """A principal that can own repositories and receive grants.

    Roles:
        admin -- may manage assignments and requests on any resource
        user  -- acts only through ownership and assignments
    """

    __tablename__ = "users"

    user_id = Column(String(50), primary_key=True)
    email = Column(String(255), unique=True, nullable=True)
    display_name = Column(String(255), nullable=False, default="")
    role = Column(String(20), nullable=False, default="user")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class AuditLog(Base):
    """Immutable record of state-changing operations.

    Written by the service layer after the business transaction commits,
    never modified.
        action        -- repository_create, resource_create, resource_delete,
                         visibility_change, grant_create, grant_update,
                         grant_revoke, access_request, request_accept,
                         request_reject, notification_dismiss, user_provision
        resource_type -- repository, folder, file, assignment, notification, user
        details       -- JSON string with additional context
    """

    __tablename__ = "audit_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(50), ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    action = Column(String(50), nullable=False)
    resource_type = Column(String(50), nullable=False)
    resource_id = Column(String(255), nullable=True)
    details = Column(Text, nullable=True)
    ip_address = Column(String(45), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
