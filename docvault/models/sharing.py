"""Assignment and Notification models: explicit grants and access requests.

``resource_id`` on both tables is untyped: it names a File or a Folder and
carries no foreign key. Rows are removed explicitly by the resource service
when the resource they point to is deleted.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, UniqueConstraint, text
from ..database import Base
from .resource import new_id, utc_now


class Assignment(Base):
    """An explicit (user, resource, role) grant. Role is ``viewer`` or ``editor``."""

    __tablename__ = "assignments"
    __table_args__ = (
        UniqueConstraint("user_id", "resource_id", name="uq_assignments_user_resource"),
        Index("ix_assignments_resource_id", "resource_id"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    resource_id = Column(String(36), nullable=False)
    user_id = Column(String(50), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    role = Column(String(20), nullable=False)
    granted_by = Column(String(50), ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)


class Notification(Base):
    """An access-request ticket from ``sender_id`` to the resource owner.

    Status moves once, from ``pending`` to ``accepted`` or ``rejected``.
    The partial unique index allows at most one pending request per
    (sender, resource); resolved rows are kept as history.
    """

    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_recipient_id", "recipient_id"),
        Index("ix_notifications_sender_id", "sender_id"),
        Index(
            "uq_notifications_pending_request",
            "sender_id",
            "resource_id",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    recipient_id = Column(String(50), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    sender_id = Column(String(50), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    resource_id = Column(String(36), nullable=False)
    type = Column(String(30), nullable=False, default="access_request")
    status = Column(String(20), nullable=False, default="pending")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    resolved_at = Column(DateTime(timezone=True), nullable=True)
