"""Database models."""

from .user import User, AuditLog
from .resource import Repository, Folder, File
from .sharing import Assignment, Notification
from .enums import (
    UserRole, AccessLevel, AssignmentRole, ResourceKind,
    NotificationStatus, NotificationType,
)

__all__ = [
    "User", "AuditLog",
    "Repository", "Folder", "File",
    "Assignment", "Notification",
    "UserRole", "AccessLevel", "AssignmentRole", "ResourceKind",
    "NotificationStatus", "NotificationType",
]
