"""Enumerations shared by models, schemas, and services.

Stored as plain strings in the database; the enums validate values at the
service boundary.
"""

from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    USER = "user"


class AccessLevel(str, Enum):
    READ = "read"
    WRITE = "write"


class AssignmentRole(str, Enum):
    """Explicit grant role. ``editor`` includes everything ``viewer`` allows."""
    VIEWER = "viewer"
    EDITOR = "editor"


class ResourceKind(str, Enum):
    FILE = "file"
    FOLDER = "folder"


class NotificationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class NotificationType(str, Enum):
    ACCESS_REQUEST = "access_request"
