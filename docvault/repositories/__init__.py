"""Data access repositories."""

from .base import BaseRepository
from .resource_repository import ResourceRepository, ResourceRef, ResolvedResource
from .assignment_repository import AssignmentRepository
from .notification_repository import NotificationRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "ResourceRepository",
    "ResourceRef",
    "ResolvedResource",
    "AssignmentRepository",
    "NotificationRepository",
    "UserRepository",
]
