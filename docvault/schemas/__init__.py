"""Pydantic schemas for API validation."""

from .resource import (
    RepositoryCreate,
    RepositoryUpdate,
    RepositoryResponse,
    FolderCreate,
    FileCreate,
    VisibilityUpdate,
    ResourceResponse,
    ResourceListResponse,
    DeleteResponse,
)
from .sharing import (
    AccessCheckResponse,
    AssignmentCreate,
    AssignmentResponse,
    AssignmentGrantResponse,
    AccessRequestCreate,
    AccessRequestResponse,
    NotificationResponse,
    ResolveRequest,
)
from .user import UserCreate, UserResponse, AuditEntryResponse

__all__ = [
    "RepositoryCreate",
    "RepositoryUpdate",
    "RepositoryResponse",
    "FolderCreate",
    "FileCreate",
    "VisibilityUpdate",
    "ResourceResponse",
    "ResourceListResponse",
    "DeleteResponse",
    "AccessCheckResponse",
    "AssignmentCreate",
    "AssignmentResponse",
    "AssignmentGrantResponse",
    "AccessRequestCreate",
    "AccessRequestResponse",
    "NotificationResponse",
    "ResolveRequest",
    "UserCreate",
    "UserResponse",
    "AuditEntryResponse",
]
