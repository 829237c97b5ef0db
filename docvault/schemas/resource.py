"""Repository, folder, and file schemas."""

from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import Optional, List


def _validate_name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Name cannot be empty")
    if '/' in v:
        raise ValueError("Name cannot contain '/'")
    return v


# --- Repository schemas ---

class RepositoryCreate(BaseModel):
    name: str

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _validate_name(v)


class RepositoryUpdate(RepositoryCreate):
    """Rename a repository."""
    pass


class RepositoryResponse(BaseModel):
    id: str
    name: str
    owner_id: str
    created_at: datetime

    class Config:
        from_attributes = True


# --- Folder / file schemas ---

class FolderCreate(BaseModel):
    """Create a folder at the repository root or beneath ``parent_id``."""
    name: str
    parent_id: Optional[str] = None  # None = repository root
    is_public: bool = False

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _validate_name(v)


class FileCreate(FolderCreate):
    """Create a file. ``content`` is stored as UTF-8."""
    content: str = ""


class VisibilityUpdate(BaseModel):
    is_public: bool


class ResourceResponse(BaseModel):
    """A file or a folder. ``size`` and ``updated_at`` are set for files only."""
    id: str
    kind: str  # 'file' or 'folder'
    name: str
    path: str
    parent_id: Optional[str] = None
    repository_id: str
    owner_id: str
    is_public: bool
    created_at: datetime
    size: Optional[int] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record, kind: str) -> "ResourceResponse":
        return cls(
            id=record.id,
            kind=kind,
            name=record.name,
            path=record.path,
            parent_id=record.parent_id,
            repository_id=record.repository_id,
            owner_id=record.owner_id,
            is_public=bool(record.is_public),
            created_at=record.created_at,
            size=getattr(record, "size", None),
            updated_at=getattr(record, "updated_at", None),
        )

    @classmethod
    def from_resolved(cls, resolved) -> "ResourceResponse":
        return cls.from_record(resolved.record, resolved.kind.value)


class ResourceListResponse(BaseModel):
    items: List[ResourceResponse]
    total: int


class DeleteResponse(BaseModel):
    id: str
    removed: int
