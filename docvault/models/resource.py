"""Repository, Folder, and File models: the resource hierarchy.

A repository is the top-level container. Folders form a tree through
``parent_id`` (NULL at the repository root); files hang off a folder or the
root. Folder and file ids share one namespace so that assignments and
notifications can reference either through a single ``resource_id``.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint,
)
from ..database import Base


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class Repository(Base):
    """Top-level container owned by one user."""

    __tablename__ = "repositories"
    __table_args__ = (
        Index("ix_repositories_owner_id", "owner_id"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    owner_id = Column(String(50), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)


class Folder(Base):
    """A tree node. ``path`` is ``/<name>`` at the root, else ``<parent.path>/<name>``."""

    __tablename__ = "folders"
    __table_args__ = (
        UniqueConstraint("repository_id", "path", name="uq_folders_repository_path"),
        Index("ix_folders_parent_id", "parent_id"),
        Index("ix_folders_owner_id", "owner_id"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    path = Column(String(1000), nullable=False)
    parent_id = Column(String(36), ForeignKey("folders.id", ondelete="CASCADE"), nullable=True)
    repository_id = Column(
        String(36), ForeignKey("repositories.id", ondelete="CASCADE"), nullable=False
    )
    owner_id = Column(String(50), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    is_public = Column(Boolean, nullable=False, default=False)
    # Python-side default keeps sub-second precision for listing order on SQLite.
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)


class File(Base):
    """A leaf. ``content_ref`` is an opaque key into the blob store."""

    __tablename__ = "files"
    __table_args__ = (
        UniqueConstraint("repository_id", "path", name="uq_files_repository_path"),
        Index("ix_files_parent_id", "parent_id"),
        Index("ix_files_owner_id", "owner_id"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    path = Column(String(1000), nullable=False)
    parent_id = Column(String(36), ForeignKey("folders.id", ondelete="CASCADE"), nullable=True)
    repository_id = Column(
        String(36), ForeignKey("repositories.id", ondelete="CASCADE"), nullable=False
    )
    owner_id = Column(String(50), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    is_public = Column(Boolean, nullable=False, default=False)
    content_ref = Column(String(255), nullable=False)
    size = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)
