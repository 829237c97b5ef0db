"""Repositories, folders, and files: creation, content, visibility, deletion.

Every operation authorizes through ``AccessService`` before touching rows.
Creation rules:
    - at the repository root: the actor must own the repository (or be admin)
    - beneath a folder: the actor needs write access on that folder
The creator of a folder or file becomes its owner.

Deletion is restricted to the resource owner, the repository owner, and
admins. Deleting a folder removes every folder and file beneath it, together
with their assignments, pending requests, and stored bytes.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.principal import Principal
from ..exceptions import (
    ConflictError,
    ForbiddenError,
    RepositoryNotFoundError,
    ResourceNotFoundError,
    ValidationError,
)
from ..models.enums import AccessLevel, ResourceKind
from ..models.resource import File, Folder, Repository, new_id, utc_now
from ..repositories.assignment_repository import AssignmentRepository
from ..repositories.notification_repository import NotificationRepository
from ..repositories.resource_repository import ResolvedResource, ResourceRepository
from . import audit_service
from .access_service import AccessService
from .blob_store import BlobStore

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 255


def _clean_name(name: str, field: str = "name") -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Name must not be empty", field=field)
    if "/" in name or name in (".", ".."):
        raise ValidationError("Name must not contain '/' or be '.' or '..'", field=field)
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"Name must be at most {MAX_NAME_LENGTH} characters", field=field)
    return name


def content_ref_for(owner_id: str, file_id: str) -> str:
    return f"files/{owner_id}/{file_id}"


class ResourceService:
    """Public methods:
        create_repository, list_repositories, get_repository,
        rename_repository, delete_repository
        create_folder, create_file
        get_resource, read_content, write_content
        set_visibility, delete_resource
    """

    def __init__(self, db: Session, blob_store: BlobStore, max_depth: Optional[int] = None):
        self.db = db
        self.blobs = blob_store
        self.max_depth = max_depth if max_depth is not None else settings.max_tree_depth
        self.access = AccessService(db, self.max_depth)
        self.resources = ResourceRepository(db)
        self.assignments = AssignmentRepository(db)
        self.notifications = NotificationRepository(db)

    # ------------------------------------------------------------------
    # Repositories
    # ------------------------------------------------------------------

    def create_repository(self, name: str, actor: Principal) -> Repository:
        repository = self.resources.create_repository(_clean_name(name), actor.id)
        self.db.commit()
        self.db.refresh(repository)

        logger.info("Repository created", extra={"repository_id": repository.id})
        audit_service.log(
            self.db, user_id=actor.id, action="repository_create",
            resource_type="repository", resource_id=repository.id,
            details={"name": repository.name},
        )
        return repository

    def list_repositories(self, actor: Principal) -> List[Repository]:
        """Repositories the actor owns or holds an assignment inside. Admins see all."""
        if actor.is_admin:
            return self.resources.list_all_repositories()
        return self.resources.list_repositories_for(actor.id)

    def get_repository(self, repository_id: str, actor: Principal) -> Repository:
        repository = self._get_repository(repository_id)
        if self._manages_repository(repository, actor):
            return repository
        visible = {r.id for r in self.resources.list_repositories_for(actor.id)}
        if repository.id not in visible:
            raise ForbiddenError("No access to this repository")
        return repository

    def rename_repository(self, repository_id: str, name: str, actor: Principal) -> Repository:
        repository = self._require_repository_manager(repository_id, actor)
        old_name = repository.name
        repository.name = _clean_name(name)
        self.db.commit()
        self.db.refresh(repository)

        audit_service.log(
            self.db, user_id=actor.id, action="repository_rename",
            resource_type="repository", resource_id=repository.id,
            details={"old_name": old_name, "name": repository.name},
        )
        return repository

    def delete_repository(self, repository_id: str, actor: Principal) -> int:
        """Remove the repository and everything in it. Returns resources removed."""
        repository = self._require_repository_manager(repository_id, actor)

        folder_ids = [f.id for f in self.resources.folders_in_repository(repository.id)]
        files = self.resources.files_in_repository(repository.id)
        refs = [f.content_ref for f in files]
        removed = self._purge(folder_ids, [f.id for f in files])
        self.resources.delete_repository(repository)
        self.db.commit()
        self._delete_blobs(refs)

        logger.info("Repository deleted", extra={"repository_id": repository_id, "removed": removed})
        audit_service.log(
            self.db, user_id=actor.id, action="repository_delete",
            resource_type="repository", resource_id=repository_id,
            details={"removed": removed},
        )
        return removed

    # ------------------------------------------------------------------
    # Folders and files
    # ------------------------------------------------------------------

    def create_folder(
        self,
        repository_id: str,
        name: str,
        actor: Principal,
        parent_id: Optional[str] = None,
        is_public: bool = False,
    ) -> Folder:
        name, path = self._placement(repository_id, name, parent_id, actor)
        try:
            folder = self.resources.add_folder(
                name=name,
                path=path,
                repository_id=repository_id,
                owner_id=actor.id,
                parent_id=parent_id,
                is_public=is_public,
            )
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(f"Path already exists: {path}", details={"path": path})

        self.db.refresh(folder)
        self._audit_create(actor, folder, ResourceKind.FOLDER)
        return folder

    def create_file(
        self,
        repository_id: str,
        name: str,
        content: bytes,
        actor: Principal,
        parent_id: Optional[str] = None,
        is_public: bool = False,
    ) -> File:
        name, path = self._placement(repository_id, name, parent_id, actor)

        file_id = new_id()
        content_ref = content_ref_for(actor.id, file_id)
        self.blobs.put(content_ref, content)
        try:
            file = self.resources.add_file(
                file_id=file_id,
                name=name,
                path=path,
                repository_id=repository_id,
                owner_id=actor.id,
                content_ref=content_ref,
                size=len(content),
                parent_id=parent_id,
                is_public=is_public,
            )
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            self.blobs.delete(content_ref)
            raise ConflictError(f"Path already exists: {path}", details={"path": path})

        self.db.refresh(file)
        self._audit_create(actor, file, ResourceKind.FILE)
        return file

    def get_resource(self, resource_id: str, actor: Optional[Principal]) -> ResolvedResource:
        return self.access.require_access(resource_id, actor, AccessLevel.READ)

    def read_content(self, file_id: str, actor: Optional[Principal]) -> Tuple[File, bytes]:
        resource = self.access.require_access(file_id, actor, AccessLevel.READ)
        file = self._as_file(resource)
        return file, self.blobs.get(file.content_ref)

    def write_content(self, file_id: str, content: bytes, actor: Optional[Principal]) -> File:
        resource = self.access.require_access(file_id, actor, AccessLevel.WRITE)
        file = self._as_file(resource)

        self.blobs.put(file.content_ref, content)
        file.size = len(content)
        file.updated_at = utc_now()
        self.db.commit()
        self.db.refresh(file)

        audit_service.log(
            self.db, user_id=actor.id, action="content_update",
            resource_type="file", resource_id=file.id,
            details={"size": file.size},
        )
        return file

    def set_visibility(self, resource_id: str, is_public: bool, actor: Optional[Principal]) -> ResolvedResource:
        resource = self.access.require_manager(
            resource_id, actor, "Only the owner, repository owner, or an admin can change visibility"
        )
        resource.record.is_public = bool(is_public)
        self.db.commit()
        self.db.refresh(resource.record)

        audit_service.log(
            self.db, user_id=actor.id, action="visibility_change",
            resource_type=resource.kind.value, resource_id=resource_id,
            details={"is_public": bool(is_public)},
        )
        return resource

    def delete_resource(self, resource_id: str, actor: Optional[Principal]) -> int:
        """Delete a file, or a folder with everything beneath it.

        Returns the number of files and folders removed.
        """
        resource = self.access.require_manager(
            resource_id, actor, "Only the owner, repository owner, or an admin can delete this resource"
        )

        if resource.kind == ResourceKind.FILE:
            folder_ids: List[str] = []
            file_ids = [resource.id]
        else:
            # Whole subtree, no depth cap.
            folder_ids = list(self.resources.descendant_folder_ids([resource.id]))
            file_ids = self.resources.file_ids_in_folders(folder_ids)
        refs = [self.resources.get_file(fid).content_ref for fid in file_ids]

        removed = self._purge(folder_ids, file_ids)
        self.db.commit()
        self._delete_blobs(refs)

        logger.info(
            "Resource deleted",
            extra={"resource_id": resource_id, "kind": resource.kind.value, "removed": removed},
        )
        audit_service.log(
            self.db, user_id=actor.id, action="resource_delete",
            resource_type=resource.kind.value, resource_id=resource_id,
            details={"removed": removed},
        )
        return removed

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_repository(self, repository_id: str) -> Repository:
        repository = self.resources.get_repository(repository_id)
        if repository is None:
            raise RepositoryNotFoundError(repository_id)
        return repository

    @staticmethod
    def _manages_repository(repository: Repository, actor: Principal) -> bool:
        return actor.is_admin or repository.owner_id == actor.id

    def _require_repository_manager(self, repository_id: str, actor: Principal) -> Repository:
        repository = self._get_repository(repository_id)
        if not self._manages_repository(repository, actor):
            raise ForbiddenError("Only the repository owner or an admin can do this")
        return repository

    def _placement(
        self,
        repository_id: str,
        name: str,
        parent_id: Optional[str],
        actor: Principal,
    ) -> Tuple[str, str]:
        """Validate where a new resource goes. Returns ``(name, path)``."""
        repository = self._get_repository(repository_id)
        name = _clean_name(name)

        if parent_id is None:
            if not self._manages_repository(repository, actor):
                raise ForbiddenError("Only the repository owner can create resources at the root")
            path = f"/{name}"
        else:
            parent = self.resources.resolve(parent_id)
            if parent is None:
                raise ResourceNotFoundError(parent_id)
            if parent.kind != ResourceKind.FOLDER:
                raise ValidationError("Parent must be a folder", field="parent_id")
            if parent.repository_id != repository.id:
                raise ValidationError("Parent folder belongs to another repository", field="parent_id")
            self.access.require_access(parent_id, actor, AccessLevel.WRITE)
            path = f"{parent.record.path}/{name}"

        if self.resources.path_taken(repository.id, path):
            raise ConflictError(f"Path already exists: {path}", details={"path": path})
        return name, path

    @staticmethod
    def _as_file(resource: ResolvedResource) -> File:
        if resource.kind != ResourceKind.FILE:
            raise ValidationError("Folders have no content", field="resource_id")
        return resource.record

    def _purge(self, folder_ids: List[str], file_ids: List[str]) -> int:
        """Delete the given folders and files plus every grant and request on them."""
        resource_ids = folder_ids + file_ids
        self.assignments.delete_for_resources(resource_ids)
        self.notifications.delete_for_resources(resource_ids)
        self.resources.delete_files(file_ids)
        self.resources.delete_folders(folder_ids)
        self.db.expire_all()
        return len(resource_ids)

    def _delete_blobs(self, refs: List[str]) -> None:
        for ref in refs:
            try:
                self.blobs.delete(ref)
            except OSError as e:
                logger.warning("Failed to delete blob %s: %s", ref, e)

    def _audit_create(self, actor: Principal, record, kind: ResourceKind) -> None:
        logger.info(
            "Resource created",
            extra={"resource_id": record.id, "kind": kind.value, "repository_id": record.repository_id},
        )
        audit_service.log(
            self.db, user_id=actor.id, action="resource_create",
            resource_type=kind.value, resource_id=record.id,
            details={"path": record.path},
        )
