"""Resource store: repositories, folders, and files.

Pure data access. No method here decides who may do what; the services do.
The one structural rule this module owns is how a bare ``resource_id`` is
turned into a typed reference (``resolve``) and how the folder tree is
walked in either direction.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Set, Union

from sqlalchemy import false, or_, select
from sqlalchemy.orm import Session

from ..models.enums import ResourceKind
from ..models.resource import Repository, Folder, File
from ..models.sharing import Assignment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceRef:
    """Tagged reference to a File or a Folder."""
    kind: ResourceKind
    id: str


@dataclass(frozen=True)
class ResolvedResource:
    """A resource id resolved to its row, with the fields policy needs."""
    ref: ResourceRef
    record: Union[Folder, File]

    @property
    def id(self) -> str:
        return self.ref.id

    @property
    def kind(self) -> ResourceKind:
        return self.ref.kind

    @property
    def owner_id(self) -> str:
        return self.record.owner_id

    @property
    def repository_id(self) -> str:
        return self.record.repository_id

    @property
    def parent_id(self) -> Optional[str]:
        return self.record.parent_id

    @property
    def is_public(self) -> bool:
        return bool(self.record.is_public)

    @property
    def created_at(self) -> datetime:
        return self.record.created_at


def _wrap_folder(folder: Folder) -> ResolvedResource:
    return ResolvedResource(ResourceRef(ResourceKind.FOLDER, folder.id), folder)


def _wrap_file(file: File) -> ResolvedResource:
    return ResolvedResource(ResourceRef(ResourceKind.FILE, file.id), file)


class ResourceRepository:
    """CRUD and tree traversal for repositories, folders, and files."""

    def __init__(self, db: Session):
        self.db = db

    # --- Repositories ---

    def create_repository(self, name: str, owner_id: str) -> Repository:
        repository = Repository(name=name, owner_id=owner_id)
        self.db.add(repository)
        self.db.flush()
        return repository

    def get_repository(self, repository_id: str) -> Optional[Repository]:
        return self.db.query(Repository).filter(Repository.id == repository_id).first()

    def repository_ids_owned_by(self, user_id: str) -> List[str]:
        rows = self.db.query(Repository.id).filter(Repository.owner_id == user_id).all()
        return [row[0] for row in rows]

    def list_repositories_for(self, user_id: str) -> List[Repository]:
        """Repositories the user owns or holds an assignment inside."""
        assigned = select(Assignment.resource_id).where(Assignment.user_id == user_id)
        via_folder = select(Folder.repository_id).where(Folder.id.in_(assigned))
        via_file = select(File.repository_id).where(File.id.in_(assigned))
        return (
            self.db.query(Repository)
            .filter(
                or_(
                    Repository.owner_id == user_id,
                    Repository.id.in_(via_folder),
                    Repository.id.in_(via_file),
                )
            )
            .order_by(Repository.created_at.desc(), Repository.id)
            .all()
        )

    def list_all_repositories(self) -> List[Repository]:
        return self.db.query(Repository).order_by(Repository.created_at.desc(), Repository.id).all()

    def delete_repository(self, repository: Repository) -> None:
        self.db.delete(repository)
        self.db.flush()

    # --- Folders and files ---

    def add_folder(
        self,
        name: str,
        path: str,
        repository_id: str,
        owner_id: str,
        parent_id: Optional[str] = None,
        is_public: bool = False,
    ) -> Folder:
        folder = Folder(
            name=name,
            path=path,
            parent_id=parent_id,
            repository_id=repository_id,
            owner_id=owner_id,
            is_public=is_public,
        )
        self.db.add(folder)
        self.db.flush()
        return folder

    def add_file(
        self,
        file_id: str,
        name: str,
        path: str,
        repository_id: str,
        owner_id: str,
        content_ref: str,
        size: int,
        parent_id: Optional[str] = None,
        is_public: bool = False,
    ) -> File:
        file = File(
            id=file_id,
            name=name,
            path=path,
            parent_id=parent_id,
            repository_id=repository_id,
            owner_id=owner_id,
            is_public=is_public,
            content_ref=content_ref,
            size=size,
        )
        self.db.add(file)
        self.db.flush()
        return file

    def get_folder(self, folder_id: str) -> Optional[Folder]:
        return self.db.query(Folder).filter(Folder.id == folder_id).first()

    def get_file(self, file_id: str) -> Optional[File]:
        return self.db.query(File).filter(File.id == file_id).first()

    def resolve(self, resource_id: str) -> Optional[ResolvedResource]:
        """Turn an untyped resource id into a typed reference, or None."""
        file = self.get_file(resource_id)
        if file is not None:
            return _wrap_file(file)
        folder = self.get_folder(resource_id)
        if folder is not None:
            return _wrap_folder(folder)
        return None

    def path_taken(self, repository_id: str, path: str) -> bool:
        """True when a file or folder already occupies *path* in the repository."""
        folder_hit = (
            self.db.query(Folder.id)
            .filter(Folder.repository_id == repository_id, Folder.path == path)
            .first()
        )
        if folder_hit is not None:
            return True
        file_hit = (
            self.db.query(File.id)
            .filter(File.repository_id == repository_id, File.path == path)
            .first()
        )
        return file_hit is not None

    # --- Tree walks ---

    def ancestor_ids(self, resource: ResolvedResource, max_depth: int) -> List[str]:
        """The resource id followed by every enclosing folder id up to the root.

        Walks parent links one row at a time. Stops at *max_depth* folders or
        when a folder repeats; both end the chain instead of raising.
        """
        chain = [resource.id]
        seen = {resource.id}
        parent_id = resource.parent_id
        depth = 0
        while parent_id is not None:
            if depth >= max_depth:
                logger.warning(
                    "Ancestor walk hit depth cap",
                    extra={"resource_id": resource.id, "max_depth": max_depth},
                )
                break
            if parent_id in seen:
                logger.warning(
                    "Cycle in folder tree",
                    extra={"resource_id": resource.id, "folder_id": parent_id},
                )
                break
            folder = self.get_folder(parent_id)
            if folder is None:
                break
            chain.append(folder.id)
            seen.add(folder.id)
            parent_id = folder.parent_id
            depth += 1
        return chain

    def descendant_folder_ids(self, root_ids: Iterable[str], max_depth: Optional[int] = None) -> Set[str]:
        """The given folder ids plus every folder nested beneath them.

        Breadth-first, one query per tree level. With *max_depth* the walk
        stops after that many levels; without it the whole subtree is
        returned. Folders already in the closure are never revisited.
        """
        closure: Set[str] = set(root_ids)
        frontier = set(closure)
        depth = 0
        while frontier:
            if max_depth is not None and depth >= max_depth:
                logger.warning(
                    "Descendant walk hit depth cap",
                    extra={"max_depth": max_depth, "frontier_size": len(frontier)},
                )
                break
            rows = self.db.query(Folder.id).filter(Folder.parent_id.in_(frontier)).all()
            frontier = {row[0] for row in rows} - closure
            closure |= frontier
            depth += 1
        return closure

    def existing_folder_ids(self, resource_ids: Iterable[str]) -> List[str]:
        """The subset of *resource_ids* that name folders."""
        resource_ids = list(resource_ids)
        if not resource_ids:
            return []
        rows = self.db.query(Folder.id).filter(Folder.id.in_(resource_ids)).all()
        return [row[0] for row in rows]

    def file_ids_in_folders(self, folder_ids: Iterable[str]) -> List[str]:
        folder_ids = list(folder_ids)
        if not folder_ids:
            return []
        rows = self.db.query(File.id).filter(File.parent_id.in_(folder_ids)).all()
        return [row[0] for row in rows]

    # --- Listing queries ---

    def find_folders(
        self,
        owner_id: Optional[str] = None,
        repository_ids: Iterable[str] = (),
        ids: Iterable[str] = (),
        parent_ids: Iterable[str] = (),
        include_public: bool = True,
        within_repository: Optional[str] = None,
    ) -> List[Folder]:
        """Folders matching ANY of the given criteria."""
        criteria = self._visibility_criteria(
            Folder, owner_id, repository_ids, ids, parent_ids, include_public
        )
        query = self.db.query(Folder).filter(or_(*criteria))
        if within_repository is not None:
            query = query.filter(Folder.repository_id == within_repository)
        return query.all()

    def find_files(
        self,
        owner_id: Optional[str] = None,
        repository_ids: Iterable[str] = (),
        ids: Iterable[str] = (),
        parent_ids: Iterable[str] = (),
        include_public: bool = True,
        within_repository: Optional[str] = None,
    ) -> List[File]:
        """Files matching ANY of the given criteria."""
        criteria = self._visibility_criteria(
            File, owner_id, repository_ids, ids, parent_ids, include_public
        )
        query = self.db.query(File).filter(or_(*criteria))
        if within_repository is not None:
            query = query.filter(File.repository_id == within_repository)
        return query.all()

    @staticmethod
    def _visibility_criteria(model, owner_id, repository_ids, ids, parent_ids, include_public):
        criteria = [false()]
        if include_public:
            criteria.append(model.is_public.is_(True))
        if owner_id is not None:
            criteria.append(model.owner_id == owner_id)
        repository_ids = list(repository_ids)
        if repository_ids:
            criteria.append(model.repository_id.in_(repository_ids))
        ids = list(ids)
        if ids:
            criteria.append(model.id.in_(ids))
        parent_ids = list(parent_ids)
        if parent_ids:
            criteria.append(model.parent_id.in_(parent_ids))
        return criteria

    def folders_in_repository(self, repository_id: str) -> List[Folder]:
        return self.db.query(Folder).filter(Folder.repository_id == repository_id).all()

    def files_in_repository(self, repository_id: str) -> List[File]:
        return self.db.query(File).filter(File.repository_id == repository_id).all()

    # --- Deletion ---

    def delete_files(self, file_ids: Iterable[str]) -> int:
        file_ids = list(file_ids)
        if not file_ids:
            return 0
        return self.db.query(File).filter(File.id.in_(file_ids)).delete(synchronize_session=False)

    def delete_folders(self, folder_ids: Iterable[str]) -> int:
        folder_ids = list(folder_ids)
        if not folder_ids:
            return 0
        return self.db.query(Folder).filter(Folder.id.in_(folder_ids)).delete(synchronize_session=False)

    @staticmethod
    def wrap(record: Union[Folder, File]) -> ResolvedResource:
        if isinstance(record, File):
            return _wrap_file(record)
        return _wrap_folder(record)
