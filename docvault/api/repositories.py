"""API routes for repositories and for creating folders and files inside them."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import require_principal
from ..core.principal import Principal
from ..database import get_db
from ..schemas.resource import (
    DeleteResponse,
    FileCreate,
    FolderCreate,
    RepositoryCreate,
    RepositoryResponse,
    RepositoryUpdate,
    ResourceResponse,
)
from ..services.blob_store import BlobStore, get_blob_store
from ..services.resource_service import ResourceService

router = APIRouter(prefix="/api/repositories", tags=["repositories"])


def _service(
    db: Session = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
) -> ResourceService:
    return ResourceService(db, blob_store)


@router.post("", response_model=RepositoryResponse, status_code=201)
def create_repository(
    data: RepositoryCreate,
    service: ResourceService = Depends(_service),
    principal: Principal = Depends(require_principal),
):
    return service.create_repository(data.name, principal)


@router.get("", response_model=List[RepositoryResponse])
def list_repositories(
    service: ResourceService = Depends(_service),
    principal: Principal = Depends(require_principal),
):
    """Repositories the caller owns or holds an assignment inside."""
    return service.list_repositories(principal)


@router.get("/{repository_id}", response_model=RepositoryResponse)
def get_repository(
    repository_id: str,
    service: ResourceService = Depends(_service),
    principal: Principal = Depends(require_principal),
):
    return service.get_repository(repository_id, principal)


@router.put("/{repository_id}", response_model=RepositoryResponse)
def rename_repository(
    repository_id: str,
    data: RepositoryUpdate,
    service: ResourceService = Depends(_service),
    principal: Principal = Depends(require_principal),
):
    return service.rename_repository(repository_id, data.name, principal)


@router.delete("/{repository_id}", response_model=DeleteResponse)
def delete_repository(
    repository_id: str,
    service: ResourceService = Depends(_service),
    principal: Principal = Depends(require_principal),
):
    """Delete the repository with every folder, file, grant, and request in it."""
    removed = service.delete_repository(repository_id, principal)
    return DeleteResponse(id=repository_id, removed=removed)


@router.post("/{repository_id}/folders", response_model=ResourceResponse, status_code=201)
def create_folder(
    repository_id: str,
    data: FolderCreate,
    service: ResourceService = Depends(_service),
    principal: Principal = Depends(require_principal),
):
    """Create a folder. The caller becomes its owner."""
    folder = service.create_folder(
        repository_id, data.name, principal, parent_id=data.parent_id, is_public=data.is_public
    )
    return ResourceResponse.from_record(folder, "folder")


@router.post("/{repository_id}/files", response_model=ResourceResponse, status_code=201)
def create_file(
    repository_id: str,
    data: FileCreate,
    service: ResourceService = Depends(_service),
    principal: Principal = Depends(require_principal),
):
    """Create a file with UTF-8 text content. The caller becomes its owner."""
    file = service.create_file(
        repository_id,
        data.name,
        data.content.encode("utf-8"),
        principal,
        parent_id=data.parent_id,
        is_public=data.is_public,
    )
    return ResourceResponse.from_record(file, "file")
