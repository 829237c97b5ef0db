"""API routes for individual files and folders.

Reads go through the resolver and accept anonymous callers for public
resources. Content is transferred as the raw request/response body.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from ..core.auth import optional_principal, require_principal
from ..core.principal import Principal
from ..database import get_db
from ..schemas.resource import DeleteResponse, ResourceResponse, VisibilityUpdate
from ..services.blob_store import BlobStore, get_blob_store
from ..services.resource_service import ResourceService

router = APIRouter(prefix="/api/resources", tags=["resources"])


def _service(
    db: Session = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
) -> ResourceService:
    return ResourceService(db, blob_store)


@router.get("/{resource_id}", response_model=ResourceResponse)
def get_resource(
    resource_id: str,
    service: ResourceService = Depends(_service),
    principal: Optional[Principal] = Depends(optional_principal),
):
    return ResourceResponse.from_resolved(service.get_resource(resource_id, principal))


@router.get("/{resource_id}/content")
def read_content(
    resource_id: str,
    service: ResourceService = Depends(_service),
    principal: Optional[Principal] = Depends(optional_principal),
):
    file, data = service.read_content(resource_id, principal)
    return Response(
        content=data,
        media_type="application/octet-stream",
        headers={"Content-Disposition": f'inline; filename="{file.name}"'},
    )


@router.put("/{resource_id}/content", response_model=ResourceResponse)
async def write_content(
    resource_id: str,
    request: Request,
    service: ResourceService = Depends(_service),
    principal: Optional[Principal] = Depends(optional_principal),
):
    """Replace the file's bytes with the request body. Requires write access."""
    body = await request.body()
    file = service.write_content(resource_id, body, principal)
    return ResourceResponse.from_record(file, "file")


@router.put("/{resource_id}/visibility", response_model=ResourceResponse)
def set_visibility(
    resource_id: str,
    data: VisibilityUpdate,
    service: ResourceService = Depends(_service),
    principal: Principal = Depends(require_principal),
):
    resource = service.set_visibility(resource_id, data.is_public, principal)
    return ResourceResponse.from_resolved(resource)


@router.delete("/{resource_id}", response_model=DeleteResponse)
def delete_resource(
    resource_id: str,
    service: ResourceService = Depends(_service),
    principal: Principal = Depends(require_principal),
):
    """Delete a file, or a folder with everything beneath it."""
    removed = service.delete_resource(resource_id, principal)
    return DeleteResponse(id=resource_id, removed=removed)
