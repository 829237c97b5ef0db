"""API routes for access checks and the visible-resource listing.

Both endpoints accept anonymous callers: an anonymous check succeeds only
for reading public resources, and an anonymous listing returns the public
set.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import optional_principal
from ..core.principal import Principal
from ..database import get_db
from ..schemas.resource import ResourceListResponse, ResourceResponse
from ..schemas.sharing import AccessCheckResponse
from ..services.access_service import AccessService

router = APIRouter(prefix="/api/access", tags=["access"])


@router.get("", response_model=ResourceListResponse)
def list_accessible(
    repository_id: Optional[str] = Query(None, description="Restrict to one repository"),
    db: Session = Depends(get_db),
    principal: Optional[Principal] = Depends(optional_principal),
):
    """Every file and folder the caller may read, newest first."""
    resources = AccessService(db).list_accessible(principal, repository_id)
    items = [ResourceResponse.from_resolved(r) for r in resources]
    return ResourceListResponse(items=items, total=len(items))


@router.get("/{resource_id}", response_model=AccessCheckResponse)
def check_access(
    resource_id: str,
    level: str = Query("read", description="read or write"),
    db: Session = Depends(get_db),
    principal: Optional[Principal] = Depends(optional_principal),
):
    """Report whether the caller holds ``level`` access on the resource.

    A denial is a normal 200 response with ``allowed: false``.
    """
    decision = AccessService(db).check_access(resource_id, principal, level)
    return AccessCheckResponse(
        resource_id=resource_id,
        level=decision.level.value,
        allowed=decision.allowed,
        reason=decision.reason.value,
        role=decision.role,
    )
