"""API routes for managing assignments on a file or folder."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import require_principal
from ..core.principal import Principal
from ..database import get_db
from ..schemas.sharing import AssignmentCreate, AssignmentGrantResponse, AssignmentResponse
from ..services.assignment_service import AssignmentService

router = APIRouter(prefix="/api/assignments", tags=["assignments"])


@router.post("/{resource_id}", response_model=AssignmentGrantResponse)
def grant_assignment(
    resource_id: str,
    data: AssignmentCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_principal),
):
    """Grant ``role`` to the user named by id or email. Re-granting updates the role."""
    assignment, created = AssignmentService(db).grant(
        resource_id, data.user_id, data.role, principal, email=data.email
    )
    return AssignmentGrantResponse(
        assignment=AssignmentResponse.model_validate(assignment),
        created=created,
    )


@router.get("/{resource_id}", response_model=List[AssignmentResponse])
def list_assignments(
    resource_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_principal),
):
    return AssignmentService(db).list_for_resource(resource_id, principal)


@router.delete("/{resource_id}/{user_id}", status_code=204)
def revoke_assignment(
    resource_id: str,
    user_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_principal),
):
    AssignmentService(db).revoke(resource_id, user_id, principal)
