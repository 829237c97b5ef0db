"""API routes for users and the audit trail."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import require_admin, require_principal
from ..core.principal import Principal
from ..database import get_db
from ..repositories.user_repository import UserRepository
from ..schemas.user import AuditEntryResponse, UserCreate, UserResponse
from ..services import audit_service, user_service

router = APIRouter(prefix="/api/users", tags=["users"])
audit_router = APIRouter(prefix="/api/audit", tags=["audit"])


@router.get("/me", response_model=UserResponse)
def get_me(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_principal),
):
    return UserRepository(db).get_by_id(principal.id)


@router.post("", response_model=UserResponse, status_code=201)
def provision_user(
    data: UserCreate,
    db: Session = Depends(get_db),
    admin: Principal = Depends(require_admin),
):
    """Create a user account (admin only)."""
    user = user_service.provision_user(
        db, data.email, display_name=data.display_name, role=data.role, user_id=data.user_id
    )
    audit_service.log(
        db, user_id=admin.id, action="user_provision",
        resource_type="user", resource_id=user.user_id,
        details={"role": user.role},
    )
    return user


@audit_router.get("", response_model=List[AuditEntryResponse])
def list_audit_entries(
    user_id: Optional[str] = Query(None),
    resource_id: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
    admin: Principal = Depends(require_admin),
):
    """Most recent audit entries, optionally for one user or one resource."""
    if resource_id:
        return audit_service.get_by_resource(db, resource_id, limit=limit)
    if user_id:
        return audit_service.get_by_user(db, user_id, limit=limit)
    return audit_service.get_recent(db, limit=limit)
