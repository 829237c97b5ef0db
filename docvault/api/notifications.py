"""API routes for the access-request workflow.

Every endpoint is scoped to the authenticated user: the inbox lists
notifications addressed to them, ``/sent`` lists requests they made.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..core.auth import require_principal
from ..core.principal import Principal
from ..database import get_db
from ..schemas.sharing import (
    AccessRequestCreate,
    AccessRequestResponse,
    NotificationResponse,
    ResolveRequest,
)
from ..services.access_request_service import AccessRequestService

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.post("/request-access", response_model=AccessRequestResponse)
def request_access(
    data: AccessRequestCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_principal),
):
    """Ask the resource owner for access.

    Returns 201 for a new request and 200 when one is already pending.
    """
    outcome = AccessRequestService(db).request_access(data.resource_id, principal)
    body = AccessRequestResponse(
        message=outcome.message,
        created=outcome.created,
        notification=NotificationResponse.model_validate(outcome.notification),
    )
    return JSONResponse(
        status_code=201 if outcome.created else 200,
        content=body.model_dump(mode="json"),
    )


@router.get("", response_model=List[NotificationResponse])
def list_notifications(
    status: Optional[str] = Query(None, description="pending, accepted, or rejected"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_principal),
):
    return AccessRequestService(db).list_for_recipient(principal, status)


@router.get("/sent", response_model=List[NotificationResponse])
def list_sent_requests(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_principal),
):
    return AccessRequestService(db).list_sent(principal)


@router.post("/{notification_id}/resolve", response_model=NotificationResponse)
def resolve_request(
    notification_id: str,
    data: ResolveRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_principal),
):
    """Accept (granting ``role`` to the requester) or reject a pending request."""
    return AccessRequestService(db).resolve(notification_id, data.action, principal, role=data.role)


@router.delete("/{notification_id}", status_code=204)
def dismiss_notification(
    notification_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_principal),
):
    AccessRequestService(db).dismiss(notification_id, principal)
