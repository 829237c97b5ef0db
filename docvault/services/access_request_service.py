"""Access-request workflow: request, accept or reject, dismiss.

A user without access asks the resource owner for it. The request is a
Notification addressed to the owner. Accepting it creates (or updates) an
assignment for the requester; both state changes commit together.

Lifecycle of a notification:
    pending --accept--> accepted   (assignment upserted)
    pending --reject--> rejected
    any     --dismiss-> deleted
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.principal import Principal
from ..exceptions import (
    DatabaseError,
    ForbiddenError,
    NotificationNotFoundError,
    ResourceNotFoundError,
    ValidationError,
)
from ..models.enums import AssignmentRole, NotificationStatus
from ..models.sharing import Notification
from ..repositories.assignment_repository import AssignmentRepository
from ..repositories.notification_repository import NotificationRepository
from ..repositories.resource_repository import ResourceRepository
from . import audit_service
from .access_service import parse_role

logger = logging.getLogger(__name__)

REQUEST_SENT = "Access request sent successfully"
REQUEST_ALREADY_SENT = "Request already sent"

ACCEPT = "accept"
REJECT = "reject"


@dataclass
class RequestOutcome:
    notification: Notification
    created: bool
    message: str


class AccessRequestService:
    """Public methods:
        request_access     -- create a pending request, or report the existing one
        resolve            -- accept (with a role) or reject a pending request
        dismiss            -- delete a notification at any status
        list_for_recipient -- inbox, optionally filtered by status
        list_sent          -- outgoing requests
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = NotificationRepository(db)
        self.resources = ResourceRepository(db)
        self.assignments = AssignmentRepository(db)

    def request_access(self, resource_id: str, requester: Principal) -> RequestOutcome:
        resource = self.resources.resolve(resource_id)
        if resource is None:
            raise ResourceNotFoundError(resource_id)
        if resource.owner_id == requester.id:
            raise ValidationError("You already own this resource", field="resource_id")

        existing = self.repo.find_pending(requester.id, resource_id)
        if existing is not None:
            return RequestOutcome(existing, False, REQUEST_ALREADY_SENT)

        try:
            notification = self.repo.create(resource.owner_id, requester.id, resource_id)
            self.db.commit()
        except IntegrityError as e:
            # A concurrent request for the same pair won the pending slot.
            self.db.rollback()
            existing = self.repo.find_pending(requester.id, resource_id)
            if existing is not None:
                return RequestOutcome(existing, False, REQUEST_ALREADY_SENT)
            raise DatabaseError("Failed to create access request", original_error=e)

        logger.info(
            "Access requested",
            extra={"resource_id": resource_id, "sender_id": requester.id, "recipient_id": resource.owner_id},
        )
        audit_service.log(
            self.db,
            user_id=requester.id,
            action="access_request",
            resource_type="notification",
            resource_id=resource_id,
            details={"notification_id": notification.id},
        )
        self.db.refresh(notification)
        return RequestOutcome(notification, True, REQUEST_SENT)

    def resolve(
        self,
        notification_id: str,
        action: str,
        actor: Principal,
        role: Optional[Union[AssignmentRole, str]] = None,
    ) -> Notification:
        """Accept or reject a pending request.

        Raises:
            NotificationNotFoundError: unknown id, or no longer pending.
            ForbiddenError: actor is neither the recipient nor an admin.
            ValidationError: unknown action, or accept without a valid role.
        """
        if action not in (ACCEPT, REJECT):
            raise ValidationError(f"Invalid action: {action!r}. Must be 'accept' or 'reject'", field="action")

        notification = self.repo.get_by_id(notification_id)
        if notification.recipient_id != actor.id and not actor.is_admin:
            raise ForbiddenError("Only the recipient can resolve this request")
        if notification.status != NotificationStatus.PENDING.value:
            raise NotificationNotFoundError(notification_id, "Notification is no longer pending")

        if action == ACCEPT:
            if role is None:
                raise ValidationError("A role is required to accept a request", field="role")
            role = parse_role(role)
            status = NotificationStatus.ACCEPTED
        else:
            status = NotificationStatus.REJECTED

        resource_id = notification.resource_id
        sender_id = notification.sender_id
        self._apply_resolution(notification_id, status, resource_id, sender_id, role, actor)

        logger.info(
            "Access request %s",
            status.value,
            extra={"notification_id": notification_id, "resource_id": resource_id},
        )
        details = {"sender_id": sender_id}
        if status == NotificationStatus.ACCEPTED:
            details["role"] = role.value
        audit_service.log(
            self.db,
            user_id=actor.id,
            action="request_accept" if status == NotificationStatus.ACCEPTED else "request_reject",
            resource_type="notification",
            resource_id=resource_id,
            details=details,
        )
        return self.repo.get_by_id(notification_id)

    def dismiss(self, notification_id: str, actor: Principal) -> None:
        notification = self.repo.get_by_id(notification_id)
        if notification.recipient_id != actor.id and not actor.is_admin:
            raise ForbiddenError("Only the recipient can dismiss this notification")

        resource_id = notification.resource_id
        self.repo.delete(notification)
        self.db.commit()

        audit_service.log(
            self.db,
            user_id=actor.id,
            action="notification_dismiss",
            resource_type="notification",
            resource_id=resource_id,
            details={"notification_id": notification_id},
        )

    def list_for_recipient(
        self,
        recipient: Principal,
        status: Optional[Union[NotificationStatus, str]] = None,
    ) -> List[Notification]:
        if status is not None:
            try:
                status = NotificationStatus(status)
            except ValueError:
                raise ValidationError(f"Invalid status: {status!r}", field="status")
        return self.repo.list_for_recipient(recipient.id, status)

    def list_sent(self, sender: Principal) -> List[Notification]:
        return self.repo.list_for_sender(sender.id)

    def _apply_resolution(
        self,
        notification_id: str,
        status: NotificationStatus,
        resource_id: str,
        sender_id: str,
        role: Optional[AssignmentRole],
        actor: Principal,
    ) -> None:
        """Flip the status and, on accept, upsert the grant in one commit.

        The status update only matches a pending row, so of two concurrent
        resolutions exactly one commits. An insert race on the assignment is
        retried once; the retry takes the update branch.
        """
        for attempt in range(2):
            try:
                if not self.repo.mark_resolved(notification_id, status):
                    self.db.rollback()
                    raise NotificationNotFoundError(notification_id, "Notification is no longer pending")
                if status == NotificationStatus.ACCEPTED:
                    if self.resources.resolve(resource_id) is None:
                        self.db.rollback()
                        raise ResourceNotFoundError(resource_id)
                    self.assignments.upsert(resource_id, sender_id, role.value, granted_by=actor.id)
                self.db.commit()
                return
            except IntegrityError as e:
                self.db.rollback()
                if attempt:
                    raise DatabaseError("Failed to resolve access request", original_error=e)
