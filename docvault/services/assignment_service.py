"""Explicit per-user grants on files and folders."""

import logging
from typing import List, Optional, Tuple, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.principal import Principal
from ..exceptions import AssignmentNotFoundError, DatabaseError
from ..models.enums import AssignmentRole
from ..models.sharing import Assignment
from ..repositories.assignment_repository import AssignmentRepository
from . import audit_service, user_service
from .access_service import AccessService, parse_role

logger = logging.getLogger(__name__)

_MANAGE_MESSAGE = "Only the resource owner, repository owner, or an admin can manage assignments"


class AssignmentService:
    """Grant, revoke, and list assignments.

    Public methods:
        grant             -- create or overwrite (user, resource) -> role
        revoke            -- remove the row; NotFound when absent
        list_for_resource -- every assignment on one resource

    The actor on every call must be able to manage the resource (owner,
    repository owner, or admin).
    """

    def __init__(self, db: Session):
        self.db = db
        self.access = AccessService(db)
        self.repo = AssignmentRepository(db)

    def grant(
        self,
        resource_id: str,
        target_user_id: Optional[str],
        role: Union[AssignmentRole, str],
        actor: Principal,
        email: Optional[str] = None,
    ) -> Tuple[Assignment, bool]:
        """Upsert the assignment. Returns ``(assignment, created)``.

        The target is named by ``target_user_id`` or ``email``. It is looked
        up only after the actor passes the manager check, so a caller who
        cannot manage the resource learns nothing about which users exist.

        Two grants racing on the same pair both succeed; the later commit's
        role wins. The loser of the insert race retries and takes the update
        branch.
        """
        role = parse_role(role)
        self.access.require_manager(resource_id, actor, _MANAGE_MESSAGE)
        target_user_id = user_service.resolve_user_ref(
            self.db, user_id=target_user_id, email=email
        ).user_id

        assignment, created = self._upsert_with_retry(resource_id, target_user_id, role, actor)

        logger.info(
            "Assignment %s",
            "created" if created else "updated",
            extra={"resource_id": resource_id, "user_id": target_user_id, "role": role.value},
        )
        audit_service.log(
            self.db,
            user_id=actor.id,
            action="grant_create" if created else "grant_update",
            resource_type="assignment",
            resource_id=resource_id,
            details={"user_id": target_user_id, "role": role.value},
        )
        self.db.refresh(assignment)
        return assignment, created

    def revoke(self, resource_id: str, target_user_id: str, actor: Principal) -> None:
        self.access.require_manager(resource_id, actor, _MANAGE_MESSAGE)

        assignment = self.repo.get(target_user_id, resource_id)
        if assignment is None:
            raise AssignmentNotFoundError(resource_id, target_user_id)

        self.repo.delete(assignment)
        self.db.commit()

        audit_service.log(
            self.db,
            user_id=actor.id,
            action="grant_revoke",
            resource_type="assignment",
            resource_id=resource_id,
            details={"user_id": target_user_id},
        )

    def list_for_resource(self, resource_id: str, actor: Principal) -> List[Assignment]:
        self.access.require_manager(resource_id, actor, _MANAGE_MESSAGE)
        return self.repo.list_for_resource(resource_id)

    def _upsert_with_retry(
        self,
        resource_id: str,
        user_id: str,
        role: AssignmentRole,
        actor: Principal,
    ) -> Tuple[Assignment, bool]:
        for attempt in range(2):
            try:
                assignment, created = self.repo.upsert(resource_id, user_id, role.value, granted_by=actor.id)
                self.db.commit()
                return assignment, created
            except IntegrityError as e:
                self.db.rollback()
                if attempt:
                    raise DatabaseError("Failed to save assignment", original_error=e)
                logger.info(
                    "Concurrent grant detected; retrying as update",
                    extra={"resource_id": resource_id, "user_id": user_id},
                )
