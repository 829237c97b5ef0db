"""Repository for assignment rows."""

from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..models.sharing import Assignment


class AssignmentRepository:
    """Data access for explicit (user, resource, role) grants.

    Writers flush but never commit; the calling service owns the transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str, resource_id: str) -> Optional[Assignment]:
        return (
            self.db.query(Assignment)
            .filter(Assignment.user_id == user_id, Assignment.resource_id == resource_id)
            .first()
        )

    def roles_for(self, user_id: str, resource_ids: Iterable[str]) -> List[str]:
        """Roles the user holds on any of *resource_ids*."""
        resource_ids = list(resource_ids)
        if not resource_ids:
            return []
        rows = (
            self.db.query(Assignment.role)
            .filter(Assignment.user_id == user_id, Assignment.resource_id.in_(resource_ids))
            .all()
        )
        return [row[0] for row in rows]

    def resource_ids_for_user(self, user_id: str) -> List[str]:
        rows = self.db.query(Assignment.resource_id).filter(Assignment.user_id == user_id).all()
        return [row[0] for row in rows]

    def list_for_resource(self, resource_id: str) -> List[Assignment]:
        return (
            self.db.query(Assignment)
            .filter(Assignment.resource_id == resource_id)
            .order_by(Assignment.created_at.desc(), Assignment.id)
            .all()
        )

    def upsert(
        self,
        resource_id: str,
        user_id: str,
        role: str,
        granted_by: Optional[str] = None,
    ) -> Tuple[Assignment, bool]:
        """Create the (user, resource) row or overwrite its role.

        Returns ``(assignment, created)``. A concurrent insert of the same pair
        surfaces as ``IntegrityError`` at flush; callers retry the transaction,
        which then takes the update branch.
        """
        existing = self.get(user_id, resource_id)
        if existing is not None:
            existing.role = role
            if granted_by is not None:
                existing.granted_by = granted_by
            self.db.flush()
            return existing, False

        assignment = Assignment(
            resource_id=resource_id,
            user_id=user_id,
            role=role,
            granted_by=granted_by,
        )
        self.db.add(assignment)
        self.db.flush()
        return assignment, True

    def delete(self, assignment: Assignment) -> None:
        self.db.delete(assignment)
        self.db.flush()

    def delete_for_resources(self, resource_ids: Iterable[str]) -> int:
        resource_ids = list(resource_ids)
        if not resource_ids:
            return 0
        return (
            self.db.query(Assignment)
            .filter(Assignment.resource_id.in_(resource_ids))
            .delete(synchronize_session=False)
        )
