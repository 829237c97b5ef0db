"""Authorization resolver and visible-resource listing.

This is the one place where the access rules are defined. Every read or
write of a file or folder goes through ``check_access``; the assignment and
access-request services use ``require_manager`` to authorize themselves.

Rules for ``check_access(resource, principal, level)``:
    1. Unknown resource          -> denied (``not_found``)
    2. read on a public resource -> allowed, even for anonymous callers
    3. anonymous                 -> denied
    4. resource or repository owner -> allowed
    5. an assignment on the resource or any enclosing folder whose role
       covers ``level``          -> allowed
    6. otherwise                 -> denied

Roles: ``editor`` covers read and write, ``viewer`` covers read. Admins get
no implicit access here; their extra powers are limited to management
operations (grant, revoke, resolve, visibility, delete).

Denials are returned as ``AccessDecision`` values. ``require_access`` is the
helper that turns a denial into NotFound / Unauthenticated / Forbidden.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Set, Union

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.principal import Principal
from ..exceptions import AuthenticationError, ForbiddenError, ResourceNotFoundError, ValidationError
from ..models.enums import AccessLevel, AssignmentRole
from ..repositories.assignment_repository import AssignmentRepository
from ..repositories.resource_repository import ResolvedResource, ResourceRepository

logger = logging.getLogger(__name__)

# Role -> access levels it satisfies. Each role includes the levels of the
# roles below it.
_ROLE_LEVELS: Dict[str, Set[str]] = {
    AssignmentRole.EDITOR.value: {AccessLevel.READ.value, AccessLevel.WRITE.value},
    AssignmentRole.VIEWER.value: {AccessLevel.READ.value},
}


class DecisionReason(str, Enum):
    PUBLIC = "public"
    OWNER = "owner"
    REPOSITORY_OWNER = "repository_owner"
    ASSIGNMENT = "assignment"
    NOT_FOUND = "not_found"
    ANONYMOUS = "anonymous"
    NO_GRANT = "no_grant"


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: DecisionReason
    level: AccessLevel
    resource: Optional[ResolvedResource] = None
    role: Optional[str] = None

    def __bool__(self) -> bool:
        return self.allowed


def role_allows(role: str, level: Union[AccessLevel, str]) -> bool:
    """Whether an assignment *role* satisfies access *level*."""
    level_value = level.value if isinstance(level, AccessLevel) else level
    return level_value in _ROLE_LEVELS.get(role, set())


def _created_key(resource: ResolvedResource) -> datetime:
    # SQLite hands back naive UTC values; compare everything as naive UTC.
    ts = resource.created_at
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc).replace(tzinfo=None)
    return ts


def parse_level(level: Union[AccessLevel, str]) -> AccessLevel:
    try:
        return AccessLevel(level)
    except ValueError:
        raise ValidationError(f"Invalid access level: {level!r}. Must be 'read' or 'write'", field="level")


def parse_role(role: Union[AssignmentRole, str, None]) -> AssignmentRole:
    try:
        return AssignmentRole(role)
    except ValueError:
        raise ValidationError(f"Invalid role: {role!r}. Must be 'viewer' or 'editor'", field="role")


class AccessService:
    """Access decisions for one database session.

    Public methods:
        check_access     -- structured decision for (resource, principal, level)
        has_access       -- the boolean form
        require_access   -- decision mapped onto the error taxonomy
        can_manage       -- owner, repository owner, or admin
        require_manager  -- can_manage or raise
        list_accessible  -- every resource the principal may read
    """

    def __init__(self, db: Session, max_depth: Optional[int] = None):
        self.db = db
        self.resources = ResourceRepository(db)
        self.assignments = AssignmentRepository(db)
        self.max_depth = max_depth if max_depth is not None else settings.max_tree_depth

    # ------------------------------------------------------------------
    # Resolver
    # ------------------------------------------------------------------

    def check_access(
        self,
        resource_id: str,
        principal: Optional[Principal],
        level: Union[AccessLevel, str],
    ) -> AccessDecision:
        level = parse_level(level)

        resource = self.resources.resolve(resource_id)
        if resource is None:
            return AccessDecision(False, DecisionReason.NOT_FOUND, level)

        if level == AccessLevel.READ and resource.is_public:
            return AccessDecision(True, DecisionReason.PUBLIC, level, resource)

        if principal is None:
            return AccessDecision(False, DecisionReason.ANONYMOUS, level, resource)

        if resource.owner_id == principal.id:
            return AccessDecision(True, DecisionReason.OWNER, level, resource)

        if self._repository_owner_id(resource) == principal.id:
            return AccessDecision(True, DecisionReason.REPOSITORY_OWNER, level, resource)

        chain = self.resources.ancestor_ids(resource, self.max_depth)
        roles = self.assignments.roles_for(principal.id, chain)
        for role in sorted(roles, key=lambda r: r != AssignmentRole.EDITOR.value):
            if role_allows(role, level):
                return AccessDecision(True, DecisionReason.ASSIGNMENT, level, resource, role)

        return AccessDecision(False, DecisionReason.NO_GRANT, level, resource)

    def has_access(
        self,
        resource_id: str,
        principal: Optional[Principal],
        level: Union[AccessLevel, str],
    ) -> bool:
        return self.check_access(resource_id, principal, level).allowed

    def require_access(
        self,
        resource_id: str,
        principal: Optional[Principal],
        level: Union[AccessLevel, str],
    ) -> ResolvedResource:
        """Return the resource when access is allowed, else raise.

        Raises:
            ResourceNotFoundError: unknown id.
            AuthenticationError: anonymous caller denied (signing in may help).
            ForbiddenError: authenticated caller denied.
        """
        decision = self.check_access(resource_id, principal, level)
        if decision.allowed:
            return decision.resource
        if decision.reason == DecisionReason.NOT_FOUND:
            raise ResourceNotFoundError(resource_id)
        if decision.reason == DecisionReason.ANONYMOUS:
            raise AuthenticationError("Authentication required")
        logger.info(
            "Access denied",
            extra={"resource_id": resource_id, "principal_id": principal.id, "level": decision.level.value},
        )
        raise ForbiddenError(f"No {decision.level.value} access to this resource")

    # ------------------------------------------------------------------
    # Management rights
    # ------------------------------------------------------------------

    def can_manage(self, resource: ResolvedResource, principal: Optional[Principal]) -> bool:
        if principal is None:
            return False
        if principal.is_admin or resource.owner_id == principal.id:
            return True
        return self._repository_owner_id(resource) == principal.id

    def require_manager(
        self,
        resource_id: str,
        principal: Optional[Principal],
        message: str = "Only owners or admins can manage this resource",
    ) -> ResolvedResource:
        resource = self.resources.resolve(resource_id)
        if resource is None:
            raise ResourceNotFoundError(resource_id)
        if principal is None:
            raise AuthenticationError("Authentication required")
        if not self.can_manage(resource, principal):
            raise ForbiddenError(message)
        return resource

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_accessible(
        self,
        principal: Optional[Principal],
        repository_id: Optional[str] = None,
    ) -> List[ResolvedResource]:
        """Every file and folder *principal* may read, newest first.

        Union of: public resources; resources the principal owns; resources
        in repositories the principal owns; directly assigned files; and the
        descendant closure of directly assigned folders. Anonymous callers
        get the public set only. Ties on ``created_at`` are ordered by id.
        """
        if principal is None:
            folders = self.resources.find_folders(within_repository=repository_id)
            files = self.resources.find_files(within_repository=repository_id)
        else:
            owned_repositories = self.resources.repository_ids_owned_by(principal.id)
            assigned_ids = self.assignments.resource_ids_for_user(principal.id)
            assigned_folders = self.resources.existing_folder_ids(assigned_ids)
            closure = self.resources.descendant_folder_ids(assigned_folders, self.max_depth)

            folders = self.resources.find_folders(
                owner_id=principal.id,
                repository_ids=owned_repositories,
                ids=closure,
                within_repository=repository_id,
            )
            files = self.resources.find_files(
                owner_id=principal.id,
                repository_ids=owned_repositories,
                ids=assigned_ids,
                parent_ids=closure,
                within_repository=repository_id,
            )

        visible: Dict[str, ResolvedResource] = {}
        for record in [*folders, *files]:
            visible[record.id] = self.resources.wrap(record)

        by_id = sorted(visible.values(), key=lambda r: r.id)
        return sorted(by_id, key=_created_key, reverse=True)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _repository_owner_id(self, resource: ResolvedResource) -> Optional[str]:
        repository = self.resources.get_repository(resource.repository_id)
        return repository.owner_id if repository is not None else None
