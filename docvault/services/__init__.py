"""Business logic services."""

from .access_service import AccessService, AccessDecision, DecisionReason
from .assignment_service import AssignmentService
from .access_request_service import AccessRequestService, RequestOutcome
from .resource_service import ResourceService

__all__ = [
    "AccessService",
    "AccessDecision",
    "DecisionReason",
    "AssignmentService",
    "AccessRequestService",
    "RequestOutcome",
    "ResourceService",
]
