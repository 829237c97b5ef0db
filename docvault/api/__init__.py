"""API routes."""

from .access import router as access_router
from .repositories import router as repositories_router
from .resources import router as resources_router
from .assignments import router as assignments_router
from .notifications import router as notifications_router
from .users import router as users_router, audit_router

__all__ = [
    "access_router",
    "repositories_router",
    "resources_router",
    "assignments_router",
    "notifications_router",
    "users_router",
    "audit_router",
]
