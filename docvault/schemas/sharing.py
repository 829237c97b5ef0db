"""Schemas for access checks, assignments, and access requests."""

from pydantic import BaseModel, model_validator
from datetime import datetime
from typing import Optional, Literal


# --- Access checks ---

class AccessCheckResponse(BaseModel):
    resource_id: str
    level: str
    allowed: bool
    reason: str
    role: Optional[str] = None


# --- Assignments ---

class AssignmentCreate(BaseModel):
    """Grant a role to a user named by ``user_id`` or ``email``."""
    user_id: Optional[str] = None
    email: Optional[str] = None
    role: Literal["viewer", "editor"]

    @model_validator(mode="after")
    def one_target(self) -> "AssignmentCreate":
        if bool(self.user_id) == bool(self.email):
            raise ValueError("Provide exactly one of user_id or email")
        return self


class AssignmentResponse(BaseModel):
    id: str
    resource_id: str
    user_id: str
    role: str
    granted_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AssignmentGrantResponse(BaseModel):
    assignment: AssignmentResponse
    created: bool


# --- Access requests ---

class AccessRequestCreate(BaseModel):
    resource_id: str


class NotificationResponse(BaseModel):
    id: str
    recipient_id: str
    sender_id: str
    resource_id: str
    type: str
    status: str
    created_at: datetime
    resolved_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AccessRequestResponse(BaseModel):
    message: str
    created: bool
    notification: NotificationResponse


class ResolveRequest(BaseModel):
    """Accept (with a role) or reject a pending request."""
    action: Literal["accept", "reject"]
    role: Optional[Literal["viewer", "editor"]] = None
