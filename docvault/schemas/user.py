"""User and audit schemas."""

from pydantic import BaseModel
from datetime import datetime
from typing import Optional, Literal


class UserCreate(BaseModel):
    """Provision a user. ``user_id`` is generated when omitted."""
    email: Optional[str] = None
    display_name: str = ""
    role: Literal["admin", "user"] = "user"
    user_id: Optional[str] = None


class UserResponse(BaseModel):
    user_id: str
    email: Optional[str] = None
    display_name: str
    role: str
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AuditEntryResponse(BaseModel):
    id: int
    user_id: Optional[str] = None
    action: str
    resource_type: str
    resource_id: Optional[str] = None
    details: Optional[str] = None
    ip_address: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
