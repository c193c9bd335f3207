"""
Admin User Schemas

Pydantic models for administrative users stored in the directory.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    """Get current UTC time."""
    return datetime.now(timezone.utc)


class UserStatus(str, Enum):
    """Lifecycle status of an admin user."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class AccessEntry(BaseModel):
    """One entry of a user's access history."""

    timestamp: datetime = Field(default_factory=utcnow)
    kind: str = "LOGIN"


class AdminUser(BaseModel):
    """Administrative user record."""

    id: Optional[str] = None  # Storage key
    uid: str
    email: Optional[str] = None
    name: Optional[str] = None
    role: str
    custom_permissions: Dict[str, bool] = Field(default_factory=dict)
    status: UserStatus = UserStatus.ACTIVE
    created_at: datetime = Field(default_factory=utcnow)
    last_access: Optional[datetime] = None
    access_history: List[AccessEntry] = Field(default_factory=list)

    @property
    def actor(self) -> str:
        """Identity written to audit records."""
        return self.email or self.uid

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE


# ==================== Requests ====================


class AdminUserCreate(BaseModel):
    """Data supplied when creating an admin user."""

    uid: str = Field(min_length=1)
    role: str
    email: Optional[str] = None
    name: Optional[str] = None


class AdminUserPatch(BaseModel):
    """
    Partial update of an admin user, as accepted from API callers.

    Only fields explicitly set are merged into the stored record.
    Email and name may be cleared with null; the other fields may not.
    """

    email: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None
    status: Optional[UserStatus] = None
    custom_permissions: Optional[Dict[str, bool]] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("role", "status", "custom_permissions")
    @classmethod
    def reject_null(cls, v):
        """Omit a field to leave it unchanged; null is not a value for it."""
        if v is None:
            raise ValueError("must not be null")
        return v

    def changes(self) -> dict:
        """JSON-ready mapping of the fields that were set."""
        return self.model_dump(mode="json", exclude_unset=True)


class AdminUserUpdate(AdminUserPatch):
    """Partial update including the access history, for internal callers."""

    access_history: Optional[List[AccessEntry]] = None

    @field_validator("access_history")
    @classmethod
    def reject_null_history(cls, v):
        if v is None:
            raise ValueError("must not be null")
        return v


# ==================== Responses ====================


class EffectivePermissionsResponse(BaseModel):
    """Resolved grant set of one user."""

    uid: str
    role: str
    permissions: List[str]


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str
    success: bool = True
