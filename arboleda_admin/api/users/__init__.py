"""Admin user directory module."""

from arboleda_admin.api.users.directory import UserDirectory
from arboleda_admin.api.users.schemas import (
    AccessEntry,
    AdminUser,
    AdminUserCreate,
    AdminUserPatch,
    AdminUserUpdate,
    UserStatus,
)

__all__ = [
    "UserDirectory",
    "AccessEntry",
    "AdminUser",
    "AdminUserCreate",
    "AdminUserPatch",
    "AdminUserUpdate",
    "UserStatus",
]
