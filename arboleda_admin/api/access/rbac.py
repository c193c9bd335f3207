"""
ARBOLEDA ADMIN - Permission Resolver

Resolves what an admin user may do by combining the grants of the
user's role with the user's per-permission overrides.

An override entry always wins over the role: ``True`` grants a
permission the role lacks, ``False`` revokes one the role grants.
Absent an override, role membership decides.
"""

from typing import FrozenSet, Iterable, List, Optional, Set

from arboleda_admin.api.access.roles import (
    PermissionLike,
    RoleRegistry,
    as_token,
    default_registry,
)
from arboleda_admin.api.users.schemas import AdminUser


class PermissionResolver:
    """Answers permission queries against an injected role registry."""

    def __init__(self, registry: Optional[RoleRegistry] = None):
        self.registry = registry or default_registry()

    def has_permission(self, user: Optional[AdminUser], permission: PermissionLike) -> bool:
        """Check if a user holds a permission. No user means no rights."""
        if user is None:
            return False

        role = self.registry.get_role(user.role)
        if role is None:
            return False

        key = as_token(permission)
        if key in user.custom_permissions:
            return bool(user.custom_permissions[key])

        return role.grants(key)

    def has_any_permission(
        self, user: Optional[AdminUser], permissions: Iterable[PermissionLike]
    ) -> bool:
        """Check if a user holds any of the given permissions."""
        return any(self.has_permission(user, p) for p in permissions)

    def has_all_permissions(
        self, user: Optional[AdminUser], permissions: Iterable[PermissionLike]
    ) -> bool:
        """Check if a user holds all of the given permissions."""
        return all(self.has_permission(user, p) for p in permissions)

    def effective_permissions(self, user: Optional[AdminUser]) -> Set[str]:
        """Full resolved grant set: role grants plus/minus overrides."""
        if user is None:
            return set()

        role = self.registry.get_role(user.role)
        if role is None:
            return set()

        permissions = set(role.permissions)
        for permission, granted in user.custom_permissions.items():
            if granted:
                permissions.add(permission)
            else:
                permissions.discard(permission)
        return permissions

    def all_known_permissions(self) -> List[str]:
        """Sorted union of every permission granted by any role."""
        known: Set[str] = set()
        for role in self.registry.list_all_roles():
            known.update(role.permissions)
        return sorted(known)

    def permissions_of_role(self, role_id: Optional[str]) -> FrozenSet[str]:
        return self.registry.permissions_of_role(role_id)
