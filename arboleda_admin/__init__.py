# ARBOLEDA ADMIN - Admin panel access control
"""
ARBOLEDA ADMIN: Role-based access control and audit trail for the
La Arboleda Club administrative panel.

Core Components:
    - Role Registry: Predefined roles and their grants
    - Permission Resolver: Role grants plus per-user overrides
    - User Directory: Admin user records and access history
    - Audit Log Writer: Best-effort append-only audit trail
    - Guarded Executor: Check, run and audit privileged actions

Example:
    from arboleda_admin import AccessServices, MemoryDocumentStore

    services = AccessServices.build(MemoryDocumentStore())
    user = await services.directory.get_by_identity(uid)
    services.resolver.has_permission(user, "reservas.cambiar_estado")
"""

from arboleda_admin.api.access import (
    AuditContext,
    AuditKind,
    AuditLogWriter,
    GuardedExecutor,
    Permission,
    PermissionResolver,
    RoleId,
    RoleRegistry,
)
from arboleda_admin.api.db.store import MemoryDocumentStore, SQLDocumentStore
from arboleda_admin.api.services.access import AccessServices
from arboleda_admin.api.users import AdminUser, UserDirectory
from arboleda_admin.exceptions import (
    ArboledaError,
    NotFound,
    PermissionDenied,
    StoreError,
)

__version__ = "1.0.0"

__all__ = [
    "AccessServices",
    "AdminUser",
    "AuditContext",
    "AuditKind",
    "AuditLogWriter",
    "GuardedExecutor",
    "MemoryDocumentStore",
    "Permission",
    "PermissionResolver",
    "RoleId",
    "RoleRegistry",
    "SQLDocumentStore",
    "UserDirectory",
    "ArboledaError",
    "NotFound",
    "PermissionDenied",
    "StoreError",
]
