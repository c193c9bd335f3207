"""
ARBOLEDA ADMIN - Access & Audit Module

Role registry, permission resolution, audit logging and guarded execution.

Components:
- roles.py: Predefined roles and permission tokens
- rbac.py: Permission resolution with per-user overrides
- audit.py: Audit log writer and trail
- guard.py: Check-then-act-then-log execution

Usage:
    from arboleda_admin.api.access import (
        PermissionResolver,
        AuditLogWriter,
        GuardedExecutor,
        AuditContext,
    )

    resolver = PermissionResolver()
    executor = GuardedExecutor(resolver, AuditLogWriter(store))
    await executor.execute(user, "reservas.cambiar_estado", action,
                           AuditContext(resource="reserva", verb="cambiar_estado"))
"""

from arboleda_admin.api.access.roles import (
    Permission,
    RoleId,
    Role,
    RoleRegistry,
    ROLE_DEFINITIONS,
    default_registry,
)

from arboleda_admin.api.access.rbac import PermissionResolver

from arboleda_admin.api.access.audit import (
    ACCESS_DENIED,
    AuditKind,
    AuditEvent,
    AuditLogWriter,
    AuditTrail,
)

from arboleda_admin.api.access.guard import (
    AuditContext,
    ExecutionState,
    GuardedExecutor,
)

__all__ = [
    # Roles and Permissions
    "Permission",
    "RoleId",
    "Role",
    "RoleRegistry",
    "ROLE_DEFINITIONS",
    "default_registry",
    "PermissionResolver",

    # Audit
    "ACCESS_DENIED",
    "AuditKind",
    "AuditEvent",
    "AuditLogWriter",
    "AuditTrail",

    # Guarded execution
    "AuditContext",
    "ExecutionState",
    "GuardedExecutor",
]
