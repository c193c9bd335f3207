"""
Access Routes

Role catalogue, permission catalogue and audit trail endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from arboleda_admin.api.access.audit import AuditEvent, AuditKind
from arboleda_admin.api.access.roles import Permission
from arboleda_admin.api.access.schemas import RoleResponse
from arboleda_admin.api.dependencies import get_services, require_permission
from arboleda_admin.api.services.access import AccessServices
from arboleda_admin.api.users.schemas import AdminUser


router = APIRouter()


# ==================== Roles ====================


@router.get(
    "/roles",
    response_model=List[RoleResponse],
    summary="List predefined roles",
)
async def list_roles(
    services: AccessServices = Depends(get_services),
) -> List[RoleResponse]:
    """Get every predefined role with its grants."""
    return [RoleResponse(**role.to_dict()) for role in services.registry.list_all_roles()]


@router.get(
    "/roles/{role_id}/permissions",
    response_model=List[str],
    summary="List permissions of a role",
)
async def get_role_permissions(
    role_id: str,
    services: AccessServices = Depends(get_services),
) -> List[str]:
    """Get the sorted permission list of one role."""
    if role_id not in services.registry:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Role not found: {role_id}",
        )
    return sorted(services.resolver.permissions_of_role(role_id))


@router.get(
    "/permissions",
    response_model=List[str],
    summary="List all assignable permissions",
)
async def list_permissions(
    services: AccessServices = Depends(get_services),
) -> List[str]:
    """Sorted union of the permissions granted by any role."""
    return services.resolver.all_known_permissions()


# ==================== Audit ====================


@router.get(
    "/audit",
    response_model=List[AuditEvent],
    summary="List audit events",
)
async def list_audit_events(
    kind: Optional[AuditKind] = Query(None, description="Filter by event kind"),
    actor: Optional[str] = Query(None, description="Filter by actor"),
    limit: int = Query(100, ge=1, le=1000),
    user: AdminUser = Depends(
        require_permission(Permission.USUARIOS_VER_AUDITORIA, "auditoria")
    ),
    services: AccessServices = Depends(get_services),
) -> List[AuditEvent]:
    """Get stored audit events, newest first."""
    await services.audit.flush()
    return await services.trail.list_events(kind=kind, actor=actor, limit=limit)
