"""
Admin User Routes

Directory endpoints for managing administrative users.
Mutations run through the guarded executor so every outcome is audited.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from arboleda_admin.api.access.guard import AuditContext
from arboleda_admin.api.access.roles import Permission
from arboleda_admin.api.dependencies import (
    get_current_admin,
    get_services,
    require_permission,
)
from arboleda_admin.api.services.access import AccessServices
from arboleda_admin.api.users.schemas import (
    AdminUser,
    AdminUserCreate,
    AdminUserPatch,
    EffectivePermissionsResponse,
    MessageResponse,
)
from arboleda_admin.exceptions import NotFound


router = APIRouter()

RESOURCE = "usuario"

# Changing these fields alters what a user may do
PRIVILEGE_FIELDS = {"role", "custom_permissions"}


def _check_role(services: AccessServices, role: Optional[str]) -> None:
    if role is not None and role not in services.registry:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown role: {role}",
        )


# ==================== Current Caller ====================


@router.get(
    "/me",
    response_model=EffectivePermissionsResponse,
    summary="Get caller's effective permissions",
)
async def get_me(
    user: Optional[AdminUser] = Depends(get_current_admin),
    services: AccessServices = Depends(get_services),
) -> EffectivePermissionsResponse:
    """Resolved grant set of the calling admin, for UI rendering."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown or inactive admin user",
        )
    return EffectivePermissionsResponse(
        uid=user.uid,
        role=user.role,
        permissions=sorted(services.resolver.effective_permissions(user)),
    )


@router.post(
    "/me/access",
    response_model=MessageResponse,
    summary="Record a login of the caller",
)
async def record_my_access(
    user: Optional[AdminUser] = Depends(get_current_admin),
    services: AccessServices = Depends(get_services),
) -> MessageResponse:
    """Append a LOGIN entry to the caller's access history."""
    if user is None:
        return MessageResponse(message="No admin user to record", success=False)
    await services.directory.record_access(user.uid)
    return MessageResponse(message="Access recorded")


# ==================== Directory ====================


@router.get(
    "",
    response_model=List[AdminUser],
    summary="List admin users",
)
async def list_users(
    user: AdminUser = Depends(require_permission(Permission.USUARIOS_LEER, RESOURCE)),
    services: AccessServices = Depends(get_services),
) -> List[AdminUser]:
    """Get every admin user."""
    return await services.directory.list_all()


@router.post(
    "",
    response_model=AdminUser,
    status_code=status.HTTP_201_CREATED,
    summary="Create admin user",
)
async def create_user(
    data: AdminUserCreate,
    user: Optional[AdminUser] = Depends(get_current_admin),
    services: AccessServices = Depends(get_services),
) -> AdminUser:
    """Create an admin user with the given role."""
    _check_role(services, data.role)

    async def create() -> AdminUser:
        await services.directory.create(data)
        return await services.directory.get_by_identity(data.uid)

    return await services.executor.execute(
        user,
        Permission.USUARIOS_CREAR,
        create,
        AuditContext(
            resource=RESOURCE,
            verb="crear",
            resource_id=data.uid,
            changes={"after": data.model_dump(mode="json")},
        ),
    )


@router.get(
    "/{uid}",
    response_model=AdminUser,
    summary="Get admin user",
)
async def get_user(
    uid: str,
    user: AdminUser = Depends(require_permission(Permission.USUARIOS_LEER, RESOURCE)),
    services: AccessServices = Depends(get_services),
) -> AdminUser:
    """Get one admin user by uid."""
    target = await services.directory.get_by_identity(uid)
    if target is None:
        raise NotFound(uid)
    return target


@router.get(
    "/{uid}/permissions",
    response_model=EffectivePermissionsResponse,
    summary="Get a user's effective permissions",
)
async def get_user_permissions(
    uid: str,
    user: AdminUser = Depends(require_permission(Permission.USUARIOS_LEER, RESOURCE)),
    services: AccessServices = Depends(get_services),
) -> EffectivePermissionsResponse:
    """Role grants combined with the user's overrides."""
    target = await services.directory.get_by_identity(uid)
    if target is None:
        raise NotFound(uid)
    return EffectivePermissionsResponse(
        uid=target.uid,
        role=target.role,
        permissions=sorted(services.resolver.effective_permissions(target)),
    )


@router.patch(
    "/{uid}",
    response_model=AdminUser,
    summary="Update admin user",
)
async def update_user(
    uid: str,
    data: AdminUserPatch,
    user: Optional[AdminUser] = Depends(get_current_admin),
    services: AccessServices = Depends(get_services),
) -> AdminUser:
    """
    Apply a partial update to an admin user.

    Changing the role or permission overrides requires
    ``usuarios.asignar_roles``; other edits require ``usuarios.modificar``.
    """
    _check_role(services, data.role)
    changes = data.changes()
    permission = (
        Permission.USUARIOS_ASIGNAR_ROLES
        if PRIVILEGE_FIELDS & changes.keys()
        else Permission.USUARIOS_MODIFICAR
    )
    context = AuditContext(resource=RESOURCE, verb="modificar", resource_id=uid)

    async def update() -> AdminUser:
        before = await services.directory.get_by_identity(uid)
        updated = await services.directory.update(uid, data)
        if before is not None:
            context.changes = {
                "before": {k: v for k, v in before.model_dump(mode="json").items() if k in changes},
                "after": changes,
            }
        return updated

    return await services.executor.execute(user, permission, update, context)


@router.delete(
    "/{uid}",
    response_model=MessageResponse,
    summary="Delete admin user",
)
async def delete_user(
    uid: str,
    user: Optional[AdminUser] = Depends(get_current_admin),
    services: AccessServices = Depends(get_services),
) -> MessageResponse:
    """Permanently remove an admin user."""
    await services.executor.execute(
        user,
        Permission.USUARIOS_ELIMINAR,
        lambda: services.directory.delete(uid),
        AuditContext(resource=RESOURCE, verb="eliminar", resource_id=uid),
    )
    return MessageResponse(message=f"Admin user {uid} deleted")
