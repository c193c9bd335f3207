"""
FastAPI Dependencies

Caller resolution and permission requirements for admin routes.
The caller's uid arrives from the upstream auth layer in a request
header and is trusted as-is.
"""

from typing import Optional

from fastapi import Depends, Request

from arboleda_admin.api.access.audit import ANONYMOUS_ACTOR
from arboleda_admin.api.access.roles import PermissionLike, as_token
from arboleda_admin.api.config import settings
from arboleda_admin.api.services.access import AccessServices, get_access_services
from arboleda_admin.api.users.schemas import AdminUser
from arboleda_admin.exceptions import PermissionDenied


def get_services() -> AccessServices:
    """Dependency that provides the access services."""
    return get_access_services()


async def get_current_admin(
    request: Request,
    services: AccessServices = Depends(get_services),
) -> Optional[AdminUser]:
    """
    Get the calling admin user, if any.

    Returns None when the identity header is missing, the uid is not in
    the directory, or the user is inactive. Downstream permission checks
    treat None as "no rights".
    """
    uid = request.headers.get(settings.IDENTITY_HEADER)
    if not uid:
        return None

    user = await services.directory.get_by_identity(uid)
    if user is None or not user.is_active:
        return None
    return user


def require_permission(permission: PermissionLike, resource: str):
    """
    Dependency factory requiring a permission on read-only routes.

    Denials are audited before PermissionDenied is raised.

    Usage:
        @router.get("/audit")
        async def list_audit(user: AdminUser = Depends(
            require_permission(Permission.USUARIOS_VER_AUDITORIA, "auditoria")
        )):
            ...
    """
    required = as_token(permission)

    async def dependency(
        user: Optional[AdminUser] = Depends(get_current_admin),
        services: AccessServices = Depends(get_services),
    ) -> AdminUser:
        if not services.resolver.has_permission(user, required):
            actor = user.actor if user else ANONYMOUS_ACTOR
            await services.audit.record_denial(actor, required, resource)
            raise PermissionDenied(required, actor=actor)
        return user

    return dependency
