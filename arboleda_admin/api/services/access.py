"""
Access Services

Process-wide wiring of the document store, role registry, resolver,
directory, audit writer and guarded executor.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from arboleda_admin.api.access.audit import AuditLogWriter, AuditTrail
from arboleda_admin.api.access.guard import GuardedExecutor
from arboleda_admin.api.access.rbac import PermissionResolver
from arboleda_admin.api.access.roles import RoleRegistry, default_registry
from arboleda_admin.api.config import Settings, settings as default_settings
from arboleda_admin.api.db.store import DocumentStore, SQLDocumentStore
from arboleda_admin.api.users.directory import UserDirectory

logger = logging.getLogger(__name__)


@dataclass
class AccessServices:
    """Collaborators of the admin access layer."""

    store: DocumentStore
    registry: RoleRegistry
    resolver: PermissionResolver
    directory: UserDirectory
    audit: AuditLogWriter
    trail: AuditTrail
    executor: GuardedExecutor

    @classmethod
    def build(
        cls,
        store: DocumentStore,
        settings: Optional[Settings] = None,
        registry: Optional[RoleRegistry] = None,
    ) -> "AccessServices":
        """Wire every collaborator around one store."""
        settings = settings or default_settings
        registry = registry or default_registry()
        resolver = PermissionResolver(registry)
        audit = AuditLogWriter(
            store,
            collection=settings.AUDIT_COLLECTION,
            max_queue_size=settings.AUDIT_QUEUE_SIZE,
            retries=settings.AUDIT_WRITE_RETRIES,
            retry_backoff=settings.AUDIT_RETRY_BACKOFF_SEC,
        )
        return cls(
            store=store,
            registry=registry,
            resolver=resolver,
            directory=UserDirectory(
                store,
                collection=settings.USERS_COLLECTION,
                history_limit=settings.ACCESS_HISTORY_LIMIT,
            ),
            audit=audit,
            trail=AuditTrail(store, collection=settings.AUDIT_COLLECTION),
            executor=GuardedExecutor(resolver, audit),
        )


# Global access services instance
_services: Optional[AccessServices] = None


def get_access_services() -> AccessServices:
    """Get the global access services, building them on first use."""
    global _services
    if _services is None:
        from arboleda_admin.api.db.session import get_session_maker

        _services = AccessServices.build(SQLDocumentStore(get_session_maker()))
    return _services


def set_access_services(services: Optional[AccessServices]) -> None:
    """Replace the global access services (tests, alternative stores)."""
    global _services
    _services = services


async def init_access_services() -> None:
    """Build the services and start the audit drain."""
    services = get_access_services()
    await services.audit.start()
    logger.info(f"Access services ready with {len(services.registry)} roles")


async def close_access_services() -> None:
    """Flush pending audit records and stop the drain."""
    if _services:
        await _services.audit.stop()
