"""
ARBOLEDA ADMIN Test Configuration
=================================

Pytest fixtures shared by the unit tests.
"""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from arboleda_admin.api.access.audit import AuditLogWriter
from arboleda_admin.api.access.guard import GuardedExecutor
from arboleda_admin.api.access.rbac import PermissionResolver
from arboleda_admin.api.access.roles import default_registry
from arboleda_admin.api.db.models import Base
from arboleda_admin.api.db.store import MemoryDocumentStore, SQLDocumentStore
from arboleda_admin.api.users.directory import UserDirectory
from arboleda_admin.api.users.schemas import AdminUser


@pytest.fixture
def registry():
    """Reference role registry."""
    return default_registry()


@pytest.fixture
def resolver(registry):
    """Permission resolver over the reference roles."""
    return PermissionResolver(registry)


@pytest.fixture
def make_user():
    """Factory for admin users that are not persisted."""

    def _make(role: str = "recepcionista", overrides=None, uid: str = "uid-1", **kwargs):
        return AdminUser(
            uid=uid,
            role=role,
            custom_permissions=overrides or {},
            email=kwargs.pop("email", f"{uid}@arboleda.pe"),
            **kwargs,
        )

    return _make


@pytest.fixture
def store():
    """Empty in-memory document store."""
    return MemoryDocumentStore()


@pytest_asyncio.fixture
async def sql_store():
    """Document store on an in-memory SQLite database."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield SQLDocumentStore(async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False))

    await engine.dispose()


@pytest.fixture
def audit(store):
    """Audit writer writing inline, without retry delays."""
    return AuditLogWriter(store, retries=0)


@pytest.fixture
def directory(store):
    """User directory over the in-memory store."""
    return UserDirectory(store)


@pytest.fixture
def executor(resolver, audit):
    """Guarded executor wired to the in-memory audit writer."""
    return GuardedExecutor(resolver, audit)
