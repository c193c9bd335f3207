"""
Test Configuration and Fixtures

Shared fixtures for the admin API tests.
Provides isolated in-memory services, seeded admin users and an
async HTTP client.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from arboleda_admin.api.config import settings
from arboleda_admin.api.db.store import MemoryDocumentStore
from arboleda_admin.api.main import create_app
from arboleda_admin.api.services.access import AccessServices, set_access_services
from arboleda_admin.api.users.schemas import AdminUserCreate, AdminUserUpdate, UserStatus


# ==================== Service Fixtures ====================


@pytest.fixture(scope="function")
def store() -> MemoryDocumentStore:
    """Isolated in-memory document store."""
    return MemoryDocumentStore()


@pytest.fixture(scope="function")
def services(store) -> AccessServices:
    """Access services wired to the test store; audit writes inline."""
    services = AccessServices.build(store)
    services.audit.retries = 0
    set_access_services(services)
    yield services
    set_access_services(None)


@pytest_asyncio.fixture(scope="function")
async def seeded_users(services) -> dict:
    """One super admin, one receptionist and one inactive menu admin."""
    users = {
        "admin": AdminUserCreate(uid="uid-admin", role="super_admin", email="admin@arboleda.pe"),
        "rosa": AdminUserCreate(uid="uid-rosa", role="recepcionista", email="rosa@arboleda.pe"),
        "carlos": AdminUserCreate(uid="uid-carlos", role="admin_carta", email="carlos@arboleda.pe"),
    }
    for data in users.values():
        await services.directory.create(data)

    await services.directory.update("uid-carlos", AdminUserUpdate(status=UserStatus.INACTIVE))
    return users


# ==================== Application Fixtures ====================


@pytest.fixture(scope="function")
def app(services) -> FastAPI:
    """FastAPI app without the database lifespan."""
    return create_app(use_lifespan=False)


@pytest_asyncio.fixture(scope="function")
async def async_client(app, seeded_users) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


def caller(uid: str) -> dict:
    """Identity header for a caller."""
    return {settings.IDENTITY_HEADER: uid}


@pytest.fixture
def admin_headers() -> dict:
    return caller("uid-admin")


@pytest.fixture
def rosa_headers() -> dict:
    return caller("uid-rosa")
