"""
Failure Mode Tests

Validates API behavior when the document store misbehaves:
1. Directory outages surface as a distinguishable 503
2. Audit outages never block business actions
3. Denials stay denials whatever the audit store does
"""

from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from arboleda_admin.exceptions import StoreError


@pytest.mark.asyncio
async def test_directory_outage_returns_503(async_client: AsyncClient, services, admin_headers):
    """Store failures while reading users should be a 503, not a 403."""
    services.store.query = AsyncMock(side_effect=StoreError("connection reset"))

    response = await async_client.get("/api/v1/users", headers=admin_headers)

    assert response.status_code == 503
    assert response.json()["code"] == "STORE_ERROR"


@pytest.mark.asyncio
async def test_audit_outage_does_not_block_create(async_client: AsyncClient, services, admin_headers):
    """A failing audit collection should not fail an allowed mutation."""
    real_add = services.store.add

    async def add(collection, data):
        if collection == "auditoria":
            raise StoreError("audit store down")
        return await real_add(collection, data)

    services.store.add = add

    response = await async_client.post(
        "/api/v1/users",
        json={"uid": "uid-nuevo", "role": "recepcionista"},
        headers=admin_headers,
    )

    assert response.status_code == 201
    assert await services.directory.get_by_identity("uid-nuevo") is not None
    assert services.audit.get_stats()["events_failed"] == 1


@pytest.mark.asyncio
async def test_audit_outage_keeps_denials(async_client: AsyncClient, services, rosa_headers):
    """A failing audit store should not turn a denial into a success."""
    services.store.add = AsyncMock(side_effect=StoreError("audit store down"))

    response = await async_client.delete("/api/v1/users/uid-admin", headers=rosa_headers)

    assert response.status_code == 403
    assert await services.directory.get_by_identity("uid-admin") is not None


@pytest.mark.asyncio
async def test_queued_audit_reaches_trail(async_client: AsyncClient, services, admin_headers):
    """With the background drain running, listing should include queued events."""
    await services.audit.start()
    try:
        await async_client.delete("/api/v1/users/uid-carlos", headers=admin_headers)

        response = await async_client.get("/api/v1/audit?kind=ACTION", headers=admin_headers)

        assert [e["action"] for e in response.json()] == ["USUARIO_ELIMINAR"]
    finally:
        await services.audit.stop()
