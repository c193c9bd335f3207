"""
Tests for the Audit Log Writer
==============================

Covers record shapes, best-effort failure handling, the background
drain and the read-side trail.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from arboleda_admin.api.access.audit import (
    ACCESS_DENIED,
    AuditEvent,
    AuditKind,
    AuditLogWriter,
    AuditTrail,
)
from arboleda_admin.api.db.store import MemoryDocumentStore
from arboleda_admin.exceptions import StoreError


async def stored_events(store, collection="auditoria"):
    return [AuditEvent.model_validate(doc.data) for doc in await store.list(collection)]


class TestRecordShapes:
    """Tests for the convenience record helpers."""

    @pytest.mark.asyncio
    async def test_record_denial(self, audit, store):
        """Denials should be SECURITY events with ACCESS_DENIED."""
        await audit.record_denial("ana@arboleda.pe", "carta.crear", "plato")

        [event] = await stored_events(store)
        assert event.kind == AuditKind.SECURITY
        assert event.action == ACCESS_DENIED
        assert event.actor == "ana@arboleda.pe"
        assert event.resource == "plato"
        assert "carta.crear" in event.details

    @pytest.mark.asyncio
    async def test_record_denial_unknown_resource(self, audit, store):
        """Denials without a resource should be tagged unknown."""
        await audit.record_denial("ana@arboleda.pe", "carta.crear")
        [event] = await stored_events(store)
        assert event.resource == "unknown"

    @pytest.mark.asyncio
    async def test_record_success(self, audit, store):
        """Successes should compose <RESOURCE>_<VERB> and type:id."""
        changes = {"before": {"estado": "pendiente"}, "after": {"estado": "confirmada"}}
        await audit.record_success("ana@arboleda.pe", "cambiar_estado", "reserva", "r-42", changes)

        [event] = await stored_events(store)
        assert event.kind == AuditKind.ACTION
        assert event.action == "RESERVA_CAMBIAR_ESTADO"
        assert event.resource == "reserva:r-42"
        assert event.changes == changes
        assert event.details == "cambiar_estado on reserva"

    @pytest.mark.asyncio
    async def test_record_error(self, audit, store):
        """Errors should carry the failure message."""
        await audit.record_error("ana@arboleda.pe", "reserva", "Fecha ocupada", "r-1")

        [event] = await stored_events(store)
        assert event.kind == AuditKind.ERROR
        assert event.action == "RESERVA_ERROR"
        assert event.details == "Fecha ocupada"
        assert event.resource == "reserva:r-1"

    @pytest.mark.asyncio
    async def test_timestamp_is_assigned(self, audit):
        """The writer should stamp each event with an aware UTC time."""
        event = await audit.record("ana", "X", AuditKind.ACTION)
        assert event.timestamp.tzinfo is not None
        assert event.event_id.startswith("evt_")

    @pytest.mark.asyncio
    async def test_events_are_immutable(self, audit):
        """Audit events should reject mutation."""
        event = await audit.record("ana", "X", AuditKind.ACTION)
        with pytest.raises(Exception):
            event.actor = "otro"

    @pytest.mark.asyncio
    async def test_sensitive_changes_redacted(self, audit, store):
        """Change payloads should not persist secrets."""
        await audit.record_success("ana", "crear", "usuario", "u1", {"after": {"password": "x", "email": "e"}})
        [event] = await stored_events(store)
        assert event.changes["after"] == {"password": "[REDACTED]", "email": "e"}

    @pytest.mark.asyncio
    async def test_non_json_changes_are_reduced(self, audit, store):
        """Sets and arbitrary objects in payloads should not break the write."""
        await audit.record_success("ana", "crear", "usuario", "u1", {"tags": {"a"}, "obj": object()})
        [event] = await stored_events(store)
        assert event.changes["tags"] == ["a"]
        assert isinstance(event.changes["obj"], str)


class TestBestEffort:
    """Tests for swallowed audit failures."""

    @pytest.mark.asyncio
    async def test_store_failure_is_swallowed(self, store):
        """A failing store should not raise to the caller."""
        store.add = AsyncMock(side_effect=StoreError("firestore down"))
        writer = AuditLogWriter(store, retries=0)

        event = await writer.record_denial("ana", "carta.crear", "plato")

        assert event.action == ACCESS_DENIED
        assert writer.get_stats()["events_failed"] == 1

    @pytest.mark.asyncio
    async def test_unexpected_failure_is_swallowed(self, store):
        """Non-store exceptions should also be logged and swallowed."""
        store.add = AsyncMock(side_effect=RuntimeError("boom"))
        writer = AuditLogWriter(store, retries=3, retry_backoff=0)

        await writer.record_success("ana", "crear", "reserva", "r1")

        assert store.add.await_count == 1
        assert writer.get_stats()["events_failed"] == 1

    @pytest.mark.asyncio
    async def test_transient_failure_is_retried(self):
        """Store errors should be retried before giving up."""
        store = MemoryDocumentStore()
        real_add = store.add
        calls = []

        async def flaky_add(collection, data):
            calls.append(collection)
            if len(calls) == 1:
                raise StoreError("timeout")
            return await real_add(collection, data)

        store.add = flaky_add
        writer = AuditLogWriter(store, retries=2, retry_backoff=0)

        await writer.record_success("ana", "crear", "reserva", "r1")

        assert len(calls) == 2
        assert len(await stored_events(store)) == 1
        assert writer.get_stats()["events_written"] == 1

    @pytest.mark.asyncio
    async def test_retries_are_bounded(self, store):
        """Persistent store errors should stop after the configured retries."""
        store.add = AsyncMock(side_effect=StoreError("down"))
        writer = AuditLogWriter(store, retries=2, retry_backoff=0)

        await writer.record_success("ana", "crear", "reserva", "r1")

        assert store.add.await_count == 3


class TestBackgroundDrain:
    """Tests for the queued writer."""

    @pytest.mark.asyncio
    async def test_queued_events_are_written(self, store):
        """Events recorded while running should reach the store after flush."""
        writer = AuditLogWriter(store)
        await writer.start()

        for i in range(5):
            await writer.record_success("ana", "crear", "reserva", f"r{i}")
        await writer.flush()

        assert len(await stored_events(store)) == 5
        await writer.stop()
        assert not writer.running

    @pytest.mark.asyncio
    async def test_record_does_not_wait_for_store(self, store):
        """Recording should return while the store is still blocked."""
        gate = asyncio.Event()
        real_add = store.add

        async def slow_add(collection, data):
            await gate.wait()
            return await real_add(collection, data)

        store.add = slow_add
        writer = AuditLogWriter(store)
        await writer.start()

        await asyncio.wait_for(writer.record_success("ana", "crear", "reserva", "r1"), timeout=1)
        assert await store.list("auditoria") == []

        gate.set()
        await writer.stop()
        assert len(await stored_events(store)) == 1

    @pytest.mark.asyncio
    async def test_full_queue_drops_event(self, store):
        """A full queue should drop events instead of blocking."""
        gate = asyncio.Event()

        async def blocked_add(collection, data):
            await gate.wait()

        store.add = blocked_add
        writer = AuditLogWriter(store, max_queue_size=1)
        await writer.start()

        for i in range(4):
            await writer.record_success("ana", "crear", "reserva", f"r{i}")

        assert writer.get_stats()["events_dropped"] >= 1
        gate.set()
        await writer.stop()

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, store):
        """Starting twice should keep a single worker."""
        writer = AuditLogWriter(store)
        await writer.start()
        task = writer._worker_task
        await writer.start()
        assert writer._worker_task is task
        await writer.stop()


class TestAuditTrail:
    """Tests for reading audit records back."""

    @pytest.mark.asyncio
    async def test_newest_first_with_filters(self, audit, store):
        """Trail should list newest first and filter by kind and actor."""
        await audit.record_denial("ana", "carta.crear", "plato")
        await audit.record_success("luis", "crear", "reserva", "r1")
        await audit.record_success("ana", "modificar", "reserva", "r1")

        trail = AuditTrail(store)
        events = await trail.list_events()
        assert [e.action for e in events] == ["RESERVA_MODIFICAR", "RESERVA_CREAR", ACCESS_DENIED]

        actions = await trail.list_events(kind=AuditKind.ACTION)
        assert {e.kind for e in actions} == {AuditKind.ACTION}
        assert len(actions) == 2

        by_ana = await trail.list_events(actor="ana")
        assert len(by_ana) == 2

        assert len(await trail.list_events(limit=1)) == 1
