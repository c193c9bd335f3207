"""
ARBOLEDA ADMIN - Audit Logging System

Append-only audit trail for privileged actions on the admin panel.

Writes are best-effort: a failing audit store is logged and swallowed,
never surfaced to the business action that triggered the record. When
the background drain is running, records go through a bounded queue so
callers do not wait on the store.
"""

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from arboleda_admin.api.db.store import DocumentStore
from arboleda_admin.exceptions import StoreError


logger = logging.getLogger(__name__)

ACCESS_DENIED = "ACCESS_DENIED"
ANONYMOUS_ACTOR = "anonymous"
UNKNOWN_RESOURCE = "unknown"


# ============================================================
# Audit Event Structure
# ============================================================


class AuditKind(str, Enum):
    """Category of an audit record."""

    SECURITY = "SECURITY"  # Denied access attempts
    ACTION = "ACTION"      # Successful mutations
    ERROR = "ERROR"        # Failures during execution


class AuditEvent(BaseModel):
    """Immutable audit record."""

    event_id: str = Field(default_factory=lambda: f"evt_{uuid4().hex[:16]}")
    timestamp: datetime
    actor: str
    action: str
    kind: AuditKind
    resource: Optional[str] = None
    details: str = ""
    changes: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(frozen=True)

    def to_document(self) -> Dict[str, Any]:
        """Convert to a JSON-ready mapping for storage."""
        return self.model_dump(mode="json")


def _sanitize_for_audit(data: Any) -> Any:
    """Redact sensitive fields and reduce values to JSON-safe types."""
    sensitive_fields = {
        "password", "password_hash", "secret", "token", "api_key",
        "id_token", "refresh_token", "private_key",
    }

    if isinstance(data, BaseModel):
        return _sanitize_for_audit(data.model_dump(mode="json"))
    if isinstance(data, dict):
        return {
            str(k): "[REDACTED]" if str(k).lower() in sensitive_fields else _sanitize_for_audit(v)
            for k, v in data.items()
        }
    if isinstance(data, (list, tuple, set, frozenset)):
        return [_sanitize_for_audit(item) for item in data]
    if isinstance(data, Enum):
        return data.value
    if data is None or isinstance(data, (str, int, float, bool)):
        return data
    if isinstance(data, datetime):
        return data.isoformat()
    if hasattr(data, "__dict__"):
        return _sanitize_for_audit(vars(data))
    return str(data)


# ============================================================
# Audit Writer
# ============================================================


class AuditLogWriter:
    """
    Central audit writer.

    All audit records flow through this class. ``record`` and its
    convenience wrappers never raise on store failures.

    Example:
        writer = AuditLogWriter(store)
        await writer.start()

        await writer.record_success("ana@arboleda.pe", "crear", "reserva", "r-1")

        await writer.stop()
    """

    def __init__(
        self,
        store: DocumentStore,
        collection: str = "auditoria",
        max_queue_size: int = 1000,
        retries: int = 2,
        retry_backoff: float = 0.2,
    ):
        self.store = store
        self.collection = collection
        self.max_queue_size = max_queue_size
        self.retries = retries
        self.retry_backoff = retry_backoff
        self._queue: Optional[asyncio.Queue] = None
        self._running = False
        self._worker_task: Optional[asyncio.Task] = None
        self._stats = {
            "events_recorded": 0,
            "events_written": 0,
            "events_failed": 0,
            "events_dropped": 0,
        }

    @property
    def running(self) -> bool:
        return self._running

    async def record(
        self,
        actor: str,
        action: str,
        kind: AuditKind,
        resource: Optional[str] = None,
        details: str = "",
        changes: Optional[Dict[str, Any]] = None,
    ) -> AuditEvent:
        """Append one audit record stamped with the current time."""
        event = AuditEvent(
            timestamp=datetime.now(timezone.utc),
            actor=actor or ANONYMOUS_ACTOR,
            action=action,
            kind=kind,
            resource=resource,
            details=details,
            changes=_sanitize_for_audit(changes) if changes is not None else None,
        )
        self._stats["events_recorded"] += 1

        logger.info("AUDIT", extra={"audit_event": event.to_document()})

        if self._running:
            try:
                self._queue.put_nowait(event)
            except asyncio.QueueFull:
                self._stats["events_dropped"] += 1
                logger.warning(
                    f"Audit queue full, dropping {event.action} by {event.actor} ({event.event_id})"
                )
        else:
            await self._write(event)

        return event

    async def record_denial(
        self,
        actor: str,
        attempted_action: str,
        resource: Optional[str] = None,
    ) -> AuditEvent:
        """Record an access attempt rejected for lack of permission."""
        return await self.record(
            actor=actor,
            action=ACCESS_DENIED,
            kind=AuditKind.SECURITY,
            resource=resource or UNKNOWN_RESOURCE,
            details=f"Denied attempt: {attempted_action}",
        )

    async def record_success(
        self,
        actor: str,
        verb: str,
        resource_type: str,
        resource_id: str = "",
        changes: Optional[Dict[str, Any]] = None,
    ) -> AuditEvent:
        """Record a completed mutation as ``<RESOURCE>_<VERB>``."""
        return await self.record(
            actor=actor,
            action=f"{resource_type.upper()}_{verb.upper()}",
            kind=AuditKind.ACTION,
            resource=f"{resource_type}:{resource_id}",
            details=f"{verb} on {resource_type}",
            changes=changes or {},
        )

    async def record_error(
        self,
        actor: str,
        resource_type: str,
        message: str,
        resource_id: Optional[str] = None,
    ) -> AuditEvent:
        """Record a failure raised while executing a guarded action."""
        resource = f"{resource_type}:{resource_id}" if resource_id else resource_type
        return await self.record(
            actor=actor,
            action=f"{resource_type.upper()}_ERROR",
            kind=AuditKind.ERROR,
            resource=resource,
            details=message,
        )

    async def _write(self, event: AuditEvent) -> bool:
        """Persist one event, retrying store errors with backoff."""
        for attempt in range(self.retries + 1):
            try:
                await self.store.add(self.collection, event.to_document())
                self._stats["events_written"] += 1
                return True
            except StoreError as e:
                if attempt < self.retries:
                    await asyncio.sleep(self.retry_backoff * (2 ** attempt))
                    continue
                logger.error(f"Audit write failed for {event.event_id} after {attempt + 1} attempts: {e}")
            except Exception as e:
                logger.error(f"Audit write failed for {event.event_id}: {e}")
            break

        self._stats["events_failed"] += 1
        return False

    # ==================== Background drain ====================

    async def start(self) -> None:
        """Start draining records through the background queue."""
        if self._running:
            return

        self._queue = asyncio.Queue(maxsize=self.max_queue_size)
        self._running = True
        self._worker_task = asyncio.create_task(self._worker())
        logger.info("Audit writer started")

    async def stop(self) -> None:
        """Write pending records, then stop the background worker."""
        if not self._running:
            return

        await self._queue.join()
        self._running = False

        if self._worker_task:
            self._worker_task.cancel()
            try:
                await self._worker_task
            except asyncio.CancelledError:
                pass
            self._worker_task = None

        logger.info("Audit writer stopped")

    async def flush(self) -> None:
        """Wait until every queued record has been handled."""
        if self._running:
            await self._queue.join()

    async def _worker(self) -> None:
        """Background worker persisting queued records."""
        while True:
            event = await self._queue.get()
            try:
                await self._write(event)
            finally:
                self._queue.task_done()

    def get_stats(self) -> Dict[str, Any]:
        """Get audit writer statistics."""
        return {
            **self._stats,
            "running": self._running,
            "queue_size": self._queue.qsize() if self._queue else 0,
        }


# ============================================================
# Audit Trail (read side)
# ============================================================


class AuditTrail:
    """Read access to stored audit records for admin views."""

    def __init__(self, store: DocumentStore, collection: str = "auditoria"):
        self.store = store
        self.collection = collection

    async def list_events(
        self,
        kind: Optional[AuditKind] = None,
        actor: Optional[str] = None,
        limit: int = 100,
    ) -> List[AuditEvent]:
        """Stored events, newest first, optionally filtered."""
        if kind is not None:
            docs = await self.store.query(self.collection, "kind", kind.value)
        else:
            docs = await self.store.list(self.collection)

        events = [AuditEvent.model_validate(doc.data) for doc in docs]
        if actor is not None:
            events = [e for e in events if e.actor == actor]

        # Reverse insertion order first so equal timestamps stay newest first
        events.reverse()
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]


__all__ = [
    "ACCESS_DENIED",
    "ANONYMOUS_ACTOR",
    "AuditKind",
    "AuditEvent",
    "AuditLogWriter",
    "AuditTrail",
]
