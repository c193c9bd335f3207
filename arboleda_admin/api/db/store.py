"""
Document Store

Generic collection/document persistence reached through read, query,
write and delete operations. Records are schemaless JSON mappings keyed
by an opaque id.
"""

import asyncio
import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from arboleda_admin.api.db.models import Document, new_document_id
from arboleda_admin.exceptions import StoreError

logger = logging.getLogger(__name__)

DocumentData = Dict[str, Any]
Mutation = Callable[[DocumentData], DocumentData]


@dataclass
class StoredDocument:
    """A document together with its storage key."""

    id: str
    data: DocumentData


class DocumentStore(ABC):
    """Async document store contract."""

    @abstractmethod
    async def add(self, collection: str, data: DocumentData) -> str:
        """Insert a document and return its new key."""

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[StoredDocument]:
        """Fetch one document by key."""

    @abstractmethod
    async def query(self, collection: str, field: str, value: Any) -> List[StoredDocument]:
        """Documents whose top-level ``field`` equals ``value``, in insertion order."""

    @abstractmethod
    async def list(self, collection: str) -> List[StoredDocument]:
        """All documents of a collection, in insertion order."""

    @abstractmethod
    async def update(self, collection: str, doc_id: str, data: DocumentData) -> None:
        """Merge ``data`` into an existing document."""

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        """Remove a document permanently."""

    @abstractmethod
    async def mutate(
        self, collection: str, doc_id: str, fn: Mutation
    ) -> Optional[DocumentData]:
        """
        Atomically replace a document with ``fn(current)``.

        Returns the new data, or None if the document does not exist.
        """


# ============================================================
# SQLAlchemy implementation
# ============================================================


def _field_equals(field: str, value: Any):
    """Build a JSON path equality clause for ``data[field] == value``."""
    column = Document.data[field]
    if isinstance(value, bool):
        return column.as_boolean() == value
    if isinstance(value, int):
        return column.as_integer() == value
    if isinstance(value, float):
        return column.as_float() == value
    return column.as_string() == str(value)


class SQLDocumentStore(DocumentStore):
    """Document store over a single SQL ``documents`` table."""

    def __init__(self, session_maker: async_sessionmaker):
        self._session_maker = session_maker

    async def add(self, collection: str, data: DocumentData) -> str:
        doc_id = new_document_id()
        try:
            async with self._session_maker() as session:
                async with session.begin():
                    session.add(Document(collection=collection, id=doc_id, data=data))
        except SQLAlchemyError as e:
            raise StoreError(f"Insert into {collection} failed: {e}", operation="add") from e
        return doc_id

    async def get(self, collection: str, doc_id: str) -> Optional[StoredDocument]:
        try:
            async with self._session_maker() as session:
                doc = await session.get(Document, (collection, doc_id))
        except SQLAlchemyError as e:
            raise StoreError(f"Read from {collection} failed: {e}", operation="get") from e
        if doc is None:
            return None
        return StoredDocument(id=doc.id, data=dict(doc.data))

    async def query(self, collection: str, field: str, value: Any) -> List[StoredDocument]:
        stmt = (
            select(Document)
            .where(Document.collection == collection, _field_equals(field, value))
            .order_by(Document.created_at)
        )
        return await self._select(stmt, collection, "query")

    async def list(self, collection: str) -> List[StoredDocument]:
        stmt = (
            select(Document)
            .where(Document.collection == collection)
            .order_by(Document.created_at)
        )
        return await self._select(stmt, collection, "list")

    async def _select(self, stmt, collection: str, operation: str) -> List[StoredDocument]:
        try:
            async with self._session_maker() as session:
                result = await session.execute(stmt)
                docs = result.scalars().all()
        except SQLAlchemyError as e:
            raise StoreError(
                f"{operation.capitalize()} on {collection} failed: {e}", operation=operation
            ) from e
        return [StoredDocument(id=doc.id, data=dict(doc.data)) for doc in docs]

    async def update(self, collection: str, doc_id: str, data: DocumentData) -> None:
        updated = await self.mutate(collection, doc_id, lambda current: {**current, **data})
        if updated is None:
            raise StoreError(f"Document {collection}/{doc_id} does not exist", operation="update")

    async def delete(self, collection: str, doc_id: str) -> None:
        try:
            async with self._session_maker() as session:
                async with session.begin():
                    doc = await session.get(Document, (collection, doc_id))
                    if doc is None:
                        raise StoreError(
                            f"Document {collection}/{doc_id} does not exist",
                            operation="delete",
                        )
                    await session.delete(doc)
        except SQLAlchemyError as e:
            raise StoreError(f"Delete from {collection} failed: {e}", operation="delete") from e

    async def mutate(
        self, collection: str, doc_id: str, fn: Mutation
    ) -> Optional[DocumentData]:
        stmt = (
            select(Document)
            .where(Document.collection == collection, Document.id == doc_id)
            .with_for_update()
        )
        try:
            async with self._session_maker() as session:
                async with session.begin():
                    result = await session.execute(stmt)
                    doc = result.scalar_one_or_none()
                    if doc is None:
                        return None
                    # Assign a fresh mapping so the JSON column is flagged dirty
                    doc.data = fn(copy.deepcopy(doc.data))
                    return dict(doc.data)
        except SQLAlchemyError as e:
            raise StoreError(f"Update on {collection} failed: {e}", operation="mutate") from e


# ============================================================
# In-memory implementation
# ============================================================


class MemoryDocumentStore(DocumentStore):
    """Process-local document store. Documents are deep-copied in and out."""

    def __init__(self):
        self._collections: Dict[str, Dict[str, DocumentData]] = {}
        self._lock = asyncio.Lock()

    def _collection(self, collection: str) -> Dict[str, DocumentData]:
        return self._collections.setdefault(collection, {})

    async def add(self, collection: str, data: DocumentData) -> str:
        doc_id = new_document_id()
        async with self._lock:
            self._collection(collection)[doc_id] = copy.deepcopy(data)
        return doc_id

    async def get(self, collection: str, doc_id: str) -> Optional[StoredDocument]:
        data = self._collection(collection).get(doc_id)
        if data is None:
            return None
        return StoredDocument(id=doc_id, data=copy.deepcopy(data))

    async def query(self, collection: str, field: str, value: Any) -> List[StoredDocument]:
        return [doc for doc in await self.list(collection) if doc.data.get(field) == value]

    async def list(self, collection: str) -> List[StoredDocument]:
        return [
            StoredDocument(id=doc_id, data=copy.deepcopy(data))
            for doc_id, data in self._collection(collection).items()
        ]

    async def update(self, collection: str, doc_id: str, data: DocumentData) -> None:
        updated = await self.mutate(collection, doc_id, lambda current: {**current, **data})
        if updated is None:
            raise StoreError(f"Document {collection}/{doc_id} does not exist", operation="update")

    async def delete(self, collection: str, doc_id: str) -> None:
        async with self._lock:
            if self._collection(collection).pop(doc_id, None) is None:
                raise StoreError(
                    f"Document {collection}/{doc_id} does not exist", operation="delete"
                )

    async def mutate(
        self, collection: str, doc_id: str, fn: Mutation
    ) -> Optional[DocumentData]:
        async with self._lock:
            docs = self._collection(collection)
            if doc_id not in docs:
                return None
            docs[doc_id] = copy.deepcopy(fn(copy.deepcopy(docs[doc_id])))
            return copy.deepcopy(docs[doc_id])


__all__ = [
    "DocumentData",
    "StoredDocument",
    "DocumentStore",
    "SQLDocumentStore",
    "MemoryDocumentStore",
]
