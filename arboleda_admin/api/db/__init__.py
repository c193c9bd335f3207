"""Database module."""

from arboleda_admin.api.db.session import get_session_maker, init_db, close_db
from arboleda_admin.api.db.models import Base, Document
from arboleda_admin.api.db.store import (
    DocumentStore,
    MemoryDocumentStore,
    SQLDocumentStore,
    StoredDocument,
)

__all__ = [
    "get_session_maker",
    "init_db",
    "close_db",
    "Base",
    "Document",
    "DocumentStore",
    "MemoryDocumentStore",
    "SQLDocumentStore",
    "StoredDocument",
]
