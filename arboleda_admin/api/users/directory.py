"""
Admin User Directory

CRUD over administrative users, keyed by their external identity (uid).
Store failures surface to the caller as StoreError.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from arboleda_admin.api.db.store import DocumentStore, StoredDocument
from arboleda_admin.api.users.schemas import (
    AccessEntry,
    AdminUser,
    AdminUserCreate,
    AdminUserPatch,
    UserStatus,
)
from arboleda_admin.exceptions import ConflictError, NotFound

logger = logging.getLogger(__name__)


def _to_user(doc: StoredDocument) -> AdminUser:
    return AdminUser.model_validate({**doc.data, "id": doc.id})


class UserDirectory:
    """Directory of admin users stored in a document collection."""

    def __init__(
        self,
        store: DocumentStore,
        collection: str = "usuarios_admin",
        history_limit: int = 50,
    ):
        self.store = store
        self.collection = collection
        self.history_limit = history_limit

    async def _find(self, uid: str) -> Optional[StoredDocument]:
        docs = await self.store.query(self.collection, "uid", uid)
        return docs[0] if docs else None

    async def create(self, data: AdminUserCreate) -> str:
        """
        Create a new admin user.

        New users start active, with no overrides, no last access and
        an empty access history.

        Returns:
            Storage key of the new record

        Raises:
            ConflictError: If a user with the same uid exists
        """
        if await self._find(data.uid) is not None:
            raise ConflictError(data.uid)

        user = AdminUser(
            uid=data.uid,
            email=data.email,
            name=data.name,
            role=data.role,
            custom_permissions={},
            status=UserStatus.ACTIVE,
            created_at=datetime.now(timezone.utc),
            last_access=None,
            access_history=[],
        )
        doc_id = await self.store.add(
            self.collection, user.model_dump(mode="json", exclude={"id"})
        )
        logger.info(f"Admin user created: {data.uid} ({data.role})")
        return doc_id

    async def get_by_identity(self, uid: str) -> Optional[AdminUser]:
        """Get an admin user by uid, or None."""
        doc = await self._find(uid)
        return _to_user(doc) if doc else None

    async def list_all(self) -> List[AdminUser]:
        """All admin users in creation order."""
        return [_to_user(doc) for doc in await self.store.list(self.collection)]

    async def update(self, uid: str, data: AdminUserPatch) -> AdminUser:
        """
        Merge a partial update into a user and stamp last access.

        The merged record is validated before anything is written.

        Raises:
            NotFound: If no user matches the uid
            ValidationError: If the merged record is not a valid user
        """
        doc = await self._find(uid)
        if doc is None:
            raise NotFound(uid)

        changes = data.changes()
        changes["last_access"] = datetime.now(timezone.utc).isoformat()
        updated = _to_user(StoredDocument(id=doc.id, data={**doc.data, **changes}))
        await self.store.update(self.collection, doc.id, changes)
        return updated

    async def delete(self, uid: str) -> None:
        """
        Permanently remove a user.

        Raises:
            NotFound: If no user matches the uid
        """
        doc = await self._find(uid)
        if doc is None:
            raise NotFound(uid)

        await self.store.delete(self.collection, doc.id)
        logger.info(f"Admin user deleted: {uid}")

    async def record_access(self, uid: str) -> None:
        """
        Append a LOGIN entry to the user's access history.

        The history keeps the newest ``history_limit`` entries. Unknown
        users are ignored. The append runs as one atomic store mutation
        so concurrent logins do not overwrite each other.
        """
        doc = await self._find(uid)
        if doc is None:
            return

        entry = AccessEntry(kind="LOGIN").model_dump(mode="json")
        limit = self.history_limit

        def append(current: dict) -> dict:
            history = list(current.get("access_history") or [])
            history.append(entry)
            if len(history) > limit:
                history = history[-limit:]
            current["access_history"] = history
            current["last_access"] = entry["timestamp"]
            return current

        await self.store.mutate(self.collection, doc.id, append)
