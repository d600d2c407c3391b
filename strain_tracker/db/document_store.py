"""
Document store with real-time collection snapshots.

Writers call ``add_document`` / ``set_document`` / ``update_document`` /
``delete_document``; readers ``subscribe`` to a collection and receive the full
collection contents after every change. Snapshots are always complete:
listeners replace whatever they materialized from the previous one.

Two backends share the fan-out logic in ``DocumentStore``:

- ``MemoryDocumentStore``: process-local dicts, used by tests and demos.
- ``SqlDocumentStore``: one ``documents`` table through async SQLAlchemy.

Fan-out is in-process only, so a deployment must run a single worker.
"""
import copy
import uuid
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import async_sessionmaker

from strain_tracker.core.logging import logger
from strain_tracker.models.document import DocumentRecord


class _ServerTimestamp:
    """Placeholder resolved to the store's clock at write time."""

    def __repr__(self):
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


@dataclass(frozen=True)
class DocumentSnapshot:
    id: str
    data: Dict[str, Any]


@dataclass(frozen=True)
class CollectionSnapshot:
    collection: str
    documents: List[DocumentSnapshot] = field(default_factory=list)

    def __len__(self):
        return len(self.documents)


SnapshotListener = Callable[[CollectionSnapshot], None]
ErrorListener = Callable[[Exception], None]
Unsubscribe = Callable[[], None]


class _Subscription:
    def __init__(self, on_next: SnapshotListener, on_error: Optional[ErrorListener]):
        self.on_next = on_next
        self.on_error = on_error
        self.active = True


class DocumentStore(ABC):
    """
    Base class: resolves server timestamps and fans snapshots out to
    subscribers. Backends implement the six storage primitives.
    """

    def __init__(self):
        self._subscriptions: Dict[str, List[_Subscription]] = defaultdict(list)

    # Storage primitives

    @abstractmethod
    async def _insert(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def _write(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def _patch(self, collection: str, doc_id: str, data: Dict[str, Any]) -> bool:
        ...

    @abstractmethod
    async def _read(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]:
        ...

    @abstractmethod
    async def _remove(self, collection: str, doc_id: str) -> bool:
        ...

    @abstractmethod
    async def _list(self, collection: str) -> List[DocumentSnapshot]:
        ...

    # Public API

    async def add_document(self, collection: str, data: Dict[str, Any]) -> str:
        """Insert ``data`` under a new id and return the id."""
        doc_id = uuid.uuid4().hex
        await self._insert(collection, doc_id, self._resolve(data))
        logger.debug(
            "Document added",
            extra={"collection": collection, "doc_id": doc_id},
        )
        await self._publish(collection)
        return doc_id

    async def set_document(
        self,
        collection: str,
        doc_id: str,
        data: Dict[str, Any],
    ) -> None:
        """Create or replace a document. See ``update_document`` for merge-patches."""
        await self._write(collection, doc_id, self._resolve(data))
        await self._publish(collection)

    async def update_document(self, collection: str, doc_id: str, data: Dict[str, Any]) -> bool:
        """
        Merge ``data`` into an existing document. Never creates one: returns
        False (and publishes nothing) when the document does not exist.
        """
        updated = await self._patch(collection, doc_id, self._resolve(data))
        if updated:
            await self._publish(collection)
        return updated

    async def get_document(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]:
        return await self._read(collection, doc_id)

    async def delete_document(self, collection: str, doc_id: str) -> bool:
        """Delete a document; returns False if it did not exist."""
        removed = await self._remove(collection, doc_id)
        if removed:
            await self._publish(collection)
        return removed

    async def subscribe(
        self,
        collection: str,
        on_next: SnapshotListener,
        on_error: Optional[ErrorListener] = None,
    ) -> Unsubscribe:
        """
        Register for snapshots of ``collection``.

        The current contents are delivered before this returns. The returned
        callable removes the subscription; calling it twice is harmless.
        """
        subscription = _Subscription(on_next, on_error)
        self._subscriptions[collection].append(subscription)

        def unsubscribe() -> None:
            subscription.active = False
            listeners = self._subscriptions.get(collection)
            if listeners and subscription in listeners:
                listeners.remove(subscription)
                if not listeners:
                    del self._subscriptions[collection]

        await self._deliver(collection, [subscription])
        return unsubscribe

    def subscriber_count(self, collection: str) -> int:
        return len(self._subscriptions.get(collection, ()))

    async def close(self) -> None:
        self._subscriptions.clear()

    # Fan-out

    async def _publish(self, collection: str) -> None:
        subscriptions = list(self._subscriptions.get(collection, ()))
        if subscriptions:
            await self._deliver(collection, subscriptions)

    async def _deliver(self, collection: str, subscriptions: List[_Subscription]) -> None:
        try:
            documents = await self._list(collection)
        except Exception as e:
            logger.error(
                f"Failed to build snapshot: {str(e)}",
                extra={"collection": collection},
                exc_info=True,
            )
            for subscription in subscriptions:
                if subscription.active and subscription.on_error is not None:
                    subscription.on_error(e)
            return

        snapshot = CollectionSnapshot(collection=collection, documents=documents)
        for subscription in subscriptions:
            if not subscription.active:
                continue
            try:
                subscription.on_next(snapshot)
            except Exception as e:
                # One broken listener must not starve the others
                logger.error(
                    f"Snapshot listener failed: {str(e)}",
                    extra={"collection": collection},
                    exc_info=True,
                )

    @staticmethod
    def _resolve(data: Dict[str, Any]) -> Dict[str, Any]:
        now = datetime.now(timezone.utc)
        return {
            key: (now if value is SERVER_TIMESTAMP else value)
            for key, value in data.items()
        }


class MemoryDocumentStore(DocumentStore):
    """Dict-backed store. Documents are deep-copied in and out."""

    def __init__(self):
        super().__init__()
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = defaultdict(dict)
        self.write_count = 0

    async def _insert(self, collection, doc_id, data):
        self._collections[collection][doc_id] = copy.deepcopy(data)
        self.write_count += 1

    async def _write(self, collection, doc_id, data):
        self._collections[collection][doc_id] = copy.deepcopy(data)
        self.write_count += 1

    async def _patch(self, collection, doc_id, data):
        document = self._collections.get(collection, {}).get(doc_id)
        if document is None:
            return False
        document.update(copy.deepcopy(data))
        self.write_count += 1
        return True

    async def _read(self, collection, doc_id):
        data = self._collections.get(collection, {}).get(doc_id)
        if data is None:
            return None
        return DocumentSnapshot(id=doc_id, data=copy.deepcopy(data))

    async def _remove(self, collection, doc_id):
        documents = self._collections.get(collection)
        if not documents or doc_id not in documents:
            return False
        del documents[doc_id]
        self.write_count += 1
        return True

    async def _list(self, collection):
        return [
            DocumentSnapshot(id=doc_id, data=copy.deepcopy(data))
            for doc_id, data in self._collections.get(collection, {}).items()
        ]


def _to_json(value: Any) -> Any:
    """Make ``value`` JSON-column safe; datetimes become ISO-8601 strings."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: _to_json(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_json(item) for item in value]
    return value


class SqlDocumentStore(DocumentStore):
    """Store backed by the ``documents`` table."""

    def __init__(self, session_factory: async_sessionmaker):
        super().__init__()
        self._session_factory = session_factory

    @staticmethod
    def _path(collection: str, doc_id: str) -> str:
        return f"{collection}/{doc_id}"

    async def _insert(self, collection, doc_id, data):
        async with self._session_factory() as session:
            session.add(
                DocumentRecord(
                    path=self._path(collection, doc_id),
                    collection=collection,
                    doc_id=doc_id,
                    data=_to_json(data),
                )
            )
            await session.commit()

    async def _write(self, collection, doc_id, data):
        async with self._session_factory() as session:
            record = await session.get(DocumentRecord, self._path(collection, doc_id))
            payload = _to_json(data)
            if record is None:
                session.add(
                    DocumentRecord(
                        path=self._path(collection, doc_id),
                        collection=collection,
                        doc_id=doc_id,
                        data=payload,
                    )
                )
            else:
                record.data = payload
            await session.commit()

    async def _patch(self, collection, doc_id, data):
        async with self._session_factory() as session:
            record = await session.get(DocumentRecord, self._path(collection, doc_id))
            if record is None:
                return False
            # Reassign so the JSON column registers the change
            record.data = {**(record.data or {}), **_to_json(data)}
            await session.commit()
            return True

    async def _read(self, collection, doc_id):
        async with self._session_factory() as session:
            record = await session.get(DocumentRecord, self._path(collection, doc_id))
            if record is None:
                return None
            return DocumentSnapshot(id=record.doc_id, data=dict(record.data or {}))

    async def _remove(self, collection, doc_id):
        async with self._session_factory() as session:
            result = await session.execute(
                delete(DocumentRecord).where(
                    DocumentRecord.path == self._path(collection, doc_id)
                )
            )
            await session.commit()
            return result.rowcount > 0

    async def _list(self, collection):
        async with self._session_factory() as session:
            result = await session.execute(
                select(DocumentRecord)
                .where(DocumentRecord.collection == collection)
                .order_by(DocumentRecord.created_at)
            )
            return [
                DocumentSnapshot(id=record.doc_id, data=dict(record.data or {}))
                for record in result.scalars().all()
            ]
