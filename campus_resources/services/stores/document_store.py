"""
Collection-style document store used by the catalog.

Records are schemaless dicts addressed by (collection, document id). Sub
collections are plain collection paths such as `users/{uid}/downloads`.
`SqlDocumentStore` keeps them in a single SQLAlchemy table; subscriptions are
delivered in-process after every committed write.

Writes to one document are serialized per process, so read-modify-write
updates such as `Increment` never lose a concurrent change. `FOR UPDATE` row
locks add the same guarantee across processes on databases that support them.
"""

import asyncio
import inspect
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Protocol, Tuple, Union

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from campus_resources.cores.db import async_session
from campus_resources.models.stored_document import StoredDocument
from campus_resources.services.utils.time_utils import get_utcnow, to_millis

logger = logging.getLogger(__name__)

Record = dict
Snapshot = List[Tuple[str, Record]]
SnapshotCallback = Callable[[Snapshot], Union[None, Awaitable[None]]]


class _ServerTimestamp:
    def __repr__(self):
        return "SERVER_TIMESTAMP"


# Replaced by the store clock when the record is written
SERVER_TIMESTAMP = _ServerTimestamp()


@dataclass(frozen=True)
class Increment:
    amount: int = 1


class DocumentStoreError(RuntimeError):
    pass


class DocumentNotFoundError(DocumentStoreError, LookupError):
    pass


class DocumentStore(Protocol):
    async def list(self, collection: str, order_by: Optional[str] = None, descending: bool = False) -> Snapshot: ...

    async def get(self, collection: str, doc_id: str) -> Optional[Record]: ...

    async def query(self, collection: str, field: str, value: Any) -> Snapshot: ...

    async def add(self, collection: str, record: Record) -> str: ...

    async def set(self, collection: str, doc_id: str, record: Record) -> None: ...

    async def update(self, collection: str, doc_id: str, partial: Record) -> None: ...

    async def delete(self, collection: str, doc_id: str) -> None: ...

    async def subscribe(self, collection: str, callback: SnapshotCallback) -> Callable[[], None]: ...


def _resolve_sentinels(record: Record) -> Record:
    resolved = {}
    for key, value in record.items():
        if value is SERVER_TIMESTAMP:
            resolved[key] = get_utcnow().isoformat()
        elif isinstance(value, dict):
            resolved[key] = _resolve_sentinels(value)
        else:
            resolved[key] = value
    return resolved


def _apply_update(current: Record, partial: Record) -> Record:
    merged = dict(current)
    for key, value in _resolve_sentinels(
        {k: v for k, v in partial.items() if not isinstance(v, Increment)}
    ).items():
        merged[key] = value
    for key, value in partial.items():
        if isinstance(value, Increment):
            base = merged.get(key)
            if not isinstance(base, (int, float)) or isinstance(base, bool):
                base = 0
            merged[key] = base + value.amount
    return merged


def _order_value(value: Any):
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    millis = to_millis(value)
    if millis:
        return millis
    return str(value)


class SqlDocumentStore:
    def __init__(self, session_factory: Optional[async_sessionmaker] = None):
        self._session_factory = session_factory or async_session
        self._listeners: dict[str, List[SnapshotCallback]] = {}
        self._locks: dict[Tuple[str, str], asyncio.Lock] = {}

    def _lock(self, collection: str, doc_id: str) -> asyncio.Lock:
        return self._locks.setdefault((collection, doc_id), asyncio.Lock())

    async def _load_collection(self, session: AsyncSession, collection: str) -> List[StoredDocument]:
        result = await session.execute(
            select(StoredDocument)
            .where(StoredDocument.collection == collection)
            .order_by(StoredDocument.seq)
        )
        return list(result.scalars().all())

    async def _find(self, session: AsyncSession, collection: str, doc_id: str) -> Optional[StoredDocument]:
        result = await session.execute(
            select(StoredDocument).where(
                StoredDocument.collection == collection,
                StoredDocument.doc_id == doc_id,
            )
        )
        return result.scalar_one_or_none()

    async def list(self, collection: str, order_by: Optional[str] = None, descending: bool = False) -> Snapshot:
        try:
            async with self._session_factory() as session:
                rows = await self._load_collection(session, collection)
        except SQLAlchemyError as e:
            raise DocumentStoreError(f"Failed to list {collection}: {e}") from e

        snapshot = [(row.doc_id, dict(row.data or {})) for row in rows]
        if not order_by:
            return snapshot

        # Records lacking the order field go last in either direction
        present = [item for item in snapshot if item[1].get(order_by) is not None]
        missing = [item for item in snapshot if item[1].get(order_by) is None]
        try:
            present.sort(key=lambda item: _order_value(item[1][order_by]), reverse=descending)
        except TypeError:
            present.sort(key=lambda item: str(item[1][order_by]), reverse=descending)
        return present + missing

    async def get(self, collection: str, doc_id: str) -> Optional[Record]:
        try:
            async with self._session_factory() as session:
                row = await self._find(session, collection, doc_id)
        except SQLAlchemyError as e:
            raise DocumentStoreError(f"Failed to read {collection}/{doc_id}: {e}") from e
        return dict(row.data or {}) if row else None

    async def query(self, collection: str, field: str, value: Any) -> Snapshot:
        snapshot = await self.list(collection)
        return [(doc_id, data) for doc_id, data in snapshot if data.get(field) == value]

    async def add(self, collection: str, record: Record) -> str:
        doc_id = uuid.uuid4().hex
        await self.set(collection, doc_id, record)
        return doc_id

    async def set(self, collection: str, doc_id: str, record: Record) -> None:
        try:
            async with self._lock(collection, doc_id), self._session_factory() as session:
                row = await self._find(session, collection, doc_id)
                if row:
                    row.data = _resolve_sentinels(record)
                else:
                    session.add(StoredDocument(
                        collection=collection,
                        doc_id=doc_id,
                        data=_resolve_sentinels(record),
                    ))
                await session.commit()
        except SQLAlchemyError as e:
            raise DocumentStoreError(f"Failed to write {collection}/{doc_id}: {e}") from e
        await self._notify(collection)

    async def update(self, collection: str, doc_id: str, partial: Record) -> None:
        try:
            async with self._lock(collection, doc_id), self._session_factory() as session:
                result = await session.execute(
                    select(StoredDocument)
                    .where(StoredDocument.collection == collection, StoredDocument.doc_id == doc_id)
                    .with_for_update()
                )
                row = result.scalar_one_or_none()
                if not row:
                    raise DocumentNotFoundError(f"{collection}/{doc_id} does not exist")
                row.data = _apply_update(dict(row.data or {}), partial)
                await session.commit()
        except SQLAlchemyError as e:
            raise DocumentStoreError(f"Failed to update {collection}/{doc_id}: {e}") from e
        await self._notify(collection)

    async def delete(self, collection: str, doc_id: str) -> None:
        try:
            async with self._lock(collection, doc_id), self._session_factory() as session:
                row = await self._find(session, collection, doc_id)
                if not row:
                    raise DocumentNotFoundError(f"{collection}/{doc_id} does not exist")
                await session.delete(row)
                await session.commit()
        except SQLAlchemyError as e:
            raise DocumentStoreError(f"Failed to delete {collection}/{doc_id}: {e}") from e
        await self._notify(collection)

    async def subscribe(self, collection: str, callback: SnapshotCallback) -> Callable[[], None]:
        """
        Registers `callback` for every change of `collection` and delivers the
        current snapshot right away. Returns the unsubscribe function.
        """
        self._listeners.setdefault(collection, []).append(callback)

        def unsubscribe() -> None:
            callbacks = self._listeners.get(collection, [])
            if callback in callbacks:
                callbacks.remove(callback)

        await self._deliver(callback, await self.list(collection))
        return unsubscribe

    async def _notify(self, collection: str) -> None:
        callbacks = list(self._listeners.get(collection, []))
        if not callbacks:
            return
        try:
            snapshot = await self.list(collection)
        except DocumentStoreError as e:
            logger.warning(f"Snapshot refresh for {collection} failed: {e}")
            return
        for callback in callbacks:
            await self._deliver(callback, snapshot)

    @staticmethod
    async def _deliver(callback: SnapshotCallback, snapshot: Snapshot) -> None:
        try:
            result = callback(snapshot)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.warning(f"Snapshot listener {callback!r} failed: {e}")
