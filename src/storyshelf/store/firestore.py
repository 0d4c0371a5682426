"""Cloud Firestore backend using the firebase_admin async client."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Sequence

from firebase_admin import firestore_async
from google.api_core.exceptions import GoogleAPIError, NotFound
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter
from loguru import logger

from storyshelf.core.config import Config
from storyshelf.core.firebase import get_app
from storyshelf.exceptions import NotFoundError, StoreError
from storyshelf.store import (
    SERVER_TIMESTAMP,
    DocumentSnapshot,
    DocumentStore,
    Filter,
    Mutator,
    R,
    register,
)

_BATCH_LIMIT = 500


@contextmanager
def _translate(action: str) -> Iterator[None]:
    try:
        yield
    except NotFound as exc:
        raise NotFoundError(f"{action}: {exc.message}") from exc
    except GoogleAPIError as exc:
        raise StoreError(f"{action} failed: {exc}") from exc


def _encode(data: dict[str, Any]) -> dict[str, Any]:
    return {
        key: firestore.SERVER_TIMESTAMP if value is SERVER_TIMESTAMP else value
        for key, value in data.items()
    }


def _snapshot(snap: Any) -> DocumentSnapshot:
    return DocumentSnapshot(id=snap.id, data=snap.to_dict() or {})


@register
class FirestoreStore(DocumentStore):
    backend_name = "firebase"

    def __init__(self, client: firestore.AsyncClient) -> None:
        self._client = client

    @classmethod
    def from_config(cls, config: Config) -> FirestoreStore:
        app = get_app(config.store)
        return cls(firestore_async.client(app))

    def _query(
        self,
        collection: str,
        filters: Sequence[Filter],
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> Any:
        query: Any = self._client.collection(collection)
        for f in filters:
            query = query.where(filter=FieldFilter(f.field, f.op, f.value))
        if order_by is not None:
            direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            query = query.order_by(order_by, direction=direction)
        if limit is not None:
            query = query.limit(limit)
        return query

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        with _translate(f"Add to {collection}"):
            _, ref = await self._client.collection(collection).add(_encode(data))
        logger.debug(f"Added {collection}/{ref.id}")
        return ref.id

    async def get(self, collection: str, doc_id: str) -> DocumentSnapshot | None:
        with _translate(f"Get {collection}/{doc_id}"):
            snap = await self._client.collection(collection).document(doc_id).get()
        return _snapshot(snap) if snap.exists else None

    async def get_many(self, collection: str, doc_ids: Sequence[str]) -> list[DocumentSnapshot]:
        if not doc_ids:
            return []
        refs = [self._client.collection(collection).document(i) for i in dict.fromkeys(doc_ids)]
        found: dict[str, DocumentSnapshot] = {}
        with _translate(f"Get {len(refs)} from {collection}"):
            async for snap in self._client.get_all(refs):
                if snap.exists:
                    found[snap.id] = _snapshot(snap)
        return [found[i] for i in doc_ids if i in found]

    async def set(
        self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = False
    ) -> None:
        with _translate(f"Set {collection}/{doc_id}"):
            await self._client.collection(collection).document(doc_id).set(
                _encode(data), merge=merge
            )

    async def update(self, collection: str, doc_id: str, changes: dict[str, Any]) -> None:
        with _translate(f"Update {collection}/{doc_id}"):
            await self._client.collection(collection).document(doc_id).update(_encode(changes))

    async def delete(self, collection: str, doc_id: str) -> None:
        with _translate(f"Delete {collection}/{doc_id}"):
            await self._client.collection(collection).document(doc_id).delete()

    async def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[DocumentSnapshot]:
        query = self._query(collection, filters, order_by, descending, limit)
        with _translate(f"Query {collection}"):
            return [_snapshot(snap) async for snap in query.stream()]

    async def count(self, collection: str, filters: Sequence[Filter] = ()) -> int:
        aggregate = self._query(collection, filters).count(alias="total")
        with _translate(f"Count {collection}"):
            results = await aggregate.get()
        return int(results[0][0].value) if results else 0

    async def delete_where(self, collection: str, filters: Sequence[Filter]) -> int:
        query = self._query(collection, filters)
        deleted = 0
        with _translate(f"Delete from {collection}"):
            refs = [snap.reference async for snap in query.stream()]
            for start in range(0, len(refs), _BATCH_LIMIT):
                batch = self._client.batch()
                for ref in refs[start : start + _BATCH_LIMIT]:
                    batch.delete(ref)
                await batch.commit()
                deleted += len(refs[start : start + _BATCH_LIMIT])
        return deleted

    async def transact(self, collection: str, doc_id: str, fn: Mutator[R]) -> R:
        ref = self._client.collection(collection).document(doc_id)

        @firestore.async_transactional
        async def _run(transaction: Any) -> R:
            snap = await ref.get(transaction=transaction)
            current = snap.to_dict() if snap.exists else None
            write, result = fn(current)
            if write is not None:
                if current is None:
                    transaction.set(ref, _encode(write))
                else:
                    transaction.update(ref, _encode(write))
            return result

        with _translate(f"Transaction on {collection}/{doc_id}"):
            return await _run(self._client.transaction())
