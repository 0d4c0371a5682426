"""In-process document store for local development and tests."""

from __future__ import annotations

import asyncio
import copy
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Sequence
from uuid import uuid4

from storyshelf.core.config import Config
from storyshelf.exceptions import NotFoundError
from storyshelf.store import (
    SERVER_TIMESTAMP,
    DocumentSnapshot,
    DocumentStore,
    Filter,
    Mutator,
    R,
    register,
)


def _matches(data: dict[str, Any], f: Filter) -> bool:
    if f.field not in data:
        return False
    value = data[f.field]
    if f.op == "==":
        return value == f.value
    if f.op == "in":
        return value in f.value
    if f.op == "array_contains":
        return isinstance(value, list) and f.value in value
    raise ValueError(f"Unsupported filter operator: {f.op}")


def _sort_key(value: Any) -> tuple[int, Any]:
    # Mixed types order by type first, the way Firestore does.
    if value is None:
        return (0, 0)
    if isinstance(value, bool):
        return (1, value)
    if isinstance(value, (int, float)):
        return (2, value)
    if isinstance(value, datetime):
        return (3, value.timestamp())
    if isinstance(value, str):
        return (4, value)
    return (5, repr(value))


@register
class MemoryStore(DocumentStore):
    backend_name = "memory"

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: Config) -> MemoryStore:
        return cls()

    def _resolve(self, data: dict[str, Any]) -> dict[str, Any]:
        now = datetime.now(timezone.utc)
        return {
            key: now if value is SERVER_TIMESTAMP else copy.deepcopy(value)
            for key, value in data.items()
        }

    def _select(self, collection: str, filters: Sequence[Filter]) -> list[tuple[str, dict]]:
        return [
            (doc_id, data)
            for doc_id, data in self.collections[collection].items()
            if all(_matches(data, f) for f in filters)
        ]

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        doc_id = uuid4().hex[:20]
        self.collections[collection][doc_id] = self._resolve(data)
        return doc_id

    async def get(self, collection: str, doc_id: str) -> DocumentSnapshot | None:
        data = self.collections[collection].get(doc_id)
        if data is None:
            return None
        return DocumentSnapshot(id=doc_id, data=copy.deepcopy(data))

    async def get_many(self, collection: str, doc_ids: Sequence[str]) -> list[DocumentSnapshot]:
        docs = self.collections[collection]
        return [
            DocumentSnapshot(id=i, data=copy.deepcopy(docs[i])) for i in doc_ids if i in docs
        ]

    async def set(
        self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = False
    ) -> None:
        docs = self.collections[collection]
        if merge and doc_id in docs:
            docs[doc_id].update(self._resolve(data))
        else:
            docs[doc_id] = self._resolve(data)

    async def update(self, collection: str, doc_id: str, changes: dict[str, Any]) -> None:
        docs = self.collections[collection]
        if doc_id not in docs:
            raise NotFoundError(f"No document to update: {collection}/{doc_id}")
        docs[doc_id].update(self._resolve(changes))

    async def delete(self, collection: str, doc_id: str) -> None:
        self.collections[collection].pop(doc_id, None)

    async def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[DocumentSnapshot]:
        rows = self._select(collection, filters)
        if order_by is not None:
            rows = [row for row in rows if order_by in row[1]]
            rows.sort(key=lambda row: _sort_key(row[1][order_by]), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return [DocumentSnapshot(id=i, data=copy.deepcopy(data)) for i, data in rows]

    async def count(self, collection: str, filters: Sequence[Filter] = ()) -> int:
        return len(self._select(collection, filters))

    async def delete_where(self, collection: str, filters: Sequence[Filter]) -> int:
        rows = self._select(collection, filters)
        for doc_id, _ in rows:
            del self.collections[collection][doc_id]
        return len(rows)

    async def transact(self, collection: str, doc_id: str, fn: Mutator[R]) -> R:
        async with self._lock:
            docs = self.collections[collection]
            current = copy.deepcopy(docs[doc_id]) if doc_id in docs else None
            write, result = fn(current)
            if write is not None:
                if current is None:
                    docs[doc_id] = self._resolve(write)
                else:
                    docs[doc_id].update(self._resolve(write))
            return result
