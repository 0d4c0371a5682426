"""Document store backends with a name-keyed registry."""

from __future__ import annotations

import importlib
import pkgutil
from abc import ABC, abstractmethod
from typing import Any, Callable, ClassVar, NamedTuple, Sequence, TypeVar

from pydantic import BaseModel, Field

from storyshelf.core.config import Config
from storyshelf.exceptions import ConfigError

R = TypeVar("R")

STORIES = "stories"
COMMENTS = "comments"
RATINGS = "ratings"
USERS = "users"


class _ServerTimestamp:
    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP: Any = _ServerTimestamp()
"""Placeholder value the backend replaces with its own clock at write time."""


class Filter(NamedTuple):
    field: str
    op: str  # "==", "in", "array_contains"
    value: Any


class DocumentSnapshot(BaseModel):
    id: str
    data: dict[str, Any] = Field(default_factory=dict)


# Receives the current document (None when absent) and returns the write to
# apply (None for no write) plus the value handed back to the caller.
Mutator = Callable[[dict[str, Any] | None], tuple[dict[str, Any] | None, R]]


class DocumentStore(ABC):
    """Async access to a schemaless collection/document database."""

    backend_name: ClassVar[str]

    @classmethod
    @abstractmethod
    def from_config(cls, config: Config) -> DocumentStore:
        """Build a store from application config."""

    @abstractmethod
    async def add(self, collection: str, data: dict[str, Any]) -> str:
        """Insert a document under a generated id and return the id."""

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> DocumentSnapshot | None:
        """Fetch one document, or None when it does not exist."""

    @abstractmethod
    async def get_many(self, collection: str, doc_ids: Sequence[str]) -> list[DocumentSnapshot]:
        """Fetch several documents in one round trip, keeping input order."""

    @abstractmethod
    async def set(
        self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = False
    ) -> None:
        """Create or overwrite a document at a known id."""

    @abstractmethod
    async def update(self, collection: str, doc_id: str, changes: dict[str, Any]) -> None:
        """Write only the given fields. Raises NotFoundError if absent."""

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document. Deleting an absent document is a no-op."""

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[DocumentSnapshot]:
        """Equality/ordering/limit query."""

    @abstractmethod
    async def count(self, collection: str, filters: Sequence[Filter] = ()) -> int:
        """Number of documents matching the filters."""

    @abstractmethod
    async def delete_where(self, collection: str, filters: Sequence[Filter]) -> int:
        """Delete every matching document and return how many were removed."""

    @abstractmethod
    async def transact(self, collection: str, doc_id: str, fn: Mutator[R]) -> R:
        """Atomically read one document, apply ``fn``, and write its result.

        A write against a missing document creates it; against an existing
        one it updates only the returned fields.
        """

    async def close(self) -> None:
        return None


# Global registry
_registry: dict[str, type[DocumentStore]] = {}


def register(cls: type[DocumentStore]) -> type[DocumentStore]:
    """Decorator to register a store backend."""
    _registry[cls.backend_name] = cls
    return cls


def open_store(config: Config) -> DocumentStore:
    """Return an instantiated store for the configured backend."""
    backend = _registry.get(config.store.backend)
    if backend is None:
        raise ConfigError(f"Unknown store backend: {config.store.backend}")
    return backend.from_config(config)


def _discover() -> None:
    """Import all backend modules to trigger @register decorators."""
    package = importlib.import_module("storyshelf.store")
    for info in pkgutil.iter_modules(package.__path__):
        if info.name.startswith("_"):
            continue
        importlib.import_module(f"storyshelf.store.{info.name}")


_discover()
