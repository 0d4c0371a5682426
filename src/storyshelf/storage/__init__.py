"""Object store backends for cover images."""

from __future__ import annotations

import importlib
import pkgutil
from abc import ABC, abstractmethod
from typing import ClassVar

from storyshelf.core.config import Config
from storyshelf.exceptions import ConfigError


class ObjectStore(ABC):
    """Binary blobs keyed by path, each with a public URL."""

    backend_name: ClassVar[str]

    @classmethod
    @abstractmethod
    def from_config(cls, config: Config) -> ObjectStore:
        """Build an object store from application config."""

    @abstractmethod
    async def put(self, path: str, data: bytes, content_type: str) -> str:
        """Upload an object and return its public URL."""

    @abstractmethod
    async def url(self, path: str) -> str:
        """Public URL of an existing object. Raises NotFoundError if absent."""

    @abstractmethod
    async def delete(self, path: str) -> None:
        """Delete an object. Raises NotFoundError if absent."""

    async def close(self) -> None:
        return None


_registry: dict[str, type[ObjectStore]] = {}


def register(cls: type[ObjectStore]) -> type[ObjectStore]:
    """Decorator to register an object store backend."""
    _registry[cls.backend_name] = cls
    return cls


def open_storage(config: Config) -> ObjectStore:
    backend = _registry.get(config.store.backend)
    if backend is None:
        raise ConfigError(f"Unknown storage backend: {config.store.backend}")
    return backend.from_config(config)


def _discover() -> None:
    package = importlib.import_module("storyshelf.storage")
    for info in pkgutil.iter_modules(package.__path__):
        if info.name.startswith("_"):
            continue
        importlib.import_module(f"storyshelf.storage.{info.name}")


_discover()
