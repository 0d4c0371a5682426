"""In-process object store for local development and tests."""

from __future__ import annotations

from storyshelf.core.config import Config
from storyshelf.exceptions import NotFoundError
from storyshelf.storage import ObjectStore, register


@register
class MemoryStorage(ObjectStore):
    backend_name = "memory"

    def __init__(self) -> None:
        self.objects: dict[str, tuple[bytes, str]] = {}

    @classmethod
    def from_config(cls, config: Config) -> MemoryStorage:
        return cls()

    async def put(self, path: str, data: bytes, content_type: str) -> str:
        self.objects[path] = (bytes(data), content_type)
        return f"memory://{path}"

    async def url(self, path: str) -> str:
        if path not in self.objects:
            raise NotFoundError(f"Object not found: {path}")
        return f"memory://{path}"

    async def delete(self, path: str) -> None:
        if self.objects.pop(path, None) is None:
            raise NotFoundError(f"Object not found: {path}")
