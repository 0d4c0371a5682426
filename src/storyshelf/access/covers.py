"""Cover image uploads and the cached default cover URL."""

from __future__ import annotations

import mimetypes
import time

from loguru import logger

from storyshelf.core.cache import default_cover_cache
from storyshelf.core.config import CoversConfig
from storyshelf.exceptions import NotFoundError, StorageError
from storyshelf.storage import ObjectStore


def cover_path(story_id: str, filename: str, timestamp_ms: int | None = None) -> str:
    """Object path for a story's uploaded cover: ``covers/{story}-{millis}.{ext}``."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    ext = filename.rsplit(".", 1)[-1]
    return f"covers/{story_id}-{timestamp_ms}.{ext}"


class CoverRepository:
    def __init__(
        self,
        objects: ObjectStore,
        config: CoversConfig | None = None,
        fallback_cover: str = "/placeholder.jpg",
    ) -> None:
        self.objects = objects
        self.config = config or CoversConfig()
        self.fallback_cover = fallback_cover

    async def get_default_cover_url(self) -> str:
        """Public URL of the placeholder cover, fetched once per process."""
        cached = default_cover_cache.get(self.config.cache_ttl)
        if cached is not None:
            return cached
        try:
            url = await self.objects.url(self.config.default_cover_path)
        except (StorageError, NotFoundError) as exc:
            logger.error(f"Error getting default cover URL: {exc}")
            raise
        default_cover_cache.put(url)
        return url

    def get_default_cover_url_sync(self) -> str:
        """Cached default cover URL, or the local fallback when not yet fetched."""
        return default_cover_cache.get(self.config.cache_ttl) or self.fallback_cover

    async def upload_file(self, path: str, data: bytes, content_type: str | None = None) -> str:
        content_type = content_type or mimetypes.guess_type(path)[0] or "application/octet-stream"
        try:
            url = await self.objects.put(path, data, content_type)
        except StorageError as exc:
            logger.error(f"Error uploading {path}: {exc}")
            raise
        logger.info(f"Uploaded {path}")
        return url

    async def upload_default_cover(self, data: bytes, content_type: str = "image/png") -> str:
        url = await self.upload_file(self.config.default_cover_path, data, content_type)
        default_cover_cache.put(url)
        return url

    async def upload_story_cover(
        self, story_id: str, data: bytes, filename: str, content_type: str | None = None
    ) -> str:
        return await self.upload_file(cover_path(story_id, filename), data, content_type)

    async def delete_file(self, path: str) -> None:
        try:
            await self.objects.delete(path)
        except (StorageError, NotFoundError) as exc:
            logger.error(f"Error deleting {path}: {exc}")
            raise
