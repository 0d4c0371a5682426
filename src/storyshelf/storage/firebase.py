"""Firebase Storage backend.

The underlying google-cloud-storage client is blocking, so every call runs in
a worker thread.
"""

from __future__ import annotations

from typing import Any, Callable, TypeVar
from urllib.parse import quote
from uuid import uuid4

import anyio.to_thread
from firebase_admin import storage
from google.api_core.exceptions import GoogleAPIError, NotFound
from loguru import logger

from storyshelf.core.config import Config
from storyshelf.core.firebase import get_app
from storyshelf.exceptions import ConfigError, NotFoundError, StorageError
from storyshelf.storage import ObjectStore, register

T = TypeVar("T")

TOKEN_KEY = "firebaseStorageDownloadTokens"


@register
class FirebaseStorage(ObjectStore):
    backend_name = "firebase"

    def __init__(self, bucket: Any) -> None:
        self._bucket = bucket

    @classmethod
    def from_config(cls, config: Config) -> FirebaseStorage:
        app = get_app(config.store)
        try:
            return cls(storage.bucket(app=app))
        except ValueError as exc:
            raise ConfigError(f"No storage bucket configured: {exc}") from exc

    def _download_url(self, path: str, token: str) -> str:
        return (
            f"https://firebasestorage.googleapis.com/v0/b/{self._bucket.name}"
            f"/o/{quote(path, safe='')}?alt=media&token={token}"
        )

    async def _run(self, action: str, func: Callable[[], T]) -> T:
        try:
            return await anyio.to_thread.run_sync(func)
        except NotFound as exc:
            raise NotFoundError(f"{action}: object not found") from exc
        except GoogleAPIError as exc:
            raise StorageError(f"{action} failed: {exc}") from exc

    async def put(self, path: str, data: bytes, content_type: str) -> str:
        def _upload() -> str:
            token = str(uuid4())
            blob = self._bucket.blob(path)
            blob.metadata = {TOKEN_KEY: token}
            blob.upload_from_string(data, content_type=content_type)
            return self._download_url(path, token)

        url = await self._run(f"Upload {path}", _upload)
        logger.debug(f"Uploaded {len(data)} bytes to {path}")
        return url

    async def url(self, path: str) -> str:
        def _url() -> str:
            blob = self._bucket.get_blob(path)
            if blob is None:
                raise NotFoundError(f"Object not found: {path}")
            tokens = (blob.metadata or {}).get(TOKEN_KEY)
            if tokens:
                return self._download_url(path, tokens.split(",")[0])
            # Objects uploaded outside Firebase have no token yet.
            token = str(uuid4())
            blob.metadata = {**(blob.metadata or {}), TOKEN_KEY: token}
            blob.patch()
            return self._download_url(path, token)

        return await self._run(f"Resolve URL for {path}", _url)

    async def delete(self, path: str) -> None:
        await self._run(f"Delete {path}", lambda: self._bucket.blob(path).delete())
