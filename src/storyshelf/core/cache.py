"""Process-wide cache for the default cover URL."""

from __future__ import annotations

import time

from loguru import logger


class UrlCache:
    """Holds one resolved URL, optionally expiring after ``ttl`` seconds."""

    def __init__(self) -> None:
        self._url: str | None = None
        self._stored_at: float = 0.0

    def get(self, ttl: float | None = None) -> str | None:
        if self._url is None:
            return None
        if ttl is not None and time.monotonic() - self._stored_at >= ttl:
            logger.debug("Cached cover URL expired")
            self._url = None
            return None
        return self._url

    def put(self, url: str) -> None:
        self._url = url
        self._stored_at = time.monotonic()

    def clear(self) -> None:
        self._url = None


default_cover_cache = UrlCache()


def clear_default_cover_cache() -> None:
    """Forget the cached default cover URL so the next call re-fetches it."""
    default_cover_cache.clear()
