"""Async HTTP client for pulling cover images from remote URLs."""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger
from pydantic import BaseModel
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from storyshelf.core.config import FetchConfig
from storyshelf.exceptions import FetchError


class FetchedImage(BaseModel):
    url: str
    data: bytes
    content_type: str


class ImageFetcher:
    """Fetches image bytes with retries on transport failures."""

    def __init__(
        self,
        config: FetchConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or FetchConfig()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                http2=self._transport is None,
                follow_redirects=True,
                timeout=httpx.Timeout(self.config.timeout),
                headers={"User-Agent": self.config.user_agent},
                transport=self._transport,
            )
        return self._client

    async def _get_once(self, url: str) -> httpx.Response:
        try:
            response = await self._get_client().get(url)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as exc:
            raise FetchError(f"HTTP {exc.response.status_code} for {url}") from exc
        except httpx.RequestError as exc:
            raise FetchError(f"Request failed for {url}: {exc}") from exc

    async def fetch(self, url: str) -> FetchedImage:
        """Download an image. Raises FetchError if the response is not an image."""
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(FetchError),
            stop=stop_after_attempt(self.config.max_retries),
            wait=wait_exponential(multiplier=1, min=2, max=30),
            reraise=True,
        ):
            with attempt:
                response = await self._get_once(url)

        content_type = response.headers.get("content-type", "").split(";")[0].strip()
        if not content_type.startswith("image/"):
            raise FetchError(f"Not an image ({content_type or 'no content type'}): {url}")
        logger.debug(f"Fetched {len(response.content)} bytes from {url}")
        return FetchedImage(url=url, data=response.content, content_type=content_type)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> ImageFetcher:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
