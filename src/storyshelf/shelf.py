"""Facade bundling the stores and repositories behind one object."""

from __future__ import annotations

from typing import Any

from storyshelf.access.comments import CommentRepository
from storyshelf.access.covers import CoverRepository
from storyshelf.access.profiles import ProfileRepository
from storyshelf.access.ratings import RatingRepository
from storyshelf.access.stories import StoryRepository
from storyshelf.core.config import Config
from storyshelf.storage import ObjectStore, open_storage
from storyshelf.store import DocumentStore, open_store


class Shelf:
    """Entry point for the data-access layer.

    >>> async with Shelf.open() as shelf:
    ...     stories = await shelf.stories.get_stories()
    """

    def __init__(
        self,
        store: DocumentStore,
        objects: ObjectStore,
        config: Config | None = None,
    ) -> None:
        self.config = config or Config()
        self.store = store
        self.objects = objects
        self.comments = CommentRepository(store)
        self.ratings = RatingRepository(store)
        self.stories = StoryRepository(
            store, self.config.stories, comments=self.comments, ratings=self.ratings
        )
        self.profiles = ProfileRepository(store, self.stories)
        self.covers = CoverRepository(
            objects, self.config.covers, fallback_cover=self.config.stories.fallback_cover
        )

    @classmethod
    def open(cls, config: Config | None = None) -> Shelf:
        """Build a shelf on the backends named in config (loaded from disk if omitted)."""
        config = config or Config.load()
        return cls(open_store(config), open_storage(config), config)

    async def close(self) -> None:
        await self.store.close()
        await self.objects.close()

    async def __aenter__(self) -> Shelf:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
