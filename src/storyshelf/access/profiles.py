"""User profiles and the favorites / read-later lists stored on them."""

from __future__ import annotations

from typing import Any

from loguru import logger
from pydantic import ValidationError

from storyshelf.access.stories import StoryRepository
from storyshelf.core.models import Lookup, ProfileInput, ProfileUpdate, Story, UserProfile
from storyshelf.core.normalize import normalize_profile
from storyshelf.exceptions import NotFoundError, StoreError
from storyshelf.store import USERS, DocumentStore

FAVORITES = "favorites"
READ_LATER = "readLater"


class ProfileRepository:
    def __init__(self, store: DocumentStore, stories: StoryRepository) -> None:
        self.store = store
        self.stories = stories

    async def create_user_profile(self, user_id: str, profile: ProfileInput) -> None:
        data = profile.to_document(exclude_none=True)
        data[FAVORITES] = list(profile.favorites)
        data[READ_LATER] = list(profile.read_later)
        try:
            await self.store.set(USERS, user_id, data)
        except StoreError as exc:
            logger.error(f"Error creating profile for user {user_id}: {exc}")
            raise

    async def lookup_user_profile(self, user_id: str) -> Lookup[UserProfile]:
        try:
            snap = await self.store.get(USERS, user_id)
            if snap is None:
                return Lookup.missing()
            return Lookup.found(normalize_profile(snap.id, snap.data))
        except (StoreError, ValidationError) as exc:
            logger.error(f"Error getting profile for user {user_id}: {exc}")
            return Lookup.failed(exc)

    async def get_user_profile(self, user_id: str) -> UserProfile | None:
        return (await self.lookup_user_profile(user_id)).unwrap_or(None)

    async def update_user_profile(self, user_id: str, changes: ProfileUpdate) -> None:
        """Write only the profile fields set on ``changes``."""
        fields = changes.to_document(exclude_unset=True)
        if not fields:
            return
        try:
            await self.store.update(USERS, user_id, fields)
        except StoreError as exc:
            logger.error(f"Error updating profile for user {user_id}: {exc}")
            raise

    async def _toggle(self, user_id: str, story_id: str, field: str) -> bool:
        def _flip(current: dict[str, Any] | None) -> tuple[dict[str, Any], bool]:
            if current is None:
                raise NotFoundError("User profile not found")
            ids = list(current.get(field) or [])
            if story_id in ids:
                return {field: [i for i in ids if i != story_id]}, False
            return {field: [*ids, story_id]}, True

        try:
            added = await self.store.transact(USERS, user_id, _flip)
        except StoreError as exc:
            logger.error(f"Error toggling {field} for user {user_id}: {exc}")
            raise
        logger.debug(f"{'Added' if added else 'Removed'} story {story_id} in {field} of {user_id}")
        return added

    async def _contains(self, user_id: str, story_id: str, field: str) -> bool:
        profile = await self.get_user_profile(user_id)
        if profile is None:
            return False
        ids = profile.favorites if field == FAVORITES else profile.read_later
        return story_id in ids

    async def _resolve(self, user_id: str, field: str) -> list[Story]:
        profile = await self.get_user_profile(user_id)
        if profile is None:
            return []
        ids = profile.favorites if field == FAVORITES else profile.read_later
        if not ids:
            return []
        try:
            return await self.stories.get_stories_by_ids(ids)
        except StoreError as exc:
            logger.error(f"Error resolving {field} stories for user {user_id}: {exc}")
            return []

    async def toggle_favorite(self, user_id: str, story_id: str) -> bool:
        """Add or remove a favorite. Returns True if the story is now a favorite."""
        return await self._toggle(user_id, story_id, FAVORITES)

    async def toggle_read_later(self, user_id: str, story_id: str) -> bool:
        """Add or remove a read-later entry. Returns True if it is now on the list."""
        return await self._toggle(user_id, story_id, READ_LATER)

    async def is_story_favorited(self, user_id: str, story_id: str) -> bool:
        return await self._contains(user_id, story_id, FAVORITES)

    async def is_story_in_read_later(self, user_id: str, story_id: str) -> bool:
        return await self._contains(user_id, story_id, READ_LATER)

    async def get_favorite_stories(self, user_id: str) -> list[Story]:
        return await self._resolve(user_id, FAVORITES)

    async def get_read_later_stories(self, user_id: str) -> list[Story]:
        return await self._resolve(user_id, READ_LATER)
