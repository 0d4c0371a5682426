"""Story reads with legacy normalization, and author-checked writes."""

from __future__ import annotations

from typing import Any, Sequence

from loguru import logger
from pydantic import ValidationError

from storyshelf.access import ensure_owner
from storyshelf.access.comments import CommentRepository
from storyshelf.access.ratings import RatingRepository
from storyshelf.core.chapters import resequence
from storyshelf.core.config import StoriesConfig
from storyshelf.core.models import Lookup, Story, StoryInput, StoryUpdate, UserStory
from storyshelf.core.normalize import normalize_story
from storyshelf.exceptions import NotFoundError, StoreError
from storyshelf.store import (
    COMMENTS,
    RATINGS,
    SERVER_TIMESTAMP,
    STORIES,
    DocumentSnapshot,
    DocumentStore,
    Filter,
)


class StoryRepository:
    def __init__(
        self,
        store: DocumentStore,
        config: StoriesConfig | None = None,
        comments: CommentRepository | None = None,
        ratings: RatingRepository | None = None,
    ) -> None:
        self.store = store
        self.config = config or StoriesConfig()
        self.comments = comments or CommentRepository(store)
        self.ratings = ratings or RatingRepository(store)

    def _normalize_all(self, snaps: Sequence[DocumentSnapshot]) -> list[Story]:
        stories = []
        for snap in snaps:
            try:
                stories.append(normalize_story(snap.id, snap.data, self.config.fallback_cover))
            except ValidationError as exc:
                logger.warning(f"Skipping malformed story {snap.id}: {exc}")
        return stories

    async def create_story(self, story: StoryInput) -> str:
        data: dict[str, Any] = story.to_document(exclude={"chapters"}, exclude_none=True)
        data["chapters"] = [ch.to_document() for ch in resequence(story.chapters)]
        data["coverImage"] = story.cover_image or self.config.new_story_cover
        data.setdefault("createdAt", SERVER_TIMESTAMP)
        data["updatedAt"] = data["createdAt"]
        try:
            story_id = await self.store.add(STORIES, data)
        except StoreError as exc:
            logger.error(f"Error adding story: {exc}")
            raise
        logger.info(f"Story {story_id} created by {story.author_id}")
        return story_id

    async def lookup_story(self, story_id: str) -> Lookup[Story]:
        try:
            snap = await self.store.get(STORIES, story_id)
            if snap is None:
                return Lookup.missing()
            return Lookup.found(normalize_story(snap.id, snap.data, self.config.fallback_cover))
        except (StoreError, ValidationError) as exc:
            logger.error(f"Error getting story {story_id}: {exc}")
            return Lookup.failed(exc)

    async def get_story(self, story_id: str) -> Story | None:
        """Fetch one story, or None when it is missing or unreadable."""
        return (await self.lookup_story(story_id)).unwrap_or(None)

    async def lookup_stories(self, limit: int | None = None) -> Lookup[list[Story]]:
        if limit is not None and limit < 1:
            return Lookup.found([])
        try:
            snaps = await self.store.query(
                STORIES,
                order_by="createdAt",
                descending=True,
                limit=self.config.default_limit if limit is None else limit,
            )
        except StoreError as exc:
            logger.error(f"Error getting stories: {exc}")
            return Lookup.failed(exc)
        return Lookup.found(self._normalize_all(snaps))

    async def get_stories(self, limit: int | None = None) -> list[Story]:
        """Newest stories first, up to ``limit``. Empty on error."""
        return (await self.lookup_stories(limit)).unwrap_or([])

    async def get_stories_by_ids(self, story_ids: Sequence[str]) -> list[Story]:
        """Resolve ids to stories in one round trip, keeping order.

        Ids that no longer resolve are dropped. Raises StoreError on failure.
        """
        snaps = await self.store.get_many(STORIES, story_ids)
        found = {snap.id for snap in snaps}
        for story_id in story_ids:
            if story_id not in found:
                logger.warning(f"Story {story_id} no longer exists")
        return self._normalize_all(snaps)

    async def update_story(self, story_id: str, changes: StoryUpdate, user_id: str) -> None:
        """Write only the fields set on ``changes``. Only the author may edit."""
        fields: dict[str, Any] = changes.to_document(exclude={"chapters"}, exclude_unset=True)
        if changes.chapters is not None:
            fields["chapters"] = [ch.to_document() for ch in resequence(changes.chapters)]
        fields["updatedAt"] = SERVER_TIMESTAMP

        def _edit(current: dict[str, Any] | None) -> tuple[dict[str, Any], None]:
            if current is None:
                raise NotFoundError(f"Story {story_id} not found")
            ensure_owner(current.get("authorId"), user_id, "story", story_id)
            return fields, None

        try:
            await self.store.transact(STORIES, story_id, _edit)
        except StoreError as exc:
            logger.error(f"Error updating story {story_id}: {exc}")
            raise
        logger.info(f"Story {story_id} updated by {user_id}")

    async def delete_story(self, story_id: str, user_id: str) -> None:
        """Delete a story the user owns, with its comments and ratings when cascading.

        Children go first, so a failed cascade leaves the story in place and
        the delete can be retried.
        """
        try:
            snap = await self.store.get(STORIES, story_id)
            if snap is None:
                raise NotFoundError(f"Story {story_id} not found")
            ensure_owner(snap.data.get("authorId"), user_id, "story", story_id)
            if self.config.cascade_delete:
                by_story = [Filter("storyId", "==", story_id)]
                comments = await self.store.delete_where(COMMENTS, by_story)
                ratings = await self.store.delete_where(RATINGS, by_story)
                logger.debug(
                    f"Removed {comments} comments and {ratings} ratings of story {story_id}"
                )
            await self.store.delete(STORIES, story_id)
        except StoreError as exc:
            logger.error(f"Error deleting story {story_id}: {exc}")
            raise
        logger.info(f"Story {story_id} deleted by {user_id}")

    async def get_user_stories(self, author_id: str) -> list[UserStory]:
        """Summaries of an author's stories with comment counts and average ratings."""
        try:
            snaps = await self.store.query(STORIES, [Filter("authorId", "==", author_id)])
        except StoreError as exc:
            logger.error(f"Error getting stories of user {author_id}: {exc}")
            return []

        summaries = []
        for snap in snaps:
            stats = await self.ratings.get_average_rating(snap.id)
            summaries.append(
                UserStory(
                    id=snap.id,
                    title=snap.data.get("title") or "",
                    image_url=snap.data.get("coverImage") or self.config.new_story_cover,
                    comment_count=await self.comments.get_comment_count(snap.id),
                    average_rating=stats.average,
                )
            )
        return summaries
