"""Ratings: one per user per story, plus per-story aggregation."""

from __future__ import annotations

from typing import Any

from loguru import logger
from pydantic import ValidationError

from storyshelf.core.models import Lookup, Rating, RatingInput, RatingStats
from storyshelf.exceptions import StoreError
from storyshelf.store import RATINGS, SERVER_TIMESTAMP, DocumentSnapshot, DocumentStore, Filter


def rating_id(story_id: str, user_id: str) -> str:
    """Deterministic document id for a user's rating of a story."""
    return f"{story_id}:{user_id}"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class RatingRepository:
    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    async def _find(self, story_id: str, user_id: str) -> DocumentSnapshot | None:
        snap = await self.store.get(RATINGS, rating_id(story_id, user_id))
        if snap is not None:
            return snap
        # Ratings written before deterministic ids have generated ids.
        legacy = await self.store.query(
            RATINGS,
            [Filter("storyId", "==", story_id), Filter("userId", "==", user_id)],
            limit=1,
        )
        return legacy[0] if legacy else None

    async def set_rating(self, rating: RatingInput) -> None:
        """Create or replace the user's rating of a story."""
        try:
            existing = await self._find(rating.story_id, rating.user_id)
            doc_id = existing.id if existing else rating_id(rating.story_id, rating.user_id)

            def _upsert(current: dict[str, Any] | None) -> tuple[dict[str, Any], None]:
                if current is None:
                    return {
                        **rating.to_document(),
                        "createdAt": SERVER_TIMESTAMP,
                        "updatedAt": SERVER_TIMESTAMP,
                    }, None
                return {"value": rating.value, "updatedAt": SERVER_TIMESTAMP}, None

            await self.store.transact(RATINGS, doc_id, _upsert)
        except StoreError as exc:
            logger.error(f"Error setting rating for story {rating.story_id}: {exc}")
            raise
        logger.debug(f"User {rating.user_id} rated story {rating.story_id}: {rating.value}")

    async def lookup_rating(self, story_id: str, user_id: str) -> Lookup[Rating]:
        try:
            snap = await self._find(story_id, user_id)
            if snap is None:
                return Lookup.missing()
            return Lookup.found(Rating.model_validate({**snap.data, "id": snap.id}))
        except (StoreError, ValidationError) as exc:
            logger.error(f"Error getting rating for story {story_id}: {exc}")
            return Lookup.failed(exc)

    async def get_rating(self, story_id: str, user_id: str) -> Rating | None:
        return (await self.lookup_rating(story_id, user_id)).unwrap_or(None)

    async def lookup_average_rating(self, story_id: str) -> Lookup[RatingStats]:
        """Average over every rating document of the story.

        Documents with a non-numeric value still count toward the total but
        add nothing to the sum.
        """
        try:
            snaps = await self.store.query(RATINGS, [Filter("storyId", "==", story_id)])
        except StoreError as exc:
            logger.error(f"Error getting average rating for story {story_id}: {exc}")
            return Lookup.failed(exc)

        count = len(snaps)
        if count == 0:
            return Lookup.found(RatingStats(average=0, count=0))

        total = 0.0
        for snap in snaps:
            value = snap.data.get("value")
            if _is_number(value):
                total += value
            else:
                logger.warning(
                    f"Invalid rating value for story {story_id}, rating {snap.id}: {value!r}"
                )
        average = total / count
        logger.debug(f"Average rating for story {story_id}: {average} over {count}")
        return Lookup.found(RatingStats(average=average, count=count))

    async def get_average_rating(self, story_id: str) -> RatingStats:
        return (await self.lookup_average_rating(story_id)).unwrap_or(RatingStats())
