"""Story access against the in-memory store."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from storyshelf.core.models import (
    Chapter,
    CommentInput,
    LookupStatus,
    RatingInput,
    StoryInput,
    StoryUpdate,
)
from storyshelf.exceptions import NotFoundError, PermissionDeniedError, StoreError
from storyshelf.store import COMMENTS, RATINGS, STORIES

pytestmark = pytest.mark.anyio


def _input(**overrides):
    data = {"title": "New Story", "description": "A new story", "author_id": "author4", "author_name": "Author Four"}
    data.update(overrides)
    return StoryInput(**data)


class TestCreateStory:
    async def test_defaults_chapters_and_cover(self, shelf, store):
        story_id = await shelf.stories.create_story(_input())

        raw = store.collections[STORIES][story_id]
        assert raw["chapters"] == []
        assert raw["coverImage"] == "/assets/cover.png"
        assert raw["status"] == "draft"
        assert isinstance(raw["createdAt"], datetime)
        assert raw["updatedAt"] == raw["createdAt"]

    async def test_keeps_given_chapters_and_cover(self, shelf, store):
        chapters = [Chapter(id="c1", title="Intro", content="Hello", order=1)]
        story_id = await shelf.stories.create_story(_input(chapters=chapters, cover_image="covers/x.png"))

        raw = store.collections[STORIES][story_id]
        assert raw["chapters"] == [{"id": "c1", "title": "Intro", "content": "Hello", "order": 1}]
        assert raw["coverImage"] == "covers/x.png"

    async def test_store_failure_propagates(self, shelf, store):
        store.add = AsyncMock(side_effect=StoreError("unavailable"))
        with pytest.raises(StoreError):
            await shelf.stories.create_story(_input())


class TestGetStory:
    async def test_round_trip(self, shelf):
        story_id = await shelf.stories.create_story(_input(genres=["Sci-Fi"]))
        story = await shelf.stories.get_story(story_id)

        assert story.id == story_id
        assert story.title == "New Story"
        assert story.genres == ["Sci-Fi"]
        assert story.tags == []

    async def test_legacy_document(self, shelf, seed_story):
        seed_story("story2", title="Old Story", content="Old content", genre="History", status="draft")
        story = await shelf.stories.get_story("story2")

        assert len(story.chapters) == 1
        assert story.chapters[0].id == "default"
        assert story.chapters[0].content == "Old content"
        assert story.genres == ["History"]

    async def test_missing_is_none(self, shelf):
        assert await shelf.stories.get_story("nonexistentstory") is None
        assert (await shelf.stories.lookup_story("nonexistentstory")).status == LookupStatus.MISSING

    async def test_failure_is_none_but_lookup_says_failed(self, shelf, store):
        store.get = AsyncMock(side_effect=StoreError("boom"))

        assert await shelf.stories.get_story("story1") is None
        lookup = await shelf.stories.lookup_story("story1")
        assert lookup.status == LookupStatus.FAILED
        assert "boom" in lookup.error


class TestGetStories:
    async def test_newest_first_with_limit(self, shelf, seed_story):
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for i in range(5):
            seed_story(f"s{i}", title=f"Story {i}", createdAt=base + timedelta(days=i))

        stories = await shelf.stories.get_stories(limit=3)
        assert [s.id for s in stories] == ["s4", "s3", "s2"]

    async def test_each_document_normalized(self, shelf, seed_story):
        seed_story("a", createdAt="2023-01-01T00:00:00Z", content="text", genre="Drama")
        seed_story("b", createdAt="2023-01-02T00:00:00Z")

        stories = {s.id: s for s in await shelf.stories.get_stories()}
        assert stories["a"].chapters[0].title == "Chapter 1"
        assert stories["a"].genres == ["Drama"]
        assert stories["b"].chapters == []

    async def test_zero_limit_gives_no_stories(self, shelf, seed_story):
        seed_story("a", createdAt="2023-01-01T00:00:00Z")
        assert await shelf.stories.get_stories(limit=0) == []

    async def test_malformed_chapter_does_not_hide_story(self, shelf, seed_story):
        seed_story("s1", createdAt="2023-01-01T00:00:00Z", chapters=[{"title": "One", "content": "x", "order": 1}])
        seed_story("s2", createdAt="2023-01-02T00:00:00Z", chapters=[{"id": "c", "content": None, "order": 1}])

        assert (await shelf.stories.get_story("s1")).chapters[0].content == "x"
        assert (await shelf.stories.lookup_story("s2")).status == LookupStatus.FOUND
        assert [s.id for s in await shelf.stories.get_stories()] == ["s2", "s1"]

    async def test_failure_gives_empty_list(self, shelf, store):
        store.query = AsyncMock(side_effect=StoreError("boom"))
        assert await shelf.stories.get_stories() == []
        assert not (await shelf.stories.lookup_stories()).ok


class TestUpdateStory:
    async def test_partial_update(self, shelf, store):
        story_id = await shelf.stories.create_story(_input(tags=["keep"]))
        await shelf.stories.update_story(
            story_id, StoryUpdate(title="Only Title Updated"), user_id="author4"
        )

        raw = store.collections[STORIES][story_id]
        assert raw["title"] == "Only Title Updated"
        assert raw["description"] == "A new story"
        assert raw["tags"] == ["keep"]

    async def test_chapters_replaced_and_resequenced(self, shelf):
        story_id = await shelf.stories.create_story(_input())
        chapters = [Chapter(id="x", title="One", order=4), Chapter(id="y", title="Two", order=9)]
        await shelf.stories.update_story(story_id, StoryUpdate(chapters=chapters), user_id="author4")

        story = await shelf.stories.get_story(story_id)
        assert [(ch.id, ch.order) for ch in story.chapters] == [("x", 1), ("y", 2)]

    async def test_non_author_cannot_edit(self, shelf, store):
        story_id = await shelf.stories.create_story(_input())
        before = dict(store.collections[STORIES][story_id])

        with pytest.raises(PermissionDeniedError):
            await shelf.stories.update_story(story_id, StoryUpdate(title="Hijacked"), user_id="intruder")
        assert store.collections[STORIES][story_id] == before

    async def test_missing_story(self, shelf, store):
        with pytest.raises(NotFoundError):
            await shelf.stories.update_story("nope", StoryUpdate(title="x"), user_id="author4")
        assert "nope" not in store.collections[STORIES]


class TestDeleteStory:
    async def test_cascades_to_comments_and_ratings(self, shelf, store):
        story_id = await shelf.stories.create_story(_input())
        other_id = await shelf.stories.create_story(_input())
        for sid in (story_id, other_id):
            await shelf.comments.create_comment(
                CommentInput(story_id=sid, user_id="u1", user_name="U", text="hi")
            )
            await shelf.ratings.set_rating(RatingInput(story_id=sid, user_id="u1", value=4))

        await shelf.stories.delete_story(story_id, user_id="author4")

        assert story_id not in store.collections[STORIES]
        assert [c["storyId"] for c in store.collections[COMMENTS].values()] == [other_id]
        assert [r["storyId"] for r in store.collections[RATINGS].values()] == [other_id]

    async def test_without_cascade_leaves_children(self, shelf, store):
        shelf.stories.config.cascade_delete = False
        story_id = await shelf.stories.create_story(_input())
        await shelf.comments.create_comment(
            CommentInput(story_id=story_id, user_id="u1", user_name="U", text="hi")
        )

        await shelf.stories.delete_story(story_id, user_id="author4")
        assert len(store.collections[COMMENTS]) == 1

    async def test_failed_cascade_keeps_story(self, shelf, store):
        story_id = await shelf.stories.create_story(_input())
        store.delete_where = AsyncMock(side_effect=StoreError("offline"))

        with pytest.raises(StoreError):
            await shelf.stories.delete_story(story_id, user_id="author4")
        assert story_id in store.collections[STORIES]

    async def test_non_author_cannot_delete(self, shelf, store):
        story_id = await shelf.stories.create_story(_input())
        with pytest.raises(PermissionDeniedError):
            await shelf.stories.delete_story(story_id, user_id="intruder")
        assert story_id in store.collections[STORIES]

    async def test_missing_story(self, shelf):
        with pytest.raises(NotFoundError):
            await shelf.stories.delete_story("nope", user_id="author4")


class TestUserStories:
    async def test_summaries(self, shelf):
        mine = await shelf.stories.create_story(_input(title="Mine"))
        await shelf.stories.create_story(_input(title="Theirs", author_id="someone-else"))
        await shelf.comments.create_comment(
            CommentInput(story_id=mine, user_id="u1", user_name="U", text="one")
        )
        await shelf.comments.create_comment(
            CommentInput(story_id=mine, user_id="u2", user_name="V", text="two")
        )
        await shelf.ratings.set_rating(RatingInput(story_id=mine, user_id="u1", value=3))
        await shelf.ratings.set_rating(RatingInput(story_id=mine, user_id="u2", value=5))

        summaries = await shelf.stories.get_user_stories("author4")

        assert len(summaries) == 1
        summary = summaries[0]
        assert summary.title == "Mine"
        assert summary.image_url == "/assets/cover.png"
        assert summary.comment_count == 2
        assert summary.average_rating == 4
