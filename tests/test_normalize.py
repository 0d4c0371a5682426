"""
Legacy Shape Normalization Tests
================================

Older story documents store a single ``content`` string and a singular
``genre``. Reads must always hand back ``chapters`` and ``genres`` lists.
"""

from datetime import datetime, timezone

from storyshelf.core.normalize import normalize_profile, normalize_story

FALLBACK = "/placeholder.jpg"


class TestChapterNormalization:
    def test_chapters_kept_when_present(self):
        chapters = [{"id": "chap1", "title": "Chapter 1", "content": "Content 1", "order": 1}]
        story = normalize_story("story1", {"title": "T", "chapters": chapters}, FALLBACK)

        assert [ch.to_document() for ch in story.chapters] == chapters

    def test_legacy_content_becomes_single_default_chapter(self):
        story = normalize_story("story2", {"title": "Old", "content": "Old content"}, FALLBACK)

        assert [ch.to_document() for ch in story.chapters] == [
            {"id": "default", "title": "Chapter 1", "content": "Old content", "order": 1}
        ]
        assert "content" not in story.model_dump()
        assert not hasattr(story, "content")

    def test_no_chapters_and_no_content_gives_empty_list(self):
        story = normalize_story("story3", {"title": "Empty"}, FALLBACK)
        assert story.chapters == []

    def test_chapters_sorted_and_resequenced(self):
        data = {
            "chapters": [
                {"id": "b", "title": "Second", "content": "", "order": 5},
                {"id": "a", "title": "First", "content": "", "order": 2},
            ]
        }
        story = normalize_story("s", data, FALLBACK)

        assert [(ch.id, ch.order) for ch in story.chapters] == [("a", 1), ("b", 2)]


class TestGenreAndTagNormalization:
    def test_legacy_genre_becomes_list(self):
        story = normalize_story("s", {"genre": "Fiction"}, FALLBACK)
        assert story.genres == ["Fiction"]

    def test_genres_list_wins_over_legacy_genre(self):
        story = normalize_story("s", {"genre": "Fiction", "genres": ["Fantasy", "Drama"]}, FALLBACK)
        assert story.genres == ["Fantasy", "Drama"]

    def test_missing_everything_gives_empty_lists(self):
        story = normalize_story("s", {"title": "Bare"}, FALLBACK)

        assert story.chapters == []
        assert story.genres == []
        assert story.tags == []

    def test_non_list_tags_default_to_empty(self):
        story = normalize_story("s", {"tags": "not-a-list"}, FALLBACK)
        assert story.tags == []


class TestStoryDefaults:
    def test_status_defaults_to_published(self):
        assert normalize_story("s", {}, FALLBACK).status == "published"
        assert normalize_story("s", {"status": "bogus"}, FALLBACK).status == "published"
        assert normalize_story("s", {"status": "draft"}, FALLBACK).status == "draft"

    def test_updated_at_falls_back_to_created_at(self):
        story = normalize_story("s", {"createdAt": "2023-01-02T00:00:00+00:00"}, FALLBACK)

        assert story.created_at == datetime(2023, 1, 2, tzinfo=timezone.utc)
        assert story.updated_at == story.created_at

    def test_cover_falls_back(self):
        assert normalize_story("s", {}, FALLBACK).cover_image == FALLBACK
        assert normalize_story("s", {"coverImage": "x.png"}, FALLBACK).cover_image == "x.png"


class TestProfileNormalization:
    def test_defaults_filled(self):
        profile = normalize_profile("u1", {"displayName": "Ann", "email": "ann@example.com"})

        assert profile.bio == ""
        assert profile.avatar == ""
        assert profile.website == ""
        assert profile.favorites == []
        assert profile.read_later == []
        assert profile.social_links.x is None

    def test_lists_and_links_read(self):
        profile = normalize_profile(
            "u1",
            {"favorites": ["s1"], "readLater": ["s2"], "socialLinks": {"instagram": "@ann"}},
        )

        assert profile.favorites == ["s1"]
        assert profile.read_later == ["s2"]
        assert profile.social_links.instagram == "@ann"


class TestMalformedChapters:
    def test_chapter_without_id_gets_positional_id(self):
        story = normalize_story("s1", {"chapters": [{"title": "One", "content": "x", "order": 1}]}, FALLBACK)

        assert [(ch.id, ch.title, ch.content) for ch in story.chapters] == [("chapter-1", "One", "x")]

    def test_null_text_fields_become_empty(self):
        chapters = [{"id": "c1", "title": None, "content": None, "order": 1}]
        story = normalize_story("s2", {"chapters": chapters}, FALLBACK)

        assert story.chapters[0].title == ""
        assert story.chapters[0].content == ""

    def test_bad_chapter_keeps_its_siblings(self):
        chapters = [
            {"id": "good", "title": "Fine", "content": "ok", "order": 1},
            {"content": None, "order": 2},
        ]
        story = normalize_story("s3", {"chapters": chapters}, FALLBACK)

        assert [ch.id for ch in story.chapters] == ["good", "chapter-2"]
