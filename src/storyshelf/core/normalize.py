"""Reconcile legacy document shapes into the current models.

Older story documents carry a single ``content`` string instead of a
``chapters`` list, and a singular ``genre`` instead of ``genres``. Both are
converted at read time; the stored document is left as it is.
"""

from __future__ import annotations

from typing import Any

from storyshelf.core.models import Chapter, Story, StoryStatus, UserProfile

LEGACY_CHAPTER_ID = "default"
LEGACY_CHAPTER_TITLE = "Chapter 1"

_STATUSES = {status.value for status in StoryStatus}


def _chapters(data: dict[str, Any]) -> list[Chapter]:
    raw = data.get("chapters")
    if not isinstance(raw, list):
        content = data.get("content")
        if isinstance(content, str):
            return [
                Chapter(
                    id=LEGACY_CHAPTER_ID,
                    title=LEGACY_CHAPTER_TITLE,
                    content=content,
                    order=1,
                )
            ]
        return []

    entries = [ch for ch in raw if isinstance(ch, dict)]
    # Stable sort keeps list position for chapters missing an order.
    entries.sort(key=lambda ch: ch.get("order") if isinstance(ch.get("order"), int) else 0)
    return [
        Chapter(
            id=str(ch.get("id") or f"chapter-{i}"),
            title=str(ch.get("title") or ""),
            content=str(ch.get("content") or ""),
            order=i,
        )
        for i, ch in enumerate(entries, 1)
    ]


def _genres(data: dict[str, Any]) -> list[str]:
    genres = data.get("genres")
    if isinstance(genres, list):
        return [g for g in genres if isinstance(g, str)]
    genre = data.get("genre")
    if isinstance(genre, str) and genre:
        return [genre]
    return []


def normalize_story(doc_id: str, data: dict[str, Any], fallback_cover: str) -> Story:
    """Build a Story from a raw stored document."""
    tags = data.get("tags")
    status = data.get("status")
    return Story(
        id=doc_id,
        title=data.get("title") or "",
        chapters=_chapters(data),
        description=data.get("description") or "",
        genres=_genres(data),
        tags=[t for t in tags if isinstance(t, str)] if isinstance(tags, list) else [],
        author_id=data.get("authorId") or "",
        author_name=data.get("authorName") or "",
        created_at=data.get("createdAt"),
        updated_at=data.get("updatedAt") or data.get("createdAt"),
        status=status if status in _STATUSES else StoryStatus.PUBLISHED,
        cover_image=data.get("coverImage") or fallback_cover,
    )


def normalize_profile(doc_id: str, data: dict[str, Any]) -> UserProfile:
    return UserProfile(
        id=doc_id,
        display_name=data.get("displayName") or "",
        email=data.get("email") or "",
        bio=data.get("bio") or "",
        avatar=data.get("avatar") or "",
        social_links=data.get("socialLinks") or {},
        website=data.get("website") or "",
        favorites=list(data.get("favorites") or []),
        read_later=list(data.get("readLater") or []),
    )
