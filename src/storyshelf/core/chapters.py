"""Chapter list editing. Orders are 1-based and contiguous after every edit."""

from __future__ import annotations

from uuid import uuid4

from storyshelf.core.models import Chapter
from storyshelf.exceptions import NotFoundError


def resequence(chapters: list[Chapter]) -> list[Chapter]:
    """Renumber chapters 1..n in list order."""
    return [
        ch if ch.order == i else ch.model_copy(update={"order": i})
        for i, ch in enumerate(chapters, 1)
    ]


def new_chapter(title: str = "", content: str = "", order: int = 1) -> Chapter:
    return Chapter(
        id=str(uuid4()),
        title=title or f"Chapter {order}",
        content=content,
        order=order,
    )


def add_chapter(
    chapters: list[Chapter],
    chapter: Chapter | None = None,
    position: int | None = None,
) -> list[Chapter]:
    """Insert a chapter (a blank one by default) at a 0-based position, or append."""
    if chapter is None:
        chapter = new_chapter(order=len(chapters) + 1)
    result = list(chapters)
    if position is None:
        result.append(chapter)
    else:
        result.insert(max(0, min(position, len(result))), chapter)
    return resequence(result)


def _index_of(chapters: list[Chapter], chapter_id: str) -> int:
    for i, ch in enumerate(chapters):
        if ch.id == chapter_id:
            return i
    raise NotFoundError(f"Chapter {chapter_id} not found")


def remove_chapter(chapters: list[Chapter], chapter_id: str) -> list[Chapter]:
    index = _index_of(chapters, chapter_id)
    return resequence(chapters[:index] + chapters[index + 1 :])


def move_chapter(chapters: list[Chapter], chapter_id: str, offset: int) -> list[Chapter]:
    """Move a chapter by ``offset`` places, clamped to the ends of the list."""
    index = _index_of(chapters, chapter_id)
    target = max(0, min(index + offset, len(chapters) - 1))
    result = list(chapters)
    result.insert(target, result.pop(index))
    return resequence(result)
