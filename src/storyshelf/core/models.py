"""Pydantic data models for stories, chapters, comments, ratings, and profiles.

Documents are stored with camelCase field names; models expose snake_case
attributes and accept either form.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Generic, TypeVar

from loguru import logger
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

T = TypeVar("T")


def parse_timestamp(value: Any) -> datetime | None:
    """Coerce stored timestamps to datetime.

    Older documents hold ISO strings or millisecond epoch strings; newer ones
    hold native store timestamps.
    """
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return datetime.fromtimestamp(int(text) / 1000, tz=timezone.utc)
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            logger.warning(f"Failed to parse timestamp: {value!r}")
            return None
    return None


Timestamp = Annotated[datetime | None, BeforeValidator(parse_timestamp)]


class DocumentModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )

    def to_document(self, **kwargs: Any) -> dict[str, Any]:
        """Dump with store field names."""
        return self.model_dump(by_alias=True, **kwargs)


class StoryStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class Chapter(DocumentModel):
    """A single chapter of a story."""

    id: str
    title: str = ""
    content: str = ""
    order: int = Field(default=1, ge=1)


class Story(DocumentModel):
    """A story as read back from the store, after legacy normalization."""

    id: str
    title: str = ""
    chapters: list[Chapter] = Field(default_factory=list)
    description: str = ""
    genres: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    author_id: str = ""
    author_name: str = ""
    created_at: Timestamp = None
    updated_at: Timestamp = None
    status: StoryStatus = StoryStatus.PUBLISHED
    cover_image: str | None = None


class StoryInput(DocumentModel):
    """Fields supplied by the caller when creating a story."""

    title: str
    description: str = ""
    chapters: list[Chapter] = Field(default_factory=list)
    genres: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    author_id: str
    author_name: str
    status: StoryStatus = StoryStatus.DRAFT
    cover_image: str | None = None
    created_at: datetime | None = None


class StoryUpdate(DocumentModel):
    """Partial story update; only fields explicitly set are written."""

    title: str | None = None
    description: str | None = None
    chapters: list[Chapter] | None = None
    genres: list[str] | None = None
    tags: list[str] | None = None
    status: StoryStatus | None = None
    cover_image: str | None = None


class UserStory(DocumentModel):
    """Summary row for an author's story list."""

    id: str
    title: str = ""
    image_url: str
    comment_count: int = 0
    average_rating: float = 0.0


class Comment(DocumentModel):
    id: str
    story_id: str
    user_id: str
    user_name: str = ""
    user_avatar: str | None = None
    text: str = ""
    created_at: Timestamp = None
    updated_at: Timestamp = None


class CommentInput(DocumentModel):
    story_id: str
    user_id: str
    user_name: str
    user_avatar: str | None = None
    text: str


RatingValue = Annotated[int, Field(ge=1, le=5, strict=True)]


class Rating(DocumentModel):
    """A stored rating. Older documents may hold a float or no usable value."""

    id: str
    story_id: str
    user_id: str
    value: int | float | None = None

    @field_validator("value", mode="before")
    @classmethod
    def _drop_non_numeric(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            if value is not None:
                logger.warning(f"Ignoring invalid rating value: {value!r}")
            return None
        return value


class RatingInput(DocumentModel):
    story_id: str
    user_id: str
    value: RatingValue


class RatingStats(BaseModel):
    average: float = 0.0
    count: int = 0


class SocialLinks(DocumentModel):
    x: str | None = None
    instagram: str | None = None
    tiktok: str | None = None


class UserProfile(DocumentModel):
    id: str
    display_name: str = ""
    email: str = ""
    bio: str = ""
    avatar: str = ""
    social_links: SocialLinks = Field(default_factory=SocialLinks)
    website: str = ""
    favorites: list[str] = Field(default_factory=list)
    read_later: list[str] = Field(default_factory=list)


class ProfileInput(DocumentModel):
    display_name: str
    email: str
    bio: str = ""
    avatar: str = ""
    social_links: SocialLinks | None = None
    website: str | None = None
    favorites: list[str] = Field(default_factory=list)
    read_later: list[str] = Field(default_factory=list)


class ProfileUpdate(DocumentModel):
    display_name: str | None = None
    email: str | None = None
    bio: str | None = None
    avatar: str | None = None
    social_links: SocialLinks | None = None
    website: str | None = None


class LookupStatus(str, Enum):
    FOUND = "found"
    MISSING = "missing"
    FAILED = "failed"


class Lookup(BaseModel, Generic[T]):
    """Outcome of a read: found, missing, or failed with an error message."""

    status: LookupStatus
    value: T | None = None
    error: str | None = None

    @classmethod
    def found(cls, value: T) -> Lookup[T]:
        return cls(status=LookupStatus.FOUND, value=value)

    @classmethod
    def missing(cls) -> Lookup[T]:
        return cls(status=LookupStatus.MISSING)

    @classmethod
    def failed(cls, exc: Exception) -> Lookup[T]:
        return cls(status=LookupStatus.FAILED, error=str(exc))

    @property
    def ok(self) -> bool:
        return self.status != LookupStatus.FAILED

    def unwrap_or(self, default: Any) -> Any:
        return self.value if self.status == LookupStatus.FOUND else default
