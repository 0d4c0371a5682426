"""Comment reads and owner-checked writes."""

from __future__ import annotations

from typing import Any

from loguru import logger
from pydantic import ValidationError

from storyshelf.access import ensure_owner
from storyshelf.core.models import Comment, CommentInput, Lookup
from storyshelf.exceptions import NotFoundError, StoreError
from storyshelf.store import COMMENTS, SERVER_TIMESTAMP, DocumentStore, Filter


class CommentRepository:
    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    async def create_comment(self, comment: CommentInput) -> str:
        """Persist a comment and return its id.

        A missing avatar is stored as an explicit null; both timestamps come
        from the same server clock reading.
        """
        data: dict[str, Any] = comment.to_document()
        data["userAvatar"] = comment.user_avatar
        data["createdAt"] = SERVER_TIMESTAMP
        data["updatedAt"] = SERVER_TIMESTAMP
        try:
            comment_id = await self.store.add(COMMENTS, data)
        except StoreError as exc:
            logger.error(f"Error adding comment on story {comment.story_id}: {exc}")
            raise
        logger.info(f"Comment {comment_id} added to story {comment.story_id}")
        return comment_id

    async def lookup_comments(self, story_id: str) -> Lookup[list[Comment]]:
        try:
            snaps = await self.store.query(
                COMMENTS,
                [Filter("storyId", "==", story_id)],
                order_by="createdAt",
                descending=True,
            )
        except StoreError as exc:
            logger.error(f"Error getting comments for story {story_id}: {exc}")
            return Lookup.failed(exc)

        comments = []
        for snap in snaps:
            try:
                comments.append(Comment.model_validate({**snap.data, "id": snap.id}))
            except ValidationError as exc:
                logger.warning(f"Skipping malformed comment {snap.id}: {exc}")
        return Lookup.found(comments)

    async def get_comments(self, story_id: str) -> list[Comment]:
        """Comments on a story, newest first. Empty on error."""
        return (await self.lookup_comments(story_id)).unwrap_or([])

    async def get_comment_count(self, story_id: str) -> int:
        try:
            return await self.store.count(COMMENTS, [Filter("storyId", "==", story_id)])
        except StoreError as exc:
            logger.error(f"Error getting comment count for story {story_id}: {exc}")
            return 0

    async def update_comment(self, comment_id: str, new_text: str, user_id: str) -> None:
        """Replace a comment's text. Only its author may do this."""
        logger.debug(f"User {user_id} updating comment {comment_id}")

        def _edit(current: dict[str, Any] | None) -> tuple[dict[str, Any], None]:
            if current is None:
                logger.error(f"Comment {comment_id} not found for update")
                raise NotFoundError("Comment not found.")
            ensure_owner(current.get("userId"), user_id, "comment", comment_id)
            return {"text": new_text, "updatedAt": SERVER_TIMESTAMP}, None

        try:
            await self.store.transact(COMMENTS, comment_id, _edit)
        except StoreError as exc:
            logger.error(f"Error updating comment {comment_id}: {exc}")
            raise
        logger.info(f"Comment {comment_id} updated by user {user_id}")

    async def delete_comment(self, comment_id: str, user_id: str) -> None:
        """Delete a comment. Deleting one that is already gone succeeds."""
        try:
            snap = await self.store.get(COMMENTS, comment_id)
            if snap is None:
                logger.warning(f"Comment {comment_id} not found for delete; already deleted?")
                return
            ensure_owner(snap.data.get("userId"), user_id, "comment", comment_id)
            await self.store.delete(COMMENTS, comment_id)
        except StoreError as exc:
            logger.error(f"Error deleting comment {comment_id}: {exc}")
            raise
        logger.info(f"Comment {comment_id} deleted by user {user_id}")
