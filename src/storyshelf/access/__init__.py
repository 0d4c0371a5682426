"""Repositories over the document and object stores."""

from __future__ import annotations

from loguru import logger

from storyshelf.exceptions import PermissionDeniedError


def ensure_owner(owner_id: str | None, user_id: str, kind: str, doc_id: str) -> None:
    """Raise PermissionDeniedError unless ``user_id`` owns the document."""
    if owner_id != user_id:
        logger.error(
            f"User {user_id} does not have permission to modify {kind} {doc_id} "
            f"owned by {owner_id}"
        )
        raise PermissionDeniedError(f"You do not have permission to modify this {kind}.")
