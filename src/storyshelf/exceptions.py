"""Exception hierarchy for Storyshelf."""


class StoryshelfError(Exception):
    """Base exception for all Storyshelf errors."""


class StoreError(StoryshelfError):
    """Error talking to the document store."""


class StorageError(StoreError):
    """Error talking to the object store."""


class NotFoundError(StoryshelfError):
    """Document or object required by the operation does not exist."""


class PermissionDeniedError(StoryshelfError):
    """Requesting user does not own the document."""


class FetchError(StoryshelfError):
    """Error fetching a remote image over HTTP."""


class ConfigError(StoryshelfError):
    """Error in configuration."""
