"""Firebase app initialization shared by the Firestore and Storage backends."""

from __future__ import annotations

import firebase_admin
from firebase_admin import credentials
from loguru import logger

from storyshelf.core.config import StoreConfig
from storyshelf.exceptions import ConfigError


def get_app(config: StoreConfig) -> firebase_admin.App:
    """Return the named Firebase app, initializing it on first use."""
    try:
        return firebase_admin.get_app(config.app_name)
    except ValueError:
        pass

    if config.credentials_path is not None:
        if not config.credentials_path.exists():
            raise ConfigError(f"Credentials file not found: {config.credentials_path}")
        logger.debug("Initializing Firebase with service account credentials")
        cred = credentials.Certificate(str(config.credentials_path))
    else:
        logger.debug("Initializing Firebase with Application Default Credentials")
        cred = credentials.ApplicationDefault()

    options: dict[str, str] = {}
    if config.project_id:
        options["projectId"] = config.project_id
    if config.storage_bucket:
        options["storageBucket"] = config.storage_bucket
    return firebase_admin.initialize_app(cred, options, name=config.app_name)
