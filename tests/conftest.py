"""Shared fixtures: in-memory backends and a Shelf wired to them."""

import pytest

from storyshelf.core.cache import clear_default_cover_cache
from storyshelf.core.config import Config, StoreConfig
from storyshelf.shelf import Shelf
from storyshelf.storage.memory import MemoryStorage
from storyshelf.store import STORIES, USERS
from storyshelf.store.memory import MemoryStore


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _fresh_cover_cache():
    clear_default_cover_cache()
    yield
    clear_default_cover_cache()


@pytest.fixture
def config():
    return Config(store=StoreConfig(backend="memory"))


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def objects():
    return MemoryStorage()


@pytest.fixture
def shelf(store, objects, config):
    return Shelf(store, objects, config)


@pytest.fixture
def seed_story(store):
    """Write a raw story document, bypassing normalization."""
    def _seed(doc_id, **data):
        store.collections[STORIES][doc_id] = data
        return doc_id
    return _seed


@pytest.fixture
def seed_user(store):
    def _seed(user_id, **data):
        store.collections[USERS][user_id] = {"displayName": user_id, "email": f"{user_id}@example.com", **data}
        return user_id
    return _seed
