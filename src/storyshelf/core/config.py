"""Configuration management using TOML files and platformdirs."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import platformdirs
from pydantic import BaseModel, Field, ValidationError

from storyshelf.exceptions import ConfigError

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore[no-redef]

APP_NAME = "storyshelf"


def config_dir() -> Path:
    return Path(platformdirs.user_config_dir(APP_NAME))


class StoreConfig(BaseModel):
    backend: Literal["firebase", "memory"] = "firebase"
    project_id: str | None = None
    credentials_path: Path | None = None  # service account JSON; ADC when unset
    storage_bucket: str | None = None
    app_name: str = APP_NAME


class StoriesConfig(BaseModel):
    default_limit: int = Field(default=50, gt=0)
    new_story_cover: str = "/assets/cover.png"
    fallback_cover: str = "/placeholder.jpg"
    cascade_delete: bool = True


class CoversConfig(BaseModel):
    default_cover_path: str = "placeholders/cover.png"
    cache_ttl: float | None = None  # seconds; None keeps the URL for the process lifetime


class FetchConfig(BaseModel):
    timeout: float = 30.0
    max_retries: int = 3
    user_agent: str = "Mozilla/5.0 (compatible; Storyshelf/0.1)"


class Config(BaseModel):
    store: StoreConfig = Field(default_factory=StoreConfig)
    stories: StoriesConfig = Field(default_factory=StoriesConfig)
    covers: CoversConfig = Field(default_factory=CoversConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)

    @classmethod
    def load(cls, path: Path | None = None) -> Config:
        """Load config from TOML file, falling back to defaults."""
        config_path = path or config_dir() / "storyshelf.toml"
        if not config_path.exists():
            return cls()
        try:
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
            return cls.model_validate(data)
        except (tomllib.TOMLDecodeError, ValidationError) as exc:
            raise ConfigError(f"Invalid config at {config_path}: {exc}") from exc
