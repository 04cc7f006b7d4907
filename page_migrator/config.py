"""
Configuration loading for the page migration.

Configuration is supplied via a JSON file path or directly as a dictionary.
Missing ``wordpress`` credentials fall back to the ``STAGING_URL``,
``STAGING_USER`` and ``STAGING_PASS`` environment variables (the entry points
load a ``.env`` file first).  The result is a single :class:`MigrationConfig`
built once at startup and handed to the orchestrator; nothing below reads the
process environment afterwards.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, Field

from page_migrator.models.page import IMAGE_FIELDS


class RetrySettings(BaseModel):
    max_attempts: int = Field(3, ge=1)
    initial_delay: float = Field(1.0, ge=0)


class WordPressSettings(BaseModel):
    base_url: str = ""
    username: str = ""
    password: str = ""
    timeout: float = 30.0
    retry: RetrySettings = Field(default_factory=RetrySettings)

    @property
    def api_root(self) -> str:
        return f"{self.base_url.rstrip('/')}/wp-json/wp/v2"

    @property
    def auth(self):
        return (self.username, self.password)


class MigrationConfig(BaseModel):
    wordpress: WordPressSettings = Field(default_factory=WordPressSettings)

    # Run flags
    test_mode: bool = False
    upload_new_images: bool = False
    clear_interlinks: bool = True

    pages_dir: str = "pages"
    images_dir: str = "images"
    image_extension: str = ".webp"
    icon_catalog: str = "icon_files.csv"
    ledger_file: str = "created_pages.json"

    page_category: int = 10
    image_fields: Tuple[str, ...] = IMAGE_FIELDS
    # Icon media uploaded before this id belong to an older icon set.
    min_icon_media_id: int = 20813


def load_config(
    config: Optional[Dict[str, Any]] = None,
    *,
    config_file: Optional[str] = None,
    **overrides: Any,
) -> MigrationConfig:
    """Build a :class:`MigrationConfig` from a file, a dict and keyword overrides.

    Keyword overrides whose value is ``None`` are ignored so command-line
    switches that were not given leave the file value in place.
    """
    if config_file and os.path.exists(config_file):
        with open(config_file, "r", encoding="utf-8") as f:
            config = json.load(f)
    else:
        config = dict(config or {})

    # Empty credentials in the file fall back to the environment
    wp = dict(config.get("wordpress") or {})
    config["wordpress"] = wp
    for key, env_name in (("base_url", "STAGING_URL"), ("username", "STAGING_USER"), ("password", "STAGING_PASS")):
        if not wp.get(key):
            wp[key] = os.getenv(env_name, "")

    for key, value in overrides.items():
        if value is not None:
            config[key] = value

    return MigrationConfig.model_validate(config)
