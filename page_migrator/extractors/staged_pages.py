"""Reading and fetching staged WordPress pages.

Staged pages are WordPress REST page objects saved as ``pages/<id>.json``.
:func:`fetch_source_page` produces them from a live page URL; the
orchestrator consumes them through :func:`list_staged_pages` and
:func:`load_staged_page`.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from page_migrator.config import WordPressSettings
from page_migrator.migrators.wordpress_api import list_pages_by_slug
from page_migrator.models.page import StagedRecord
from page_migrator.utils.errors import MalformedInputError


def list_staged_pages(pages_dir: str) -> List[str]:
    """Paths of the staged ``*.json`` pages in listing order (sorted by name)."""
    if not os.path.isdir(pages_dir):
        return []
    return [os.path.join(pages_dir, name) for name in sorted(os.listdir(pages_dir)) if name.endswith(".json")]


def load_staged_page(file_path: str) -> StagedRecord:
    """Parse one staged page.

    Raises:
        MalformedInputError: If the file is not valid JSON or a required
            field (id, title, slug, content) is missing.
    """
    with open(file_path, mode="r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise MalformedInputError(f"{file_path} is not valid JSON: {e}") from e
    return StagedRecord.from_wordpress(data)


def slug_from_url(url: str) -> str:
    """The last non-empty path segment of ``url``."""
    parts = [p for p in urlparse(url).path.split("/") if p]
    return parts[-1] if parts else ""


def read_urls(urls_file: str) -> List[str]:
    with open(urls_file, "r", encoding="utf-8") as f:
        return [line.strip() for line in f if line.strip()]


def fetch_source_page(url: str, *, username: str, password: str) -> Optional[Dict[str, Any]]:
    """Look the page behind ``url`` up on its own site by slug.

    Returns the first matching WordPress page object, or ``None`` when the
    site has no page with that slug.
    """
    parsed = urlparse(url)
    cfg = WordPressSettings(
        base_url=f"{parsed.scheme}://{parsed.netloc}",
        username=username,
        password=password,
    )
    pages = list_pages_by_slug(cfg, slug_from_url(url))
    return pages[0] if pages else None


def save_staged_page(pages_dir: str, page: Dict[str, Any]) -> str:
    os.makedirs(pages_dir, exist_ok=True)
    out_path = os.path.join(pages_dir, f"{page['id']}.json")
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(page, f, indent=2, ensure_ascii=False)
    return out_path
