"""
The icon library: SVG media on the destination site usable as service icons.

The library is read once per run from ``icon_files.csv`` (columns
``id,title,filename,url,alt_text``).  Only rows whose title starts with
``Icon=`` are icons; the rest of the title is the icon's canonical name.
When the CSV is absent it can be built from the site's media library with
:func:`load_or_fetch_icon_catalog`.
"""

from __future__ import annotations

import csv
import os
from typing import Any, Dict, Iterable, List

from page_migrator.config import WordPressSettings
from page_migrator.migrators.wordpress_api import list_media
from page_migrator.models.page import IconResource
from page_migrator.utils.errors import MigrationError, log_message

ICON_PREFIX = "Icon="
# Title prefixes of the SVG media worth keeping in the catalog.
CATALOG_PREFIXES = ("Typer=", ICON_PREFIX)
CATALOG_HEADER = ["id", "title", "filename", "url", "alt_text"]


def load_icon_library(csv_path: str) -> List[IconResource]:
    """Read the icon catalog.  Returns an empty list if it is missing or unreadable."""
    if not os.path.exists(csv_path):
        log_message(f"{csv_path} not found. Icons will not be assigned.", level="WARNING")
        return []

    icons: List[IconResource] = []
    try:
        with open(csv_path, mode="r", encoding="utf-8", newline="") as f:
            reader = csv.DictReader(f)
            for row in reader:
                title = (row.get("title") or "").strip()
                if not title.startswith(ICON_PREFIX):
                    continue
                icons.append(
                    IconResource(
                        id=int(row["id"]),
                        title=title,
                        icon_name=title[len(ICON_PREFIX):].strip(),
                        filename=(row.get("filename") or "").strip(),
                        url=(row.get("url") or "").strip(),
                    )
                )
    except (OSError, csv.Error, KeyError, TypeError, ValueError) as e:
        log_message(f"Error parsing {csv_path}: {e}", level="ERROR")
        return []
    return icons


def _media_title(item: Dict[str, Any]) -> str:
    return ((item.get("title") or {}).get("rendered") or "").strip()


def fetch_icon_media(cfg: WordPressSettings, per_page: int = 100) -> List[Dict[str, Any]]:
    """
    Page through the destination media library and collect SVG items whose
    title marks them as icons.  Stops at the first empty page or on error.
    """
    log_message("Fetching all SVG media files from WordPress...")
    collected: List[Dict[str, Any]] = []
    page = 1
    while True:
        try:
            items = list_media(cfg, page, per_page=per_page)
        except MigrationError as e:
            log_message(f"  Error fetching media page {page}: {e}", level="ERROR")
            break
        if not items:
            break
        svg_items = [
            item
            for item in items
            if item.get("mime_type") == "image/svg+xml" and _media_title(item).startswith(CATALOG_PREFIXES)
        ]
        collected.extend(svg_items)
        log_message(f"  Fetched page {page}: {len(svg_items)} SVG files ({len(items)} total items)", level="DEBUG")
        page += 1
    return collected


def save_icon_catalog(items: Iterable[Dict[str, Any]], csv_path: str, *, min_media_id: int = 0) -> int:
    """
    Write media items to the catalog CSV, sorted by id.  Items below
    ``min_media_id`` are dropped and duplicate titles keep the lowest id.

    :return: Number of rows written.
    """
    seen_titles = set()
    rows = []
    for item in sorted(items, key=lambda i: int(i.get("id") or 0)):
        if int(item.get("id") or 0) < min_media_id:
            continue
        title = _media_title(item)
        if title in seen_titles:
            continue
        seen_titles.add(title)
        source_url = item.get("source_url") or ""
        rows.append([item.get("id"), title, source_url.split("/")[-1], source_url, item.get("alt_text") or ""])

    os.makedirs(os.path.dirname(csv_path) or ".", exist_ok=True)
    with open(csv_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(CATALOG_HEADER)
        writer.writerows(rows)
    return len(rows)


def load_or_fetch_icon_catalog(cfg: WordPressSettings, csv_path: str, *, min_media_id: int = 0) -> None:
    """Build the catalog CSV from the media library unless it already exists."""
    if os.path.exists(csv_path):
        log_message(f"{csv_path} already exists, skipping SVG media fetch")
        return
    log_message(f"{csv_path} not found, fetching SVG media from WordPress...")
    media = fetch_icon_media(cfg)
    written = save_icon_catalog(media, csv_path, min_media_id=min_media_id)
    log_message(f"Saved {written} SVG files to {csv_path}")
