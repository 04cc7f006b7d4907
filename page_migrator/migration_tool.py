"""
High-level orchestration of the WordPress page migration.

This module defines a :class:`PageMigrationTool` class that ties together
the extractors, the icon matcher, the payload builder, the WordPress API
helpers and the ledger into a complete pipeline.  Pages are migrated one at
a time, in listing order:

1. load the staged page and look its source id up in the ledger
   (present means update, absent means create);
2. assign service icons from the run-wide pool of unused icons;
3. build the payload without image fields and create or update the page;
4. upload images when the page is new, has no recorded media, or
   ``upload_new_images`` is set, then attach them with a second update;
   otherwise carry the recorded media ids forward;
5. upsert the ledger entry and flush the ledger to disk.

A page that fails does not stop the run.  Detailed success and failure
information is recorded using the :mod:`page_migrator.utils.errors` module.
"""

from __future__ import annotations

import os
import random
from typing import Any, Dict, List, Optional, Set

from page_migrator.config import MigrationConfig
from page_migrator.extractors.staged_pages import list_staged_pages, load_staged_page
from page_migrator.icons.library import load_icon_library, load_or_fetch_icon_catalog
from page_migrator.icons.matcher import assign_icons_to_services
from page_migrator.migrators.wordpress_api import create_page, update_page, upload_media
from page_migrator.models.page import IconResource, LedgerRecord, MigrationOutcome, RunReport, StagedRecord
from page_migrator.parsers.payload_builder import build_payload, track_image_fields
from page_migrator.utils.errors import (
    MalformedInputError,
    MigrationError,
    RecordMigrationFailed,
    log_message,
    report_error,
    report_ok,
)
from page_migrator.utils.images import load_image_pool, select_unique_images
from page_migrator.utils.ledger import MigrationLedger


class PageMigrationTool:
    """
    Encapsulates all state required to migrate staged pages to the staging
    WordPress site.  The icon library, image pool and ledger are loaded once
    by :meth:`prepare`; the set of used icon ids lives for one
    :meth:`migrate_pages` call.
    """

    def __init__(self, config: MigrationConfig, *, rng: Optional[random.Random] = None) -> None:
        self.config = config
        self.rng = rng or random.Random()
        self.icon_library: List[IconResource] = []
        self.image_pool: List[str] = []
        self.ledger: Optional[MigrationLedger] = None

    def log_message(self, message: str, level: str = "INFO") -> None:
        log_message(message, level)

    def prepare(self, *, fetch_icons: bool = True) -> None:
        """Load the icon library, the image pool and the ledger."""
        cfg = self.config
        if fetch_icons:
            load_or_fetch_icon_catalog(cfg.wordpress, cfg.icon_catalog, min_media_id=cfg.min_icon_media_id)
        self.icon_library = load_icon_library(cfg.icon_catalog)
        self.log_message(f"Loaded {len(self.icon_library)} icons from {cfg.icon_catalog}")

        self.image_pool = load_image_pool(cfg.images_dir, cfg.image_extension)
        self.log_message(f"Loaded {len(self.image_pool)} images from {cfg.images_dir}/")

        self.ledger = MigrationLedger.load(cfg.ledger_file, cfg.image_fields)
        self.log_message(f"Loaded {len(self.ledger)} existing records from {cfg.ledger_file}")

    def discover_pages(self) -> List[str]:
        """Staged page files to migrate; only the first one in test mode."""
        files = list_staged_pages(self.config.pages_dir)
        if self.config.test_mode:
            files = files[:1]
            self.log_message("TEST_MODE enabled - processing first page only", level="WARNING")
        return files

    def should_upload_images(self, existing: Optional[LedgerRecord]) -> bool:
        """Upload when forced, when the page is new, or when no media was recorded."""
        if self.config.upload_new_images or existing is None:
            return True
        return not existing.has_media

    def migrate_pages(self, page_files: List[str]) -> RunReport:
        """
        Migrate ``page_files`` in order and return the run report.  The
        ledger is written after each page that reaches it and once more at
        the end of the run.
        """
        if self.ledger is None:
            self.ledger = MigrationLedger.load(self.config.ledger_file, self.config.image_fields)

        used_icon_ids: Set[int] = set()
        report = RunReport()
        total = len(page_files)
        self.log_message(f"Processing {total} page(s)...")

        for index, path in enumerate(page_files, start=1):
            try:
                outcome = self.process_page(path, used_icon_ids, index=index, total=total)
            except Exception as e:
                report_error("UNEXPECTED", {"slug": os.path.basename(path)}, e)
                self.log_message(f"An unexpected error occurred while migrating {path}: {e}", level="ERROR")
                outcome = MigrationOutcome(success=False, source=path, error=str(e))
            report.add(outcome)

        self.ledger.save()
        self.log_message(f"Updated {self.ledger.path}")
        return report

    def process_page(self, path: str, used_icon_ids: Set[int], *, index: int = 1, total: int = 1) -> MigrationOutcome:
        try:
            record = load_staged_page(path)
        except (MalformedInputError, OSError) as e:
            report_error("MALFORMED_PAGE", {"slug": os.path.basename(path)}, e)
            self.log_message(f"Failed to process {path}: {e}", level="ERROR")
            return MigrationOutcome(success=False, source=path, error=str(e))

        self.log_message(f"[{index}/{total}] Processing: {record.title} (origin ID {record.origin_id})")
        existing = self.ledger.find(record.origin_id)
        is_update = existing is not None
        self.log_message(f"  Mode: {'UPDATE' if is_update else 'CREATE'}")

        assign_icons_to_services(record.services, self.icon_library, used_icon_ids)

        payload = build_payload(
            record,
            clear_interlinks=self.config.clear_interlinks,
            page_category=self.config.page_category,
            image_fields=self.config.image_fields,
        )
        image_fields = track_image_fields(record, self.config.image_fields)
        self.log_message(f"  Image fields with values: {len(image_fields)}", level="DEBUG")

        step = "update" if is_update else "create"
        try:
            if is_update:
                response = update_page(self.config.wordpress, existing.page_id, payload)
            else:
                response = create_page(self.config.wordpress, payload)
            page_id = response.get("id")
            if page_id is None:
                raise MigrationError(f"{step} response has no page id")
        except MigrationError as e:
            failure = RecordMigrationFailed(record.origin_id, step, e)
            report_error("WP_NETWORK", record.describe(), failure)
            self.log_message(str(failure), level="ERROR")
            return MigrationOutcome(
                success=False, source=path, origin_id=record.origin_id, title=record.title, error=str(failure)
            )

        report_ok("PAGE_UPDATED" if is_update else "PAGE_CREATED", record.describe(), {"pageId": page_id})

        media_ids: Dict[str, Any] = dict(existing.media_ids) if existing else {}
        image_failure: Optional[RecordMigrationFailed] = None
        if self.should_upload_images(existing) and image_fields:
            try:
                media_ids.update(self.upload_images(record, page_id, image_fields))
            except (MigrationError, OSError) as e:
                image_failure = RecordMigrationFailed(record.origin_id, "image upload", e)
                report_error("MEDIA_UPLOAD", record.describe(), image_failure)
                self.log_message(str(image_failure), level="ERROR")
        elif is_update and existing.has_media:
            self.log_message("  Preserving existing media IDs from ledger")
        else:
            self.log_message(f"  Skipping image upload (UPLOAD_NEW_IMAGES = {self.config.upload_new_images})")

        entry = self.ledger.upsert(
            LedgerRecord(
                originId=record.origin_id,
                pageId=page_id,
                title=record.title,
                url=response.get("link"),
                media_ids=media_ids,
            )
        )
        self.ledger.save()

        if image_failure is not None:
            return MigrationOutcome(
                success=False,
                source=path,
                origin_id=record.origin_id,
                title=record.title,
                record=entry,
                error=str(image_failure),
            )
        return MigrationOutcome(success=True, source=path, origin_id=record.origin_id, title=record.title, record=entry)

    def upload_images(self, record: StagedRecord, page_id: Any, image_fields: List[str]) -> Dict[str, Any]:
        """
        Upload one distinct pool image per field and attach them to the page.

        :return: Mapping of image field to new media id.
        """
        selected = select_unique_images(self.image_pool, len(image_fields), self.rng)
        if len(selected) < len(image_fields):
            skipped = image_fields[len(selected):]
            self.log_message(
                f"  Image pool has only {len(selected)} image(s); leaving {', '.join(skipped)} empty",
                level="WARNING",
            )
        if not selected:
            return {}

        self.log_message(f"  Uploading {len(selected)} images...")
        media_ids: Dict[str, Any] = {}
        for field, image_path in zip(image_fields, selected):
            media_id = upload_media(self.config.wordpress, image_path, record.title)
            media_ids[field] = media_id
            self.log_message(f"    {field}: uploaded {os.path.basename(image_path)} as media {media_id}", level="DEBUG")

        update_page(self.config.wordpress, page_id, {"acf": media_ids})
        report_ok("IMAGES_UPLOADED", record.describe(), {"pageId": page_id, "media": media_ids})
        return media_ids

    def summarize(self, report: RunReport) -> None:
        """Log the success/failure counts and name every failed page."""
        total = len(report.outcomes)
        self.log_message(f"Migration complete. Success: {report.successes}/{total}")
        if report.failures:
            self.log_message(f"Failed: {report.failures}/{total}", level="ERROR")
            for outcome in report.failed:
                name = outcome.title or os.path.basename(outcome.source)
                self.log_message(f"  - {name}: {outcome.error}", level="ERROR")

        site = self.config.wordpress.base_url
        self.log_message("Next steps:")
        if self.config.test_mode:
            self.log_message(f"  1. Verify the page on {site}")
            self.log_message(f"  2. Check {self.config.ledger_file} for results")
            self.log_message("  3. Run again to test UPDATE logic")
            self.log_message("  4. Disable test mode to process all pages")
        else:
            self.log_message(f"  1. Review all pages on {site}")
            self.log_message(f"  2. Verify {self.config.ledger_file} has all {total} records")
