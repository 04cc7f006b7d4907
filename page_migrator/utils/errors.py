"""
Exceptions and run reporting for the page migration.

Every failure the migration can hit derives from :class:`MigrationError`.
Only :class:`ConfigurationError` stops a run; the other errors end with a
failed page and the run moves on.

Three files under ``reports/migration`` are written as the run progresses:

* ``migration.log``: every console line, via :func:`log_message`;
* ``errors.jsonl``: one object per failed step, via :func:`report_error`;
* ``success.jsonl``: one object per completed step, via :func:`report_ok`.

Events are identified by the codes of :data:`ERRORS`.  An unknown code is
used as its own message.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional


class MigrationError(Exception):
    """Base class for every error raised by the migration."""


class TransientTransportError(MigrationError):
    """A single request attempt failed (non-2xx response or network error)."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RetryExhaustedError(TransientTransportError):
    """All attempts of a retried request failed."""

    def __init__(self, attempts: int, last_error: Exception) -> None:
        super().__init__(
            f"Failed after {attempts} attempts: {last_error}",
            status_code=getattr(last_error, "status_code", None),
        )
        self.attempts = attempts
        self.last_error = last_error


class RecordMigrationFailed(MigrationError):
    """A page could not be migrated.  The run carries on with the next page."""

    def __init__(self, origin_id: Optional[str], step: str, cause: Exception) -> None:
        super().__init__(f"{step} failed for page {origin_id}: {cause}")
        self.origin_id = origin_id
        self.step = step
        self.cause = cause


class MalformedInputError(MigrationError):
    """A staged page is missing required fields or is not valid JSON."""


class ConfigurationError(MigrationError):
    """Credentials or endpoint are missing.  Fatal for the whole run."""


# Mapping of event codes used throughout the migration to descriptive messages.
# The keys include both error and success codes as the same lookup is used by
# :func:`report_error` and :func:`report_ok`.
ERRORS: Dict[str, str] = {
    "MALFORMED_PAGE": "Staged page is missing required fields",
    "WP_NETWORK": "Network error communicating with WordPress",
    "MEDIA_UPLOAD": "Failed to upload images to WordPress",
    "PAGE_CREATED": "Page created successfully",
    "PAGE_UPDATED": "Page updated successfully",
    "IMAGES_UPLOADED": "Images uploaded and attached to page",
    "UNEXPECTED": "Unexpected error while migrating page",
}

_REPORT_DIR = os.path.join("reports", "migration")
_ERROR_LOG = os.path.join(_REPORT_DIR, "errors.jsonl")
_OK_LOG = os.path.join(_REPORT_DIR, "success.jsonl")
_MESSAGE_LOG = os.path.join(_REPORT_DIR, "migration.log")


def _write_jsonl(path: str, data: Dict[str, Any]) -> None:
    """Append ``data`` as a JSON object followed by a newline to ``path``."""
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False)
        f.write("\n")


def log_message(message: str, level: str = "INFO") -> None:
    """Print ``message`` and append it to the run log file."""
    print(f"[{level}] {message}")
    os.makedirs(os.path.dirname(_MESSAGE_LOG), exist_ok=True)
    with open(_MESSAGE_LOG, "a", encoding="utf-8") as f:
        f.write(f"{level}: {message}\n")


def _page_entry(code: str, page: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "code": code,
        "message": ERRORS.get(code, code),
        "originId": page.get("originId"),
        "slug": page.get("slug"),
        "title": page.get("title"),
    }


def _page_label(page: Dict[str, Any]) -> str:
    return str(page.get("slug") or page.get("originId") or "")


def report_error(code: str, page: Dict[str, Any], exc: Optional[Exception] = None) -> None:
    """Append a failure for ``page`` to ``errors.jsonl``.

    ``page`` is a :meth:`StagedRecord.describe` style mapping; only its
    ``originId``, ``slug`` and ``title`` keys are read.  When ``exc`` is given
    its text is stored under ``error``.
    """
    entry = _page_entry(code, page)
    if exc is not None:
        entry["error"] = str(exc)
    print(f"[ERROR] {entry['message']} - {_page_label(page)}")
    _write_jsonl(_ERROR_LOG, entry)


def report_ok(code: str, page: Dict[str, Any], extra: Optional[Dict[str, Any]] = None) -> None:
    """Append a completed step for ``page`` to ``success.jsonl``, merged with ``extra``."""
    entry = _page_entry(code, page)
    entry.update(extra or {})
    print(f"[OK] {entry['message']} - {_page_label(page)}")
    _write_jsonl(_OK_LOG, entry)
