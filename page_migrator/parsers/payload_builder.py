"""
Conversion of a staged WordPress page into the payload accepted by the
destination site's ``/pages`` endpoint.

ACF data is cleaned recursively before it is sent:

* the internal ``icon`` key is dropped everywhere (``service_icon`` is kept);
* ``interlinks`` is dropped when interlinks are being cleared;
* empty strings become ``None`` so the destination clears the field instead
  of treating it as absent.

Image fields are removed from the payload.  They are attached in a second
update once the images are uploaded and the page id is known.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

from page_migrator.models.page import IMAGE_FIELDS, StagedRecord

DROPPED_KEY = "icon"
INTERLINKS_KEY = "interlinks"
DISABLE_INTERLINKING_KEY = "disable_automatic_interlinking"
PAGE_CATEGORY_KEY = "page-category"


def sanitize_acf(data: Any, *, clear_interlinks: bool = True) -> Any:
    if isinstance(data, list):
        return [sanitize_acf(item, clear_interlinks=clear_interlinks) for item in data]

    if isinstance(data, dict):
        sanitized: Dict[str, Any] = {}
        for key, value in data.items():
            if key == DROPPED_KEY:
                continue
            if clear_interlinks and key == INTERLINKS_KEY:
                continue
            sanitized[key] = sanitize_acf(value, clear_interlinks=clear_interlinks)
        return sanitized

    if data == "":
        return None
    return data


def track_image_fields(record: StagedRecord, image_fields: Iterable[str] = IMAGE_FIELDS) -> List[str]:
    """Image fields that hold a value on the source page, in field order."""
    return [field for field in image_fields if record.acf.get(field) not in (None, "", False)]


def build_payload(
    record: StagedRecord,
    *,
    clear_interlinks: bool = True,
    page_category: int = 10,
    image_fields: Iterable[str] = IMAGE_FIELDS,
) -> Dict[str, Any]:
    """Build the create/update body for ``record``.  ``record`` is left untouched."""
    acf = sanitize_acf(record.acf, clear_interlinks=clear_interlinks)
    acf[DISABLE_INTERLINKING_KEY] = False
    for field in image_fields:
        acf.pop(field, None)

    return {
        "title": record.title,
        "slug": record.slug,
        "status": record.status,
        "content": record.content,
        PAGE_CATEGORY_KEY: [page_category],
        "acf": acf,
    }
