"""
The migration ledger: which source page became which destination page.

The ledger is a JSON array (``created_pages.json``) loaded fully at the start
of a run, updated in memory as pages are migrated and written back with
:meth:`MigrationLedger.save`.  The orchestrator saves after every page that
reaches the ledger step, so an interrupted run loses at most the page in
flight.  Writes go to a temporary file that replaces the ledger, leaving the
previous version intact if the process dies mid-write.
"""

from __future__ import annotations

import json
import os
from typing import Dict, Iterable, Iterator, List, Optional

from page_migrator.models.page import IMAGE_FIELDS, LedgerRecord
from page_migrator.utils.errors import MigrationError


class MigrationLedger:
    def __init__(self, path: str, records: Optional[List[LedgerRecord]] = None) -> None:
        self.path = path
        self._records: Dict[str, LedgerRecord] = {}
        for record in records or []:
            self.upsert(record)

    @classmethod
    def load(cls, path: str, image_fields: Iterable[str] = IMAGE_FIELDS) -> "MigrationLedger":
        """Read the ledger at ``path``.  A missing file gives an empty ledger.

        ``image_fields`` are the keys read back as media ids; it must match
        the fields the run uploads to.
        """
        if not os.path.exists(path):
            return cls(path)
        with open(path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise MigrationError(f"Ledger {path} is not valid JSON: {e}") from e
        if not isinstance(data, list):
            raise MigrationError(f"Ledger {path} must contain a JSON array")
        image_fields = tuple(image_fields)
        return cls(path, [LedgerRecord.from_json(item, image_fields) for item in data])

    def find(self, origin_id: str) -> Optional[LedgerRecord]:
        return self._records.get(str(origin_id))

    def upsert(self, record: LedgerRecord) -> LedgerRecord:
        """Insert ``record`` or replace the entry with the same ``originId``.

        Existing entries keep their position in the file.
        """
        self._records[record.origin_id] = record
        return record

    def save(self) -> None:
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump([r.to_json() for r in self], f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, self.path)

    def __iter__(self) -> Iterator[LedgerRecord]:
        return iter(self._records.values())

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, origin_id: object) -> bool:
        return str(origin_id) in self._records
