"""
Data models shared by the migration layers.

Pages, ledger entries and icons are represented as pydantic models so that
malformed input is rejected at the boundary instead of deep inside the
pipeline.
"""

from .page import (
    IMAGE_FIELDS,
    IconResource,
    LedgerRecord,
    MigrationOutcome,
    RunReport,
    StagedRecord,
)

__all__ = [
    "IMAGE_FIELDS",
    "IconResource",
    "LedgerRecord",
    "MigrationOutcome",
    "RunReport",
    "StagedRecord",
]
