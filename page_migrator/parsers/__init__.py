"""
Parsers and converters used by the migration pipeline.

Currently this subpackage exposes ``build_payload``, ``sanitize_acf`` and
``track_image_fields`` from :mod:`page_migrator.parsers.payload_builder`.
"""

from .payload_builder import build_payload, sanitize_acf, track_image_fields

__all__ = ["build_payload", "sanitize_acf", "track_image_fields"]
