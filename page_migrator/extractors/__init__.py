"""
Extractors for staged WordPress pages.

This subpackage provides functions to fetch pages from the source site by
slug, save them as JSON files, and load those files back as validated
:class:`~page_migrator.models.page.StagedRecord` objects for the migrator.
"""
