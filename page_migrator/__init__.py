"""
Top-level package for the WordPress page migration utility.

This package bundles all components required to move staged WordPress pages
onto a staging WordPress site: assigning unique service icons, cleaning ACF
data, creating or updating pages, uploading section images and keeping a
ledger that makes repeated runs update instead of duplicate.  Modules are
split into subpackages:

* :mod:`page_migrator.extractors` – fetch and load staged page JSON
* :mod:`page_migrator.icons` – icon catalog and icon matching
* :mod:`page_migrator.parsers` – staged page to REST payload conversion
* :mod:`page_migrator.migrators` – WordPress REST API calls with retries
* :mod:`page_migrator.utils` – errors, logging, ledger, image pool

Each layer has no direct knowledge of configuration or execution strategy;
orchestration is handled in :mod:`page_migrator.migration_tool`.
"""

__version__ = "0.1.0"
