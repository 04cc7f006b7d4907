"""
Service icon catalog and matching.

* :mod:`page_migrator.icons.library` – load or build the icon catalog
* :mod:`page_migrator.icons.matcher` – pick a unique icon per service title
"""

from .library import load_icon_library, load_or_fetch_icon_catalog
from .matcher import assign_icons_to_services, normalize_service_title, select_icon

__all__ = [
    "assign_icons_to_services",
    "load_icon_library",
    "load_or_fetch_icon_catalog",
    "normalize_service_title",
    "select_icon",
]
