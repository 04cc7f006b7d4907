"""
Assignment of service icons from free-text service titles.

:func:`select_icon` picks one icon for a title from the icons not yet used in
the current run.  The strategy, first success wins:

1. exact lookup of the normalized title in :data:`SERVICE_ICON_MAPPINGS`;
2. keyword scoring: +2 for every word whose :data:`KEYWORD_ICON_MAPPINGS`
   entry names the icon, +1 if the icon name occurs in the title;
3. the generic icons of :data:`FALLBACK_ICONS`, in order;
4. any unused icon, in library order.

It never mutates its arguments.  :func:`assign_icons_to_services` is the
per-page driver: it records each chosen icon in the run's ``used`` set before
moving to the next service, which keeps icons unique across every page of a
run.
"""

from __future__ import annotations

import re
import warnings
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning

from page_migrator.models.page import SERVICE_ICON_KEY, SERVICE_TITLE_KEY, IconResource
from page_migrator.utils.errors import log_message

# Normalized service title -> icon name
SERVICE_ICON_MAPPINGS: Dict[str, str] = {
    "managed it services": "shield-2",
    "it consulting": "analytics-2",
    "it helpdesk": "helpdesk",
    "network support": "Network",
    "network management": "Network",
    "cloud services": "Cloud App",
    "cloud solutions": "cloud-1",
    "cloud integration": "cloud-connect",
    "cybersecurity": "firewall",
    "cybersecurity solutions": "shield-2",
    "cybersecurity protection": "shield-3",
    "it support": "headphones",
    "24/7 it support": "helpdesk",
    "24/7 live support": "helpdesk-head",
    "data backup and recovery": "backup-files",
    "data backup & recovery": "backup-files",
    "it compliance and audits": "certificate",
    "compliance solutions": "certificate-2",
    "voip services": "phone-1",
    "voip solutions": "phone-2",
    "strategic it consulting": "business-2",
    "device management": "Monitoring",
    "business continuity": "business-3",
    "help desk": "headphones",
    "cloud computing": "Cloud Internet",
    "security": "shield-2",
    "backup": "backup-files",
    "disaster recovery": "business-3",
}

# Single word -> icon name
KEYWORD_ICON_MAPPINGS: Dict[str, str] = {
    "cloud": "cloud-1",
    "security": "shield-2",
    "cyber": "firewall",
    "network": "Network",
    "backup": "backup-files",
    "recovery": "backup-files",
    "voip": "phone-1",
    "phone": "phone-2",
    "call": "phone-1",
    "helpdesk": "helpdesk",
    "support": "headphones",
    "help": "helpdesk-head",
    "consult": "analytics-2",
    "monitor": "Monitoring",
    "compliance": "certificate",
    "audit": "certificate-2",
    "manage": "gear-man",
    "device": "monitor-1",
    "data": "Folder Data",
    "analytics": "analytics-2",
    "business": "business-2",
    "continuity": "business-3",
}

FALLBACK_ICONS = ("gear-man", "business-2", "apps")

_WS_RE = re.compile(r"\s+")


def normalize_service_title(title: Any) -> str:
    """Strip markup, lowercase and collapse whitespace.  Non-strings give ``""``."""
    if not title or not isinstance(title, str):
        return ""
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", MarkupResemblesLocatorWarning)
        text = BeautifulSoup(title, "html.parser").get_text()
    return _WS_RE.sub(" ", text.replace("\xa0", " ").lower()).strip()


def find_available_icon(icon_name: str, library: Iterable[IconResource], used: Set[int]) -> Optional[IconResource]:
    """First unused icon whose name matches ``icon_name`` case-insensitively."""
    wanted = icon_name.lower()
    for icon in library:
        if icon.icon_name.lower() == wanted and icon.id not in used:
            return icon
    return None


def score_icon(normalized_title: str, icon_name: str) -> int:
    name = icon_name.lower()
    score = 0
    for word in normalized_title.split(" "):
        mapped = KEYWORD_ICON_MAPPINGS.get(word)
        if mapped and mapped.lower() == name:
            score += 2
    if name in normalized_title:
        score += 1
    return score


def select_icon(label: Any, library: Sequence[IconResource], used: Set[int]) -> Optional[IconResource]:
    """Pick the best unused icon for ``label``, or ``None`` if none fits or remains."""
    normalized = normalize_service_title(label)
    if not normalized:
        return None

    exact = SERVICE_ICON_MAPPINGS.get(normalized)
    if exact:
        icon = find_available_icon(exact, library, used)
        if icon:
            return icon

    available = [icon for icon in library if icon.id not in used]
    if not available:
        return None

    best: Optional[IconResource] = None
    best_score = 0
    for icon in available:
        score = score_icon(normalized, icon.icon_name)
        # strictly greater: ties keep library order
        if score > best_score:
            best, best_score = icon, score
    if best is not None:
        return best

    for fallback in FALLBACK_ICONS:
        icon = find_available_icon(fallback, available, used)
        if icon:
            return icon

    return available[0]


def assign_icons_to_services(
    services: Optional[List[Dict[str, Any]]],
    library: Sequence[IconResource],
    used: Set[int],
) -> Optional[List[Dict[str, Any]]]:
    """
    Set ``service_icon`` on every service that has a title, in place.

    ``used`` belongs to the whole run; each chosen id is added to it before
    the next service is matched.  Services for which no icon remains get
    ``None``, as does every titled service when ``library`` is empty.
    """
    if not services or not isinstance(services, list):
        return services

    if not library:
        log_message("  No icons available in library, clearing service icons", level="WARNING")
        for service in services:
            if isinstance(service, dict) and service.get(SERVICE_TITLE_KEY):
                service[SERVICE_ICON_KEY] = None
        return services

    log_message(f"  Assigning icons to {len(services)} services...")
    assigned = 0
    for service in services:
        if not isinstance(service, dict) or not service.get(SERVICE_TITLE_KEY):
            continue

        title = normalize_service_title(service[SERVICE_TITLE_KEY])
        icon = select_icon(service[SERVICE_TITLE_KEY], library, used)
        if icon is None:
            log_message(f'    No unique icon found for: "{title}"', level="WARNING")
            service[SERVICE_ICON_KEY] = None
            continue

        service[SERVICE_ICON_KEY] = icon.id
        used.add(icon.id)
        assigned += 1
        log_message(f'    "{title}" -> {icon.icon_name} ({icon.id})', level="DEBUG")

    log_message(f"  Icons assigned: {assigned} ({len(used)} used in this run)")
    return services
