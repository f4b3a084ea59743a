"""
Pure document helpers for the registry.

These functions reshape App Registry and Org documents before a write.
They never touch storage and never mutate their arguments: each returns a
new document, and callers still have to upsert it.
"""

import copy
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..constants import (DEFAULT_BASE_POINTS_PER_STOP, DEFAULT_BONUS_CREATIVE,
                         DEFAULT_TEAMS, HUNT_STATUS_SCHEDULED,
                         LATEST_ORG_VERSION, SCHEMA_VERSION_FIELD)

logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    """Current UTC time as an ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()


def slugify(text: str) -> str:
    """Convert text to a lowercase, hyphen-separated slug."""
    text = text.lower().strip()
    text = re.sub(r"[^a-z0-9\s-]", "", text)
    text = re.sub(r"[-\s]+", "-", text)
    return text.strip("-")


def generate_hunt_slug(hunt_name: str) -> str:
    return slugify(hunt_name)


def generate_hunt_id(hunt_name: str, start_date: str) -> str:
    """Hunt id ``{slug}-{YYYYMMDD}`` from the hunt name and its start date."""
    return f"{generate_hunt_slug(hunt_name)}-{start_date.replace('-', '')}"


def add_organization(app_data: Dict[str, Any], summary: Dict[str, Any]) -> Dict[str, Any]:
    """
    Insert or replace an organization summary, matched by ``orgSlug``.

    Returns:
        New App Registry document; an existing entry keeps its position
    """
    updated = copy.deepcopy(app_data)
    organizations: List[Dict[str, Any]] = updated.setdefault("organizations", [])
    entry = copy.deepcopy(summary)

    for index, existing in enumerate(organizations):
        if existing.get("orgSlug") == entry.get("orgSlug"):
            logger.debug(f"Replacing organization '{entry.get('orgSlug')}' in app registry")
            organizations[index] = entry
            return updated

    logger.debug(
        f"Adding organization '{entry.get('orgSlug')}' to app registry "
        f"(total: {len(organizations) + 1})"
    )
    organizations.append(entry)
    return updated


def add_hunt_to_org(org_data: Dict[str, Any], hunt: Dict[str, Any]) -> Dict[str, Any]:
    """
    Insert or replace a hunt, matched by ``id``.

    Returns:
        New Org document; an existing hunt keeps its position
    """
    updated = copy.deepcopy(org_data)
    hunts: List[Dict[str, Any]] = updated.setdefault("hunts", [])
    entry = copy.deepcopy(hunt)

    for index, existing in enumerate(hunts):
        if existing.get("id") == entry.get("id"):
            logger.debug(f"Replacing hunt '{entry.get('id')}' in org document")
            hunts[index] = entry
            return updated

    logger.debug(f"Adding hunt '{entry.get('id')}' to org document (total: {len(hunts) + 1})")
    hunts.append(entry)
    return updated


def update_by_date_index(
    app_data: Dict[str, Any],
    date_str: str,
    org_slug: str,
    hunt_id: str,
    hunt_name: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Record a hunt under a date in ``byDate``, matched by ``(orgSlug, huntId)``.

    Entries for a date stay in insertion order.
    """
    updated = copy.deepcopy(app_data)
    if not updated.get("byDate"):
        updated["byDate"] = {}
    entries: List[Dict[str, Any]] = updated["byDate"].setdefault(date_str, [])

    entry: Dict[str, Any] = {"orgSlug": org_slug, "huntId": hunt_id}
    if hunt_name:
        entry["huntName"] = hunt_name

    for index, existing in enumerate(entries):
        if existing.get("orgSlug") == org_slug and existing.get("huntId") == hunt_id:
            entries[index] = entry
            return updated

    entries.append(entry)
    logger.debug(f"Indexed hunt '{hunt_id}' of '{org_slug}' under {date_str}")
    return updated


def create_new_org(
    org_slug: str,
    org_name: str,
    contacts: List[Dict[str, Any]],
    timezone_name: Optional[str] = None,
) -> Dict[str, Any]:
    """New Org document at the latest schema version with default teams and no hunts."""
    settings: Dict[str, Any] = {"defaultTeams": list(DEFAULT_TEAMS)}
    if timezone_name:
        settings["timezone"] = timezone_name

    org = {
        SCHEMA_VERSION_FIELD: LATEST_ORG_VERSION,
        "updatedAt": utc_now_iso(),
        "org": {
            "orgSlug": org_slug,
            "orgName": org_name,
            "contacts": copy.deepcopy(contacts),
            "settings": settings,
        },
        "hunts": [],
    }
    logger.info(f"Created organization '{org_slug}' with {len(contacts)} contact(s)")
    return org


def create_new_hunt(
    hunt_name: str,
    start_date: str,
    end_date: str,
    created_by: str,
    location: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """
    New hunt with default access, scoring and moderation.

    The hunt starts ``scheduled``, public, without stops, and carries an
    audit trail naming its creator.
    """
    hunt: Dict[str, Any] = {
        "id": generate_hunt_id(hunt_name, start_date),
        "slug": generate_hunt_slug(hunt_name),
        "name": hunt_name,
        "startDate": start_date,
        "endDate": end_date,
        "status": HUNT_STATUS_SCHEDULED,
        "access": {"visibility": "public", "pinRequired": False},
        "scoring": {
            "basePerStop": DEFAULT_BASE_POINTS_PER_STOP,
            "bonusCreative": DEFAULT_BONUS_CREATIVE,
        },
        "moderation": {"required": False, "reviewers": []},
        "stops": [],
        "audit": {"createdBy": created_by, "createdAt": utc_now_iso()},
    }
    if location:
        hunt["location"] = dict(location)
    logger.info(f"Created hunt '{hunt['id']}' ({start_date} to {end_date}) by {created_by}")
    return hunt
