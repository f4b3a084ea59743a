"""
Organization document schemas and migrations.

One document per organization: the org profile (contacts, settings) and
its hunts with teams, stops and rules.

Versions:
- 0.9.0: legacy layout with alternate field names (``slug``/``orgSlug``,
  ``title``/``name``, single ``contact``), checked with a JSON Schema
- 1.0.0: structured ``org`` section and hunt records
- 1.1.0: adds upload tracking on hunts and teams
- 1.2.0: access, scoring and moderation become mandatory; stops always
  state their submission requirements
"""

import logging
import re
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import AfterValidator, EmailStr, Field

from ..constants import (DEFAULT_BASE_POINTS_PER_STOP, DEFAULT_BONUS_CREATIVE,
                         DEFAULT_STOP_RADIUS_METERS, DEFAULT_TEAMS,
                         HUNT_STATUS_SCHEDULED, KIND_ORG_DATA,
                         LATEST_ORG_VERSION, LEGACY_SCHEMA_VERSION,
                         LEGACY_TIMESTAMP, SCHEMA_VERSION_FIELD,
                         SUPPORTED_HUNT_STATUSES)
from .migrations import MigrationEngine, MigrationStep
from .versions import (DocumentModel, JsonSchemaValidator, ModelValidator,
                       SchemaRegistry, SchemaVersion)

logger = logging.getLogger(__name__)

DEFAULT_RULES_ACKNOWLEDGEMENT = "I acknowledge that I have read and agree to follow these rules."

_URL_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://[^\s/$.?#][^\s]*$")
_SLUG_UNSAFE = re.compile(r"[^a-z0-9-]", re.IGNORECASE)


def _check_url(value: str) -> str:
    if not _URL_PATTERN.match(value):
        raise ValueError("value is not a valid URL")
    return value


Url = Annotated[str, AfterValidator(_check_url)]

HuntStatus = Literal["scheduled", "active", "completed", "archived"]


# ============================================================================
# 0.9.0 (legacy)
# ============================================================================

_PERSON = {
    "type": "object",
    "properties": {
        "firstName": {"type": "string"},
        "lastName": {"type": "string"},
        "email": {"type": "string"},
    },
}

ORG_DATA_SCHEMA_0_9_0: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "schemaVersion": {"type": "string", "default": LEGACY_SCHEMA_VERSION},
        "etag": {"type": "string"},
        "orgSlug": {"type": "string"},
        "orgName": {"type": "string"},
        "name": {"type": "string"},
        "slug": {"type": "string"},
        "contact": {
            "type": "object",
            "properties": {
                "firstName": {"type": "string"},
                "lastName": {"type": "string"},
                "first_name": {"type": "string"},
                "last_name": {"type": "string"},
                "email": {"type": "string", "format": "email"},
                "contactEmail": {"type": "string", "format": "email"},
                "role": {"type": "string"},
                "position": {"type": "string"},
            },
            "required": ["email"],
        },
        "contactEmail": {"type": "string", "format": "email"},
        "contacts": {"type": "array"},
        "defaultTeams": {"type": "array", "items": {"type": "string"}},
        "teams": {"type": "array", "items": {"type": "string"}},
        "timezone": {"type": "string"},
        "defaultTimezone": {"type": "string"},
        "hunts": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "string"},
                    "huntId": {"type": "string"},
                    "slug": {"type": "string"},
                    "name": {"type": "string"},
                    "title": {"type": "string"},
                    "date": {"type": "string"},
                    "startDate": {"type": "string"},
                    "endDate": {"type": "string"},
                    "time": {"type": "object"},
                    "location": {"type": "object"},
                    "status": {"type": "string"},
                    "visibility": {"type": "string"},
                    "access": {"type": "object"},
                    "joinCode": {"type": "string"},
                    "pinRequired": {"type": "boolean"},
                    "pointsPerStop": {"type": "number"},
                    "bonusPoints": {"type": "number"},
                    "scoring": {"type": "object"},
                    "requiresApproval": {"type": "boolean"},
                    "reviewers": {"type": "array", "items": {"type": "string"}},
                    "moderation": {"type": "object"},
                    "teams": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "name": {"type": "string"},
                                "teamName": {"type": "string"},
                                "captain": _PERSON,
                                "captainName": {"type": "string"},
                                "captainEmail": {"type": "string"},
                                "members": {"type": "array"},
                            },
                        },
                    },
                    "teamCaptain": _PERSON,
                    "teamMembers": {"type": "array"},
                    "uploadCount": {"type": "number"},
                    "photoCount": {"type": "number"},
                    "videoCount": {"type": "number"},
                    "lastUpload": {"type": "string"},
                    "stops": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "id": {"type": "string"},
                                "stopId": {"type": "string"},
                                "name": {"type": "string"},
                                "title": {"type": "string"},
                                "lat": {"type": ["number", "string"]},
                                "lng": {"type": ["number", "string"]},
                                "latitude": {"type": ["number", "string"]},
                                "longitude": {"type": ["number", "string"]},
                                "radius": {"type": "number"},
                                "radiusMeters": {"type": "number"},
                                "description": {"type": "string"},
                                "difficulty": {"type": "string"},
                                "hints": {
                                    "type": "array",
                                    "items": {
                                        "anyOf": [
                                            {"type": "string"},
                                            {
                                                "type": "object",
                                                "properties": {
                                                    "text": {"type": "string"},
                                                    "delay": {"type": "number"},
                                                },
                                                "required": ["text"],
                                            },
                                        ]
                                    },
                                },
                                "requirements": {"type": "array", "items": {"type": "object"}},
                                "assets": {"type": "array"},
                            },
                        },
                    },
                    "rules": {"type": "object"},
                },
            },
        },
        "updatedAt": {"type": "string"},
    },
}


# ============================================================================
# 1.x models
# ============================================================================


class Contact(DocumentModel):
    first_name: str
    last_name: str
    email: EmailStr
    role: Optional[str] = None


class OrgSettings(DocumentModel):
    default_teams: List[str] = Field(default_factory=lambda: list(DEFAULT_TEAMS))
    timezone: Optional[str] = None


class OrgProfile(DocumentModel):
    org_slug: str = Field(min_length=1)
    org_name: str = Field(min_length=1)
    contacts: List[Contact]
    settings: OrgSettings


class HuntAccess(DocumentModel):
    visibility: Literal["public", "invite", "private"] = "public"
    join_code: Optional[str] = None
    pin_required: bool = False


class HuntScoring(DocumentModel):
    base_per_stop: int = DEFAULT_BASE_POINTS_PER_STOP
    bonus_creative: int = DEFAULT_BONUS_CREATIVE


class HuntModeration(DocumentModel):
    required: bool = False
    reviewers: List[str] = Field(default_factory=list)


class HuntTime(DocumentModel):
    start: Optional[str] = None
    end: Optional[str] = None
    timezone: Optional[str] = None


class HuntLocation(DocumentModel):
    city: str
    state: str
    zip: str


class Person(DocumentModel):
    first_name: str
    last_name: str
    email: EmailStr


class TeamMember(DocumentModel):
    first_name: str
    last_name: str
    email: Optional[EmailStr] = None


class UploadSummary(DocumentModel):
    total: int = 0
    photos: int = 0
    videos: int = 0
    last_uploaded_at: Optional[str] = None


class TeamV1_0(DocumentModel):
    name: str
    captain: Person
    members: List[TeamMember] = Field(default_factory=list)


class TeamV1_1(TeamV1_0):
    uploads: Optional[UploadSummary] = None


class UploadStore(DocumentModel):
    blobs_prefix: Optional[str] = None
    cloudinary_folder: Optional[str] = None


class HuntUploadsV1_0(DocumentModel):
    summary: UploadSummary


class HuntUploadsV1_1(HuntUploadsV1_0):
    store: Optional[UploadStore] = None


class Hint(DocumentModel):
    text: str
    delay: Optional[int] = None


class StopRequirement(DocumentModel):
    type: Literal["photo", "video", "text"] = "photo"
    required: bool = True
    description: Optional[str] = None


class StopAsset(DocumentModel):
    type: Literal["image", "video", "audio"]
    url: Url
    caption: Optional[str] = None


class StopAudit(DocumentModel):
    created_by: str
    created_at: str
    last_modified_by: Optional[str] = None
    last_modified_at: Optional[str] = None


class Stop(DocumentModel):
    id: str
    title: str
    lat: float
    lng: float
    radius_meters: int = DEFAULT_STOP_RADIUS_METERS
    description: Optional[str] = None
    difficulty: Optional[Literal["easy", "medium", "hard"]] = None
    hints: List[Hint] = Field(default_factory=list)
    requirements: List[StopRequirement] = Field(default_factory=list)
    assets: List[StopAsset] = Field(default_factory=list)
    audit: Optional[StopAudit] = None


class RulesAcknowledgement(DocumentModel):
    required: bool = False
    text: str = DEFAULT_RULES_ACKNOWLEDGEMENT


class RulesContent(DocumentModel):
    format: Literal["markdown", "plain", "html"] = "markdown"
    body: str


class Rules(DocumentModel):
    id: str
    version: str = "1.0"
    updated_at: str
    acknowledgement: RulesAcknowledgement
    content: RulesContent
    categories: Optional[List[str]] = None


class HuntStats(DocumentModel):
    teams_registered: int = 0
    photos_submitted: int = 0
    completed_stops: int = 0


class HuntAudit(DocumentModel):
    created_by: str
    created_at: str
    archived_at: Optional[str] = None


class HuntV1_0(DocumentModel):
    id: str = Field(min_length=1)
    slug: str = Field(min_length=1)
    name: str = Field(min_length=1)
    start_date: str
    end_date: str
    time: Optional[HuntTime] = None
    location: Optional[HuntLocation] = None
    status: HuntStatus = HUNT_STATUS_SCHEDULED
    access: Optional[HuntAccess] = None
    scoring: Optional[HuntScoring] = None
    moderation: Optional[HuntModeration] = None
    teams: Optional[List[TeamV1_0]] = None
    team_captain: Optional[Person] = None
    team_members: Optional[List[TeamMember]] = None
    uploads: Optional[HuntUploadsV1_0] = None
    stops: List[Stop] = Field(default_factory=list)
    rules: Optional[Rules] = None
    geo: Optional[Any] = None
    stats: Optional[HuntStats] = None
    audit: Optional[HuntAudit] = None


class HuntV1_1(HuntV1_0):
    teams: Optional[List[TeamV1_1]] = None
    uploads: Optional[HuntUploadsV1_1] = None


class HuntV1_2(HuntV1_1):
    access: HuntAccess
    scoring: HuntScoring
    moderation: HuntModeration


class OrgDataV1_0(DocumentModel):
    schema_version: Literal["1.0.0"] = "1.0.0"
    etag: Optional[str] = None
    updated_at: str
    org: OrgProfile
    hunts: List[HuntV1_0] = Field(default_factory=list)


class OrgDataV1_1(OrgDataV1_0):
    schema_version: Literal["1.1.0"] = "1.1.0"
    hunts: List[HuntV1_1] = Field(default_factory=list)


class OrgDataV1_2(OrgDataV1_1):
    schema_version: Literal["1.2.0"] = "1.2.0"
    hunts: List[HuntV1_2] = Field(default_factory=list)


# ============================================================================
# Migrations
# ============================================================================


def _source_timestamp(data: Dict[str, Any]) -> str:
    return data.get("updatedAt") or LEGACY_TIMESTAMP


def _drop_none(section: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in section.items() if v is not None}


def _hunt_status(status: Any) -> str:
    # Legacy documents carried free-form statuses
    if status in SUPPORTED_HUNT_STATUSES:
        return status
    return HUNT_STATUS_SCHEDULED


def _photo_requirement() -> Dict[str, Any]:
    return {"type": "photo", "required": True, "description": "Photo required"}


def _legacy_contacts(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    if isinstance(data.get("contacts"), list):
        return [
            _drop_none(
                {
                    "firstName": c.get("firstName") or c.get("first_name") or "Unknown",
                    "lastName": c.get("lastName") or c.get("last_name") or "Contact",
                    "email": c.get("email") or c.get("contactEmail"),
                    "role": c.get("role") or c.get("position"),
                }
            )
            for c in data["contacts"]
        ]
    contact = data.get("contact")
    if contact:
        return [
            _drop_none(
                {
                    "firstName": contact.get("firstName") or contact.get("first_name") or "Unknown",
                    "lastName": contact.get("lastName") or contact.get("last_name") or "Contact",
                    "email": contact.get("email"),
                    "role": contact.get("role") or contact.get("position"),
                }
            )
        ]
    return [
        {
            "firstName": "Unknown",
            "lastName": "Contact",
            "email": data.get("contactEmail") or "unknown@example.com",
        }
    ]


def _legacy_person(person: Dict[str, Any], full_name: Optional[str] = None) -> Dict[str, Any]:
    name_parts = (full_name or "").split(" ")
    return {
        "firstName": person.get("firstName") or name_parts[0] or "Unknown",
        "lastName": person.get("lastName") or " ".join(name_parts[1:]) or "Captain",
        "email": person.get("email") or "",
    }


def _legacy_team(team: Dict[str, Any]) -> Dict[str, Any]:
    captain = team.get("captain") or {}
    return {
        "name": team.get("name") or team.get("teamName"),
        "captain": _legacy_person(
            {**captain, "email": captain.get("email") or team.get("captainEmail")},
            team.get("captainName"),
        ),
        "members": list(team.get("members") or []),
    }


def _legacy_stop(stop: Dict[str, Any]) -> Dict[str, Any]:
    hints = [
        {"text": hint}
        if isinstance(hint, str)
        else _drop_none({"text": hint.get("text"), "delay": hint.get("delay")})
        for hint in stop.get("hints") or []
    ]
    requirements = [
        _drop_none(
            {
                "type": req.get("type") or "photo",
                "required": req.get("required") is not False,
                "description": req.get("description"),
            }
        )
        for req in stop.get("requirements") or []
    ] or [_photo_requirement()]

    return _drop_none(
        {
            "id": stop.get("id") or stop.get("stopId"),
            "title": stop.get("title") or stop.get("name"),
            "lat": float(stop.get("lat") or stop.get("latitude") or 0),
            "lng": float(stop.get("lng") or stop.get("longitude") or 0),
            "radiusMeters": stop.get("radiusMeters") or stop.get("radius") or DEFAULT_STOP_RADIUS_METERS,
            "description": stop.get("description"),
            "difficulty": stop.get("difficulty"),
            "hints": hints,
            "requirements": requirements,
            "assets": list(stop.get("assets") or []),
            "audit": stop.get("audit"),
        }
    )


def _legacy_rules(hunt_id: str, rules: Dict[str, Any], updated_at: str) -> Dict[str, Any]:
    acknowledgement = rules.get("acknowledgement") or {}
    content = rules.get("content") or {}
    return _drop_none(
        {
            "id": rules.get("id") or f"{hunt_id}-rules",
            "version": rules.get("version") or "1.0",
            "updatedAt": rules.get("updatedAt") or updated_at,
            "acknowledgement": {
                "required": bool(acknowledgement.get("required", False)),
                "text": acknowledgement.get("text") or "I acknowledge the hunt rules",
            },
            "content": {
                "format": content.get("format") or "markdown",
                "body": content.get("body") or rules.get("text") or "",
            },
            "categories": rules.get("categories"),
        }
    )


def _legacy_hunt(hunt: Dict[str, Any], updated_at: str) -> Dict[str, Any]:
    hunt_id = hunt.get("id") or hunt.get("huntId")
    access = hunt.get("access") or {}
    scoring = hunt.get("scoring") or {}
    moderation = hunt.get("moderation") or {}

    migrated: Dict[str, Any] = {
        "id": hunt_id,
        "slug": hunt.get("slug") or (_SLUG_UNSAFE.sub("-", hunt_id).lower() if hunt_id else None),
        "name": hunt.get("name") or hunt.get("title"),
        "startDate": hunt.get("startDate") or hunt.get("date"),
        "endDate": hunt.get("endDate") or hunt.get("date"),
        "status": _hunt_status(hunt.get("status")),
        "access": _drop_none(
            {
                "visibility": hunt.get("visibility") or access.get("visibility") or "public",
                "joinCode": hunt.get("joinCode") or access.get("joinCode"),
                "pinRequired": bool(hunt.get("pinRequired") or access.get("pinRequired")),
            }
        ),
        "scoring": {
            "basePerStop": scoring.get("basePerStop")
            or hunt.get("pointsPerStop")
            or DEFAULT_BASE_POINTS_PER_STOP,
            "bonusCreative": scoring.get("bonusCreative")
            or hunt.get("bonusPoints")
            or DEFAULT_BONUS_CREATIVE,
        },
        "moderation": {
            "required": bool(moderation.get("required") or hunt.get("requiresApproval")),
            "reviewers": list(moderation.get("reviewers") or hunt.get("reviewers") or []),
        },
        "uploads": {
            "summary": _drop_none(
                {
                    "total": hunt.get("uploadCount") or 0,
                    "photos": hunt.get("photoCount") or 0,
                    "videos": hunt.get("videoCount") or 0,
                    "lastUploadedAt": hunt.get("lastUpload"),
                }
            )
        },
        "stops": [_legacy_stop(stop) for stop in hunt.get("stops") or []],
    }

    if hunt.get("time"):
        migrated["time"] = _drop_none(
            {k: hunt["time"].get(k) for k in ("start", "end", "timezone")}
        )
    if hunt.get("location"):
        migrated["location"] = _drop_none(
            {k: hunt["location"].get(k) for k in ("city", "state", "zip")}
        )
    if hunt.get("teams"):
        migrated["teams"] = [_legacy_team(team) for team in hunt["teams"]]
    if hunt.get("teamCaptain"):
        migrated["teamCaptain"] = _legacy_person(hunt["teamCaptain"])
    if hunt.get("teamMembers"):
        migrated["teamMembers"] = list(hunt["teamMembers"])
    if hunt.get("rules"):
        migrated["rules"] = _legacy_rules(hunt_id, hunt["rules"], updated_at)
    if hunt.get("audit"):
        migrated["audit"] = hunt["audit"]

    return _drop_none(migrated)


def migrate_org_0_9_0_to_1_0_0(data: Dict[str, Any]) -> Dict[str, Any]:
    """Reshape the legacy organization layout into the 1.0.0 structure."""
    updated_at = _source_timestamp(data)
    result: Dict[str, Any] = {
        SCHEMA_VERSION_FIELD: "1.0.0",
        "updatedAt": updated_at,
        "org": {
            "orgSlug": data.get("orgSlug") or data.get("slug") or "unknown-org",
            "orgName": data.get("orgName") or data.get("name") or "Unknown Organization",
            "contacts": _legacy_contacts(data),
            "settings": _drop_none(
                {
                    "defaultTeams": list(
                        data.get("defaultTeams") or data.get("teams") or DEFAULT_TEAMS
                    ),
                    "timezone": data.get("timezone") or data.get("defaultTimezone"),
                }
            ),
        },
        "hunts": [_legacy_hunt(hunt, updated_at) for hunt in data.get("hunts") or []],
    }
    if data.get("etag"):
        result["etag"] = data["etag"]
    return result


def _empty_upload_summary() -> Dict[str, Any]:
    return {"total": 0, "photos": 0, "videos": 0}


def migrate_org_1_0_0_to_1_1_0(data: Dict[str, Any]) -> Dict[str, Any]:
    """Add upload tracking to hunts and their teams."""
    hunts = []
    for hunt in data.get("hunts") or []:
        hunt = dict(hunt)
        if hunt.get("teams"):
            hunt["teams"] = [
                {**team, "uploads": team.get("uploads") or _empty_upload_summary()}
                for team in hunt["teams"]
            ]
        hunt["uploads"] = hunt.get("uploads") or {
            "store": {
                "blobsPrefix": f"hunts/{hunt.get('id')}/uploads",
                "cloudinaryFolder": f"scavenger/entries/{hunt.get('slug')}",
            },
            "summary": _empty_upload_summary(),
        }
        hunts.append(hunt)
    return {**data, SCHEMA_VERSION_FIELD: "1.1.0", "updatedAt": _source_timestamp(data), "hunts": hunts}


def migrate_org_1_1_0_to_1_2_0(data: Dict[str, Any]) -> Dict[str, Any]:
    """Make access, scoring and moderation explicit and type every stop requirement."""
    hunts = []
    for hunt in data.get("hunts") or []:
        hunt = dict(hunt)
        hunt["access"] = hunt.get("access") or {"visibility": "public", "pinRequired": False}
        hunt["scoring"] = hunt.get("scoring") or {
            "basePerStop": DEFAULT_BASE_POINTS_PER_STOP,
            "bonusCreative": DEFAULT_BONUS_CREATIVE,
        }
        hunt["moderation"] = hunt.get("moderation") or {"required": False, "reviewers": []}
        hunt["stops"] = [
            {
                **stop,
                "requirements": [
                    {**req, "type": req.get("type") or "photo"}
                    for req in stop.get("requirements") or []
                ]
                or [_photo_requirement()],
                "assets": list(stop.get("assets") or []),
            }
            for stop in hunt.get("stops") or []
        ]
        hunts.append(hunt)
    return {**data, SCHEMA_VERSION_FIELD: "1.2.0", "updatedAt": _source_timestamp(data), "hunts": hunts}


ORG_DATA_MIGRATIONS = (
    MigrationStep(
        "0.9.0",
        "1.0.0",
        migrate_org_0_9_0_to_1_0_0,
        "Transform legacy organization format to structured layout",
    ),
    MigrationStep(
        "1.0.0", "1.1.0", migrate_org_1_0_0_to_1_1_0, "Add team and hunt upload tracking"
    ),
    MigrationStep(
        "1.1.0",
        "1.2.0",
        migrate_org_1_1_0_to_1_2_0,
        "Make hunt policies explicit and add stop requirements",
    ),
)


def register_org_data_versions(registry: SchemaRegistry) -> None:
    """Register every organization schema version."""
    registry.register_version(
        KIND_ORG_DATA,
        SchemaVersion(
            version="0.9.0",
            validator=JsonSchemaValidator(ORG_DATA_SCHEMA_0_9_0),
            description="Legacy structure before team and hunt modeling",
            deprecated=True,
            migration_target="1.0.0",
        ),
    )
    registry.register_version(
        KIND_ORG_DATA,
        SchemaVersion(
            version="1.0.0",
            validator=ModelValidator(OrgDataV1_0),
            description="Structured org profile and hunt records",
        ),
    )
    registry.register_version(
        KIND_ORG_DATA,
        SchemaVersion(
            version="1.1.0",
            validator=ModelValidator(OrgDataV1_1),
            description="Adds team and hunt upload tracking",
        ),
    )
    registry.register_version(
        KIND_ORG_DATA,
        SchemaVersion(
            version=LATEST_ORG_VERSION,
            validator=ModelValidator(OrgDataV1_2),
            description="Explicit hunt policies and typed stop requirements",
        ),
    )
    registry.set_default_version(KIND_ORG_DATA, LEGACY_SCHEMA_VERSION)


def register_org_data_migrations(engine: MigrationEngine) -> None:
    """Register the organization migration chain."""
    for step in ORG_DATA_MIGRATIONS:
        engine.register_migration(KIND_ORG_DATA, step)
    logger.debug(f"Org data migrations registered: {engine.get_available_versions(KIND_ORG_DATA)}")
