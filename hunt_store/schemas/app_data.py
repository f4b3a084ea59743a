"""
App Registry document schemas and migrations.

The App Registry is the global index: app metadata and feature flags, the
list of organization summaries and the date index used for "what is on
today" lookups.

Versions:
- 0.9.0: legacy flat layout (``appName``, ``orgs[].slug``, ``dateIndex``),
  checked with a JSON Schema
- 1.0.0: nested ``app`` section and ``organizations`` summaries
- 1.1.0: adds ``app.privacy`` and ``app.limits``
- 1.2.0: adds video upload and advanced validation feature flags
"""

import logging
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, EmailStr, Field

from ..constants import (DEFAULT_APP_NAME, DEFAULT_IMAGE_MEDIA_TYPES,
                         DEFAULT_LOCALE, DEFAULT_MAX_PHOTOS_PER_TEAM,
                         DEFAULT_MAX_UPLOAD_SIZE_MB,
                         DEFAULT_MEDIA_RETENTION_DAYS, DEFAULT_ORG_KEY_PREFIX,
                         DEFAULT_TIMEZONE, KIND_APP_DATA, LATEST_APP_VERSION,
                         LEGACY_SCHEMA_VERSION, LEGACY_TIMESTAMP,
                         SCHEMA_VERSION_FIELD, VIDEO_MAX_UPLOAD_SIZE_MB,
                         VIDEO_MEDIA_TYPES)
from .migrations import MigrationEngine, MigrationStep
from .versions import (DocumentModel, JsonSchemaValidator, ModelValidator,
                       SchemaRegistry, SchemaVersion)

logger = logging.getLogger(__name__)

# Environment assumed for legacy documents that never recorded one
LEGACY_ENVIRONMENT = "production"


# ============================================================================
# 0.9.0 (legacy)
# ============================================================================

APP_DATA_SCHEMA_0_9_0: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "schemaVersion": {"type": "string", "default": LEGACY_SCHEMA_VERSION},
        "appName": {"type": "string"},
        "environment": {"type": "string"},
        "version": {"type": "string"},
        "etag": {"type": "string"},
        "useKVStore": {"type": "boolean"},
        "useBlobStore": {"type": "boolean"},
        "photoUploads": {"type": "boolean", "default": True},
        "showMap": {"type": "boolean", "default": False},
        "defaultTimezone": {"type": "string", "default": DEFAULT_TIMEZONE},
        "defaultLocale": {"type": "string", "default": DEFAULT_LOCALE},
        "mapConfig": {
            "type": "object",
            "properties": {
                "provider": {"type": "string"},
                "tileUrl": {"type": "string"},
                "attribution": {"type": "string"},
            },
        },
        "emailConfig": {
            "type": "object",
            "properties": {
                "from": {"type": "string", "format": "email"},
                "enabled": {"type": "boolean"},
            },
        },
        "orgs": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "slug": {"type": "string"},
                    "name": {"type": "string"},
                    "contactEmail": {"type": "string", "format": "email"},
                    "createdAt": {"type": "string"},
                    "huntCount": {"type": "number"},
                    "commonTeams": {"type": "array", "items": {"type": "string"}},
                },
                "required": ["slug", "name", "contactEmail"],
            },
        },
        "dateIndex": {
            "type": "object",
            "additionalProperties": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "orgSlug": {"type": "string"},
                        "huntId": {"type": "string"},
                    },
                    "required": ["orgSlug", "huntId"],
                },
            },
        },
        "updatedAt": {"type": "string"},
    },
    "required": ["appName"],
}


# ============================================================================
# 1.x models
# ============================================================================


class AppMetadata(DocumentModel):
    name: str
    environment: str
    ui_version: Optional[str] = None


class AppFeaturesV1_0(DocumentModel):
    enable_kv_events: bool = Field(default=False, alias="enableKVEvents")
    enable_blob_events: bool = Field(default=False, alias="enableBlobEvents")
    enable_photo_upload: bool = True
    enable_map_page: bool = False


class AppFeaturesV1_2(AppFeaturesV1_0):
    enable_video_upload: bool = False
    enable_advanced_validation: bool = False


class AppDefaults(DocumentModel):
    timezone: str = DEFAULT_TIMEZONE
    locale: str = DEFAULT_LOCALE


class AppMap(DocumentModel):
    tile_provider: Optional[str] = None
    tile_url: Optional[str] = None
    attribution: Optional[str] = None


class AppEmail(DocumentModel):
    from_address: Optional[EmailStr] = None
    sending_enabled: bool = False


class AppPrivacy(DocumentModel):
    media_retention_days: int = DEFAULT_MEDIA_RETENTION_DAYS
    data_deletion_contact: Optional[EmailStr] = None


class AppLimits(DocumentModel):
    max_upload_size_mb: int = Field(default=DEFAULT_MAX_UPLOAD_SIZE_MB, alias="maxUploadSizeMB")
    max_photos_per_team: int = DEFAULT_MAX_PHOTOS_PER_TEAM
    allowed_media_types: List[str] = Field(
        default_factory=lambda: list(DEFAULT_IMAGE_MEDIA_TYPES[:2])
    )


class OrgSummary(DocumentModel):
    hunts_total: int = 0
    teams_common: List[str] = Field(default_factory=list)


class OrganizationSummary(DocumentModel):
    """Entry of ``organizations``; ``contactEmail`` is accepted on input."""

    org_slug: str = Field(min_length=1)
    org_name: str = Field(min_length=1)
    primary_contact_email: EmailStr = Field(
        validation_alias=AliasChoices("primaryContactEmail", "contactEmail"),
        serialization_alias="primaryContactEmail",
    )
    created_at: str
    org_blob_key: str
    status: Optional[str] = None
    summary: Optional[OrgSummary] = None


class HuntIndexEntry(DocumentModel):
    org_slug: str = Field(min_length=1)
    hunt_id: str = Field(min_length=1)
    hunt_name: Optional[str] = None


class AppSectionV1_0(DocumentModel):
    metadata: AppMetadata
    features: AppFeaturesV1_0
    defaults: AppDefaults
    map: Optional[AppMap] = None
    email: Optional[AppEmail] = None


class AppSectionV1_1(AppSectionV1_0):
    privacy: Optional[AppPrivacy] = None
    limits: Optional[AppLimits] = None


class AppSectionV1_2(AppSectionV1_1):
    features: AppFeaturesV1_2


class AppDataV1_0(DocumentModel):
    schema_version: Literal["1.0.0"] = "1.0.0"
    etag: Optional[str] = None
    updated_at: str
    app: AppSectionV1_0
    organizations: List[OrganizationSummary]
    by_date: Optional[Dict[str, List[HuntIndexEntry]]] = None


class AppDataV1_1(AppDataV1_0):
    schema_version: Literal["1.1.0"] = "1.1.0"
    app: AppSectionV1_1


class AppDataV1_2(AppDataV1_1):
    schema_version: Literal["1.2.0"] = "1.2.0"
    app: AppSectionV1_2


# ============================================================================
# Migrations
# ============================================================================


def _source_timestamp(data: Dict[str, Any]) -> str:
    return data.get("updatedAt") or LEGACY_TIMESTAMP


def _drop_none(section: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in section.items() if v is not None}


def migrate_app_0_9_0_to_1_0_0(data: Dict[str, Any]) -> Dict[str, Any]:
    """Reshape the flat legacy layout into the nested 1.0.0 layout."""
    # Some legacy writers nested everything under "metadata"
    legacy = data.get("metadata") if isinstance(data.get("metadata"), dict) else data
    updated_at = _source_timestamp(data)

    app: Dict[str, Any] = {
        "metadata": _drop_none(
            {
                "name": legacy.get("appName") or DEFAULT_APP_NAME,
                "environment": legacy.get("environment") or LEGACY_ENVIRONMENT,
                "uiVersion": legacy.get("version"),
            }
        ),
        "features": {
            "enableKVEvents": bool(legacy.get("useKVStore", False)),
            "enableBlobEvents": bool(legacy.get("useBlobStore", False)),
            "enablePhotoUpload": legacy.get("photoUploads") is not False,
            "enableMapPage": bool(legacy.get("showMap", False)),
        },
        "defaults": {
            "timezone": legacy.get("defaultTimezone") or DEFAULT_TIMEZONE,
            "locale": legacy.get("defaultLocale") or DEFAULT_LOCALE,
        },
    }

    map_config = legacy.get("mapConfig")
    if map_config:
        app["map"] = _drop_none(
            {
                "tileProvider": map_config.get("provider"),
                "tileUrl": map_config.get("tileUrl"),
                "attribution": map_config.get("attribution"),
            }
        )

    email_config = legacy.get("emailConfig")
    if email_config:
        app["email"] = _drop_none(
            {
                "fromAddress": email_config.get("from"),
                "sendingEnabled": bool(email_config.get("enabled", False)),
            }
        )

    organizations = []
    for org in legacy.get("orgs") or []:
        slug = org.get("slug") or org.get("id")
        contact = org.get("contact") or {}
        organizations.append(
            {
                "orgSlug": slug,
                "orgName": org.get("name"),
                "primaryContactEmail": org.get("contactEmail") or contact.get("email"),
                "createdAt": org.get("createdAt") or updated_at,
                "orgBlobKey": f"{DEFAULT_ORG_KEY_PREFIX}{slug}.json",
                "summary": {
                    "huntsTotal": org.get("huntCount") or 0,
                    "teamsCommon": list(org.get("commonTeams") or []),
                },
            }
        )

    result: Dict[str, Any] = {
        SCHEMA_VERSION_FIELD: "1.0.0",
        "updatedAt": updated_at,
        "app": app,
        "organizations": organizations,
    }
    if legacy.get("etag"):
        result["etag"] = legacy["etag"]
    if legacy.get("dateIndex"):
        result["byDate"] = legacy["dateIndex"]
    return result


def migrate_app_1_0_0_to_1_1_0(data: Dict[str, Any]) -> Dict[str, Any]:
    """Add privacy and limits sections with their defaults."""
    app = dict(data["app"])
    app.setdefault("privacy", {"mediaRetentionDays": DEFAULT_MEDIA_RETENTION_DAYS})
    app.setdefault(
        "limits",
        {
            "maxUploadSizeMB": DEFAULT_MAX_UPLOAD_SIZE_MB,
            "maxPhotosPerTeam": DEFAULT_MAX_PHOTOS_PER_TEAM,
            "allowedMediaTypes": list(DEFAULT_IMAGE_MEDIA_TYPES),
        },
    )
    return {**data, SCHEMA_VERSION_FIELD: "1.1.0", "updatedAt": _source_timestamp(data), "app": app}


def migrate_app_1_1_0_to_1_2_0(data: Dict[str, Any]) -> Dict[str, Any]:
    """Enable video uploads and raise the upload limit accordingly."""
    app = dict(data["app"])
    app["features"] = {
        **app.get("features", {}),
        "enableVideoUpload": True,
        "enableAdvancedValidation": False,
    }

    limits = dict(app.get("limits") or {})
    media_types = list(limits.get("allowedMediaTypes") or DEFAULT_IMAGE_MEDIA_TYPES)
    media_types.extend(t for t in VIDEO_MEDIA_TYPES if t not in media_types)
    limits["maxUploadSizeMB"] = VIDEO_MAX_UPLOAD_SIZE_MB
    limits.setdefault("maxPhotosPerTeam", DEFAULT_MAX_PHOTOS_PER_TEAM)
    limits["allowedMediaTypes"] = media_types
    app["limits"] = limits

    return {**data, SCHEMA_VERSION_FIELD: "1.2.0", "updatedAt": _source_timestamp(data), "app": app}


APP_DATA_MIGRATIONS = (
    MigrationStep(
        "0.9.0",
        "1.0.0",
        migrate_app_0_9_0_to_1_0_0,
        "Transform legacy app format to nested structure",
    ),
    MigrationStep(
        "1.0.0", "1.1.0", migrate_app_1_0_0_to_1_1_0, "Add privacy and limits configuration"
    ),
    MigrationStep(
        "1.1.0",
        "1.2.0",
        migrate_app_1_1_0_to_1_2_0,
        "Add video upload support and enhanced feature flags",
    ),
)


def register_app_data_versions(registry: SchemaRegistry) -> None:
    """Register every App Registry schema version."""
    registry.register_version(
        KIND_APP_DATA,
        SchemaVersion(
            version="0.9.0",
            validator=JsonSchemaValidator(APP_DATA_SCHEMA_0_9_0),
            description="Legacy flat structure before nested organization",
            deprecated=True,
            migration_target="1.0.0",
        ),
    )
    registry.register_version(
        KIND_APP_DATA,
        SchemaVersion(
            version="1.0.0",
            validator=ModelValidator(AppDataV1_0),
            description="Structured format with nested app configuration",
        ),
    )
    registry.register_version(
        KIND_APP_DATA,
        SchemaVersion(
            version="1.1.0",
            validator=ModelValidator(AppDataV1_1),
            description="Adds privacy and limits configuration sections",
        ),
    )
    registry.register_version(
        KIND_APP_DATA,
        SchemaVersion(
            version=LATEST_APP_VERSION,
            validator=ModelValidator(AppDataV1_2),
            description="Video support and enhanced feature flags",
        ),
    )
    registry.set_default_version(KIND_APP_DATA, LEGACY_SCHEMA_VERSION)


def register_app_data_migrations(engine: MigrationEngine) -> None:
    """Register the App Registry migration chain."""
    for step in APP_DATA_MIGRATIONS:
        engine.register_migration(KIND_APP_DATA, step)
    logger.debug(f"App data migrations registered: {engine.get_available_versions(KIND_APP_DATA)}")


def default_app_data(environment: str, updated_at: str) -> Dict[str, Any]:
    """
    Empty App Registry document at the latest version.

    Returned by the registry service when no App Registry exists yet.
    """
    return {
        SCHEMA_VERSION_FIELD: LATEST_APP_VERSION,
        "updatedAt": updated_at,
        "app": {
            "metadata": {"name": DEFAULT_APP_NAME, "environment": environment},
            "features": {
                "enableKVEvents": False,
                "enableBlobEvents": False,
                "enablePhotoUpload": True,
                "enableMapPage": False,
                "enableVideoUpload": True,
                "enableAdvancedValidation": False,
            },
            "defaults": {"timezone": DEFAULT_TIMEZONE, "locale": DEFAULT_LOCALE},
        },
        "organizations": [],
        "byDate": {},
    }
