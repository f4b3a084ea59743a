"""
Pytest configuration and shared fixtures for HUNT_STORE tests.

This module provides:
- Sample documents for every schema version
- Schema system and registry service fixtures
- Mock MongoDB collection fixtures
"""

import copy
from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock

import pytest
from motor.motor_asyncio import AsyncIOMotorCollection

from hunt_store.config import StoreConfig
from hunt_store.constants import KIND_APP_DATA, KIND_ORG_DATA
from hunt_store.observability import MetricsCollector
from hunt_store.registry import RegistryService
from hunt_store.schemas import SchemaSystem, create_schema_system
from hunt_store.storage import InMemoryDocumentStore

UPDATED_AT = "2025-01-15T12:00:00+00:00"

# ============================================================================
# APP REGISTRY SAMPLES
# ============================================================================

LEGACY_APP: Dict[str, Any] = {
    "appName": "Vail Hunt",
    "environment": "production",
    "version": "0.4.2",
    "useKVStore": True,
    "useBlobStore": False,
    "photoUploads": True,
    "showMap": True,
    "mapConfig": {
        "provider": "osm",
        "tileUrl": "https://tile.openstreetmap.org/{z}/{x}/{y}.png",
        "attribution": "OpenStreetMap",
    },
    "orgs": [
        {
            "slug": "bhhs",
            "name": "Berkshire Hathaway HomeServices",
            "contactEmail": "owner@bhhs.com",
            "createdAt": "2024-06-01T00:00:00+00:00",
            "huntCount": 2,
            "commonTeams": ["RED", "BLUE"],
        }
    ],
    "dateIndex": {
        "2025-03-01": [{"orgSlug": "bhhs", "huntId": "winter-hunt-20250301"}],
    },
    "updatedAt": UPDATED_AT,
}

APP_V1_0: Dict[str, Any] = {
    "schemaVersion": "1.0.0",
    "updatedAt": UPDATED_AT,
    "app": {
        "metadata": {"name": "Vail Hunt", "environment": "production"},
        "features": {
            "enableKVEvents": False,
            "enableBlobEvents": False,
            "enablePhotoUpload": True,
            "enableMapPage": True,
        },
        "defaults": {"timezone": "America/Denver", "locale": "en-US"},
        "map": {"tileProvider": "osm"},
    },
    "organizations": [
        {
            "orgSlug": "bhhs",
            "orgName": "Berkshire Hathaway HomeServices",
            "primaryContactEmail": "owner@bhhs.com",
            "createdAt": "2024-06-01T00:00:00+00:00",
            "orgBlobKey": "orgs/bhhs.json",
        }
    ],
    "byDate": {},
}

APP_V1_1: Dict[str, Any] = {
    **APP_V1_0,
    "schemaVersion": "1.1.0",
    "app": {
        **APP_V1_0["app"],
        "privacy": {"mediaRetentionDays": 180, "dataDeletionContact": "privacy@vailhunt.com"},
        "limits": {
            "maxUploadSizeMB": 10,
            "maxPhotosPerTeam": 100,
            "allowedMediaTypes": ["image/jpeg", "image/png"],
        },
    },
}

APP_V1_2: Dict[str, Any] = {
    "schemaVersion": "1.2.0",
    "updatedAt": UPDATED_AT,
    "app": {
        "metadata": {"name": "Vail Hunt", "environment": "production", "uiVersion": "2.3.0"},
        "features": {
            "enableKVEvents": True,
            "enableBlobEvents": True,
            "enablePhotoUpload": True,
            "enableMapPage": True,
            "enableVideoUpload": True,
            "enableAdvancedValidation": False,
        },
        "defaults": {"timezone": "America/Denver", "locale": "en-US"},
        "map": {
            "tileProvider": "osm",
            "tileUrl": "https://tile.openstreetmap.org/{z}/{x}/{y}.png",
            "attribution": "OpenStreetMap",
        },
        "email": {"fromAddress": "hunts@vailhunt.com", "sendingEnabled": True},
        "privacy": {"mediaRetentionDays": 365, "dataDeletionContact": "privacy@vailhunt.com"},
        "limits": {
            "maxUploadSizeMB": 200,
            "maxPhotosPerTeam": 100,
            "allowedMediaTypes": ["image/jpeg", "image/png", "video/mp4"],
        },
    },
    "organizations": [
        {
            "orgSlug": "bhhs",
            "orgName": "Berkshire Hathaway HomeServices",
            "primaryContactEmail": "owner@bhhs.com",
            "createdAt": "2024-06-01T00:00:00+00:00",
            "orgBlobKey": "orgs/bhhs.json",
            "status": "active",
            "summary": {"huntsTotal": 1, "teamsCommon": ["RED", "BLUE"]},
        }
    ],
    "byDate": {
        "2025-03-01": [
            {"orgSlug": "bhhs", "huntId": "winter-hunt-20250301", "huntName": "Winter Hunt"}
        ],
    },
}

# ============================================================================
# ORG DOCUMENT SAMPLES
# ============================================================================

LEGACY_ORG: Dict[str, Any] = {
    "orgSlug": "bhhs",
    "orgName": "Berkshire Hathaway HomeServices",
    "contact": {"firstName": "Jane", "lastName": "Doe", "email": "jane@bhhs.com"},
    "timezone": "America/Denver",
    "hunts": [
        {
            "id": "winter-hunt-20250301",
            "title": "Winter Hunt",
            "date": "2025-03-01",
            "pointsPerStop": 15,
            "requiresApproval": True,
            "reviewers": ["jane@bhhs.com"],
            "teams": [
                {"teamName": "RED", "captainName": "Sam Smith", "captainEmail": "sam@bhhs.com"}
            ],
            "stops": [
                {
                    "stopId": "gondola",
                    "name": "Gondola One",
                    "latitude": "39.6403",
                    "longitude": "-106.3742",
                    "hints": ["Look up", {"text": "Near the ticket office", "delay": 300}],
                }
            ],
            "rules": {"text": "Stay on marked paths."},
        }
    ],
    "updatedAt": UPDATED_AT,
}

_HUNT_V1_0: Dict[str, Any] = {
    "id": "winter-hunt-20250301",
    "slug": "winter-hunt",
    "name": "Winter Hunt",
    "startDate": "2025-03-01",
    "endDate": "2025-03-01",
    "status": "scheduled",
    "stops": [
        {
            "id": "gondola",
            "title": "Gondola One",
            "lat": 39.6403,
            "lng": -106.3742,
            "requirements": [{"required": True, "description": "Team photo"}],
        }
    ],
}

ORG_V1_0: Dict[str, Any] = {
    "schemaVersion": "1.0.0",
    "updatedAt": UPDATED_AT,
    "org": {
        "orgSlug": "bhhs",
        "orgName": "Berkshire Hathaway HomeServices",
        "contacts": [{"firstName": "Jane", "lastName": "Doe", "email": "jane@bhhs.com"}],
        "settings": {"defaultTeams": ["RED", "BLUE"]},
    },
    "hunts": [_HUNT_V1_0],
}

ORG_V1_1: Dict[str, Any] = {
    **ORG_V1_0,
    "schemaVersion": "1.1.0",
    "hunts": [
        {
            **_HUNT_V1_0,
            "uploads": {
                "store": {"blobsPrefix": "hunts/winter-hunt-20250301/uploads"},
                "summary": {"total": 3, "photos": 3, "videos": 0},
            },
        }
    ],
}

ORG_V1_2: Dict[str, Any] = {
    "schemaVersion": "1.2.0",
    "updatedAt": UPDATED_AT,
    "org": {
        "orgSlug": "bhhs",
        "orgName": "Berkshire Hathaway HomeServices",
        "contacts": [
            {"firstName": "Jane", "lastName": "Doe", "email": "jane@bhhs.com", "role": "Owner"}
        ],
        "settings": {"defaultTeams": ["RED", "BLUE"], "timezone": "America/Denver"},
    },
    "hunts": [
        {
            "id": "winter-hunt-20250301",
            "slug": "winter-hunt",
            "name": "Winter Hunt",
            "startDate": "2025-03-01",
            "endDate": "2025-03-01",
            "time": {"start": "09:00", "end": "15:00", "timezone": "America/Denver"},
            "location": {"city": "Vail", "state": "CO", "zip": "81657"},
            "status": "scheduled",
            "access": {"visibility": "public", "pinRequired": False},
            "scoring": {"basePerStop": 10, "bonusCreative": 5},
            "moderation": {"required": True, "reviewers": ["jane@bhhs.com"]},
            "teams": [
                {
                    "name": "RED",
                    "captain": {"firstName": "Sam", "lastName": "Smith", "email": "sam@bhhs.com"},
                    "members": [{"firstName": "Ana", "lastName": "Lee"}],
                    "uploads": {"total": 0, "photos": 0, "videos": 0},
                }
            ],
            "uploads": {
                "store": {
                    "blobsPrefix": "hunts/winter-hunt-20250301/uploads",
                    "cloudinaryFolder": "scavenger/entries/winter-hunt",
                },
                "summary": {"total": 0, "photos": 0, "videos": 0},
            },
            "stops": [
                {
                    "id": "gondola",
                    "title": "Gondola One",
                    "lat": 39.6403,
                    "lng": -106.3742,
                    "radiusMeters": 75,
                    "difficulty": "easy",
                    "hints": [{"text": "Look up"}],
                    "requirements": [{"type": "photo", "required": True}],
                    "assets": [{"type": "image", "url": "https://cdn.vailhunt.com/gondola.jpg"}],
                }
            ],
            "rules": {
                "id": "winter-hunt-20250301-rules",
                "version": "1.0",
                "updatedAt": UPDATED_AT,
                "acknowledgement": {"required": True, "text": "I agree"},
                "content": {"format": "markdown", "body": "Stay on marked paths."},
            },
            "audit": {"createdBy": "jane@bhhs.com", "createdAt": UPDATED_AT},
        }
    ],
}

APP_SAMPLES = {"0.9.0": LEGACY_APP, "1.0.0": APP_V1_0, "1.1.0": APP_V1_1, "1.2.0": APP_V1_2}
ORG_SAMPLES = {"0.9.0": LEGACY_ORG, "1.0.0": ORG_V1_0, "1.1.0": ORG_V1_1, "1.2.0": ORG_V1_2}


# ============================================================================
# DOCUMENT FIXTURES
# ============================================================================


@pytest.fixture
def legacy_app() -> Dict[str, Any]:
    return copy.deepcopy(LEGACY_APP)


@pytest.fixture
def sample_app_v1_2() -> Dict[str, Any]:
    """Fully populated App Registry at the latest version."""
    return copy.deepcopy(APP_V1_2)


@pytest.fixture
def legacy_org() -> Dict[str, Any]:
    return copy.deepcopy(LEGACY_ORG)


@pytest.fixture
def sample_org_v1_2() -> Dict[str, Any]:
    """Fully populated Org document at the latest version."""
    return copy.deepcopy(ORG_V1_2)


# ============================================================================
# SERVICE FIXTURES
# ============================================================================


@pytest.fixture(scope="session")
def schema_system() -> SchemaSystem:
    """Frozen schema system shared by the whole session."""
    return create_schema_system()


@pytest.fixture
def validation_service(schema_system):
    return schema_system.validation


@pytest.fixture
def memory_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def store_config() -> StoreConfig:
    return StoreConfig(
        mongo_uri="mongodb://localhost:27017",
        db_name="hunt_store_test",
        write_back_migrations=True,
        default_environment="test",
    )


@pytest.fixture
def metrics() -> MetricsCollector:
    return MetricsCollector()


@pytest.fixture
def registry(memory_store, schema_system, store_config, metrics) -> RegistryService:
    """Registry service over an in-memory store."""
    return RegistryService(memory_store, schema_system.validation, store_config, metrics)


# ============================================================================
# MOCK MONGODB FIXTURES
# ============================================================================


@pytest.fixture
def mock_collection() -> MagicMock:
    """Mock motor collection with async CRUD methods."""
    collection = MagicMock(spec=AsyncIOMotorCollection)
    collection.find_one = AsyncMock(return_value=None)
    collection.insert_one = AsyncMock(return_value=MagicMock(inserted_id="id"))
    collection.replace_one = AsyncMock(return_value=MagicMock(matched_count=0, upserted_id="id"))
    collection.update_one = AsyncMock(return_value=MagicMock(matched_count=1, modified_count=1))
    collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))
    cursor = MagicMock()
    cursor.to_list = AsyncMock(return_value=[])
    collection.find = MagicMock(return_value=cursor)
    return collection


@pytest.fixture
def samples_by_kind() -> Dict[str, Dict[str, Dict[str, Any]]]:
    """Valid sample document per kind and schema version."""
    return copy.deepcopy({KIND_APP_DATA: APP_SAMPLES, KIND_ORG_DATA: ORG_SAMPLES})
