"""
Constants for HUNT_STORE.

This module contains all shared constants used across the codebase to avoid
magic numbers and improve maintainability.
"""

from typing import Final

# ============================================================================
# DOCUMENT KIND CONSTANTS
# ============================================================================

KIND_APP_DATA: Final[str] = "appData"
"""Document kind of the global App Registry document."""

KIND_ORG_DATA: Final[str] = "orgData"
"""Document kind of the per-organization documents."""

SUPPORTED_KINDS: Final[tuple[str, ...]] = (KIND_APP_DATA, KIND_ORG_DATA)

# ============================================================================
# SCHEMA CONSTANTS
# ============================================================================

SCHEMA_VERSION_FIELD: Final[str] = "schemaVersion"
"""Name of the field carrying the embedded schema version."""

LEGACY_SCHEMA_VERSION: Final[str] = "0.9.0"
"""Default schema version for documents without a version field."""

LATEST_APP_VERSION: Final[str] = "1.2.0"
"""Current App Registry schema version."""

LATEST_ORG_VERSION: Final[str] = "1.2.0"
"""Current Org document schema version."""

LEGACY_TIMESTAMP: Final[str] = "1970-01-01T00:00:00+00:00"
"""Timestamp used by migrations when the source document carries none."""

MAX_MIGRATION_CHAIN: Final[int] = 20
"""Maximum number of steps walked before a chain is considered cyclic."""

# ============================================================================
# STORAGE KEY CONSTANTS
# ============================================================================

DEFAULT_APP_KEY: Final[str] = "app.json"
"""Key of the App Registry document."""

DEFAULT_ORG_KEY_PREFIX: Final[str] = "orgs/"
"""Prefix of the per-organization document keys."""

DEFAULT_COLLECTION_NAME: Final[str] = "documents"
"""MongoDB collection holding the stored documents."""

# ============================================================================
# HEALTH SCORING CONSTANTS
# ============================================================================

HEALTH_SCORE_MAX: Final[int] = 100
HEALTH_ERROR_PENALTY: Final[int] = 20
HEALTH_WARNING_PENALTY: Final[int] = 5

HEALTH_SCORE_THRESHOLD: Final[int] = 80
"""Scores below this value trigger a review recommendation."""

# ============================================================================
# DOMAIN DEFAULTS
# ============================================================================

DEFAULT_APP_NAME: Final[str] = "Vail Hunt"
DEFAULT_ENVIRONMENT: Final[str] = "development"
DEFAULT_TIMEZONE: Final[str] = "America/Denver"
DEFAULT_LOCALE: Final[str] = "en-US"

DEFAULT_TEAMS: Final[tuple[str, ...]] = ("RED", "GREEN", "BLUE", "YELLOW", "ORANGE")
"""Team names stamped on new organizations."""

DEFAULT_BASE_POINTS_PER_STOP: Final[int] = 10
DEFAULT_BONUS_CREATIVE: Final[int] = 5
DEFAULT_STOP_RADIUS_METERS: Final[int] = 50

DEFAULT_MEDIA_RETENTION_DAYS: Final[int] = 365
DEFAULT_MAX_UPLOAD_SIZE_MB: Final[int] = 10
VIDEO_MAX_UPLOAD_SIZE_MB: Final[int] = 200
DEFAULT_MAX_PHOTOS_PER_TEAM: Final[int] = 100

DEFAULT_IMAGE_MEDIA_TYPES: Final[tuple[str, ...]] = ("image/jpeg", "image/png", "image/gif")
VIDEO_MEDIA_TYPES: Final[tuple[str, ...]] = ("video/mp4", "video/quicktime", "video/webm")

# ============================================================================
# HUNT STATUS CONSTANTS
# ============================================================================

HUNT_STATUS_SCHEDULED: Final[str] = "scheduled"
HUNT_STATUS_ACTIVE: Final[str] = "active"
HUNT_STATUS_COMPLETED: Final[str] = "completed"
HUNT_STATUS_ARCHIVED: Final[str] = "archived"

SUPPORTED_HUNT_STATUSES: Final[tuple[str, ...]] = (
    HUNT_STATUS_SCHEDULED,
    HUNT_STATUS_ACTIVE,
    HUNT_STATUS_COMPLETED,
    HUNT_STATUS_ARCHIVED,
)
