"""
Validation service.

Single entry point tying together version detection, optional migration,
structural validation against the target version, data-quality warnings
and health scoring.

Every failure is returned as data in ``ValidationResult.errors``; the
service does not raise for any input document.
"""

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

from ..constants import (HEALTH_ERROR_PENALTY, HEALTH_SCORE_MAX,
                         HEALTH_SCORE_THRESHOLD, HEALTH_WARNING_PENALTY,
                         KIND_APP_DATA, KIND_ORG_DATA, SCHEMA_VERSION_FIELD)
from .migrations import MigrationEngine, MigrationResult
from .versions import (CATEGORY_INVALID_ENUM, CATEGORY_INVALID_STRING,
                       CATEGORY_INVALID_TYPE, CATEGORY_MISSING,
                       CATEGORY_TOO_BIG, CATEGORY_TOO_SMALL, SchemaRegistry,
                       StructuralError, is_valid_version)

logger = logging.getLogger(__name__)

# Error codes produced by the service itself
MISSING_SCHEMA_VERSION = "MISSING_SCHEMA_VERSION"
INVALID_SCHEMA_VERSION = "INVALID_SCHEMA_VERSION"
NO_SCHEMA_AVAILABLE = "NO_SCHEMA_AVAILABLE"
SCHEMA_NOT_FOUND = "SCHEMA_NOT_FOUND"
MIGRATION_FAILED = "MIGRATION_FAILED"
VALIDATION_EXCEPTION = "VALIDATION_EXCEPTION"

# Warning codes
DEPRECATED_VERSION = "DEPRECATED_VERSION"
MISSING_OPTIONAL_CONFIG = "MISSING_OPTIONAL_CONFIG"
MISSING_PRIVACY_CONFIG = "MISSING_PRIVACY_CONFIG"
INVALID_DATE_KEY = "INVALID_DATE_KEY"
NO_CONTACTS = "NO_CONTACTS"
HUNT_WITHOUT_STOPS = "HUNT_WITHOUT_STOPS"

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"

_DATE_KEY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class ValidationError:
    """Structured validation error, renderable as a field-level message."""

    code: str
    message: str
    path: Tuple[str, ...] = ()
    severity: str = SEVERITY_ERROR
    suggestion: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "path": list(self.path),
            "severity": self.severity,
            "suggestion": self.suggestion,
        }


@dataclass(frozen=True)
class ValidationWarning:
    """Non-fatal data quality observation."""

    code: str
    message: str
    path: Tuple[str, ...] = ()
    suggestion: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "path": list(self.path),
            "suggestion": self.suggestion,
        }


@dataclass(frozen=True)
class ValidationOptions:
    """
    Options for ``ValidationService.validate``.

    Attributes:
        strict: Reject documents without a version marker and fail when
            migration fails instead of degrading
        auto_migrate: Migrate documents to the target version before validating
        target_version: Version to validate against (latest when None)
        include_warnings: Compute data quality warnings
        transform_deprecated: Migrate deprecated source versions even when
            ``auto_migrate`` is off
    """

    strict: bool = False
    auto_migrate: bool = True
    target_version: Optional[str] = None
    include_warnings: bool = True
    transform_deprecated: bool = False


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one document; ``data`` is set iff ``success``."""

    success: bool
    data: Optional[Dict[str, Any]] = None
    errors: Tuple[ValidationError, ...] = ()
    warnings: Tuple[ValidationWarning, ...] = ()
    version: Optional[str] = None
    migration_applied: bool = False
    migration_details: Optional[MigrationResult] = None

    @property
    def error_codes(self) -> List[str]:
        return [error.code for error in self.errors]

    @property
    def warning_codes(self) -> List[str]:
        return [warning.code for warning in self.warnings]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "version": self.version,
            "migrationApplied": self.migration_applied,
            "errors": [error.to_dict() for error in self.errors],
            "warnings": [warning.to_dict() for warning in self.warnings],
            "migrationDetails": (
                self.migration_details.to_dict() if self.migration_details else None
            ),
        }


@dataclass(frozen=True)
class HealthReport(ValidationResult):
    """Validation result with an advisory 0-100 health score."""

    health_score: int = HEALTH_SCORE_MAX
    recommendations: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        report = super().to_dict()
        report["healthScore"] = self.health_score
        report["recommendations"] = list(self.recommendations)
        return report


def calculate_health_score(error_count: int, warning_count: int) -> int:
    """Health score: 100 minus 20 per error and 5 per warning, floored at 0."""
    return max(
        0,
        HEALTH_SCORE_MAX
        - error_count * HEALTH_ERROR_PENALTY
        - warning_count * HEALTH_WARNING_PENALTY,
    )


def suggestion_for(error: StructuralError) -> Optional[str]:
    """Fixed suggestion text per structural error category."""
    path = ".".join(error.path)

    if error.category == CATEGORY_INVALID_TYPE:
        return f"Expected {error.expected}, received {error.received}. Check data type at path: {path}"

    if error.category == CATEGORY_MISSING:
        return f"Required field is missing. Add a value at path: {path or 'root'}"

    if error.category == CATEGORY_TOO_SMALL:
        if error.bound_type == "string":
            return f"String must be at least {error.bound} characters long"
        if error.bound_type == "array":
            return f"Array must contain at least {error.bound} items"
        return f"Value must be at least {error.bound}"

    if error.category == CATEGORY_TOO_BIG:
        if error.bound_type == "string":
            return f"String must be at most {error.bound} characters long"
        if error.bound_type == "array":
            return f"Array must contain at most {error.bound} items"
        return f"Value must be at most {error.bound}"

    if error.category == CATEGORY_INVALID_STRING:
        if error.format == "email":
            return "Provide a valid email address"
        return f"String format validation failed: {error.format}"

    if error.category == CATEGORY_INVALID_ENUM:
        return f"Must be one of: {', '.join(error.options)}"

    return None


def _to_validation_errors(errors: Tuple[StructuralError, ...]) -> Tuple[ValidationError, ...]:
    return tuple(
        ValidationError(
            code=error.category.upper(),
            message=error.message,
            path=error.path,
            suggestion=suggestion_for(error),
        )
        for error in errors
    )


def _failure(code: str, message: str, suggestion: Optional[str] = None, **kwargs: Any) -> ValidationResult:
    return ValidationResult(
        success=False,
        errors=(ValidationError(code=code, message=message, suggestion=suggestion),),
        **kwargs,
    )


class ValidationService:
    """
    Validates documents against the schema registry, migrating them first
    when needed.

    Args:
        schemas: Frozen schema registry
        migrations: Migration engine for the same kinds
    """

    def __init__(self, schemas: SchemaRegistry, migrations: MigrationEngine):
        self.schemas = schemas
        self.migrations = migrations

    @staticmethod
    def detect_version(raw: Any) -> Optional[Any]:
        """Embedded version marker of ``raw``, or None when absent."""
        if isinstance(raw, dict):
            return raw.get(SCHEMA_VERSION_FIELD)
        return None

    async def validate(
        self, kind: str, raw: Any, options: Optional[ValidationOptions] = None
    ) -> ValidationResult:
        """
        Detect, migrate (optionally) and validate a raw document.

        Args:
            kind: Document kind ("appData", "orgData")
            raw: Decoded JSON document
            options: Validation options (defaults when None)

        Returns:
            ValidationResult; never raises for any input document
        """
        options = options or ValidationOptions()
        try:
            return self._validate(kind, raw, options)
        except Exception as e:
            logger.exception(f"Unexpected fault while validating {kind}")
            return _failure(VALIDATION_EXCEPTION, f"Validation failed with exception: {e}")

    def _validate(self, kind: str, raw: Any, options: ValidationOptions) -> ValidationResult:
        detected = self.detect_version(raw)
        if detected is None and options.strict:
            return _failure(
                MISSING_SCHEMA_VERSION,
                "Schema version not found in data",
                f"Add {SCHEMA_VERSION_FIELD} field to your data",
            )
        if detected is not None and not is_valid_version(detected):
            return _failure(
                INVALID_SCHEMA_VERSION,
                f"Invalid schema version: {detected!r}",
                "Use a semantic version string such as '1.2.0'",
            )

        working_version = detected or self.schemas.get_default_version(kind)
        target = options.target_version or self.schemas.get_latest_version(kind)
        if working_version is None or target is None:
            return _failure(
                NO_SCHEMA_AVAILABLE,
                f"No schema available for {kind}",
                "Register schema versions for this document kind",
            )
        if self.schemas.get_schema(kind, target) is None:
            return _failure(SCHEMA_NOT_FOUND, f"Schema version {target} not found for {kind}")

        document = raw
        validate_version = target
        migration: Optional[MigrationResult] = None
        migration_applied = False

        should_migrate = options.auto_migrate or (
            options.transform_deprecated and self.schemas.is_deprecated(kind, working_version)
        )
        if should_migrate and self.migrations.needs_migration(kind, working_version, target):
            migration = self.migrations.migrate(kind, raw, working_version, target)
            if migration.success:
                document = migration.data
                migration_applied = True
                logger.info(
                    f"Migrated {kind} from {working_version} to {target}: "
                    f"{list(migration.migrations_applied)}"
                )
            elif options.strict:
                return _failure(
                    MIGRATION_FAILED,
                    f"Migration failed: {migration.error}",
                    "Check data format and migration definitions",
                    migration_details=migration,
                )
            else:
                logger.warning(
                    f"Migration of {kind} from {working_version} failed, "
                    f"validating as {working_version}: {migration.error}"
                )
                validate_version = working_version

        if self.schemas.get_schema(kind, validate_version) is None:
            return _failure(
                SCHEMA_NOT_FOUND,
                f"Schema version {validate_version} not found for {kind}",
                migration_details=migration,
            )

        parsed = self.schemas.validate(kind, validate_version, document)
        if not parsed.ok:
            return ValidationResult(
                success=False,
                errors=_to_validation_errors(parsed.errors),
                version=validate_version,
                migration_applied=migration_applied,
                migration_details=migration,
            )

        warnings: Tuple[ValidationWarning, ...] = ()
        if options.include_warnings:
            warnings = tuple(self.generate_warnings(kind, parsed.value, working_version))

        return ValidationResult(
            success=True,
            data=parsed.value,
            warnings=warnings,
            version=validate_version,
            migration_applied=migration_applied,
            migration_details=migration,
        )

    def validate_only(self, kind: str, raw: Any, version: Optional[str] = None) -> ValidationResult:
        """
        Validate without migration, for hot paths that already know the version.

        Uses ``version``, else the detected version, else the kind's default.
        """
        try:
            target = version or self.detect_version(raw) or self.schemas.get_default_version(kind)
            if target is None:
                return _failure(NO_SCHEMA_AVAILABLE, f"No schema available for {kind}")
            if not is_valid_version(target):
                return _failure(INVALID_SCHEMA_VERSION, f"Invalid schema version: {target!r}")
            if self.schemas.get_schema(kind, target) is None:
                return _failure(SCHEMA_NOT_FOUND, f"Schema version {target} not found for {kind}")

            parsed = self.schemas.validate(kind, target, raw)
            if not parsed.ok:
                return ValidationResult(
                    success=False, errors=_to_validation_errors(parsed.errors), version=target
                )
            return ValidationResult(success=True, data=parsed.value, version=target)
        except Exception as e:
            logger.exception(f"Unexpected fault while validating {kind}")
            return _failure(VALIDATION_EXCEPTION, f"Validation failed: {e}")

    async def validate_with_health_report(
        self, kind: str, raw: Any, options: Optional[ValidationOptions] = None
    ) -> HealthReport:
        """Validate with warnings forced on, then derive a health score and recommendations."""
        options = replace(options or ValidationOptions(), include_warnings=True)
        result = await self.validate(kind, raw, options)

        health_score = calculate_health_score(len(result.errors), len(result.warnings))

        recommendations: List[str] = []
        if result.migration_applied:
            recommendations.append(
                "Data was migrated - consider updating source to use latest schema version"
            )
        if result.warnings:
            recommendations.append("Address validation warnings to improve data quality")
        if health_score < HEALTH_SCORE_THRESHOLD:
            recommendations.append(
                "Multiple data quality issues detected - review validation errors and warnings"
            )

        return HealthReport(
            success=result.success,
            data=result.data,
            errors=result.errors,
            warnings=result.warnings,
            version=result.version,
            migration_applied=result.migration_applied,
            migration_details=result.migration_details,
            health_score=health_score,
            recommendations=tuple(recommendations),
        )

    def generate_warnings(
        self, kind: str, data: Dict[str, Any], original_version: str
    ) -> List[ValidationWarning]:
        """Data quality warnings for a successfully validated document."""
        warnings: List[ValidationWarning] = []

        if self.schemas.is_deprecated(kind, original_version):
            target = self.schemas.get_migration_target(kind, original_version)
            warnings.append(
                ValidationWarning(
                    code=DEPRECATED_VERSION,
                    message=f"Schema version {original_version} is deprecated",
                    suggestion=(
                        f"Consider migrating to version {target}"
                        if target
                        else "Upgrade to a newer version"
                    ),
                )
            )

        if kind == KIND_APP_DATA and isinstance(data.get("app"), dict):
            warnings.extend(self._app_warnings(data))
        elif kind == KIND_ORG_DATA and isinstance(data.get("org"), dict):
            warnings.extend(self._org_warnings(data))

        return warnings

    @staticmethod
    def _app_warnings(data: Dict[str, Any]) -> List[ValidationWarning]:
        warnings = []
        app = data["app"]
        if not app.get("map"):
            warnings.append(
                ValidationWarning(
                    code=MISSING_OPTIONAL_CONFIG,
                    message="Map configuration not provided",
                    path=("app", "map"),
                    suggestion="Consider adding map configuration for location features",
                )
            )
        if not app.get("privacy"):
            warnings.append(
                ValidationWarning(
                    code=MISSING_PRIVACY_CONFIG,
                    message="Privacy configuration not provided",
                    path=("app", "privacy"),
                    suggestion="Consider adding privacy settings for compliance",
                )
            )
        for date_key in data.get("byDate") or {}:
            if not _DATE_KEY.match(date_key):
                warnings.append(
                    ValidationWarning(
                        code=INVALID_DATE_KEY,
                        message=f"Date index key '{date_key}' is not in YYYY-MM-DD format",
                        path=("byDate", date_key),
                        suggestion="Use ISO calendar dates (YYYY-MM-DD) as date index keys",
                    )
                )
        return warnings

    @staticmethod
    def _org_warnings(data: Dict[str, Any]) -> List[ValidationWarning]:
        warnings = []
        if not data["org"].get("contacts"):
            warnings.append(
                ValidationWarning(
                    code=NO_CONTACTS,
                    message="Organization has no contacts",
                    path=("org", "contacts"),
                    suggestion="Add at least one contact for the organization",
                )
            )
        for index, hunt in enumerate(data.get("hunts") or []):
            if not hunt.get("stops"):
                warnings.append(
                    ValidationWarning(
                        code=HUNT_WITHOUT_STOPS,
                        message=f"Hunt '{hunt.get('id')}' has no stops",
                        path=("hunts", str(index), "stops"),
                        suggestion="Add stops before the hunt becomes active",
                    )
                )
        return warnings

    # Convenience wrappers per document kind

    async def validate_app_data(
        self, raw: Any, options: Optional[ValidationOptions] = None
    ) -> ValidationResult:
        return await self.validate(KIND_APP_DATA, raw, options)

    async def validate_org_data(
        self, raw: Any, options: Optional[ValidationOptions] = None
    ) -> ValidationResult:
        return await self.validate(KIND_ORG_DATA, raw, options)

    def validate_app_data_sync(self, raw: Any, version: Optional[str] = None) -> ValidationResult:
        return self.validate_only(KIND_APP_DATA, raw, version)

    def validate_org_data_sync(self, raw: Any, version: Optional[str] = None) -> ValidationResult:
        return self.validate_only(KIND_ORG_DATA, raw, version)
