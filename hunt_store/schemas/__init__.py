"""
Versioned document schemas.

``create_schema_system()`` builds the schema registry and migration engine
for both document kinds, checks the migration chains, freezes both tables
and returns them together with a validation service. Call it once at
process start and pass the result to whatever needs it.
"""

import logging
from dataclasses import dataclass

from ..constants import SUPPORTED_KINDS
from ..exceptions import ConfigurationError
from .app_data import register_app_data_migrations, register_app_data_versions
from .migrations import MigrationEngine, MigrationResult, MigrationStep
from .org_data import register_org_data_migrations, register_org_data_versions
from .validation import (HealthReport, ValidationError, ValidationOptions,
                         ValidationResult, ValidationService,
                         ValidationWarning, calculate_health_score)
from .versions import (DocumentValidator, JsonSchemaValidator, ModelValidator,
                       ParseResult, SchemaRegistry, SchemaVersion,
                       StructuralError, parse_version)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchemaSystem:
    """Read-only schema tables plus the validation service built on them."""

    registry: SchemaRegistry
    migrations: MigrationEngine
    validation: ValidationService


def create_schema_system() -> SchemaSystem:
    """
    Build, check and freeze the schema registry and migration engine.

    Raises:
        ConfigurationError: If a migration chain is broken
    """
    registry = SchemaRegistry()
    register_app_data_versions(registry)
    register_org_data_versions(registry)

    migrations = MigrationEngine(schemas=registry)
    register_app_data_migrations(migrations)
    register_org_data_migrations(migrations)

    for kind in SUPPORTED_KINDS:
        if not migrations.validate_chain(kind):
            raise ConfigurationError(f"Migration chain for {kind} is broken", config_key=kind)

    registry.freeze()
    migrations.freeze()
    logger.info(
        "Schema system ready: "
        + ", ".join(f"{kind}={registry.get_latest_version(kind)}" for kind in SUPPORTED_KINDS)
    )

    return SchemaSystem(
        registry=registry,
        migrations=migrations,
        validation=ValidationService(registry, migrations),
    )


__all__ = [
    "SchemaSystem",
    "create_schema_system",
    "SchemaRegistry",
    "SchemaVersion",
    "DocumentValidator",
    "ModelValidator",
    "JsonSchemaValidator",
    "ParseResult",
    "StructuralError",
    "parse_version",
    "MigrationEngine",
    "MigrationStep",
    "MigrationResult",
    "ValidationService",
    "ValidationOptions",
    "ValidationResult",
    "ValidationError",
    "ValidationWarning",
    "HealthReport",
    "calculate_health_score",
]
