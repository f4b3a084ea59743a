"""
Schema migration engine.

Holds, per document kind, the directed migration steps between schema
versions and applies the chain leading from a document's detected version
to a target version.

Version history is linear: each version has at most one outgoing step, so
the chain is found by walking forward from the source version. A missing
link fails the whole migration up front; a document is never returned
half-migrated as a success.
"""

import copy
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ..constants import MAX_MIGRATION_CHAIN, SCHEMA_VERSION_FIELD
from ..exceptions import ConfigurationError
from .versions import SchemaRegistry, parse_version

logger = logging.getLogger(__name__)

MigrationFn = Callable[[Dict[str, Any]], Dict[str, Any]]


@dataclass(frozen=True)
class MigrationStep:
    """
    Deterministic transform from one schema version's shape to the next.

    The transform receives a private deep copy of the document and must set
    the embedded ``schemaVersion`` to ``to_version``.
    """

    from_version: str
    to_version: str
    transform: MigrationFn
    description: str = ""

    @property
    def label(self) -> str:
        return f"{self.from_version}->{self.to_version}"


@dataclass(frozen=True)
class MigrationResult:
    """Outcome of a migration attempt."""

    success: bool
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    migrations_applied: Tuple[str, ...] = ()
    source_version: Optional[str] = None
    final_version: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "error": self.error,
            "migrationsApplied": list(self.migrations_applied),
            "sourceVersion": self.source_version,
            "finalVersion": self.final_version,
        }


class MigrationEngine:
    """
    Registry and executor of migration steps.

    Args:
        schemas: Optional schema registry; when given, the output of every
            step is validated against the step's target version and its
            normalized shape is carried into the next step.
    """

    def __init__(self, schemas: Optional[SchemaRegistry] = None):
        self.schemas = schemas
        self._steps: Dict[str, Dict[str, MigrationStep]] = {}
        self._frozen = False

    def register_migration(self, kind: str, step: MigrationStep) -> None:
        """
        Register a migration step for a document kind.

        Raises:
            ConfigurationError: If the engine is frozen, the step goes backwards
                or another step already leaves ``step.from_version``
        """
        if self._frozen:
            raise ConfigurationError("Migration engine is frozen; register steps at startup")
        if parse_version(step.to_version) <= parse_version(step.from_version):
            raise ConfigurationError(
                f"Migration {step.label} for {kind} must move to a newer version"
            )
        steps = self._steps.setdefault(kind, {})
        if step.from_version in steps:
            raise ConfigurationError(
                f"Migration from {step.from_version} already registered for {kind}: "
                f"{steps[step.from_version].label}"
            )
        steps[step.from_version] = step
        logger.debug(f"Registered {kind} migration {step.label}")

    def freeze(self) -> None:
        """Make the engine read-only."""
        self._frozen = True

    def get_migrations(self, kind: str) -> List[MigrationStep]:
        """All steps for ``kind``, ordered by source version."""
        steps = self._steps.get(kind, {})
        return [steps[v] for v in sorted(steps, key=parse_version)]

    def get_available_versions(self, kind: str) -> List[str]:
        """Every version that appears as a step endpoint for ``kind``."""
        versions = set()
        for step in self._steps.get(kind, {}).values():
            versions.add(step.from_version)
            versions.add(step.to_version)
        return sorted(versions, key=parse_version)

    def find_migration_path(
        self, kind: str, from_version: str, to_version: str
    ) -> Optional[List[MigrationStep]]:
        """
        Walk forward from ``from_version`` to ``to_version``.

        Returns:
            The ordered steps, an empty list when the versions are equal, or
            None when the chain is broken.
        """
        steps = self._steps.get(kind, {})
        path: List[MigrationStep] = []
        current = from_version

        while current != to_version:
            step = steps.get(current)
            if step is None:
                logger.warning(f"No migration found from version {current} for {kind}")
                return None
            path.append(step)
            current = step.to_version
            if len(path) > MAX_MIGRATION_CHAIN:
                logger.error(f"Migration path too long for {kind}: {from_version} -> {to_version}")
                return None

        return path

    def needs_migration(self, kind: str, from_version: str, to_version: str) -> bool:
        """
        True whenever the versions differ.

        A missing chain still reports True so the following ``migrate`` call
        surfaces the break as an error instead of skipping it silently.
        """
        return from_version != to_version

    def migrate(
        self, kind: str, document: Dict[str, Any], from_version: str, to_version: str
    ) -> MigrationResult:
        """
        Apply the chain of steps from ``from_version`` to ``to_version``.

        The input document is never modified. Failures are reported in the
        result, together with the steps that succeeded before the failure.
        """
        if from_version == to_version:
            return MigrationResult(
                success=True,
                data=copy.deepcopy(document),
                source_version=from_version,
                final_version=to_version,
            )

        path = self.find_migration_path(kind, from_version, to_version)
        if path is None:
            return MigrationResult(
                success=False,
                error=(
                    f"No migration path found from {from_version} to {to_version} for {kind}"
                ),
                source_version=from_version,
            )

        current = copy.deepcopy(document)
        applied: List[str] = []

        for step in path:
            logger.info(f"Applying {kind} migration {step.label}: {step.description}")
            try:
                migrated = step.transform(copy.deepcopy(current))
            except Exception as e:
                logger.warning(f"{kind} migration {step.label} raised: {e}", exc_info=True)
                return self._failed(
                    f"Migration {step.label} failed: {e}", applied, from_version
                )

            if not isinstance(migrated, dict):
                return self._failed(
                    f"Migration {step.label} produced {type(migrated).__name__}, expected object",
                    applied,
                    from_version,
                )

            if migrated.get(SCHEMA_VERSION_FIELD) != step.to_version:
                return self._failed(
                    f"Migration {step.label} did not set {SCHEMA_VERSION_FIELD} "
                    f"to {step.to_version}",
                    applied,
                    from_version,
                )

            if self.schemas is not None:
                parsed = self.schemas.validate(kind, step.to_version, migrated)
                if not parsed.ok:
                    details = "; ".join(
                        f"{'.'.join(err.path) or 'root'}: {err.message}" for err in parsed.errors[:5]
                    )
                    return self._failed(
                        f"Migration validation failed after {step.label}: {details}",
                        applied,
                        from_version,
                    )
                migrated = parsed.value

            current = migrated
            applied.append(step.label)

        return MigrationResult(
            success=True,
            data=current,
            migrations_applied=tuple(applied),
            source_version=from_version,
            final_version=to_version,
        )

    @staticmethod
    def _failed(error: str, applied: List[str], source_version: str) -> MigrationResult:
        return MigrationResult(
            success=False,
            error=error,
            migrations_applied=tuple(applied),
            source_version=source_version,
        )

    def validate_chain(self, kind: str) -> bool:
        """
        Check that the steps of ``kind`` link contiguously.

        Every version reached by a step, except the newest one, must be the
        source of another step, and the chain must reach the latest
        registered schema version when a registry is attached.
        """
        steps = self._steps.get(kind, {})
        if not steps:
            return True

        versions = self.get_available_versions(kind)
        newest = versions[-1]
        for step in steps.values():
            if step.to_version != newest and step.to_version not in steps:
                logger.error(f"Broken migration chain for {kind}: {step.to_version} has no follow-up")
                return False

        if self.schemas is not None:
            latest = self.schemas.get_latest_version(kind)
            if latest is not None and newest != latest:
                logger.error(
                    f"Migration chain for {kind} ends at {newest}, latest schema is {latest}"
                )
                return False
            for version in versions:
                if self.schemas.get_schema(kind, version) is None:
                    logger.error(f"Migration chain for {kind} references unregistered {version}")
                    return False

        return True
