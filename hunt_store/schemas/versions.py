"""
Versioned schema registry.

This module provides:
- Structural validators that turn a raw JSON document into its normalized
  shape or a list of structural errors
- The registry answering "what is the latest version", "is this version
  deprecated" and "which validator applies" per document kind

SCHEMA VERSIONING STRATEGY
==========================

Every stored document embeds its version in ``schemaVersion``. Versions are
semantic version strings ("1.2.0") and are totally ordered per kind; the
greatest registered version is the latest one.

Validators:
- ModelValidator: one pydantic model per version (1.x shapes)
- JsonSchemaValidator: a JSON Schema checked with jsonschema (loose legacy
  shapes where field names varied between writers)

The registry is populated once at process start and frozen; lookups never
raise, unknown kinds or versions come back as ``None``.
"""

import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from jsonschema import Draft7Validator, FormatChecker
from jsonschema import ValidationError as JsonSchemaError
from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Structural error categories, shared by every validator implementation
CATEGORY_INVALID_TYPE = "invalid_type"
CATEGORY_MISSING = "missing"
CATEGORY_TOO_SMALL = "too_small"
CATEGORY_TOO_BIG = "too_big"
CATEGORY_INVALID_STRING = "invalid_string"
CATEGORY_INVALID_ENUM = "invalid_enum_value"
CATEGORY_CUSTOM = "custom"


def parse_version(version: str) -> Tuple[int, ...]:
    """
    Parse a semantic version string into a comparable tuple.

    Raises:
        ValueError: If the version is not dotted digits (e.g. "1.2.0")
    """
    if not isinstance(version, str) or not version:
        raise ValueError(f"Invalid schema version: {version!r}")
    parts = version.split(".")
    if not all(part.isdigit() for part in parts):
        raise ValueError(
            f"Invalid schema version format: {version}. Expected format: 'major.minor.patch'"
        )
    return tuple(int(part) for part in parts)


def is_valid_version(version: Any) -> bool:
    """Return True if ``version`` parses as a semantic version string."""
    try:
        parse_version(version)
    except ValueError:
        return False
    return True


def _json_type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


@dataclass(frozen=True)
class StructuralError:
    """
    One structural problem found by a validator.

    ``category`` is one of the CATEGORY_* constants; the remaining fields
    carry whatever detail the category needs for a suggestion.
    """

    category: str
    message: str
    path: Tuple[str, ...] = ()
    expected: Optional[str] = None
    received: Optional[str] = None
    bound: Optional[Any] = None
    bound_type: Optional[str] = None
    options: Tuple[str, ...] = ()
    format: Optional[str] = None


@dataclass(frozen=True)
class ParseResult:
    """Outcome of running a validator over a raw document."""

    ok: bool
    value: Optional[Dict[str, Any]] = None
    errors: Tuple[StructuralError, ...] = ()

    @classmethod
    def success(cls, value: Dict[str, Any]) -> "ParseResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, errors: List[StructuralError]) -> "ParseResult":
        return cls(ok=False, errors=tuple(errors))


class DocumentValidator(ABC):
    """Validator for one schema version of one document kind."""

    @abstractmethod
    def parse(self, raw: Any) -> ParseResult:
        """
        Validate ``raw`` and return its normalized shape.

        Args:
            raw: Decoded JSON document

        Returns:
            ParseResult with the normalized document or structural errors
        """


# pydantic type errors -> JSON type names used in messages
_PYDANTIC_EXPECTED_TYPES = {
    "string_type": "string",
    "int_type": "integer",
    "int_parsing": "integer",
    "int_from_float": "integer",
    "float_type": "number",
    "float_parsing": "number",
    "bool_type": "boolean",
    "bool_parsing": "boolean",
    "list_type": "array",
    "tuple_type": "array",
    "dict_type": "object",
    "model_type": "object",
    "model_attributes_type": "object",
}

_PYDANTIC_TOO_SMALL = {
    "string_too_short": ("string", "min_length"),
    "too_short": ("array", "min_length"),
    "greater_than_equal": ("number", "ge"),
    "greater_than": ("number", "gt"),
}

_PYDANTIC_TOO_BIG = {
    "string_too_long": ("string", "max_length"),
    "too_long": ("array", "max_length"),
    "less_than_equal": ("number", "le"),
    "less_than": ("number", "lt"),
}


def _split_options(expected: str) -> Tuple[str, ...]:
    # pydantic renders choices as "'a', 'b' or 'c'"
    normalized = expected.replace(" or ", ", ")
    return tuple(part.strip().strip("'\"") for part in normalized.split(",") if part.strip())


class DocumentModel(BaseModel):
    """
    Base for versioned document models.

    Fields are snake_case in Python and camelCase on the wire. Values are
    not coerced (a "5" is not a number) and unknown keys are dropped.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        strict=True,
        extra="ignore",
    )


class ModelValidator(DocumentValidator):
    """
    Validator backed by a pydantic model.

    The normalized output is the model dumped back to its camelCase JSON
    shape, with defaults applied and unknown keys dropped.
    """

    def __init__(self, model: type[BaseModel]):
        self.model = model

    def parse(self, raw: Any) -> ParseResult:
        try:
            instance = self.model.model_validate(raw)
        except PydanticValidationError as e:
            return ParseResult.failure([self._convert(error) for error in e.errors()])
        return ParseResult.success(
            instance.model_dump(mode="json", by_alias=True, exclude_none=True)
        )

    @staticmethod
    def _convert(error: Dict[str, Any]) -> StructuralError:
        error_type = error.get("type", "")
        path = tuple(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "Invalid value")
        ctx = error.get("ctx") or {}
        received = _json_type_name(error.get("input"))

        if error_type == "missing":
            return StructuralError(CATEGORY_MISSING, "Required", path, received="undefined")

        if error_type in _PYDANTIC_EXPECTED_TYPES:
            return StructuralError(
                CATEGORY_INVALID_TYPE,
                message,
                path,
                expected=_PYDANTIC_EXPECTED_TYPES[error_type],
                received=received,
            )

        if error_type in _PYDANTIC_TOO_SMALL:
            bound_type, ctx_key = _PYDANTIC_TOO_SMALL[error_type]
            return StructuralError(
                CATEGORY_TOO_SMALL, message, path, bound=ctx.get(ctx_key), bound_type=bound_type
            )

        if error_type in _PYDANTIC_TOO_BIG:
            bound_type, ctx_key = _PYDANTIC_TOO_BIG[error_type]
            return StructuralError(
                CATEGORY_TOO_BIG, message, path, bound=ctx.get(ctx_key), bound_type=bound_type
            )

        if error_type in ("literal_error", "enum"):
            return StructuralError(
                CATEGORY_INVALID_ENUM,
                message,
                path,
                options=_split_options(str(ctx.get("expected", ""))),
                received=str(error.get("input")),
            )

        if error_type == "value_error" and "email" in message.lower():
            return StructuralError(CATEGORY_INVALID_STRING, message, path, format="email")

        if error_type.startswith("url_") or (
            error_type == "value_error" and "url" in message.lower()
        ):
            return StructuralError(CATEGORY_INVALID_STRING, message, path, format="url")

        if error_type == "string_pattern_mismatch":
            return StructuralError(
                CATEGORY_INVALID_STRING, message, path, format=f"pattern {ctx.get('pattern')}"
            )

        return StructuralError(CATEGORY_CUSTOM, message, path)


class JsonSchemaValidator(DocumentValidator):
    """
    Validator backed by a JSON Schema (Draft 7).

    Only top-level ``default`` values are applied to the normalized output;
    nested legacy fields are kept exactly as stored.
    """

    def __init__(self, schema: Dict[str, Any]):
        Draft7Validator.check_schema(schema)
        self.schema = schema
        self._validator = Draft7Validator(schema, format_checker=FormatChecker())

    def parse(self, raw: Any) -> ParseResult:
        errors = sorted(
            self._validator.iter_errors(raw), key=lambda e: [str(p) for p in e.absolute_path]
        )
        if errors:
            return ParseResult.failure([self._convert(error) for error in errors])

        value = copy.deepcopy(raw)
        for name, definition in self.schema.get("properties", {}).items():
            if name not in value and "default" in definition:
                value[name] = copy.deepcopy(definition["default"])
        return ParseResult.success(value)

    @staticmethod
    def _convert(error: JsonSchemaError) -> StructuralError:
        path = tuple(str(part) for part in error.absolute_path)
        keyword = error.validator

        if keyword == "required":
            # jsonschema reports the parent path; point at the missing field
            missing = error.message.split("'")[1] if "'" in error.message else ""
            return StructuralError(
                CATEGORY_MISSING, error.message, path + ((missing,) if missing else ())
            )

        if keyword == "type":
            expected = error.validator_value
            if isinstance(expected, list):
                expected = " | ".join(expected)
            return StructuralError(
                CATEGORY_INVALID_TYPE,
                error.message,
                path,
                expected=str(expected),
                received=_json_type_name(error.instance),
            )

        if keyword in ("minLength", "minimum", "exclusiveMinimum", "minItems"):
            bound_type = {"minLength": "string", "minItems": "array"}.get(keyword, "number")
            return StructuralError(
                CATEGORY_TOO_SMALL,
                error.message,
                path,
                bound=error.validator_value,
                bound_type=bound_type,
            )

        if keyword in ("maxLength", "maximum", "exclusiveMaximum", "maxItems"):
            bound_type = {"maxLength": "string", "maxItems": "array"}.get(keyword, "number")
            return StructuralError(
                CATEGORY_TOO_BIG,
                error.message,
                path,
                bound=error.validator_value,
                bound_type=bound_type,
            )

        if keyword == "enum":
            return StructuralError(
                CATEGORY_INVALID_ENUM,
                error.message,
                path,
                options=tuple(str(option) for option in error.validator_value),
                received=str(error.instance),
            )

        if keyword in ("format", "pattern"):
            fmt = error.validator_value if keyword == "format" else f"pattern {error.validator_value}"
            return StructuralError(CATEGORY_INVALID_STRING, error.message, path, format=fmt)

        return StructuralError(CATEGORY_CUSTOM, error.message, path)


@dataclass(frozen=True)
class SchemaVersion:
    """One registered structural shape of a document kind."""

    version: str
    validator: DocumentValidator
    description: str = ""
    deprecated: bool = False
    migration_target: Optional[str] = None


class SchemaRegistry:
    """
    Per-kind table of schema versions.

    Populate with ``register_version`` then call ``freeze``; after that the
    registry is read-only and safe to share between concurrent requests.
    """

    def __init__(self) -> None:
        self._versions: Dict[str, Dict[str, SchemaVersion]] = {}
        self._default_versions: Dict[str, str] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _ensure_mutable(self) -> None:
        if self._frozen:
            raise ConfigurationError("Schema registry is frozen; register versions at startup")

    def register_version(self, kind: str, schema_version: SchemaVersion) -> None:
        """
        Register a schema version for a document kind.

        Raises:
            ConfigurationError: If the registry is frozen, the version string is
                malformed or already registered for ``kind``
        """
        self._ensure_mutable()
        if not is_valid_version(schema_version.version):
            raise ConfigurationError(
                f"Invalid schema version '{schema_version.version}' for {kind}",
                config_key="version",
                config_value=schema_version.version,
            )
        versions = self._versions.setdefault(kind, {})
        if schema_version.version in versions:
            raise ConfigurationError(
                f"Schema version {schema_version.version} already registered for {kind}"
            )
        versions[schema_version.version] = schema_version
        logger.debug(f"Registered {kind} schema version {schema_version.version}")

    def set_default_version(self, kind: str, version: str) -> None:
        """Set the version assumed for documents of ``kind`` without a marker."""
        self._ensure_mutable()
        self._default_versions[kind] = version

    def freeze(self) -> None:
        """Make the registry read-only."""
        self._frozen = True

    def kinds(self) -> List[str]:
        return sorted(self._versions)

    def get_versions(self, kind: str) -> List[str]:
        """All registered versions for ``kind``, oldest first."""
        return sorted(self._versions.get(kind, {}), key=parse_version)

    def get_latest_version(self, kind: str) -> Optional[str]:
        versions = self.get_versions(kind)
        return versions[-1] if versions else None

    def get_default_version(self, kind: str) -> Optional[str]:
        """Version assumed for unversioned documents (latest if not configured)."""
        return self._default_versions.get(kind) or self.get_latest_version(kind)

    def get_version_info(self, kind: str, version: str) -> Optional[SchemaVersion]:
        return self._versions.get(kind, {}).get(version)

    def get_schema(self, kind: str, version: str) -> Optional[DocumentValidator]:
        info = self.get_version_info(kind, version)
        return info.validator if info else None

    def is_deprecated(self, kind: str, version: str) -> bool:
        info = self.get_version_info(kind, version)
        return bool(info and info.deprecated)

    def get_migration_target(self, kind: str, version: str) -> Optional[str]:
        """
        Version a deprecated version should move toward.

        Returns the configured target, the latest version for deprecated
        versions without one, and None for versions that are not deprecated.
        """
        info = self.get_version_info(kind, version)
        if info is None:
            return None
        if info.migration_target:
            return info.migration_target
        if info.deprecated:
            return self.get_latest_version(kind)
        return None

    def validate(self, kind: str, version: str, data: Any) -> ParseResult:
        """Validate ``data`` against one registered version."""
        validator = self.get_schema(kind, version)
        if validator is None:
            return ParseResult.failure(
                [
                    StructuralError(
                        CATEGORY_CUSTOM, f"Schema version {version} not found for {kind}"
                    )
                ]
            )
        return validator.parse(data)
