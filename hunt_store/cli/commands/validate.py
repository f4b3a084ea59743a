"""
Validate command for CLI.

Validates a stored document file against its schema version, migrating it
in memory first unless told otherwise.
"""

import asyncio
import sys
from pathlib import Path

import click

from ...schemas import create_schema_system
from ...schemas.validation import ValidationOptions
from ..utils import echo_issues, kind_option, load_document_file, resolve_kind


@click.command()
@click.argument("document_file", type=click.Path(exists=True, path_type=Path))
@kind_option
@click.option("--strict", is_flag=True, help="Require a schemaVersion and a successful migration")
@click.option("--no-migrate", is_flag=True, help="Validate without migrating to the latest version")
@click.option("--verbose", "-v", is_flag=True, help="Show suggestions and warnings")
@click.option("--health", is_flag=True, help="Print a health score and recommendations")
def validate(
    document_file: Path, kind: str, strict: bool, no_migrate: bool, verbose: bool, health: bool
) -> None:
    """
    Validate a document file.

    DOCUMENT_FILE: Path to the JSON document to validate

    Examples:
        hunt-store validate app.json --kind app
        hunt-store validate orgs/bhhs.json --kind org --strict --verbose
    """
    document = load_document_file(document_file)
    system = create_schema_system()
    document_kind = resolve_kind(kind)
    target_version = None
    if no_migrate:
        # Check the document against its own version
        target_version = system.validation.detect_version(
            document
        ) or system.registry.get_default_version(document_kind)
    options = ValidationOptions(
        strict=strict, auto_migrate=not no_migrate, target_version=target_version
    )

    if health:
        result = asyncio.run(
            system.validation.validate_with_health_report(document_kind, document, options)
        )
    else:
        result = asyncio.run(system.validation.validate(document_kind, document, options))

    if result.success:
        click.echo(
            click.style(
                f"✅ '{document_file}' is a valid {document_kind} document (version {result.version})",
                fg="green",
            )
        )
        if result.migration_applied:
            steps = ", ".join(result.migration_details.migrations_applied)
            click.echo(f"   migrated: {steps}")
    else:
        click.echo(click.style(f"❌ '{document_file}' is invalid!", fg="red"))

    echo_issues(result, verbose)

    if health:
        click.echo(f"Health score: {result.health_score}")
        for recommendation in result.recommendations:
            click.echo(f"  - {recommendation}")

    sys.exit(0 if result.success else 1)
