"""
Migrate command for CLI.

Migrates a document file to a target schema version.
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click

from ...constants import SCHEMA_VERSION_FIELD
from ...schemas import create_schema_system
from ..utils import kind_option, load_document_file, resolve_kind, save_document_file


@click.command()
@click.argument("document_file", type=click.Path(exists=True, path_type=Path))
@kind_option
@click.option("--target", "-t", default=None, help="Target schema version (default: latest)")
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Write the migrated document here instead of overwriting DOCUMENT_FILE",
)
@click.option("--dry-run", is_flag=True, help="Print the migrated document without writing it")
def migrate(
    document_file: Path,
    kind: str,
    target: Optional[str],
    output: Optional[Path],
    dry_run: bool,
) -> None:
    """
    Migrate a document file to a newer schema version.

    DOCUMENT_FILE: Path to the JSON document to migrate

    Examples:
        hunt-store migrate app.json --kind app
        hunt-store migrate legacy-org.json --kind org --target 1.1.0 -o org.json
    """
    document = load_document_file(document_file)
    if not isinstance(document, dict):
        raise click.ClickException("Document must be a JSON object")

    system = create_schema_system()
    document_kind = resolve_kind(kind)
    source = document.get(SCHEMA_VERSION_FIELD) or system.registry.get_default_version(
        document_kind
    )
    target = target or system.registry.get_latest_version(document_kind)

    if system.registry.get_schema(document_kind, target) is None:
        raise click.ClickException(f"Unknown {document_kind} schema version: {target}")

    if not system.migrations.needs_migration(document_kind, source, target):
        click.echo(f"'{document_file}' is already at version {target}")
        sys.exit(0)

    result = system.migrations.migrate(document_kind, document, source, target)
    if not result.success:
        click.echo(click.style(f"❌ Migration failed: {result.error}", fg="red"))
        if result.migrations_applied:
            click.echo(f"   succeeded before failure: {', '.join(result.migrations_applied)}")
        sys.exit(1)

    click.echo(
        click.style(
            f"✅ Migrated {source} -> {target}: {', '.join(result.migrations_applied)}",
            fg="green",
        ),
        err=dry_run,
    )

    if dry_run:
        click.echo(json.dumps(result.data, indent=2, ensure_ascii=False))
        sys.exit(0)

    destination = output or document_file
    save_document_file(destination, result.data)
    click.echo(f"Wrote {destination}")
