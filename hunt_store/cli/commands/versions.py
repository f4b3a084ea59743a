"""
Versions command for CLI.

Lists the registered schema versions of a document kind.
"""

import click

from ...schemas import create_schema_system
from ..utils import kind_option, resolve_kind


@click.command()
@kind_option
def versions(kind: str) -> None:
    """
    List registered schema versions.

    Examples:
        hunt-store versions --kind app
    """
    system = create_schema_system()
    document_kind = resolve_kind(kind)
    latest = system.registry.get_latest_version(document_kind)
    default = system.registry.get_default_version(document_kind)

    click.echo(f"{document_kind} schema versions:")
    for version in system.registry.get_versions(document_kind):
        info = system.registry.get_version_info(document_kind, version)
        markers = []
        if version == latest:
            markers.append("latest")
        if version == default:
            markers.append("default for unversioned")
        if info.deprecated:
            target = system.registry.get_migration_target(document_kind, version)
            markers.append(f"deprecated -> {target}")
        suffix = f" ({', '.join(markers)})" if markers else ""
        click.echo(f"  {version}{suffix}: {info.description}")
