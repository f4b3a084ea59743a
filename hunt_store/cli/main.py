"""
Command-line entry point for HUNT_STORE.

Usage:
    hunt-store validate app.json --kind app
    hunt-store migrate legacy-org.json --kind org --dry-run
    hunt-store versions --kind org
    hunt-store audit --repair
"""

import logging

import click

from .. import __version__
from .commands import audit, migrate, validate, versions


@click.group()
@click.version_option(version=__version__, prog_name="hunt-store")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging level",
)
def cli(log_level: str) -> None:
    """HUNT_STORE - versioned document store tools."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


cli.add_command(validate)
cli.add_command(migrate)
cli.add_command(versions)
cli.add_command(audit)


if __name__ == "__main__":
    cli()
