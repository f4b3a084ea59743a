"""
Utility functions for CLI commands.

This module provides shared utilities for CLI operations.
"""

import json
from pathlib import Path
from typing import Any

import click

from ..constants import KIND_APP_DATA, KIND_ORG_DATA
from ..schemas.validation import ValidationResult

KIND_CHOICES = {"app": KIND_APP_DATA, "org": KIND_ORG_DATA}

kind_option = click.option(
    "--kind",
    "-k",
    type=click.Choice(sorted(KIND_CHOICES)),
    required=True,
    help="Document kind: app (App Registry) or org (organization document)",
)


def resolve_kind(kind: str) -> str:
    """Map a CLI kind choice to its document kind."""
    return KIND_CHOICES[kind]


def load_document_file(file_path: Path) -> Any:
    """
    Load a JSON document file.

    Args:
        file_path: Path to the JSON document

    Returns:
        Decoded document

    Raises:
        click.ClickException: If file doesn't exist or is invalid JSON
    """
    if not file_path.exists():
        raise click.ClickException(f"Document file not found: {file_path}")

    try:
        with open(file_path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON in document file: {e}") from e


def save_document_file(file_path: Path, document: dict[str, Any]) -> None:
    """
    Save a document to a JSON file.

    Raises:
        click.ClickException: If file cannot be written
    """
    try:
        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(document, f, indent=2, ensure_ascii=False)
            f.write("\n")
    except OSError as e:
        raise click.ClickException(f"Failed to write document file: {e}") from e


def echo_issues(result: ValidationResult, verbose: bool) -> None:
    """Print errors (and, when verbose, warnings) of a validation result."""
    for error in result.errors:
        path = ".".join(error.path) or "root"
        click.echo(click.style(f"  [{error.code}] {path}: {error.message}", fg="red"))
        if verbose and error.suggestion:
            click.echo(f"      suggestion: {error.suggestion}")

    if verbose:
        for warning in result.warnings:
            path = ".".join(warning.path) or "root"
            click.echo(click.style(f"  [{warning.code}] {path}: {warning.message}", fg="yellow"))
