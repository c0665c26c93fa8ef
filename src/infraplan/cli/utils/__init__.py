"""CLI utilities package."""

import sys
from typing import Optional
import click
from ...utils.errors import InfraPlanError, CycleError, UnresolvedReferenceError, StalePlanError
from ...utils.logging import get_logger
from .file_resolver import resolve_file_path

logger = get_logger("cli.utils")


def format_error(message: str, suggestion: Optional[str] = None) -> str:
    """
    Format error message with optional suggestion.

    Args:
        message: Error message
        suggestion: Optional suggestion or help text

    Returns:
        Formatted error string
    """
    error = f"Error: {message}"
    if suggestion:
        error += f"\nTip: {suggestion}"
    return error


def suggestion_for(error: InfraPlanError) -> Optional[str]:
    """Short hint for the structural errors users hit most."""
    if isinstance(error, CycleError):
        return "Break the cycle by removing one of the references along the path."
    if isinstance(error, UnresolvedReferenceError):
        return "References look like ${kind.local_name.attribute} and must name a declared resource."
    if isinstance(error, StalePlanError):
        return "Run 'infraplan plan --out' again and apply the new plan."
    return None


def fail(error: InfraPlanError) -> None:
    """Print an infraplan error to stderr and exit 1."""
    click.echo(format_error(str(error), suggestion_for(error)), err=True)
    sys.exit(1)


def echo_safe(text: str) -> None:
    try:
        click.echo(text, nl=False)
    except UnicodeEncodeError:
        click.echo(text.encode('ascii', errors='replace').decode('ascii'), nl=False)


__all__ = ["resolve_file_path", "format_error", "suggestion_for", "fail", "echo_safe"]
