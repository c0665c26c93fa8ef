"""Validate command - build and resolve a document without touching state."""

import json as jsonlib
import sys
import click
from ...utils.errors import InfraPlanError
from ...utils.logging import get_logger
from ..utils import resolve_file_path, format_error, fail, echo_safe

logger = get_logger("cli.validate")


@click.command()
@click.argument('document', type=click.Path(exists=False))
@click.option('--config', 'config_path', type=click.Path(exists=True), help='Extra config file merged over defaults')
@click.option('--json', 'as_json', is_flag=True, help='Output the resolved order as JSON')
def validate(document, config_path, as_json):
    """Check DOCUMENT for parse, reference and cycle errors and print the apply order."""
    from ... import validate as validate_core
    from ...presentation.formatter import format_order

    try:
        document_path = resolve_file_path(document)
    except FileNotFoundError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)

    try:
        order = validate_core(str(document_path), config_path=config_path)
    except InfraPlanError as e:
        fail(e)

    if as_json:
        click.echo(jsonlib.dumps({"valid": True, "order": order}, indent=2))
        return

    click.echo(f"Document is valid: {len(order)} resources.", err=True)
    echo_safe(format_order(order))
