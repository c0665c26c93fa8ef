"""Plan command - show what apply would change."""

import json as jsonlib
import sys
from pathlib import Path
import click
from ...utils.errors import InfraPlanError
from ...utils.logging import get_logger
from ..utils import resolve_file_path, format_error, fail, echo_safe

logger = get_logger("cli.plan")


@click.command()
@click.argument('document', type=click.Path(exists=False))
@click.option('--config', 'config_path', type=click.Path(exists=True), help='Extra config file merged over defaults')
@click.option('--state', 'state_path', type=click.Path(), help='State file (default from config)')
@click.option('--json', 'as_json', is_flag=True, help='Output structured JSON instead of human-readable')
@click.option('--out', '-o', type=click.Path(), help='Save the plan as JSON to a file')
@click.option('--ascii', 'ascii_mode', is_flag=True, help='ASCII-only output')
def plan(document, config_path, state_path, as_json, out, ascii_mode):
    """
    Diff DOCUMENT against state and print the ordered actions.

    Exits 0 whenever a plan could be computed, changes or not.
    """
    from ... import plan as plan_core
    from ...presentation.formatter import format_plan

    try:
        document_path = resolve_file_path(document)
    except FileNotFoundError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)

    try:
        result = plan_core(str(document_path), config_path=config_path, state_path=state_path)
    except InfraPlanError as e:
        fail(e)

    if out:
        out_path = Path(out)
        try:
            result.plan.save(out_path)
        except OSError as e:
            click.echo(format_error(f"Failed to write plan to {out_path}: {e}"), err=True)
            sys.exit(1)
        click.echo(f"Plan saved to: {out_path}", err=True)

    if as_json:
        click.echo(jsonlib.dumps(result.plan.model_dump(mode="json"), indent=2))
    else:
        echo_safe(format_plan(result.plan, ascii_mode=ascii_mode or None))
