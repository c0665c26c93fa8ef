"""Apply command - plan, confirm, then execute against the provider."""

import json as jsonlib
import signal
import sys
import threading
import click
from ...apply.models import ApplyReport, EXIT_INTERRUPTED
from ...utils.errors import InfraPlanError
from ...utils.logging import get_logger
from ..utils import resolve_file_path, format_error, fail, echo_safe

logger = get_logger("cli.apply")

_PROGRESS_LABELS = {
    "started": "...",
    "applied": "done",
    "failed": "FAILED",
    "skipped": "skipped",
    "cancelled": "cancelled",
}


@click.command()
@click.argument('document', type=click.Path(exists=False))
@click.option('--config', 'config_path', type=click.Path(exists=True), help='Extra config file merged over defaults')
@click.option('--state', 'state_path', type=click.Path(), help='State file (default from config)')
@click.option('--plan', 'plan_path', type=click.Path(exists=True), help='Apply a plan saved with "plan --out" instead of planning again')
@click.option('--parallelism', type=click.IntRange(min=1), help='Maximum concurrent provider calls')
@click.option('--auto-approve', is_flag=True, help='Skip the confirmation prompt')
@click.option('--json', 'as_json', is_flag=True, help='Output the apply report as JSON')
@click.option('--quiet', is_flag=True, help='Suppress progress messages')
@click.option('--ascii', 'ascii_mode', is_flag=True, help='ASCII-only output')
def apply(document, config_path, state_path, plan_path, parallelism, auto_approve, as_json, quiet, ascii_mode):
    """
    Plan DOCUMENT and apply the changes.

    Exits 0 only when no action failed. Ctrl-C stops scheduling new actions,
    lets running ones finish and saves state. With --plan, the saved plan is
    applied only if the document and state still produce the same plan.
    """
    from ... import plan as plan_core, execute, load_saved_plan
    from ...presentation.formatter import format_plan, format_apply_report

    try:
        document_path = resolve_file_path(document)
    except FileNotFoundError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)

    try:
        if plan_path:
            result = load_saved_plan(plan_path, str(document_path), config_path=config_path, state_path=state_path)
        else:
            result = plan_core(str(document_path), config_path=config_path, state_path=state_path)
    except InfraPlanError as e:
        fail(e)

    if not as_json:
        echo_safe(format_plan(result.plan, ascii_mode=ascii_mode or None))

    if result.plan.is_empty:
        if as_json:
            click.echo(jsonlib.dumps(ApplyReport().model_dump(mode="json"), indent=2))
        return

    if not auto_approve and not click.confirm("Apply these changes?", err=True):
        click.echo("Apply cancelled.", err=True)
        sys.exit(EXIT_INTERRUPTED)

    def progress(address, event):
        if not quiet:
            click.echo(f"  {address}: {_PROGRESS_LABELS.get(event, event)}", err=True)

    cancel_event = threading.Event()
    previous_handler = _install_interrupt_handler(cancel_event)
    try:
        report = execute(result, parallelism=parallelism, cancel_event=cancel_event, progress=progress)
    except InfraPlanError as e:
        fail(e)
    finally:
        _restore_interrupt_handler(previous_handler)

    if as_json:
        click.echo(jsonlib.dumps(report.model_dump(mode="json"), indent=2))
    else:
        echo_safe(format_apply_report(report, ascii_mode=ascii_mode or None))

    sys.exit(report.exit_code)


def _install_interrupt_handler(cancel_event: threading.Event):
    """First Ctrl-C requests cancellation; handlers can only be set from the main thread."""
    if threading.current_thread() is not threading.main_thread():
        return None

    def handler(signum, frame):
        if not cancel_event.is_set():
            click.echo("\nInterrupt received: waiting for running actions to finish...", err=True)
        cancel_event.set()

    return signal.signal(signal.SIGINT, handler)


def _restore_interrupt_handler(previous) -> None:
    if previous is not None:
        signal.signal(signal.SIGINT, previous)
