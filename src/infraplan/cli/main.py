"""Main CLI entry point for infraplan."""

import logging
import click
from .commands.validate import validate
from .commands.plan import plan
from .commands.apply import apply
from .commands.state import state
from .commands.version import version
from .. import __version__
from ..utils.logging import get_logger, set_flag_level

logger = get_logger("cli.main")


@click.group()
@click.version_option(version=__version__, prog_name="infraplan", message="%(prog)s version %(version)s")
@click.option('--verbose', '-v', is_flag=True, help='Show debug logging')
@click.option('--quiet-logs', is_flag=True, help='Only log warnings and errors')
def cli(verbose, quiet_logs):
    """infraplan - Plan and apply declarative infrastructure documents."""
    if verbose:
        set_flag_level(logging.DEBUG)
    elif quiet_logs:
        set_flag_level(logging.WARNING)
    else:
        set_flag_level(None)


cli.add_command(validate)
cli.add_command(plan)
cli.add_command(apply)
cli.add_command(state)
cli.add_command(version)
