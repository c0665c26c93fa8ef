"""State commands - inspect the last applied state."""

import json as jsonlib
import sys
import click
from ...config import load_engine_config
from ...state.store import StateStore
from ...utils.errors import InfraPlanError
from ...utils.logging import get_logger
from ..utils import format_error, fail

logger = get_logger("cli.state")


def _open_store(config_path, state_path) -> StateStore:
    config = load_engine_config(config_path)
    return StateStore(state_path or config.state_path)


@click.group()
def state():
    """Inspect recorded state."""
    pass


@state.command(name="list")
@click.option('--config', 'config_path', type=click.Path(exists=True), help='Extra config file merged over defaults')
@click.option('--state', 'state_path', type=click.Path(), help='State file (default from config)')
def list_resources(config_path, state_path):
    """List addresses recorded in state."""
    try:
        current = _open_store(config_path, state_path).load()
    except InfraPlanError as e:
        fail(e)

    if not current.resources:
        click.echo("State is empty.", err=True)
        return
    for address in current.addresses():
        click.echo(f"{address}\t{current.resources[address].resource_id}")


@state.command(name="show")
@click.argument('address')
@click.option('--config', 'config_path', type=click.Path(exists=True), help='Extra config file merged over defaults')
@click.option('--state', 'state_path', type=click.Path(), help='State file (default from config)')
def show(address, config_path, state_path):
    """Show the recorded snapshot of ADDRESS as JSON."""
    try:
        current = _open_store(config_path, state_path).load()
    except InfraPlanError as e:
        fail(e)

    snapshot = current.get(address)
    if snapshot is None:
        similar = [a for a in current.addresses() if address.split(".")[0] in a]
        tip = f"Similar addresses: {', '.join(similar[:5])}" if similar else None
        click.echo(format_error(f"'{address}' is not in state.", tip), err=True)
        sys.exit(1)

    click.echo(jsonlib.dumps(snapshot.model_dump(mode="json"), indent=2, sort_keys=True))
