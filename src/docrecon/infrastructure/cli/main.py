import click

from docrecon.infrastructure.cli.reconcile_commands import (
    reconcile_module,
    reconcile_modules,
    reconcile_run,
)
from docrecon.infrastructure.config import get_settings
from docrecon.infrastructure.logging_setup import setup_logging


@click.group()
@click.option("-v", "--verbose", is_flag=True, default=False, help="Log every repair.")
def cli(verbose: bool) -> None:
    """docrecon: cross-collection consistency reconciliation"""
    setup_logging(get_settings(), verbose=verbose)


@cli.group()
def reconcile() -> None:
    """Detect and repair drift between cached and source-of-truth data."""


# Register subcommands
reconcile.add_command(reconcile_run)
reconcile.add_command(reconcile_module)
reconcile.add_command(reconcile_modules)
