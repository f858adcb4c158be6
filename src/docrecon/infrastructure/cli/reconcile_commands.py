"""CLI commands for running reconciliation passes."""

from __future__ import annotations

import json
from pathlib import Path

import click

from docrecon.application.dto import GlobalSummary, ModuleResult
from docrecon.application.run_reconciliation import module_names
from docrecon.domain.exceptions import DomainException
from docrecon.infrastructure.bootstrap import document_store, reconciliation_handler
from docrecon.infrastructure.persistence.dry_run_store import DryRunDocumentStore

_data_dir_option = click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory with one JSON file per collection (overrides DOCRECON_DATA_DIR).",
)
_dry_run_option = click.option(
    "--dry-run", is_flag=True, default=False, help="Report repairs without writing them."
)


def _result_header() -> None:
    click.echo(
        f"{'Module':<18} {'Updated':>8} {'Deleted':>8} {'Refs cleaned':>13} {'Errors':>7}"
    )
    click.echo("-" * 58)


def _result_line(result: ModuleResult) -> None:
    click.echo(
        f"{result.module_name:<18} {result.records_updated:>8} {result.records_deleted:>8} "
        f"{result.references_cleaned:>13} {len(result.errors):>7}"
    )
    for message in result.errors:
        click.echo(f"  ! {message}")


def _display_summary(summary: GlobalSummary) -> None:
    _result_header()
    for result in summary.results:
        _result_line(result)
    click.echo("-" * 58)
    totals = summary.totals
    click.echo(
        f"{'Total':<18} {totals.updated:>8} {totals.deleted:>8} "
        f"{totals.references_cleaned:>13} {totals.errors:>7}"
    )
    click.echo()
    if summary.success:
        click.echo("Reconciliation completed successfully.")
    else:
        click.echo(f"Reconciliation completed with {totals.errors} error(s).")


def _progress(message: str, percent: float) -> None:
    click.echo(f"[{percent:5.1f}%] {message}", err=True)


@click.command("run")
@_data_dir_option
@_dry_run_option
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the summary as JSON.")
def reconcile_run(data_dir: Path | None, dry_run: bool, as_json: bool) -> None:
    """Run a full reconciliation pass over every module."""
    store = document_store(data_dir=data_dir, dry_run=dry_run)
    handler = reconciliation_handler(store)

    summary = handler.handle(progress_callback=None if as_json else _progress)

    if as_json:
        click.echo(json.dumps(summary.to_dict(), indent=2))
    else:
        _display_summary(summary)
        if isinstance(store, DryRunDocumentStore):
            click.echo(f"Dry run: {len(store.planned_operations)} write(s) not applied.")

    if not summary.success:
        raise SystemExit(1)


@click.command("module")
@click.argument("name")
@_data_dir_option
@_dry_run_option
def reconcile_module(name: str, data_dir: Path | None, dry_run: bool) -> None:
    """Run a single module by NAME (see `reconcile modules`)."""
    store = document_store(data_dir=data_dir, dry_run=dry_run)
    handler = reconciliation_handler(store)

    try:
        result = handler.run_module(name)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _result_header()
    _result_line(result)
    if not result.succeeded:
        raise SystemExit(1)


@click.command("modules")
def reconcile_modules() -> None:
    """List modules in execution order."""
    for position, name in enumerate(module_names(), start=1):
        click.echo(f"{position:>2}. {name}")
