"""
Dashstate CLI - Dashboard commands.

Inspect and edit stored dashboards from the terminal, using the same store
as the HTTP API.
"""

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from dashstate.cli.errors import report_store_error
from dashstate.core.config import load_settings
from dashstate.core.exceptions import DashStateError
from dashstate.core.store import DashboardStore

console = Console()
logger = logging.getLogger(__name__)


@contextmanager
def open_store() -> Iterator[DashboardStore]:
    """
    Open a store from environment settings, reporting store errors.

    Raises:
        typer.Exit: With the mapped exit code on any DashStateError
    """
    try:
        settings = load_settings()
        with DashboardStore.from_settings(settings) as store:
            yield store
    except DashStateError as e:
        raise typer.Exit(report_store_error(e)) from e


def list_dashboards(
    as_json: bool = typer.Option(False, "--json", help="Print the raw manifest JSON"),
) -> None:
    """
    List dashboards from the manifest.

    Examples:
        dashstate list
        dashstate list --json
    """
    with open_store() as store:
        entries = store.list_dashboards()

    if as_json:
        console.print_json(json.dumps([entry.to_json() for entry in entries]))
        return

    if not entries:
        console.print("[dim]No dashboards[/dim]")
        return

    table = Table(title=f"Dashboards ({len(entries)})")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Updated", style="dim")
    for entry in entries:
        if isinstance(entry.updated_at, datetime):
            updated = entry.updated_at.isoformat()
        else:
            updated = "-" if entry.updated_at is None else str(entry.updated_at)
        name = "-" if entry.name is None else str(entry.name)
        table.add_row(entry.id, escape(name), escape(updated))
    console.print(table)


def get_dashboard(
    dashboard_id: str = typer.Argument(..., help="Dashboard id"),
) -> None:
    """
    Print a dashboard's stored state as JSON.

    Exits with code 1 if the dashboard does not exist.
    """
    with open_store() as store:
        result = store.get(dashboard_id)

    if not result.exists:
        console.print(f"[yellow]Dashboard {dashboard_id} does not exist[/yellow]")
        raise typer.Exit(1)
    console.print_json(json.dumps(result.state))


def put_dashboard(
    dashboard_id: str = typer.Argument(..., help="Dashboard id"),
    source: str = typer.Argument(..., help="JSON file with the state, or - for stdin"),
) -> None:
    """
    Save a dashboard's state from a JSON file (or stdin).

    Examples:
        dashstate put ops-overview state.json
        cat state.json | dashstate put ops-overview -
    """
    try:
        raw = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
        state = json.loads(raw)
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]Error:[/red] Could not read state from {source}: {e}")
        raise typer.Exit(2) from e

    with open_store() as store:
        commit_ref = store.put(dashboard_id, state)

    console.print(f"[green]✓[/green] Saved {dashboard_id}")
    if commit_ref:
        console.print(f"[dim]{commit_ref}[/dim]")


def delete_dashboard(
    dashboard_id: str = typer.Argument(..., help="Dashboard id"),
) -> None:
    """
    Delete a dashboard. Deleting a missing dashboard is not an error.
    """
    with open_store() as store:
        outcome = store.delete(dashboard_id)

    if not outcome.deleted:
        console.print(f"[dim]Dashboard {dashboard_id} does not exist; nothing to delete[/dim]")
        return
    console.print(f"[green]✓[/green] Deleted {dashboard_id}")
    if outcome.commit_ref:
        console.print(f"[dim]{outcome.commit_ref}[/dim]")
