"""
Dashstate CLI - Reconcile command.

Rebuilds the manifest from the dashboard documents that exist in the
repository. Use it after a manifest update failed, or after documents were
added or removed outside dashstate.
"""

import typer
from rich.console import Console
from rich.table import Table

from dashstate.cli.dashboards import open_store

console = Console()


def reconcile(
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        "-n",
        help="Show what would change without writing the manifest",
    ),
) -> None:
    """
    Rebuild the manifest from stored dashboard documents.

    Examples:
        dashstate reconcile --dry-run
        dashstate reconcile
    """
    with open_store() as store:
        report = store.reconcile(dry_run=dry_run)

    if not report.changed:
        console.print("[green]✓[/green] Manifest is in sync with the stored dashboards")
        return

    table = Table(title="Manifest changes")
    table.add_column("Change", style="bold")
    table.add_column("Dashboards")
    if report.added:
        table.add_row("[green]added[/green]", ", ".join(report.added))
    if report.removed:
        table.add_row("[red]removed[/red]", ", ".join(report.removed))
    if report.renamed:
        table.add_row("[yellow]renamed[/yellow]", ", ".join(report.renamed))
    console.print(table)

    if dry_run:
        console.print("[dim]Dry run: manifest not written[/dim]")
    elif report.saved:
        console.print(f"[green]✓[/green] Manifest rebuilt ({len(report.entries)} entries)")
        if report.commit_ref:
            console.print(f"[dim]{report.commit_ref}[/dim]")
