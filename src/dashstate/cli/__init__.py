"""
Dashstate CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import logging
from pathlib import Path

import typer
from rich.console import Console

from dashstate import __version__
from dashstate.cli import dashboards, reconcile, serve
from dashstate.core.config import default_env_files, load_env_files

PANEL_SERVER = "Run the API"
PANEL_DASHBOARDS = "Work with Dashboards"

# Create the main Typer app
app = typer.Typer(
    name="dashstate",
    help="Dashboard state stored in a GitHub repository",
    no_args_is_help=True,
    add_completion=False,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"dashstate {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Read settings from this .env file before the default ones",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit",
    ),
) -> None:
    """
    Dashstate - dashboards persisted as JSON files in a GitHub repository.

    Configuration comes from the environment (or .env files):
    GITHUB_TOKEN, GITHUB_OWNER, GITHUB_REPO, and optionally GITHUB_BRANCH.

    Examples:
        dashstate serve                      # Run the HTTP API
        dashstate list                       # Show the manifest
        dashstate put ops state.json         # Save a dashboard
        dashstate reconcile --dry-run        # Check the manifest
    """
    if debug:
        logging.basicConfig(level=logging.DEBUG)

    # Precedence: OS env > --env-file > project .env > user .env
    paths = default_env_files()
    if env_file is not None:
        paths.insert(0, env_file)
    load_env_files(paths)

    ctx.obj = {"debug": debug}


app.command(name="serve", rich_help_panel=PANEL_SERVER)(serve.serve)
app.command(name="list", rich_help_panel=PANEL_DASHBOARDS)(dashboards.list_dashboards)
app.command(name="get", rich_help_panel=PANEL_DASHBOARDS)(dashboards.get_dashboard)
app.command(name="put", rich_help_panel=PANEL_DASHBOARDS)(dashboards.put_dashboard)
app.command(name="delete", rich_help_panel=PANEL_DASHBOARDS)(dashboards.delete_dashboard)
app.command(name="reconcile", rich_help_panel=PANEL_DASHBOARDS)(reconcile.reconcile)


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]
