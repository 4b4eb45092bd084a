"""
Dashstate CLI - Serve command.

Run the state API with uvicorn.
"""

import logging

import typer
from rich.console import Console

from dashstate.cli.errors import report_store_error
from dashstate.core.config import load_settings
from dashstate.core.exceptions import ConfigurationError

console = Console()
logger = logging.getLogger(__name__)


def serve(
    ctx: typer.Context,
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind"),
    port: int = typer.Option(8080, "--port", "-p", help="Port to run the server on"),
) -> None:
    """
    Serve the dashboard state API.

    Settings are checked before the server starts, so a missing token or
    repository fails fast instead of on the first request.

    Examples:
        dashstate serve
        dashstate serve --host 0.0.0.0 --port 3000
    """
    debug = ctx.obj.get("debug", False) if ctx.obj else False

    try:
        settings = load_settings()
    except ConfigurationError as e:
        raise typer.Exit(report_store_error(e)) from e

    import uvicorn

    from dashstate.api.app import app as fastapi_app

    fastapi_app.state.settings = settings

    url = f"http://{host}:{port}"
    console.print("[bold cyan]Starting dashstate API...[/bold cyan]")
    console.print(f"[dim]Repository: {settings.owner}/{settings.repo}@{settings.branch}[/dim]")
    console.print(f"[dim]API: {url}/api/state?list=1[/dim]")
    console.print(f"[dim]Docs: {url}/docs[/dim]")
    console.print("\n[dim]Press Ctrl+C to stop[/dim]\n")

    try:
        uvicorn.run(
            fastapi_app,
            host=host,
            port=port,
            log_level="debug" if debug else "info",
        )
    except KeyboardInterrupt:
        console.print("\n[yellow]Server stopped[/yellow]")
