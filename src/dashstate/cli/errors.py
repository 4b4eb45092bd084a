"""
Standardized error handling and exit codes for the dashstate CLI.

Store exceptions are reported with a short problem line plus, where it helps,
the reason and a suggested fix.
"""

from enum import IntEnum

from rich.console import Console
from rich.markup import escape

from dashstate.core.config import REQUIRED_ENV_VARS
from dashstate.core.exceptions import (
    BackendError,
    ConfigurationError,
    DashStateError,
    IndexUpdateError,
    ValidationError,
)

console = Console()


class ExitCode(IntEnum):
    """Standard exit codes for dashstate CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Backend or unexpected failure."""

    USER_ERROR = 2
    """Invalid input or missing configuration (actionable by user)."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it
    """
    console.print(f"[red]Error:[/red] {escape(problem)}")

    if reason:
        console.print(f"[dim]{escape(reason)}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


def report_store_error(exc: DashStateError) -> ExitCode:
    """
    Print a store exception and return the exit code to use.

    Args:
        exc: Exception raised by the store or settings loader

    Returns:
        USER_ERROR for invalid input or configuration, else GENERAL_ERROR
    """
    if isinstance(exc, ConfigurationError):
        print_error(
            exc.message,
            reason=f"Missing: {', '.join(exc.missing)}" if exc.missing else None,
            solution=f"export {' '.join(f'{k}=...' for k in REQUIRED_ENV_VARS)} "
            "(or put them in .env)",
        )
        return ExitCode.USER_ERROR

    if isinstance(exc, ValidationError):
        print_error(exc.message)
        return ExitCode.USER_ERROR

    if isinstance(exc, IndexUpdateError):
        print_error(
            exc.message,
            reason=f"The dashboard was committed ({exc.commit_ref or 'no commit url'}); "
            "the manifest is stale",
            solution="dashstate reconcile",
        )
        return ExitCode.GENERAL_ERROR

    if isinstance(exc, BackendError):
        print_error(
            exc.message,
            reason=exc.body[:500] if exc.body else None,
            solution="Re-read the dashboard before retrying a failed write"
            if exc.stage in ("github_put", "github_delete")
            else None,
        )
        return ExitCode.GENERAL_ERROR

    print_error(exc.message)
    return ExitCode.GENERAL_ERROR
