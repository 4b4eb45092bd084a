"""
Custom exceptions for dashstate.

This module defines the error taxonomy shared by the store, the API and the
CLI. Each exception carries a human-readable message plus structured context
so the API layer can surface it without parsing strings.

Exception Hierarchy:
    DashStateError (base)
    ├── ValidationError (malformed or missing dashboard id)
    ├── ConfigurationError (deployment settings absent or invalid)
    └── BackendError (non-success response from the contents API)
        └── IndexUpdateError (document committed, manifest update failed)

Example:
    >>> from dashstate.core.exceptions import BackendError
    >>> try:
    ...     raise BackendError("github_put", 409, body='{"message":"conflict"}')
    ... except BackendError as e:
    ...     print(e.stage, e.status_code)
    github_put 409
"""

from __future__ import annotations

from typing import Any


class DashStateError(Exception):
    """
    Base exception for all dashstate errors.

    Attributes:
        message: Human-readable error message
        context: Optional dictionary of additional context
    """

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        return self.message


class ValidationError(DashStateError):
    """
    Raised when a dashboard id is missing or malformed.

    Always raised before any request reaches the backend.
    """

    def __init__(self, message: str, value: object = None, **context: object) -> None:
        super().__init__(message, value=value, **context)
        self.value = value


class ConfigurationError(DashStateError):
    """
    Raised when required deployment configuration is absent or invalid.

    Attributes:
        missing: Names of required settings that were not provided
    """

    def __init__(
        self, message: str, missing: list[str] | None = None, **context: object
    ) -> None:
        super().__init__(message, missing=missing or [], **context)
        self.missing = list(missing or [])


class BackendError(DashStateError):
    """
    Exception for failed calls to the remote contents API.

    The raw response body is kept verbatim and never parsed further, so
    callers can diagnose conflicts (409/422) and auth failures alike. A
    BackendError raised by a write means the outcome of that write is
    unknown; re-read before retrying.

    Attributes:
        stage: Operation that failed (github_get, github_put, ...)
        status_code: HTTP status, or None when the request never completed
        body: Raw response body (or transport error text)
        url: Request URL
        path: Repository path the operation targeted
    """

    def __init__(
        self,
        stage: str,
        status_code: int | None,
        body: str = "",
        url: str | None = None,
        path: str | None = None,
        message: str | None = None,
    ) -> None:
        if message is None:
            status = status_code if status_code is not None else "no response"
            message = f"{stage} failed for {path or url or '?'} ({status})"
        super().__init__(
            message, stage=stage, status_code=status_code, url=url, path=path
        )
        self.stage = stage
        self.status_code = status_code
        self.body = body
        self.url = url
        self.path = path

    def to_detail(self) -> dict[str, Any]:
        """Structured detail for API error responses."""
        return {
            "stage": self.stage,
            "status": self.status_code,
            "body": self.body,
            "url": self.url,
            "path": self.path,
        }


class IndexUpdateError(BackendError):
    """
    Raised when a dashboard document was written but its manifest entry was not.

    The document write already committed and is not rolled back; the manifest
    stays stale until the next successful put or a reconcile.

    Attributes:
        commit_ref: Commit reference of the document write that succeeded
    """

    def __init__(self, cause: BackendError, commit_ref: str | None) -> None:
        super().__init__(
            cause.stage,
            cause.status_code,
            body=cause.body,
            url=cause.url,
            path=cause.path,
            message=f"Dashboard saved but manifest update failed: {cause.message}",
        )
        self.commit_ref = commit_ref

    def to_detail(self) -> dict[str, Any]:
        detail = super().to_detail()
        detail["commitRef"] = self.commit_ref
        detail["documentCommitted"] = True
        return detail


__all__ = [
    "DashStateError",
    "ValidationError",
    "ConfigurationError",
    "BackendError",
    "IndexUpdateError",
]
