"""
GitHub contents API data models for dashstate.

Defines Pydantic models for files read from, and writes made to, the
backing repository.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class RemoteFile(BaseModel):
    """
    A file that exists in the backing repository.

    ``content`` is already decoded from the transport encoding.
    """

    exists: Literal[True] = True
    path: str = Field(..., description="Repository path")
    sha: str = Field(..., description="Blob SHA, used as the write precondition")
    content: str = Field(default="", description="Decoded UTF-8 file content")


class MissingFile(BaseModel):
    """A path with no file behind it. Absence is an outcome, not an error."""

    exists: Literal[False] = False
    path: str = Field(..., description="Repository path")


class RemoteEntry(BaseModel):
    """One item of a directory listing."""

    name: str
    path: str
    sha: str
    type: str = Field(default="file", description="file, dir, symlink or submodule")

    @classmethod
    def from_api(cls, data: dict[str, object]) -> RemoteEntry:
        """Create a RemoteEntry from a contents API listing item."""
        return cls(
            name=str(data.get("name", "")),
            path=str(data.get("path", "")),
            sha=str(data.get("sha", "")),
            type=str(data.get("type") or "file"),
        )


class PutResult(BaseModel):
    """Outcome of a successful create/update."""

    sha: str | None = Field(default=None, description="New blob SHA of the file")
    commit_ref: str | None = Field(default=None, description="HTML URL of the commit")

    @classmethod
    def from_api(cls, data: dict[str, object]) -> PutResult:
        """Create a PutResult from a PUT /contents response body."""
        content = data.get("content")
        commit = data.get("commit")
        sha = content.get("sha") if isinstance(content, dict) else None
        commit_ref = commit.get("html_url") if isinstance(commit, dict) else None
        return cls(
            sha=str(sha) if sha else None,
            commit_ref=str(commit_ref) if commit_ref else None,
        )


class DeleteResult(BaseModel):
    """Outcome of a successful delete."""

    commit_ref: str | None = Field(default=None, description="HTML URL of the commit")

    @classmethod
    def from_api(cls, data: dict[str, object]) -> DeleteResult:
        commit = data.get("commit")
        commit_ref = commit.get("html_url") if isinstance(commit, dict) else None
        return cls(commit_ref=str(commit_ref) if commit_ref else None)
