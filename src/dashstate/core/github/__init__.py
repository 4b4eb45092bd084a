"""
GitHub integration for dashstate.

Provides the contents API client used as the store's only persistence backend.
"""

from dashstate.core.github.client import GitHubContentsClient, encode_repo_path
from dashstate.core.github.models import (
    DeleteResult,
    MissingFile,
    PutResult,
    RemoteEntry,
    RemoteFile,
)

__all__ = [
    "DeleteResult",
    "GitHubContentsClient",
    "MissingFile",
    "PutResult",
    "RemoteEntry",
    "RemoteFile",
    "encode_repo_path",
]
