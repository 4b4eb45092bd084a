"""
GitHub contents API client for dashstate.

Reads, writes and deletes single files in the backing repository through
the REST contents endpoint. Blob SHAs returned by the API act as the only
concurrency control: writes that carry an expected SHA are rejected by
GitHub when the file has changed since it was read.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote

import httpx

from dashstate.core.config.models import StoreSettings
from dashstate.core.exceptions import BackendError
from dashstate.core.github.models import (
    DeleteResult,
    MissingFile,
    PutResult,
    RemoteEntry,
    RemoteFile,
)

logger = logging.getLogger(__name__)

API_VERSION = "2022-11-28"


def encode_repo_path(path: str) -> str:
    """
    Percent-encode each segment of a repository path.

    Separators are kept so the directory structure survives, while special
    characters inside a segment are escaped.

    Example:
        >>> encode_repo_path("data/my dash#1.json")
        'data/my%20dash%231.json'
    """
    return "/".join(quote(segment, safe="") for segment in str(path or "").split("/"))


def encode_content(text: str) -> str:
    """Encode UTF-8 text as base64 for the contents API."""
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode_content(encoded: str) -> str:
    """Decode base64 content returned by the API (which wraps lines at 60 chars)."""
    compact = "".join(str(encoded or "").split())
    return base64.b64decode(compact).decode("utf-8", errors="replace")


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class GitHubContentsClient:
    """
    Client for single-file operations via the GitHub contents API.

    One client is meant to serve one invocation (a request or a CLI command);
    close it when done, or use it as a context manager.

    Example:
        >>> with GitHubContentsClient(settings) as client:
        ...     file = client.get_file("data/manifest.json")
        ...     if file.exists:
        ...         print(file.sha)
    """

    def __init__(
        self,
        settings: StoreSettings,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Initialize GitHubContentsClient.

        Args:
            settings: Store settings (credential, repository coordinates, branch)
            transport: Optional httpx transport, e.g. httpx.MockTransport in tests
        """
        self.settings = settings
        self._http = httpx.Client(
            headers={
                "Authorization": f"Bearer {settings.token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": API_VERSION,
            },
            timeout=settings.timeout,
            transport=transport,
        )

    def __enter__(self) -> GitHubContentsClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._http.close()

    def contents_url(self, path: str) -> str:
        """Build the contents endpoint URL for a repository path."""
        owner = quote(self.settings.owner, safe="")
        repo = quote(self.settings.repo, safe="")
        return f"{self.settings.api_base}/repos/{owner}/{repo}/contents/{encode_repo_path(path)}"

    def _send(
        self,
        stage: str,
        method: str,
        url: str,
        path: str,
        **kwargs: Any,
    ) -> httpx.Response:
        logger.debug("%s %s", method, url)
        try:
            return self._http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise BackendError(stage, None, body=str(e), url=url, path=path) from e

    @staticmethod
    def _parse_json(stage: str, response: httpx.Response, url: str, path: str) -> Any:
        raw = response.text
        try:
            return json.loads(raw or "{}")
        except json.JSONDecodeError as e:
            raise BackendError(
                stage,
                response.status_code,
                body=raw,
                url=url,
                path=path,
                message=f"{stage}: invalid JSON in response for {path}",
            ) from e

    def get_file(self, path: str) -> RemoteFile | MissingFile:
        """
        Read a file from the configured branch.

        Args:
            path: Repository path

        Returns:
            RemoteFile with decoded content and SHA, or MissingFile on 404

        Raises:
            BackendError: On any other non-success response
        """
        stage = "github_get"
        url = self.contents_url(path)
        response = self._send(stage, "GET", url, path, params={"ref": self.settings.branch})

        if response.status_code == 404:
            return MissingFile(path=path)
        if not response.is_success:
            raise BackendError(stage, response.status_code, body=response.text, url=url, path=path)

        data = self._parse_json(stage, response, url, path)
        if not isinstance(data, dict):
            raise BackendError(
                stage,
                response.status_code,
                body=response.text,
                url=url,
                path=path,
                message=f"{path} is a directory, not a file",
            )

        try:
            content = decode_content(str(data.get("content") or ""))
        except (binascii.Error, ValueError) as e:
            raise BackendError(
                stage,
                response.status_code,
                body=response.text,
                url=url,
                path=path,
                message=f"{stage}: undecodable content for {path}",
            ) from e

        return RemoteFile(path=path, sha=str(data.get("sha") or ""), content=content)

    def put_file(
        self,
        path: str,
        content: str,
        expected_sha: str | None = None,
        message: str | None = None,
    ) -> PutResult:
        """
        Create or update a file.

        Args:
            path: Repository path
            content: New file content (UTF-8 text)
            expected_sha: SHA the file must currently have; omit to create
                (or blindly overwrite, which GitHub refuses for existing files)
            message: Commit message

        Returns:
            PutResult with the new blob SHA and commit reference

        Raises:
            BackendError: If the backend rejects the write (including SHA conflicts)
        """
        stage = "github_put"
        url = self.contents_url(path)
        body: dict[str, Any] = {
            "message": message or f"Update {path} ({_timestamp()})",
            "content": encode_content(content),
            "branch": self.settings.branch,
        }
        if expected_sha:
            body["sha"] = expected_sha

        response = self._send(stage, "PUT", url, path, json=body)
        if not response.is_success:
            raise BackendError(stage, response.status_code, body=response.text, url=url, path=path)

        data = self._parse_json(stage, response, url, path)
        result = PutResult.from_api(data if isinstance(data, dict) else {})
        logger.info("Committed %s (sha=%s)", path, (result.sha or "?")[:8])
        return result

    def delete_file(
        self,
        path: str,
        expected_sha: str,
        message: str | None = None,
    ) -> DeleteResult:
        """
        Delete a file.

        Args:
            path: Repository path
            expected_sha: SHA the file must currently have
            message: Commit message

        Returns:
            DeleteResult with the commit reference

        Raises:
            BackendError: If the backend rejects the delete
        """
        stage = "github_delete"
        url = self.contents_url(path)
        body = {
            "message": message or f"Delete {path} ({_timestamp()})",
            "sha": expected_sha,
            "branch": self.settings.branch,
        }

        response = self._send(stage, "DELETE", url, path, json=body)
        if not response.is_success:
            raise BackendError(stage, response.status_code, body=response.text, url=url, path=path)

        # A malformed body on success still means the delete went through
        try:
            data = json.loads(response.text or "{}")
        except json.JSONDecodeError:
            data = {}
        logger.info("Deleted %s", path)
        return DeleteResult.from_api(data if isinstance(data, dict) else {})

    def list_directory(self, path: str) -> list[RemoteEntry]:
        """
        List the entries of a repository directory.

        Args:
            path: Repository directory path

        Returns:
            Directory entries; empty if the directory does not exist

        Raises:
            BackendError: On any non-success, non-404 response
        """
        stage = "github_list"
        url = self.contents_url(path)
        response = self._send(stage, "GET", url, path, params={"ref": self.settings.branch})

        if response.status_code == 404:
            return []
        if not response.is_success:
            raise BackendError(stage, response.status_code, body=response.text, url=url, path=path)

        data = self._parse_json(stage, response, url, path)
        if not isinstance(data, list):
            raise BackendError(
                stage,
                response.status_code,
                body=response.text,
                url=url,
                path=path,
                message=f"{path} is a file, not a directory",
            )
        return [RemoteEntry.from_api(item) for item in data if isinstance(item, dict)]
