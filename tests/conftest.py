"""
Pytest configuration and shared fixtures.

Provides an in-memory emulation of the GitHub contents API (served through
httpx.MockTransport), store settings, and clients/stores wired to it.
"""

import base64
import hashlib
import json
from datetime import datetime, timedelta, timezone
from typing import Any
from urllib.parse import unquote

import httpx
import pytest

from dashstate.core.config import StoreSettings
from dashstate.core.github import GitHubContentsClient
from dashstate.core.store import DashboardStore

# ==============================================================================
# Fake GitHub contents API
# ==============================================================================


def blob_sha(content: str) -> str:
    """Git blob SHA for a text file, as GitHub computes it."""
    data = content.encode("utf-8")
    return hashlib.sha1(b"blob %d\0" % len(data) + data).hexdigest()


class FakeContentsAPI:
    """
    In-memory stand-in for the contents endpoint of one repository.

    Behaves like GitHub where the store depends on it:
    - GET of a missing path is 404; GET of a directory is a JSON array
    - PUT of an existing file without ``sha`` is 422, with a stale ``sha`` 409
    - DELETE with a stale ``sha`` is 409, of a missing file 404
    - content is base64 with line breaks every 60 characters

    Tests can queue one-shot failures (``fail_next``) and concurrent writes
    that land just before the next PUT to a path (``interleave``).
    """

    def __init__(self, owner: str = "octo", repo: str = "dashboards") -> None:
        self.prefix = f"/repos/{owner}/{repo}/contents/"
        self.files: dict[str, str] = {}
        self.requests: list[tuple[str, str]] = []
        self.bodies: list[dict[str, Any]] = []
        self._failures: dict[tuple[str, str], tuple[int, str]] = {}
        self._interleaved: dict[str, str] = {}
        self._commits = 0

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def seed(self, path: str, content: Any) -> str:
        """Store a file directly; non-strings are JSON-encoded. Returns its SHA."""
        text = content if isinstance(content, str) else json.dumps(content, indent=2)
        self.files[path] = text
        return blob_sha(text)

    def read_json(self, path: str) -> Any:
        return json.loads(self.files[path])

    def sha_of(self, path: str) -> str:
        return blob_sha(self.files[path])

    def fail_next(self, method: str, path: str, status_code: int = 500, body: str = "") -> None:
        """Make the next ``method`` request on ``path`` fail with ``status_code``."""
        self._failures[(method, path)] = (
            status_code,
            body or json.dumps({"message": f"Injected failure {status_code}"}),
        )

    def interleave(self, path: str, content: Any) -> None:
        """Write ``content`` to ``path`` just before the next PUT to it is handled."""
        self._interleaved[path] = content if isinstance(content, str) else json.dumps(content)

    def count(self, method: str | None = None, path: str | None = None) -> int:
        return sum(
            1
            for m, p in self.requests
            if (method is None or m == method) and (path is None or p == path)
        )

    def _commit(self) -> dict[str, str]:
        self._commits += 1
        sha = hashlib.sha1(str(self._commits).encode()).hexdigest()
        return {"sha": sha, "html_url": f"https://github.com/octo/dashboards/commit/{sha}"}

    @staticmethod
    def _json(status_code: int, payload: Any) -> httpx.Response:
        return httpx.Response(status_code, json=payload)

    def handle(self, request: httpx.Request) -> httpx.Response:
        raw_path = request.url.raw_path.decode("ascii").split("?", 1)[0]
        if not raw_path.startswith(self.prefix):
            return self._json(404, {"message": "Not Found"})
        path = unquote(raw_path[len(self.prefix):])
        method = request.method
        self.requests.append((method, path))

        if (method, path) in self._failures:
            status_code, body = self._failures.pop((method, path))
            return httpx.Response(status_code, text=body)

        if method == "GET":
            return self._get(path)

        body = json.loads(request.content or b"{}")
        self.bodies.append(body)
        if method == "PUT":
            return self._put(path, body)
        if method == "DELETE":
            return self._delete(path, body)
        return self._json(405, {"message": "Method Not Allowed"})

    def _get(self, path: str) -> httpx.Response:
        if path in self.files:
            text = self.files[path]
            encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
            wrapped = "\n".join(encoded[i:i + 60] for i in range(0, len(encoded), 60))
            return self._json(
                200,
                {
                    "type": "file",
                    "name": path.rsplit("/", 1)[-1],
                    "path": path,
                    "sha": blob_sha(text),
                    "encoding": "base64",
                    "content": wrapped + "\n",
                },
            )

        children = [
            p for p in sorted(self.files) if p.startswith(path + "/") and "/" not in p[len(path) + 1:]
        ]
        if children:
            return self._json(
                200,
                [
                    {
                        "type": "file",
                        "name": p.rsplit("/", 1)[-1],
                        "path": p,
                        "sha": blob_sha(self.files[p]),
                    }
                    for p in children
                ],
            )
        return self._json(404, {"message": "Not Found"})

    def _put(self, path: str, body: dict[str, Any]) -> httpx.Response:
        if path in self._interleaved:
            self.files[path] = self._interleaved.pop(path)

        current = self.files.get(path)
        sha = body.get("sha")
        if current is not None and not sha:
            return self._json(422, {"message": 'Invalid request.\n\n"sha" wasn\'t supplied.'})
        if current is not None and sha != blob_sha(current):
            return self._json(409, {"message": f"{path} does not match {sha}"})
        if current is None and sha:
            return self._json(409, {"message": f"{path} does not exist"})

        text = base64.b64decode(body["content"]).decode("utf-8")
        self.files[path] = text
        return self._json(
            201 if current is None else 200,
            {"content": {"path": path, "sha": blob_sha(text)}, "commit": self._commit()},
        )

    def _delete(self, path: str, body: dict[str, Any]) -> httpx.Response:
        current = self.files.get(path)
        if current is None:
            return self._json(404, {"message": "Not Found"})
        if body.get("sha") != blob_sha(current):
            return self._json(409, {"message": f"{path} does not match {body.get('sha')}"})
        del self.files[path]
        return self._json(200, {"content": None, "commit": self._commit()})


class TickingClock:
    """Clock that advances one minute per reading."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(minutes=1)
        return current


# ==============================================================================
# Fixtures
# ==============================================================================

MANIFEST = "data/manifest.json"


@pytest.fixture
def settings() -> StoreSettings:
    """Settings pointing at the fake repository."""
    return StoreSettings(token="test-token", owner="octo", repo="dashboards")


@pytest.fixture
def fake_github() -> FakeContentsAPI:
    """Empty fake repository."""
    return FakeContentsAPI()


@pytest.fixture
def contents_client(settings, fake_github):
    """GitHubContentsClient talking to the fake repository."""
    client = GitHubContentsClient(settings, transport=fake_github.transport)
    yield client
    client.close()


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def store(contents_client, clock) -> DashboardStore:
    """DashboardStore on the fake repository with a deterministic clock."""
    return DashboardStore(contents_client, clock=clock)


@pytest.fixture
def env_settings(monkeypatch):
    """Populate the required env vars (and clear optional ones)."""
    monkeypatch.setenv("GITHUB_TOKEN", "test-token")
    monkeypatch.setenv("GITHUB_OWNER", "octo")
    monkeypatch.setenv("GITHUB_REPO", "dashboards")
    for key in (
        "GITHUB_BRANCH",
        "GITHUB_API_BASE",
        "DASHSTATE_MANIFEST_PATH",
        "DASHSTATE_DASHBOARDS_DIR",
        "DASHSTATE_TIMEOUT",
    ):
        monkeypatch.delenv(key, raising=False)
