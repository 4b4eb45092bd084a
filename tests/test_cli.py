"""
Tests for the dashstate CLI.

The store is redirected to the fake repository by patching
DashboardStore.from_settings; settings come from the environment as usual.
"""

import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from dashstate.cli import app
from dashstate.core.github import GitHubContentsClient
from dashstate.core.store import DashboardStore

runner = CliRunner()

MANIFEST = "data/manifest.json"


@pytest.fixture
def fake_store(env_settings, fake_github, tmp_path, monkeypatch):
    """Point CLI commands at the fake repository."""
    monkeypatch.chdir(tmp_path)  # no stray .env files

    def from_settings(cls, settings, **kwargs):
        return cls(GitHubContentsClient(settings, transport=fake_github.transport))

    with patch.object(DashboardStore, "from_settings", classmethod(from_settings)):
        yield fake_github


class TestHelp:
    """Test command help and structure."""

    def test_help_lists_commands(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("serve", "list", "get", "put", "delete", "reconcile"):
            assert command in result.output

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "dashstate" in result.output


class TestCommands:
    """Test dashboard commands against the fake repository."""

    def test_put_get_list_delete(self, fake_store, tmp_path):
        state_file = tmp_path / "state.json"
        state_file.write_text(json.dumps({"__meta": {"name": "Ops"}, "tiles": [1]}))

        result = runner.invoke(app, ["put", "ops-board", str(state_file)])
        assert result.exit_code == 0, result.output
        assert "Saved ops-board" in result.output

        result = runner.invoke(app, ["get", "ops-board"])
        assert result.exit_code == 0
        assert '"tiles"' in result.output

        result = runner.invoke(app, ["list", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.output)[0]["id"] == "ops-board"

        result = runner.invoke(app, ["list"])
        assert "ops-board" in result.output
        assert "Ops" in result.output

        result = runner.invoke(app, ["delete", "ops-board"])
        assert result.exit_code == 0
        assert "Deleted ops-board" in result.output
        assert "data/dashboards/ops-board.json" not in fake_store.files

    def test_put_from_stdin(self, fake_store):
        result = runner.invoke(app, ["put", "stdin-board", "-"], input='{"a": 1}')
        assert result.exit_code == 0, result.output
        assert fake_store.read_json("data/dashboards/stdin-board.json") == {"a": 1}

    def test_put_invalid_json_file(self, fake_store, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{nope")

        result = runner.invoke(app, ["put", "abc", str(bad)])

        assert result.exit_code == 2
        assert fake_store.requests == []

    def test_get_missing(self, fake_store):
        result = runner.invoke(app, ["get", "missing-board"])
        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_delete_missing(self, fake_store):
        result = runner.invoke(app, ["delete", "missing-board"])
        assert result.exit_code == 0
        assert "nothing to delete" in result.output

    def test_invalid_id(self, fake_store):
        result = runner.invoke(app, ["get", "ab"])
        assert result.exit_code == 2
        assert "Invalid dash id" in result.output
        assert fake_store.requests == []

    def test_backend_error(self, fake_store):
        fake_store.fail_next("GET", MANIFEST, 500, body="upstream down")

        result = runner.invoke(app, ["list"])

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_list_shows_unusual_entries(self, fake_store):
        fake_store.seed(MANIFEST, [{"id": "legacy", "name": 7, "updatedAt": "[last week]"}])

        result = runner.invoke(app, ["list"])

        assert result.exit_code == 0, result.output
        assert "legacy" in result.output
        assert "[last week]" in result.output

    def test_list_empty(self, fake_store):
        result = runner.invoke(app, ["list"])
        assert result.exit_code == 0
        assert "No dashboards" in result.output


class TestReconcile:
    """Test the reconcile command."""

    def test_in_sync(self, fake_store):
        result = runner.invoke(app, ["reconcile"])
        assert result.exit_code == 0
        assert "in sync" in result.output

    def test_dry_run_then_apply(self, fake_store):
        fake_store.seed("data/dashboards/orphan-doc.json", {"__meta": {"name": "Orphan"}})

        result = runner.invoke(app, ["reconcile", "--dry-run"])
        assert result.exit_code == 0
        assert "orphan-doc" in result.output
        assert MANIFEST not in fake_store.files

        result = runner.invoke(app, ["reconcile"])
        assert result.exit_code == 0
        assert "Manifest rebuilt" in result.output
        assert fake_store.read_json(MANIFEST)[0]["name"] == "Orphan"


class TestConfiguration:
    """Test missing configuration handling."""

    def test_missing_env(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        for key in ("GITHUB_TOKEN", "GITHUB_OWNER", "GITHUB_REPO"):
            monkeypatch.delenv(key, raising=False)

        result = runner.invoke(app, ["list"])

        assert result.exit_code == 2
        assert "GITHUB_TOKEN" in result.output

    def test_serve_fails_fast_without_env(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        for key in ("GITHUB_TOKEN", "GITHUB_OWNER", "GITHUB_REPO"):
            monkeypatch.delenv(key, raising=False)

        with patch("uvicorn.run") as mock_run:
            result = runner.invoke(app, ["serve"])

        assert result.exit_code == 2
        mock_run.assert_not_called()

    def test_serve_starts_uvicorn(self, env_settings, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        from dashstate.api.app import app as fastapi_app

        monkeypatch.setattr(fastapi_app.state, "settings", None, raising=False)
        with patch("uvicorn.run") as mock_run:
            result = runner.invoke(app, ["serve", "--port", "3000"])

        assert result.exit_code == 0, result.output
        assert mock_run.call_args.kwargs["port"] == 3000
        assert fastapi_app.state.settings.repo == "dashboards"

    def test_env_file_option(self, fake_store, monkeypatch, tmp_path):
        for key in ("GITHUB_TOKEN", "GITHUB_OWNER", "GITHUB_REPO"):
            # setenv first so teardown also removes what the CLI loads
            monkeypatch.setenv(key, "unset")
            monkeypatch.delenv(key)
        env_file = tmp_path / "deploy.env"
        env_file.write_text("GITHUB_TOKEN=t\nGITHUB_OWNER=octo\nGITHUB_REPO=dashboards\n")

        result = runner.invoke(app, ["--env-file", str(env_file), "list"])

        assert result.exit_code == 0, result.output
        assert "No dashboards" in result.output
