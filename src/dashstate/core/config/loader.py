"""
Settings loading from environment variables.

Supported env vars:
    GITHUB_TOKEN (required) - API token for the contents API
    GITHUB_OWNER (required) - repository owner
    GITHUB_REPO (required) - repository name (no owner prefix)
    GITHUB_BRANCH - branch holding the data (default: main)
    GITHUB_API_BASE - API base URL (default: https://api.github.com)
    DASHSTATE_MANIFEST_PATH - manifest path (default: data/manifest.json)
    DASHSTATE_DASHBOARDS_DIR - documents directory (default: data/dashboards)
    DASHSTATE_TIMEOUT - per-request timeout in seconds (default: 30)
"""

import os
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from dashstate.core.exceptions import ConfigurationError

from .models import StoreSettings

REQUIRED_ENV_VARS: tuple[str, ...] = ("GITHUB_TOKEN", "GITHUB_OWNER", "GITHUB_REPO")

# Optional env var -> StoreSettings field
OPTIONAL_ENV_VARS: dict[str, str] = {
    "GITHUB_BRANCH": "branch",
    "GITHUB_API_BASE": "api_base",
    "DASHSTATE_MANIFEST_PATH": "manifest_path",
    "DASHSTATE_DASHBOARDS_DIR": "dashboards_dir",
    "DASHSTATE_TIMEOUT": "timeout",
}


def missing_env_vars(environ: Mapping[str, str] | None = None) -> list[str]:
    """
    List required env vars that are unset or empty.

    Args:
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Names of missing variables, in declaration order
    """
    if environ is None:
        environ = os.environ
    return [key for key in REQUIRED_ENV_VARS if not environ.get(key, "").strip()]


def load_settings(environ: Mapping[str, str] | None = None) -> StoreSettings:
    """
    Build StoreSettings from environment variables.

    Args:
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Validated StoreSettings

    Raises:
        ConfigurationError: If required variables are missing or a value is invalid
    """
    if environ is None:
        environ = os.environ

    missing = missing_env_vars(environ)
    if missing:
        raise ConfigurationError("Missing env vars", missing=missing)

    values: dict[str, Any] = {
        "token": environ["GITHUB_TOKEN"].strip(),
        "owner": environ["GITHUB_OWNER"].strip(),
        "repo": environ["GITHUB_REPO"].strip(),
    }
    for env_key, field in OPTIONAL_ENV_VARS.items():
        raw = environ.get(env_key, "").strip()
        if raw:
            values[field] = raw

    try:
        return StoreSettings(**values)
    except PydanticValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        field = ".".join(str(loc) for loc in first.get("loc", []))
        msg = first.get("msg", "invalid value")
        raise ConfigurationError(f"Invalid configuration: {field}: {msg}") from e
