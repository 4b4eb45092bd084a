"""
.env file support for the store settings.

Only the variables that load_settings() reads are taken from .env files;
anything else in those files is left out of the process environment. A
variable that is already set (exported in the shell, or set by the hosting
platform) is never replaced.

Files are searched in order and the first one that defines a variable wins:
    --env-file / DASHSTATE_ENV_FILE, if given
    ./.env.local, ./.env
    $XDG_CONFIG_HOME/dashstate/.env (default ~/.config/dashstate/.env)
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, MutableMapping
from pathlib import Path

from dotenv import dotenv_values

from .loader import OPTIONAL_ENV_VARS, REQUIRED_ENV_VARS

logger = logging.getLogger(__name__)

ENV_FILE_VAR = "DASHSTATE_ENV_FILE"
STORE_ENV_VARS: frozenset[str] = frozenset(REQUIRED_ENV_VARS) | frozenset(OPTIONAL_ENV_VARS)


def default_env_files(
    project_dir: Path | None = None,
    environ: MutableMapping[str, str] | None = None,
) -> list[Path]:
    """Candidate .env files, highest precedence first."""
    if project_dir is None:
        project_dir = Path.cwd()
    if environ is None:
        environ = os.environ

    paths: list[Path] = []
    explicit = environ.get(ENV_FILE_VAR, "").strip()
    if explicit:
        paths.append(Path(explicit).expanduser())
    paths += [project_dir / ".env.local", project_dir / ".env"]

    xdg_home = Path(environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")
    paths.append(xdg_home / "dashstate" / ".env")
    return paths


def load_env_files(
    paths: Iterable[Path] | None = None,
    *,
    environ: MutableMapping[str, str] | None = None,
) -> dict[str, Path]:
    """
    Fill unset store variables from .env files.

    Args:
        paths: Files to read, highest precedence first (default: default_env_files())
        environ: Mapping to update (defaults to os.environ)

    Returns:
        The variables that were set, mapped to the file each came from
    """
    if environ is None:
        environ = os.environ
    if paths is None:
        paths = default_env_files(environ=environ)

    loaded: dict[str, Path] = {}
    for path in paths:
        path = Path(path)
        if not path.is_file():
            continue
        for key, value in dotenv_values(path).items():
            if key not in STORE_ENV_VARS or value is None:
                continue
            if key in environ:
                continue
            environ[key] = value
            loaded[key] = path

    for key, path in sorted(loaded.items()):
        # Never log values; GITHUB_TOKEN is among them
        logger.debug("Loaded %s from %s", key, path)
    return loaded
