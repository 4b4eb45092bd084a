"""
Configuration models and loading.

Settings come from environment variables (optionally filled in from .env
files) and are validated into a StoreSettings model.
"""

from .env import default_env_files, load_env_files
from .loader import REQUIRED_ENV_VARS, load_settings, missing_env_vars
from .models import StoreSettings

__all__ = [
    "REQUIRED_ENV_VARS",
    "StoreSettings",
    "default_env_files",
    "load_env_files",
    "load_settings",
    "missing_env_vars",
]
