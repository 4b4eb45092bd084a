"""
Request dependencies for the state API.

Settings are loaded from the environment on first use and cached on the
application state. Each request gets its own store (and HTTP client),
closed once the response is sent; nothing else is shared between requests.
"""

from collections.abc import Iterator

from fastapi import Depends, Request

from dashstate.core.config import StoreSettings, load_settings
from dashstate.core.store import DashboardStore


def get_settings(request: Request) -> StoreSettings:
    """
    Resolve the store settings for this application.

    Raises:
        ConfigurationError: If required settings are missing or invalid
    """
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        settings = load_settings()
        request.app.state.settings = settings
    return settings


def get_store(settings: StoreSettings = Depends(get_settings)) -> Iterator[DashboardStore]:
    """Provide a per-request DashboardStore."""
    store = DashboardStore.from_settings(settings)
    try:
        yield store
    finally:
        store.close()
