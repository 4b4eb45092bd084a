"""
Dashstate - Git-backed dashboard state store

Stores dashboard documents and their manifest index as JSON files in a
GitHub repository, using blob SHAs for optimistic concurrency.
"""

__version__ = "0.1.0"

# Re-export core models for convenience
from dashstate.core.config.models import StoreSettings
from dashstate.core.store.dashboards import DashboardStore
from dashstate.core.store.models import ManifestEntry

__all__ = ["DashboardStore", "ManifestEntry", "StoreSettings", "__version__"]
