"""
Dashboard storage on top of the GitHub contents API.

Provides the dashboard store, the manifest index and id validation.
"""

from dashstate.core.store.dashboards import DashboardStore
from dashstate.core.store.ids import is_valid_dashboard_id, validate_dashboard_id
from dashstate.core.store.manifest import ManifestIndex, remove_entry, upsert_entry
from dashstate.core.store.models import (
    DashboardRead,
    DashboardState,
    DeleteOutcome,
    Manifest,
    ManifestEntry,
    ReconcileReport,
    display_name_for,
)

__all__ = [
    "DashboardRead",
    "DashboardState",
    "DashboardStore",
    "DeleteOutcome",
    "Manifest",
    "ManifestEntry",
    "ManifestIndex",
    "ReconcileReport",
    "display_name_for",
    "is_valid_dashboard_id",
    "remove_entry",
    "upsert_entry",
    "validate_dashboard_id",
]
