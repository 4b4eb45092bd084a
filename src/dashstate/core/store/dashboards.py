"""
Dashboard store.

Keeps each dashboard's JSON document and its manifest entry in the backing
repository. The two live in separate files and GitHub offers no multi-file
transaction, so every write is a two-phase, best-effort sequence:

1. Write the document, guarded by the SHA read just before.
2. Update the manifest, guarded by the manifest's own SHA.

Phase 2 only starts once phase 1 has committed, and a phase 2 failure never
undoes phase 1. Between the two phases the manifest is stale; that window is
accepted, and ``reconcile()`` can rebuild the manifest from the documents.
Conflicts are surfaced, never retried.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from dashstate.core.config.models import StoreSettings
from dashstate.core.exceptions import BackendError, DashStateError, IndexUpdateError
from dashstate.core.github.client import GitHubContentsClient
from dashstate.core.github.models import RemoteFile
from dashstate.core.store.ids import is_valid_dashboard_id, validate_dashboard_id
from dashstate.core.store.manifest import ManifestIndex, remove_entry, upsert_entry
from dashstate.core.store.models import (
    DashboardRead,
    DashboardState,
    DeleteOutcome,
    ManifestEntry,
    ReconcileReport,
    display_name_for,
)

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def serialize_state(state: DashboardState) -> str:
    """Pretty-print a dashboard state for storage."""
    return json.dumps(state, indent=2, ensure_ascii=False)


class DashboardStore:
    """
    CRUD for dashboard documents plus the manifest that indexes them.

    Example:
        >>> with DashboardStore.from_settings(settings) as store:
        ...     store.put("ops-overview", {"__meta": {"name": "Ops"}, "tiles": []})
        ...     store.get("ops-overview").state
        {'__meta': {'name': 'Ops'}, 'tiles': []}
    """

    def __init__(
        self,
        client: GitHubContentsClient,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """
        Initialize DashboardStore.

        Args:
            client: Contents client bound to the backing repository
            clock: Source of manifest ``updatedAt`` timestamps
        """
        self.client = client
        self.settings: StoreSettings = client.settings
        self.manifest = ManifestIndex(client, self.settings.manifest_path)
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: StoreSettings, **client_kwargs: Any) -> DashboardStore:
        """Create a store with its own contents client."""
        return cls(GitHubContentsClient(settings, **client_kwargs))

    def __enter__(self) -> DashboardStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self.client.close()

    def list_dashboards(self) -> list[ManifestEntry]:
        """
        Return the manifest entries.

        Raises:
            BackendError: If the manifest cannot be read
        """
        return self.manifest.load().entries

    def get(self, dashboard_id: str) -> DashboardRead:
        """
        Read a dashboard document. The manifest is not consulted.

        Args:
            dashboard_id: Dashboard id

        Returns:
            DashboardRead; ``exists`` is False when there is no document

        Raises:
            ValidationError: If the id is invalid (no backend call is made)
            BackendError: If the read fails
        """
        dashboard_id = validate_dashboard_id(dashboard_id)
        file = self.client.get_file(self.settings.document_path(dashboard_id))
        if not isinstance(file, RemoteFile):
            return DashboardRead(exists=False, state=None)

        try:
            state = json.loads(file.content)
        except json.JSONDecodeError as e:
            raise DashStateError(
                f"Stored document for {dashboard_id} is not valid JSON: {e}",
                path=file.path,
                sha=file.sha,
            ) from e
        return DashboardRead(exists=True, state=state)

    def put(self, dashboard_id: str, state: DashboardState) -> str | None:
        """
        Create or replace a dashboard document, then index it.

        Args:
            dashboard_id: Dashboard id
            state: Opaque JSON-serializable state

        Returns:
            Commit reference of the document write

        Raises:
            ValidationError: If the id is invalid (no backend call is made)
            BackendError: If the document read or write fails; on a write this
                includes SHA conflicts with a concurrent writer
            IndexUpdateError: If the document was written but the manifest
                update failed
        """
        dashboard_id = validate_dashboard_id(dashboard_id)
        path = self.settings.document_path(dashboard_id)

        current = self.client.get_file(path)
        expected_sha = current.sha if isinstance(current, RemoteFile) else None
        saved = self.client.put_file(
            path,
            serialize_state(state),
            expected_sha=expected_sha,
            message=f"Update dashboard {dashboard_id} ({utcnow().isoformat()})",
        )

        entry = ManifestEntry(
            id=dashboard_id,
            name=display_name_for(state),
            updated_at=self._clock(),
        )
        try:
            manifest = self.manifest.load()
            self.manifest.save(upsert_entry(manifest.entries, entry), manifest.sha)
        except BackendError as e:
            logger.warning(
                "Dashboard %s saved but manifest update failed: %s", dashboard_id, e
            )
            raise IndexUpdateError(e, saved.commit_ref) from e

        return saved.commit_ref

    def delete(self, dashboard_id: str) -> DeleteOutcome:
        """
        Delete a dashboard document, then drop its manifest entry.

        Deleting a dashboard that has no document succeeds with
        ``deleted=False``. Once the document is gone, failures while updating
        the manifest are logged and not raised.

        Raises:
            ValidationError: If the id is invalid (no backend call is made)
            BackendError: If reading or deleting the document fails
        """
        dashboard_id = validate_dashboard_id(dashboard_id)
        path = self.settings.document_path(dashboard_id)

        current = self.client.get_file(path)
        if not isinstance(current, RemoteFile):
            return DeleteOutcome(deleted=False)

        result = self.client.delete_file(
            path,
            current.sha,
            message=f"Delete dashboard {dashboard_id} ({utcnow().isoformat()})",
        )

        try:
            manifest = self.manifest.load()
            self.manifest.save(remove_entry(manifest.entries, dashboard_id), manifest.sha)
        except BackendError as e:
            logger.warning(
                "Dashboard %s deleted but manifest update failed (ignored): %s",
                dashboard_id,
                e,
            )

        return DeleteOutcome(deleted=True, commit_ref=result.commit_ref)

    def reconcile(self, *, dry_run: bool = False) -> ReconcileReport:
        """
        Rebuild the manifest from the documents that actually exist.

        Entries keep their order and ``updatedAt``; documents with no entry
        are appended with the current time; entries with no document are
        dropped; names are re-derived from each document. Files in the
        dashboards directory that are not ``<valid-id>.json`` are ignored.

        Args:
            dry_run: Compute the report without writing the manifest

        Raises:
            BackendError: If listing, reading or saving fails
        """
        manifest = self.manifest.load()
        listing = self.client.list_directory(self.settings.dashboards_dir)

        document_ids: list[str] = []
        for item in listing:
            if item.type != "file" or not item.name.endswith(".json"):
                continue
            candidate = item.name[: -len(".json")]
            if is_valid_dashboard_id(candidate):
                document_ids.append(candidate)
            else:
                logger.debug("Ignoring non-dashboard file %s", item.path)

        present = set(document_ids)
        known = {entry.id for entry in manifest.entries}
        report = ReconcileReport()

        entries: list[ManifestEntry] = []
        for entry in manifest.entries:
            if entry.id not in present:
                report.removed.append(entry.id)
                continue
            name = self._document_name(entry.id, fallback=entry.name)
            if name != entry.name:
                report.renamed.append(entry.id)
                entry = entry.model_copy(update={"name": name})
            entries.append(entry)

        for dashboard_id in document_ids:
            if dashboard_id in known:
                continue
            report.added.append(dashboard_id)
            entries.append(
                ManifestEntry(
                    id=dashboard_id,
                    name=self._document_name(dashboard_id, fallback=None),
                    updated_at=self._clock(),
                )
            )

        report.entries = entries
        if report.changed and not dry_run:
            saved = self.manifest.save(entries, manifest.sha)
            report.saved = True
            report.commit_ref = saved.commit_ref
            logger.info(
                "Manifest rebuilt: %d added, %d removed, %d renamed",
                len(report.added),
                len(report.removed),
                len(report.renamed),
            )
        return report

    def _document_name(self, dashboard_id: str, fallback: Any) -> Any:
        try:
            read = self.get(dashboard_id)
        except BackendError:
            raise
        except DashStateError as e:
            logger.warning("Keeping previous name for %s: %s", dashboard_id, e)
            return fallback
        if not read.exists:
            return fallback
        return display_name_for(read.state)
