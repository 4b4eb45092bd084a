"""
Manifest index persistence.

The manifest is a single JSON array of ManifestEntry objects stored at a
fixed path. It is the only listing of dashboards; the backend offers no
query capability of its own.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from dashstate.core.github.client import GitHubContentsClient
from dashstate.core.github.models import PutResult
from dashstate.core.store.models import Manifest, ManifestEntry

logger = logging.getLogger(__name__)


def parse_entries(items: list[Any]) -> list[ManifestEntry]:
    """
    Build entries from a decoded JSON array.

    Items that are not objects with a string id are skipped, and only the
    first entry for each id is kept. Every other field is kept as stored.
    """
    entries: list[ManifestEntry] = []
    seen: set[str] = set()
    for item in items:
        if not isinstance(item, dict) or not isinstance(item.get("id"), str):
            logger.warning("Skipping malformed manifest item: %r", item)
            continue
        entry = ManifestEntry.model_validate(item)
        if entry.id in seen:
            logger.warning("Dropping duplicate manifest entry for %s", entry.id)
            continue
        seen.add(entry.id)
        entries.append(entry)
    return entries


def upsert_entry(entries: Iterable[ManifestEntry], entry: ManifestEntry) -> list[ManifestEntry]:
    """
    Insert or replace the entry for ``entry.id``.

    An existing entry keeps its position and any extra keys; otherwise the
    entry is appended.
    """
    result: list[ManifestEntry] = []
    replaced = False
    for current in entries:
        if current.id != entry.id:
            result.append(current)
        elif not replaced:
            result.append(
                current.model_copy(update={"name": entry.name, "updated_at": entry.updated_at})
            )
            replaced = True
    if not replaced:
        result.append(entry)
    return result


def remove_entry(entries: Iterable[ManifestEntry], dashboard_id: str) -> list[ManifestEntry]:
    """Return the entries without any entry for ``dashboard_id``."""
    return [entry for entry in entries if entry.id != dashboard_id]


def serialize_entries(entries: Iterable[ManifestEntry]) -> str:
    """Pretty-print entries as the persisted JSON array."""
    return json.dumps([entry.to_json() for entry in entries], indent=2, ensure_ascii=False)


class ManifestIndex:
    """
    Loads and saves the manifest through the contents client.

    Example:
        >>> index = ManifestIndex(client, "data/manifest.json")
        >>> manifest = index.load()
        >>> index.save(upsert_entry(manifest.entries, entry), manifest.sha)
    """

    def __init__(self, client: GitHubContentsClient, path: str) -> None:
        self.client = client
        self.path = path

    def load(self) -> Manifest:
        """
        Load the manifest.

        A missing file yields an empty manifest with no SHA, so the next save
        creates it. A file whose content is not a JSON array yields an empty
        manifest that still carries the file's SHA, so the next save replaces
        the corrupt file under the usual SHA precondition.

        Raises:
            BackendError: If the backend read fails
        """
        file = self.client.get_file(self.path)
        if not file.exists:
            return Manifest(sha=None, entries=[])

        try:
            data = json.loads(file.content)
        except json.JSONDecodeError as e:
            logger.warning("Manifest %s is not valid JSON, treating as empty: %s", self.path, e)
            return Manifest(sha=file.sha, entries=[])

        if not isinstance(data, list):
            logger.warning(
                "Manifest %s is not a JSON array (%s), treating as empty",
                self.path,
                type(data).__name__,
            )
            return Manifest(sha=file.sha, entries=[])

        return Manifest(sha=file.sha, entries=parse_entries(data))

    def save(self, entries: Iterable[ManifestEntry], expected_sha: str | None) -> PutResult:
        """
        Write the manifest.

        Args:
            entries: Entries to persist, in order
            expected_sha: SHA from the preceding load (None to create the file)

        Raises:
            BackendError: If the write is rejected, including on a SHA conflict
        """
        return self.client.put_file(
            self.path,
            serialize_entries(entries),
            expected_sha=expected_sha,
            message=f"Update manifest ({datetime.now(timezone.utc).isoformat(timespec='seconds')})",
        )
