"""
Store data models for dashstate.

Dashboard documents are opaque JSON values owned by the caller. The only
structure the store relies on is the optional ``__meta.name`` field, used
to give manifest entries a display name.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, JsonValue, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

# An opaque JSON document; never inspected beyond display_name_for()
DashboardState = JsonValue

META_KEY = "__meta"
NAME_KEY = "name"

_TIMESTAMP = TypeAdapter(datetime)


def display_name_for(state: DashboardState) -> str | None:
    """
    Derive a display name from ``state["__meta"]["name"]``.

    Returns:
        The name as a string when present and truthy, otherwise None
    """
    if not isinstance(state, dict):
        return None
    meta = state.get(META_KEY)
    if not isinstance(meta, dict):
        return None
    name = meta.get(NAME_KEY)
    return str(name) if name else None


class ManifestEntry(BaseModel):
    """
    One dashboard in the manifest index.

    Unknown keys found on stored entries are kept, so entries written by
    other tools survive an upsert. The same goes for a ``name`` that is not
    a string or an ``updatedAt`` that is not a timestamp: such values are
    carried through unchanged rather than costing the dashboard its entry.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(..., description="Dashboard id")
    name: JsonValue = Field(default=None, description="Display name, if the state has one")
    updated_at: Any = Field(
        default=None,
        alias="updatedAt",
        description="When the dashboard document was last written (raw value if unparsable)",
    )

    @field_validator("updated_at", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return _TIMESTAMP.validate_python(value)
            except PydanticValidationError:
                return value
        return value

    def to_json(self) -> dict[str, Any]:
        """Serialize with the persisted (camelCase) keys."""
        return self.model_dump(mode="json", by_alias=True)


class Manifest(BaseModel):
    """The manifest as loaded: its entries plus the SHA to write against."""

    sha: str | None = Field(default=None, description="Blob SHA, None if the file is absent")
    entries: list[ManifestEntry] = Field(default_factory=list)

    @property
    def exists(self) -> bool:
        return self.sha is not None


class DashboardRead(BaseModel):
    """Result of reading one dashboard document."""

    exists: bool
    state: JsonValue = None


class DeleteOutcome(BaseModel):
    """Result of an idempotent delete."""

    deleted: bool
    commit_ref: str | None = None


class ReconcileReport(BaseModel):
    """What a manifest rebuild changed."""

    added: list[str] = Field(default_factory=list, description="Ids given a new entry")
    removed: list[str] = Field(default_factory=list, description="Ids whose entry was dropped")
    renamed: list[str] = Field(default_factory=list, description="Ids whose name changed")
    entries: list[ManifestEntry] = Field(default_factory=list, description="Rebuilt manifest")
    saved: bool = Field(default=False, description="Whether the manifest was written")
    commit_ref: str | None = None

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed or self.renamed)
