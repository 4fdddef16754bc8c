"""
Snapshot Relay v1 data model.

The persisted metadata record and the API catalog entry use camelCase keys on
the wire (``imageAvailable``, ``displayMode``, ...) because the front-end
reads them verbatim. Python code uses the snake_case attribute names.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .enums import (
    REQUIRED_ROLES,
    UNKNOWN_VISUALIZATION,
    ArtifactRole,
    DisplayMode,
)


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


class RemoteTask(BaseModel):
    """A chart-monitoring task as returned by the remote task detail call.

    Only ``id`` and ``name`` are interpreted; every other field the remote
    returns is kept and merged into the persisted metadata record.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(..., min_length=1)
    name: str = ""
    resource_id: Optional[str] = Field(default=None, alias="resourceId")

    @property
    def label(self) -> str:
        """Name and id, as used in log lines and error messages."""
        return f"{self.name} ({self.id})"


@dataclass
class ExecutionFile:
    """One downloaded execution file: HTTP status, declared type and raw body."""

    status: int
    content_type: str = ""
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def is_json(self) -> bool:
        return "application/json" in self.content_type.lower()

    @property
    def is_png(self) -> bool:
        return "image/png" in self.content_type.lower()


class SnapshotRecord(BaseModel):
    """The persisted ``metadata.json`` of a complete artifact set.

    Writing this record is the commit point of a fetch transaction. Extra
    fields carry the remote task detail the record was derived from.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(..., min_length=1)
    name: str = ""
    visualization: str = UNKNOWN_VISUALIZATION
    image_available: bool = Field(default=False, alias="imageAvailable")
    snapshot_available: bool = Field(default=False, alias="snapshotAvailable")
    display_mode: DisplayMode = Field(default=DisplayMode.IMAGE, alias="displayMode")
    last_updated: str = Field(default_factory=utc_now_iso, alias="lastUpdated")

    def to_entry(self) -> "CatalogEntry":
        """Project onto the public API view, the same way stored records list."""
        return CatalogEntry.from_metadata(self.to_json_dict(), fallback_id=self.id)

    def to_json_dict(self) -> Dict[str, Any]:
        """Wire representation with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class CatalogEntry(BaseModel):
    """The API view of a snapshot. Never carries file paths or remote tokens."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    id: str
    name: str
    visualization: str = UNKNOWN_VISUALIZATION
    image_available: bool = Field(default=False, alias="imageAvailable")
    snapshot_available: bool = Field(default=False, alias="snapshotAvailable")
    display_mode: DisplayMode = Field(default=DisplayMode.IMAGE, alias="displayMode")

    @classmethod
    def from_metadata(
        cls, data: Dict[str, Any], fallback_id: Optional[str] = None
    ) -> "CatalogEntry":
        """Build an entry from a raw metadata dict.

        Absent fields fall back to defaults so records written by older
        versions still list. ``fallback_id`` (the directory name) stands in
        for a missing id and name.

        Raises:
            ValueError: if no id is available or a field has the wrong type
        """
        entry_id = data.get("id") or fallback_id
        if not entry_id:
            raise ValueError("metadata record has no id")
        name = data.get("name") or (f"Snapshot {fallback_id}" if fallback_id else "")
        return cls.model_validate(
            {
                "id": entry_id,
                "name": name,
                "visualization": data.get("visualization") or UNKNOWN_VISUALIZATION,
                "imageAvailable": data.get("imageAvailable") or False,
                "snapshotAvailable": data.get("snapshotAvailable") or False,
                "displayMode": data.get("displayMode") or DisplayMode.IMAGE,
            }
        )

    def to_json_dict(self) -> Dict[str, Any]:
        """Wire representation with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


@dataclass
class ArtifactSet:
    """Files saved for one task during a fetch transaction."""

    task_id: str
    files: Dict[ArtifactRole, str] = field(default_factory=dict)
    interactive_data: Any = None
    # Roles whose content type was neither JSON nor PNG
    flagged: List[ArtifactRole] = field(default_factory=list)

    def missing_roles(self) -> List[ArtifactRole]:
        return [role for role in REQUIRED_ROLES if role not in self.files]

    @property
    def complete(self) -> bool:
        return not self.missing_roles()


@dataclass
class FetchComplete:
    """A committed transaction: all artifacts saved and metadata written."""

    record: SnapshotRecord
    artifacts: ArtifactSet

    @property
    def task_id(self) -> str:
        return self.record.id


@dataclass
class FetchFailure:
    """A rolled-back transaction. The task's directory no longer exists."""

    task_id: str
    reason: str
    role: Optional[ArtifactRole] = None


FetchOutcome = Union[FetchComplete, FetchFailure]


@dataclass
class RefreshResult:
    """Outcome of a full catalog refresh."""

    entries: List[CatalogEntry] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
