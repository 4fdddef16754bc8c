"""Snapshot Relay schemas."""

from .enums import (
    REQUIRED_ROLES,
    SUPPORTED_VISUALIZATIONS,
    UNKNOWN_VISUALIZATION,
    ArtifactRole,
    DisplayMode,
    resolve_display_mode,
)
from .snapshot_v1 import (
    ArtifactSet,
    CatalogEntry,
    ExecutionFile,
    FetchComplete,
    FetchFailure,
    FetchOutcome,
    RefreshResult,
    RemoteTask,
    SnapshotRecord,
    utc_now_iso,
)

__all__ = [
    "ArtifactRole",
    "ArtifactSet",
    "CatalogEntry",
    "DisplayMode",
    "ExecutionFile",
    "FetchComplete",
    "FetchFailure",
    "FetchOutcome",
    "REQUIRED_ROLES",
    "RefreshResult",
    "RemoteTask",
    "SUPPORTED_VISUALIZATIONS",
    "SnapshotRecord",
    "UNKNOWN_VISUALIZATION",
    "resolve_display_mode",
    "utc_now_iso",
]
