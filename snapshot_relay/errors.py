"""
Error types for Snapshot Relay.

Every error carries a stable ``code`` for programmatic handling and a
human-readable ``message``.

Propagation:
- ConfigError: fatal at startup, the process exits before serving.
- CatalogError: the remote task listing failed; surfaced to HTTP callers as 500.
- ArtifactFetchError: one artifact role failed; rolled back inside the fetcher
  and reported as a FetchFailure, never raised past it.
- CorruptRecordError: a metadata record exists but cannot be parsed; readers
  skip the entry.
"""

from __future__ import annotations


class SnapshotRelayError(Exception):
    """Base class for all Snapshot Relay errors."""

    code = "SNAPSHOT_RELAY_ERROR"

    def __init__(self, message: str, code: str | None = None):
        if code is not None:
            self.code = code
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to dict for JSON serialization."""
        return {"error": self.message, "code": self.code}


class ConfigError(SnapshotRelayError):
    """Required credentials or host are not configured."""

    code = "CONFIG_MISSING"


class CatalogError(SnapshotRelayError):
    """The remote task catalog could not be listed."""

    code = "CATALOG_UNAVAILABLE"


class AuthenticationError(CatalogError):
    """The OAuth2 token request was rejected or could not be made."""

    code = "AUTH_FAILED"


class ArtifactFetchError(SnapshotRelayError):
    """A single artifact role could not be downloaded or decoded."""

    code = "ARTIFACT_FETCH_FAILED"

    def __init__(self, role: str, message: str):
        self.role = role
        super().__init__(f"{role}: {message}")


class CorruptRecordError(SnapshotRelayError):
    """A persisted metadata record is unreadable or not a JSON object."""

    code = "CORRUPT_RECORD"

    def __init__(self, task_id: str, message: str):
        self.task_id = task_id
        super().__init__(f"metadata for {task_id}: {message}")
