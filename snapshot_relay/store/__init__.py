"""Per-task artifact storage."""

from .storage import (
    METADATA_FILE,
    ArtifactStore,
    FileArtifactStore,
    create_artifact_store,
    validate_task_id,
)

__all__ = [
    "METADATA_FILE",
    "ArtifactStore",
    "FileArtifactStore",
    "create_artifact_store",
    "validate_task_id",
]
