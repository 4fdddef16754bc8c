"""
Artifact storage for snapshot sets.

v0: file:// support (local filesystem, served as static files)

Design principle: treat storage as a URI, not a path.
The store performs no locking; callers must not run two transactions for the
same task id at once.
"""
from __future__ import annotations

import json
import logging
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from ..errors import CorruptRecordError

logger = logging.getLogger(__name__)

METADATA_FILE = "metadata.json"


def validate_task_id(task_id: str) -> str:
    """Ensure a task id is usable as a single directory name."""
    if (
        not task_id
        or task_id in (".", "..")
        or "/" in task_id
        or "\\" in task_id
        or "\x00" in task_id
    ):
        raise ValueError(f"Invalid task id for storage: {task_id!r}")
    return task_id


class ArtifactStore(ABC):
    """Abstract base class for per-task artifact storage."""

    @abstractmethod
    def ensure_dir(self, task_id: str) -> None:
        """Ensure the task's directory exists."""
        pass

    @abstractmethod
    def write_file(self, task_id: str, name: str, content: bytes) -> None:
        """Write raw bytes to a named file in the task's directory."""
        pass

    @abstractmethod
    def write_metadata(self, task_id: str, record: Dict[str, Any]) -> None:
        """Write the task's metadata record."""
        pass

    @abstractmethod
    def read_metadata(self, task_id: str) -> Optional[Dict[str, Any]]:
        """Read the task's metadata record, or None if there is none."""
        pass

    @abstractmethod
    def remove_dir(self, task_id: str) -> None:
        """Remove the task's directory and everything in it."""
        pass

    @abstractmethod
    def list_task_dirs(self) -> List[str]:
        """List task ids that have a directory in the store."""
        pass

    @abstractmethod
    def has_file(self, task_id: str, name: str) -> bool:
        """Check whether a named file exists for the task."""
        pass

    @abstractmethod
    def exists(self) -> bool:
        """Check whether the store root exists."""
        pass

    @abstractmethod
    def get_uri(self) -> str:
        """Get the full URI of this store."""
        pass


class FileArtifactStore(ArtifactStore):
    """Local filesystem artifact store (file:// URIs).

    Structure:
        public/snapshots/
        ├── {task_id}/
        │   ├── snapshot.json      # Interactive chart data
        │   ├── image-small.png    # Thumbnail
        │   ├── image-large.png    # Preview
        │   └── metadata.json      # Commit record, written last
        └── ...
    """

    def __init__(self, root: Path):
        """Initialize with the store root.

        Args:
            root: Directory holding one subdirectory per task. It is created
                lazily on first write.
        """
        self.root = Path(root)

    def task_path(self, task_id: str) -> Path:
        """Directory for a task's artifacts."""
        return self.root / validate_task_id(task_id)

    def ensure_dir(self, task_id: str) -> None:
        self.task_path(task_id).mkdir(parents=True, exist_ok=True)

    def write_file(self, task_id: str, name: str, content: bytes) -> None:
        full_path = self.task_path(task_id) / validate_task_id(name)
        full_path.parent.mkdir(parents=True, exist_ok=True)
        full_path.write_bytes(content)

    def write_metadata(self, task_id: str, record: Dict[str, Any]) -> None:
        full_path = self.task_path(task_id) / METADATA_FILE
        full_path.parent.mkdir(parents=True, exist_ok=True)
        full_path.write_text(
            json.dumps(record, indent=2, default=str), encoding="utf-8"
        )

    def read_metadata(self, task_id: str) -> Optional[Dict[str, Any]]:
        """Read and parse ``metadata.json``.

        Returns:
            The parsed record, or None when the directory or record is absent

        Raises:
            CorruptRecordError: If the record cannot be read or is not a JSON object
        """
        full_path = self.task_path(task_id) / METADATA_FILE
        if not full_path.is_file():
            return None

        try:
            data = json.loads(full_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CorruptRecordError(task_id, str(e)) from e

        if not isinstance(data, dict):
            raise CorruptRecordError(
                task_id, f"expected a JSON object, got {type(data).__name__}"
            )
        return data

    def remove_dir(self, task_id: str) -> None:
        path = self.task_path(task_id)
        if not path.exists():
            return
        shutil.rmtree(path)
        logger.debug(f"Removed artifact directory {path}")

    def list_task_dirs(self) -> List[str]:
        if not self.root.is_dir():
            return []
        return sorted(entry.name for entry in self.root.iterdir() if entry.is_dir())

    def has_file(self, task_id: str, name: str) -> bool:
        return (self.task_path(task_id) / name).is_file()

    def list_files(self, task_id: str) -> List[str]:
        """Names of the files currently in a task's directory."""
        path = self.task_path(task_id)
        if not path.is_dir():
            return []
        return sorted(entry.name for entry in path.iterdir() if entry.is_file())

    def exists(self) -> bool:
        return self.root.is_dir()

    def get_uri(self) -> str:
        return f"file://{self.root.resolve()}"


def create_artifact_store(uri: str) -> ArtifactStore:
    """Factory function to create the appropriate ArtifactStore from a URI.

    Args:
        uri: Store URI (e.g., "file:///srv/relay/public/snapshots",
            "file://./public/snapshots") or a bare filesystem path

    Returns:
        ArtifactStore instance for the given URI scheme

    Raises:
        ValueError: If URI scheme is not supported
    """
    parsed = urlparse(uri)

    if parsed.scheme == "file":
        # file://./public/snapshots parses "." as the netloc
        path = f"{parsed.netloc}{parsed.path}" if parsed.netloc else parsed.path
        return FileArtifactStore(Path(path))

    elif parsed.scheme == "":
        return FileArtifactStore(Path(uri))

    else:
        raise ValueError(
            f"Unsupported storage scheme: {parsed.scheme}. Supported: file://"
        )
