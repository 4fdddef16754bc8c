"""
Snapshot Relay

Fetches chart-monitoring snapshot artifacts from a remote tenant, caches them
in a local artifact store and serves them without per-request authentication.
"""

import importlib.metadata

__author__ = "George Loudon"
__email__ = "george@example.com"
__version__ = importlib.metadata.version("snapshot-relay")

from .errors import (
    ArtifactFetchError,
    AuthenticationError,
    CatalogError,
    ConfigError,
    CorruptRecordError,
    SnapshotRelayError,
)
from .schemas import CatalogEntry, FetchComplete, FetchFailure, SnapshotRecord
from .store import ArtifactStore, FileArtifactStore, create_artifact_store
from .sync import CatalogReconciler, LocalSnapshotReader, SnapshotFetcher

__all__ = [
    "ArtifactFetchError",
    "ArtifactStore",
    "AuthenticationError",
    "CatalogEntry",
    "CatalogError",
    "CatalogReconciler",
    "ConfigError",
    "CorruptRecordError",
    "FetchComplete",
    "FetchFailure",
    "FileArtifactStore",
    "LocalSnapshotReader",
    "SnapshotFetcher",
    "SnapshotRecord",
    "SnapshotRelayError",
    "create_artifact_store",
]
