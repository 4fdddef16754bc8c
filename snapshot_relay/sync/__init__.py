"""
Snapshot synchronisation pipeline.

Components:
    - fetcher: all-or-nothing download of one task's artifact set
    - reconciler: refresh of every monitored task plus the stored listing
    - reader: listing of the local store without remote calls
    - locks: per-task serialisation of fetch transactions
"""

from .fetcher import SnapshotFetcher, artifact_file_name, extract_visualization
from .locks import TaskLockRegistry
from .reader import LocalSnapshotReader
from .reconciler import CatalogReconciler

__all__ = [
    "CatalogReconciler",
    "LocalSnapshotReader",
    "SnapshotFetcher",
    "TaskLockRegistry",
    "artifact_file_name",
    "extract_visualization",
]
