"""
Local snapshot listing, served without contacting the remote system.
"""
from __future__ import annotations

from typing import List

import structlog

from ..errors import CorruptRecordError
from ..schemas import CatalogEntry
from ..store import ArtifactStore

logger = structlog.get_logger()


class LocalSnapshotReader:
    """Builds the catalog listing from what is already in the store."""

    def __init__(self, store: ArtifactStore):
        self.store = store

    def list_local(self) -> List[CatalogEntry]:
        """List every stored snapshot with a readable metadata record.

        A missing store yields an empty list. Directories whose record is
        absent or corrupt are skipped.
        """
        if not self.store.exists():
            return []

        entries = []
        for task_id in self.store.list_task_dirs():
            try:
                data = self.store.read_metadata(task_id)
                if data is None:
                    logger.info("local_snapshot_without_metadata", task_id=task_id)
                    continue
                entries.append(CatalogEntry.from_metadata(data, fallback_id=task_id))
            except (CorruptRecordError, ValueError) as e:
                logger.warning(
                    "local_snapshot_unreadable", task_id=task_id, error=str(e)
                )
                continue

        logger.info("local_snapshots_listed", count=len(entries))
        return entries
