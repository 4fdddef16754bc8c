"""
Catalog reconciler: refreshes every monitored task and builds the listing.

Flow:
1. List monitored tasks from the remote catalog (failure is request-level)
2. Fetch each task's artifact set (failure is per-task and only counted)
3. Re-read every task's metadata from the store to build the entries, so the
   response reflects exactly what is durably stored
"""
from __future__ import annotations

import asyncio
from typing import Dict, List, Optional

import structlog
from pydantic import ValidationError

from ..errors import CorruptRecordError
from ..remote.catalog import TaskCatalog
from ..schemas import (
    CatalogEntry,
    FetchFailure,
    FetchOutcome,
    RefreshResult,
    RemoteTask,
    SnapshotRecord,
)
from ..store import ArtifactStore
from .fetcher import SnapshotFetcher

logger = structlog.get_logger()


def incomplete_message(task: RemoteTask) -> str:
    return f"Snapshot for task {task.label} was incomplete and not saved"


class CatalogReconciler:
    """Synchronises the local store with the remote catalog."""

    def __init__(
        self,
        catalog: TaskCatalog,
        fetcher: SnapshotFetcher,
        store: ArtifactStore,
        max_concurrency: int = 1,
    ):
        """Initialize the reconciler.

        Args:
            catalog: Source of monitored tasks
            fetcher: Fetcher used for each task
            store: Store the fetcher writes into
            max_concurrency: Tasks fetched at once; 1 fetches in listing order
        """
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.catalog = catalog
        self.fetcher = fetcher
        self.store = store
        self.max_concurrency = max_concurrency

    async def refresh(self) -> RefreshResult:
        """Fetch every monitored task and return the stored listing.

        Raises:
            CatalogError: If the monitored tasks cannot be listed
        """
        tasks = _unique_tasks(await self.catalog.list_monitored_tasks())
        logger.info("refresh_start", tasks=len(tasks), concurrency=self.max_concurrency)

        outcomes = await self._fetch_all(tasks)
        failed = sum(1 for outcome in outcomes if isinstance(outcome, FetchFailure))

        result = RefreshResult()
        for task in tasks:
            entry = self._read_entry(task)
            if entry is None:
                message = incomplete_message(task)
                logger.info("snapshot_skipped", task_id=task.id, message=message)
                result.errors.append(message)
                continue
            result.entries.append(entry)

        logger.info(
            "refresh_complete",
            complete=len(result.entries),
            incomplete=len(result.errors),
            failed_fetches=failed,
        )
        return result

    async def _fetch_all(self, tasks: List[RemoteTask]) -> List[FetchOutcome]:
        if self.max_concurrency == 1:
            return [await self._fetch_one(task) for task in tasks]

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded(task: RemoteTask) -> FetchOutcome:
            async with semaphore:
                return await self._fetch_one(task)

        return list(await asyncio.gather(*(bounded(task) for task in tasks)))

    async def _fetch_one(self, task: RemoteTask) -> FetchOutcome:
        try:
            return await self.fetcher.fetch(task)
        except Exception as e:
            logger.exception("snapshot_fetch_error", task_id=task.id, error=str(e))
            return FetchFailure(task_id=task.id, reason=str(e))

    def _read_entry(self, task: RemoteTask) -> Optional[CatalogEntry]:
        """Entry for a task from its persisted record, or None if not stored."""
        try:
            data = self.store.read_metadata(task.id)
        except (CorruptRecordError, ValueError, OSError) as e:
            logger.warning("snapshot_metadata_unreadable", task_id=task.id, error=str(e))
            return None

        if data is None:
            return None

        try:
            SnapshotRecord.model_validate(data)
            # Same projection as the local listing
            return CatalogEntry.from_metadata(data, fallback_id=task.id)
        except (ValidationError, ValueError) as e:
            logger.warning("snapshot_metadata_invalid", task_id=task.id, error=str(e))
            return None


def _unique_tasks(tasks: List[RemoteTask]) -> List[RemoteTask]:
    """Drop repeated task ids, keeping the first occurrence."""
    seen: Dict[str, RemoteTask] = {}
    for task in tasks:
        seen.setdefault(task.id, task)
    return list(seen.values())
