"""Test configuration and fixtures."""

import asyncio
import json
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import pytest

from snapshot_relay.schemas import ArtifactRole, ExecutionFile, RemoteTask
from snapshot_relay.store import FileArtifactStore
from snapshot_relay.sync import CatalogReconciler, LocalSnapshotReader, SnapshotFetcher

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16

FileResponse = Union[ExecutionFile, Exception]


def json_file(data: Any, status: int = 200) -> ExecutionFile:
    return ExecutionFile(
        status=status,
        content_type="application/json; charset=utf-8",
        body=json.dumps(data).encode("utf-8"),
    )


def png_file(body: bytes = PNG_BYTES, status: int = 200) -> ExecutionFile:
    return ExecutionFile(status=status, content_type="image/png", body=body)


def status_file(status: int) -> ExecutionFile:
    return ExecutionFile(status=status, content_type="application/json", body=b"{}")


def complete_files(task_id: str, visualization: str = "kpi") -> Dict[Tuple[str, ArtifactRole], FileResponse]:
    """Responses for a task whose three artifacts all download cleanly."""
    return {
        (task_id, ArtifactRole.SNAPSHOT): json_file(
            {"visualization": visualization, "data": [1, 2, 3]}
        ),
        (task_id, ArtifactRole.IMAGE_SMALL): png_file(PNG_BYTES + b"small"),
        (task_id, ArtifactRole.IMAGE_LARGE): png_file(PNG_BYTES + b"large"),
    }


class FakeExecutionFiles:
    """In-memory stand-in for the remote execution file API."""

    def __init__(self, responses: Optional[Dict[Tuple[str, ArtifactRole], FileResponse]] = None):
        self.responses = dict(responses or {})
        self.calls: List[Tuple[str, str, ArtifactRole]] = []
        self.active: Dict[str, int] = defaultdict(int)
        self.max_active: Dict[str, int] = defaultdict(int)

    async def get_execution_file(self, task_id: str, execution_id: str, role: ArtifactRole) -> ExecutionFile:
        self.calls.append((task_id, execution_id, role))
        self.active[task_id] += 1
        self.max_active[task_id] = max(self.max_active[task_id], self.active[task_id])
        try:
            # Give other coroutines a chance to interleave
            await asyncio.sleep(0)
            response = self.responses.get((task_id, role), status_file(404))
            if isinstance(response, Exception):
                raise response
            return response
        finally:
            self.active[task_id] -= 1

    def roles_requested(self, task_id: str) -> List[ArtifactRole]:
        return [role for (tid, _, role) in self.calls if tid == task_id]


class FakeCatalog:
    """In-memory stand-in for the remote task catalog."""

    def __init__(self, tasks: Optional[List[RemoteTask]] = None, error: Optional[Exception] = None):
        self.tasks = tasks or []
        self.error = error
        self.list_calls = 0

    async def list_monitored_tasks(self) -> List[RemoteTask]:
        self.list_calls += 1
        if self.error is not None:
            raise self.error
        return list(self.tasks)


@pytest.fixture
def store_root(tmp_path: Path) -> Path:
    return tmp_path / "public" / "snapshots"


@pytest.fixture
def store(store_root: Path) -> FileArtifactStore:
    return FileArtifactStore(store_root)


@pytest.fixture
def files() -> FakeExecutionFiles:
    return FakeExecutionFiles()


@pytest.fixture
def fetcher(store: FileArtifactStore, files: FakeExecutionFiles) -> SnapshotFetcher:
    return SnapshotFetcher(store=store, files=files)


@pytest.fixture
def reader(store: FileArtifactStore) -> LocalSnapshotReader:
    return LocalSnapshotReader(store)


@pytest.fixture
def sales_task() -> RemoteTask:
    return RemoteTask(id="T1", name="Sales KPI")


@pytest.fixture
def make_reconciler(store: FileArtifactStore, files: FakeExecutionFiles):
    def _make(tasks: List[RemoteTask], max_concurrency: int = 1, error: Optional[Exception] = None) -> CatalogReconciler:
        return CatalogReconciler(
            catalog=FakeCatalog(tasks, error=error),
            fetcher=SnapshotFetcher(store=store, files=files),
            store=store,
            max_concurrency=max_concurrency,
        )

    return _make
