"""
Snapshot fetcher: one all-or-nothing transaction per task.

Flow:
1. Clear the task's directory, dropping any previously committed set
2. Download each required role in fixed order (snapshot, image-small, image-large)
   and save it into the task's directory as it arrives
3. Abort the remaining roles on the first bad status or error
4. Incomplete set: remove the task's directory and report a FetchFailure
5. Complete set: write metadata.json, the commit point
"""
from __future__ import annotations

import json
from typing import Optional

import structlog

from ..errors import ArtifactFetchError
from ..remote.catalog import ExecutionFileSource
from ..schemas import (
    REQUIRED_ROLES,
    UNKNOWN_VISUALIZATION,
    ArtifactRole,
    ArtifactSet,
    ExecutionFile,
    FetchComplete,
    FetchFailure,
    FetchOutcome,
    RemoteTask,
    SnapshotRecord,
    resolve_display_mode,
    utc_now_iso,
)
from ..store import ArtifactStore, validate_task_id
from .locks import TaskLockRegistry

logger = structlog.get_logger()

# Roles whose payload must be JSON; every other role expects binary data
JSON_ROLES = frozenset({ArtifactRole.SNAPSHOT})


def artifact_file_name(role: ArtifactRole, response: ExecutionFile) -> str:
    """File name a payload is stored under, based on its declared type."""
    if response.is_json:
        return f"{role.value}.json"
    if response.is_png:
        return f"{role.value}.png"
    return role.value


def extract_visualization(data: object) -> str:
    """Visualization type declared by an interactive payload."""
    if isinstance(data, dict):
        visualization = data.get("visualization")
        if isinstance(visualization, str) and visualization:
            return visualization
    return UNKNOWN_VISUALIZATION


class SnapshotFetcher:
    """Downloads and commits the artifact set of a single task."""

    def __init__(
        self,
        store: ArtifactStore,
        files: ExecutionFileSource,
        execution_id: str = "latest",
        locks: Optional[TaskLockRegistry] = None,
    ):
        """Initialize the fetcher.

        Args:
            store: Artifact store the set is written into
            files: Remote source of execution files
            execution_id: Execution to read files from
            locks: Per-task lock registry, shared with anything else that
                fetches into the same store
        """
        self.store = store
        self.files = files
        self.execution_id = execution_id
        self.locks = locks if locks is not None else TaskLockRegistry()

    async def fetch(self, task: RemoteTask) -> FetchOutcome:
        """Fetch the task's artifact set, committing it only if complete."""
        try:
            validate_task_id(task.id)
        except ValueError as e:
            logger.error("snapshot_fetch_rejected", task_id=task.id, error=str(e))
            return FetchFailure(task_id=task.id, reason=str(e))

        async with self.locks.hold(task.id):
            return await self._fetch_locked(task)

    async def _fetch_locked(self, task: RemoteTask) -> FetchOutcome:
        task_logger = logger.bind(task_id=task.id, task_name=task.name)
        task_logger.info("snapshot_fetch_start", execution_id=self.execution_id)

        artifacts = ArtifactSet(task_id=task.id)
        failure: Optional[FetchFailure] = None

        try:
            # Files from a previous commit never survive a re-fetch
            self.store.remove_dir(task.id)
            self.store.ensure_dir(task.id)
        except OSError as e:
            task_logger.error("snapshot_dir_failed", error=str(e))
            return FetchFailure(task_id=task.id, reason=f"Cannot prepare directory: {e}")

        for role in REQUIRED_ROLES:
            try:
                await self._download(task, role, artifacts)
            except Exception as e:
                task_logger.error("artifact_download_failed", role=role.value, error=str(e))
                failure = FetchFailure(task_id=task.id, reason=str(e), role=role)
                break

        if failure is None:
            missing = [
                role
                for role in REQUIRED_ROLES
                if role not in artifacts.files
                or not self.store.has_file(task.id, artifacts.files[role])
            ]
            if missing:
                failure = FetchFailure(
                    task_id=task.id,
                    reason="Missing artifacts: "
                    + ", ".join(role.value for role in missing),
                    role=missing[0],
                )

        if failure is not None:
            task_logger.warning("snapshot_incomplete", reason=failure.reason)
            self._rollback(task)
            return failure

        record = self._build_record(task, artifacts)
        try:
            self.store.write_metadata(task.id, record.to_json_dict())
        except OSError as e:
            task_logger.error("snapshot_commit_failed", error=str(e))
            self._rollback(task)
            return FetchFailure(task_id=task.id, reason=f"Cannot write metadata: {e}")

        task_logger.info(
            "snapshot_committed",
            visualization=record.visualization,
            display_mode=record.display_mode.value,
            flagged=[role.value for role in artifacts.flagged],
        )
        return FetchComplete(record=record, artifacts=artifacts)

    async def _download(
        self, task: RemoteTask, role: ArtifactRole, artifacts: ArtifactSet
    ) -> None:
        """Download one role and save it into the task's directory.

        Raises:
            ArtifactFetchError: On a non-success status or an undecodable JSON payload
        """
        logger.debug("artifact_download_start", task_id=task.id, role=role.value)
        response = await self.files.get_execution_file(task.id, self.execution_id, role)

        if not response.ok:
            raise ArtifactFetchError(role.value, f"HTTP {response.status}")

        name = artifact_file_name(role, response)

        if response.is_json:
            try:
                data = json.loads(response.body)
            except ValueError as e:
                raise ArtifactFetchError(role.value, f"Invalid JSON payload: {e}") from e
            content = json.dumps(data, indent=2, ensure_ascii=False).encode("utf-8")
        else:
            data = None
            content = response.body

        self.store.write_file(task.id, name, content)
        logger.debug("artifact_saved", task_id=task.id, role=role.value, file=name)

        expects_json = role in JSON_ROLES
        satisfies_role = response.is_json == expects_json
        if not satisfies_role or not (response.is_json or response.is_png):
            # Kept on disk so the attempt is visible, but flagged
            artifacts.flagged.append(role)
            logger.warning(
                "artifact_unexpected_type",
                task_id=task.id,
                role=role.value,
                content_type=response.content_type,
            )
        if not satisfies_role:
            return

        artifacts.files[role] = name
        if expects_json:
            artifacts.interactive_data = data

    def _rollback(self, task: RemoteTask) -> None:
        """Remove everything written for the task. Failures are only logged."""
        try:
            self.store.remove_dir(task.id)
            logger.info("snapshot_cleaned_up", task_id=task.id)
        except OSError as e:
            logger.warning("snapshot_cleanup_failed", task_id=task.id, error=str(e))

    def _build_record(self, task: RemoteTask, artifacts: ArtifactSet) -> SnapshotRecord:
        visualization = extract_visualization(artifacts.interactive_data)

        data = task.model_dump(mode="json", by_alias=True)
        if data.get("resourceId") is None:
            data.pop("resourceId", None)
        data.update(
            {
                "visualization": visualization,
                "imageAvailable": True,
                "snapshotAvailable": True,
                "displayMode": resolve_display_mode(visualization).value,
                "lastUpdated": utc_now_iso(),
            }
        )
        return SnapshotRecord.model_validate(data)
