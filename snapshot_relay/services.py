"""
Wiring of the snapshot components from settings.

Everything that needs remote access receives its configuration here, once,
at process start.
"""

from __future__ import annotations

from dataclasses import dataclass

from .config import Settings
from .remote import OAuth2ClientCredentials, RemoteTaskCatalog
from .store import ArtifactStore, create_artifact_store
from .sync import CatalogReconciler, LocalSnapshotReader, SnapshotFetcher, TaskLockRegistry


@dataclass
class SnapshotServices:
    """The components one process uses to sync and serve snapshots."""

    store: ArtifactStore
    catalog: RemoteTaskCatalog
    fetcher: SnapshotFetcher
    reconciler: CatalogReconciler
    reader: LocalSnapshotReader

    async def aclose(self) -> None:
        await self.catalog.aclose()


def build_reader(settings: Settings) -> LocalSnapshotReader:
    """Reader only; needs no credentials."""
    return LocalSnapshotReader(create_artifact_store(settings.snapshot_store_uri))


def build_services(settings: Settings) -> SnapshotServices:
    """Build every component from settings.

    Raises:
        ConfigError: If the remote credentials are not configured
    """
    settings.require_remote_credentials()

    store = create_artifact_store(settings.snapshot_store_uri)
    credentials = OAuth2ClientCredentials(
        client_id=settings.m2m_client_id,
        client_secret=settings.m2m_client_secret,
        scope=settings.oauth_scope,
    )
    catalog = RemoteTaskCatalog(
        base_url=settings.tenant_url,
        credentials=credentials,
        timeout=settings.remote_timeout_seconds,
        resource_type=settings.task_resource_type,
        resource_subtype=settings.task_resource_subtype,
    )
    fetcher = SnapshotFetcher(
        store=store,
        files=catalog,
        execution_id=settings.execution_id,
        locks=TaskLockRegistry(),
    )
    reconciler = CatalogReconciler(
        catalog=catalog,
        fetcher=fetcher,
        store=store,
        max_concurrency=settings.max_concurrent_fetches,
    )
    return SnapshotServices(
        store=store,
        catalog=catalog,
        fetcher=fetcher,
        reconciler=reconciler,
        reader=LocalSnapshotReader(store),
    )
