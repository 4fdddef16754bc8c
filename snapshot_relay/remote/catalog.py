"""
Client for the remote chart-monitoring task API.

Lists monitored tasks and downloads the files of their latest execution.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol, Set

import httpx

from ..errors import CatalogError
from ..schemas import ArtifactRole, ExecutionFile, RemoteTask
from .auth import OAuth2ClientCredentials

logger = logging.getLogger(__name__)

ITEMS_PATH = "/api/v1/items"
SHARING_TASKS_PATH = "/api/v1/sharing-tasks"


class TaskCatalog(Protocol):
    """Source of monitored tasks."""

    async def list_monitored_tasks(self) -> List[RemoteTask]:
        ...


class ExecutionFileSource(Protocol):
    """Source of execution artifact files."""

    async def get_execution_file(
        self, task_id: str, execution_id: str, role: ArtifactRole
    ) -> ExecutionFile:
        ...


class RemoteTaskCatalog:
    """
    Async client for the remote sharing-task API.
    """

    def __init__(
        self,
        base_url: str,
        credentials: OAuth2ClientCredentials,
        timeout: float = 30.0,
        resource_type: str = "sharingservicetask",
        resource_subtype: str = "chart-monitoring",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if "://" not in base_url:
            base_url = f"https://{base_url}"
        self.base_url = base_url.rstrip("/")
        self.credentials = credentials
        self.resource_type = resource_type
        self.resource_subtype = resource_subtype
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            follow_redirects=True,
        )

    async def __aenter__(self) -> "RemoteTaskCatalog":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def _get(self, url: str, **kwargs: Any) -> httpx.Response:
        headers = await self.credentials.auth_headers(self.client)
        response = await self.client.get(url, headers=headers, **kwargs)
        if response.status_code == 401:
            # Token revoked or expired early: retry once with a fresh one
            self.credentials.invalidate()
            headers = await self.credentials.auth_headers(self.client)
            response = await self.client.get(url, headers=headers, **kwargs)
        return response

    async def list_items(self) -> List[Dict[str, Any]]:
        """List the catalog items for monitored tasks, following pagination."""
        items: List[Dict[str, Any]] = []
        url: Optional[str] = ITEMS_PATH
        params: Optional[Dict[str, str]] = {
            "resourceType": self.resource_type,
            "resourceSubType": self.resource_subtype,
        }
        # Absolute URLs already fetched; a tenant repeating one ends the listing
        seen: Set[str] = set()

        try:
            while url:
                response = await self._get(url, params=params)
                response.raise_for_status()
                page = response.json()
                items.extend(page.get("data") or [])
                seen.add(str(response.request.url))
                url = ((page.get("links") or {}).get("next") or {}).get("href")
                if url and str(self.client.build_request("GET", url).url) in seen:
                    logger.warning(f"Stopping pagination at repeated page {url}")
                    break
                # The next link already carries the query string
                params = None
        except httpx.HTTPStatusError as e:
            logger.error(f"Failed to list monitored tasks: HTTP {e.response.status_code}")
            raise CatalogError(
                f"Failed to list monitored tasks: HTTP {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.error(f"Failed to list monitored tasks: {e}")
            raise CatalogError(f"Failed to list monitored tasks: {e}") from e

        return items

    async def get_task_detail(self, resource_id: str) -> RemoteTask:
        """Get full task details.

        The remote only keeps a chart-monitoring task active while its detail
        is being read, so this must be called for every listed task.
        """
        try:
            response = await self._get(
                f"{SHARING_TASKS_PATH}/{resource_id}", params={"isViewChart": "true"}
            )
            response.raise_for_status()
            task = RemoteTask.model_validate(response.json())
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Failed to get task {resource_id}: HTTP {e.response.status_code}"
            )
            raise CatalogError(
                f"Failed to get task {resource_id}: HTTP {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Failed to get task {resource_id}: {e}")
            raise CatalogError(f"Failed to get task {resource_id}: {e}") from e

        logger.info(f"Fetched task {task.id} ({task.name})")
        return task

    async def list_monitored_tasks(self) -> List[RemoteTask]:
        """List every monitored task with its full detail."""
        tasks = []
        for item in await self.list_items():
            resource_id = item.get("resourceId") or item.get("id")
            if not resource_id:
                logger.warning(f"Skipping catalog item without resourceId: {item}")
                continue
            tasks.append(await self.get_task_detail(resource_id))
        return tasks

    async def get_execution_file(
        self, task_id: str, execution_id: str, role: ArtifactRole
    ) -> ExecutionFile:
        """Download one file of a task execution.

        Any HTTP status is returned to the caller; transport errors raise
        httpx.HTTPError.
        """
        response = await self._get(
            f"{SHARING_TASKS_PATH}/{task_id}/executions/{execution_id}/files/{role.value}",
            params={"status": "successful"},
        )
        return ExecutionFile(
            status=response.status_code,
            content_type=response.headers.get("content-type", ""),
            body=response.content,
        )
