"""
FastAPI application serving snapshot listings and artifacts.
"""

from __future__ import annotations

import importlib.metadata
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import List

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .config import get_settings
from .errors import CatalogError
from .logging_config import configure_logging
from .schemas import CatalogEntry
from .services import build_services
from .sync import CatalogReconciler, LocalSnapshotReader

# Initialize structured logging
logger = structlog.get_logger()

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    configure_logging(settings.log_level, settings.log_format)
    logger.info("Starting Snapshot Relay")

    try:
        # Raises ConfigError before anything is served
        services = build_services(settings)
        Path(settings.public_dir).mkdir(parents=True, exist_ok=True)
        app.state.services = services
        logger.info("Snapshot store ready", store=services.store.get_uri())
    except Exception as e:
        logger.error(f"Failed to start application: {e}")
        raise

    yield

    # Shutdown
    logger.info("Shutting down Snapshot Relay")
    await services.aclose()
    logger.info("Shutdown complete")


app = FastAPI(
    title="Snapshot Relay",
    description="Caches chart-monitoring snapshots and serves them without per-request authentication",
    version=importlib.metadata.version("snapshot-relay"),
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Persisted artifacts (images, JSON) are plain static files
app.mount(
    settings.public_mount_path,
    StaticFiles(directory=settings.public_dir, check_dir=False),
    name="public",
)


def get_reconciler(request: Request) -> CatalogReconciler:
    return request.app.state.services.reconciler


def get_reader(request: Request) -> LocalSnapshotReader:
    return request.app.state.services.reader


# Health and Info Endpoints
@app.get("/healthz", tags=["system"])
def healthz() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/version", tags=["system"])
def version() -> dict[str, str]:
    """Return the version of the application."""
    return {"version": importlib.metadata.version("snapshot-relay")}


# Snapshot Endpoints
@app.get("/get-snapshots", response_model=List[CatalogEntry], tags=["snapshots"])
async def get_snapshots(reconciler: CatalogReconciler = Depends(get_reconciler)):
    """
    Refresh every monitored task and return the complete snapshots.

    Incomplete tasks are left out of the response and only reported in the logs.
    """
    try:
        result = await reconciler.refresh()
    except CatalogError as e:
        logger.error("refresh_failed", code=e.code, error=e.message)
        return JSONResponse(status_code=500, content={"error": e.message})
    except Exception as e:
        logger.exception("refresh_failed", error=str(e))
        return JSONResponse(
            status_code=500, content={"error": str(e) or "Unexpected error"}
        )

    logger.info(f"Successfully processed {len(result.entries)} complete snapshots")
    if result.errors:
        logger.warning(f"{len(result.errors)} snapshots were incomplete and skipped")
    return result.entries


@app.get("/get-local-snapshots", response_model=List[CatalogEntry], tags=["snapshots"])
def get_local_snapshots(reader: LocalSnapshotReader = Depends(get_reader)):
    """Return the snapshots already stored locally, without a remote refresh."""
    try:
        return reader.list_local()
    except Exception as e:
        logger.exception("local_listing_failed", error=str(e))
        return JSONResponse(
            status_code=500, content={"error": str(e) or "Unexpected error"}
        )
