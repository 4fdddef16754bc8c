"""
Command Line Interface for Snapshot Relay.
"""

import asyncio
from typing import List, Optional

import typer
import uvicorn
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config import get_settings
from ..errors import CatalogError, ConfigError
from ..logging_config import configure_logging
from ..schemas import CatalogEntry, RefreshResult
from ..services import build_reader, build_services


app = typer.Typer(help="Snapshot Relay - cached chart-monitoring snapshots")
console = Console()


def _entries_table(title: str, entries: List[CatalogEntry]) -> Table:
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="yellow")
    table.add_column("Visualization")
    table.add_column("Display", style="green")

    for entry in entries:
        table.add_row(
            entry.id, entry.name, entry.visualization, entry.display_mode.value
        )
    return table


@app.command()
def serve(
    port: Optional[int] = typer.Option(None, help="Port to run the API server on"),
    host: Optional[str] = typer.Option(None, help="Host to bind the server to"),
    dev: bool = typer.Option(False, help="Run in development mode with reload"),
):
    """Start the Snapshot Relay API server."""
    settings = get_settings()
    try:
        settings.require_remote_credentials()
    except ConfigError as e:
        console.print(f"❌ {e.message}")
        raise typer.Exit(code=1)

    rprint(Panel.fit("📸 Starting Snapshot Relay", style="bold blue"))
    uvicorn.run(
        "snapshot_relay.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=dev,
        workers=1 if dev else settings.api_workers,
    )


@app.command()
def refresh(
    concurrency: Optional[int] = typer.Option(
        None, min=1, help="Tasks fetched at once (default: from config)"
    ),
):
    """Fetch every monitored task once and print the result."""
    settings = get_settings()
    configure_logging(settings.log_level, "console")

    if concurrency:
        settings = settings.model_copy(update={"max_concurrent_fetches": concurrency})

    async def run() -> RefreshResult:
        services = build_services(settings)
        try:
            return await services.reconciler.refresh()
        finally:
            await services.aclose()

    try:
        result = asyncio.run(run())
    except ConfigError as e:
        console.print(f"❌ {e.message}")
        raise typer.Exit(code=1)
    except CatalogError as e:
        console.print(f"❌ Could not list monitored tasks: {e.message}")
        raise typer.Exit(code=1)

    console.print(_entries_table("Complete Snapshots", result.entries))
    for message in result.errors:
        console.print(f"⚠️ {message}")
    console.print(
        f"✅ {len(result.entries)} complete, {len(result.errors)} incomplete"
    )


@app.command("list")
def list_snapshots():
    """List the snapshots stored locally, without contacting the remote system."""
    settings = get_settings()
    entries = build_reader(settings).list_local()

    if not entries:
        console.print("No local snapshots found")
        return

    console.print(_entries_table("Local Snapshots", entries))


if __name__ == "__main__":
    app()
