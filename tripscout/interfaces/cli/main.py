"""
CLI Main - Typer-based command-line interface.

Usage:
    tripscout init
    tripscout seed path/to/catalog.json
    tripscout search --location "Moab, Utah" --activity hiking --adults 2
    tripscout serve
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from tripscout.config.errors import TripScoutError

app = typer.Typer(
    name="tripscout",
    help="TripScout - Travel itinerary search",
    add_completion=False,
)
console = Console()


@app.command()
def search(
    location: list[str] = typer.Option([], "--location", "-l", help="City, State (repeatable)"),
    activity: list[str] = typer.Option([], "--activity", "-a", help="Activity tag (repeatable)"),
    lodging: list[str] = typer.Option([], "--lodging", help="Lodging tag (repeatable)"),
    transportation: str | None = typer.Option(None, "--transport", "-t", help="Transportation"),
    arrival: str | None = typer.Option(None, "--arrival", help="Arrival date (YYYY-MM-DD)"),
    departure: str | None = typer.Option(None, "--departure", help="Departure date (YYYY-MM-DD)"),
    adults: int | None = typer.Option(None, "--adults", help="Number of adults"),
    children: int | None = typer.Option(None, "--children", help="Number of children"),
    infants: int | None = typer.Option(None, "--infants", help="Number of infants"),
    pace: str | None = typer.Option(None, "--pace", "-p", help="relaxed, moderate or adventure"),
    trace: bool = typer.Option(False, "--trace", help="Show per-step timings"),
) -> None:
    """Search itineraries, falling back to the store and generated trips."""
    from tripscout.domains.search import RawSearchRequest

    request = RawSearchRequest(
        locations=location or None,
        arrival_datetime=arrival,
        departure_datetime=departure,
        adults=adults,
        children=children,
        infants=infants,
        activities=activity or None,
        lodging=lodging or None,
        transportation=transportation,
        trip_pace=pace,
    )
    asyncio.run(_search_async(request, trace))


async def _search_async(request, trace: bool) -> None:
    """Async search implementation."""
    from tripscout.interfaces.api.deps import (
        cleanup_services,
        get_search_orchestrator,
        init_services,
    )

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        progress.add_task("Searching...", total=None)

        try:
            await init_services()
            outcome = await get_search_orchestrator().search(request)
        except TripScoutError as e:
            console.print(f"[red]Error:[/red] {e.message}")
            if e.details:
                console.print(f"[dim]{e.details}[/dim]")
            raise typer.Exit(1)
        finally:
            await cleanup_services()

    if not outcome.candidates:
        console.print(
            Panel(
                "No itineraries matched and none could be generated.\n"
                "Run `tripscout seed catalog.json` to load a catalog.",
                title="No Results",
                style="yellow",
            )
        )
        return

    table = Table(title=f"Itineraries ({len(outcome.candidates)})")
    table.add_column("#", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Where")
    table.add_column("Price", justify="right", style="green")
    table.add_column("Match", justify="right")
    table.add_column("Source", style="magenta")

    for i, candidate in enumerate(outcome.candidates, 1):
        match = f"{candidate.match_score}%" if candidate.match_score is not None else "-"
        table.add_row(
            str(i),
            candidate.title or candidate.id,
            ", ".join(candidate.locations) or "-",
            f"${candidate.price:,.2f}",
            match,
            candidate.origin.value,
        )

    console.print(table)
    console.print(
        f"[dim]index={outcome.index_status.value} fallback={outcome.fallback_used} "
        f"generated={outcome.generated_count} shortfall={outcome.shortfall} "
        f"took={outcome.total_duration_ms:.1f}ms[/dim]"
    )

    if trace:
        steps = Table(title="Trace")
        steps.add_column("Step", style="cyan")
        steps.add_column("Status")
        steps.add_column("ms", justify="right")
        steps.add_column("Detail", style="dim")
        for step in outcome.steps:
            steps.add_row(step.name, _status_color(step.status), f"{step.duration_ms:.1f}", str(step.detail))
        console.print(steps)


def _status_color(status: str) -> str:
    """Color-code step status."""
    colors = {
        "completed": "[green]completed[/green]",
        "failed": "[red]failed[/red]",
        "skipped": "[yellow]skipped[/yellow]",
    }
    return colors.get(status, status)


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Host to bind"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to bind"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload"),
) -> None:
    """Start the API server."""
    import uvicorn

    from tripscout.config import get_settings

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    console.print("\n[green]Starting TripScout API server[/green]")
    console.print(f"[dim]http://{host}:{port}[/dim]\n")

    uvicorn.run(
        "tripscout.interfaces.api:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


@app.command()
def init(
    db_path: Path | None = typer.Option(None, "--db", "-d", help="Database path"),
) -> None:
    """Initialize the TripScout catalog database."""
    asyncio.run(_init_async(db_path))


async def _init_async(db_path: Path | None) -> None:
    """Async initialization."""
    from tripscout.adapters.sqlite import CatalogRepository
    from tripscout.config import get_settings

    path = db_path or get_settings().db_path

    repo = CatalogRepository(path)
    try:
        await repo.initialize()
        count = await repo.get_itinerary_count()
    finally:
        await repo.close()

    console.print("\n[green]Initialization complete![/green]")
    console.print(f"[dim]Database: {path}[/dim]")
    console.print(f"[dim]Itineraries: {count}[/dim]")


@app.command()
def seed(
    catalog_file: Path = typer.Argument(..., help="JSON catalog export"),
    db_path: Path | None = typer.Option(None, "--db", "-d", help="Database path"),
) -> None:
    """Load locations, activities, lodging, transportation and itineraries."""
    if not catalog_file.exists():
        console.print(f"[red]Error:[/red] File not found: {catalog_file}")
        raise typer.Exit(1)

    asyncio.run(_seed_async(catalog_file, db_path))


async def _seed_async(catalog_file: Path, db_path: Path | None) -> None:
    """Async seeding."""
    from tripscout.adapters.sqlite import CatalogRepository, seed_catalog_file
    from tripscout.config import get_settings

    repo = CatalogRepository(db_path or get_settings().db_path)
    try:
        await repo.initialize()
        stats = await seed_catalog_file(repo, catalog_file)
    finally:
        await repo.close()

    table = Table(title="Seed Summary")
    table.add_column("Section", style="cyan")
    table.add_column("Rows", style="green", justify="right")
    for section, count in stats.items():
        table.add_row(section, str(count))
    console.print(table)


@app.command()
def version() -> None:
    """Show version information."""
    from tripscout import __version__

    console.print(f"TripScout v{__version__}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
