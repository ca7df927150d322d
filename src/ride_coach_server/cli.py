"""CLI entry point for ride-coach-server."""

import asyncio
import json
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, TypeVar

import typer
import uvicorn
from pydantic import BaseModel

from ride_coach_server import __version__
from ride_coach_server.core.config import settings
from ride_coach_server.core.exceptions import RideCoachError
from ride_coach_server.core.logging import configure_logging
from ride_coach_server.repositories.sql import SQLAlchemyTrainingRepository

T = TypeVar("T")

app = typer.Typer(
    name="ride-coach-server",
    help="Cycling training analytics: thresholds, ride analysis and next-workout advice",
    no_args_is_help=True,
)


def _run(operation: Callable[[SQLAlchemyTrainingRepository], Awaitable[T]]) -> T:
    """Run ``operation`` against a fresh database session."""
    from ride_coach_server.core.database import close_database, get_session

    async def runner() -> T:
        try:
            async with get_session() as session:
                return await operation(SQLAlchemyTrainingRepository(session))
        finally:
            await close_database()

    return asyncio.run(runner())


def _echo(model: BaseModel) -> None:
    typer.echo(json.dumps(model.model_dump(mode="json", by_alias=True), indent=2))


def _fail(error: RideCoachError) -> None:
    typer.echo(json.dumps(error.to_dict(), indent=2), err=True)
    raise typer.Exit(code=1)


@app.command()
def serve(
    host: str = typer.Option(None, help="Host to bind to (overrides config)"),
    port: int = typer.Option(None, help="Port to bind to (overrides config)"),
    reload: bool = typer.Option(False, help="Enable auto-reload for development"),
) -> None:
    """Start the API server.

    Example:
        ride-coach-server serve
        ride-coach-server serve --host 0.0.0.0 --port 8080 --reload
    """
    uvicorn.run(
        "ride_coach_server.app:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"ride-coach-server v{__version__}")


@app.command()
def recompute(owner_id: str = typer.Argument(..., help="Athlete identifier")) -> None:
    """Recompute power curve, FTP models and heart-rate thresholds."""
    from ride_coach_server.services.thresholds import ThresholdService

    configure_logging()
    try:
        report = _run(lambda repo: ThresholdService(repo).recompute_thresholds(owner_id))
    except RideCoachError as e:
        _fail(e)
    else:
        _echo(report)


@app.command()
def analyze(
    owner_id: str = typer.Argument(..., help="Athlete identifier"),
    selector: str = typer.Argument("latest", help="Activity id, 'latest' or YYYY-MM-DD"),
) -> None:
    """Analyze one ride and score its execution."""
    from ride_coach_server.services.rides import RideAnalysisService

    configure_logging()
    try:
        analysis = _run(lambda repo: RideAnalysisService(repo).analyze_ride(owner_id, selector))
    except RideCoachError as e:
        _fail(e)
    else:
        _echo(analysis)


@app.command()
def recommend(owner_id: str = typer.Argument(..., help="Athlete identifier")) -> None:
    """Recommend the next workout."""
    from ride_coach_server.services.coach import CoachService

    configure_logging()
    try:
        result = _run(lambda repo: CoachService(repo).recommend_next_workout(owner_id))
    except RideCoachError as e:
        _fail(e)
    else:
        _echo(result)


@app.command()
def ingest(
    owner_id: str = typer.Argument(..., help="Athlete identifier"),
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file"),
    recompute: bool = typer.Option(True, help="Recompute thresholds after storing"),
) -> None:
    """Ingest a ride from a JSON file.

    The file holds ``{"activity": {...}, "streams": {...}}`` in Strava shape,
    or a list of such objects.
    """
    from ride_coach_server.services.ingest import IngestService

    configure_logging()
    data: Any = json.loads(path.read_text())
    items = data if isinstance(data, list) else [data]

    async def ingest_all(repo: SQLAlchemyTrainingRepository) -> list[BaseModel]:
        service = IngestService(repo)
        results: list[BaseModel] = []
        for index, item in enumerate(items):
            results.append(
                await service.ingest_activity(
                    owner_id,
                    item.get("activity", item),
                    item.get("streams"),
                    recompute=recompute and index == len(items) - 1,
                )
            )
        return results

    try:
        results = _run(ingest_all)
    except RideCoachError as e:
        _fail(e)
    else:
        for result in results:
            _echo(result)


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
