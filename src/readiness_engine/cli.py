"""CLI entry point for readiness-engine."""

import asyncio
from datetime import date

import typer
import uvicorn

from readiness_engine import __version__
from readiness_engine.core.config import settings

app = typer.Typer(
    name="readiness-engine",
    help="Adaptive readiness and training-load decision engine",
    no_args_is_help=True,
)


@app.command()
def serve(
    host: str = typer.Option(None, help="Host to bind to (overrides config)"),
    port: int = typer.Option(None, help="Port to bind to (overrides config)"),
    reload: bool = typer.Option(False, help="Enable auto-reload for development"),
) -> None:
    """Start the API server.

    Example:
        readiness-engine serve
        readiness-engine serve --host 0.0.0.0 --port 8080 --reload
    """
    uvicorn.run(
        "readiness_engine.app:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.command()
def recompute(
    as_of: str = typer.Option(None, "--as-of", help="Day to recompute (YYYY-MM-DD, default today)"),
) -> None:
    """Run the nightly load and baseline recompute once.

    Example:
        readiness-engine recompute --as-of 2026-03-01
    """
    from readiness_engine.core.database import async_session_maker, close_database
    from readiness_engine.services.batch import NightlyRecomputeService

    day = date.fromisoformat(as_of) if as_of else None

    async def run() -> None:
        try:
            summary = await NightlyRecomputeService(async_session_maker).run(day)
        finally:
            await close_database()
        typer.echo(
            f"Processed {summary.processed} athletes: "
            f"{summary.succeeded} succeeded, {len(summary.failed)} failed"
        )
        for failure in summary.failed:
            typer.echo(f"  {failure['athlete_id']}: {failure['error']}", err=True)
        if summary.failed:
            raise typer.Exit(code=1)

    asyncio.run(run())


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"readiness-engine v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
