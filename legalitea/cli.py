"""Command line entry point: run the API or analyze a document from disk."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
import uvicorn

from legalitea.client import DEFAULT_BASE_URL, AnalysisRequestError, LegaliTeaClient
from legalitea.config import Settings
from legalitea.errors import LegaliTeaError
from legalitea.logging_utils import configure_logging
from legalitea.session import AnalysisSession

cli = typer.Typer(add_completion=False, help="LegaliTea legal document analysis")

DEFAULT_HOST = "127.0.0.1"


@cli.command()
def serve(
    host: str = typer.Option(DEFAULT_HOST, help="Host interface for the API server"),
    port: Optional[int] = typer.Option(None, help="Port for the API server (defaults to $PORT or 3001)"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
) -> None:
    """Run the LegaliTea API."""

    configure_logging()
    settings = Settings.from_env()
    uvicorn.run(
        "legalitea.main:app",
        host=host,
        port=port or settings.port,
        reload=reload,
    )


@cli.command()
def extract(path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True)) -> None:
    """Print the text extracted from a PDF, DOCX or TXT file."""

    session = AnalysisSession()
    try:
        text = session.load_file(path)
    except LegaliTeaError as exc:
        typer.secho(exc.message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(text)


@cli.command()
def analyze(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    language: str = typer.Option("en", "--language", "-l", help="Language code for the analysis"),
    base_url: str = typer.Option(DEFAULT_BASE_URL, envvar="LEGALITEA_API_URL", help="LegaliTea API base URL"),
    retries: int = typer.Option(3, min=1, help="Attempts before giving up"),
) -> None:
    """Extract a document locally and analyze it through a running API."""

    configure_logging(logging.WARNING)
    session = AnalysisSession()
    client = LegaliTeaClient(base_url)
    try:
        session.load_file(path)
        result = session.analyze(client, language, max_retries=retries)
    except (LegaliTeaError, AnalysisRequestError) as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(json.dumps(result, indent=2, ensure_ascii=False))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
