"""
Command-line interface for the News Reader.

Uses Typer to provide commands for running the HTTP server and for
one-shot operations (refresh, reader-mode extraction, digest, topics).
Supports loading .env files for environment overrides.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from dotenv import load_dotenv
import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from .config import AppConfig, load_config
from .logging_utils import setup_logging
from .service import NewsService

app = typer.Typer(add_completion=False)
console = Console()

ConfigOption = typer.Option(None, "--config", "-c", exists=True, help="YAML config file.")
LogLevelOption = typer.Option(None, "--log-level", help="Logging level.")


def _prepare(config: Path | None, log_level: str | None) -> AppConfig:
    load_dotenv()
    cfg = load_config(str(config) if config else None)
    if log_level:
        cfg.logging.level = log_level
    setup_logging(cfg.logging)
    return cfg


@app.command()
def serve(
    config: Path | None = ConfigOption,
    host: str | None = typer.Option(None, "--host", help="Interface to bind."),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to listen on."),
    warm: bool | None = typer.Option(None, "--warm/--no-warm", help="Fetch feeds on startup."),
    log_level: str | None = LogLevelOption,
):
    """Run the HTTP API server."""
    import uvicorn

    from .api import create_app

    cfg = _prepare(config, log_level)
    if host:
        cfg.server.host = host
    if port:
        cfg.server.port = port
    if warm is not None:
        cfg.server.warm_cache_on_start = warm

    console.print(f"News Reader running at http://{cfg.server.host}:{cfg.server.port}")
    uvicorn.run(create_app(cfg), host=cfg.server.host, port=cfg.server.port, log_config=None)


@app.command()
def refresh(config: Path | None = ConfigOption, log_level: str | None = LogLevelOption):
    """Fetch every feed once and report per-category counts and failures."""
    cfg = _prepare(config, log_level)
    service = NewsService(cfg)

    async def _run():
        report = await service.refresh()
        categories, _ = await service.list_categories()
        return report, categories

    with console.status("Fetching feeds..."):
        report, categories = asyncio.run(_run())

    table = Table(title=f"{report.article_count} articles")
    table.add_column("Category")
    table.add_column("Articles", justify="right")
    for name, summary in categories.items():
        table.add_row(name, str(summary.count))
    console.print(table)
    for error in report.errors:
        console.print(f"[red]✗ {error.source}[/red]: {error.error}")


@app.command()
def read(
    url: str = typer.Argument(..., help="Article URL."),
    config: Path | None = ConfigOption,
    log_level: str | None = LogLevelOption,
):
    """Extract an article in reader mode, falling back to the archive."""
    cfg = _prepare(config, log_level)
    service = NewsService(cfg)
    result = asyncio.run(service.read_article(url))
    if not result.success or not result.content:
        console.print(f"[yellow]Could not retrieve full content.[/yellow] Read it at the source: {url}")
        raise typer.Exit(code=1)
    console.print(f"[dim]source: {result.source}[/dim]")
    if result.format == "markdown":
        console.print(Markdown(result.content))
    else:
        console.print(result.content)


@app.command()
def digest(config: Path | None = ConfigOption, log_level: str | None = LogLevelOption):
    """Print the morning digest: top stories per category."""
    cfg = _prepare(config, log_level)
    service = NewsService(cfg)
    summary, _ = asyncio.run(service.digest())
    console.print(f"[bold]Morning digest[/bold] - {summary.total_articles} articles")
    for name, section in summary.categories.items():
        console.print(f"\n[bold]{name}[/bold] ({section.count})")
        for story in section.top_stories:
            console.print(f"  • {story.title} [dim]({story.source})[/dim]")


@app.command()
def topics(
    limit: int = typer.Option(20, "--limit", "-n", help="Number of topics to show."),
    config: Path | None = ConfigOption,
    log_level: str | None = LogLevelOption,
):
    """Print the trending topics."""
    cfg = _prepare(config, log_level)
    service = NewsService(cfg)
    ranked, _ = asyncio.run(service.trending_topics())
    table = Table(title="Trending topics")
    table.add_column("Topic")
    table.add_column("Count", justify="right")
    for word, count in ranked[:limit]:
        table.add_row(word, str(count))
    console.print(table)


@app.command()
def sources(config: Path | None = ConfigOption):
    """List the registered feed sources."""
    cfg = load_config(str(config) if config else None)
    service = NewsService(cfg)
    table = Table(title="Feed sources")
    for column in ("Key", "Name", "Category", "URL"):
        table.add_column(column)
    for source in service.list_sources():
        name = f"{source.icon} {source.name}" + (" (hidden)" if source.hidden else "")
        table.add_row(source.key, name, source.category, source.url)
    console.print(table)


if __name__ == "__main__":
    app()
