"""
CLI for the model cache.

Commands:
    modelcache fetch URL - Fetch a model through the cache
    modelcache cache list|size|evict|clear - Inspect and manage cached models
    modelcache config - Show current configuration
    modelcache version - Print version
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, Optional, TypeVar

import typer
from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from modelcache import __version__
from modelcache.cache.manager import CacheManager
from modelcache.config import Settings, load_settings
from modelcache.exceptions import ConfigurationError, ModelCacheError
from modelcache.logging import setup_logging
from modelcache.utils.formatting import format_bytes

app = typer.Typer(
    name="modelcache",
    help="Download-once cache for large model assets",
    no_args_is_help=True,
)
cache_app = typer.Typer(help="Inspect and manage cached models", no_args_is_help=True)
app.add_typer(cache_app, name="cache")

console = Console()
error_console = Console(stderr=True)

T = TypeVar("T")


def _load_settings() -> Settings:
    """Load settings and configure logging, exiting on invalid configuration."""
    try:
        settings = load_settings()
    except ConfigurationError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    setup_logging(log_level=settings.LOG_LEVEL, log_file=settings.LOG_FILE)
    return settings


async def _fetch(
    settings: Settings, identity: str, url: str, progress: Progress, task_id: TaskID
) -> tuple[bytes, bool]:
    def on_progress(percent: float) -> None:
        progress.update(task_id, total=100, completed=percent)

    async with CacheManager.from_settings(settings) as manager:
        was_cached = await manager.is_cached(identity)
        data = await manager.fetch_resource(identity, url, on_progress=on_progress)
        return data, was_cached


@app.command()
def fetch(
    url: Annotated[str, typer.Argument(help="http(s) URL of the model")],
    identity: Annotated[
        Optional[str],
        typer.Option("--identity", "-i", help="Cache key (defaults to the URL)"),
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write the model bytes to this file"),
    ] = None,
) -> None:
    """Fetch a model, downloading it only if it is not cached yet."""
    settings = _load_settings()
    key = identity or url.strip()

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=console,
        ) as progress:
            task_id = progress.add_task(f"Fetching {key}", total=None)
            data, was_cached = asyncio.run(_fetch(settings, key, url, progress, task_id))
            progress.update(task_id, total=100, completed=100, description="[green]Done")
    except ModelCacheError as e:
        error_console.print(f"\n[red]Error:[/red] {e}")
        raise typer.Exit(1)

    source = "cache" if was_cached else "network"
    console.print(f"Loaded [bold]{key}[/bold] from {source} ({format_bytes(len(data))})")

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(data)
        console.print(f"[dim]Saved to:[/dim] {output}")


def _run_with_manager(action: Callable[[CacheManager], Awaitable[T]]) -> T:
    """Run an async action against an open CacheManager."""
    settings = _load_settings()

    async def runner() -> T:
        async with CacheManager.from_settings(settings) as manager:
            return await action(manager)

    try:
        return asyncio.run(runner())
    except ModelCacheError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@cache_app.command("list")
def cache_list() -> None:
    """List cached models, oldest first."""
    entries = _run_with_manager(lambda manager: manager.cache_entries())

    if not entries:
        console.print("[dim]No cached models.[/dim]")
        return

    table = Table(title="Cached Models", show_header=True)
    table.add_column("Identity", style="cyan")
    table.add_column("Cached At", style="dim")
    table.add_column("Size", justify="right", style="green")

    for entry in entries:
        table.add_row(
            entry.identity,
            entry.inserted_at_datetime.strftime("%Y-%m-%d %H:%M:%S UTC"),
            format_bytes(entry.size_bytes),
        )

    console.print(table)


@cache_app.command("size")
def cache_size() -> None:
    """Show the total size of the cache."""
    size = _run_with_manager(lambda manager: manager.cache_size())
    console.print(f"Cache size: [bold]{format_bytes(size)}[/bold]")


@cache_app.command("evict")
def cache_evict(
    identity: Annotated[str, typer.Argument(help="Identity of the model to remove")],
) -> None:
    """Remove one model from the cache."""
    _run_with_manager(lambda manager: manager.evict_one(identity))
    console.print(f"Evicted [bold]{identity}[/bold]")


@cache_app.command("clear")
def cache_clear(
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Do not ask for confirmation"),
    ] = False,
) -> None:
    """Remove every model from the cache."""
    if not yes:
        typer.confirm("Remove all cached models?", abort=True)
    _run_with_manager(lambda manager: manager.evict_all())
    console.print("Cache cleared")


@app.command()
def config() -> None:
    """Show current configuration."""
    settings = _load_settings()

    table = Table(title="Settings", show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    for key, value in settings.redacted_display().items():
        display_value = str(value) if value is not None else "[dim]not set[/dim]"
        table.add_row(key, display_value)

    console.print(table)


@app.command()
def version() -> None:
    """Print version."""
    console.print(f"modelcache {__version__}")


if __name__ == "__main__":
    app()
