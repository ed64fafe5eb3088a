"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import Optional

import aiofiles
import typer
from rich.console import Console
from rich.logging import RichHandler

from ytzip import __version__
from ytzip.core.archive_job import ArchiveJob, JobContext
from ytzip.models.media import MediaKind
from ytzip.models.stats import JobStats
from ytzip.storage.config_manager import ConfigManager
from ytzip.utils.path import is_playlist_url
from ytzip.web.app import run_server

from .formatters import print_config, print_summary_panel

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("ytzip")

app = typer.Typer(
    name="ytzip",
    help=(
        "Stream whole playlists as a single ZIP archive. Use 'ytzip"
        " <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)

CONFIG_OPTION = typer.Option(
    None, "--config", "-c", help="Path to an INI file with a [DEFAULT] section."
)


def _apply_log_level(level: str, verbose: int) -> None:
    if verbose >= 1:
        level = "DEBUG"
    logging.getLogger("ytzip").setLevel(level)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Enable debug logging.",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
):
    """ytzip playlist archiver"""
    if version:
        console.print(f"[bold]ytzip[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    ctx.obj = {"verbose": verbose}
    _apply_log_level("INFO", verbose)

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def serve(
    ctx: typer.Context,
    host: Optional[str] = typer.Option(None, "--host", help="Interface to bind."),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to listen on."),
    concurrency: Optional[int] = typer.Option(
        None, "--concurrency", "-n", help="Parallel fetches per archive job."
    ),
    max_items: Optional[int] = typer.Option(
        None, "--max-items", help="Largest playlist accepted."
    ),
    config_file: Optional[Path] = CONFIG_OPTION,
):
    """Run the HTTP server."""
    config = ConfigManager(config_file).load_config(
        {
            "host": host,
            "port": port,
            "concurrency": concurrency,
            "max_playlist_items": max_items,
        }
    )
    _apply_log_level(config.log_level, ctx.obj["verbose"])
    run_server(config)


@app.command()
def archive(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="Playlist URL (must contain 'list=')."),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Destination ZIP file."
    ),
    video: bool = typer.Option(
        False, "--video", help="Archive video-with-audio instead of audio-only."
    ),
    concurrency: Optional[int] = typer.Option(
        None, "--concurrency", "-n", help="Parallel fetches."
    ),
    config_file: Optional[Path] = CONFIG_OPTION,
):
    """Build a playlist archive on local disk."""
    if not is_playlist_url(url):
        console.print("[red]✗ Invalid playlist URL.[/red]")
        raise typer.Exit(code=1)

    config = ConfigManager(config_file).load_config({"concurrency": concurrency})
    _apply_log_level(config.log_level, ctx.obj["verbose"])
    destination = output or Path(f"playlist_{int(time.time() * 1000)}.zip")
    media_kind = MediaKind.VIDEO if video else MediaKind.AUDIO

    async def _archive_async() -> JobStats:
        async with JobContext.create(config) as context:
            playlist = await context.source.list_playlist(url)
            job = ArchiveJob(context, playlist, media_kind)
            await job.prepare()
            try:
                async with aiofiles.open(destination, "wb") as f:
                    return await job.run(f)
            except BaseException:
                destination.unlink(missing_ok=True)
                raise

    stats = asyncio.run(_archive_async())
    print_summary_panel(stats, str(destination))


@app.command("show-config")
def show_config(config_file: Optional[Path] = CONFIG_OPTION):
    """Display the effective configuration."""
    config = ConfigManager(config_file).load_config()
    source = str(config_file) if config_file else "environment"
    print_config(config.model_dump(), source)
