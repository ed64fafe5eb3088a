"""
Functions for formatting and displaying data in the console using Rich.
"""

from typing import Any

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ytzip.models.stats import JobStats
from ytzip.utils.formatting import format_duration, format_size


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "ConfigurationError": [
            "• Check the values in your .env file or environment.",
            "• Run `ytzip show-config` to see the effective settings.",
        ],
        "RejectedJobError": [
            "• Make sure the URL contains a 'list=' parameter.",
            "• Raise MAX_PLAYLIST_ITEMS if the playlist is too large.",
        ],
        "LookupFailedError": [
            "• The playlist may be private or unavailable in your region.",
            "• Update yt-dlp; the site may have changed.",
        ],
        "StagingError": [
            "• Check that STAGING_DIR exists and is writable.",
            "• Make sure the disk is not full.",
        ],
        "ArchiveFatalError": [
            "• The output could not be written. Check free disk space.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -v for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(Text("\n".join(suggestions)))

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_data: dict[str, Any], source: str = "environment"):
    """Displays the effective configuration."""
    console = Console()
    content = "\n".join(f"{key} = {value}" for key, value in sorted(config_data.items()))
    console.print(
        Panel(content, title=f"Configuration ([dim]{source}[/dim])", border_style="cyan")
    )


def print_summary_panel(stats: JobStats, output_name: str):
    """Displays the final summary of an archive job."""
    console = Console()

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan", justify="right", width=20)
    table.add_column(style="white", justify="left")

    table.add_row(
        "✓ Archived:",
        f"[bold green]{stats.items_archived}[/bold green] / {stats.items_total}",
    )
    if stats.items_skipped > 0:
        table.add_row("○ Skipped:", f"[yellow]{stats.items_skipped}[/yellow]")
    if stats.items_failed > 0:
        table.add_row("✗ Failed:", f"[bold red]{stats.items_failed}[/bold red]")
    if stats.archive_warnings > 0:
        table.add_row("⚠ Warnings:", f"[yellow]{stats.archive_warnings}[/yellow]")

    table.add_row("", "")
    table.add_row("Archive Size:", f"[cyan]{format_size(stats.bytes_archived)}[/cyan]")
    table.add_row("Time Elapsed:", f"[blue]{format_duration(stats.duration_s)}[/blue]")
    table.add_row("Peak Concurrent:", f"[green]{stats.peak_active}[/green]")
    table.add_row("Output:", f"[dim]{output_name}[/dim]")

    border = "green" if stats.items_failed == 0 else "yellow"
    console.print()
    console.print(
        Panel(
            table,
            title="📦 [bold]Archive Complete![/bold]",
            border_style=border,
            box=box.DOUBLE,
            expand=False,
            padding=(1, 2),
        )
    )
    console.print()
