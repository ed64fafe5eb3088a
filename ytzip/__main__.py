"""
Main entry point for the ytzip application.
This module handles top-level exception handling and CLI invocation.
"""

import asyncio
import logging
import sys

import typer
from rich.console import Console

from ytzip.cli.app import app
from ytzip.cli.formatters import format_error_with_suggestions
from ytzip.exceptions import YtzipError


def main() -> None:
    """Main entry point function."""
    log = logging.getLogger("ytzip")
    console = Console()

    try:
        app()
    except (typer.Exit, typer.Abort):
        pass
    except (KeyboardInterrupt, asyncio.CancelledError):
        console.print("\n[yellow]⚠️  Operation cancelled by user.[/yellow]")
        sys.exit(0)
    except YtzipError as e:
        console.print(f"\n{format_error_with_suggestions(e)}")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n{format_error_with_suggestions(e, {'type': 'Unexpected'})}")
        log.debug("Full traceback:", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
