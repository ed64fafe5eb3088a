"""
Handles the processing of a single playlist item, from format lookup to a
fully written staged file.
"""

import asyncio
import logging
from pathlib import Path

from rich.markup import escape

from ytzip.api.base import FormatResolver, StreamTransport
from ytzip.exceptions import LookupFailedError, TransferError
from ytzip.media.formats import select_best_option
from ytzip.models.media import FetchOutcome, FetchTask, MediaKind, OutcomeStatus
from ytzip.utils.formatting import format_size
from ytzip.utils.path import build_entry_name

log = logging.getLogger(__name__)


class ItemFetcher:
    """
    Resolves one item, picks its best encoding for the requested media kind
    and streams it into the staging directory.

    fetch() never raises for per-item problems: every failure becomes a
    FetchOutcome so sibling items keep going.
    """

    def __init__(
        self,
        resolver: FormatResolver,
        transport: StreamTransport,
        staging_dir: Path,
        media_kind: MediaKind,
    ):
        self.resolver = resolver
        self.transport = transport
        self.staging_dir = staging_dir
        self.media_kind = media_kind

    async def fetch(self, task: FetchTask) -> FetchOutcome:
        item = task.item
        display_title = escape(item.title)

        try:
            media = await self.resolver.resolve(item.url)

            option = select_best_option(media.formats, self.media_kind)
            if option is None:
                reason = f"no {self.media_kind.value} encoding available"
                log.warning(f"  [yellow]○ Skipping:[/] {display_title} ({reason})")
                return FetchOutcome(task, OutcomeStatus.SKIPPED, reason=reason)

            entry_name = build_entry_name(
                task.ordinal, media.title or item.title, option.extension, task.pad_width
            )
            # Titles only name archive entries; staged files stay short and ASCII.
            task.staged_path = self.staging_dir / f"{task.prefix}.{option.extension}"

            size = await self.transport.download(option, task.staged_path)
            log.info(
                f"  [green]✓ Fetched:[/] [dim]{escape(entry_name)}[/dim] "
                f"({option.quality_label}, {format_size(size)})"
            )
            return FetchOutcome(
                task, OutcomeStatus.READY, entry_name=entry_name, size=size
            )

        except LookupFailedError as e:
            reason = f"lookup failed: {e}"
        except TransferError as e:
            reason = f"transfer failed: {e}"
        except OSError as e:
            reason = f"staging write failed: {e}"
        except Exception as e:
            log.debug("Full traceback:", exc_info=True)
            reason = f"unexpected error: {e}"

        log.error(f"  [red]✗ Failed:[/] {display_title} <{escape(item.url)}> ({escape(reason)})")
        await self._remove_partial(task)
        return FetchOutcome(task, OutcomeStatus.FAILED, reason=reason)

    async def _remove_partial(self, task: FetchTask) -> None:
        if task.staged_path is None:
            return
        try:
            await asyncio.to_thread(task.staged_path.unlink, missing_ok=True)
        except OSError as e:
            log.warning(f"[yellow]Could not remove partial file '{task.staged_path}': {e}[/yellow]")
        task.staged_path = None
