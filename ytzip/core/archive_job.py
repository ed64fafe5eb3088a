"""
The orchestrator that turns a playlist into a streamed ZIP archive.

One ArchiveJob exists per client request. It owns the staging directory,
a producer task (the fetch scheduler) and a consumer task (the archive
assembler), connected by a bounded queue of completed fetches.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from rich.markup import escape

from ytzip.api.base import FormatResolver, PlaylistSource, StreamTransport
from ytzip.api.client import YouTubeClient
from ytzip.exceptions import RejectedJobError
from ytzip.media.downloader import Downloader
from ytzip.models.config import ServerConfig
from ytzip.models.media import FetchOutcome, MediaKind, OutcomeStatus, Playlist
from ytzip.models.stats import JobStats
from ytzip.storage.archive import ArchiveAssembler, AsyncOutput
from ytzip.storage.staging import StagingArea
from ytzip.utils.formatting import format_duration, format_size

from .item_fetcher import ItemFetcher
from .scheduler import FetchScheduler, build_tasks

log = logging.getLogger(__name__)


@dataclass
class JobContext:
    """Everything a job needs, built fresh for every request."""

    config: ServerConfig
    source: PlaylistSource
    resolver: FormatResolver
    transport: StreamTransport

    @classmethod
    def create(cls, config: ServerConfig) -> "JobContext":
        client = YouTubeClient()
        downloader = Downloader(
            max_bytes=config.max_item_bytes,
            timeout=config.item_timeout,
            max_connections=config.concurrency,
        )
        return cls(config=config, source=client, resolver=client, transport=downloader)

    async def close(self) -> None:
        close = getattr(self.transport, "close", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> "JobContext":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def validate_playlist(playlist: Playlist, max_items: int) -> None:
    """Rejects empty and oversized playlists before any work starts."""
    if not playlist.items:
        raise RejectedJobError("Empty playlist", status=404)
    if len(playlist.items) > max_items:
        raise RejectedJobError("Playlist too large", status=400)


class ArchiveJob:
    """Fetches every playlist item and streams the results as one archive."""

    def __init__(self, context: JobContext, playlist: Playlist, media_kind: MediaKind):
        self.context = context
        self.config = context.config
        self.playlist = playlist
        self.media_kind = media_kind
        self.stats = JobStats(items_total=len(playlist.items))
        self.outcomes: list[FetchOutcome] = []
        staging_root = Path(self.config.staging_dir) if self.config.staging_dir else None
        self.staging = StagingArea(staging_root)
        self.scheduler: Optional[FetchScheduler] = None

    async def prepare(self) -> None:
        """
        Checks the playlist and creates the staging directory. Callers that
        must report these failures before streaming starts call this first;
        run() calls it otherwise.
        """
        if self.staging.path is not None:
            return
        validate_playlist(self.playlist, self.config.max_playlist_items)
        log.info(
            f"[bold cyan]▶ Archive job:[/] {escape(self.playlist.title)} "
            f"({len(self.playlist.items)} items, {self.media_kind.value})"
        )
        await self.staging.create()

    async def run(self, output: AsyncOutput) -> JobStats:
        """
        Streams the archive into output and returns the job statistics.

        Raises RejectedJobError before touching disk if the playlist is
        unacceptable. Raises ArchiveFatalError if the output breaks. The
        staging directory is removed exactly once however this ends.
        """
        await self.prepare()
        try:
            assembler = ArchiveAssembler(output)
            fetcher = ItemFetcher(
                self.context.resolver,
                self.context.transport,
                self.staging.path,
                self.media_kind,
            )
            self.scheduler = FetchScheduler(fetcher, self.config.concurrency)
            queue: asyncio.Queue[Optional[FetchOutcome]] = asyncio.Queue(
                maxsize=self.config.max_pending_entries
            )

            producer = asyncio.create_task(self._produce(queue))
            consumer = asyncio.create_task(self._consume(queue, assembler))
            try:
                await self._wait_for(producer, consumer)
            finally:
                for t in (producer, consumer):
                    if not t.done():
                        t.cancel()
                await asyncio.gather(producer, consumer, return_exceptions=True)

            await assembler.finalize()
            await self.staging.cleanup()
            self.stats.archive_warnings = assembler.warnings
            self.stats.finish()
            self._log_summary()
            return self.stats
        finally:
            self.stats.finish()
            await self.staging.cleanup()

    async def _wait_for(self, producer: asyncio.Task, consumer: asyncio.Task) -> None:
        done, _ = await asyncio.wait(
            {producer, consumer}, return_when=asyncio.FIRST_EXCEPTION
        )
        # The consumer's error (a broken output) is the more meaningful one.
        for t in (consumer, producer):
            if t in done and not t.cancelled() and t.exception() is not None:
                raise t.exception()

    async def _produce(self, queue: asyncio.Queue) -> None:
        async def on_complete(outcome: FetchOutcome) -> None:
            if outcome.status is OutcomeStatus.SKIPPED:
                self.stats.items_skipped += 1
            elif outcome.status is OutcomeStatus.FAILED:
                self.stats.items_failed += 1
            else:
                self.stats.bytes_fetched += outcome.size
                await queue.put(outcome)

        tasks = build_tasks(self.playlist.items)
        self.outcomes = await self.scheduler.run(tasks, on_complete=on_complete)
        self.stats.peak_active = self.scheduler.peak_active
        await queue.put(None)

    async def _consume(self, queue: asyncio.Queue, assembler: ArchiveAssembler) -> None:
        while (outcome := await queue.get()) is not None:
            try:
                if await assembler.add_file(outcome.staged_path, outcome.entry_name):
                    self.stats.items_archived += 1
                    self.stats.bytes_archived += outcome.size
            finally:
                await self.staging.discard(outcome.staged_path)

    def _log_summary(self) -> None:
        s = self.stats
        log.info(
            f"[bold green]✓ Archive complete:[/] {s.items_archived}/{s.items_total} "
            f"archived, {s.items_skipped} skipped, {s.items_failed} failed, "
            f"{format_size(s.bytes_archived)} in {format_duration(s.duration_s)}"
        )
        log.debug(f"Job stats: {s.as_dict()}")
