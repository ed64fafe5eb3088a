"""
The aiohttp application: the playlist archive endpoint plus the small
lookup and single-item download endpoints around it.
"""

import logging
import time
from typing import Any, Callable
from urllib.parse import quote

from aiohttp import hdrs, web
from rich.markup import escape

from ytzip import __version__
from ytzip.core.archive_job import ArchiveJob, JobContext
from ytzip.exceptions import (
    ArchiveFatalError,
    LookupFailedError,
    RejectedJobError,
    StagingError,
    TransferError,
)
from ytzip.media.formats import filter_options, find_option, select_best_option
from ytzip.models.config import ServerConfig
from ytzip.models.media import EncodingKind, MediaKind
from ytzip.utils.batch_fetcher import BatchMetadataFetcher
from ytzip.utils.path import is_playlist_url, is_video_url, sanitize_title

from .rate_limiter import FixedWindowRateLimiter, rate_limit_middleware

log = logging.getLogger(__name__)

ContextFactory = Callable[[ServerConfig], JobContext]

CONFIG_KEY = web.AppKey("config", ServerConfig)
CONTEXT_FACTORY_KEY = web.AppKey("context_factory", Callable)

ARCHIVE_PATH = "/api/download-all"
HELLO = {"message": "Hello from the backend!"}


def _error(status: int, message: str, **extra: Any) -> web.Response:
    return web.json_response({"error": message, **extra}, status=status)


def _attachment(filename: str) -> str:
    ascii_name = filename.encode("ascii", "ignore").decode() or "download"
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"


def _abort_stream(request: web.Request, response: web.StreamResponse) -> None:
    """Ends a response whose headers are already sent without marking it complete."""
    response.force_close()
    if request.transport is not None:
        request.transport.close()


def _new_context(request: web.Request) -> JobContext:
    return request.app[CONTEXT_FACTORY_KEY](request.app[CONFIG_KEY])


async def hello(request: web.Request) -> web.Response:
    return web.json_response(HELLO)


async def health(request: web.Request) -> web.Response:
    return web.json_response({"status": "ok", "version": __version__})


async def get_formats(request: web.Request) -> web.Response:
    """Lists the audio and/or video encodings of a single item."""
    url = request.query.get("url")
    format_type = request.query.get("formatType", "both")
    if not is_video_url(url):
        return _error(400, "Invalid URL")

    async with _new_context(request) as context:
        try:
            media = await context.resolver.resolve(url)
        except LookupFailedError as e:
            log.error(f"[red]✗ Format lookup failed for {escape(url)}: {e}[/red]")
            return _error(500, "Failed to fetch formats", details=str(e))

    body: dict[str, Any] = {
        "title": media.title,
        "thumbnail": media.thumbnail,
        "duration": media.duration,
    }
    if format_type in ("audio", "both"):
        audio = [
            {"itag": o.format_id, "quality": o.quality_label, "mime": o.mime_type}
            for o in filter_options(media.formats, EncodingKind.AUDIO_ONLY)
        ]
        if audio:
            body["audio"] = audio
    if format_type in ("video", "both"):
        video = [
            {"itag": o.format_id, "quality": o.quality_label, "mime": o.mime_type}
            for o in filter_options(media.formats, EncodingKind.VIDEO_WITH_AUDIO)
        ]
        if video:
            body["video"] = video
    return web.json_response(body)


async def download_single(request: web.Request) -> web.StreamResponse:
    """Streams one encoding of one item straight through to the client."""
    url = request.query.get("url")
    itag = request.query.get("itag", "")
    if not is_video_url(url):
        return _error(400, "Invalid URL")

    async with _new_context(request) as context:
        try:
            media = await context.resolver.resolve(url)
        except LookupFailedError as e:
            log.error(f"[red]✗ Download lookup failed for {escape(url)}: {e}[/red]")
            return _error(500, "Download failed", details=str(e))

        option = find_option(media.formats, itag)
        if option is None:
            return _error(404, "Format not found", itag=itag)

        filename = f"{sanitize_title(media.title)}.{option.extension}"
        response = web.StreamResponse(
            headers={
                hdrs.CONTENT_TYPE: option.mime_type.split(";")[0],
                hdrs.CONTENT_DISPOSITION: _attachment(filename),
            }
        )
        await response.prepare(request)
        try:
            async for chunk in context.transport.iter_stream(option):
                await response.write(chunk)
            await response.write_eof()
        except (TransferError, ConnectionError) as e:
            log.error(f"[red]✗ Direct download of {escape(filename)} aborted: {e}[/red]")
            _abort_stream(request, response)
        return response


async def download_all(request: web.Request) -> web.StreamResponse:
    """Streams every item of a playlist as a single ZIP archive."""
    url = request.query.get("url")
    if not is_playlist_url(url):
        return _error(400, "Invalid playlist URL")
    media_kind = MediaKind.from_query(request.query.get("formatType"))

    async with _new_context(request) as context:
        try:
            playlist = await context.source.list_playlist(url)
        except LookupFailedError as e:
            log.error(f"[red]✗ Playlist listing failed for {escape(url)}: {e}[/red]")
            return _error(500, "Failed to create ZIP", details=str(e))

        job = ArchiveJob(context, playlist, media_kind)
        try:
            await job.prepare()
        except RejectedJobError as e:
            log.warning(f"[yellow]Rejected archive job for {escape(url)}: {e}[/yellow]")
            return _error(e.status, str(e))
        except StagingError as e:
            log.error(f"[red]✗ {e}[/red]")
            return _error(500, "Failed to create ZIP", details=str(e))

        response = web.StreamResponse(
            headers={
                hdrs.CONTENT_TYPE: "application/zip",
                hdrs.CONTENT_DISPOSITION: (
                    f'attachment; filename="playlist_{int(time.time() * 1000)}.zip"'
                ),
            }
        )
        try:
            await response.prepare(request)
            await job.run(response)
            await response.write_eof()
        except ArchiveFatalError as e:
            log.error(f"[red]✗ Archive stream for {escape(url)} ended early: {e}[/red]")
            _abort_stream(request, response)
        finally:
            await job.staging.cleanup()
        return response


async def playlist_formats(request: web.Request) -> web.Response:
    """Reports the best audio/video format token of every playlist item."""
    config = request.app[CONFIG_KEY]
    url = request.query.get("url")
    format_type = request.query.get("formatType", "both")
    if not url:
        return _error(400, "URL required")
    if not is_playlist_url(url):
        return _error(400, "Not a playlist URL")

    async with _new_context(request) as context:
        try:
            playlist = await context.source.list_playlist(url)
        except LookupFailedError as e:
            log.error(f"[red]✗ Playlist listing failed for {escape(url)}: {e}[/red]")
            return _error(500, "Failed to fetch playlist")

        fetcher = BatchMetadataFetcher(context.resolver, config.concurrency)
        resolved = await fetcher.resolve_items_batch(list(playlist.items))

    entries = []
    for item in playlist.items:
        entry: dict[str, Any] = {
            "title": item.title,
            "url": item.url,
            "thumbnail": item.thumbnail,
            "duration": item.duration,
        }
        media = resolved.get(item.url)
        if media is None:
            entry.update(bestVideoItag=None, bestAudioItag=None)
        else:
            if format_type in ("video", "both"):
                if best := select_best_option(media.formats, MediaKind.VIDEO):
                    entry["bestVideoItag"] = best.format_id
            if format_type in ("audio", "both"):
                if best := select_best_option(media.formats, MediaKind.AUDIO):
                    entry["bestAudioItag"] = best.format_id
        entries.append(entry)
    return web.json_response(entries)


def create_app(
    config: ServerConfig, context_factory: ContextFactory = JobContext.create
) -> web.Application:
    """Builds the application. context_factory creates a fresh JobContext per request."""
    limiter = FixedWindowRateLimiter(config.rate_limit_max, config.rate_limit_window)
    app = web.Application(middlewares=[rate_limit_middleware(limiter, [ARCHIVE_PATH])])
    app[CONFIG_KEY] = config
    app[CONTEXT_FACTORY_KEY] = context_factory
    app.router.add_get("/", hello)
    app.router.add_get("/api/test", hello)
    app.router.add_get("/api/health", health)
    app.router.add_get("/api/formats", get_formats)
    app.router.add_get("/api/download", download_single)
    app.router.add_get(ARCHIVE_PATH, download_all)
    app.router.add_get("/api/playlist-formats", playlist_formats)
    return app


def run_server(config: ServerConfig) -> None:
    """Runs the HTTP server until interrupted."""
    log.info(
        f"[bold cyan]Server started on http://{config.host}:{config.port}[/bold cyan] "
        f"(concurrency {config.concurrency}, max {config.max_playlist_items} items)"
    )
    web.run_app(create_app(config), host=config.host, port=config.port, print=None)
