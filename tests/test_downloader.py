import asyncio

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from ytzip.exceptions import TransferError, TransferLimitError
from ytzip.media.downloader import Downloader
from ytzip.models.media import EncodingKind, EncodingOption

BODY = b"0123456789" * 1000


def _media_app():
    async def media(request):
        return web.Response(body=BODY)

    async def chunked(request):
        response = web.StreamResponse()
        await response.prepare(request)
        for _ in range(10):
            await response.write(BODY[:1000])
        return response

    async def missing(request):
        return web.Response(status=404)

    app = web.Application()
    app.router.add_get("/media", media)
    app.router.add_get("/chunked", chunked)
    app.router.add_get("/missing", missing)
    return app


def _option(url) -> EncodingOption:
    return EncodingOption(
        format_id="140",
        kind=EncodingKind.AUDIO_ONLY,
        quality_label="128 kbps",
        mime_type="audio/mp4",
        url=str(url),
    )


def _download(path, destination, max_bytes=10**6):
    async def scenario():
        async with TestServer(_media_app()) as server:
            async with Downloader(max_bytes, timeout=10, max_attempts=2, base_delay=0) as d:
                return await d.download(_option(server.make_url(path)), destination)

    return asyncio.run(scenario())


def test_download_writes_the_stream(tmp_path):
    destination = tmp_path / "001 - a.mp3"
    assert _download("/media", destination) == len(BODY)
    assert destination.read_bytes() == BODY


def test_declared_size_over_limit(tmp_path):
    with pytest.raises(TransferLimitError):
        _download("/media", tmp_path / "a.mp3", max_bytes=100)


def test_streamed_size_over_limit(tmp_path):
    with pytest.raises(TransferLimitError):
        _download("/chunked", tmp_path / "a.mp3", max_bytes=5000)


def test_http_errors_are_retried_then_raised(tmp_path):
    with pytest.raises(TransferError):
        _download("/missing", tmp_path / "a.mp3")


def test_iter_stream(tmp_path):
    async def scenario():
        async with TestServer(_media_app()) as server:
            async with Downloader(10**6, timeout=10) as d:
                return b"".join(
                    [chunk async for chunk in d.iter_stream(_option(server.make_url("/media")))]
                )

    assert asyncio.run(scenario()) == BODY
