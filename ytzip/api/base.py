"""
Interfaces the archive pipeline uses to reach the media source.

The pipeline never talks to a concrete platform directly. Anything that
satisfies these protocols can be plugged in, which is how the tests drive
the pipeline with in-memory fakes.
"""

from pathlib import Path
from typing import AsyncIterator, Protocol

from ytzip.models.media import EncodingOption, Playlist, ResolvedMedia


class PlaylistSource(Protocol):
    async def list_playlist(self, url: str) -> Playlist:
        """Returns every item of the playlist, across all result pages."""
        ...


class FormatResolver(Protocol):
    async def resolve(self, item_url: str) -> ResolvedMedia:
        """Returns the item's metadata and available encodings."""
        ...


class StreamTransport(Protocol):
    async def download(self, option: EncodingOption, destination: Path) -> int:
        """Writes the encoding's bytes to destination and returns the byte count."""
        ...

    def iter_stream(self, option: EncodingOption) -> AsyncIterator[bytes]:
        """Yields the encoding's bytes chunk by chunk."""
        ...
