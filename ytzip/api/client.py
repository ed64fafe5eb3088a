"""
YouTube client built on yt-dlp for playlist listing and format resolution.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import yt_dlp

from ytzip.exceptions import LookupFailedError
from ytzip.models.media import (
    EncodingKind,
    EncodingOption,
    Playlist,
    PlaylistItem,
    ResolvedMedia,
)
from ytzip.utils.formatting import parse_duration_to_seconds

log = logging.getLogger(__name__)

# Plain HTTP(S) formats can be fetched with a single GET; manifests cannot.
DIRECT_PROTOCOLS = ("https", "http")

_BASE_OPTIONS: Dict[str, Any] = {
    "quiet": True,
    "no_warnings": True,
    "skip_download": True,
    "noprogress": True,
}


def _best_thumbnail(info: Dict[str, Any]) -> Optional[str]:
    thumbnails = info.get("thumbnails") or []
    if thumbnails:
        return thumbnails[-1].get("url")
    return info.get("thumbnail")


def _mime_type(fmt: Dict[str, Any], kind: EncodingKind) -> str:
    ext = fmt.get("ext") or "mp4"
    if kind is EncodingKind.AUDIO_ONLY:
        base = "audio/mp4" if ext == "m4a" else f"audio/{ext}"
        codecs = fmt.get("acodec")
    else:
        base = f"video/{ext}"
        codecs = ", ".join(
            c for c in (fmt.get("vcodec"), fmt.get("acodec")) if c and c != "none"
        )
    return f'{base}; codecs="{codecs}"' if codecs else base


def encoding_from_format(fmt: Dict[str, Any]) -> Optional[EncodingOption]:
    """
    Maps one yt-dlp format dictionary to an EncodingOption.

    Returns None for formats the pipeline cannot use: video-only streams,
    storyboards, and anything that is not a direct HTTP download.
    """
    if not fmt.get("url") or fmt.get("protocol", "https") not in DIRECT_PROTOCOLS:
        return None

    vcodec = fmt.get("vcodec") or "none"
    acodec = fmt.get("acodec") or "none"
    if acodec == "none":
        return None

    if vcodec == "none":
        kind = EncodingKind.AUDIO_ONLY
        abr = fmt.get("abr") or fmt.get("tbr")
        label = f"{round(abr)} kbps" if abr else "unknown"
    else:
        kind = EncodingKind.VIDEO_WITH_AUDIO
        abr = fmt.get("abr")
        height = fmt.get("height")
        label = fmt.get("format_note") or (f"{height}p" if height else "unknown")

    return EncodingOption(
        format_id=str(fmt.get("format_id")),
        kind=kind,
        quality_label=label,
        mime_type=_mime_type(fmt, kind),
        url=fmt["url"],
        audio_bitrate=abr,
        height=fmt.get("height"),
        video_bitrate=fmt.get("vbr") or fmt.get("tbr"),
        filesize=fmt.get("filesize") or fmt.get("filesize_approx"),
        http_headers=dict(fmt.get("http_headers") or {}),
    )


def media_from_info(info: Dict[str, Any]) -> ResolvedMedia:
    """Builds a ResolvedMedia from a yt-dlp info dictionary, keeping its format order."""
    formats = [
        option
        for option in (encoding_from_format(f) for f in info.get("formats") or [])
        if option is not None
    ]
    return ResolvedMedia(
        title=info.get("title") or info.get("id") or "",
        formats=formats,
        thumbnail=_best_thumbnail(info),
        duration=parse_duration_to_seconds(info.get("duration")),
    )


def playlist_from_info(info: Dict[str, Any]) -> Playlist:
    """Builds a Playlist from a flat yt-dlp playlist extraction."""
    items: List[PlaylistItem] = []
    for entry in info.get("entries") or []:
        if not entry or not entry.get("id"):
            continue
        video_id = str(entry["id"])
        url = entry.get("url") or ""
        if not url.startswith("http"):
            url = f"https://www.youtube.com/watch?v={video_id}"
        items.append(
            PlaylistItem(
                item_id=video_id,
                url=url,
                title=entry.get("title") or video_id,
                thumbnail=_best_thumbnail(entry),
                duration=parse_duration_to_seconds(entry.get("duration")),
            )
        )
    return Playlist(
        playlist_id=str(info.get("id") or ""),
        title=info.get("title") or "playlist",
        items=tuple(items),
    )


class YouTubeClient:
    """
    Async facade over yt-dlp.

    yt-dlp is synchronous, so every extraction runs in a worker thread and
    never blocks the event loop. A fresh YoutubeDL instance is used for each
    call; nothing is shared between jobs.
    """

    def __init__(self, extra_options: Optional[Dict[str, Any]] = None):
        self._extra_options = dict(extra_options or {})

    def _options(self, **overrides: Any) -> Dict[str, Any]:
        return {**_BASE_OPTIONS, **self._extra_options, **overrides}

    def _extract(self, url: str, options: Dict[str, Any]) -> Dict[str, Any]:
        with yt_dlp.YoutubeDL(options) as ydl:
            info = ydl.extract_info(url, download=False)
            if not info:
                raise LookupFailedError(f"No information returned for '{url}'.")
            return ydl.sanitize_info(info)

    async def list_playlist(self, url: str) -> Playlist:
        """Lists every entry of a playlist (yt-dlp follows all continuation pages)."""
        try:
            info = await asyncio.to_thread(
                self._extract, url, self._options(extract_flat="in_playlist")
            )
        except yt_dlp.utils.YoutubeDLError as e:
            raise LookupFailedError(f"Could not list playlist '{url}': {e}") from e

        if info.get("_type") != "playlist":
            raise LookupFailedError(f"'{url}' does not point to a playlist.")

        playlist = playlist_from_info(info)
        log.debug(
            f"Listed playlist '{playlist.title}' with {len(playlist.items)} items."
        )
        return playlist

    async def resolve(self, item_url: str) -> ResolvedMedia:
        """Resolves the available encodings of a single item."""
        try:
            info = await asyncio.to_thread(
                self._extract, item_url, self._options(noplaylist=True)
            )
        except yt_dlp.utils.YoutubeDLError as e:
            raise LookupFailedError(f"Could not resolve '{item_url}': {e}") from e
        return media_from_info(info)
