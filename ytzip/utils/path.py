"""
Utilities for handling archive entry names and URL parsing.
"""

import re
from typing import Optional, Tuple

from pathvalidate import sanitize_filename

TITLE_MAX_LENGTH = 120
FALLBACK_TITLE = "untitled"

# Only ASCII letters, digits and underscore count as word characters.
_UNSAFE_TITLE_CHARS = re.compile(r"[^A-Za-z0-9_\s-]")
_WHITESPACE = re.compile(r"\s+")
_VIDEO_URL_PATTERN = re.compile(
    r"(?:youtube\.com/(?:watch\?(?:.*&)?v=|shorts/|embed/|v/|live/)|youtu\.be/)"
    r"(?P<id>[\w-]{11})(?![\w-])"
)
_PLAYLIST_ID_PATTERN = re.compile(r"[?&]list=(?P<id>[\w-]+)")


def is_playlist_url(url: Optional[str]) -> bool:
    """A playlist reference is any URL carrying a 'list' query parameter."""
    return bool(url) and "list=" in url


def parse_youtube_url(url: Optional[str]) -> Optional[Tuple[str, str]]:
    """
    Parses a YouTube URL to extract the content type and ID.
    Video IDs take precedence over playlist IDs for watch URLs inside a playlist.
    """
    if not url:
        return None
    if match := _VIDEO_URL_PATTERN.search(url):
        return "video", match.group("id")
    if match := _PLAYLIST_ID_PATTERN.search(url):
        return "playlist", match.group("id")
    return None


def is_video_url(url: Optional[str]) -> bool:
    info = parse_youtube_url(url)
    return bool(info) and info[0] == "video"


def sanitize_title(title: Optional[str], max_length: int = TITLE_MAX_LENGTH) -> str:
    """
    Reduces a title to ASCII word, space and hyphen characters with collapsed
    whitespace, capped at max_length characters.
    """
    cleaned = _UNSAFE_TITLE_CHARS.sub("", title or "").strip()
    cleaned = _WHITESPACE.sub(" ", cleaned)[:max_length].strip()
    # Reserved device names (CON, NUL, ...) are not valid on every platform.
    cleaned = sanitize_filename(cleaned, platform="universal")
    return cleaned or FALLBACK_TITLE


def ordinal_width(item_count: int) -> int:
    """Width of the zero-padded ordinal prefix, never less than three digits."""
    return max(3, len(str(item_count)))


def build_entry_name(ordinal: int, title: Optional[str], ext: str, width: int = 3) -> str:
    """Builds an archive entry name such as '007 - Some Title.mp3'."""
    return f"{str(ordinal).zfill(width)} - {sanitize_title(title)}.{ext}"
