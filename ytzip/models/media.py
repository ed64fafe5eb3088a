"""
Data structures describing playlists, their items, the encodings a source
offers for an item, and the per-item work performed by an archive job.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


class MediaKind(str, Enum):
    """The kind of media a client asks for."""

    AUDIO = "audio"
    VIDEO = "video"

    @classmethod
    def from_query(cls, value: Optional[str]) -> "MediaKind":
        """Anything other than 'video' means audio."""
        return cls.VIDEO if (value or "").strip().lower() == "video" else cls.AUDIO


class EncodingKind(str, Enum):
    """The kind of stream an encoding carries."""

    AUDIO_ONLY = "audio-only"
    VIDEO_WITH_AUDIO = "video-with-audio"


@dataclass(frozen=True)
class PlaylistItem:
    """One entry of a playlist as returned by the listing."""

    item_id: str
    url: str
    title: str
    thumbnail: Optional[str] = None
    duration: Optional[int] = None


@dataclass(frozen=True)
class Playlist:
    playlist_id: str
    title: str
    items: tuple[PlaylistItem, ...] = ()


@dataclass(frozen=True)
class EncodingOption:
    """A single downloadable format of a media item."""

    format_id: str
    kind: EncodingKind
    quality_label: str
    mime_type: str
    url: str
    audio_bitrate: Optional[float] = None
    height: Optional[int] = None
    video_bitrate: Optional[float] = None
    filesize: Optional[int] = None
    http_headers: dict[str, str] = field(default_factory=dict, repr=False, hash=False)

    @property
    def extension(self) -> str:
        return "mp3" if self.kind is EncodingKind.AUDIO_ONLY else "mp4"


@dataclass(frozen=True)
class ResolvedMedia:
    """Metadata and available encodings for one media item."""

    title: str
    formats: list[EncodingOption] = field(default_factory=list, hash=False)
    thumbnail: Optional[str] = None
    duration: Optional[int] = None


@dataclass
class FetchTask:
    """Binds a playlist item to its position in the playlist and its staged file."""

    item: PlaylistItem
    ordinal: int
    pad_width: int = 3
    staged_path: Optional[Path] = None

    @property
    def prefix(self) -> str:
        return str(self.ordinal).zfill(self.pad_width)


class OutcomeStatus(str, Enum):
    READY = "ready"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class FetchOutcome:
    """Result of fetching one playlist item."""

    task: FetchTask
    status: OutcomeStatus
    reason: str = ""
    entry_name: Optional[str] = None
    size: int = 0

    @property
    def staged_path(self) -> Optional[Path]:
        return self.task.staged_path
