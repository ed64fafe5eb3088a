"""
Data Models Layer.

This package contains the Pydantic configuration model and the dataclasses
that describe playlists, encodings, fetch work and job statistics.
"""

from .config import ServerConfig
from .media import (
    EncodingKind,
    EncodingOption,
    FetchOutcome,
    FetchTask,
    MediaKind,
    OutcomeStatus,
    Playlist,
    PlaylistItem,
    ResolvedMedia,
)
from .stats import JobStats

__all__ = [
    "EncodingKind",
    "EncodingOption",
    "FetchOutcome",
    "FetchTask",
    "JobStats",
    "MediaKind",
    "OutcomeStatus",
    "Playlist",
    "PlaylistItem",
    "ResolvedMedia",
    "ServerConfig",
]
