"""
Media Source Layer.

This package defines the interfaces the archive pipeline uses to reach the
media platform, and the yt-dlp based client that implements them.
"""

from .base import FormatResolver, PlaylistSource, StreamTransport
from .client import YouTubeClient

__all__ = ["FormatResolver", "PlaylistSource", "StreamTransport", "YouTubeClient"]
