"""
Quality selection policy for picking one encoding out of everything a
resolver offers.

audio: the audio-only option with the highest audio bitrate.
video: the video-with-audio option with the highest height, then the
       highest video bitrate.

Missing metrics count as zero. When several options compare equal the one
the resolver listed first wins.
"""

from typing import Iterable, Optional

from ytzip.models.media import EncodingKind, EncodingOption, MediaKind

KIND_FOR_MEDIA = {
    MediaKind.AUDIO: EncodingKind.AUDIO_ONLY,
    MediaKind.VIDEO: EncodingKind.VIDEO_WITH_AUDIO,
}


def _audio_rank(option: EncodingOption) -> tuple[float]:
    return (option.audio_bitrate or 0,)


def _video_rank(option: EncodingOption) -> tuple[int, float]:
    return (option.height or 0, option.video_bitrate or 0)


def filter_options(
    options: Iterable[EncodingOption], kind: EncodingKind
) -> list[EncodingOption]:
    """Returns the options of the given kind, in resolver order."""
    return [o for o in options if o.kind is kind]


def select_best_option(
    options: Iterable[EncodingOption], media_kind: MediaKind
) -> Optional[EncodingOption]:
    """Picks the best option for media_kind, or None if nothing matches."""
    candidates = filter_options(options, KIND_FOR_MEDIA[media_kind])
    if not candidates:
        return None
    rank = _audio_rank if media_kind is MediaKind.AUDIO else _video_rank
    # max() keeps the first of several equal maxima.
    return max(candidates, key=rank)


def find_option(
    options: Iterable[EncodingOption], format_id: str
) -> Optional[EncodingOption]:
    """Finds an option by its format token."""
    return next((o for o in options if o.format_id == str(format_id)), None)
