from fakes import make_options

from ytzip.media.formats import filter_options, find_option, select_best_option
from ytzip.models.media import EncodingKind, EncodingOption, MediaKind


def _video(format_id, height=None, vbr=None):
    return EncodingOption(
        format_id=format_id,
        kind=EncodingKind.VIDEO_WITH_AUDIO,
        quality_label="",
        mime_type="video/mp4",
        url=f"https://media.example/{format_id}",
        height=height,
        video_bitrate=vbr,
    )


def _audio(format_id, abr=None):
    return EncodingOption(
        format_id=format_id,
        kind=EncodingKind.AUDIO_ONLY,
        quality_label="",
        mime_type="audio/mp4",
        url=f"https://media.example/{format_id}",
        audio_bitrate=abr,
    )


def test_audio_picks_highest_bitrate():
    best = select_best_option(make_options("u"), MediaKind.AUDIO)
    assert best.format_id == "140"


def test_video_ignores_audio_only_options():
    best = select_best_option(make_options("u"), MediaKind.VIDEO)
    assert best.format_id == "18"


def test_video_prefers_height_then_bitrate():
    options = [_video("a", 720, 900), _video("b", 1080, 500), _video("c", 1080, 800)]
    assert select_best_option(options, MediaKind.VIDEO).format_id == "c"


def test_missing_metrics_count_as_zero():
    options = [_audio("a"), _audio("b", 64)]
    assert select_best_option(options, MediaKind.AUDIO).format_id == "b"


def test_ties_keep_first_listed():
    options = [_audio("first", 128), _audio("second", 128)]
    assert select_best_option(options, MediaKind.AUDIO).format_id == "first"


def test_no_matching_kind_returns_none():
    assert select_best_option([_audio("a", 128)], MediaKind.VIDEO) is None
    assert select_best_option([], MediaKind.AUDIO) is None


def test_filter_and_find():
    options = make_options("u")
    assert [o.format_id for o in filter_options(options, EncodingKind.AUDIO_ONLY)] == [
        "139",
        "140",
    ]
    assert find_option(options, "18").height == 360
    assert find_option(options, 18).format_id == "18"
    assert find_option(options, "999") is None
