from ytzip.api.client import encoding_from_format, media_from_info, playlist_from_info
from ytzip.models.media import EncodingKind


def test_audio_only_format():
    option = encoding_from_format(
        {
            "format_id": "140",
            "url": "https://media.example/140",
            "protocol": "https",
            "ext": "m4a",
            "vcodec": "none",
            "acodec": "mp4a.40.2",
            "abr": 129.5,
        }
    )
    assert option.kind is EncodingKind.AUDIO_ONLY
    assert option.quality_label == "130 kbps"
    assert option.mime_type == 'audio/mp4; codecs="mp4a.40.2"'
    assert option.extension == "mp3"


def test_muxed_format():
    option = encoding_from_format(
        {
            "format_id": "18",
            "url": "https://media.example/18",
            "protocol": "https",
            "ext": "mp4",
            "vcodec": "avc1.42001E",
            "acodec": "mp4a.40.2",
            "height": 360,
            "tbr": 500,
        }
    )
    assert option.kind is EncodingKind.VIDEO_WITH_AUDIO
    assert option.quality_label == "360p"
    assert option.height == 360
    assert option.video_bitrate == 500
    assert option.extension == "mp4"


def test_unusable_formats_are_dropped():
    # video-only
    assert (
        encoding_from_format(
            {"format_id": "137", "url": "https://x", "vcodec": "avc1", "acodec": "none"}
        )
        is None
    )
    # manifest
    assert (
        encoding_from_format(
            {"format_id": "hls", "url": "https://x", "protocol": "m3u8_native", "acodec": "mp4a"}
        )
        is None
    )
    assert encoding_from_format({"format_id": "sb0", "acodec": "mp4a"}) is None


def test_media_from_info_keeps_order_and_duration():
    media = media_from_info(
        {
            "id": "abc",
            "title": "Song",
            "duration": 61.4,
            "thumbnail": "https://img.example/t.jpg",
            "formats": [
                {"format_id": "139", "url": "https://x/1", "vcodec": "none", "acodec": "mp4a", "abr": 48},
                {"format_id": "137", "url": "https://x/2", "vcodec": "avc1", "acodec": "none"},
                {"format_id": "140", "url": "https://x/3", "vcodec": "none", "acodec": "mp4a", "abr": 128},
            ],
        }
    )
    assert media.title == "Song"
    assert media.duration == 61
    assert media.thumbnail == "https://img.example/t.jpg"
    assert [o.format_id for o in media.formats] == ["139", "140"]


def test_playlist_from_info():
    playlist = playlist_from_info(
        {
            "_type": "playlist",
            "id": "PL1",
            "title": "Mix",
            "entries": [
                {"id": "aaaaaaaaaaa", "url": "https://www.youtube.com/watch?v=aaaaaaaaaaa", "title": "A"},
                None,
                {"url": "https://broken"},
                {"id": "bbbbbbbbbbb", "url": "bbbbbbbbbbb", "duration": "3:05"},
            ],
        }
    )
    assert playlist.playlist_id == "PL1"
    assert [i.item_id for i in playlist.items] == ["aaaaaaaaaaa", "bbbbbbbbbbb"]
    assert playlist.items[1].url == "https://www.youtube.com/watch?v=bbbbbbbbbbb"
    assert playlist.items[1].title == "bbbbbbbbbbb"
    assert playlist.items[1].duration == 185
