import pytest

from ingestion.youtube import build_embed_url, extract_video_id, is_shorts_url, thumbnail_candidates


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://www.youtube.com/watch?v=dQw4w9WgXcQ", "dQw4w9WgXcQ"),
        ("https://www.youtube.com/watch?v=dQw4w9WgXcQ&list=PL123&index=2", "dQw4w9WgXcQ"),
        ("youtube.com/watch?v=dQw4w9WgXcQ#t=30", "dQw4w9WgXcQ"),
        ("https://www.youtube.com/embed/dQw4w9WgXcQ?autoplay=1", "dQw4w9WgXcQ"),
        ("https://www.youtube.com/v/dQw4w9WgXcQ/extra", "dQw4w9WgXcQ"),
        ("https://youtu.be/dQw4w9WgXcQ?t=5", "dQw4w9WgXcQ"),
        ("https://www.youtube.com/shorts/abcDEF12345/", "abcDEF12345"),
        ("https://m.youtube.com/watch?v=dQw4w9WgXcQ&feature=share", "dQw4w9WgXcQ"),
        ("HTTPS://WWW.YOUTUBE.COM/watch?v=MixedCase_1", "MixedCase_1"),
    ],
)
def test_extract_video_id_supported_shapes(url, expected):
    assert extract_video_id(url) == expected


def test_extract_video_id_accepts_any_non_empty_identifier():
    # No length or charset validation on the captured identifier.
    assert extract_video_id("https://youtu.be/x") == "x"
    assert extract_video_id("https://www.youtube.com/watch?v=not-eleven-chars-long") == "not-eleven-chars-long"


@pytest.mark.parametrize(
    "url",
    [
        "https://example.com/video",
        "https://vimeo.com/123456",
        "https://www.youtube.com/",
        "https://www.youtube.com/watch?v=",
        "https://youtu.be/",
        "",
        "not a url",
    ],
)
def test_extract_video_id_rejects_unsupported_urls(url):
    assert extract_video_id(url) is None


def test_shorts_pattern_matches_even_when_watch_pattern_does_not():
    assert extract_video_id("https://www.youtube.com/shorts/short123?feature=share") == "short123"


def test_thumbnail_candidates_are_ordered_best_first():
    assert thumbnail_candidates("abc") == [
        "https://img.youtube.com/vi/abc/maxresdefault.jpg",
        "https://img.youtube.com/vi/abc/hqdefault.jpg",
        "https://img.youtube.com/vi/abc/mqdefault.jpg",
        "https://img.youtube.com/vi/abc/default.jpg",
    ]


def test_embed_url_keeps_autoplay_and_controls():
    long_url = build_embed_url("abc", "long")
    short_url = build_embed_url("abc", "short")

    assert long_url.startswith("https://www.youtube.com/embed/abc?")
    for url in (long_url, short_url):
        assert "autoplay=1" in url
        assert "controls=1" in url
    assert "loop=1" in short_url
    assert "playlist=abc" in short_url
    assert "loop=1" not in long_url


def test_is_shorts_url():
    assert is_shorts_url("https://www.youtube.com/shorts/abc")
    assert not is_shorts_url("https://www.youtube.com/watch?v=abc")
