"""
Tests for URL and text helpers.
"""

import json
import pytest

from comment_analyzer.utils.helpers import (
    clean_text,
    extract_video_id,
    format_youtube_url,
    get_youtube_thumbnail,
    is_valid_youtube_url,
    resolve_video_id,
    save_json,
    split_into_batches,
    truncate_text,
)

VIDEO_ID = "dQw4w9WgXcQ"


@pytest.mark.parametrize("url", [
    f"https://www.youtube.com/watch?v={VIDEO_ID}",
    f"https://youtube.com/watch?v={VIDEO_ID}&t=42s",
    f"https://youtu.be/{VIDEO_ID}",
    f"https://youtu.be/{VIDEO_ID}?si=abcdef",
    f"https://www.youtube.com/embed/{VIDEO_ID}",
    f"https://www.youtube.com/v/{VIDEO_ID}",
    f"https://www.youtube.com/shorts/{VIDEO_ID}",
    f"https://www.youtube.com/watch?feature=share&v={VIDEO_ID}",
    f"  https://m.youtube.com/watch?v={VIDEO_ID}  ",
    f"www.youtube.com/watch?v={VIDEO_ID}",
])
def test_extract_video_id(url):
    assert extract_video_id(url) == VIDEO_ID


@pytest.mark.parametrize("url", [
    "https://vimeo.com/123456789",
    "https://www.example.com/watch?v=dQw4w9WgXcQ",
    "https://notyoutube.com/watch?v=dQw4w9WgXcQ",
    "https://youtube.com.evil.net/watch?v=dQw4w9WgXcQ",
    "https://example.com/youtu.be/dQw4w9WgXcQ",
    "https://www.youtube.com/watch?v=short",
    "not a url",
    "",
    None,
])
def test_extract_video_id_rejects_other_urls(url):
    assert extract_video_id(url) is None
    assert is_valid_youtube_url(url) is False


def test_resolve_video_id_accepts_bare_ids():
    assert resolve_video_id(VIDEO_ID) == VIDEO_ID
    assert resolve_video_id(f"https://youtu.be/{VIDEO_ID}") == VIDEO_ID
    assert resolve_video_id("nope") is None


def test_format_and_thumbnail_urls():
    assert format_youtube_url(VIDEO_ID) == f"https://www.youtube.com/watch?v={VIDEO_ID}"
    assert get_youtube_thumbnail(VIDEO_ID) == f"https://img.youtube.com/vi/{VIDEO_ID}/mqdefault.jpg"
    assert get_youtube_thumbnail(VIDEO_ID, "maxres").endswith("/maxresdefault.jpg")
    assert get_youtube_thumbnail(VIDEO_ID, "unknown").endswith("/mqdefault.jpg")


def test_clean_text():
    assert clean_text("  hello \n\t world  ") == "hello world"
    assert clean_text(None) == ""


def test_split_into_batches():
    assert split_into_batches(list(range(25)), 10) == [list(range(10)), list(range(10, 20)), list(range(20, 25))]
    assert split_into_batches([], 10) == []


def test_truncate_text():
    assert truncate_text("short", 10) == "short"
    assert len(truncate_text("x" * 50, 20)) == 20


def test_save_json(tmp_path):
    path = tmp_path / "out.json"

    save_json({"text": "评论"}, str(path))

    assert json.loads(path.read_text(encoding="utf-8")) == {"text": "评论"}
