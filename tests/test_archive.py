import json
from pathlib import Path

import pytest

from instasky.archive import (
    GeoLocation,
    fix_text,
    load_posts,
    parse_posts,
    posts_json_path,
    read_media_file,
)
from instasky.errors import ArchiveError


def test_fix_text_repairs_latin1_mojibake():
    assert fix_text("cafÃ©") == "café"
    assert fix_text("ð\u009f\u0098\u008a") == "\U0001f60a"


def test_fix_text_leaves_correct_text_alone():
    assert fix_text("café") == "café"
    assert fix_text("日本語") == "日本語"
    assert fix_text("plain") == "plain"


def test_posts_json_path():
    path = posts_json_path("/export")
    assert path == Path("/export/your_instagram_activity/content/posts_1.json")


def test_load_posts(tmp_path: Path):
    raw = [
        {
            "title": "Sunset at the beach Ã©",
            "creation_timestamp": 1600000000,
            "media": [
                {
                    "uri": "media/posts/202009/a.jpg",
                    "creation_timestamp": 1600000000,
                    "title": "",
                    "media_metadata": {
                        "photo_metadata": {
                            "exif_data": [{"latitude": 45.5, "longitude": -122.5}]
                        }
                    },
                },
                {"uri": "media/posts/202009/b.mp4", "creation_timestamp": 1600000001},
            ],
        },
        {"media": [{"uri": "media/posts/202010/c.jpg", "title": "only media"}]},
    ]
    path = tmp_path / "posts_1.json"
    path.write_text(json.dumps(raw), encoding="utf-8")

    posts = load_posts(path)

    assert len(posts) == 2
    first = posts[0]
    assert first.title == "Sunset at the beach é"
    assert first.creation_timestamp == 1600000000
    assert len(first.media) == 2
    assert first.media[0].location == GeoLocation(45.5, -122.5)
    assert first.media[0].title is None
    assert first.media[1].location is None
    second = posts[1]
    assert second.creation_timestamp is None
    assert second.title is None
    assert second.first_media.title == "only media"
    assert second.first_media.creation_timestamp is None


def test_parse_posts_handles_missing_media():
    posts = parse_posts([{"title": "text only", "creation_timestamp": 1}])
    assert posts[0].media == ()
    assert posts[0].first_media is None


def test_parse_posts_rejects_non_list():
    with pytest.raises(ArchiveError):
        parse_posts({"posts": []})


def test_load_posts_missing_file(tmp_path: Path):
    with pytest.raises(ArchiveError):
        load_posts(tmp_path / "missing.json")


def test_load_posts_invalid_json(tmp_path: Path):
    path = tmp_path / "posts_1.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ArchiveError):
        load_posts(path)


def test_read_media_file(tmp_path: Path):
    media = tmp_path / "a.jpg"
    media.write_bytes(b"jpeg")
    assert read_media_file(media) == b"jpeg"
    with pytest.raises(FileNotFoundError):
        read_media_file(tmp_path / "missing.jpg")
