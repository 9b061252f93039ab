import logging

from instasky.media_types import (
    KIND_IMAGE,
    KIND_UNKNOWN,
    KIND_VIDEO,
    classify,
    extension_of,
    get_image_mime_type,
    get_mime_type,
    get_video_mime_type,
    is_image_mime_type,
    is_video_mime_type,
)


def test_image_mime_types():
    assert get_image_mime_type("jpg") == "image/jpeg"
    assert get_image_mime_type("jpeg") == "image/jpeg"
    assert get_image_mime_type("png") == "image/png"
    assert get_image_mime_type("webp") == "image/webp"
    assert get_image_mime_type("heic") == "image/heic"
    assert get_image_mime_type("JPG") == "image/jpeg"
    assert get_image_mime_type("gif") == ""
    assert get_image_mime_type("") == ""


def test_video_mime_types():
    assert get_video_mime_type("mp4") == "video/mp4"
    assert get_video_mime_type("MOV") == "video/quicktime"
    assert get_video_mime_type("avi") == ""


def test_get_mime_type_prefers_images_and_falls_back_to_video():
    assert get_mime_type("PNG") == "image/png"
    assert get_mime_type("mp4") == "video/mp4"


def test_get_mime_type_warns_on_unsupported(caplog):
    with caplog.at_level(logging.WARNING):
        assert get_mime_type("xyz") == ""
    assert "Unsupported file type" in caplog.text


def test_mime_type_predicates():
    assert is_image_mime_type("image/webp")
    assert not is_image_mime_type("video/mp4")
    assert not is_image_mime_type("")
    assert is_video_mime_type("video/quicktime")
    assert not is_video_mime_type("application/json")


def test_classify():
    assert classify("jpeg").kind == KIND_IMAGE
    assert classify("mov").kind == KIND_VIDEO
    unknown = classify("txt")
    assert unknown.kind == KIND_UNKNOWN
    assert unknown.mime_type == ""
    assert not unknown.usable


def test_extension_of():
    assert extension_of("media/posts/201901/abc.JPG") == "JPG"
    assert extension_of("media/posts.d/abc") == ""
    assert extension_of("clip.final.mp4") == "mp4"
