"""Tests for the image resizing helpers.

Images are generated with Pillow: flat colour images saved without
compression are large on disk but tiny once re-encoded, random noise stays
large whatever size it is resized to.
"""
import io
import logging
import os

import pytest
from PIL import Image

from instasky.image import (
    API_LIMIT_IMAGE_UPLOAD_SIZE,
    format_bytes,
    is_image_too_large,
    process_image_buffer,
    target_size,
)


def _flat_png(width, height):
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), (200, 120, 40)).save(
        buffer, format="PNG", compress_level=0
    )
    return buffer.getvalue()


def _noise_png(width, height):
    buffer = io.BytesIO()
    Image.frombytes("RGB", (width, height), os.urandom(width * height * 3)).save(
        buffer, format="PNG"
    )
    return buffer.getvalue()


def _size_of(data):
    with Image.open(io.BytesIO(data)) as img:
        return img.size


def test_small_buffer_is_returned_unchanged():
    data = b"\xff" * API_LIMIT_IMAGE_UPLOAD_SIZE
    assert process_image_buffer(data, "small.jpg") is data


def test_is_image_too_large_boundary():
    assert not is_image_too_large(b"\0" * API_LIMIT_IMAGE_UPLOAD_SIZE)
    assert is_image_too_large(b"\0" * (API_LIMIT_IMAGE_UPLOAD_SIZE + 1))


@pytest.mark.parametrize(
    "size, expected",
    [
        ((3840, 2160), (1920, 1080)),
        ((2160, 3840), (1080, 1920)),
        ((4000, 4000), (1920, 1920)),
        ((1920, 1000), (1920, 1000)),
        ((800, 600), (800, 600)),
        ((600, 800), (600, 800)),
    ],
)
def test_target_size(size, expected):
    assert target_size(*size) == expected


def test_large_landscape_image_is_resized():
    data = _flat_png(3000, 2000)
    assert len(data) > API_LIMIT_IMAGE_UPLOAD_SIZE
    result = process_image_buffer(data, "landscape.png")
    assert result is not None
    assert len(result) <= API_LIMIT_IMAGE_UPLOAD_SIZE
    assert _size_of(result) == (1920, 1280)


def test_large_portrait_image_clamps_height():
    result = process_image_buffer(_flat_png(2000, 3000), "portrait.png")
    assert result is not None
    assert _size_of(result) == (1280, 1920)


def test_square_image_clamps_width():
    result = process_image_buffer(_flat_png(2500, 2500), "square.png")
    assert result is not None
    assert _size_of(result) == (1920, 1920)


def test_small_dimensions_are_never_upscaled():
    data = _flat_png(1000, 800)
    assert len(data) > API_LIMIT_IMAGE_UPLOAD_SIZE
    result = process_image_buffer(data, "small-dims.png")
    assert result is not None
    assert _size_of(result) == (1000, 800)


def test_image_still_too_large_after_resize_is_rejected(caplog):
    data = _noise_png(2400, 1600)
    with caplog.at_level(logging.ERROR):
        assert process_image_buffer(data, "noise.png") is None
    assert "larger than image upload limit" in caplog.text


def test_unreadable_image_is_rejected(caplog):
    with caplog.at_level(logging.ERROR):
        assert process_image_buffer(b"\0" * 1_000_000, "broken.jpg") is None
    assert "broken.jpg" in caplog.text


def test_original_file_is_not_modified(tmp_path):
    path = tmp_path / "photo.png"
    data = _flat_png(3000, 2000)
    path.write_bytes(data)
    process_image_buffer(path.read_bytes(), str(path))
    assert path.read_bytes() == data


def test_format_bytes():
    assert format_bytes(512) == "512 B"
    assert format_bytes(976_000) == "976.0 kB"
    assert format_bytes(2_500_000) == "2.5 MB"


def test_decompression_bomb_is_rejected(monkeypatch, caplog):
    data = _flat_png(3000, 2000)
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1_000_000)
    with caplog.at_level(logging.ERROR):
        assert process_image_buffer(data, "panorama.png") is None
    assert "panorama.png" in caplog.text
