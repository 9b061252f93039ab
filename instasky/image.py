"""Shrink oversized images so Bluesky accepts them.

Bluesky's image embed lexicon caps each blob at roughly 1 MB. Images within
the cap are passed through untouched. Larger images get a single resize pass
that clamps the long edge to 1920 px and re-encodes with Pillow; if the result
is still too large the image is rejected rather than shrunk again.

The original file on disk is never modified; only the in-memory bytes change.
"""

from __future__ import annotations

import io
import logging
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

# app.bsky.embed.images#image maxSize
API_LIMIT_IMAGE_UPLOAD_SIZE = 976_000
IMAGE_LENGTH_LIMIT = 1920

# Used for sources Pillow can read but not write.
_FALLBACK_FORMAT = "JPEG"


def format_bytes(size: int) -> str:
    """Render ``size`` as a short human readable string (``976.0 kB``)."""
    value = float(size)
    for unit in ("B", "kB", "MB", "GB"):
        if value < 1000 or unit == "GB":
            if unit == "B":
                return f"{int(value)} {unit}"
            return f"{value:.1f} {unit}"
        value /= 1000
    return f"{size} B"  # pragma: no cover


def is_image_too_large(data: bytes) -> bool:
    return len(data) > API_LIMIT_IMAGE_UPLOAD_SIZE


def target_size(
    width: int, height: int, limit: int = IMAGE_LENGTH_LIMIT
) -> Tuple[int, int]:
    """Compute the resized ``(width, height)`` for a long edge of ``limit``.

    Landscape and square images clamp the width, portrait images clamp the
    height. The other axis scales proportionally. Images whose clamped edge
    is already within ``limit`` keep their size.
    """
    if width >= height:
        if width <= limit:
            return width, height
        return limit, max(1, round(height * limit / width))
    if height <= limit:
        return width, height
    return max(1, round(width * limit / height)), limit


def _encode(image: Image.Image, source_format: Optional[str]) -> bytes:
    Image.init()
    fmt = source_format if source_format in Image.SAVE else _FALLBACK_FORMAT
    if fmt == "JPEG" and image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def process_image_buffer(data: bytes, filename: str) -> Optional[bytes]:
    """Return image bytes that fit Bluesky's upload limit, or ``None``.

    Parameters
    ----------
    data: bytes
        Raw image file contents.
    filename: str
        Used only for log messages.

    Returns
    -------
    bytes or None
        ``data`` itself when already within the limit, resized bytes when a
        single resize pass brings it under, ``None`` when the image cannot be
        read or is still too large after resizing.
    """
    if not is_image_too_large(data):
        return data

    logger.warning(
        "Image size (%s) is larger than upload limit (%s). Will attempt to resize %s",
        format_bytes(len(data)),
        format_bytes(API_LIMIT_IMAGE_UPLOAD_SIZE),
        filename,
    )

    try:
        with Image.open(io.BytesIO(data)) as source:
            width, height = source.size
            if not width or not height:
                logger.error(
                    "Image width or height is missing, %s cannot be resized", filename
                )
                return None
            new_width, new_height = target_size(width, height)
            source_format = source.format
            if (new_width, new_height) != (width, height):
                resized = source.resize(
                    (new_width, new_height), Image.Resampling.LANCZOS
                )
            else:
                resized = source.copy()
            resized_data = _encode(resized, source_format)
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        ValueError,
    ) as e:
        logger.error("Failed to process image %s: %s", filename, e)
        return None

    logger.info(
        "before: w%s h%s | after: w%s h%s", width, height, new_width, new_height
    )

    if is_image_too_large(resized_data):
        logger.error(
            "Resized image size (%s) is larger than image upload limit (%s): %s",
            format_bytes(len(resized_data)),
            format_bytes(API_LIMIT_IMAGE_UPLOAD_SIZE),
            filename,
        )
        return None

    logger.info(
        "Image successfully resized (%s) to be less than upload limit (%s). "
        "This does not change the original image on disk.",
        format_bytes(len(resized_data)),
        format_bytes(API_LIMIT_IMAGE_UPLOAD_SIZE),
    )
    return resized_data
