"""Map file extensions to the MIME types Bluesky accepts.

Instagram exports reference every file by a relative ``uri``; the extension
is the only type information available, so classification is a plain table
lookup. Images are looked up first, then videos.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

IMAGE_MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
    "heic": "image/heic",
}

VIDEO_MIME_TYPES = {
    "mp4": "video/mp4",
    "mov": "video/quicktime",
}

KIND_IMAGE = "image"
KIND_VIDEO = "video"
KIND_UNKNOWN = "unknown"


@dataclass(frozen=True)
class MediaType:
    mime_type: str
    kind: str

    @property
    def usable(self) -> bool:
        return bool(self.mime_type)


def extension_of(uri: str) -> str:
    """Return the text after the last ``.`` in ``uri`` (empty if none)."""
    name = uri.rsplit("/", 1)[-1]
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[-1]


def get_image_mime_type(file_type: str) -> str:
    return IMAGE_MIME_TYPES.get(file_type.lower(), "")


def get_video_mime_type(file_type: str) -> str:
    return VIDEO_MIME_TYPES.get(file_type.lower(), "")


def is_image_mime_type(mime_type: str) -> bool:
    return mime_type.startswith("image/")


def is_video_mime_type(mime_type: str) -> bool:
    return mime_type.startswith("video/")


def get_mime_type(file_type: str) -> str:
    """Return the MIME type for ``file_type`` or ``""`` if unsupported."""
    mime_type = get_image_mime_type(file_type) or get_video_mime_type(file_type)
    if not mime_type:
        logger.warning("Unsupported file type %r", file_type)
    return mime_type


def classify(file_type: str) -> MediaType:
    mime_type = get_mime_type(file_type)
    if is_image_mime_type(mime_type):
        return MediaType(mime_type, KIND_IMAGE)
    if is_video_mime_type(mime_type):
        return MediaType(mime_type, KIND_VIDEO)
    return MediaType("", KIND_UNKNOWN)
