"""Validate and prepare Instagram videos for Bluesky.

Bluesky has no server side transcoding path we can drive from here, so an
oversized video is dropped rather than repaired. Dimension probing uses
MoviePy (a wrapper around FFmpeg) and is only needed to give the embed an
aspect ratio. MoviePy is imported lazily so the rest of the importer works
without FFmpeg installed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from .embeds import VideoEmbed
from .errors import VideoProcessingError
from .media_types import extension_of, get_video_mime_type

logger = logging.getLogger(__name__)

# app.bsky.embed.video#main video maxSize
API_LIMIT_VIDEO_UPLOAD_SIZE = 100 * 1024 * 1024


@dataclass
class VideoUploadData:
    """Everything needed to upload a video and embed it in a post."""

    path: Path
    data: bytes
    mime_type: str
    size: int
    width: Optional[int] = None
    height: Optional[int] = None


def validate_video(data: bytes) -> bool:
    """Return True when ``data`` fits within Bluesky's video size limit."""
    if len(data) > API_LIMIT_VIDEO_UPLOAD_SIZE:
        logger.warning(
            "Video size (%d bytes) exceeds upload limit (%d bytes)",
            len(data),
            API_LIMIT_VIDEO_UPLOAD_SIZE,
        )
        return False
    return True


def get_video_dimensions(video_path: str | Path) -> Tuple[int, int]:
    """Return ``(width, height)`` of a video file in pixels.

    Raises
    ------
    FileNotFoundError
        If the video file does not exist.
    VideoProcessingError
        If MoviePy is unavailable or cannot read the file.
    """
    path = Path(video_path)
    if not path.exists():
        raise FileNotFoundError(f"Video file not found: {path}")
    try:  # pragma: no cover - import time side effects not covered
        from moviepy import VideoFileClip
    except ImportError as e:  # pragma: no cover
        raise VideoProcessingError(
            "moviepy must be installed to read video dimensions."
        ) from e

    try:
        clip = VideoFileClip(str(path))
    except Exception as e:
        raise VideoProcessingError(f"Cannot read video {path}: {e}") from e
    try:
        width, height = clip.size
    finally:
        clip.close()
    logger.debug("Video %s is %sx%s", path, width, height)
    return int(width), int(height)


def prepare_video_upload(file_path: str | Path, data: bytes) -> VideoUploadData:
    """Collect the metadata Bluesky needs before a video is uploaded.

    Raises
    ------
    VideoProcessingError
        If ``data`` is empty, the extension is not a supported video type or
        the dimensions cannot be probed.
    FileNotFoundError
        If ``file_path`` does not exist.
    """
    path = Path(file_path)
    if not data:
        raise VideoProcessingError(f"Video data is empty for {path}")
    mime_type = get_video_mime_type(extension_of(path.name))
    if not mime_type:
        raise VideoProcessingError(f"Unsupported video type: {path.name}")

    width, height = get_video_dimensions(path)
    return VideoUploadData(
        path=path,
        data=data,
        mime_type=mime_type,
        size=len(data),
        width=width,
        height=height,
    )


def create_video_embed(upload: VideoUploadData, caption: str = "") -> VideoEmbed:
    """Build the embed for a prepared upload."""
    return VideoEmbed(
        caption=caption,
        data=upload.data,
        mime_type=upload.mime_type,
        width=upload.width,
        height=upload.height,
    )
