"""Turn an exported Instagram post into Bluesky post content.

:func:`process_post` works out the publish date, the display text and the
media embed for one archive post. Bluesky posts are either a single video or
up to four images, so a post whose first media item is a video only ever gets
that video, and image posts are capped at four.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .archive import ArchiveMedia, ArchivePost, read_media_file
from .embeds import MAX_IMAGES_PER_POST, Embed, ImageEmbed, ImageEmbedList, VideoEmbed
from .image import process_image_buffer
from .media_types import KIND_IMAGE, KIND_VIDEO, classify, extension_of
from .video import validate_video

logger = logging.getLogger(__name__)

POST_TEXT_LIMIT = 300
MEDIA_TEXT_LIMIT = 100
TRUNCATE_SUFFIX = "..."


@dataclass(frozen=True)
class ProcessedMedia:
    media_text: str
    mime_type: Optional[str]
    data: Optional[bytes]
    is_video: bool

    @property
    def usable(self) -> bool:
        return bool(self.mime_type) and self.data is not None


@dataclass
class ProcessedPost:
    date: Optional[datetime]
    text: str
    embed: Embed
    media_count: int



def _unusable(is_video: bool = False) -> ProcessedMedia:
    return ProcessedMedia(media_text="", mime_type=None, data=None, is_video=is_video)


def truncate_text(text: str, limit: int) -> str:
    """Cut ``text`` to at most ``limit`` characters, ending in ``...``."""
    if len(text) <= limit:
        return text
    return text[: limit - len(TRUNCATE_SUFFIX)] + TRUNCATE_SUFFIX


def to_datetime(timestamp: Optional[int]) -> Optional[datetime]:
    if timestamp is None:
        return None
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def media_caption(media: ArchiveMedia) -> str:
    """Caption for a media item: its title plus any positive-latitude location."""
    text = media.title or ""
    location = media.location
    if location is not None and location.latitude > 0:
        text += (
            "\nPhoto taken at these geographical coordinates: "
            f"geo:{location.latitude},{location.longitude}"
        )
    return truncate_text(text, MEDIA_TEXT_LIMIT)


def media_path(media: ArchiveMedia, archive_folder: str | Path) -> Path:
    return Path(archive_folder) / media.uri


def process_media(media: ArchiveMedia, archive_folder: str | Path) -> ProcessedMedia:
    """Classify and read one media file.

    Returns an unusable result (``mime_type`` of ``None``) when the file type
    is unsupported, the file cannot be read or an oversized image cannot be
    shrunk under the upload limit. ``is_video`` always follows the file
    extension, even for unusable results.
    """
    media_type = classify(extension_of(media.uri))
    is_video = media_type.kind == KIND_VIDEO
    if not media_type.usable:
        return _unusable()

    path = media_path(media, archive_folder)
    try:
        data = read_media_file(path)
    except OSError as e:
        logger.error("Failed to read media file %s: %s", path, e)
        return _unusable(is_video)

    if media_type.kind == KIND_IMAGE:
        processed = process_image_buffer(data, str(path))
        if processed is None:
            return _unusable()
        data = processed

    caption = media_caption(media)
    logger.debug(
        "Instagram source media %s (%s, %s, created %s): %s",
        path,
        "Video" if is_video else "Image",
        media_type.mime_type,
        to_datetime(media.creation_timestamp),
        caption.replace("\n", " ") or "No title",
    )
    return ProcessedMedia(
        media_text=caption,
        mime_type=media_type.mime_type,
        data=data,
        is_video=is_video,
    )


def post_date(post: ArchivePost) -> Optional[datetime]:
    """Publish date of a post, falling back to its first media item."""
    if post.creation_timestamp is not None:
        return to_datetime(post.creation_timestamp)
    first = post.first_media
    if first is not None:
        return to_datetime(first.creation_timestamp)
    return None


def post_text(post: ArchivePost) -> str:
    text = post.title or ""
    if not text and len(post.media) == 1:
        text = post.media[0].title or ""
    return truncate_text(text, POST_TEXT_LIMIT)


def process_post(post: ArchivePost, archive_folder: str | Path) -> ProcessedPost:
    """Build the date, text and embed for one archive post.

    Parameters
    ----------
    post: ArchivePost
        The exported post.
    archive_folder: str or Path
        Root of the export; media URIs are resolved against it.

    Returns
    -------
    ProcessedPost
        ``date`` is ``None`` when neither the post nor its first media item
        carries a timestamp. ``embed`` is a :class:`VideoEmbed` when the first
        media item is a usable video, otherwise an :class:`ImageEmbedList`
        (possibly empty).
    """
    date = post_date(post)
    text = post_text(post)

    if not post.media:
        return ProcessedPost(date=date, text=text, embed=ImageEmbedList(), media_count=0)

    first = process_media(post.media[0], archive_folder)
    if classify(extension_of(post.media[0].uri)).kind == KIND_VIDEO:
        if first.usable and validate_video(first.data):
            embed = VideoEmbed(
                caption=first.media_text, data=first.data, mime_type=first.mime_type
            )
            return ProcessedPost(date=date, text=text, embed=embed, media_count=1)
        return ProcessedPost(date=date, text=text, embed=ImageEmbedList(), media_count=0)

    images = ImageEmbedList()
    for index, media in enumerate(post.media):
        if index >= MAX_IMAGES_PER_POST:
            logger.warning(
                "Bluesky does not support more than %d images per post, "
                "excess images will be discarded.",
                MAX_IMAGES_PER_POST,
            )
            break
        processed = first if index == 0 else process_media(media, archive_folder)
        if not processed.usable or processed.is_video:
            continue
        images.append(
            ImageEmbed(
                caption=processed.media_text,
                data=processed.data,
                mime_type=processed.mime_type,
            )
        )

    return ProcessedPost(date=date, text=text, embed=images, media_count=len(images))
