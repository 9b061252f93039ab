"""Publish an Instagram archive to Bluesky, one post at a time.

The import is a single linear pass over the archive in chronological order.
Each post is evaluated on its own: posts without a date or before
``min_date`` are skipped, the first post after ``max_date`` ends the run, and
any failure while preparing or publishing a post only skips that post.
Live runs wait a fixed delay before every submission to stay inside
Bluesky's rate limits. Simulate runs publish nothing and instead estimate
how long the live run would take.

Only authentication and archive loading errors are fatal; they propagate out
of :func:`run_import`.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from .archive import ArchivePost, load_posts
from .bluesky import BlueskyClient, blob_link
from .config import API_RATE_LIMIT_DELAY, ImportConfig
from .embeds import VideoEmbed
from .errors import ConfigError, InstaskyError, VideoProcessingError
from .media import media_path, process_post
from .media_types import KIND_VIDEO, classify, extension_of
from .video import create_video_embed, prepare_video_upload

logger = logging.getLogger(__name__)

ESTIMATE_SAFETY_MARGIN = 1.1


class PostStatus(str, Enum):
    IMPORTED = "imported"
    SIMULATED = "simulated"
    SKIPPED = "skipped"
    STOPPED = "stopped"


class SkipReason(str, Enum):
    NO_DATE = "no date"
    BEFORE_MIN_DATE = "before min date"
    AFTER_MAX_DATE = "after max date"
    VIDEO_FAILED = "video processing failed"
    PUBLISH_FAILED = "publish failed"


@dataclass
class PostResult:
    status: PostStatus
    reason: Optional[SkipReason] = None
    date: Optional[datetime] = None
    url: Optional[str] = None
    media_count: int = 0

    @property
    def counted(self) -> bool:
        return self.status in (PostStatus.IMPORTED, PostStatus.SIMULATED)


@dataclass
class ImportSummary:
    simulate: bool = False
    imported_posts: int = 0
    imported_media: int = 0
    results: List[PostResult] = field(default_factory=list)
    estimated_time: Optional[str] = None

    def record(self, result: PostResult) -> None:
        self.results.append(result)
        if result.counted:
            self.imported_posts += 1
            self.imported_media += result.media_count

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.status is PostStatus.SKIPPED)


def estimate_import_time(imported_media: int, delay: float = API_RATE_LIMIT_DELAY) -> str:
    """Estimate how long a live import of ``imported_media`` items takes.

    Every media item waits out the rate limit delay; a 10% margin is added.
    """
    minutes = math.floor(imported_media * delay / 60 * ESTIMATE_SAFETY_MARGIN + 0.5)
    hours, mins = divmod(minutes, 60)
    return f"{hours} hours and {mins} minutes"


def _sort_key(post: ArchivePost) -> int:
    first = post.first_media
    if first is not None and first.creation_timestamp is not None:
        return first.creation_timestamp
    return post.creation_timestamp or 0


def sort_posts(posts: Iterable[ArchivePost]) -> List[ArchivePost]:
    """Order posts by the timestamp of their first media item (stable)."""
    return sorted(posts, key=_sort_key)


def check_date(post: ArchivePost) -> Optional[datetime]:
    timestamp = post.creation_timestamp
    if timestamp is None and post.first_media is not None:
        timestamp = post.first_media.creation_timestamp
    if timestamp is None:
        return None
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def process_video(
    file_path: str | Path,
    data: bytes,
    client: Optional[BlueskyClient],
    simulate: bool,
    caption: str = "",
) -> VideoEmbed:
    """Prepare a video embed, uploading the video when not simulating.

    Raises
    ------
    VideoProcessingError
        If ``data`` is empty, the video cannot be probed or the upload does
        not return a blob reference.
    PublishError
        If the upload itself fails.
    """
    if not data:
        raise VideoProcessingError(f"Video data is empty for {file_path}")
    logger.debug("Processing video %s (%d bytes)", file_path, len(data))

    upload = prepare_video_upload(file_path, data)
    embed = create_video_embed(upload, caption)

    if not simulate:
        blob = client.upload_video(data, upload.mime_type)
        if not blob_link(blob):
            raise VideoProcessingError("Failed to get video upload reference")
        embed.remote_ref = blob
    return embed


def _is_video_post(post: ArchivePost) -> bool:
    first = post.first_media
    return first is not None and classify(extension_of(first.uri)).kind == KIND_VIDEO


def publish_post(
    post: ArchivePost,
    config: ImportConfig,
    client: Optional[BlueskyClient],
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> PostResult:
    """Evaluate and publish (or simulate) a single archive post."""
    date = check_date(post)
    if date is None:
        logger.warning("Skipping post - No date")
        return PostResult(PostStatus.SKIPPED, SkipReason.NO_DATE)

    if config.min_date and date < config.min_date:
        logger.warning("Skipping post - Before MIN_DATE: [%s]", date.isoformat())
        return PostResult(PostStatus.SKIPPED, SkipReason.BEFORE_MIN_DATE, date)

    if config.max_date and date > config.max_date:
        logger.warning("Skipping post - After MAX_DATE [%s]", date.isoformat())
        return PostResult(PostStatus.STOPPED, SkipReason.AFTER_MAX_DATE, date)

    folder = config.media_folder
    processed = process_post(post, folder)
    embed = processed.embed

    if _is_video_post(post):
        data = embed.data if isinstance(embed, VideoEmbed) else b""
        caption = embed.caption if isinstance(embed, VideoEmbed) else ""
        try:
            embed = process_video(
                media_path(post.media[0], folder),
                data,
                client,
                config.simulate,
                caption,
            )
        except (InstaskyError, OSError) as e:
            logger.error("Failed to process video: %s", e)
            return PostResult(PostStatus.SKIPPED, SkipReason.VIDEO_FAILED, date)

    if processed.date is None:
        logger.warning("Skipping post - Invalid date")
        return PostResult(PostStatus.SKIPPED, SkipReason.NO_DATE)

    logger.debug(
        "Instagram post created %s with %d media: %s",
        processed.date.isoformat(),
        processed.media_count,
        processed.text[:50] + "..." if len(processed.text) > 50 else processed.text,
    )

    if config.simulate:
        return PostResult(
            PostStatus.SIMULATED, date=processed.date, media_count=processed.media_count
        )

    sleep(config.delay)
    try:
        url = client.create_post(processed.date, processed.text, embed)
    except InstaskyError as e:
        logger.error("Failed to create Bluesky post: %s", e)
        return PostResult(PostStatus.SKIPPED, SkipReason.PUBLISH_FAILED, processed.date)
    if not url:
        logger.error("Failed to create Bluesky post: no post URL returned")
        return PostResult(PostStatus.SKIPPED, SkipReason.PUBLISH_FAILED, processed.date)

    logger.info("Bluesky post created with url: %s", url)
    return PostResult(
        PostStatus.IMPORTED,
        date=processed.date,
        url=url,
        media_count=processed.media_count,
    )


def publish_posts(
    posts: Iterable[ArchivePost],
    config: ImportConfig,
    client: Optional[BlueskyClient] = None,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> ImportSummary:
    """Publish ``posts`` in chronological order and return the run summary.

    Raises
    ------
    ConfigError
        If ``config`` is not a simulate run and no ``client`` is given.
    """
    if not config.simulate and client is None:
        raise ConfigError("A logged in Bluesky client is required unless SIMULATE=1")
    summary = ImportSummary(simulate=config.simulate)
    for post in sort_posts(posts):
        result = publish_post(post, config, client, sleep=sleep)
        summary.record(result)
        if result.status is PostStatus.STOPPED:
            break

    if config.simulate:
        summary.estimated_time = estimate_import_time(summary.imported_media, config.delay)
        logger.info("Estimated time for real import: %s", summary.estimated_time)

    logger.info(
        "Import finished at %s, imported %d posts with %d media",
        datetime.now(timezone.utc).isoformat(),
        summary.imported_posts,
        summary.imported_media,
    )
    return summary


def run_import(
    config: ImportConfig,
    client: Optional[BlueskyClient] = None,
    *,
    client_factory: Callable[[str, str], BlueskyClient] = BlueskyClient,
    sleep: Callable[[float], None] = time.sleep,
) -> ImportSummary:
    """Run a complete import described by ``config``.

    Raises
    ------
    ConfigError
        If the settings are incomplete.
    AuthenticationError
        If logging in to Bluesky fails (live mode only).
    ArchiveError
        If the archive's posts file cannot be read.
    """
    config.validate()
    logger.info("Import started at %s", datetime.now(timezone.utc).isoformat())
    logger.info(
        "Source folder: %s, username: %s, MIN_DATE: %s, MAX_DATE: %s, SIMULATE: %s",
        config.media_folder,
        config.username,
        config.min_date,
        config.max_date,
        config.simulate,
    )

    if config.simulate:
        logger.warning("--- SIMULATE mode is enabled, no posts will be imported ---")
        client = None
    else:
        logger.info("--- SIMULATE mode is disabled, posts will be imported ---")
        if client is None:
            client = client_factory(config.username, config.password)
        client.login()

    if config.test_video_mode:
        logger.info("--- TEST VIDEO mode is enabled, using test video content ---")
    elif config.test_image_mode:
        logger.info("--- TEST IMAGE mode is enabled, using test image content ---")

    posts = load_posts(config.posts_path)
    return publish_posts(posts, config, client, sleep=sleep)
