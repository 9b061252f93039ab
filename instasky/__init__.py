"""Top‑level package for the Instagram archive to Bluesky importer.

This package exposes a minimal API for turning exported Instagram posts into
Bluesky posts and publishing them at a rate Bluesky accepts. See individual
modules for details.
"""

from .archive import ArchiveMedia, ArchivePost, load_posts
from .bluesky import BlueskyClient
from .config import ImportConfig
from .embeds import ImageEmbed, ImageEmbedList, VideoEmbed
from .importer import ImportSummary, publish_posts, run_import
from .media import ProcessedPost, process_post

__all__ = [
    "ArchiveMedia",
    "ArchivePost",
    "BlueskyClient",
    "ImageEmbed",
    "ImageEmbedList",
    "ImportConfig",
    "ImportSummary",
    "ProcessedPost",
    "VideoEmbed",
    "load_posts",
    "process_post",
    "publish_posts",
    "run_import",
]
