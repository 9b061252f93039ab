"""Run settings for an import.

Settings come from environment variables (optionally loaded from a ``.env``
file by ``main.py``) and can be overridden on the command line.

Environment variables
---------------------
ARCHIVE_FOLDER      Root of the unzipped Instagram export.
BLUESKY_USERNAME    Bluesky handle or email.
BLUESKY_PASSWORD    Bluesky (app) password.
SIMULATE            ``1`` to process posts without publishing anything.
MIN_DATE            Skip posts dated before this ISO date.
MAX_DATE            Stop at the first post dated after this ISO date.
TEST_VIDEO_MODE     ``1`` to import the bundled sample videos.
TEST_IMAGE_MODE     ``1`` to import the bundled sample images.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping, Optional

from .archive import posts_json_path
from .errors import ConfigError

# Seconds to wait between posts. https://docs.bsky.app/docs/advanced-guides/rate-limits
API_RATE_LIMIT_DELAY = 3.0

TEST_VIDEOS_FOLDER = Path("transfer") / "test_videos"
TEST_IMAGES_FOLDER = Path("transfer") / "test_images"


def parse_date(value: str) -> datetime:
    """Parse an ISO-8601 date or datetime. Naive values are taken as UTC."""
    text = value.strip()
    # fromisoformat only accepts a trailing "Z" from Python 3.11 on
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise ConfigError(f"Invalid date {value!r}, expected ISO format like 2020-01-31") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _flag(value: Optional[str]) -> bool:
    return value == "1"


def _optional_date(value: Optional[str]) -> Optional[datetime]:
    return parse_date(value) if value else None


@dataclass
class ImportConfig:
    archive_folder: Optional[Path] = None
    username: str = ""
    password: str = ""
    simulate: bool = False
    min_date: Optional[datetime] = None
    max_date: Optional[datetime] = None
    test_video_mode: bool = False
    test_image_mode: bool = False
    delay: float = API_RATE_LIMIT_DELAY

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ImportConfig":
        env = os.environ if environ is None else environ
        archive = env.get("ARCHIVE_FOLDER")
        return cls(
            archive_folder=Path(archive) if archive else None,
            username=env.get("BLUESKY_USERNAME", ""),
            password=env.get("BLUESKY_PASSWORD", ""),
            simulate=_flag(env.get("SIMULATE")),
            min_date=_optional_date(env.get("MIN_DATE")),
            max_date=_optional_date(env.get("MAX_DATE")),
            test_video_mode=_flag(env.get("TEST_VIDEO_MODE")),
            test_image_mode=_flag(env.get("TEST_IMAGE_MODE")),
        )

    @property
    def media_folder(self) -> Path:
        """Folder that media URIs are resolved against."""
        if self.test_video_mode:
            return TEST_VIDEOS_FOLDER
        if self.test_image_mode:
            return TEST_IMAGES_FOLDER
        if self.archive_folder is None:
            raise ConfigError("ARCHIVE_FOLDER is not set")
        return self.archive_folder

    @property
    def posts_path(self) -> Path:
        if self.test_video_mode or self.test_image_mode:
            return self.media_folder / "posts.json"
        return posts_json_path(self.media_folder)

    def validate(self) -> None:
        """Raise :class:`ConfigError` if the settings cannot start a run."""
        if not (self.test_video_mode or self.test_image_mode) and self.archive_folder is None:
            raise ConfigError("ARCHIVE_FOLDER is not set")
        if not self.simulate and (not self.username or not self.password):
            raise ConfigError(
                "BLUESKY_USERNAME and BLUESKY_PASSWORD are required unless SIMULATE=1"
            )
        if self.min_date and self.max_date and self.min_date > self.max_date:
            raise ConfigError("MIN_DATE must not be after MAX_DATE")
