"""Read posts from an Instagram data export.

Instagram's "Download your information" export stores every feed post in
``your_instagram_activity/content/posts_1.json``. Each entry lists the media
files belonging to the post by a ``uri`` relative to the export root, along
with optional titles, timestamps and EXIF data.

The export writes UTF-8 text as if every byte were a Latin-1 character
(``"cafÃ©"`` instead of ``"café"``). :func:`fix_text` undoes that.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Tuple

from .errors import ArchiveError

logger = logging.getLogger(__name__)

POSTS_JSON = Path("your_instagram_activity") / "content" / "posts_1.json"


@dataclass(frozen=True)
class GeoLocation:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class ArchiveMedia:
    """A single file attached to an exported post.

    Attributes
    ----------
    uri: str
        Path of the file relative to the export root, e.g.
        ``media/posts/202301/1234.jpg``.
    creation_timestamp: int | None
        Seconds since the epoch, when present.
    title: str | None
        Per-media caption. Instagram only fills this for single-media posts.
    location: GeoLocation | None
        First EXIF location recorded for the photo, if any.
    """

    uri: str
    creation_timestamp: Optional[int] = None
    title: Optional[str] = None
    location: Optional[GeoLocation] = None


@dataclass(frozen=True)
class ArchivePost:
    """An exported post and its media, in archive order."""

    creation_timestamp: Optional[int] = None
    title: Optional[str] = None
    media: Tuple[ArchiveMedia, ...] = field(default_factory=tuple)

    @property
    def first_media(self) -> Optional[ArchiveMedia]:
        return self.media[0] if self.media else None


def posts_json_path(archive_folder: str | Path) -> Path:
    """Return the location of ``posts_1.json`` inside an export folder."""
    return Path(archive_folder) / POSTS_JSON


def fix_text(text: str) -> str:
    """Repair UTF-8 text that the export encoded as Latin-1 code points.

    Text that is not mis-encoded (anything outside Latin-1, or bytes that do
    not form valid UTF-8) is returned unchanged.
    """
    try:
        return text.encode("latin-1").decode("utf-8")
    except (UnicodeEncodeError, UnicodeDecodeError):
        return text


def _fix(value: Any) -> Any:
    if isinstance(value, str):
        return fix_text(value)
    if isinstance(value, list):
        return [_fix(v) for v in value]
    if isinstance(value, dict):
        return {k: _fix(v) for k, v in value.items()}
    return value


def _timestamp(value: Any) -> Optional[int]:
    # 0 and missing both mean "no date" in the export
    if not value:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid timestamp %r", value)
        return None


def _location(raw: dict) -> Optional[GeoLocation]:
    metadata = raw.get("media_metadata") or {}
    photo = metadata.get("photo_metadata") or {}
    exif = photo.get("exif_data") or []
    if not exif:
        return None
    entry = exif[0]
    if "latitude" not in entry or "longitude" not in entry:
        return None
    try:
        return GeoLocation(float(entry["latitude"]), float(entry["longitude"]))
    except (TypeError, ValueError):
        return None


def parse_media(raw: dict) -> ArchiveMedia:
    return ArchiveMedia(
        uri=raw.get("uri", ""),
        creation_timestamp=_timestamp(raw.get("creation_timestamp")),
        title=raw.get("title") or None,
        location=_location(raw),
    )


def parse_post(raw: dict) -> ArchivePost:
    return ArchivePost(
        creation_timestamp=_timestamp(raw.get("creation_timestamp")),
        title=raw.get("title") or None,
        media=tuple(parse_media(m) for m in raw.get("media") or []),
    )


def parse_posts(data: Any) -> List[ArchivePost]:
    """Build :class:`ArchivePost` objects from decoded ``posts_1.json`` data."""
    if not isinstance(data, list):
        raise ArchiveError("Expected a list of posts in the Instagram export")
    data = _fix(data)
    return [parse_post(raw) for raw in data if isinstance(raw, dict)]


def load_posts(path: str | Path) -> List[ArchivePost]:
    """Load every post from an Instagram ``posts_1.json`` file.

    Raises
    ------
    ArchiveError
        If the file cannot be read or does not contain the expected JSON.
    """
    posts_path = Path(path)
    try:
        with posts_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ArchiveError(f"Cannot read Instagram posts file {posts_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ArchiveError(f"Invalid JSON in {posts_path}: {e}") from e
    posts = parse_posts(data)
    logger.info("Loaded %d posts from %s", len(posts), posts_path)
    return posts


def read_media_file(path: str | Path) -> bytes:
    """Return the contents of a media file.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    """
    media_path = Path(path)
    if not media_path.is_file():
        raise FileNotFoundError(f"Media file not found: {media_path}")
    return media_path.read_bytes()
