"""Media attachments for a Bluesky post.

A post carries either one video or up to four images, never both. The two
shapes are separate classes with a ``kind`` tag so callers can dispatch on
the tag instead of guessing from the container type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Union

MAX_IMAGES_PER_POST = 4


@dataclass
class ImageEmbed:
    caption: str
    data: bytes
    mime_type: str


@dataclass
class VideoEmbed:
    """A single video attachment.

    ``remote_ref`` holds the blob reference returned by Bluesky once the
    video has been uploaded; it stays ``None`` in simulate mode.
    """

    caption: str
    data: bytes
    mime_type: str
    remote_ref: Optional[Any] = None
    width: Optional[int] = None
    height: Optional[int] = None

    kind = "video"


@dataclass
class ImageEmbedList:
    items: List[ImageEmbed] = field(default_factory=list)

    kind = "images"

    def __post_init__(self) -> None:
        if len(self.items) > MAX_IMAGES_PER_POST:
            raise ValueError(
                f"A post can embed at most {MAX_IMAGES_PER_POST} images, got {len(self.items)}"
            )

    def append(self, image: ImageEmbed) -> None:
        if self.is_full:
            raise ValueError(f"A post can embed at most {MAX_IMAGES_PER_POST} images")
        self.items.append(image)

    @property
    def is_full(self) -> bool:
        return len(self.items) >= MAX_IMAGES_PER_POST

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)


Embed = Union[VideoEmbed, ImageEmbedList]
