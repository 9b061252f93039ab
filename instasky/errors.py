"""Exception types raised by the importer.

Fatal conditions (bad credentials, unreadable archive, invalid settings)
propagate out of :func:`instasky.importer.run_import`. Everything else is
handled per post and only ever skips that post.
"""

from __future__ import annotations


class InstaskyError(RuntimeError):
    """Base class for all importer errors."""


class ConfigError(InstaskyError):
    """Raised when configuration is missing or invalid."""


class ArchiveError(InstaskyError):
    """Raised when the Instagram export cannot be read or parsed."""


class AuthenticationError(InstaskyError):
    """Raised when logging in to Bluesky fails."""


class VideoProcessingError(InstaskyError):
    """Raised when a video cannot be prepared or uploaded."""


class PublishError(InstaskyError):
    """Raised when Bluesky rejects a blob upload or a post."""
