"""Minimal Bluesky (AT Protocol) client for publishing archive posts.

Only three XRPC calls are needed: create a session once, upload blobs
(images and videos) and create ``app.bsky.feed.post`` records. Posts are
created with the original Instagram date as ``createdAt`` so they show up in
the right place in the author's feed history.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from .embeds import Embed, ImageEmbedList, VideoEmbed
from .errors import AuthenticationError, PublishError

logger = logging.getLogger(__name__)

DEFAULT_SERVICE = "https://bsky.social"
POST_COLLECTION = "app.bsky.feed.post"
POST_URL_TEMPLATE = "https://bsky.app/profile/{handle}/post/{rkey}"


def blob_link(blob: Any) -> Optional[str]:
    """Return the CID link of an uploaded blob reference, if it has one."""
    if not isinstance(blob, dict):
        return None
    ref = blob.get("ref")
    if isinstance(ref, dict):
        ref = ref.get("$link")
    return ref if isinstance(ref, str) and ref else None


def format_created_at(date: datetime) -> str:
    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    return date.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.000Z")


class BlueskyClient:
    """Authenticated Bluesky session.

    Parameters
    ----------
    username: str
        Bluesky handle or email used to log in.
    password: str
        Account password or, preferably, an app password.
    service: str, optional
        PDS base URL. Defaults to ``https://bsky.social``.
    http_client: httpx.Client, optional
        Existing HTTP client. A new one is created when omitted.
    """

    def __init__(
        self,
        username: str,
        password: str,
        service: str = DEFAULT_SERVICE,
        http_client: httpx.Client | None = None,
    ):
        self.username = username
        self._password = password
        self._client = http_client or httpx.Client(base_url=service, timeout=120.0)
        self._access_jwt: Optional[str] = None
        self.handle: Optional[str] = None
        self.did: Optional[str] = None

    def close(self) -> None:
        self._client.close()

    def _post(self, nsid: str, **kwargs) -> Dict[str, Any]:
        headers = kwargs.pop("headers", {})
        if self._access_jwt:
            headers["Authorization"] = f"Bearer {self._access_jwt}"
        try:
            response = self._client.post(f"/xrpc/{nsid}", headers=headers, **kwargs)
            response.raise_for_status()
        except httpx.RequestError as exc:
            raise PublishError(f"Bluesky request {nsid} failed: {exc}") from exc
        except httpx.HTTPStatusError as exc:
            raise PublishError(
                f"Bluesky request {nsid} returned {exc.response.status_code}: {exc.response.text}"
            ) from exc
        try:
            body = response.json()
        except ValueError as exc:
            raise PublishError(f"Bluesky request {nsid} returned an invalid body: {exc}") from exc
        if not isinstance(body, dict):
            raise PublishError(f"Bluesky request {nsid} returned an unexpected body")
        return body

    def login(self) -> None:
        """Create a session for ``username``.

        Raises
        ------
        AuthenticationError
            If the credentials are missing or rejected, or the server is
            unreachable.
        """
        if not self.username or not self._password:
            raise AuthenticationError("Bluesky username and password are required")
        try:
            session = self._post(
                "com.atproto.server.createSession",
                json={"identifier": self.username, "password": self._password},
            )
        except PublishError as e:
            raise AuthenticationError(f"Bluesky login failed for {self.username}: {e}") from e
        self._access_jwt = session.get("accessJwt")
        self.did = session.get("did")
        self.handle = session.get("handle") or self.username
        if not self._access_jwt or not self.did:
            raise AuthenticationError("Bluesky login returned no session")
        logger.info("Logged in to Bluesky as %s", self.handle)

    def upload_blob(self, data: bytes, mime_type: str) -> Dict[str, Any]:
        """Upload raw bytes and return the blob reference."""
        response = self._post(
            "com.atproto.repo.uploadBlob",
            content=data,
            headers={"Content-Type": mime_type},
        )
        blob = response.get("blob")
        if not isinstance(blob, dict):
            raise PublishError(f"Bluesky returned no blob for {mime_type} upload")
        return blob

    def upload_image(self, data: bytes, mime_type: str = "image/jpeg") -> Dict[str, Any]:
        return self.upload_blob(data, mime_type)

    def upload_video(self, data: bytes, mime_type: str = "video/mp4") -> Dict[str, Any]:
        blob = self.upload_blob(data, mime_type)
        logger.info("Uploaded video (%d bytes) as %s", len(data), blob_link(blob))
        return blob

    def _images_embed(self, embed: ImageEmbedList) -> Optional[Dict[str, Any]]:
        if not len(embed):
            return None
        images: List[Dict[str, Any]] = []
        for item in embed:
            blob = self.upload_image(item.data, item.mime_type)
            images.append({"alt": item.caption, "image": blob})
        return {"$type": "app.bsky.embed.images", "images": images}

    def _video_embed(self, embed: VideoEmbed) -> Dict[str, Any]:
        if embed.remote_ref is None:
            embed.remote_ref = self.upload_video(embed.data, embed.mime_type)
        record: Dict[str, Any] = {"$type": "app.bsky.embed.video", "video": embed.remote_ref}
        if embed.caption:
            record["alt"] = embed.caption
        if embed.width and embed.height:
            record["aspectRatio"] = {"width": embed.width, "height": embed.height}
        return record

    def build_embed(self, embed: Embed) -> Optional[Dict[str, Any]]:
        if embed.kind == "video":
            return self._video_embed(embed)
        return self._images_embed(embed)

    def create_post(self, date: datetime, text: str, embed: Embed) -> Optional[str]:
        """Publish a post and return its bsky.app URL.

        Raises
        ------
        PublishError
            If uploading media or creating the record fails.
        """
        if self.did is None:
            raise PublishError("Not logged in to Bluesky")
        record: Dict[str, Any] = {
            "$type": POST_COLLECTION,
            "text": text,
            "createdAt": format_created_at(date),
        }
        media = self.build_embed(embed)
        if media is not None:
            record["embed"] = media
        response = self._post(
            "com.atproto.repo.createRecord",
            json={"repo": self.did, "collection": POST_COLLECTION, "record": record},
        )
        uri = response.get("uri")
        if not uri:
            return None
        rkey = uri.rsplit("/", 1)[-1]
        return POST_URL_TEMPLATE.format(handle=self.handle, rkey=rkey)
