"""Makes source videos addressable in managed object storage."""

import logging
from typing import Optional

import httpx
from botocore.exceptions import BotoCoreError, ClientError

from core.exceptions import StorageError
from core.storage.s3 import S3Storage
from core.utils.datetime import now, to_unix_millis
from core.utils.formatting import format_file_size
from core.utils.timeouts import call_with_timeout

logger = logging.getLogger(__name__)

VIDEO_CONTENT_TYPE = "video/mp4"


def video_key(owner_id: str, timestamp_ms: int) -> str:
    """Object key for an uploaded candidate video."""
    return f"videos/{owner_id}/{timestamp_ms}.mp4"


class MediaStore:
    """Upload-if-absent adapter in front of ``S3Storage``."""

    def __init__(
        self,
        storage: S3Storage,
        timeout_seconds: float = 300.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            storage: Object store receiving the video
            timeout_seconds: Bound for the fetch and for the upload
            http_client: Client used to fetch external videos (one per call if omitted)
        """
        self.storage = storage
        self.timeout_seconds = timeout_seconds
        self._http_client = http_client

    async def ensure_durable(self, location: str, owner_id: str) -> str:
        """
        Return a managed-storage location for the video.

        Locations already in managed storage are returned unchanged without
        any network call. Anything else is fetched and written under
        ``videos/{owner_id}/{timestamp}.mp4``.

        Args:
            location: Source URL of the video
            owner_id: Candidate owning the video

        Returns:
            Durable HTTPS location of the stored video
        """
        if self.storage.is_managed_location(location):
            logger.debug(f"Video already in managed storage: {location}")
            return location

        uploaded_at = now()
        key = video_key(owner_id, to_unix_millis(uploaded_at))

        video_bytes = await call_with_timeout(
            self._fetch(location), self.timeout_seconds, "video fetch"
        )
        logger.info(f"Fetched video for {owner_id} ({format_file_size(len(video_bytes))})")

        try:
            await call_with_timeout(
                self.storage.upload(
                    video_bytes,
                    key,
                    content_type=VIDEO_CONTENT_TYPE,
                    metadata={
                        "candidateId": owner_id,
                        "uploadedAt": uploaded_at.isoformat(),
                        "originalUrl": location,
                    },
                ),
                self.timeout_seconds,
                "video upload",
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to upload video to S3: {e}")
            raise StorageError(f"S3 upload failed: {e}", cause=e) from e

        durable = self.storage.object_url(key)
        logger.info(f"Video successfully uploaded to: {durable}")
        return durable

    async def _fetch(self, location: str) -> bytes:
        try:
            if self._http_client is not None:
                response = await self._http_client.get(location, follow_redirects=True)
            else:
                async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                    response = await client.get(location, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch video from {location}: {e}")
            raise StorageError(f"Failed to fetch video: {e}", cause=e) from e

        return response.content
