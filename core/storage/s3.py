"""S3 storage utilities for video and transcript artifacts."""

import json
import logging
from typing import Any, BinaryIO, Optional
from urllib.parse import urlparse

import aioboto3

from core.config import Settings

logger = logging.getLogger(__name__)


class S3Storage:
    """S3 storage handler for async operations."""

    def __init__(self, settings: Settings, bucket_name: Optional[str] = None):
        """
        Initialize S3 storage.

        Args:
            settings: Application settings providing credentials and region
            bucket_name: S3 bucket name (uses AWS_S3_BUCKET if not provided)

        A blank bucket is accepted here; the pipeline rejects it while
        validating a run.
        """
        self.bucket_name = bucket_name or settings.aws_s3_bucket

        self.region = settings.aws_region
        self.credentials = settings.aws_credentials()
        self.client_options = settings.aws_client_options()

    def _session(self) -> aioboto3.Session:
        return aioboto3.Session(**self.credentials)

    def _client(self):
        return self._session().client("s3", **self.client_options)

    def object_url(self, key: str) -> str:
        """Public-style HTTPS URL of an object in this bucket."""
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{key}"

    def is_managed_location(self, location: str) -> bool:
        """
        Check whether a location already points at managed object storage.

        Args:
            location: URL or s3:// URI

        Returns:
            True for s3:// URIs and amazonaws.com hosts
        """
        parsed = urlparse(location)
        if parsed.scheme == "s3":
            return True
        host = parsed.hostname or ""
        return host == "amazonaws.com" or host.endswith(".amazonaws.com")

    async def upload(
        self,
        file_data: bytes | BinaryIO,
        key: str,
        content_type: Optional[str] = None,
        metadata: Optional[dict] = None
    ) -> str:
        """
        Upload file to S3.

        Args:
            file_data: File data (bytes or file-like object)
            key: S3 object key (path)
            content_type: MIME type of the file
            metadata: Optional metadata dictionary

        Returns:
            S3 object key
        """
        async with self._client() as client:
            upload_args = {
                "Bucket": self.bucket_name,
                "Key": key,
            }

            if content_type:
                upload_args["ContentType"] = content_type

            if metadata:
                upload_args["Metadata"] = metadata

            if isinstance(file_data, bytes):
                upload_args["Body"] = file_data
            else:
                upload_args["Body"] = file_data.read()

            await client.put_object(**upload_args)

            logger.info(f"Uploaded file to S3: {self.bucket_name}/{key}")
            return key

    async def download(self, key: str) -> bytes:
        """
        Download file from S3.

        Args:
            key: S3 object key

        Returns:
            File contents as bytes
        """
        async with self._client() as client:
            response = await client.get_object(Bucket=self.bucket_name, Key=key)

            async with response["Body"] as stream:
                data = await stream.read()

            logger.info(f"Downloaded file from S3: {self.bucket_name}/{key}")
            return data

    async def download_json(self, key: str) -> Any:
        """
        Download and decode a JSON document from S3.

        Args:
            key: S3 object key

        Returns:
            Decoded JSON value
        """
        data = await self.download(key)
        return json.loads(data.decode("utf-8"))
