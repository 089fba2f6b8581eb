"""
S3 publisher for sharing built PDFs.

Uploads an artifact to an S3-compatible bucket and returns a link anyone can
open: a presigned GET URL by default, or the plain object URL when the bucket
is public (``s3.public_urls``).

The bucket name comes from configuration (``s3.bucket`` or the
``S3_BUCKET_NAME`` environment variable). Without a bucket no publisher is
created and sharing is simply unavailable.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from omegaconf import DictConfig

from .errors import PublishError
from .utils import sanitize_label

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


class S3Publisher:
    def __init__(
        self,
        bucket: str,
        client: Any = None,
        prefix: str = "public/",
        expiration: int = 3600,
        public_urls: bool = False,
    ) -> None:
        if not bucket:
            raise ValueError("bucket is required")
        self.bucket = bucket
        self.prefix = prefix
        self.expiration = expiration
        self.public_urls = public_urls
        self._client = client

    @property
    def client(self) -> Any:
        # Created lazily; credential problems surface on the first upload.
        if self._client is None:
            self._client = boto3.client("s3")
        return self._client

    def object_key(self, suggested_name: str) -> str:
        stem = suggested_name[:-4] if suggested_name.lower().endswith(".pdf") else suggested_name
        safe = sanitize_label(stem, "everythingpdf")
        return f"{self.prefix}{safe}-{int(time.time() * 1000)}.pdf"

    def publish(self, data: bytes, suggested_name: str) -> str:
        return self.publish_with_key(data, suggested_name)[0]

    def publish_with_key(self, data: bytes, suggested_name: str) -> tuple[str, str]:
        """Upload ``data`` and return ``(url, key)``; raises ``PublishError`` on failure."""
        key = self.object_key(suggested_name)
        logger.info("Uploading %d bytes to s3://%s/%s", len(data), self.bucket, key)
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=PDF_CONTENT_TYPE,
            )
            url = self._url_for(key)
        except (ClientError, BotoCoreError) as exc:
            logger.error("S3 upload failed: %s", exc)
            raise PublishError(f"Upload failed. Check storage configuration and bucket permissions: {exc}") from exc

        logger.info("Upload successful: s3://%s/%s", self.bucket, key)
        return url, key

    def _url_for(self, key: str) -> str:
        if self.public_urls:
            region = self.client.meta.region_name or "us-east-1"
            return f"https://{self.bucket}.s3.{region}.amazonaws.com/{key}"
        return self.client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=self.expiration,
        )


def publisher_from_settings(settings: DictConfig) -> Optional[S3Publisher]:
    bucket = str(settings.s3.bucket or "")
    if not bucket:
        logger.warning("S3 bucket not configured; sharing disabled")
        return None
    return S3Publisher(
        bucket=bucket,
        prefix=str(settings.output.share_prefix),
        expiration=int(settings.s3.expiration),
        public_urls=str(settings.s3.public_urls).lower() in {"1", "true", "yes"},
    )
