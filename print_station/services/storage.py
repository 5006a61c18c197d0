"""
Remote asset storage for uploaded print files (S3-compatible bucket).

Only two calls are used: store a local file under a key, and delete a key.
When the bucket is not configured, or the remote call fails or times out, the
methods return None/False and log; callers treat storage as best-effort.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from print_station.config import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredAsset:
    key: str
    url: str


class AssetStorage:
    def __init__(self, settings: Settings):
        self.settings = settings
        self.bucket = settings.s3_bucket_name
        self._client = None
        if not self.bucket:
            logger.warning("S3_BUCKET_NAME not configured; uploads will stay on local disk")

    @property
    def configured(self) -> bool:
        return bool(self.bucket)

    def _get_client(self):
        if self._client is None and self.bucket:
            timeout = self.settings.storage_timeout_seconds
            kwargs = {
                "config": Config(
                    connect_timeout=timeout,
                    read_timeout=timeout,
                    retries={"max_attempts": 1},
                )
            }
            if self.settings.s3_region:
                kwargs["region_name"] = self.settings.s3_region
            if self.settings.s3_endpoint_url:
                kwargs["endpoint_url"] = self.settings.s3_endpoint_url
            try:
                self._client = boto3.client("s3", **kwargs)
            except (BotoCoreError, ClientError) as e:
                logger.warning("Failed to create S3 client: %s", e)
                self._client = None
        return self._client

    def _url_for(self, key: str) -> str:
        if self.settings.s3_endpoint_url:
            return f"{self.settings.s3_endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        region = self.settings.s3_region
        host = f"{self.bucket}.s3.{region}.amazonaws.com" if region else f"{self.bucket}.s3.amazonaws.com"
        return f"https://{host}/{key}"

    def key_for(self, filename: str) -> str:
        prefix = (self.settings.s3_prefix or "").strip("/")
        return f"{prefix}/{filename}" if prefix else filename

    def store(self, local_path: Path, key: str, content_type: str | None = None) -> StoredAsset | None:
        client = self._get_client()
        if client is None:
            return None
        extra = {"ContentType": content_type} if content_type else None
        try:
            logger.info("Uploading %s to s3://%s/%s", local_path, self.bucket, key)
            client.upload_file(str(local_path), self.bucket, key, ExtraArgs=extra)
        except (BotoCoreError, ClientError) as e:
            logger.warning("S3 upload failed, keeping local file: %s", e)
            return None
        return StoredAsset(key=key, url=self._url_for(key))

    def delete(self, key: str) -> bool:
        client = self._get_client()
        if client is None:
            return False
        try:
            client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 delete failed for %s: %s", key, e)
            return False
        logger.info("Deleted remote asset s3://%s/%s", self.bucket, key)
        return True


def build_storage(settings: Settings | None = None) -> AssetStorage:
    return AssetStorage(settings or get_settings())
