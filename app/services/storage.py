from __future__ import annotations

import logging
import uuid
from functools import lru_cache
from typing import Optional
from urllib.parse import urlsplit

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError
from sqlalchemy.orm import Session as DbSession

from app.config import S3BucketSettings, get_settings
from app.models.file import StoredFile

logger = logging.getLogger(__name__)

# ---------- S3-compatible object storage (public + private buckets) ----------


def _client(bucket: S3BucketSettings):
    return boto3.client(
        "s3",
        region_name=bucket.region,
        endpoint_url=bucket.endpoint or None,
        aws_access_key_id=bucket.access_key_id or None,
        aws_secret_access_key=bucket.secret_access_key or None,
        config=Config(
            signature_version="s3v4",
            s3={"addressing_style": "path" if bucket.force_path_style else "virtual"},
        ),
    )


def public_url(bucket: S3BucketSettings, key: str) -> str:
    """
    Public URL for an object.

    Path style:            <endpoint>/<bucket>/<key>
    Virtual-hosted style:  <scheme>://<bucket>.<host>[:port]/<key>
    """
    key = key.lstrip("/")
    if bucket.force_path_style:
        return f"{bucket.endpoint.rstrip('/')}/{bucket.bucket_name}/{key}"

    parts = urlsplit(bucket.endpoint)
    port = f":{parts.port}" if parts.port else ""
    return f"{parts.scheme}://{bucket.bucket_name}.{parts.hostname}{port}/{key}"


class ObjectStorage:
    def __init__(self, public: S3BucketSettings, private: S3BucketSettings):
        self.public = public
        self.private = private
        self.public_client = _client(public)
        self.private_client = _client(private)

    def get_public_url(self, key: str) -> str:
        return public_url(self.public, key)

    def upload_public(
        self,
        db: DbSession,
        *,
        content: bytes,
        key: str,
        content_type: str,
        uploaded_by_id: Optional[uuid.UUID],
    ) -> StoredFile:
        """Upload to the public bucket and record the file with its public URL."""
        logger.debug("put_object bucket=%s key=%s type=%s", self.public.bucket_name, key, content_type)
        self.public_client.put_object(
            Bucket=self.public.bucket_name,
            Key=key,
            Body=content,
            ContentType=content_type,
        )
        try:
            return self._record(
                db,
                bucket_name=self.public.bucket_name,
                key=key,
                url=self.get_public_url(key),
                content=content,
                content_type=content_type,
                uploaded_by_id=uploaded_by_id,
            )
        except Exception:
            self.discard_public(key)
            raise

    def discard_public(self, key: str) -> None:
        """Best-effort removal of an uploaded object whose file record was rolled back."""
        logger.warning("Removing orphaned object bucket=%s key=%s", self.public.bucket_name, key)
        try:
            self.public_client.delete_object(Bucket=self.public.bucket_name, Key=key)
        except (BotoCoreError, ClientError):
            logger.exception("Could not remove orphaned object bucket=%s key=%s", self.public.bucket_name, key)

    def upload_private(
        self,
        db: DbSession,
        *,
        content: bytes,
        key: str,
        content_type: str,
        uploaded_by_id: Optional[uuid.UUID],
    ) -> StoredFile:
        """Upload to the private bucket. No URL is stored for private objects."""
        logger.debug("put_object bucket=%s key=%s type=%s", self.private.bucket_name, key, content_type)
        self.private_client.put_object(
            Bucket=self.private.bucket_name,
            Key=key,
            Body=content,
            ContentType=content_type,
        )
        return self._record(
            db,
            bucket_name=self.private.bucket_name,
            key=key,
            url=None,
            content=content,
            content_type=content_type,
            uploaded_by_id=uploaded_by_id,
        )

    @staticmethod
    def _record(
        db: DbSession,
        *,
        bucket_name: str,
        key: str,
        url: Optional[str],
        content: bytes,
        content_type: str,
        uploaded_by_id: Optional[uuid.UUID],
    ) -> StoredFile:
        row = StoredFile(
            bucket_name=bucket_name,
            key=key,
            url=url,
            mime_type=content_type,
            size=len(content),
            uploaded_by_id=uploaded_by_id,
        )
        db.add(row)
        db.flush()
        return row


@lru_cache
def get_storage() -> ObjectStorage:
    settings = get_settings()
    return ObjectStorage(settings.public_bucket, settings.private_bucket)
