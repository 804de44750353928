"""Amazon S3 (or S3-compatible) object store."""

import logging
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from papervault.errors import NotFoundError, StorageError
from papervault.models.paper import ObjectMetadata, ObjectRef
from papervault.storage.base import DEFAULT_PREFIX, ObjectStore, generate_object_key

logger = logging.getLogger(__name__)

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


class S3ObjectStore(ObjectStore):
    """S3 storage backend for paper PDFs."""

    def __init__(
        self,
        bucket: str,
        prefix: str = DEFAULT_PREFIX,
        region: str = "us-east-1",
        public_base_url: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        public_read: bool = True,
        client: Any = None,
    ):
        """Initialize S3 storage backend.

        Args:
            bucket: S3 bucket name
            prefix: Object key prefix (default 'papers')
            region: AWS region (default 'us-east-1')
            public_base_url: Base URL for references (defaults to the
                virtual-hosted bucket URL)
            endpoint_url: Custom endpoint for S3-compatible stores
            public_read: Upload with the ``public-read`` ACL
            client: Pre-built boto3 S3 client (tests inject a stub here)
        """
        self.bucket = bucket
        self.prefix = prefix
        self.region = region
        self.public_read = public_read
        if public_base_url:
            self.public_base_url = public_base_url.rstrip("/")
        elif endpoint_url:
            self.public_base_url = f"{endpoint_url.rstrip('/')}/{bucket}"
        else:
            self.public_base_url = f"https://{bucket}.s3.{region}.amazonaws.com"
        self._owns_client = client is None
        self.s3_client = client or boto3.client(
            "s3", region_name=region, endpoint_url=endpoint_url
        )

    def url_for(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"

    def upload(self, data: bytes, proposed_name: str, mime_type: str) -> ObjectRef:
        key = generate_object_key(proposed_name, self.prefix)
        extra_args: dict[str, Any] = {"ContentType": mime_type}
        if self.public_read:
            extra_args["ACL"] = "public-read"

        try:
            logger.info("Uploading %s to s3://%s/%s", proposed_name, self.bucket, key)
            self.s3_client.put_object(Bucket=self.bucket, Key=key, Body=data, **extra_args)
            head = self.s3_client.head_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to upload object {key}: {e}") from e

        stored_size = int(head.get("ContentLength", -1))
        if stored_size != len(data):
            raise StorageError(
                f"Size mismatch for {key}: wrote {len(data)} bytes, stored {stored_size}"
            )

        return ObjectRef(
            key=key,
            url=self.url_for(key),
            size=stored_size,
            content_type=head.get("ContentType", mime_type),
        )

    def delete(self, key: str) -> None:
        try:
            self.s3_client.delete_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if _error_code(e) in _MISSING_CODES:
                return
            raise StorageError(f"Failed to delete object {key}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to delete object {key}: {e}") from e
        logger.info("Deleted s3://%s/%s", self.bucket, key)

    def fetch_metadata(self, key: str) -> ObjectMetadata:
        try:
            head = self.s3_client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if _error_code(e) in _MISSING_CODES:
                raise NotFoundError(f"Object not found: {key}") from e
            raise StorageError(f"Failed to fetch metadata for {key}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to fetch metadata for {key}: {e}") from e

        last_modified = head.get("LastModified")
        return ObjectMetadata(
            key=key,
            size=int(head.get("ContentLength", 0)),
            content_type=head.get("ContentType", "application/octet-stream"),
            updated_at=last_modified.isoformat() if last_modified else None,
            extra={"etag": head.get("ETag"), "metadata": head.get("Metadata", {})},
        )

    def close(self) -> None:
        if self._owns_client and hasattr(self.s3_client, "close"):
            self.s3_client.close()


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))
