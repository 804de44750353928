"""Object store adapters."""

from papervault.config import StorageSettings
from papervault.storage.base import ObjectStore, generate_object_key
from papervault.storage.local import LocalObjectStore


def build_object_store(settings: StorageSettings) -> ObjectStore:
    """Construct the configured object store backend."""
    if settings.backend == "s3":
        from papervault.storage.s3 import S3ObjectStore

        if not settings.bucket:
            raise ValueError("storage.bucket must be set for the s3 backend")
        return S3ObjectStore(
            bucket=settings.bucket,
            prefix=settings.prefix,
            region=settings.region,
            public_base_url=settings.public_base_url,
            endpoint_url=settings.endpoint_url,
            public_read=settings.public_read,
        )
    return LocalObjectStore(
        root=settings.root,
        public_base_url=settings.public_base_url,
        prefix=settings.prefix,
    )


__all__ = ["LocalObjectStore", "ObjectStore", "build_object_store", "generate_object_key"]
