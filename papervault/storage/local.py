"""Directory-backed object store.

Objects live under ``<root>/<key>``; the declared content type is kept in a
``<key>.meta.json`` sidecar. When ``public_base_url`` is set (e.g. the API's
``/files`` mount) references are ``<public_base_url>/<key>``, otherwise
``file://`` URIs.
"""

import json
import logging
import os
from contextlib import suppress
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from papervault.errors import NotFoundError, StorageError
from papervault.models.paper import ObjectMetadata, ObjectRef
from papervault.storage.base import DEFAULT_PREFIX, ObjectStore, generate_object_key

logger = logging.getLogger(__name__)

META_SUFFIX = ".meta.json"


class LocalObjectStore(ObjectStore):
    """Object store writing blobs to a local directory."""

    def __init__(
        self,
        root: Path,
        public_base_url: Optional[str] = None,
        prefix: str = DEFAULT_PREFIX,
    ):
        """Initialize the store.

        Args:
            root: Directory holding the objects (created if missing)
            public_base_url: Base URL the directory is served under, if any
            prefix: Key prefix for generated keys
        """
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None
        self.prefix = prefix
        self.root.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        root = self.root.resolve()
        path = (root / key).resolve()
        if not key or not path.is_relative_to(root) or path == root:
            raise StorageError(f"Invalid object key: {key!r}")
        return path

    @staticmethod
    def _meta_path(path: Path) -> Path:
        return path.with_name(path.name + META_SUFFIX)

    def url_for(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        return self._path_for(key).as_uri()

    def upload(self, data: bytes, proposed_name: str, mime_type: str) -> ObjectRef:
        key = generate_object_key(proposed_name, self.prefix)
        path = self._path_for(key)
        tmp_path = path.with_name(path.name + ".part")

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)

            meta = {
                "content_type": mime_type,
                "original_name": proposed_name,
                "uploaded_at": datetime.now(timezone.utc).isoformat(),
            }
            with open(self._meta_path(path), "w", encoding="utf-8") as f:
                json.dump(meta, f)

            stored_size = path.stat().st_size
        except OSError as e:
            with suppress(OSError):
                tmp_path.unlink(missing_ok=True)
            raise StorageError(f"Failed to write object {key}: {e}") from e

        if stored_size != len(data):
            raise StorageError(
                f"Size mismatch for {key}: wrote {len(data)} bytes, stored {stored_size}"
            )

        logger.debug("Stored %s (%d bytes) at %s", key, stored_size, path)
        return ObjectRef(key=key, url=self.url_for(key), size=stored_size, content_type=mime_type)

    def delete(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink(missing_ok=True)
            self._meta_path(path).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete object {key}: {e}") from e
        logger.info("Deleted object %s", key)

    def fetch_metadata(self, key: str) -> ObjectMetadata:
        path = self._path_for(key)
        if not path.is_file():
            raise NotFoundError(f"Object not found: {key}")

        try:
            stat = path.stat()
            meta_path = self._meta_path(path)
            meta = {}
            if meta_path.exists():
                with open(meta_path, "r", encoding="utf-8") as f:
                    meta = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"Failed to read metadata for {key}: {e}") from e

        return ObjectMetadata(
            key=key,
            size=stat.st_size,
            content_type=meta.get("content_type", "application/octet-stream"),
            updated_at=datetime.fromtimestamp(stat.st_mtime, timezone.utc).isoformat(),
            extra={k: v for k, v in meta.items() if k != "content_type"},
        )
