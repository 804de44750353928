"""Object store interface and storage-key generation."""

import uuid
from abc import ABC, abstractmethod

from papervault.models.paper import ObjectMetadata, ObjectRef
from papervault.utils.text import file_extension

DEFAULT_PREFIX = "papers"


def generate_object_key(proposed_name: str, prefix: str = DEFAULT_PREFIX) -> str:
    """Build a fresh, globally unique key keeping only the original extension.

    The display name never reaches the key, so two uploads of ``paper.pdf``
    land on different objects.

    >>> generate_object_key("My Paper.PDF").endswith(".pdf")
    True
    """
    token = str(uuid.uuid4())
    name = f"{token}{file_extension(proposed_name or '')}"
    prefix = prefix.strip("/")
    return f"{prefix}/{name}" if prefix else name


class ObjectStore(ABC):
    """Flat namespace of byte blobs addressed by generated keys.

    Implementations own their client/connection: construct them explicitly,
    inject them where needed and call :meth:`close` (or use ``with``) to
    release it.
    """

    @abstractmethod
    def upload(self, data: bytes, proposed_name: str, mime_type: str) -> ObjectRef:
        """Durably store *data* under a newly generated key.

        Returns only once the write is confirmed (and the object is readable
        through the returned URL). Any failure raises ``StorageError``.
        """

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove the object; deleting an absent key is not an error."""

    @abstractmethod
    def fetch_metadata(self, key: str) -> ObjectMetadata:
        """Return size / content type; ``NotFoundError`` if the key is absent."""

    def close(self) -> None:
        """Release the underlying client. Default: nothing to release."""

    def __enter__(self) -> "ObjectStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
