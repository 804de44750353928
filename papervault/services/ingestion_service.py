"""Ingestion: validate, store the PDF, then commit the metadata row.

The blob is always written before the row. A crash or database failure
between the two steps can leave an orphaned object (bytes with no row),
never a dangling record (a row pointing at nothing). Orphans are left for
out-of-band reconciliation; nothing here tries to compensate, since a
compensating delete can fail too.
"""

import logging
from typing import Any, Mapping, Optional

from papervault.database.repository import PaperRepository
from papervault.errors import DatabaseError, StorageError
from papervault.models.paper import PaperRecord, UploadedFile
from papervault.services.validation import validate_file, validate_paper_fields
from papervault.storage.base import ObjectStore

logger = logging.getLogger(__name__)


class IngestionService:
    """Turns a raw submission into a persisted :class:`PaperRecord`."""

    def __init__(self, repo: PaperRepository, store: ObjectStore):
        """Initialize with explicitly constructed collaborators.

        Args:
            repo: Metadata repository
            store: Object store adapter
        """
        self.repo = repo
        self.store = store

    def ingest(
        self,
        raw_fields: Mapping[str, Any],
        file: Optional[UploadedFile],
    ) -> PaperRecord:
        """Create a paper.

        Steps, strictly in this order:

        1. validate the file (rejects before any metadata parsing)
        2. validate the metadata fields
        3. upload the bytes; the store picks a fresh unique key
        4. insert the metadata row with the size/type the store confirmed

        Raises:
            ValidationFailure: Bad file or fields; nothing was written
            StorageError: Upload failed; no row was written
            DatabaseError: Row insert failed; the uploaded object may be orphaned
        """
        checked_file = validate_file(file)
        draft = validate_paper_fields(raw_fields)

        try:
            obj = self.store.upload(
                checked_file.data, checked_file.filename, checked_file.content_type
            )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to upload file to storage: {e}") from e
        logger.info("Stored %s as %s (%d bytes)", checked_file.filename, obj.key, obj.size)

        try:
            paper = self.repo.create(draft, checked_file.filename, obj)
        except Exception as e:
            logger.warning(
                "Metadata write failed; object %s is orphaned until reconciliation: %s",
                obj.key,
                e,
            )
            if isinstance(e, DatabaseError):
                raise
            raise DatabaseError(f"Failed to save paper metadata: {e}") from e

        logger.info("Ingested paper %s (%s)", paper.id, paper.title)
        return paper
