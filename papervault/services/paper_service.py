"""Catalog facade used by the API and the CLI."""

import logging
from typing import Any, Mapping, Optional

from papervault.database.repository import PaperRepository
from papervault.models.paper import PaperRecord, UploadedFile
from papervault.services.ingestion_service import IngestionService
from papervault.services.query_service import QueryService, SearchResult
from papervault.services.validation import validate_paper_identifier
from papervault.storage.base import ObjectStore

logger = logging.getLogger(__name__)


class PaperService:
    """Upload, list, search, fetch and delete papers over one repo + store."""

    def __init__(self, repo: PaperRepository, store: ObjectStore):
        self.repo = repo
        self.store = store
        self.ingestion = IngestionService(repo, store)
        self.queries = QueryService(repo)

    def upload(self, raw_fields: Mapping[str, Any], file: Optional[UploadedFile]) -> PaperRecord:
        return self.ingestion.ingest(raw_fields, file)

    def search(self, raw_params: Optional[Mapping[str, Any]]) -> SearchResult:
        return self.queries.search(raw_params)

    def list_papers(self, raw_params: Optional[Mapping[str, Any]] = None) -> dict[str, Any]:
        return self.queries.list_papers(raw_params)

    def search_papers(self, raw_params: Optional[Mapping[str, Any]] = None) -> dict[str, Any]:
        return self.queries.search_papers(raw_params)

    def get_paper(self, raw_id: Any) -> PaperRecord:
        return self.queries.get_paper(raw_id)

    def delete_paper(self, raw_id: Any, purge_object: bool = False) -> PaperRecord:
        """Remove the metadata row; optionally delete the PDF afterwards.

        The row goes first, so a failed purge leaves an orphaned object and
        never a record pointing at a missing one.

        Raises:
            ValidationFailure: Malformed identifier
            NotFoundError: No such paper (also on a repeated delete)
            DatabaseError: Row removal failed
            StorageError: Row removed but the object purge failed
        """
        paper_id = validate_paper_identifier(raw_id)
        paper = self.repo.find_by_id(paper_id)
        self.repo.delete(paper_id)
        logger.info("Deleted paper %s", paper_id)

        if purge_object:
            self.store.delete(paper.file_key)
        return paper

    def close(self) -> None:
        self.store.close()
        self.repo.close()
