"""Service layer."""

from papervault.services.ingestion_service import IngestionService
from papervault.services.paper_service import PaperService
from papervault.services.query_service import QueryService, SearchResult
from papervault.services.validation import (
    SearchSpec,
    validate_file,
    validate_paper_fields,
    validate_paper_identifier,
    validate_search_params,
)

__all__ = [
    "IngestionService",
    "PaperService",
    "QueryService",
    "SearchResult",
    "SearchSpec",
    "validate_file",
    "validate_paper_fields",
    "validate_paper_identifier",
    "validate_search_params",
]
