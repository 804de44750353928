"""Query engine: search parameters → deterministic, paginated result set."""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from papervault.database.filters import PaperFilter
from papervault.database.repository import PaperRepository
from papervault.models.paper import PageInfo, PaperRecord
from papervault.services.validation import (
    SearchSpec,
    validate_paper_identifier,
    validate_search_params,
)

logger = logging.getLogger(__name__)

# Parameters each transport operation accepts
LIST_PARAMS = ("query", "page", "limit", "sortBy", "sortOrder")
SEARCH_PARAMS = ("q", "page", "limit", "field")


@dataclass
class SearchResult:
    """One page of papers plus its pagination block."""

    papers: list[PaperRecord]
    pagination: PageInfo
    spec: SearchSpec


def build_filter(spec: SearchSpec) -> PaperFilter:
    """Translate a validated spec into the repository predicate."""
    return PaperFilter(query=spec.query, field=spec.field)


def _pick(raw: Optional[Mapping[str, Any]], keys: tuple[str, ...]) -> dict[str, Any]:
    raw = raw or {}
    return {k: raw[k] for k in keys if k in raw}


class QueryService:
    """Validates search parameters and shapes paginated results."""

    def __init__(self, repo: PaperRepository):
        self.repo = repo

    def search(self, raw_params: Optional[Mapping[str, Any]]) -> SearchResult:
        """Run a filtered, sorted, paginated query.

        Raises:
            ValidationFailure: First invalid parameter
            DatabaseError: Repository failure
        """
        spec = validate_search_params(raw_params)
        papers, total = self.repo.find_page(
            build_filter(spec),
            sort_by=spec.sort_by,
            sort_order=spec.sort_order,
            offset=spec.offset,
            limit=spec.limit,
        )
        pagination = PageInfo.build(page=spec.page, limit=spec.limit, total_count=total)
        logger.debug(
            "Query %r (field=%s) page %d: %d of %d",
            spec.query, spec.field, spec.page, len(papers), total,
        )
        return SearchResult(papers=papers, pagination=pagination, spec=spec)

    def list_papers(self, raw_params: Optional[Mapping[str, Any]] = None) -> dict[str, Any]:
        """List operation: ``{papers, pagination}``."""
        result = self.search(_pick(raw_params, LIST_PARAMS))
        return {
            "papers": [p.to_dict() for p in result.papers],
            "pagination": result.pagination.to_dict(),
        }

    def search_papers(self, raw_params: Optional[Mapping[str, Any]] = None) -> dict[str, Any]:
        """Search operation: ``{papers, pagination, searchInfo}``."""
        params = _pick(raw_params, SEARCH_PARAMS)
        if "q" in params:
            params["query"] = params.pop("q")
        result = self.search(params)
        return {
            "papers": [p.to_dict() for p in result.papers],
            "pagination": result.pagination.to_dict(),
            "searchInfo": {
                "query": result.spec.query,
                "field": result.spec.field,
                "resultCount": result.pagination.total_count,
            },
        }

    def get_paper(self, raw_id: Any) -> PaperRecord:
        """Fetch one paper by a validated identifier (``NotFoundError`` if absent)."""
        return self.repo.find_by_id(validate_paper_identifier(raw_id))
