"""Validation of uploads, search parameters and paper identifiers.

Two policies live here:

* Upload validation (:func:`validate_file`, :func:`validate_paper_fields`)
  **collects** every violated constraint of its part, so a caller sees the
  whole set of file problems, or of metadata problems, in one round trip.
* Search validation (:func:`validate_search_params`) **fails fast**: only the
  first offending parameter is reported.

Both raise :class:`~papervault.errors.ValidationFailure` carrying a non-empty
list of ``FieldError(field, message)``.
"""

from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from papervault.errors import FieldError, ValidationFailure
from papervault.models.paper import (
    PDF_MIME_TYPE,
    PaperDraft,
    SearchField,
    SortBy,
    SortOrder,
    UploadedFile,
)
from papervault.utils.text import IDENTIFIER_RE, INTEGER_RE, clean_text, dedupe, split_list

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MiB
MAX_TITLE_LENGTH = 200
MAX_ABSTRACT_LENGTH = 2000
MAX_QUERY_LENGTH = 100
MIN_YEAR = 1900
MAX_LIMIT = 50
DEFAULT_LIMIT = 10


def max_year() -> int:
    """Latest accepted publication year (next calendar year)."""
    return datetime.now(timezone.utc).year + 1


def _field_errors(exc: ValidationError) -> list[FieldError]:
    """Flatten pydantic errors into ``FieldError`` entries (one per problem)."""
    errors = []
    for err in exc.errors():
        loc = err.get("loc") or ()
        field = str(loc[0]) if loc else "__root__"
        errors.append(FieldError(field, err["msg"]))
    return errors


def _parse_int(value: Any, name: str) -> int:
    """Parse whole-number text (or an int) for *name*; reject anything else."""
    if isinstance(value, bool):
        raise PydanticCustomError("int_parsing", f"{name} must be a whole number")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and INTEGER_RE.fullmatch(value):
        return int(value)
    raise PydanticCustomError("int_parsing", f"{name} must be a whole number")


# ---------------------------------------------------------------------------
# Upload form
# ---------------------------------------------------------------------------


class PaperUploadForm(BaseModel):
    """Metadata part of an upload; every field problem is collected."""

    title: str = Field(default=None, validate_default=True)
    authors: list[str] = Field(default=None, validate_default=True)
    abstract: Optional[str] = None
    keywords: list[str] = Field(default_factory=list)
    year: Optional[int] = None

    @field_validator("title", mode="before")
    @classmethod
    def _check_title(cls, value: Any) -> str:
        title = clean_text(value)
        if not title:
            raise PydanticCustomError("title_required", "Title is required")
        if len(title) > MAX_TITLE_LENGTH:
            raise PydanticCustomError(
                "title_too_long", f"Title must be less than {MAX_TITLE_LENGTH} characters"
            )
        return title

    @field_validator("authors", mode="before")
    @classmethod
    def _check_authors(cls, value: Any) -> list[str]:
        authors = split_list(value)
        if not authors:
            raise PydanticCustomError("authors_required", "At least one author is required")
        return authors

    @field_validator("abstract", mode="before")
    @classmethod
    def _check_abstract(cls, value: Any) -> Optional[str]:
        abstract = clean_text(value)
        if abstract is not None and len(abstract) > MAX_ABSTRACT_LENGTH:
            raise PydanticCustomError(
                "abstract_too_long",
                f"Abstract must be less than {MAX_ABSTRACT_LENGTH} characters",
            )
        return abstract

    @field_validator("keywords", mode="before")
    @classmethod
    def _check_keywords(cls, value: Any) -> list[str]:
        return dedupe(split_list(value))

    @field_validator("year", mode="before")
    @classmethod
    def _check_year(cls, value: Any) -> Optional[int]:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        year = _parse_int(value, "Year")
        if not MIN_YEAR <= year <= max_year():
            raise PydanticCustomError(
                "year_range", f"Year must be between {MIN_YEAR} and next year"
            )
        return year


def validate_file(file: Optional[UploadedFile]) -> UploadedFile:
    """Check the uploaded object; report **all** violated constraints."""
    if file is None:
        raise ValidationFailure(
            [FieldError("file", "File is required")], "File validation failed"
        )

    errors = []
    if file.size == 0:
        errors.append(FieldError("file", "File cannot be empty"))
    if file.size > MAX_FILE_SIZE:
        errors.append(FieldError("file", "File size must be less than 10MB"))
    if file.content_type != PDF_MIME_TYPE:
        errors.append(FieldError("file", "Only PDF files are allowed"))

    if errors:
        raise ValidationFailure(errors, "File validation failed")
    return file


def validate_paper_fields(raw_fields: Mapping[str, Any]) -> PaperDraft:
    """Normalise the metadata fields of an upload into a :class:`PaperDraft`."""
    try:
        form = PaperUploadForm.model_validate(dict(raw_fields))
    except ValidationError as exc:
        raise ValidationFailure(_field_errors(exc)) from exc
    return PaperDraft(
        title=form.title,
        authors=form.authors,
        abstract=form.abstract,
        keywords=form.keywords,
        year=form.year,
    )


# ---------------------------------------------------------------------------
# Search parameters
# ---------------------------------------------------------------------------


class SearchSpec(BaseModel):
    """Normalised query, scope, paging and sorting parameters.

    Defaults apply only when a parameter is absent; a present value outside
    its domain is rejected rather than clamped.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    query: str = ""
    field: SearchField = "all"
    page: int = 1
    limit: int = DEFAULT_LIMIT
    sort_by: SortBy = Field(default="createdAt", alias="sortBy")
    sort_order: SortOrder = Field(default="desc", alias="sortOrder")

    @field_validator("query", mode="before")
    @classmethod
    def _check_query(cls, value: Any) -> str:
        query = clean_text(value) or ""
        if len(query) > MAX_QUERY_LENGTH:
            raise PydanticCustomError("query_too_long", "Search query too long")
        return query

    @field_validator("page", mode="before")
    @classmethod
    def _check_page(cls, value: Any) -> int:
        page = _parse_int(value, "Page")
        if page < 1:
            raise PydanticCustomError("page_range", "Page must be at least 1")
        return page

    @field_validator("limit", mode="before")
    @classmethod
    def _check_limit(cls, value: Any) -> int:
        limit = _parse_int(value, "Limit")
        if limit < 1:
            raise PydanticCustomError("limit_range", "Limit must be at least 1")
        if limit > MAX_LIMIT:
            raise PydanticCustomError("limit_range", f"Limit must be at most {MAX_LIMIT}")
        return limit

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def validate_search_params(raw: Optional[Mapping[str, Any]]) -> SearchSpec:
    """Build a :class:`SearchSpec`, reporting only the first bad parameter.

    Keys whose value is ``None`` count as absent.
    """
    params = {k: v for k, v in (raw or {}).items() if v is not None}
    try:
        return SearchSpec.model_validate(params)
    except ValidationError as exc:
        first = _field_errors(exc)[:1]
        raise ValidationFailure(first, "Invalid search parameters") from exc


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------


def validate_paper_identifier(raw: Any) -> str:
    """Accept only non-empty alphanumeric/hyphen identifiers."""
    value = "" if raw is None else str(raw)
    if not value:
        raise ValidationFailure([FieldError("id", "Paper ID is required")])
    if not IDENTIFIER_RE.fullmatch(value):
        raise ValidationFailure([FieldError("id", "Invalid paper ID format")])
    return value
