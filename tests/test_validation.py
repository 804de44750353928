from datetime import datetime, timezone

import pytest

from papervault.errors import ValidationFailure
from papervault.models.paper import UploadedFile
from papervault.services.validation import (
    MAX_FILE_SIZE,
    validate_file,
    validate_paper_fields,
    validate_paper_identifier,
    validate_search_params,
)


def _messages(exc: ValidationFailure) -> dict[str, list[str]]:
    out: dict[str, list[str]] = {}
    for e in exc.errors:
        out.setdefault(e.field, []).append(e.message)
    return out


# ── Paper fields ─────────────────────────────────────────────────────


def test_fields_are_normalised(valid_fields) -> None:
    draft = validate_paper_fields({
        **valid_fields,
        "title": "  Deep Learning  ",
        "authors": " Ada , , Grace ",
        "keywords": "ml, vision, ml, ",
    })
    assert draft.title == "Deep Learning"
    assert draft.authors == ["Ada", "Grace"]
    assert draft.keywords == ["ml", "vision"]
    assert draft.year == 2023


def test_authors_accepts_a_list() -> None:
    draft = validate_paper_fields({"title": "T", "authors": [" Ada ", "", "Grace"]})
    assert draft.authors == ["Ada", "Grace"]


def test_scalar_list_fields_read_as_text() -> None:
    draft = validate_paper_fields({"title": "T", "authors": 5, "keywords": 7})
    assert draft.authors == ["5"]
    assert draft.keywords == ["7"]


@pytest.mark.parametrize("authors", [None, "", " , ,", []])
def test_missing_or_blank_authors_rejected(authors) -> None:
    with pytest.raises(ValidationFailure) as info:
        validate_paper_fields({"title": "T", "authors": authors})
    assert _messages(info.value) == {"authors": ["At least one author is required"]}


def test_all_field_errors_are_collected() -> None:
    with pytest.raises(ValidationFailure) as info:
        validate_paper_fields({
            "title": "x" * 201,
            "authors": "",
            "abstract": "y" * 2001,
            "year": "1899",
        })
    assert info.value.message == "Validation failed"
    assert _messages(info.value) == {
        "title": ["Title must be less than 200 characters"],
        "authors": ["At least one author is required"],
        "abstract": ["Abstract must be less than 2000 characters"],
        "year": ["Year must be between 1900 and next year"],
    }


def test_missing_title_rejected() -> None:
    with pytest.raises(ValidationFailure) as info:
        validate_paper_fields({"authors": "Ada"})
    assert _messages(info.value) == {"title": ["Title is required"]}


def test_title_length_boundary() -> None:
    assert validate_paper_fields({"title": "x" * 200, "authors": "A"}).title == "x" * 200


@pytest.mark.parametrize("year", ["20x3", "2023.5", "abc"])
def test_non_integer_year_rejected(year) -> None:
    with pytest.raises(ValidationFailure) as info:
        validate_paper_fields({"title": "T", "authors": "A", "year": year})
    assert _messages(info.value) == {"year": ["Year must be a whole number"]}


def test_year_bounds() -> None:
    next_year = datetime.now(timezone.utc).year + 1
    assert validate_paper_fields({"title": "T", "authors": "A", "year": "1900"}).year == 1900
    assert validate_paper_fields({"title": "T", "authors": "A", "year": str(next_year)}).year == next_year
    with pytest.raises(ValidationFailure):
        validate_paper_fields({"title": "T", "authors": "A", "year": str(next_year + 1)})


def test_blank_year_is_absent() -> None:
    assert validate_paper_fields({"title": "T", "authors": "A", "year": "  "}).year is None


def test_abstract_absent_differs_from_empty() -> None:
    assert validate_paper_fields({"title": "T", "authors": "A"}).abstract is None
    assert validate_paper_fields({"title": "T", "authors": "A", "abstract": "  "}).abstract == ""


# ── File ─────────────────────────────────────────────────────────────


def test_missing_file_rejected() -> None:
    with pytest.raises(ValidationFailure) as info:
        validate_file(None)
    assert info.value.message == "File validation failed"
    assert _messages(info.value) == {"file": ["File is required"]}


def test_empty_file_rejected(make_pdf) -> None:
    with pytest.raises(ValidationFailure) as info:
        validate_file(make_pdf(size=0))
    assert _messages(info.value) == {"file": ["File cannot be empty"]}


def test_oversized_non_pdf_reports_every_problem() -> None:
    big = UploadedFile("notes.txt", "text/plain", b"x" * (MAX_FILE_SIZE + 1))
    with pytest.raises(ValidationFailure) as info:
        validate_file(big)
    assert _messages(info.value) == {
        "file": ["File size must be less than 10MB", "Only PDF files are allowed"],
    }


def test_file_at_exact_limit_is_accepted() -> None:
    ok = UploadedFile("p.pdf", "application/pdf", b"x" * MAX_FILE_SIZE)
    assert validate_file(ok) is ok


# ── Search parameters ────────────────────────────────────────────────


def test_search_defaults() -> None:
    spec = validate_search_params({})
    assert (spec.query, spec.field, spec.page, spec.limit) == ("", "all", 1, 10)
    assert (spec.sort_by, spec.sort_order) == ("createdAt", "desc")
    assert spec.offset == 0


def test_search_none_values_count_as_absent() -> None:
    spec = validate_search_params({"page": None, "limit": None, "query": None})
    assert (spec.page, spec.limit, spec.query) == (1, 10, "")


def test_search_parses_strings() -> None:
    spec = validate_search_params({
        "query": "  deep ",
        "page": "3",
        "limit": "20",
        "sortBy": "title",
        "sortOrder": "asc",
    })
    assert spec.query == "deep"
    assert (spec.page, spec.limit, spec.offset) == (3, 20, 40)
    assert (spec.sort_by, spec.sort_order) == ("title", "asc")


@pytest.mark.parametrize("params, field, message", [
    ({"page": "0"}, "page", "Page must be at least 1"),
    ({"limit": "0"}, "limit", "Limit must be at least 1"),
    ({"limit": "51"}, "limit", "Limit must be at most 50"),
    ({"query": "q" * 101}, "query", "Search query too long"),
    ({"page": "two"}, "page", "Page must be a whole number"),
])
def test_search_rejects_out_of_domain_values(params, field, message) -> None:
    with pytest.raises(ValidationFailure) as info:
        validate_search_params(params)
    assert info.value.message == "Invalid search parameters"
    assert [(e.field, e.message) for e in info.value.errors] == [(field, message)]


@pytest.mark.parametrize("params, field", [
    ({"field": "body"}, "field"),
    ({"sortBy": "author"}, "sortBy"),
    ({"sortOrder": "up"}, "sortOrder"),
])
def test_search_rejects_unknown_enums(params, field) -> None:
    with pytest.raises(ValidationFailure) as info:
        validate_search_params(params)
    assert info.value.fields == [field]


def test_search_reports_only_first_error() -> None:
    with pytest.raises(ValidationFailure) as info:
        validate_search_params({"page": "0", "limit": "500", "query": "q" * 200})
    assert len(info.value.errors) == 1


# ── Identifiers ──────────────────────────────────────────────────────


def test_identifier_accepts_uuid() -> None:
    pid = "3f0c2b1e-8d6a-4c1e-9a57-0d1f2e3c4b5a"
    assert validate_paper_identifier(pid) == pid


@pytest.mark.parametrize("raw, message", [
    (None, "Paper ID is required"),
    ("", "Paper ID is required"),
    ("../etc/passwd", "Invalid paper ID format"),
    ("abc def", "Invalid paper ID format"),
    ("abc\n", "Invalid paper ID format"),
    ("\nabc", "Invalid paper ID format"),
])
def test_identifier_rejects_bad_values(raw, message) -> None:
    with pytest.raises(ValidationFailure) as info:
        validate_paper_identifier(raw)
    assert [(e.field, e.message) for e in info.value.errors] == [("id", message)]
