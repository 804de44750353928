import math
import random

import pytest

from papervault.errors import NotFoundError, ValidationFailure
from papervault.models.paper import PageInfo
from papervault.services.paper_service import PaperService


def _upload(service: PaperService, make_pdf, title: str, authors: str = "Ada", **extra):
    return service.upload({"title": title, "authors": authors, **extra}, make_pdf())


@pytest.mark.parametrize("seed", range(5))
def test_pagination_block_is_consistent(seed: int) -> None:
    rng = random.Random(seed)
    for _ in range(200):
        total = rng.randint(0, 500)
        limit = rng.randint(1, 50)
        page = rng.randint(1, 20)
        info = PageInfo.build(page=page, limit=limit, total_count=total)
        assert info.total_pages == math.ceil(total / limit)
        assert info.has_next == (page * limit < total)
        assert info.has_prev == (page > 1)


def test_pagination_against_stored_papers(service, make_pdf) -> None:
    rng = random.Random(7)
    total = 23
    for i in range(total):
        _upload(service, make_pdf, f"Paper {i:02d}")

    for _ in range(30):
        limit = rng.randint(1, 10)
        page = rng.randint(1, 6)
        result = service.search({"page": page, "limit": limit, "sortBy": "title", "sortOrder": "asc"})
        p = result.pagination
        assert p.total_count == total
        assert p.total_pages == math.ceil(total / limit)
        assert p.has_next == (page * limit < total)
        assert p.has_prev == (page > 1)
        expected = [f"Paper {i:02d}" for i in range((page - 1) * limit, min(page * limit, total))]
        assert [x.title for x in result.papers] == expected


def test_search_scope(service, make_pdf) -> None:
    _upload(service, make_pdf, "Deep Learning", authors="Ada")

    def hits(field):
        return service.search_papers({"q": "deep", "field": field})["searchInfo"]["resultCount"]

    assert hits("title") == 1
    assert hits("authors") == 0
    assert hits("all") == 1
    assert service.search_papers({"q": "Ada", "field": "authors"})["searchInfo"]["resultCount"] == 1


def test_identical_queries_are_deterministic(service, make_pdf) -> None:
    for i in range(12):
        _upload(service, make_pdf, "Same title", year=str(2000 + i % 3))

    params = {"query": "same", "sortBy": "year", "sortOrder": "desc", "page": "2", "limit": "4"}
    first = service.list_papers(params)
    second = service.list_papers(params)
    assert first == second
    assert len(first["papers"]) == 4


def test_list_shape_and_ignored_params(service, make_pdf) -> None:
    paper = _upload(service, make_pdf, "Only one")
    out = service.list_papers({"limit": "5", "field": "title", "q": "nothing"})

    assert out["papers"] == [paper.to_dict()]
    assert out["pagination"] == {
        "page": 1,
        "limit": 5,
        "totalCount": 1,
        "totalPages": 1,
        "hasNext": False,
        "hasPrev": False,
    }


def test_empty_search_matches_everything(service, make_pdf) -> None:
    _upload(service, make_pdf, "A")
    _upload(service, make_pdf, "B")
    out = service.search_papers({"q": "", "field": "title"})
    assert out["searchInfo"] == {"query": "", "field": "title", "resultCount": 2}


def test_empty_catalog(service) -> None:
    out = service.list_papers()
    assert out["papers"] == []
    assert out["pagination"]["totalPages"] == 0
    assert out["pagination"]["hasNext"] is False


@pytest.mark.parametrize("stored", [0, 3])
def test_huge_page_is_an_empty_page(service, make_pdf, stored: int) -> None:
    for i in range(stored):
        _upload(service, make_pdf, f"Paper {i}")
    huge = 10**18
    out = service.list_papers({"page": str(huge), "limit": "50"})
    assert out["papers"] == []
    assert out["pagination"]["page"] == huge
    assert out["pagination"]["totalCount"] == stored
    assert out["pagination"]["hasPrev"] is True
    assert out["pagination"]["hasNext"] is False


def test_invalid_params_raise_first_error_only(service) -> None:
    with pytest.raises(ValidationFailure) as info:
        service.search({"page": "-1", "limit": "99"})
    assert [e.field for e in info.value.errors] == ["page"]


def test_get_paper(service, make_pdf) -> None:
    paper = _upload(service, make_pdf, "Fetch me")
    assert service.get_paper(paper.id) == paper
    with pytest.raises(ValidationFailure):
        service.get_paper("not an id!")
    with pytest.raises(NotFoundError):
        service.get_paper("0000")


def test_delete_is_not_found_the_second_time(service, store, make_pdf) -> None:
    paper = _upload(service, make_pdf, "Short lived")
    service.delete_paper(paper.id)
    with pytest.raises(NotFoundError):
        service.delete_paper(paper.id)
    # Without purge the PDF stays in the store
    assert paper.file_key in store.objects


def test_delete_with_purge_removes_object(service, store, make_pdf) -> None:
    paper = _upload(service, make_pdf, "Purge me")
    service.delete_paper(paper.id, purge_object=True)
    assert paper.file_key not in store.objects


def test_end_to_end_upload_then_search(service, make_pdf) -> None:
    paper = service.upload(
        {"title": "X", "authors": "A, B", "year": "2023"},
        make_pdf(size=5 * 1024),
    )
    assert paper.authors == ["A", "B"]
    assert paper.year == 2023
    assert paper.file_size == 5120

    result = service.search({"query": "X", "field": "title"})
    assert [p.id for p in result.papers] == [paper.id]
    assert result.pagination.total_count == 1
