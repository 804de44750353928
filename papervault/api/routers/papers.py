"""Paper endpoints: list, search, upload, fetch one, delete."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from papervault.models.paper import UploadedFile
from papervault.services.paper_service import PaperService
from papervault.services.validation import MAX_FILE_SIZE

router = APIRouter()


def get_service(request: Request) -> PaperService:
    """Dependency returning the app's catalog service."""
    return request.app.state.service


# ============================================================================
# List / Search
# ============================================================================
#
# Parameters are taken as raw strings so validation (and its error shape)
# stays in the service layer.


@router.get("/papers")
def list_papers(
    query: Optional[str] = Query(None, description="Free-text filter over all fields"),
    search: Optional[str] = Query(None, description="Alias of query"),
    page: Optional[str] = Query(None, description="1-based page number"),
    limit: Optional[str] = Query(None, description="Page size (1-50)"),
    sort_by: Optional[str] = Query(None, alias="sortBy", description="createdAt, title or year"),
    sort_order: Optional[str] = Query(None, alias="sortOrder", description="asc or desc"),
    service: PaperService = Depends(get_service),
):
    """List papers with optional filter, sorting and pagination."""
    return service.list_papers({
        "query": query if query is not None else search,
        "page": page,
        "limit": limit,
        "sortBy": sort_by,
        "sortOrder": sort_order,
    })


# NOTE: /papers/search must be registered before /papers/{paper_id}
@router.get("/papers/search")
def search_papers(
    q: Optional[str] = Query(None, description="Search text"),
    field: Optional[str] = Query(None, description="all, title, authors, abstract or keywords"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    service: PaperService = Depends(get_service),
):
    """Field-scoped search; adds ``searchInfo`` to the list response."""
    return service.search_papers({"q": q, "field": field, "page": page, "limit": limit})


# ============================================================================
# Upload
# ============================================================================


@router.post("/papers/upload", status_code=201)
async def upload_paper(
    title: Optional[str] = Form(None),
    authors: Optional[str] = Form(None),
    abstract: Optional[str] = Form(None),
    keywords: Optional[str] = Form(None),
    year: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    service: PaperService = Depends(get_service),
):
    """Upload a PDF with its metadata (multipart form)."""
    uploaded = None
    if file is not None:
        # One byte past the limit is enough to reject an oversized file
        data = await file.read(MAX_FILE_SIZE + 1)
        uploaded = UploadedFile(
            filename=file.filename or "",
            content_type=file.content_type or "",
            data=data,
        )

    fields = {
        "title": title,
        "authors": authors,
        "abstract": abstract,
        "keywords": keywords,
        "year": year,
    }
    paper = await run_in_threadpool(service.upload, fields, uploaded)
    return JSONResponse(
        {"message": "Paper uploaded successfully", "paper": paper.to_dict()},
        status_code=201,
    )


# ============================================================================
# Single Paper
# ============================================================================


@router.get("/papers/{paper_id}")
def get_paper(paper_id: str, service: PaperService = Depends(get_service)):
    """Fetch one paper by id."""
    return {"paper": service.get_paper(paper_id).to_dict()}


@router.delete("/papers/{paper_id}")
def delete_paper(
    paper_id: str,
    purge: bool = Query(False, description="Also delete the stored PDF"),
    service: PaperService = Depends(get_service),
):
    """Delete the paper's metadata row (and optionally its PDF)."""
    service.delete_paper(paper_id, purge_object=purge)
    return {"message": "Paper deleted successfully"}
