"""Paper data model."""

import math
from dataclasses import dataclass, field
from typing import Any, Literal, Optional

PDF_MIME_TYPE = "application/pdf"

SearchField = Literal["all", "title", "authors", "abstract", "keywords"]
SortBy = Literal["createdAt", "title", "year"]
SortOrder = Literal["asc", "desc"]


@dataclass
class PaperDraft:
    """Validated paper metadata that has not been persisted yet."""

    title: str
    authors: list[str]
    abstract: Optional[str] = None
    keywords: list[str] = field(default_factory=list)
    year: Optional[int] = None


@dataclass
class UploadedFile:
    """A submitted file: display name, declared content type and raw bytes."""

    filename: str
    content_type: str
    data: bytes = b""

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class ObjectRef:
    """What the object store hands back after a durable upload."""

    key: str
    url: str
    size: int
    content_type: str


@dataclass
class ObjectMetadata:
    """Diagnostic metadata for a stored object."""

    key: str
    size: int
    content_type: str
    updated_at: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class PaperRecord:
    """Represents a persisted paper: metadata plus a reference to its PDF."""

    id: str
    title: str
    authors: list[str]
    file_name: str
    file_ref: str
    file_key: str
    file_size: int
    mime_type: str = PDF_MIME_TYPE
    abstract: Optional[str] = None
    keywords: list[str] = field(default_factory=list)
    year: Optional[int] = None
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the camelCase keys of the HTTP contract."""
        return {
            "id": self.id,
            "title": self.title,
            "authors": list(self.authors),
            "abstract": self.abstract,
            "keywords": list(self.keywords),
            "year": self.year,
            "fileName": self.file_name,
            "fileRef": self.file_ref,
            "fileSize": self.file_size,
            "mimeType": self.mime_type,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass(frozen=True)
class PageInfo:
    """Pagination block derived from ``total_count`` and ``limit``."""

    page: int
    limit: int
    total_count: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, limit: int, total_count: int) -> "PageInfo":
        """Derive every pagination field from the three inputs.

        >>> PageInfo.build(page=2, limit=10, total_count=25).has_next
        True
        """
        return cls(
            page=page,
            limit=limit,
            total_count=total_count,
            total_pages=math.ceil(total_count / limit),
            has_next=page * limit < total_count,
            has_prev=page > 1,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "page": self.page,
            "limit": self.limit,
            "totalCount": self.total_count,
            "totalPages": self.total_pages,
            "hasNext": self.has_next,
            "hasPrev": self.has_prev,
        }
