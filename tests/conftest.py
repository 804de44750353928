from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient

from papervault.api.app import create_app
from papervault.config import Settings
from papervault.database.repository import PaperRepository
from papervault.errors import DatabaseError, NotFoundError, StorageError
from papervault.models.paper import ObjectMetadata, ObjectRef, UploadedFile
from papervault.services.paper_service import PaperService
from papervault.storage.base import ObjectStore, generate_object_key


class InMemoryObjectStore(ObjectStore):
    """Dict-backed object store that records every call."""

    def __init__(self) -> None:
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.upload_calls = 0
        self.delete_calls = 0
        self.fail_uploads = False
        self.fail_deletes = False
        self.closed = False

    def upload(self, data: bytes, proposed_name: str, mime_type: str) -> ObjectRef:
        self.upload_calls += 1
        if self.fail_uploads:
            raise StorageError("simulated upload failure")
        key = generate_object_key(proposed_name)
        self.objects[key] = (bytes(data), mime_type)
        return ObjectRef(key=key, url=f"memory://{key}", size=len(data), content_type=mime_type)

    def delete(self, key: str) -> None:
        self.delete_calls += 1
        if self.fail_deletes:
            raise StorageError("simulated delete failure")
        self.objects.pop(key, None)

    def fetch_metadata(self, key: str) -> ObjectMetadata:
        if key not in self.objects:
            raise NotFoundError(f"Object not found: {key}")
        data, content_type = self.objects[key]
        return ObjectMetadata(key=key, size=len(data), content_type=content_type)

    def close(self) -> None:
        self.closed = True


class CountingRepository(PaperRepository):
    """SQLite repository that counts creates and can be told to fail them."""

    def __init__(self, db_path: Path) -> None:
        super().__init__(db_path)
        self.create_calls = 0
        self.fail_creates = False

    def create(self, draft, file_name, obj):
        self.create_calls += 1
        if self.fail_creates:
            raise DatabaseError("simulated insert failure")
        return super().create(draft, file_name, obj)


@pytest.fixture(autouse=True)
def reset_settings() -> None:
    """Never leak the Settings singleton between tests."""
    Settings.reset()
    yield
    Settings.reset()


@pytest.fixture
def make_pdf() -> Callable[..., UploadedFile]:
    def _make(
        size: int = 5 * 1024,
        filename: str = "paper.pdf",
        content_type: str = "application/pdf",
    ) -> UploadedFile:
        header = b"%PDF-1.4\n"
        data = (header + b"0" * max(size - len(header), 0))[:size]
        return UploadedFile(filename=filename, content_type=content_type, data=data)

    return _make


@pytest.fixture
def valid_fields() -> dict[str, Any]:
    return {
        "title": "Deep Learning",
        "authors": "Ada, Grace",
        "abstract": "Neural networks, revisited.",
        "keywords": "ml, vision",
        "year": "2023",
    }


@pytest.fixture
def repo(tmp_path: Path) -> CountingRepository:
    return CountingRepository(tmp_path / "papers.db")


@pytest.fixture
def store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def service(repo: CountingRepository, store: InMemoryObjectStore) -> PaperService:
    return PaperService(repo, store)


@pytest.fixture
def client(service: PaperService) -> TestClient:
    with TestClient(create_app(service=service)) as c:
        yield c
