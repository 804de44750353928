import logging

import pytest
from rich.logging import RichHandler

from papervault.errors import (
    DatabaseError,
    FieldError,
    NotFoundError,
    PaperVaultError,
    StorageError,
    ValidationFailure,
)
from papervault.logging_setup import configure_logging


def test_validation_failure_needs_errors() -> None:
    with pytest.raises(ValueError):
        ValidationFailure([])


def test_validation_failure_details() -> None:
    exc = ValidationFailure([FieldError("title", "Title is required"), FieldError("file", "File is required")])
    assert exc.code == "VALIDATION_ERROR"
    assert exc.fields == ["title", "file"]
    assert str(exc) == "Validation failed (title: Title is required; file: File is required)"
    assert exc.errors[0].to_dict() == {"field": "title", "message": "Title is required"}


@pytest.mark.parametrize("cls, code", [
    (NotFoundError, "NOT_FOUND"),
    (StorageError, "STORAGE_ERROR"),
    (DatabaseError, "DATABASE_ERROR"),
])
def test_error_codes(cls, code) -> None:
    exc = cls("boom")
    assert isinstance(exc, PaperVaultError)
    assert exc.code == code
    assert exc.message == "boom"


def test_configure_logging_is_idempotent() -> None:
    root = logging.getLogger()
    before = list(root.handlers)
    try:
        configure_logging("debug")
        configure_logging("info")
        rich_handlers = [h for h in root.handlers if isinstance(h, RichHandler)]
        assert len(rich_handlers) == 1
        assert root.level == logging.INFO
    finally:
        for handler in list(root.handlers):
            if handler not in before:
                root.removeHandler(handler)
