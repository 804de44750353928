"""Error taxonomy shared by the engine, the API and the CLI.

Every failure carries a stable ``code`` so callers can tell "your input was
rejected" (``VALIDATION_ERROR``, ``NOT_FOUND``) apart from "the system failed
to persist valid input" (``STORAGE_ERROR``, ``DATABASE_ERROR``).
"""

from dataclasses import dataclass
from typing import Iterable, Union


@dataclass(frozen=True)
class FieldError:
    """A single field-level validation problem."""

    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


class PaperVaultError(Exception):
    """Base class for all catalog errors."""

    code = "PAPERVAULT_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailure(PaperVaultError):
    """Caller-side problem: malformed field, bad file, bad identifier."""

    code = "VALIDATION_ERROR"

    def __init__(self, errors: Iterable[FieldError], message: str = "Validation failed"):
        errors = list(errors)
        if not errors:
            raise ValueError("ValidationFailure needs at least one FieldError")
        super().__init__(message)
        self.errors = errors

    @property
    def fields(self) -> list[str]:
        return [e.field for e in self.errors]

    def __str__(self) -> str:
        details = "; ".join(f"{e.field}: {e.message}" for e in self.errors)
        return f"{self.message} ({details})"


class NotFoundError(PaperVaultError):
    """The referenced record or object does not exist."""

    code = "NOT_FOUND"


class StorageError(PaperVaultError):
    """Object store write/delete/fetch failed."""

    code = "STORAGE_ERROR"


class DatabaseError(PaperVaultError):
    """Metadata store operation failed."""

    code = "DATABASE_ERROR"


IngestionFailure = Union[ValidationFailure, StorageError, DatabaseError]
