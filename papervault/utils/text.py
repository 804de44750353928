"""Text normalisation helpers for submitted form fields."""

import re
from pathlib import PurePosixPath
from typing import Any, Iterable, Optional

# Allowed characters for paper identifiers (UUIDs and similar slugs).
# All three patterns are applied with fullmatch.
IDENTIFIER_RE = re.compile(r"[A-Za-z0-9-]+")

# Whole-number text, optionally signed, surrounding whitespace allowed
INTEGER_RE = re.compile(r"\s*[+-]?\d+\s*")

EXTENSION_RE = re.compile(r"\.[a-z0-9]{1,10}")


def clean_text(value: Any) -> Optional[str]:
    """Return *value* as a trimmed string, or None when it is absent."""
    if value is None:
        return None
    return str(value).strip()


def split_list(value: Any) -> list[str]:
    """Split a comma-separated string (or a list of strings) into clean items.

    Items are trimmed and empty items are dropped; order is preserved.
    Any other scalar is read as its text form.

    >>> split_list(" Ada Lovelace, , Alan Turing ")
    ['Ada Lovelace', 'Alan Turing']
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        parts: Iterable[Any] = value
    else:
        parts = str(value).split(",")
    return [str(p).strip() for p in parts if p is not None and str(p).strip()]


def dedupe(items: Iterable[str]) -> list[str]:
    """Drop repeated items, keeping the first occurrence."""
    seen: set[str] = set()
    out = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


def file_extension(name: str) -> str:
    """Return the lower-cased extension of *name* including the dot, or ''.

    Extensions that are not short alphanumerics are dropped so they never
    end up inside a storage key.

    >>> file_extension("Paper.Final.PDF")
    '.pdf'
    """
    suffix = PurePosixPath(name.replace("\\", "/")).suffix.lower()
    return suffix if EXTENSION_RE.fullmatch(suffix) else ""
