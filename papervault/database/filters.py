"""Search predicate shared by the query service and the repository."""

from dataclasses import dataclass
from typing import Any

from papervault.models.paper import SearchField


def casefold_contains(haystack: Any, needle: Any) -> int:
    """Case-insensitive substring test (registered as a SQLite function)."""
    if haystack is None or needle is None:
        return 0
    return int(str(needle).casefold() in str(haystack).casefold())


def casefold_collate(left: str, right: str) -> int:
    """Unicode-aware case-insensitive collation for title sorting."""
    a, b = left.casefold(), right.casefold()
    return (a > b) - (a < b)


# Per-field SQL tests: substring for prose, exact element for token lists
_SQL_TESTS = {
    "title": "casefold_contains(title, ?)",
    "abstract": "casefold_contains(abstract, ?)",
    "authors": "EXISTS (SELECT 1 FROM json_each(papers.authors) WHERE json_each.value = ?)",
    "keywords": "EXISTS (SELECT 1 FROM json_each(papers.keywords) WHERE json_each.value = ?)",
}

ALL_FIELDS = ("title", "abstract", "authors", "keywords")


@dataclass(frozen=True)
class PaperFilter:
    """Free-text query scoped to one field or to all of them.

    An empty query matches every record.
    """

    query: str = ""
    field: SearchField = "all"

    @property
    def is_unconditional(self) -> bool:
        return not self.query

    def _fields(self) -> tuple[str, ...]:
        return ALL_FIELDS if self.field == "all" else (self.field,)

    def to_sql(self) -> tuple[str, list[Any]]:
        """Return ``(where_clause, params)``; the clause is '' when unconditional."""
        if self.is_unconditional:
            return "", []
        fields = self._fields()
        clause = " OR ".join(_SQL_TESTS[f] for f in fields)
        return f"WHERE ({clause})", [self.query] * len(fields)
