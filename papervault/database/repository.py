"""Paper repository for database operations."""

import json
import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

from papervault.database.filters import PaperFilter, casefold_collate, casefold_contains
from papervault.errors import DatabaseError, NotFoundError
from papervault.models.paper import ObjectRef, PaperDraft, PaperRecord

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, title, authors, abstract, keywords, year, file_name, file_ref, file_key, "
    "file_size, mime_type, created_at, updated_at"
)

# Sort key → SQL expression. Ties always fall back to insertion order.
_ORDER_COLUMNS = {
    "createdAt": "created_at",
    "title": "title COLLATE CASEFOLD",
    "year": "year",
}


class PaperRepository:
    """Repository for paper CRUD and filtered queries using SQLite."""

    def __init__(self, db_path: Path, timeout: float = 10.0):
        """Initialize repository with database path.

        Args:
            db_path: Path to SQLite database file
            timeout: Seconds to wait for a locked database
        """
        self.db_path = Path(db_path)
        self.timeout = timeout
        self._init_db()

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections.

        Any ``sqlite3.Error`` raised inside the block surfaces as ``DatabaseError``.
        """
        try:
            conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        except sqlite3.Error as e:
            raise DatabaseError(f"Cannot open database {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        conn.create_function("casefold_contains", 2, casefold_contains, deterministic=True)
        conn.create_collation("CASEFOLD", casefold_collate)
        try:
            yield conn
        except sqlite3.Error as e:
            conn.rollback()
            raise DatabaseError(f"Database operation failed: {e}") from e
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Initialize database schema."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL;")
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS papers (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT NOT NULL UNIQUE,
                    title TEXT NOT NULL,
                    authors TEXT NOT NULL,
                    abstract TEXT,
                    keywords TEXT NOT NULL DEFAULT '[]',
                    year INTEGER,
                    file_name TEXT NOT NULL,
                    file_ref TEXT NOT NULL,
                    file_key TEXT NOT NULL UNIQUE,
                    file_size INTEGER NOT NULL,
                    mime_type TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
            """)
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_created_at ON papers(created_at);")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_year ON papers(year);")
            conn.commit()

    def close(self) -> None:
        """Nothing is held open between calls; kept for a uniform lifecycle."""

    # ── Writes ────────────────────────────────────────────────────────

    def create(self, draft: PaperDraft, file_name: str, obj: ObjectRef) -> PaperRecord:
        """Insert a new paper row for an already stored object.

        Args:
            draft: Validated metadata
            file_name: Original submitted file name (display only)
            obj: Reference returned by the object store

        Returns:
            The persisted PaperRecord with id and timestamps assigned
        """
        now = datetime.now(timezone.utc).isoformat(timespec="microseconds")
        paper = PaperRecord(
            id=str(uuid.uuid4()),
            title=draft.title,
            authors=list(draft.authors),
            abstract=draft.abstract,
            keywords=list(draft.keywords),
            year=draft.year,
            file_name=file_name,
            file_ref=obj.url,
            file_key=obj.key,
            file_size=obj.size,
            mime_type=obj.content_type,
            created_at=now,
            updated_at=now,
        )

        with self._connection() as conn:
            conn.execute(
                f"""
                INSERT INTO papers ({_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    paper.id,
                    paper.title,
                    json.dumps(paper.authors),
                    paper.abstract,
                    json.dumps(paper.keywords),
                    paper.year,
                    paper.file_name,
                    paper.file_ref,
                    paper.file_key,
                    paper.file_size,
                    paper.mime_type,
                    paper.created_at,
                    paper.updated_at,
                ),
            )
            conn.commit()

        logger.debug("Inserted paper %s (%s)", paper.id, paper.file_key)
        return paper

    def delete(self, paper_id: str) -> None:
        """Delete the metadata row. The referenced object is left untouched.

        Raises:
            NotFoundError: No row with this id exists
        """
        with self._connection() as conn:
            cursor = conn.execute("DELETE FROM papers WHERE id = ?", (paper_id,))
            conn.commit()
            deleted = cursor.rowcount

        if deleted == 0:
            raise NotFoundError(f"Paper not found: {paper_id}")

    # ── Reads ─────────────────────────────────────────────────────────

    def find_by_id(self, paper_id: str) -> PaperRecord:
        """Find a single paper by ID.

        Raises:
            NotFoundError: No row with this id exists
        """
        with self._connection() as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM papers WHERE id = ?",
                (paper_id,),
            ).fetchone()

        if row is None:
            raise NotFoundError(f"Paper not found: {paper_id}")
        return _row_to_paper(row)

    def count(self, paper_filter: Optional[PaperFilter] = None) -> int:
        """Count papers matching *paper_filter* (all papers when None)."""
        with self._connection() as conn:
            return self._count(conn, paper_filter or PaperFilter())

    def find_many(
        self,
        paper_filter: Optional[PaperFilter] = None,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
        offset: int = 0,
        limit: int = 10,
    ) -> list[PaperRecord]:
        """Return one sorted slice of the papers matching *paper_filter*.

        Args:
            paper_filter: Predicate (all papers when None)
            sort_by: 'createdAt', 'title' or 'year'
            sort_order: 'asc' or 'desc'
            offset: Number of matching rows to skip
            limit: Maximum number of rows to return

        Returns:
            List of PaperRecord objects
        """
        with self._connection() as conn:
            return self._find_many(
                conn, paper_filter or PaperFilter(), sort_by, sort_order, offset, limit
            )

    def find_page(
        self,
        paper_filter: Optional[PaperFilter] = None,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[PaperRecord], int]:
        """Return ``(page, total_count)`` read from the same snapshot.

        Both statements run inside one read transaction, so the total
        always describes the set the page was cut from. A page past the end
        is empty and never reaches the SELECT, so offsets beyond SQLite's
        integer range are harmless.
        """
        paper_filter = paper_filter or PaperFilter()
        with self._connection() as conn:
            conn.execute("BEGIN")
            try:
                total = self._count(conn, paper_filter)
                papers = []
                if offset < total:
                    papers = self._find_many(
                        conn, paper_filter, sort_by, sort_order, offset, limit
                    )
            finally:
                conn.commit()
        return papers, total

    def iter_file_keys(self) -> Iterator[str]:
        """Yield every referenced storage key (for orphan reconciliation)."""
        with self._connection() as conn:
            rows = conn.execute("SELECT file_key FROM papers ORDER BY seq").fetchall()
        for row in rows:
            yield row["file_key"]

    def get_stats(self) -> dict[str, int]:
        """Return the number of papers and the total stored bytes."""
        with self._connection() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS cnt, COALESCE(SUM(file_size), 0) AS total FROM papers"
            ).fetchone()
        return {"papers": row["cnt"], "total_bytes": row["total"]}

    # ── Private ───────────────────────────────────────────────────────

    @staticmethod
    def _count(conn: sqlite3.Connection, paper_filter: PaperFilter) -> int:
        where_sql, params = paper_filter.to_sql()
        row = conn.execute(
            f"SELECT COUNT(*) AS cnt FROM papers {where_sql}",
            params,
        ).fetchone()
        return row["cnt"]

    @staticmethod
    def _find_many(
        conn: sqlite3.Connection,
        paper_filter: PaperFilter,
        sort_by: str,
        sort_order: str,
        offset: int,
        limit: int,
    ) -> list[PaperRecord]:
        if sort_by not in _ORDER_COLUMNS:
            raise ValueError(f"Unsupported sort key: {sort_by!r}")
        direction = "DESC" if sort_order.lower() == "desc" else "ASC"
        order_sql = f"{_ORDER_COLUMNS[sort_by]} {direction}, seq ASC"

        where_sql, params = paper_filter.to_sql()
        rows = conn.execute(
            f"""
            SELECT {_COLUMNS}
            FROM papers
            {where_sql}
            ORDER BY {order_sql}
            LIMIT ? OFFSET ?
            """,
            (*params, limit, offset),
        ).fetchall()
        return [_row_to_paper(row) for row in rows]


def _row_to_paper(row: sqlite3.Row) -> PaperRecord:
    return PaperRecord(
        id=row["id"],
        title=row["title"],
        authors=json.loads(row["authors"]),
        abstract=row["abstract"],
        keywords=json.loads(row["keywords"]),
        year=row["year"],
        file_name=row["file_name"],
        file_ref=row["file_ref"],
        file_key=row["file_key"],
        file_size=row["file_size"],
        mime_type=row["mime_type"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
