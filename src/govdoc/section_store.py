"""DuckDB read/write store for documents and their section trees.

Tables:
    documents          one row per imported governance document
    document_sections  one row per section; ids come from ``section_id_seq``
    _schema_version    schema version tracking

Every section row carries its materialized ancestry: ``path_ids`` holds the
ids from the root down to the row itself and ``path_ordinals`` the matching
sibling ordinals, so ancestors and descendants resolve without recursion.

``document_sections.id`` carries no PRIMARY KEY/UNIQUE constraint (DuckDB
rewrites LIST-column updates as delete+insert); ids are unique through
``section_id_seq``.
"""
from __future__ import annotations

import contextlib
import importlib
import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from govdoc.tree_assembler import TreeSection

# Dynamic DuckDB import for pyright compatibility
_duckdb_mod = importlib.import_module("duckdb")

log = logging.getLogger(__name__)

SCHEMA_VERSION = "1.0.0"
_SCHEMA_KEY = "sections"
MEMORY_DB = ":memory:"


class SchemaVersionError(RuntimeError):
    """Raised when a section DB schema version does not match expected."""


class PersistenceError(RuntimeError):
    """Raised when sections cannot be written; the import must be re-run."""


# ---------------------------------------------------------------------------
# Schema DDL
# ---------------------------------------------------------------------------

_SCHEMA_DDL = """
CREATE TABLE IF NOT EXISTS _schema_version (
    table_name VARCHAR PRIMARY KEY,
    version VARCHAR NOT NULL,
    created_at TIMESTAMP DEFAULT current_timestamp
);

CREATE TABLE IF NOT EXISTS documents (
    document_id VARCHAR PRIMARY KEY,
    title VARCHAR NOT NULL DEFAULT '',
    config_name VARCHAR NOT NULL DEFAULT '',
    source_path VARCHAR,
    created_at TIMESTAMP DEFAULT current_timestamp
);

CREATE SEQUENCE IF NOT EXISTS section_id_seq START 1;

CREATE TABLE IF NOT EXISTS document_sections (
    id BIGINT NOT NULL DEFAULT nextval('section_id_seq'),
    document_id VARCHAR NOT NULL,
    parent_section_id BIGINT,
    section_type VARCHAR NOT NULL DEFAULT '',
    depth INTEGER NOT NULL,
    section_number VARCHAR NOT NULL DEFAULT '',
    section_prefix VARCHAR NOT NULL DEFAULT '',
    section_title VARCHAR NOT NULL DEFAULT '',
    citation VARCHAR NOT NULL DEFAULT '',
    label VARCHAR NOT NULL DEFAULT '',
    original_text VARCHAR NOT NULL DEFAULT '',
    current_text VARCHAR NOT NULL DEFAULT '',
    ordinal INTEGER NOT NULL,
    document_order INTEGER NOT NULL,
    origin_line INTEGER,
    path_ids BIGINT[],
    path_ordinals INTEGER[],
    created_at TIMESTAMP DEFAULT current_timestamp,
    updated_at TIMESTAMP
)
"""

_SECTION_COLUMNS = (
    "id", "document_id", "parent_section_id", "section_type", "depth",
    "section_number", "section_prefix", "section_title", "citation", "label",
    "original_text", "current_text", "ordinal", "document_order",
    "origin_line", "path_ids", "path_ordinals",
)
_SELECT_SECTIONS = f"SELECT {', '.join(_SECTION_COLUMNS)} FROM document_sections"

_INSERT_COLUMNS = (
    "document_id", "section_type", "depth", "section_number",
    "section_prefix", "section_title", "citation", "label", "original_text",
    "current_text", "ordinal", "document_order", "origin_line",
)


def _read_schema_version(conn: Any) -> str:
    """Read section schema version from an open DuckDB connection."""
    try:
        result = conn.execute(
            "SELECT version FROM _schema_version WHERE table_name = ?", [_SCHEMA_KEY]
        ).fetchone()
        return str(result[0]) if result else "unknown"
    except _duckdb_mod.Error:
        return "unknown"


def ensure_schema_version(
    conn: Any,
    *,
    db_path: Path | None = None,
    expected: str = SCHEMA_VERSION,
) -> str:
    """Validate schema version for an open DuckDB connection.

    Returns actual schema version on success.
    Raises SchemaVersionError on mismatch.
    """
    actual = _read_schema_version(conn)
    if actual != expected:
        where = f" in {db_path}" if db_path is not None else ""
        raise SchemaVersionError(
            f"Schema version mismatch{where}: expected {expected}, got {actual}"
        )
    return actual


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DocumentRecord:
    """A row of the ``documents`` table."""

    document_id: str
    title: str
    config_name: str
    source_path: str | None


@dataclass(frozen=True, slots=True)
class PersistedSection:
    """A stored section with its real id and materialized ancestry."""

    id: int
    document_id: str
    parent_section_id: int | None
    type: str
    depth: int
    number: str
    prefix: str
    title: str
    citation: str
    label: str
    original_text: str
    current_text: str
    ordinal: int
    document_order: int
    origin_line: int | None
    path_ids: tuple[int, ...]
    path_ordinals: tuple[int, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "document_id": self.document_id,
            "parent_section_id": self.parent_section_id,
            "type": self.type,
            "depth": self.depth,
            "number": self.number,
            "prefix": self.prefix,
            "title": self.title,
            "citation": self.citation,
            "label": self.label,
            "ordinal": self.ordinal,
            "document_order": self.document_order,
            "origin_line": self.origin_line,
            "path_ids": list(self.path_ids),
            "path_ordinals": list(self.path_ordinals),
        }


def _row_to_section(row: tuple[Any, ...]) -> PersistedSection:
    d = dict(zip(_SECTION_COLUMNS, row, strict=True))
    return PersistedSection(
        id=int(d["id"]),
        document_id=d["document_id"],
        parent_section_id=d["parent_section_id"],
        type=d["section_type"],
        depth=int(d["depth"]),
        number=d["section_number"],
        prefix=d["section_prefix"],
        title=d["section_title"],
        citation=d["citation"],
        label=d["label"],
        original_text=d["original_text"],
        current_text=d["current_text"],
        ordinal=int(d["ordinal"]),
        document_order=int(d["document_order"]),
        origin_line=d["origin_line"],
        path_ids=tuple(d["path_ids"] or ()),
        path_ordinals=tuple(d["path_ordinals"] or ()),
    )


# ---------------------------------------------------------------------------
# SectionStore class
# ---------------------------------------------------------------------------

class SectionStore:
    """Read/write interface to a section database.

    Pass ``":memory:"`` as *db_path* for a throwaway in-process database.
    """

    def __init__(
        self,
        db_path: Path | str,
        *,
        create_if_missing: bool = False,
        enforce_schema: bool = True,
    ) -> None:
        self._in_memory = str(db_path) == MEMORY_DB
        self._db_path = Path(db_path)
        if not self._in_memory and not self._db_path.exists() and not create_if_missing:
            raise FileNotFoundError(f"Section database not found: {self._db_path}")

        self._conn: Any = _duckdb_mod.connect(MEMORY_DB if self._in_memory else str(self._db_path))
        self._in_transaction = False
        try:
            self._create_schema()
            if enforce_schema:
                ensure_schema_version(
                    self._conn, db_path=None if self._in_memory else self._db_path,
                )
        except Exception:
            self._conn.close()
            raise

    def _create_schema(self) -> None:
        """Create all tables if they don't exist and stamp a fresh DB."""
        for stmt in _SCHEMA_DDL.split(";"):
            stmt = stmt.strip()
            if stmt:
                self._conn.execute(stmt)
        self._conn.execute(
            """
            INSERT INTO _schema_version (table_name, version)
            SELECT ?, ?
            WHERE NOT EXISTS (SELECT 1 FROM _schema_version WHERE table_name = ?)
            """,
            [_SCHEMA_KEY, SCHEMA_VERSION, _SCHEMA_KEY],
        )

    @property
    def schema_version(self) -> str:
        return _read_schema_version(self._conn)

    @property
    def db_path(self) -> Path:
        return self._db_path

    # ─── Transactions ─────────────────────────────────────────────

    @contextlib.contextmanager
    def transaction(self) -> Iterator[SectionStore]:
        """Run the block in one DuckDB transaction; roll back on any error.

        Nested use joins the outer transaction.
        """
        if self._in_transaction:
            yield self
            return
        self._conn.execute("BEGIN TRANSACTION")
        self._in_transaction = True
        try:
            yield self
            self._conn.execute("COMMIT")
        except BaseException:
            with contextlib.suppress(Exception):
                self._conn.execute("ROLLBACK")
            raise
        finally:
            self._in_transaction = False

    # ─── Documents ────────────────────────────────────────────────

    def create_document(
        self,
        document_id: str,
        *,
        title: str = "",
        config_name: str = "",
        source_path: str | None = None,
    ) -> DocumentRecord:
        """Insert a document row. Raises PersistenceError if it already exists."""
        if self.get_document(document_id) is not None:
            raise PersistenceError(f"Document already exists: {document_id}")
        self._conn.execute(
            "INSERT INTO documents (document_id, title, config_name, source_path) "
            "VALUES (?, ?, ?, ?)",
            [document_id, title, config_name, source_path],
        )
        return DocumentRecord(document_id, title, config_name, source_path)

    def get_document(self, document_id: str) -> DocumentRecord | None:
        row = self._conn.execute(
            "SELECT document_id, title, config_name, source_path FROM documents "
            "WHERE document_id = ?",
            [document_id],
        ).fetchone()
        if row is None:
            return None
        return DocumentRecord(row[0], row[1], row[2], row[3])

    def list_documents(self) -> list[DocumentRecord]:
        rows = self._conn.execute(
            "SELECT document_id, title, config_name, source_path FROM documents "
            "ORDER BY document_id"
        ).fetchall()
        return [DocumentRecord(r[0], r[1], r[2], r[3]) for r in rows]

    def delete_document(self, document_id: str) -> bool:
        """Delete a document and all of its sections. Returns False if absent."""
        with self.transaction():
            self.delete_sections(document_id)
            deleted = self._conn.execute(
                "DELETE FROM documents WHERE document_id = ? RETURNING document_id",
                [document_id],
            ).fetchall()
        return bool(deleted)

    # ─── Section writes ───────────────────────────────────────────

    def insert_section_batch(
        self,
        document_id: str,
        sections: Sequence[TreeSection],
    ) -> list[tuple[int, int]]:
        """Insert sections without links; return ``(id, document_order)`` pairs.

        Both ``original_text`` and ``current_text`` start as the parsed text.
        ``parent_section_id``, ``path_ids`` and ``path_ordinals`` stay NULL
        until ``link_section`` fills them in.
        """
        if not sections:
            return []
        row_sql = "(" + ", ".join("?" for _ in _INSERT_COLUMNS) + ")"
        params: list[Any] = []
        for sec in sections:
            params.extend([
                document_id, sec.type, sec.depth, sec.number, sec.prefix,
                sec.title, sec.citation, sec.label, sec.text, sec.text,
                sec.ordinal, sec.document_order, sec.origin_line,
            ])
        rows = self._conn.execute(
            f"INSERT INTO document_sections ({', '.join(_INSERT_COLUMNS)}) "
            f"VALUES {', '.join(row_sql for _ in sections)} "
            "RETURNING id, document_order",
            params,
        ).fetchall()
        return [(int(r[0]), int(r[1])) for r in rows]

    def link_section(
        self,
        section_id: int,
        parent_section_id: int | None,
        path_ids: Sequence[int],
        path_ordinals: Sequence[int],
    ) -> None:
        """Write the parent link and materialized path of one section.

        Raises:
            PersistenceError: when no section has *section_id*.
        """
        updated = self._conn.execute(
            """
            UPDATE document_sections
            SET parent_section_id = ?,
                path_ids = ?::BIGINT[],
                path_ordinals = ?::INTEGER[],
                updated_at = current_timestamp
            WHERE id = ?
            RETURNING id
            """,
            [parent_section_id, list(path_ids), list(path_ordinals), section_id],
        ).fetchall()
        if not updated:
            raise PersistenceError(f"Section not found: {section_id}")

    def update_section_text(self, section_id: int, text: str) -> bool:
        """Replace ``current_text``; the only mutable field after import."""
        updated = self._conn.execute(
            "UPDATE document_sections SET current_text = ?, updated_at = current_timestamp "
            "WHERE id = ? RETURNING id",
            [text, section_id],
        ).fetchall()
        return bool(updated)

    def delete_sections(self, document_id: str) -> int:
        """Delete every section of a document; returns the number removed."""
        deleted = self._conn.execute(
            "DELETE FROM document_sections WHERE document_id = ? RETURNING id",
            [document_id],
        ).fetchall()
        if deleted:
            log.debug("Deleted %d sections of %s", len(deleted), document_id)
        return len(deleted)

    # ─── Section reads ────────────────────────────────────────────

    def get_sections(self, document_id: str) -> list[PersistedSection]:
        """All sections of a document in ``document_order``."""
        rows = self._conn.execute(
            f"{_SELECT_SECTIONS} WHERE document_id = ? ORDER BY document_order, id",
            [document_id],
        ).fetchall()
        return [_row_to_section(r) for r in rows]

    def count_sections(self, document_id: str) -> int:
        row = self._conn.execute(
            "SELECT COUNT(*) FROM document_sections WHERE document_id = ?",
            [document_id],
        ).fetchone()
        return int(row[0]) if row else 0

    def get_section(self, section_id: int) -> PersistedSection | None:
        row = self._conn.execute(
            f"{_SELECT_SECTIONS} WHERE id = ?", [section_id],
        ).fetchone()
        return _row_to_section(row) if row else None

    def get_children(self, section_id: int) -> list[PersistedSection]:
        """Direct children ordered by sibling ordinal."""
        rows = self._conn.execute(
            f"{_SELECT_SECTIONS} WHERE parent_section_id = ? ORDER BY ordinal, document_order",
            [section_id],
        ).fetchall()
        return [_row_to_section(r) for r in rows]

    def get_ancestors(self, section_id: int) -> list[PersistedSection]:
        """Ancestors from the root down, resolved through ``path_ids``."""
        section = self.get_section(section_id)
        if section is None or len(section.path_ids) < 2:
            return []
        ancestor_ids = list(section.path_ids[:-1])
        placeholders = ", ".join("?" for _ in ancestor_ids)
        rows = self._conn.execute(
            f"{_SELECT_SECTIONS} WHERE id IN ({placeholders}) ORDER BY depth, document_order",
            ancestor_ids,
        ).fetchall()
        return [_row_to_section(r) for r in rows]

    def get_descendants(self, section_id: int) -> list[PersistedSection]:
        """Every section whose path passes through *section_id*, in document order."""
        rows = self._conn.execute(
            f"{_SELECT_SECTIONS} WHERE list_contains(path_ids, ?::BIGINT) AND id <> ? "
            "ORDER BY document_order",
            [section_id, section_id],
        ).fetchall()
        return [_row_to_section(r) for r in rows]

    # ─── Lifecycle ────────────────────────────────────────────────

    def close(self) -> None:
        """Close the DuckDB connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> SectionStore:
        return self

    def __exit__(self, *_args: object) -> None:
        self.close()
