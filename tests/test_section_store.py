"""Tests for govdoc.section_store module."""
from __future__ import annotations

from pathlib import Path

import duckdb
import pytest

from govdoc.hierarchy_config import get_template
from govdoc.persistence import write_sections
from govdoc.section_parser import parse_sections
from govdoc.section_store import (
    SCHEMA_VERSION,
    PersistenceError,
    SchemaVersionError,
    SectionStore,
)
from govdoc.tree_assembler import assemble

BYLAWS_TEXT = (
    "ARTICLE I NAME\n"
    "Section 1: Purpose\n"
    "Serve the community.\n"
    "Section 2: Scope\n"
    "Serve Reseda.\n"
    "ARTICLE II DUTIES\n"
    "Section 1: Board\n"
    "Manage operations."
)


def _populated(store: SectionStore, document_id: str = "bylaws") -> None:
    store.create_document(document_id, title="Bylaws")
    tree = assemble(parse_sections(BYLAWS_TEXT, get_template()))
    write_sections(store, document_id, tree)


class TestLifecycle:
    def test_missing_file_without_create(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            SectionStore(tmp_path / "missing.duckdb")

    def test_create_and_reopen(self, tmp_path: Path) -> None:
        db = tmp_path / "sections.duckdb"
        with SectionStore(db, create_if_missing=True) as store:
            assert store.schema_version == SCHEMA_VERSION
            store.create_document("doc1")
        with SectionStore(db) as store:
            assert store.get_document("doc1") is not None

    def test_schema_mismatch(self, tmp_path: Path) -> None:
        db = tmp_path / "old.duckdb"
        conn = duckdb.connect(str(db))
        conn.execute("CREATE TABLE _schema_version (table_name VARCHAR PRIMARY KEY, version VARCHAR)")
        conn.execute("INSERT INTO _schema_version VALUES ('sections', '0.0.1')")
        conn.close()
        with pytest.raises(SchemaVersionError, match="expected"):
            SectionStore(db)

    def test_in_memory(self) -> None:
        with SectionStore(":memory:") as store:
            store.create_document("doc1")
            assert [d.document_id for d in store.list_documents()] == ["doc1"]


class TestDocuments:
    def test_create_and_get(self) -> None:
        with SectionStore(":memory:") as store:
            record = store.create_document("doc1", title="Bylaws", config_name="standard-bylaws")
            assert store.get_document("doc1") == record
            assert store.get_document("nope") is None

    def test_duplicate_document(self) -> None:
        with SectionStore(":memory:") as store:
            store.create_document("doc1")
            with pytest.raises(PersistenceError, match="already exists"):
                store.create_document("doc1")

    def test_delete_document_removes_sections(self) -> None:
        with SectionStore(":memory:") as store:
            _populated(store)
            _populated(store, "other")
            assert store.delete_document("bylaws") is True
            assert store.get_document("bylaws") is None
            assert store.count_sections("bylaws") == 0
            assert store.count_sections("other") == 5
            assert store.delete_document("bylaws") is False


class TestSections:
    def test_get_sections_in_document_order(self) -> None:
        with SectionStore(":memory:") as store:
            _populated(store)
            sections = store.get_sections("bylaws")
            assert [s.document_order for s in sections] == [1, 2, 3, 4, 5]
            assert sections[1].citation == "Article I, Section 1"
            assert sections[1].original_text == "Serve the community."
            assert sections[1].current_text == "Serve the community."

    def test_children_ancestors_descendants(self) -> None:
        with SectionStore(":memory:") as store:
            _populated(store)
            sections = store.get_sections("bylaws")
            article_one, art1_sec1, art1_sec2, article_two, art2_sec1 = sections

            children = store.get_children(article_one.id)
            assert [c.id for c in children] == [art1_sec1.id, art1_sec2.id]
            assert [c.ordinal for c in children] == [1, 2]

            assert [a.id for a in store.get_ancestors(art2_sec1.id)] == [article_two.id]
            assert store.get_ancestors(article_one.id) == []

            assert [d.id for d in store.get_descendants(article_one.id)] == [
                art1_sec1.id, art1_sec2.id,
            ]
            assert store.get_descendants(art2_sec1.id) == []

    def test_update_section_text(self) -> None:
        with SectionStore(":memory:") as store:
            _populated(store)
            target = store.get_sections("bylaws")[1]
            assert store.update_section_text(target.id, "Amended text.") is True
            updated = store.get_section(target.id)
            assert updated is not None
            assert updated.current_text == "Amended text."
            assert updated.original_text == "Serve the community."
            assert updated.path_ids == target.path_ids
            assert store.update_section_text(999_999, "x") is False

    def test_link_missing_section(self) -> None:
        with SectionStore(":memory:") as store:
            with pytest.raises(PersistenceError, match="not found"):
                store.link_section(12345, None, [12345], [1])

    def test_delete_sections(self) -> None:
        with SectionStore(":memory:") as store:
            _populated(store)
            assert store.delete_sections("bylaws") == 5
            assert store.get_sections("bylaws") == []
            assert store.get_document("bylaws") is not None

    def test_insert_empty_batch(self) -> None:
        with SectionStore(":memory:") as store:
            assert store.insert_section_batch("doc", []) == []


class TestTransaction:
    def test_rollback_on_error(self) -> None:
        with SectionStore(":memory:") as store:
            with pytest.raises(RuntimeError, match="boom"):
                with store.transaction():
                    store.create_document("doc1")
                    raise RuntimeError("boom")
            assert store.get_document("doc1") is None

    def test_commit(self) -> None:
        with SectionStore(":memory:") as store:
            with store.transaction():
                store.create_document("doc1")
            assert store.get_document("doc1") is not None

    def test_nested_transaction_joins_outer(self) -> None:
        with SectionStore(":memory:") as store:
            with pytest.raises(RuntimeError):
                with store.transaction():
                    with store.transaction():
                        store.create_document("doc1")
                    raise RuntimeError("outer fails")
            assert store.get_document("doc1") is None
