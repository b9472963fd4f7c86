"""Tests for govdoc.tree_assembler module."""
from __future__ import annotations

from govdoc.section_parser import ParsedSection
from govdoc.tree_assembler import assemble


def _sections(*depths: int) -> list[ParsedSection]:
    return [
        ParsedSection(
            type=f"level_{d}",
            depth=d,
            number=str(i + 1),
            prefix="",
            title="",
            citation=f"node {i}",
            text="body",
            origin_line=i,
        )
        for i, d in enumerate(depths)
    ]


class TestAssemble:
    def test_parents_ordinals_and_document_order(self) -> None:
        tree = assemble(_sections(0, 1, 1, 0, 1))
        assert [t.temp_id for t in tree] == [0, 1, 2, 3, 4]
        assert [t.parent_temp_id for t in tree] == [None, 0, 0, None, 3]
        assert [t.ordinal for t in tree] == [1, 1, 2, 2, 1]
        assert [t.document_order for t in tree] == [1, 2, 3, 4, 5]

    def test_ordinal_is_sibling_local(self) -> None:
        tree = assemble(_sections(0, 1, 1, 0, 1))
        firsts = [t for t in tree if t.depth == 1 and t.ordinal == 1]
        assert len(firsts) == 2
        assert firsts[0].parent_temp_id != firsts[1].parent_temp_id
        ordinals = [t.ordinal for t in tree]
        assert len(set(ordinals)) < len(ordinals)

    def test_document_order_is_contiguous(self) -> None:
        tree = assemble(_sections(0, 1, 2, 3, 2, 1, 0, 1, 2))
        assert sorted(t.document_order for t in tree) == list(range(1, 10))

    def test_depth_skip_attaches_to_nearest_shallower(self) -> None:
        tree = assemble(_sections(0, 2, 1))
        assert tree[1].parent_temp_id == 0
        assert tree[2].parent_temp_id == 0
        assert tree[1].ordinal == 1
        assert tree[2].ordinal == 1

    def test_return_to_shallower_level(self) -> None:
        tree = assemble(_sections(0, 1, 2, 1))
        assert tree[3].parent_temp_id == 0
        assert tree[3].ordinal == 2

    def test_document_starting_below_root(self) -> None:
        tree = assemble(_sections(1, 1))
        assert [t.parent_temp_id for t in tree] == [None, None]
        assert [t.ordinal for t in tree] == [1, 2]

    def test_fields_carried_over(self) -> None:
        tree = assemble(_sections(0))
        assert tree[0].citation == "node 0"
        assert tree[0].text == "body"
        assert tree[0].origin_line == 0

    def test_empty(self) -> None:
        assert assemble([]) == []

    def test_independent_calls(self) -> None:
        first = assemble(_sections(0, 1))
        second = assemble(_sections(0, 1))
        assert first == second
