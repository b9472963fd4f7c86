"""Tests for govdoc.dedup module."""
from __future__ import annotations

import dataclasses

import pytest

from govdoc.dedup import DedupStrategy, dedup, find_duplicates
from govdoc.hierarchy_config import get_template
from govdoc.section_parser import NO_CONTENT, ParsedSection, parse_sections


def _sec(citation: str, text: str, line: int, depth: int = 1) -> ParsedSection:
    return ParsedSection(
        type="section",
        depth=depth,
        number=citation.rsplit(" ", 1)[-1],
        prefix="Section ",
        title="",
        citation=citation,
        text=text,
        origin_line=line,
        label=citation.rsplit(", ", 1)[-1],
    )


EMPTY_FIRST = [
    _sec("Article I, Section 1", NO_CONTENT, 1),
    _sec("Article I, Section 2", "Second.", 3),
    _sec("Article I, Section 1", "Real body.", 5),
]


class TestStrategies:
    def test_prefer_non_empty_is_default(self) -> None:
        out = dedup(EMPTY_FIRST)
        assert [(s.citation, s.text, s.origin_line) for s in out] == [
            ("Article I, Section 1", "Real body.", 1),
            ("Article I, Section 2", "Second.", 3),
        ]

    def test_prefer_non_empty_all_empty_keeps_first(self) -> None:
        sections = [_sec("A, Section 1", NO_CONTENT, 1), _sec("A, Section 1", NO_CONTENT, 4)]
        out = dedup(sections, DedupStrategy.PREFER_NON_EMPTY)
        assert [s.origin_line for s in out] == [1]

    def test_first_seen(self) -> None:
        out = dedup(EMPTY_FIRST, DedupStrategy.FIRST_SEEN)
        assert [s.origin_line for s in out] == [1, 3]
        assert out[0].text == NO_CONTENT

    def test_longest(self) -> None:
        sections = [
            _sec("A, Section 1", "short", 1),
            _sec("A, Section 1", "a much longer body", 4),
            _sec("A, Section 1", "a much longer body", 9),
        ]
        out = dedup(sections, DedupStrategy.LONGEST)
        assert [(s.origin_line, s.text) for s in out] == [(1, "a much longer body")]

    def test_merge_joins_distinct_texts_in_order(self) -> None:
        sections = [
            _sec("A, Section 1", "First part.", 1),
            _sec("A, Section 2", "Other.", 3),
            _sec("A, Section 1", NO_CONTENT, 5),
            _sec("A, Section 1", "Second part.", 7),
            _sec("A, Section 1", "First part.", 9),
        ]
        out = dedup(sections, DedupStrategy.MERGE)
        assert [(s.citation, s.text) for s in out] == [
            ("A, Section 1", "First part.\n\nSecond part."),
            ("A, Section 2", "Other."),
        ]

    def test_merge_all_empty(self) -> None:
        sections = [_sec("A, Section 1", NO_CONTENT, 1), _sec("A, Section 1", NO_CONTENT, 4)]
        assert [s.text for s in dedup(sections, "merge")] == [NO_CONTENT]

    def test_title_taken_from_chosen_member(self) -> None:
        first = dataclasses.replace(_sec("A, Section 1", NO_CONTENT, 1), title="")
        later = dataclasses.replace(_sec("A, Section 1", "Body.", 4), title="Purpose")
        out = dedup([first, later])
        assert (out[0].origin_line, out[0].title, out[0].text) == (1, "Purpose", "Body.")

    def test_strategy_by_name(self) -> None:
        out = dedup(EMPTY_FIRST, "first_seen")
        assert [s.origin_line for s in out] == [1, 3]

    def test_unknown_strategy(self) -> None:
        with pytest.raises(ValueError):
            dedup(EMPTY_FIRST, "newest")


class TestInvariants:
    @pytest.mark.parametrize("strategy", list(DedupStrategy))
    def test_idempotent(self, strategy: DedupStrategy) -> None:
        once = dedup(EMPTY_FIRST, strategy)
        assert dedup(once, strategy) == once

    def test_merge_idempotent(self) -> None:
        sections = [
            _sec("A, Section 1", "One.", 1),
            _sec("A, Section 1", "Two.", 4),
            _sec("A, Section 1", "One.", 6),
        ]
        once = dedup(sections, DedupStrategy.MERGE)
        assert once[0].text == "One.\n\nTwo."
        assert dedup(once, DedupStrategy.MERGE) == once

    @pytest.mark.parametrize("strategy", list(DedupStrategy))
    def test_repeated_parent_keeps_first_position(self, strategy: DedupStrategy) -> None:
        text = (
            "ARTICLE I NAME\nSection 1: Purpose\nServe.\n"
            "ARTICLE I NAME\nThe name is X.\nSection 2: Scope\nReseda."
        )
        out = dedup(parse_sections(text, get_template()), strategy)
        assert [s.citation for s in out] == [
            "Article I", "Article I, Section 1", "Article I, Section 2",
        ]
        assert [s.origin_line for s in out] == [0, 1, 5]

    def test_same_number_under_different_parents_survives(self) -> None:
        text = (
            "ARTICLE I NAME\nSection 1: Purpose\nServe the community.\n"
            "ARTICLE II DUTIES\nSection 1: Board\nManage operations."
        )
        sections = parse_sections(text, get_template())
        out = dedup(sections)
        assert out == sections
        assert [s.label for s in out].count("Section 1") == 2

    def test_no_duplicates_is_identity(self) -> None:
        sections = [_sec("A, Section 1", "x", 1), _sec("A, Section 2", "y", 2)]
        assert dedup(sections) == sections


class TestFindDuplicates:
    def test_reports_origin_lines(self) -> None:
        assert find_duplicates(EMPTY_FIRST) == {"Article I, Section 1": [1, 5]}

    def test_empty(self) -> None:
        assert find_duplicates([]) == {}
