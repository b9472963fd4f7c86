"""Tests for govdoc.hierarchy_detector module."""
from __future__ import annotations

from govdoc.hierarchy_config import HierarchyConfig, get_template
from govdoc.hierarchy_detector import MAX_HEADER_LINE_LEN, detect_hierarchy, detect_line

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


def _config_with(**overrides: dict[str, str]) -> HierarchyConfig:
    """Standard bylaws with some levels' fields replaced, keyed 'd<depth>'."""
    payload = get_template().to_dict()
    for key, changes in overrides.items():
        depth = int(key[1:])
        for level in payload["levels"]:
            if level["depth"] == depth:
                level.update(changes)
    return HierarchyConfig.from_dict(payload)


class TestDetectHierarchy:
    def test_bylaws_headings(self) -> None:
        headings = detect_hierarchy(BYLAWS_TEXT, get_template())
        assert [h.depth for h in headings] == [0, 1, 1, 0, 1]
        assert [h.line_index for h in headings] == [0, 1, 3, 5, 6]
        assert [h.raw_number_text for h in headings] == ["I", "1", "2", "II", "1"]
        assert [h.parsed_number for h in headings] == [1, 1, 2, 2, 1]

    def test_heading_fields(self) -> None:
        heading = detect_hierarchy("Section 3 - Quorum", get_template())[0]
        assert heading.prefix == "Section "
        assert heading.full_match_text == "Section 3"
        assert heading.rest == "- Quorum"
        assert heading.level_name == "Section"

    def test_body_lines_are_not_headings(self) -> None:
        text = "The members shall meet.\nServe Reseda.\n2024 was a good year."
        assert detect_hierarchy(text, get_template()) == []

    def test_long_lines_are_not_headings(self) -> None:
        line = "Section 1 " + "x" * MAX_HEADER_LINE_LEN
        assert detect_line(line, get_template()) is None

    def test_blank_line(self) -> None:
        assert detect_line("   ", get_template()) is None


class TestAmbiguity:
    def test_equal_length_tie_goes_to_shallower_depth(self) -> None:
        # "(i)" is both a paragraph letter and a subclause roman numeral
        config = _config_with(d6={"prefix": "(", "suffix": ")"})
        heading = detect_line("(i) first item", config)
        assert heading is not None
        assert heading.depth == 3

    def test_only_one_level_matches(self) -> None:
        config = _config_with(d6={"prefix": "(", "suffix": ")"})
        heading = detect_line("(iv) fourth item", config)
        assert heading is not None
        assert heading.depth == 6
        assert heading.parsed_number == 4

    def test_longest_token_wins(self) -> None:
        config = _config_with(
            d0={"prefix": "Sec", "numbering": "numeric"},
            d1={"prefix": "Sec", "numbering": "numeric", "suffix": ")"},
        )
        heading = detect_line("Sec 1) Purpose", config)
        assert heading is not None
        assert heading.depth == 1
        assert heading.full_match_text == "Sec 1)"
