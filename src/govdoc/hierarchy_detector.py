"""Heading detection against a ten-level hierarchy config.

Every line of the input is tried against every level matcher. A line is a
heading candidate only when a matcher accepts it from the start of the
trimmed line and the trimmed line is shorter than ``MAX_HEADER_LINE_LEN``
(long lines are body text that merely begins with a number).

Ambiguity between levels ("(i)" is both alphaLower and roman, "1." may be
configured at two depths) is settled by taking the longest matched token;
on equal length the shallower depth wins. At most one heading per line.
"""
from __future__ import annotations

from dataclasses import dataclass

from govdoc.hierarchy_config import HierarchyConfig
from govdoc.numbering import parse_number

MAX_HEADER_LINE_LEN = 200


@dataclass(frozen=True, slots=True)
class DetectedHeading:
    """A heading found on one line of the source text."""

    depth: int
    raw_number_text: str    # "IV"
    parsed_number: int      # 4 (0 when the label does not parse)
    prefix: str             # Level prefix as configured, "Article "
    full_match_text: str    # "ARTICLE IV"
    line_index: int
    rest: str = ""          # Remainder of the line after the token
    level_name: str = ""    # "Article"
    suffix: str = ""


def detect_line(line: str, config: HierarchyConfig, line_index: int = 0) -> DetectedHeading | None:
    """Detect the heading on a single line, or return None."""
    trimmed = line.strip()
    if not trimmed or len(trimmed) >= MAX_HEADER_LINE_LEN:
        return None

    best: DetectedHeading | None = None
    for level, matcher in config.matchers:
        m = matcher(trimmed)
        if m is None:
            continue
        # Levels are visited shallow-first, so strict ">" keeps the
        # shallower depth on equal-length tokens.
        if best is not None and len(m.full_match_text) <= len(best.full_match_text):
            continue
        best = DetectedHeading(
            depth=level.depth,
            raw_number_text=m.number_text,
            parsed_number=parse_number(m.number_text, level.style),
            prefix=level.prefix,
            full_match_text=m.full_match_text,
            line_index=line_index,
            rest=m.rest,
            level_name=level.name,
            suffix=level.suffix,
        )
    return best


def detect_hierarchy(text: str, config: HierarchyConfig) -> list[DetectedHeading]:
    """Return the detected headings of *text* in line order.

    Args:
        text: Newline-joined document text.
        config: Hierarchy config; its matchers are built once and reused.

    Returns:
        One DetectedHeading per heading line, ``line_index`` being the
        zero-based line number in *text*.
    """
    headings: list[DetectedHeading] = []
    for i, line in enumerate(text.split("\n")):
        heading = detect_line(line, config, i)
        if heading is not None:
            headings.append(heading)
    return headings
