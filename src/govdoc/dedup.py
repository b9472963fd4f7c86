"""Citation-level deduplication of parsed sections.

Extracted text sometimes repeats a heading (a running header, a table of
contents without page leaders, a heading echoed in a cross-reference line).
Sections are grouped by their full citation and one section per group
survives. Because citations carry their ancestor context, "Article I,
Section 1" and "Article II, Section 1" are different groups and both survive.

The survivor always sits at the position of the group's first member, so
children that follow the first copy of a heading keep their parent. Only
its text and title come from the member the strategy picks. Output has no
repeated citations, which makes ``dedup`` idempotent.
"""
from __future__ import annotations

import dataclasses
import logging
from collections.abc import Sequence
from enum import StrEnum

from govdoc.section_parser import NO_CONTENT, ParsedSection

log = logging.getLogger(__name__)

MERGE_SEPARATOR = "\n\n"


class DedupStrategy(StrEnum):
    """Which text a duplicate-citation group keeps."""

    PREFER_NON_EMPTY = "prefer_non_empty"   # First with real content, else first
    FIRST_SEEN = "first_seen"               # Always the first in document order
    LONGEST = "longest"                     # Longest text, first on ties
    MERGE = "merge"                         # Distinct non-empty texts joined in order


def _pick(group: list[int], sections: Sequence[ParsedSection], strategy: DedupStrategy) -> int:
    if strategy is DedupStrategy.FIRST_SEEN:
        return group[0]
    if strategy in (DedupStrategy.PREFER_NON_EMPTY, DedupStrategy.MERGE):
        for idx in group:
            if sections[idx].has_content:
                return idx
        return group[0]
    best = group[0]
    best_len = len(sections[best].text) if sections[best].has_content else 0
    for idx in group[1:]:
        length = len(sections[idx].text) if sections[idx].has_content else 0
        if length > best_len:
            best, best_len = idx, length
    return best


def _merged_text(group: list[int], sections: Sequence[ParsedSection]) -> str:
    texts: list[str] = []
    for idx in group:
        sec = sections[idx]
        if sec.has_content and sec.text not in texts:
            texts.append(sec.text)
    return MERGE_SEPARATOR.join(texts) or NO_CONTENT


def _survivor(
    group: list[int], sections: Sequence[ParsedSection], strategy: DedupStrategy,
) -> ParsedSection:
    first = sections[group[0]]
    if len(group) == 1:
        return first
    chosen = sections[_pick(group, sections, strategy)]
    text = _merged_text(group, sections) if strategy is DedupStrategy.MERGE else chosen.text
    title = chosen.title or first.title
    if text == first.text and title == first.title:
        return first
    return dataclasses.replace(first, text=text, title=title)


def group_by_citation(sections: Sequence[ParsedSection]) -> dict[str, list[int]]:
    """Map citation -> indices into *sections*, in document order."""
    groups: dict[str, list[int]] = {}
    for i, sec in enumerate(sections):
        groups.setdefault(sec.citation, []).append(i)
    return groups


def dedup(
    sections: Sequence[ParsedSection],
    strategy: DedupStrategy | str = DedupStrategy.PREFER_NON_EMPTY,
) -> list[ParsedSection]:
    """Keep one section per citation.

    Args:
        sections: Parsed sections in document order.
        strategy: Text policy (enum member or its string value).

    Returns:
        One section per citation, each at the position of the citation's
        first occurrence.
    """
    strategy = DedupStrategy(strategy)
    survivors: dict[int, ParsedSection] = {}
    dropped = 0
    for citation, group in group_by_citation(sections).items():
        survivors[group[0]] = _survivor(group, sections, strategy)
        if len(group) > 1:
            dropped += len(group) - 1
            log.debug(
                "Duplicate citation %r at lines %s; kept at line %d (%s)",
                citation,
                [sections[i].origin_line for i in group],
                sections[group[0]].origin_line,
                strategy.value,
            )
    if dropped:
        log.info("Dropped %d duplicate sections (%s)", dropped, strategy.value)
    return [survivors[i] for i in sorted(survivors)]


def find_duplicates(sections: Sequence[ParsedSection]) -> dict[str, list[int]]:
    """Citations that occur more than once, mapped to their origin lines."""
    return {
        citation: [sections[i].origin_line for i in group]
        for citation, group in group_by_citation(sections).items()
        if len(group) > 1
    }
