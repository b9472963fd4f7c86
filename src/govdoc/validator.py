"""Structural checks over parsed and persisted sections.

``validate_document`` inspects what is actually stored for a document:

    path_ids_length       len(path_ids) != depth + 1
    path_ordinals_length  len(path_ordinals) != depth + 1
    path_ids_tail         path_ids[-1] != id
    missing_parent        depth > 0 but no parent_section_id
    document_order_gap    a value of 1..N is absent
    document_order_duplicate
    link_failed           the writer could not link the row

``validate_parsed`` reports softer, parse-level warnings before anything is
written. Both only report; neither repairs.
"""
from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from govdoc.dedup import find_duplicates
from govdoc.hierarchy_config import HierarchyConfig
from govdoc.numbering import is_valid_number
from govdoc.persistence import LinkResult
from govdoc.section_parser import NO_CONTENT, PREAMBLE_TYPE, ParsedSection
from govdoc.section_store import SectionStore
from govdoc.tree_assembler import TreeSection

log = logging.getLogger(__name__)

ERROR = "error"
WARNING = "warning"


@dataclass(frozen=True, slots=True)
class Violation:
    """One reported problem."""

    code: str
    message: str
    section_id: int | None = None
    citation: str = ""
    severity: str = ERROR

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "severity": self.severity,
            "section_id": self.section_id,
            "citation": self.citation,
            "message": self.message,
        }


def validate_document(
    store: SectionStore,
    document_id: str,
    *,
    link_results: Iterable[LinkResult] = (),
) -> list[Violation]:
    """Check the stored section tree of *document_id*.

    Args:
        store: Open section store.
        document_id: Document to check.
        link_results: Per-row outcomes from the writer; failures are folded
            into the report as ``link_failed``.

    Returns:
        Violations in document order, document-wide checks last.
    """
    sections = store.get_sections(document_id)
    violations: list[Violation] = []

    for sec in sections:
        expected = sec.depth + 1
        if len(sec.path_ids) != expected:
            violations.append(Violation(
                "path_ids_length",
                f"path_ids has {len(sec.path_ids)} entries, expected {expected}",
                sec.id, sec.citation,
            ))
        if len(sec.path_ordinals) != expected:
            violations.append(Violation(
                "path_ordinals_length",
                f"path_ordinals has {len(sec.path_ordinals)} entries, expected {expected}",
                sec.id, sec.citation,
            ))
        if sec.path_ids and sec.path_ids[-1] != sec.id:
            violations.append(Violation(
                "path_ids_tail",
                f"path_ids ends with {sec.path_ids[-1]}, expected {sec.id}",
                sec.id, sec.citation,
            ))
        if sec.depth > 0 and sec.parent_section_id is None:
            violations.append(Violation(
                "missing_parent",
                f"Section at depth {sec.depth} has no parent",
                sec.id, sec.citation,
            ))

    counts = Counter(sec.document_order for sec in sections)
    for value in range(1, len(sections) + 1):
        if value not in counts:
            violations.append(Violation(
                "document_order_gap", f"document_order {value} is missing",
            ))
    for value, n in sorted(counts.items()):
        if n > 1:
            violations.append(Violation(
                "document_order_duplicate",
                f"document_order {value} is used by {n} sections",
            ))

    for result in link_results:
        if not result.ok:
            violations.append(Violation(
                "link_failed",
                f"Parent link could not be written: {result.error}",
                result.section_id, result.citation,
            ))

    if violations:
        log.warning("%s: %d structural violations", document_id, len(violations))
    else:
        log.info("%s: %d sections valid", document_id, len(sections))
    return violations


def validate_parsed(
    sections: Sequence[ParsedSection | TreeSection],
    config: HierarchyConfig,
) -> list[Violation]:
    """Parse-level warnings for a section list that has not been stored.

    Reports depth jumps (a section more than one level below its
    predecessor), numbers that do not fit their level's numbering, empty
    sections and repeated citations.
    """
    warnings: list[Violation] = []
    prev_depth = -1
    for sec in sections:
        if sec.type == PREAMBLE_TYPE:
            continue
        if sec.depth > prev_depth + 1:
            warnings.append(Violation(
                "depth_jump",
                f"Depth jumps from {prev_depth} to {sec.depth} at line {sec.origin_line + 1}",
                citation=sec.citation, severity=WARNING,
            ))
        prev_depth = sec.depth

        level = config.level_for_depth(sec.depth)
        if level is not None and not is_valid_number(sec.number, level.style):
            warnings.append(Violation(
                "number_format",
                f"'{sec.number}' is not a valid {level.numbering} number for {level.name}",
                citation=sec.citation, severity=WARNING,
            ))
        if sec.text == NO_CONTENT:
            warnings.append(Violation(
                "empty_section", "Section has no content",
                citation=sec.citation, severity=WARNING,
            ))

    for citation, lines in find_duplicates(sections).items():
        warnings.append(Violation(
            "duplicate_citation",
            f"Citation appears {len(lines)} times (lines {', '.join(str(n + 1) for n in lines)})",
            citation=citation, severity=WARNING,
        ))
    return warnings
