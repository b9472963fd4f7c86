"""Table of contents over persisted sections.

Anchors are numbered by ``document_order`` ("section-1", "section-2", ...)
so every section has a stable, unique link target within its document even
when citations repeat. Nesting follows ``parent_section_id``; rows whose
parent is missing (orphans left by failed links) are listed at the root.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from govdoc.section_store import PersistedSection

ANCHOR_PREFIX = "section-"


@dataclass(slots=True)
class TocEntry:
    section_id: int
    anchor: str
    citation: str
    title: str
    depth: int
    document_order: int
    children: list[TocEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "section_id": self.section_id,
            "anchor": self.anchor,
            "citation": self.citation,
            "title": self.title,
            "depth": self.depth,
            "document_order": self.document_order,
            "children": [c.to_dict() for c in self.children],
        }


def assign_anchor_numbers(sections: Sequence[PersistedSection]) -> dict[int, str]:
    """Map section id -> anchor, numbered 1..N in document order."""
    ordered = sorted(sections, key=lambda s: (s.document_order, s.id))
    return {sec.id: f"{ANCHOR_PREFIX}{i}" for i, sec in enumerate(ordered, start=1)}


def _entry(sec: PersistedSection, anchors: dict[int, str]) -> TocEntry:
    return TocEntry(
        section_id=sec.id,
        anchor=anchors[sec.id],
        citation=sec.citation,
        title=sec.title,
        depth=sec.depth,
        document_order=sec.document_order,
    )


def build_flat_toc(sections: Sequence[PersistedSection]) -> list[TocEntry]:
    """One entry per section in document order, without nesting."""
    anchors = assign_anchor_numbers(sections)
    ordered = sorted(sections, key=lambda s: (s.document_order, s.id))
    return [_entry(sec, anchors) for sec in ordered]


def build_table_of_contents(sections: Sequence[PersistedSection]) -> list[TocEntry]:
    """Nested entries following ``parent_section_id``; roots in document order."""
    anchors = assign_anchor_numbers(sections)
    ordered = sorted(sections, key=lambda s: (s.document_order, s.id))
    entries = {sec.id: _entry(sec, anchors) for sec in ordered}

    roots: list[TocEntry] = []
    for sec in ordered:
        parent = entries.get(sec.parent_section_id) if sec.parent_section_id is not None else None
        if parent is None:
            roots.append(entries[sec.id])
        else:
            parent.children.append(entries[sec.id])
    return roots
