"""Tree assembly: parent links and ordering fields for a flat section list.

Walks the sections in document order with an explicit stack of
``(depth, temp_id)`` entries. ``temp_id`` is the section's index in the
input; real database ids do not exist yet and are mapped in by the
persistence writer.

Two ordering fields with different contracts come out of the walk:

    ordinal         1-based position among siblings that share the same
                    parent and depth (restarts under every parent)
    document_order  1..N over the whole document
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from govdoc.section_parser import ParsedSection


@dataclass(frozen=True, slots=True)
class TreeSection:
    """A parsed section placed in the document tree."""

    type: str
    depth: int
    number: str
    prefix: str
    title: str
    citation: str
    text: str
    origin_line: int
    label: str
    temp_id: int
    parent_temp_id: int | None
    ordinal: int
    document_order: int


def assemble(sections: Sequence[ParsedSection]) -> list[TreeSection]:
    """Assign ``temp_id``, ``parent_temp_id``, ``ordinal`` and ``document_order``.

    A section whose depth skips levels (depth 3 directly under depth 1)
    attaches to the nearest shallower section on the stack.
    """
    stack: list[tuple[int, int]] = []
    sibling_counts: dict[tuple[int | None, int], int] = {}
    out: list[TreeSection] = []

    for temp_id, sec in enumerate(sections):
        # Pop stack until we find a section with depth < current depth
        while stack and stack[-1][0] >= sec.depth:
            stack.pop()
        parent_temp_id = stack[-1][1] if stack else None

        key = (parent_temp_id, sec.depth)
        ordinal = sibling_counts.get(key, 0) + 1
        sibling_counts[key] = ordinal

        out.append(TreeSection(
            type=sec.type,
            depth=sec.depth,
            number=sec.number,
            prefix=sec.prefix,
            title=sec.title,
            citation=sec.citation,
            text=sec.text,
            origin_line=sec.origin_line,
            label=sec.label,
            temp_id=temp_id,
            parent_temp_id=parent_temp_id,
            ordinal=ordinal,
            document_order=len(out) + 1,
        ))
        stack.append((sec.depth, temp_id))

    return out
