"""Two-phase writer from assembled sections to the section store.

Phase 1 inserts every section in ``document_order`` inside one transaction
and collects the ``temp_id -> id`` map from ``RETURNING``. Nothing is linked
yet because parents' real ids are unknown until their rows exist. A phase-1
failure rolls the whole batch back and raises PersistenceError.

Phase 2 re-walks the sections with a stack of real ids and writes each
row's ``parent_section_id``, ``path_ids`` and ``path_ordinals``. Link
failures are per row: they are logged, returned as ``LinkResult(ok=False)``
and leave that row orphaned for the validator to report.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from govdoc.section_store import PersistenceError, SectionStore
from govdoc.tree_assembler import TreeSection

log = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 50


@dataclass(frozen=True, slots=True)
class LinkResult:
    """Outcome of linking one inserted section."""

    section_id: int
    temp_id: int
    citation: str
    ok: bool
    error: str = ""


@dataclass(slots=True)
class WriteResult:
    """What ``write_sections`` produced."""

    document_id: str
    id_map: dict[int, int] = field(default_factory=dict)   # temp_id -> id
    link_results: list[LinkResult] = field(default_factory=list)

    @property
    def inserted(self) -> int:
        return len(self.id_map)

    @property
    def failed_links(self) -> list[LinkResult]:
        return [r for r in self.link_results if not r.ok]


def _insert_all(
    store: SectionStore,
    document_id: str,
    ordered: Sequence[TreeSection],
    batch_size: int,
) -> dict[int, int]:
    temp_by_order = {sec.document_order: sec.temp_id for sec in ordered}
    id_map: dict[int, int] = {}
    try:
        with store.transaction():
            for start in range(0, len(ordered), batch_size):
                batch = ordered[start:start + batch_size]
                returned = store.insert_section_batch(document_id, batch)
                if len(returned) != len(batch):
                    raise PersistenceError(
                        f"Batch at offset {start} returned {len(returned)} ids "
                        f"for {len(batch)} rows"
                    )
                for section_id, document_order in returned:
                    id_map[temp_by_order[document_order]] = section_id
                log.debug("Inserted sections %d-%d", start + 1, start + len(batch))
    except PersistenceError:
        raise
    except Exception as exc:
        raise PersistenceError(
            f"Failed to insert sections for {document_id}: {exc}"
        ) from exc
    return id_map


def _link_all(
    store: SectionStore,
    ordered: Sequence[TreeSection],
    id_map: dict[int, int],
) -> list[LinkResult]:
    # (depth, real_id, ordinal) of the open ancestors of the current row
    stack: list[tuple[int, int, int]] = []
    results: list[LinkResult] = []

    for sec in ordered:
        section_id = id_map[sec.temp_id]
        while stack and stack[-1][0] >= sec.depth:
            stack.pop()
        parent_id = stack[-1][1] if stack else None
        path_ids = [entry[1] for entry in stack] + [section_id]
        path_ordinals = [entry[2] for entry in stack] + [sec.ordinal]

        try:
            store.link_section(section_id, parent_id, path_ids, path_ordinals)
        except Exception as exc:  # per-row, reported to the validator
            log.warning(
                "Failed to link section %d (%s): %s", section_id, sec.citation, exc,
            )
            results.append(LinkResult(section_id, sec.temp_id, sec.citation, ok=False, error=str(exc)))
        else:
            results.append(LinkResult(section_id, sec.temp_id, sec.citation, ok=True))
        stack.append((sec.depth, section_id, sec.ordinal))

    return results


def write_sections(
    store: SectionStore,
    document_id: str,
    sections: Sequence[TreeSection],
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> WriteResult:
    """Persist assembled sections and their materialized paths.

    Args:
        store: Open section store.
        document_id: Owning document (must already exist in ``documents``).
        sections: Output of ``tree_assembler.assemble``.
        batch_size: Rows per INSERT statement in phase 1.

    Returns:
        WriteResult with the id map and one LinkResult per section.

    Raises:
        PersistenceError: if any phase-1 insert fails. Nothing is written.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    ordered = sorted(sections, key=lambda s: s.document_order)
    result = WriteResult(document_id=document_id)
    if not ordered:
        return result

    result.id_map = _insert_all(store, document_id, ordered, batch_size)
    log.info("Inserted %d sections for %s", len(result.id_map), document_id)

    result.link_results = _link_all(store, ordered, result.id_map)
    failed = len(result.failed_links)
    if failed:
        log.warning("%d of %d sections could not be linked", failed, len(ordered))
    return result
