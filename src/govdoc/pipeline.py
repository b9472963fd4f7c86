"""End-to-end entry points: text in, validated section tree out.

    validate config -> detect/segment -> dedup -> assemble -> persist -> validate

``parse_document`` stops after assembly and touches no storage, so it is
safe to run in worker processes. ``import_document`` runs the full chain
against one open SectionStore.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from govdoc.dedup import DedupStrategy, dedup
from govdoc.hierarchy_config import HierarchyConfig, validate
from govdoc.persistence import DEFAULT_BATCH_SIZE, LinkResult, write_sections
from govdoc.section_parser import ParseOptions, ParsedSection, parse_sections
from govdoc.section_store import PersistenceError, SectionStore
from govdoc.tree_assembler import TreeSection, assemble
from govdoc.validator import Violation, validate_document, validate_parsed

log = logging.getLogger(__name__)


@dataclass(slots=True)
class ParseResult:
    """Intermediate products of parsing one document."""

    parsed: list[ParsedSection]
    sections: list[TreeSection]
    warnings: list[Violation] = field(default_factory=list)

    @property
    def duplicates_dropped(self) -> int:
        return len(self.parsed) - len(self.sections)


@dataclass(slots=True)
class ImportResult:
    """Summary of one ``import_document`` run."""

    document_id: str
    sections: list[TreeSection]
    link_results: list[LinkResult]
    violations: list[Violation]
    parse_warnings: list[Violation]
    parsed_count: int
    duplicates_dropped: int
    replaced: int = 0

    @property
    def ok(self) -> bool:
        return not self.violations

    def to_dict(self) -> dict[str, Any]:
        return {
            "document_id": self.document_id,
            "ok": self.ok,
            "parsed_count": self.parsed_count,
            "section_count": len(self.sections),
            "duplicates_dropped": self.duplicates_dropped,
            "replaced": self.replaced,
            "failed_links": sum(1 for r in self.link_results if not r.ok),
            "violations": [v.to_dict() for v in self.violations],
            "parse_warnings": [v.to_dict() for v in self.parse_warnings],
        }


def run_parse(
    text: str,
    config: HierarchyConfig,
    *,
    options: ParseOptions | None = None,
    dedup_strategy: DedupStrategy | str = DedupStrategy.PREFER_NON_EMPTY,
) -> ParseResult:
    """Validate *config*, then segment, dedup and assemble *text*.

    Raises:
        ConfigError: if the config is invalid. Nothing is parsed.
    """
    validate(config)
    parsed = parse_sections(text, config, options=options)
    warnings = validate_parsed(parsed, config)
    sections = assemble(dedup(parsed, dedup_strategy))
    return ParseResult(parsed=parsed, sections=sections, warnings=warnings)


def parse_document(
    text: str,
    config: HierarchyConfig,
    *,
    options: ParseOptions | None = None,
    dedup_strategy: DedupStrategy | str = DedupStrategy.PREFER_NON_EMPTY,
) -> list[TreeSection]:
    """Parse *text* into an assembled section tree without storing it."""
    return run_parse(text, config, options=options, dedup_strategy=dedup_strategy).sections


def import_document(
    store: SectionStore,
    document_id: str,
    text: str,
    config: HierarchyConfig,
    *,
    title: str = "",
    source_path: str | None = None,
    options: ParseOptions | None = None,
    dedup_strategy: DedupStrategy | str = DedupStrategy.PREFER_NON_EMPTY,
    batch_size: int = DEFAULT_BATCH_SIZE,
    replace_existing: bool = True,
) -> ImportResult:
    """Parse *text* and persist it as the sections of *document_id*.

    Args:
        store: Open section store.
        document_id: Document to create, or to re-import into.
        text: Newline-joined document text.
        config: Hierarchy config.
        title: Document title stored on creation.
        source_path: Where the text came from, stored on creation.
        options: Segmenter options.
        dedup_strategy: Survivor policy for repeated citations.
        batch_size: Rows per phase-1 INSERT.
        replace_existing: Delete an existing document's sections first.
            When False, an existing document raises PersistenceError.

    Returns:
        ImportResult with the stored tree, link outcomes and violations.

    Raises:
        ConfigError: invalid config (before any parsing or writing).
        PersistenceError: existing document without *replace_existing*,
            or a phase-1 insert failure.
    """
    parse = run_parse(text, config, options=options, dedup_strategy=dedup_strategy)
    return store_parsed(
        store,
        document_id,
        parse,
        config_name=config.name,
        title=title,
        source_path=source_path,
        batch_size=batch_size,
        replace_existing=replace_existing,
    )


def store_parsed(
    store: SectionStore,
    document_id: str,
    parse: ParseResult,
    *,
    config_name: str = "",
    title: str = "",
    source_path: str | None = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
    replace_existing: bool = True,
) -> ImportResult:
    """Persist an already parsed document and validate what was stored.

    Split from ``import_document`` so parsing can run in worker processes
    while a single process owns the store connection.
    """
    log.info(
        "%s: %d sections parsed, %d after dedup",
        document_id, len(parse.parsed), len(parse.sections),
    )

    replaced = 0
    if store.get_document(document_id) is not None:
        if not replace_existing:
            raise PersistenceError(f"Document already imported: {document_id}")
        replaced = store.delete_sections(document_id)
        log.info("%s: replacing %d existing sections", document_id, replaced)
    else:
        store.create_document(
            document_id, title=title, config_name=config_name, source_path=source_path,
        )

    written = write_sections(store, document_id, parse.sections, batch_size=batch_size)
    violations = validate_document(store, document_id, link_results=written.link_results)

    return ImportResult(
        document_id=document_id,
        sections=parse.sections,
        link_results=written.link_results,
        violations=violations,
        parse_warnings=parse.warnings,
        parsed_count=len(parse.parsed),
        duplicates_dropped=parse.duplicates_dropped,
        replaced=replaced,
    )
