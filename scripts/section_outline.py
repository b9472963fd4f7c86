#!/usr/bin/env python3
"""Print the table of contents of an imported document.

Usage:
    python3 scripts/section_outline.py --db sections.duckdb --document-id bylaws-2024
    python3 scripts/section_outline.py --db sections.duckdb --document-id bylaws-2024 --flat

Structured JSON output goes to stdout; with --text an indented outline is
printed instead.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

import orjson

from govdoc.section_store import SchemaVersionError, SectionStore
from govdoc.toc import TocEntry, build_flat_toc, build_table_of_contents

log = logging.getLogger("section_outline")


def dump_json(obj: Any) -> None:
    sys.stdout.buffer.write(orjson.dumps(obj, option=orjson.OPT_INDENT_2))
    sys.stdout.buffer.write(b"\n")


def format_outline(entries: list[TocEntry], indent: str = "  ") -> list[str]:
    """Render nested entries as indented ``citation - title`` lines."""
    lines: list[str] = []

    def walk(nodes: list[TocEntry], level: int) -> None:
        for node in nodes:
            heading = f"{node.citation} - {node.title}" if node.title else node.citation
            lines.append(f"{indent * level}{heading}")
            walk(node.children, level + 1)

    walk(entries, 0)
    return lines


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Print the table of contents of an imported document.",
    )
    parser.add_argument("--db", type=Path, required=True, help="Path to the section DuckDB file")
    parser.add_argument("--document-id", required=True, help="Document to outline")
    parser.add_argument("--flat", action="store_true", help="Flat list in document order")
    parser.add_argument("--text", action="store_true", help="Indented plain-text outline")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging to stderr")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )

    try:
        store = SectionStore(args.db)
    except (FileNotFoundError, SchemaVersionError) as exc:
        log.error("%s", exc)
        return 2

    with store:
        if store.get_document(args.document_id) is None:
            log.error("Unknown document: %s", args.document_id)
            return 2
        sections = store.get_sections(args.document_id)

    entries = build_flat_toc(sections) if args.flat else build_table_of_contents(sections)
    if args.text:
        for line in format_outline(entries):
            print(line)
        return 0

    dump_json({
        "document_id": args.document_id,
        "section_count": len(sections),
        "entries": [e.to_dict() for e in entries],
    })
    return 0


if __name__ == "__main__":
    sys.exit(main())
