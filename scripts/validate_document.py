#!/usr/bin/env python3
"""Check the stored section tree of a document for structural violations.

Usage:
    python3 scripts/validate_document.py --db sections.duckdb --document-id bylaws-2024

Structured JSON output goes to stdout; human messages go to stderr.
Exit status is 1 when any violation is found.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

import orjson

from govdoc.section_store import SchemaVersionError, SectionStore
from govdoc.validator import validate_document

log = logging.getLogger("validate_document")


def dump_json(obj: Any) -> None:
    sys.stdout.buffer.write(orjson.dumps(obj, option=orjson.OPT_INDENT_2))
    sys.stdout.buffer.write(b"\n")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Validate the stored section tree of a document.",
    )
    parser.add_argument("--db", type=Path, required=True, help="Path to the section DuckDB file")
    parser.add_argument("--document-id", required=True, help="Document to validate")
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
        section_count = store.count_sections(args.document_id)
        violations = validate_document(store, args.document_id)

    dump_json({
        "document_id": args.document_id,
        "section_count": section_count,
        "ok": not violations,
        "violations": [v.to_dict() for v in violations],
    })
    return 1 if violations else 0


if __name__ == "__main__":
    sys.exit(main())
