#!/usr/bin/env python3
"""Import governance documents into a DuckDB section database.

Reads one or more text/Markdown files, segments each into a section tree
with a hierarchy config (built-in template or JSON file), writes the
sections with their materialized paths and validates the stored result.

Parsing runs in worker processes; all writes go through one store
connection in the main process.

Usage:
    python3 scripts/import_document.py --db sections.duckdb \
        --input bylaws.txt --template standard-bylaws --document-id bylaws-2024

    # Several files, parsed in parallel, config from JSON:
    python3 scripts/import_document.py --db sections.duckdb \
        --input docs/*.md --config hierarchy.json --workers 4

    # Parse only, print the tree:
    python3 scripts/import_document.py --input bylaws.txt --dry-run

Structured JSON output goes to stdout; human messages go to stderr.
"""
from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from multiprocessing import Pool
from pathlib import Path
from typing import Any, TypeAlias

import orjson

from govdoc.dedup import DedupStrategy
from govdoc.hierarchy_config import (
    DEFAULT_TEMPLATE,
    TEMPLATES,
    ConfigError,
    HierarchyConfig,
    get_template,
    validate,
)
from govdoc.persistence import DEFAULT_BATCH_SIZE
from govdoc.pipeline import ParseResult, run_parse, store_parsed
from govdoc.section_parser import ParseOptions
from govdoc.section_store import PersistenceError, SchemaVersionError, SectionStore
from govdoc.text_sources import source_for_path

log = logging.getLogger("import_document")


def dump_json(obj: Any) -> None:
    sys.stdout.buffer.write(orjson.dumps(obj, option=orjson.OPT_INDENT_2))
    sys.stdout.buffer.write(b"\n")


# ---------------------------------------------------------------------------
# Worker
# ---------------------------------------------------------------------------

# (path, config payload, markdown flag or None, skip_toc, capture_preamble, dedup strategy)
WorkItem: TypeAlias = tuple[str, dict[str, Any], bool | None, bool, bool, str]


def _parse_one(item: WorkItem) -> tuple[str, ParseResult | None, str]:
    """Parse one file; returns (path, result, error message)."""
    path_str, config_payload, markdown, skip_toc, capture_preamble, strategy = item
    path = Path(path_str)
    try:
        # Configs travel as dicts; cached matchers do not pickle.
        config = HierarchyConfig.from_dict(config_payload)
        text = source_for_path(path, config, markdown=markdown).extract_text()
        result = run_parse(
            text,
            config,
            options=ParseOptions(skip_toc=skip_toc, capture_preamble=capture_preamble),
            dedup_strategy=strategy,
        )
    except (OSError, ConfigError) as exc:
        return path_str, None, f"{type(exc).__name__}: {exc}"
    return path_str, result, ""


def _load_config(args: argparse.Namespace) -> HierarchyConfig:
    if args.config is not None:
        config = HierarchyConfig.from_json(args.config)
    else:
        config = get_template(args.template)
    validate(config)
    return config


def _section_payload(result: ParseResult) -> list[dict[str, Any]]:
    return [dataclasses.asdict(sec) for sec in result.sections]


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Import governance documents into a DuckDB section database.",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Path to the section DuckDB file (created if missing; not needed with --dry-run)",
    )
    parser.add_argument(
        "--input",
        type=Path,
        nargs="+",
        required=True,
        help="Text or Markdown files to import",
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Hierarchy config JSON file",
    )
    group.add_argument(
        "--template",
        choices=sorted(TEMPLATES),
        default=DEFAULT_TEMPLATE,
        help=f"Built-in hierarchy template (default: {DEFAULT_TEMPLATE})",
    )
    parser.add_argument(
        "--document-id",
        default=None,
        help="Document id (single input only; default: file stem)",
    )
    parser.add_argument(
        "--title",
        default="",
        help="Document title (single input only)",
    )
    parser.add_argument(
        "--dedup-strategy",
        choices=[s.value for s in DedupStrategy],
        default=DedupStrategy.PREFER_NON_EMPTY.value,
        help="Which duplicate-citation section survives (default: prefer_non_empty)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=DEFAULT_BATCH_SIZE,
        help=f"Rows per insert batch (default: {DEFAULT_BATCH_SIZE})",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Parallel parse workers (default: 1)",
    )
    parser.add_argument(
        "--markdown",
        action="store_true",
        default=None,
        help="Treat inputs as Markdown (default: by file extension)",
    )
    parser.add_argument(
        "--keep-toc",
        action="store_true",
        help="Do not skip table-of-contents blocks",
    )
    parser.add_argument(
        "--no-preamble",
        action="store_true",
        help="Drop text before the first heading instead of keeping it as a Preamble section",
    )
    parser.add_argument(
        "--no-replace",
        action="store_true",
        help="Fail instead of replacing an already imported document",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse only; print the assembled sections",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Debug logging to stderr",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )

    if (args.document_id or args.title) and len(args.input) > 1:
        parser.error("--document-id/--title require a single --input")
    if args.db is None and not args.dry_run:
        parser.error("--db is required unless --dry-run is given")
    if args.batch_size < 1:
        parser.error("--batch-size must be >= 1")

    try:
        config = _load_config(args)
    except (ConfigError, OSError) as exc:
        log.error("Invalid hierarchy config: %s", exc)
        return 2

    work: list[WorkItem] = [
        (
            str(path),
            config.to_dict(),
            args.markdown,
            not args.keep_toc,
            not args.no_preamble,
            args.dedup_strategy,
        )
        for path in args.input
    ]

    workers = max(1, min(args.workers, len(work)))
    if workers == 1:
        parsed = [_parse_one(item) for item in work]
    else:
        log.info("Parsing %d files with %d workers", len(work), workers)
        with Pool(processes=workers) as pool:
            parsed = list(pool.imap_unordered(_parse_one, work))
    parsed.sort(key=lambda r: r[0])

    errors: list[dict[str, str]] = []
    outputs: list[dict[str, Any]] = []

    if args.dry_run:
        for path_str, result, error in parsed:
            if result is None:
                errors.append({"input": path_str, "error": error})
                continue
            outputs.append({
                "input": path_str,
                "parsed_count": len(result.parsed),
                "duplicates_dropped": result.duplicates_dropped,
                "parse_warnings": [w.to_dict() for w in result.warnings],
                "sections": _section_payload(result),
            })
        dump_json({"config": config.name, "documents": outputs, "errors": errors})
        return 1 if errors else 0

    try:
        store = SectionStore(args.db, create_if_missing=True)
    except SchemaVersionError as exc:
        log.error("%s", exc)
        return 2

    with store:
        for path_str, result, error in parsed:
            if result is None:
                log.error("%s: %s", path_str, error)
                errors.append({"input": path_str, "error": error})
                continue
            document_id = args.document_id or Path(path_str).stem
            try:
                imported = store_parsed(
                    store,
                    document_id,
                    result,
                    config_name=config.name,
                    title=args.title,
                    source_path=path_str,
                    batch_size=args.batch_size,
                    replace_existing=not args.no_replace,
                )
            except PersistenceError as exc:
                log.error("%s: %s", document_id, exc)
                errors.append({"input": path_str, "error": str(exc)})
                continue
            payload = imported.to_dict()
            payload["input"] = path_str
            outputs.append(payload)
            print(
                f"{document_id}: {len(imported.sections)} sections, "
                f"{len(imported.violations)} violations",
                file=sys.stderr,
            )

    dump_json({"config": config.name, "documents": outputs, "errors": errors})
    if errors or any(not o["ok"] for o in outputs):
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
