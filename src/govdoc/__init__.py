"""Hierarchical structuring of governance documents: text to section trees."""

from govdoc.dedup import DedupStrategy, dedup, find_duplicates
from govdoc.hierarchy_config import (
    TEMPLATES,
    ConfigError,
    HeadingMatch,
    HierarchyConfig,
    HierarchyLevelConfig,
    build_matcher,
    get_template,
    validate,
)
from govdoc.hierarchy_detector import DetectedHeading, detect_hierarchy
from govdoc.numbering import NumberingStyle
from govdoc.persistence import LinkResult, WriteResult, write_sections
from govdoc.pipeline import ImportResult, import_document, parse_document
from govdoc.section_parser import NO_CONTENT, ParsedSection, ParseOptions, parse_sections
from govdoc.section_store import (
    PersistedSection,
    PersistenceError,
    SchemaVersionError,
    SectionStore,
)
from govdoc.toc import build_flat_toc, build_table_of_contents
from govdoc.tree_assembler import TreeSection, assemble
from govdoc.validator import Violation, validate_document, validate_parsed

__all__ = [
    "NO_CONTENT",
    "TEMPLATES",
    "ConfigError",
    "DedupStrategy",
    "DetectedHeading",
    "HeadingMatch",
    "HierarchyConfig",
    "HierarchyLevelConfig",
    "ImportResult",
    "LinkResult",
    "NumberingStyle",
    "ParseOptions",
    "ParsedSection",
    "PersistedSection",
    "PersistenceError",
    "SchemaVersionError",
    "SectionStore",
    "TreeSection",
    "Violation",
    "WriteResult",
    "assemble",
    "build_flat_toc",
    "build_matcher",
    "build_table_of_contents",
    "dedup",
    "detect_hierarchy",
    "find_duplicates",
    "get_template",
    "import_document",
    "parse_document",
    "parse_sections",
    "validate",
    "validate_document",
    "validate_parsed",
    "write_sections",
]
