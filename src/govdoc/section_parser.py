"""Line segmenter: turns document text into flat, ordered sections.

Single forward scan over the lines of the document:

    1. A heading line closes the open section and opens a new one.
    2. Any other non-blank line inside a section is appended to its body
       verbatim (untrimmed). Blank lines are dropped.
    3. End of input closes the last section.

Two adjacent headings produce an empty section whose text is the
``NO_CONTENT`` sentinel; sections are never merged. Citations are built from
a depth-indexed list of ancestor labels that is cleared below each new
heading, so "Section 1" under Article II reads "Article II, Section 1".

Non-blank text before the first heading becomes a ``Preamble`` section
unless it is shorter than ``PREAMBLE_MIN_CHARS``.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from govdoc.hierarchy_config import NUM_LEVELS, HierarchyConfig
from govdoc.hierarchy_detector import MAX_HEADER_LINE_LEN, DetectedHeading, detect_line

log = logging.getLogger(__name__)

NO_CONTENT = "(No content)"
PREAMBLE_TYPE = "preamble"
PREAMBLE_CITATION = "Preamble"
# Shorter leading text (a stray page number, "CONTENTS") is not a preamble.
PREAMBLE_MIN_CHARS = 10

# TOC scanning: a "Table of Contents" header followed by at least
# TOC_MIN_ENTRIES dotted-leader lines within TOC_SCAN_LINES lines.
TOC_SCAN_LINES = 100
TOC_MIN_ENTRIES = 3


# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ParseOptions:
    """Knobs for ``parse_sections``."""

    skip_toc: bool = True
    capture_preamble: bool = True


@dataclass(frozen=True, slots=True)
class ParsedSection:
    """A section before tree assembly."""

    type: str           # "article", "section", ...
    depth: int
    number: str         # "I", "1", "a"
    prefix: str         # "Article "
    title: str          # "Name"
    citation: str       # "Article I, Section 1"
    text: str           # Body, or NO_CONTENT
    origin_line: int    # Zero-based line index of the heading
    label: str = ""     # "Section 1"

    @property
    def has_content(self) -> bool:
        return bool(self.text.strip()) and self.text != NO_CONTENT


# ---------------------------------------------------------------------------
# Line helpers
# ---------------------------------------------------------------------------

_TITLE_SEPARATOR_RE = re.compile(r"^\s*[:\-–—]\s*")


def extract_title(rest: str) -> str:
    """Title text after a heading token, minus one leading separator.

    >>> extract_title(": Purpose")
    'Purpose'
    >>> extract_title("— Officers")
    'Officers'
    """
    return _TITLE_SEPARATOR_RE.sub("", rest, count=1).strip()


def is_header_line(line: str, heading: DetectedHeading | None) -> bool:
    """Whether *line* opens a section given its detection result."""
    if heading is None:
        return False
    trimmed = line.strip()
    return len(trimmed) < MAX_HEADER_LINE_LEN and trimmed.startswith(heading.full_match_text)


_TOC_HEADER_RE = re.compile(r"^\s*(?:table\s+of\s+)?contents\s*:?\s*$", re.IGNORECASE)
_TOC_ENTRY_RE = re.compile(r"\.{3,}\s*\d+\s*$")


def find_toc_lines(lines: list[str]) -> set[int]:
    """Line indices belonging to table-of-contents blocks.

    A block runs from its "Table of Contents" header to the last
    dotted-leader entry (``Purpose ........ 3``) found within the next
    ``TOC_SCAN_LINES`` lines, and only counts when it has at least
    ``TOC_MIN_ENTRIES`` such entries.
    """
    toc: set[int] = set()
    i = 0
    while i < len(lines):
        if not _TOC_HEADER_RE.match(lines[i]):
            i += 1
            continue
        window_end = min(len(lines), i + 1 + TOC_SCAN_LINES)
        entries = [j for j in range(i + 1, window_end) if _TOC_ENTRY_RE.search(lines[j])]
        if len(entries) >= TOC_MIN_ENTRIES:
            toc.update(range(i, entries[-1] + 1))
            i = entries[-1] + 1
        else:
            i += 1
    return toc


def _finish_text(buffer: list[str]) -> str:
    text = "\n".join(buffer).strip()
    return text or NO_CONTENT


# ---------------------------------------------------------------------------
# Segmenter
# ---------------------------------------------------------------------------


def parse_sections(
    text: str,
    config: HierarchyConfig,
    *,
    options: ParseOptions | None = None,
) -> list[ParsedSection]:
    """Segment *text* into sections in document order.

    Args:
        text: Newline-joined document text.
        config: Hierarchy config (assumed valid; see ``hierarchy_config.validate``).
        options: TOC skipping and preamble capture; defaults to ``ParseOptions()``.

    Returns:
        Flat list of ParsedSection, one per heading (plus an optional
        preamble first).
    """
    opts = options or ParseOptions()
    lines = text.split("\n")
    skip = find_toc_lines(lines) if opts.skip_toc else set()
    if skip:
        log.debug("Skipping %d table-of-contents lines", len(skip))

    sections: list[ParsedSection] = []
    context: list[str | None] = [None] * NUM_LEVELS
    preamble: list[str] = []
    preamble_start = 0
    current: DetectedHeading | None = None
    current_citation = ""
    current_label = ""
    buffer: list[str] = []

    def flush() -> None:
        if current is None:
            return
        sections.append(ParsedSection(
            type=_level_type(config, current.depth),
            depth=current.depth,
            number=current.raw_number_text,
            prefix=current.prefix,
            title=extract_title(current.rest),
            citation=current_citation,
            text=_finish_text(buffer),
            origin_line=current.line_index,
            label=current_label,
        ))

    for i, line in enumerate(lines):
        if i in skip:
            continue
        heading = detect_line(line, config, i)
        if heading is not None and is_header_line(line, heading):
            if current is None and opts.capture_preamble:
                _append_preamble(sections, preamble, preamble_start)
            flush()
            current = heading
            buffer = []
            current_label = f"{heading.prefix}{heading.raw_number_text}{heading.suffix}".strip()
            context[heading.depth] = current_label
            for d in range(heading.depth + 1, NUM_LEVELS):
                context[d] = None
            current_citation = ", ".join(c for c in context[: heading.depth + 1] if c)
        elif line.strip():
            if current is not None:
                buffer.append(line)
            elif opts.capture_preamble:
                if not preamble:
                    preamble_start = i
                preamble.append(line)

    if current is None and opts.capture_preamble:
        _append_preamble(sections, preamble, preamble_start)
    flush()

    log.debug("Parsed %d sections from %d lines", len(sections), len(lines))
    return sections


def _level_type(config: HierarchyConfig, depth: int) -> str:
    level = config.level_for_depth(depth)
    return level.type if level is not None else f"level_{depth}"


def _preamble_section(lines: list[str], origin_line: int) -> ParsedSection:
    return ParsedSection(
        type=PREAMBLE_TYPE,
        depth=0,
        number="",
        prefix="",
        title=PREAMBLE_CITATION,
        citation=PREAMBLE_CITATION,
        text=_finish_text(lines),
        origin_line=origin_line,
        label=PREAMBLE_CITATION,
    )


def _append_preamble(sections: list[ParsedSection], lines: list[str], origin_line: int) -> None:
    if len("\n".join(lines).strip()) < PREAMBLE_MIN_CHARS:
        if lines:
            log.debug("Ignoring %d-line leading fragment at line %d", len(lines), origin_line)
        return
    sections.append(_preamble_section(lines, origin_line))
