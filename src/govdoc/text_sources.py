"""Text sources feeding the parsing pipeline.

The structuring core consumes one newline-joined string. Sources here turn
files into that string; word-processor and online-document extraction live
outside this package and only need to satisfy ``TextSource``.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from govdoc.hierarchy_config import HierarchyConfig

log = logging.getLogger(__name__)


@runtime_checkable
class TextSource(Protocol):
    """Anything that can hand the parser a newline-joined text blob."""

    def extract_text(self) -> str: ...


def read_file(fpath: Path, *, min_size: int = 0) -> str:
    """Document text from *fpath*, or "" for files under *min_size* bytes.

    Exports from word processors are often CP1252 rather than UTF-8 (smart
    quotes, section signs). A file neither encoding can decode is read with
    replacement characters so a single bad byte does not lose the document.
    Unreadable paths raise ``OSError``.
    """
    if min_size > 0 and fpath.stat().st_size < min_size:
        return ""
    data = fpath.read_bytes()
    for encoding in ("utf-8", "cp1252"):
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    log.debug("Falling back to lossy decode for %s", fpath)
    return data.decode("utf-8", errors="replace")


def normalize_newlines(text: str) -> str:
    """Convert CRLF / CR line endings to LF and drop a leading BOM."""
    return text.lstrip("\ufeff").replace("\r\n", "\n").replace("\r", "\n")


_MD_HEADER_RE = re.compile(r"^\s{0,3}#{1,6}\s+(.*?)\s*#*\s*$")


def preprocess_markdown(text: str, config: HierarchyConfig) -> str:
    """Strip Markdown header markers from lines that carry hierarchy headings.

    ``## Article I - Name`` becomes ``Article I - Name`` when the header
    content starts with one of the config's non-empty level prefixes
    (case-insensitive). Other Markdown headers are left untouched.
    """
    prefixes = tuple(
        lv.prefix.strip().lower() for lv in config.levels if lv.prefix.strip()
    )
    out: list[str] = []
    stripped = 0
    for line in text.split("\n"):
        m = _MD_HEADER_RE.match(line)
        if m and m.group(1).lower().startswith(prefixes):
            out.append(m.group(1))
            stripped += 1
        else:
            out.append(line)
    if stripped:
        log.debug("Stripped markdown markers from %d header lines", stripped)
    return "\n".join(out)


@dataclass(frozen=True, slots=True)
class PlainTextSource:
    """A plain ``.txt`` file."""

    path: Path

    def extract_text(self) -> str:
        return normalize_newlines(read_file(self.path))


@dataclass(frozen=True, slots=True)
class MarkdownSource:
    """A Markdown file whose headings follow *config*'s level prefixes."""

    path: Path
    config: HierarchyConfig

    def extract_text(self) -> str:
        return preprocess_markdown(normalize_newlines(read_file(self.path)), self.config)


def source_for_path(path: Path, config: HierarchyConfig, *, markdown: bool | None = None) -> TextSource:
    """Pick a source by flag, or by file extension when *markdown* is None."""
    if markdown is None:
        markdown = path.suffix.lower() in {".md", ".markdown"}
    if markdown:
        return MarkdownSource(path, config)
    return PlainTextSource(path)
