"""Hierarchy level configuration and heading matchers.

A HierarchyConfig declares the numbering scheme for each of the ten nesting
depths (0-9) a governance document may use, e.g.::

    depth 0  Article     roman      "Article "     -> "ARTICLE IV"
    depth 1  Section     numeric    "Section "     -> "Section 3:"
    depth 3  Paragraph   alphaLower "(" ... ")"    -> "(b)"

Each level compiles to a pure matcher ``line -> HeadingMatch | None``. The
numbering style is selected once, when the matcher is built; matchers are
cached per config instance.

Configs come from built-in templates (``get_template``), plain dicts
(``HierarchyConfig.from_dict``) or JSON files (``HierarchyConfig.from_json``).
"""
from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path
from typing import Any, TypeAlias

import orjson

from govdoc.numbering import NumberingStyle

NUM_LEVELS = 10
MAX_DEPTH = NUM_LEVELS - 1


class ConfigError(ValueError):
    """Raised when a hierarchy configuration is incomplete or malformed."""


# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class HeadingMatch:
    """Result of running a level matcher against one line."""

    number_text: str       # "IV", "3", "b"
    rest: str              # Text after the matched token (stripped)
    full_match_text: str   # "ARTICLE IV", "Section 3:", "(b)"


Matcher: TypeAlias = Callable[[str], HeadingMatch | None]


@dataclass(frozen=True, slots=True)
class HierarchyLevelConfig:
    """Numbering scheme for one depth of the hierarchy."""

    depth: int
    name: str              # "Article", "Section", ...
    numbering: str         # One of NumberingStyle values
    prefix: str = ""       # Text before the number: "Article ", "("
    suffix: str = ""       # Text after the number: ")", "."

    @property
    def type(self) -> str:
        """Section type tag derived from the level name ("article")."""
        return re.sub(r"\s+", "_", self.name.strip().lower())

    @property
    def style(self) -> NumberingStyle:
        """The numbering variant; raises ConfigError if unrecognised."""
        try:
            return NumberingStyle(self.numbering)
        except ValueError:
            allowed = ", ".join(s.value for s in NumberingStyle)
            raise ConfigError(
                f"Unknown numbering '{self.numbering}' at depth {self.depth} "
                f"({self.name}); expected one of: {allowed}"
            ) from None

    def label(self, number: str) -> str:
        """Local label for a section at this level: prefix + number + suffix."""
        return f"{self.prefix}{number}{self.suffix}"

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "depth": self.depth,
            "name": self.name,
            "numbering": self.numbering,
            "prefix": self.prefix,
        }
        if self.suffix:
            out["suffix"] = self.suffix
        return out


# ---------------------------------------------------------------------------
# Matcher construction
# ---------------------------------------------------------------------------

# One trailing "." or ":" belongs to the heading token; the token must then
# be followed by whitespace, a dash/colon separator, a closing paren, or EOL.
_TOKEN_END = r"[.:]?(?=$|[\s\-–—:;,)])"

# Line-start enumerations without prefix or suffix ("1.", "a)") need an
# explicit delimiter, otherwise every line starting with a digit matches.
_BARE_TOKEN_END = r"[.)](?=\s|$)"


def _heading_regex(level: HierarchyLevelConfig) -> re.Pattern[str]:
    style = level.style
    prefix = level.prefix.strip()
    suffix = level.suffix.strip()

    parts: list[str] = []
    if prefix:
        parts.append(f"(?i:{re.escape(prefix)})")
        # "Article IV" needs the gap; "(iv)" does not.
        parts.append(r"\s+" if prefix[-1].isalnum() else r"\s*")
    parts.append(f"(?P<number>{style.pattern})")
    if suffix:
        parts.append(re.escape(suffix))
    parts.append(_TOKEN_END if (prefix or suffix) else _BARE_TOKEN_END)
    return re.compile("".join(parts))


def build_matcher(level: HierarchyLevelConfig) -> Matcher:
    """Build a pure heading matcher for *level*.

    The matcher trims the line and only accepts a match anchored at the start
    of the trimmed text.
    """
    regex = _heading_regex(level)

    def _match(line: str) -> HeadingMatch | None:
        trimmed = line.strip()
        m = regex.match(trimmed)
        if m is None:
            return None
        return HeadingMatch(
            number_text=m.group("number"),
            rest=trimmed[m.end():].strip(),
            full_match_text=m.group(0),
        )

    return _match


# ---------------------------------------------------------------------------
# HierarchyConfig
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HierarchyConfig:
    """Ten-level numbering configuration, read-only to the parsing core."""

    levels: tuple[HierarchyLevelConfig, ...]
    name: str = "custom"
    description: str = field(default="", compare=False)

    @cached_property
    def matchers(self) -> tuple[tuple[HierarchyLevelConfig, Matcher], ...]:
        """(level, matcher) pairs ordered by depth, built once per instance."""
        ordered = sorted(self.levels, key=lambda lv: lv.depth)
        return tuple((lv, build_matcher(lv)) for lv in ordered)

    def level_for_depth(self, depth: int) -> HierarchyLevelConfig | None:
        for level in self.levels:
            if level.depth == depth:
                return level
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "levels": [lv.to_dict() for lv in sorted(self.levels, key=lambda lv: lv.depth)],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> HierarchyConfig:
        """Build a config from a payload.

        Accepts ``{"levels": [...]}`` or the organization-config shape
        ``{"hierarchy": {"levels": [...]}}``. Structural problems in the
        payload raise ConfigError; depth coverage and numbering variants are
        checked by ``validate``.
        """
        if not isinstance(data, Mapping):
            raise ConfigError("Hierarchy config must be a JSON object")
        body: Mapping[str, Any] = data
        hierarchy = data.get("hierarchy")
        if isinstance(hierarchy, Mapping):
            body = hierarchy
        raw_levels = body.get("levels")
        if not isinstance(raw_levels, list):
            raise ConfigError("Hierarchy config requires a 'levels' list")

        levels: list[HierarchyLevelConfig] = []
        for i, raw in enumerate(raw_levels):
            if not isinstance(raw, Mapping):
                raise ConfigError(f"Level #{i} must be an object, got {type(raw).__name__}")
            depth = raw.get("depth")
            if not isinstance(depth, int) or isinstance(depth, bool):
                raise ConfigError(f"Level #{i} has a non-integer depth: {depth!r}")
            levels.append(HierarchyLevelConfig(
                depth=depth,
                name=str(raw.get("name") or f"Level {depth + 1}"),
                numbering=str(raw.get("numbering", "")),
                prefix=str(raw.get("prefix") or ""),
                suffix=str(raw.get("suffix") or ""),
            ))
        return cls(
            levels=tuple(levels),
            name=str(data.get("name") or body.get("name") or "custom"),
            description=str(data.get("description") or ""),
        )

    @classmethod
    def from_json(cls, path: Path) -> HierarchyConfig:
        """Load from a JSON config file."""
        try:
            data = orjson.loads(path.read_bytes())
        except orjson.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in hierarchy config {path}: {exc}") from exc
        return cls.from_dict(data)


def validate(config: HierarchyConfig) -> None:
    """Fail fast unless depths 0..9 appear exactly once with known numbering.

    Raises:
        ConfigError: on a missing, duplicated or out-of-range depth, or an
            unrecognised numbering variant.
    """
    seen: dict[int, HierarchyLevelConfig] = {}
    for level in config.levels:
        if not 0 <= level.depth <= MAX_DEPTH:
            raise ConfigError(
                f"Level '{level.name}' has depth {level.depth}; depths must be 0..{MAX_DEPTH}"
            )
        if level.depth in seen:
            raise ConfigError(
                f"Depth {level.depth} is defined twice "
                f"('{seen[level.depth].name}' and '{level.name}')"
            )
        seen[level.depth] = level
        level.style  # noqa: B018 - raises ConfigError when unknown

    missing = [d for d in range(NUM_LEVELS) if d not in seen]
    if missing:
        raise ConfigError(
            f"Hierarchy config '{config.name}' is missing depth(s): "
            + ", ".join(str(d) for d in missing)
        )


# ---------------------------------------------------------------------------
# Built-in templates
# ---------------------------------------------------------------------------

def _levels(*rows: tuple[str, str, str, str]) -> tuple[HierarchyLevelConfig, ...]:
    return tuple(
        HierarchyLevelConfig(depth=i, name=name, numbering=numbering, prefix=prefix, suffix=suffix)
        for i, (name, numbering, prefix, suffix) in enumerate(rows)
    )


TEMPLATES: dict[str, HierarchyConfig] = {
    "standard-bylaws": HierarchyConfig(
        name="standard-bylaws",
        description="Traditional bylaws structure with Roman numerals for articles",
        levels=_levels(
            ("Article", "roman", "Article ", ""),
            ("Section", "numeric", "Section ", ""),
            ("Subsection", "numeric", "", ""),
            ("Paragraph", "alphaLower", "(", ")"),
            ("Subparagraph", "numeric", "(", ")"),
            ("Clause", "alphaUpper", "", "."),
            ("Subclause", "roman", "", ")"),
            ("Item", "numeric", "•", ""),
            ("Subitem", "alphaLower", "◦", ""),
            ("Point", "numeric", "-", ""),
        ),
    ),
    "legal-document": HierarchyConfig(
        name="legal-document",
        description="Legal document structure with chapters and clauses",
        levels=_levels(
            ("Chapter", "roman", "Chapter ", ""),
            ("Section", "numeric", "Section ", ""),
            ("Clause", "numeric", "Clause ", ""),
            ("Subclause", "numeric", "", ""),
            ("Paragraph", "alphaLower", "(", ")"),
            ("Subparagraph", "numeric", "(", ")"),
            ("Item", "alphaUpper", "", "."),
            ("Subitem", "roman", "", ")"),
            ("Point", "numeric", "•", ""),
            ("Subpoint", "alphaUpper", "◦", ""),
        ),
    ),
    "policy-manual": HierarchyConfig(
        name="policy-manual",
        description="Corporate policy structure",
        levels=_levels(
            ("Part", "roman", "Part ", ""),
            ("Section", "numeric", "Section ", ""),
            ("Paragraph", "numeric", "", ""),
            ("Subparagraph", "alphaLower", "(", ")"),
            ("Item", "numeric", "(", ")"),
            ("Subitem", "alphaUpper", "", "."),
            ("Clause", "roman", "", ")"),
            ("Subclause", "numeric", "•", ""),
            ("Point", "alphaLower", "◦", ""),
            ("Detail", "numeric", "-", ""),
        ),
    ),
    "technical-standard": HierarchyConfig(
        name="technical-standard",
        description="Technical standard with numbered parts and clauses",
        levels=_levels(
            ("Part", "numeric", "Part ", ""),
            ("Clause", "numeric", "Clause ", ""),
            ("Subclause", "numeric", "", ""),
            ("Paragraph", "alphaLower", "(", ")"),
            ("Subparagraph", "numeric", "(", ")"),
            ("Item", "alphaUpper", "", "."),
            ("Subitem", "roman", "", ")"),
            ("Point", "numeric", "•", ""),
            ("Subpoint", "alphaLower", "◦", ""),
            ("Detail", "numeric", "-", ""),
        ),
    ),
}

DEFAULT_TEMPLATE = "standard-bylaws"


def get_template(name: str = DEFAULT_TEMPLATE) -> HierarchyConfig:
    """Return a built-in template by name."""
    try:
        return TEMPLATES[name]
    except KeyError:
        raise ConfigError(
            f"Unknown hierarchy template '{name}'; available: {', '.join(sorted(TEMPLATES))}"
        ) from None
