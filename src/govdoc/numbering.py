"""Numbering utilities for hierarchy labels.

Converts between integers and the four label styles a hierarchy level can
use:

  roman       I, II, III, IV, ... (upper or lower case, canonical form only)
  numeric     1, 2, 3, ...
  alphaUpper  A, B, ..., Z, AA, AB, ...
  alphaLower  a, b, ..., z, aa, ab, ...

All parsers return 0 for labels they do not recognise.
"""
from __future__ import annotations

import re
from enum import StrEnum


class NumberingStyle(StrEnum):
    """Numbering variants accepted by a hierarchy level."""

    ROMAN = "roman"
    NUMERIC = "numeric"
    ALPHA_UPPER = "alphaUpper"
    ALPHA_LOWER = "alphaLower"

    @property
    def pattern(self) -> str:
        """Regex fragment matching one label of this style (no groups)."""
        return _STYLE_PATTERNS[self]


# ---------------------------------------------------------------------------
# Regex fragments
# ---------------------------------------------------------------------------

# Canonical roman grammar; the lookahead rejects the empty match the bare
# grammar would otherwise allow.
_ROMAN_UPPER = r"(?=[MDCLXVI])M{0,3}(?:CM|CD|D?C{0,3})(?:XC|XL|L?X{0,3})(?:IX|IV|V?I{0,3})"
_ROMAN_LOWER = r"(?=[mdclxvi])m{0,3}(?:cm|cd|d?c{0,3})(?:xc|xl|l?x{0,3})(?:ix|iv|v?i{0,3})"

_STYLE_PATTERNS: dict[NumberingStyle, str] = {
    NumberingStyle.ROMAN: f"(?:{_ROMAN_UPPER}|{_ROMAN_LOWER})",
    NumberingStyle.NUMERIC: r"\d+",
    NumberingStyle.ALPHA_UPPER: r"[A-Z]",
    NumberingStyle.ALPHA_LOWER: r"[a-z]",
}

_ROMAN_FULL_RE = re.compile(f"^(?:{_ROMAN_UPPER}|{_ROMAN_LOWER})$")


# ---------------------------------------------------------------------------
# Roman numerals
# ---------------------------------------------------------------------------

_ROMAN_TABLE: tuple[tuple[int, str], ...] = (
    (1000, "M"), (900, "CM"), (500, "D"), (400, "CD"),
    (100, "C"), (90, "XC"), (50, "L"), (40, "XL"),
    (10, "X"), (9, "IX"), (5, "V"), (4, "IV"), (1, "I"),
)

_ROMAN_DIGITS: dict[str, int] = {
    "I": 1, "V": 5, "X": 10, "L": 50, "C": 100, "D": 500, "M": 1000,
}


def to_roman(n: int) -> str:
    """Convert 1..3999 to an uppercase roman numeral.

    Out-of-range values fall back to their decimal string.
    """
    if n <= 0 or n >= 4000:
        return str(n)
    parts: list[str] = []
    remaining = n
    for value, numeral in _ROMAN_TABLE:
        while remaining >= value:
            parts.append(numeral)
            remaining -= value
    return "".join(parts)


def from_roman(s: str) -> int:
    """Convert a canonical roman numeral (either case) to int, or 0."""
    s = s.strip()
    if not s or not _ROMAN_FULL_RE.match(s):
        return 0
    total = 0
    prev = 0
    for ch in reversed(s.upper()):
        value = _ROMAN_DIGITS[ch]
        if value < prev:
            total -= value
        else:
            total += value
            prev = value
    return total


# ---------------------------------------------------------------------------
# Alphabetic labels
# ---------------------------------------------------------------------------

def to_alpha(n: int, *, lowercase: bool = False) -> str:
    """Convert n >= 1 to a spreadsheet-style label: 1=A, 26=Z, 27=AA."""
    if n <= 0:
        return ""
    base = ord("a") if lowercase else ord("A")
    out: list[str] = []
    while n > 0:
        n, rem = divmod(n - 1, 26)
        out.append(chr(base + rem))
    return "".join(reversed(out))


def from_alpha(s: str) -> int:
    """Convert a single-case alphabetic label to int (A=1, AA=27), or 0."""
    s = s.strip()
    if not s or not s.isascii() or not s.isalpha():
        return 0
    if not (s.isupper() or s.islower()):
        return 0
    total = 0
    for ch in s.upper():
        total = total * 26 + (ord(ch) - ord("A") + 1)
    return total


# ---------------------------------------------------------------------------
# Style dispatch
# ---------------------------------------------------------------------------

def parse_number(text: str, style: NumberingStyle | str) -> int:
    """Parse a label in the given style to its integer value (0 if invalid)."""
    style = NumberingStyle(style)
    text = text.strip()
    if style is NumberingStyle.ROMAN:
        return from_roman(text)
    if style is NumberingStyle.NUMERIC:
        return int(text) if text.isdigit() else 0
    if style is NumberingStyle.ALPHA_UPPER:
        return from_alpha(text) if text.isupper() else 0
    return from_alpha(text) if text.islower() else 0


def format_number(n: int, style: NumberingStyle | str) -> str:
    """Render an integer as a label in the given style."""
    style = NumberingStyle(style)
    if style is NumberingStyle.ROMAN:
        return to_roman(n)
    if style is NumberingStyle.NUMERIC:
        return str(n)
    return to_alpha(n, lowercase=style is NumberingStyle.ALPHA_LOWER)


def is_valid_number(text: str, style: NumberingStyle | str) -> bool:
    """Whether *text* is a well-formed label for *style*."""
    return parse_number(text, style) > 0


def compare_numbers(a: str, b: str, style: NumberingStyle | str) -> int:
    """Three-way compare of two labels in the same style (negative if a < b)."""
    return parse_number(a, style) - parse_number(b, style)
