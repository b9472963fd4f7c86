"""Tests for govdoc.numbering module."""
import pytest

from govdoc.numbering import (
    NumberingStyle,
    compare_numbers,
    format_number,
    from_alpha,
    from_roman,
    is_valid_number,
    parse_number,
    to_alpha,
    to_roman,
)


class TestRoman:
    def test_to_roman(self) -> None:
        assert to_roman(1) == "I"
        assert to_roman(4) == "IV"
        assert to_roman(9) == "IX"
        assert to_roman(14) == "XIV"
        assert to_roman(1994) == "MCMXCIV"

    def test_to_roman_out_of_range_falls_back_to_decimal(self) -> None:
        assert to_roman(0) == "0"
        assert to_roman(4000) == "4000"

    def test_from_roman_either_case(self) -> None:
        assert from_roman("XIV") == 14
        assert from_roman("xiv") == 14
        assert from_roman("MCMXCIV") == 1994

    def test_from_roman_rejects_non_canonical(self) -> None:
        assert from_roman("IIII") == 0
        assert from_roman("IC") == 0
        assert from_roman("") == 0
        assert from_roman("ABC") == 0
        assert from_roman("Xiv") == 0

    def test_round_trip_sample(self) -> None:
        for n in (1, 3, 8, 40, 99, 444, 3999):
            assert from_roman(to_roman(n)) == n


class TestAlpha:
    def test_to_alpha(self) -> None:
        assert to_alpha(1) == "A"
        assert to_alpha(26) == "Z"
        assert to_alpha(27) == "AA"
        assert to_alpha(28, lowercase=True) == "ab"
        assert to_alpha(0) == ""

    def test_from_alpha(self) -> None:
        assert from_alpha("A") == 1
        assert from_alpha("z") == 26
        assert from_alpha("AA") == 27

    def test_from_alpha_rejects_mixed_case_and_digits(self) -> None:
        assert from_alpha("Ab") == 0
        assert from_alpha("a1") == 0
        assert from_alpha("") == 0


class TestStyleDispatch:
    def test_parse_number(self) -> None:
        assert parse_number("IV", NumberingStyle.ROMAN) == 4
        assert parse_number("12", "numeric") == 12
        assert parse_number("b", NumberingStyle.ALPHA_LOWER) == 2
        assert parse_number("C", NumberingStyle.ALPHA_UPPER) == 3

    def test_parse_number_wrong_case_is_invalid(self) -> None:
        assert parse_number("B", NumberingStyle.ALPHA_LOWER) == 0
        assert parse_number("b", NumberingStyle.ALPHA_UPPER) == 0

    def test_parse_number_garbage(self) -> None:
        assert parse_number("x1", NumberingStyle.NUMERIC) == 0
        assert not is_valid_number("", NumberingStyle.NUMERIC)
        assert is_valid_number(" 7 ", NumberingStyle.NUMERIC)

    def test_format_number(self) -> None:
        assert format_number(3, "roman") == "III"
        assert format_number(3, "numeric") == "3"
        assert format_number(3, "alphaUpper") == "C"
        assert format_number(3, "alphaLower") == "c"

    def test_compare_numbers(self) -> None:
        assert compare_numbers("IX", "X", NumberingStyle.ROMAN) < 0
        assert compare_numbers("10", "9", NumberingStyle.NUMERIC) > 0
        assert compare_numbers("b", "b", NumberingStyle.ALPHA_LOWER) == 0

    def test_unknown_style_raises(self) -> None:
        with pytest.raises(ValueError):
            NumberingStyle("alpha")

    def test_patterns_exist_for_every_style(self) -> None:
        for style in NumberingStyle:
            assert style.pattern
