"""Tests for the scalar text codec."""

from __future__ import annotations

import pytest

from dialogforge.codec import format_scalar, parse_scalar


class TestParseScalar:
    """Test free text to typed scalar conversion."""

    def test_null_literal(self) -> None:
        """'null' and None both parse to None."""
        assert parse_scalar("null") is None
        assert parse_scalar(None) is None

    def test_integer(self) -> None:
        """Integer literals parse to int."""
        value = parse_scalar("42")
        assert value == 42
        assert type(value) is int
        assert parse_scalar("-7") == -7

    def test_float(self) -> None:
        """Fractional and exponent literals parse to float."""
        assert parse_scalar("-3.5") == -3.5
        assert parse_scalar(".5") == 0.5
        value = parse_scalar("1e3")
        assert value == 1000.0
        assert type(value) is float

    def test_booleans(self) -> None:
        """'true' and 'false' parse to booleans."""
        assert parse_scalar("true") is True
        assert parse_scalar("false") is False

    @pytest.mark.parametrize("text", ["hello", "", "12abc", " 5", "True", "nan", "inf"])
    def test_other_text_is_unchanged(self, text: str) -> None:
        """Anything that is not a literal comes back as the same string."""
        assert parse_scalar(text) == text

    def test_overflowing_number_stays_text(self) -> None:
        """A literal too large for a finite float is kept as text."""
        assert parse_scalar("1e999") == "1e999"


class TestFormatScalar:
    """Test typed scalar to text conversion."""

    def test_literals(self) -> None:
        assert format_scalar(None) == "null"
        assert format_scalar(True) == "true"
        assert format_scalar(False) == "false"

    def test_numbers(self) -> None:
        """Integral floats drop their fractional part."""
        assert format_scalar(3) == "3"
        assert format_scalar(3.0) == "3"
        assert format_scalar(-3.5) == "-3.5"
        assert format_scalar(0.1) == "0.1"

    def test_string(self) -> None:
        assert format_scalar("hello") == "hello"


class TestRoundTrip:
    """Test that the codec is its own inverse on canonical values."""

    @pytest.mark.parametrize("value", [None, True, False, 0, -3.5, "hello"])
    def test_value_survives_format_then_parse(self, value: object) -> None:
        assert parse_scalar(format_scalar(value)) == value  # type: ignore[arg-type]

    @pytest.mark.parametrize(
        ("text", "canonical"),
        [("007", "7"), ("1.50", "1.5"), ("+3", "3"), ("1E3", "1000")],
    )
    def test_non_canonical_numbers_are_normalized(self, text: str, canonical: str) -> None:
        """Numeric text with a non-canonical spelling comes back canonical."""
        assert format_scalar(parse_scalar(text)) == canonical
