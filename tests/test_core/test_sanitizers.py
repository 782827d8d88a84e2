"""Tests for field sanitizers."""

import pytest

from product_editor.core.sanitizers import (
    is_non_empty,
    sanitize_decimal,
    sanitize_integer,
    to_number,
)


class TestSanitizeDecimal:
    """Tests for sanitize_decimal."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("12.345", "12.34"),
            ("1.2.3", "1.23"),
            ("abc", ""),
            (".5", "0.5"),
            ("12.", "12."),
            ("$1,299.99", "1299.99"),
            ("", ""),
            (None, ""),
            (7, "7"),
            (3.5, "3.5"),
        ],
    )
    def test_sanitize_decimal(self, raw, expected):
        assert sanitize_decimal(raw) == expected

    def test_lone_dot_is_kept(self):
        assert sanitize_decimal(".") == "."

    def test_negative_sign_is_stripped(self):
        assert sanitize_decimal("-4.10") == "4.10"


class TestSanitizeInteger:
    """Tests for sanitize_integer."""

    def test_strips_non_digits(self):
        assert sanitize_integer("1a2b3") == "123"

    def test_drops_decimal_point(self):
        assert sanitize_integer("12.5") == "125"

    def test_none_is_empty(self):
        assert sanitize_integer(None) == ""


class TestIsNonEmpty:
    """Tests for is_non_empty."""

    def test_whitespace_only_is_empty(self):
        assert is_non_empty("   ") is False

    def test_none_is_empty(self):
        assert is_non_empty(None) is False

    def test_zero_is_content(self):
        assert is_non_empty(0) is True
        assert is_non_empty("0") is True


class TestToNumber:
    """Tests for to_number."""

    def test_parses_sanitized_string(self):
        assert to_number("12.50") == 12.5

    def test_trailing_dot_parses(self):
        assert to_number("12.") == 12.0

    @pytest.mark.parametrize("raw", ["", "   ", None, "abc", "nan", "inf", True])
    def test_rejects_invalid(self, raw):
        assert to_number(raw) is None
