"""Tests for derived-value calculators."""

import random
import re

import pytest

from product_editor.core.calculators import (
    PackagingPayload,
    auto_child_sku,
    auto_sku_from_name,
    coerce_packaging_quantity,
    compose_weight,
    decompose_weight,
    derive_size_code,
    format_price,
    packaging_needs_quantity,
    positive_int,
    quantity_for_type_change,
    resolve_packaging,
)


class TestAutoSku:
    """Tests for SKU generation."""

    def test_initials_and_eight_digits(self):
        sku = auto_sku_from_name("Blue Cotton Shirt")
        assert re.fullmatch(r"BCS-\d{8}", sku)

    def test_blank_name_uses_prefix(self):
        assert re.fullmatch(r"PRD-\d{8}", auto_sku_from_name("   "))
        assert re.fullmatch(r"PRD-\d{8}", auto_sku_from_name(None))

    def test_injected_random_is_deterministic(self):
        first = auto_sku_from_name("ab cd", random.Random(7))
        second = auto_sku_from_name("ab cd", random.Random(7))
        assert first == second
        assert first.startswith("AC-")

    def test_child_sku_with_parent(self):
        assert auto_child_sku("TSHIRT", "M", 0) == "TSHIRT-M"

    def test_child_sku_without_size(self):
        assert auto_child_sku("TSHIRT", "", 3) == "TSHIRT-X"

    def test_child_sku_without_parent_is_positional(self):
        assert auto_child_sku("", "M", 0) == "X-1"
        assert auto_child_sku("  ", "", 2) == "X-3"


class TestWeight:
    """Tests for weight decomposition and composition."""

    def test_decompose_pounds(self):
        assert decompose_weight(2.5, "lb") == ("2", "8")

    def test_decompose_kilograms(self):
        assert decompose_weight(1.25, "kg") == ("1", "250")

    def test_decompose_defaults_to_pounds(self):
        assert decompose_weight("3.25", None) == ("3", "4")

    @pytest.mark.parametrize("raw", [None, "", "abc", -1])
    def test_decompose_invalid(self, raw):
        assert decompose_weight(raw) == ("", "")

    def test_compose_pounds(self):
        assert compose_weight("2", "8", "lb") == pytest.approx(2.5)

    def test_compose_kilograms(self):
        assert compose_weight("1", "250", "kg") == pytest.approx(1.25)

    def test_compose_partial_counts_missing_as_zero(self):
        assert compose_weight("", "8", "lb") == pytest.approx(0.5)
        assert compose_weight("3", "", "lb") == pytest.approx(3.0)

    def test_compose_both_blank_is_none(self):
        assert compose_weight("", "", "lb") is None

    def test_round_trip(self):
        main, sub = decompose_weight(4.75, "lb")
        assert compose_weight(main, sub, "lb") == pytest.approx(4.75)


class TestPackaging:
    """Tests for packaging resolution."""

    def test_needs_quantity(self):
        assert packaging_needs_quantity("UNITS") is True
        assert packaging_needs_quantity("PIECES_PER_PACK") is True
        assert packaging_needs_quantity("PAIR") is False
        assert packaging_needs_quantity("") is False

    def test_coerce_locks_pair(self):
        assert coerce_packaging_quantity("PAIR", "7") == "2"

    def test_coerce_sanitizes_others(self):
        assert coerce_packaging_quantity("UNITS", "1x2") == "12"

    def test_quantity_for_type_change(self):
        assert quantity_for_type_change("PAIR") == "2"
        assert quantity_for_type_change("UNITS") == ""

    def test_resolve_empty_type(self):
        assert resolve_packaging("  ", "5") == PackagingPayload(None, None)

    def test_resolve_pair_always_two(self):
        assert resolve_packaging("PAIR", "9") == PackagingPayload("PAIR", 2)

    def test_resolve_units_floors(self):
        assert resolve_packaging("UNITS", "3.9") == PackagingPayload("UNITS", 3)

    def test_resolve_units_without_quantity(self):
        assert resolve_packaging("UNITS", "0") == PackagingPayload("UNITS", None)

    def test_positive_int(self):
        assert positive_int("4") == 4
        assert positive_int("0.5") is None
        assert positive_int("") is None


class TestFormatting:
    """Tests for size codes and price formatting."""

    def test_derive_size_code(self):
        assert derive_size_code("x large") == "XLARGE"
        assert derive_size_code(None) == ""

    def test_format_price(self):
        assert format_price(12) == "12.00"
        assert format_price("3.456") == "3.46"
        assert format_price(None) == ""
