"""Derived-value calculators.

Pure functions for SKU generation, weight conversion between a
main/sub pair and a single value, and packaging resolution.
"""

import math
import random
from dataclasses import dataclass
from typing import Any

from product_editor.core.sanitizers import sanitize_integer, to_number

DEFAULT_SKU_PREFIX = "PRD"
SKU_SUFFIX_DIGITS = 8

PAIR = "PAIR"
QUANTITY_NEEDED_TYPES = frozenset({"UNITS", "PIECES_PER_PACK"})

# Sub-unit count per main unit
SUB_UNITS = {"kg": 1000, "lb": 16}


@dataclass(frozen=True)
class PackagingPayload:
    """Resolved packaging pair as sent to the backend."""

    packagingType: str | None
    packagingQuantity: int | None


def auto_sku_from_name(name: str | None, rand: random.Random | None = None) -> str:
    """Generate a SKU from the initials of a product name.

    Example: ``"Blue Cotton Shirt"`` -> ``"BCS-00421337"``.

    Args:
        name: Product name
        rand: Random source (injectable for tests)

    Returns:
        SKU made of upper-cased initials and an 8-digit suffix
    """
    tokens = (name or "").split()
    initials = "".join(token[0] for token in tokens).upper() or DEFAULT_SKU_PREFIX
    rng = rand or random
    digits = rng.randrange(10**SKU_SUFFIX_DIGITS)
    return f"{initials}-{digits:0{SKU_SUFFIX_DIGITS}d}"


def auto_child_sku(parent_sku: str | None, size_code: str | None, position: int) -> str:
    """Derive a variant SKU from the parent SKU and the row's size code.

    Args:
        parent_sku: Current parent SKU
        size_code: Size code of the row ("" when unset)
        position: Zero-based row position

    Returns:
        ``{parent}-{size}`` or positional ``X-{n}`` when the parent is blank
    """
    parent = (parent_sku or "").strip()
    if not parent:
        return f"X-{position + 1}"
    code = (size_code or "").strip() or "X"
    return f"{parent}-{code}"


def _sub_units(unit: str | None) -> int:
    return SUB_UNITS["kg"] if unit == "kg" else SUB_UNITS["lb"]


def decompose_weight(value: Any, unit: str | None = "lb") -> tuple[str, str]:
    """Split a single weight into whole main units and a sub-unit remainder.

    kg splits into kilograms and grams; any other unit into pounds and ounces.

    Returns:
        ``(main, sub)`` as strings, ``("", "")`` for invalid input
    """
    number = to_number(value)
    if number is None or number < 0:
        return "", ""
    main = math.floor(number)
    sub = round((number - main) * _sub_units(unit))
    return str(main), str(sub)


def compose_weight(main: Any, sub: Any, unit: str | None = "lb") -> float | None:
    """Combine a main/sub pair into one weight.

    Missing components count as zero. When both are absent no weight is
    asserted and None is returned.
    """
    main_number = to_number(main)
    sub_number = to_number(sub)
    if main_number is None and sub_number is None:
        return None
    return (main_number or 0.0) + (sub_number or 0.0) / _sub_units(unit)


def packaging_needs_quantity(packaging_type: str | None) -> bool:
    """Whether a packaging type requires a user-entered quantity."""
    return (packaging_type or "").strip() in QUANTITY_NEEDED_TYPES


def coerce_packaging_quantity(packaging_type: str | None, quantity: Any) -> str:
    """Apply the PAIR lock to a draft-side quantity string."""
    if (packaging_type or "").strip() == PAIR:
        return "2"
    return sanitize_integer(quantity)


def quantity_for_type_change(packaging_type: str | None) -> str:
    """Quantity to store after the packaging type changes."""
    return "2" if (packaging_type or "").strip() == PAIR else ""


def positive_int(value: Any) -> int | None:
    """Parse a positive integer (floored), or None."""
    number = to_number(value)
    if number is None or number < 1:
        return None
    return math.floor(number)


def resolve_packaging(packaging_type: str | None, quantity: Any) -> PackagingPayload:
    """Resolve a packaging type/quantity pair for the wire.

    Empty type clears both fields, PAIR always ships 2, anything else
    ships a positive integer or None.
    """
    normalized = (packaging_type or "").strip()
    if not normalized:
        return PackagingPayload(packagingType=None, packagingQuantity=None)
    if normalized == PAIR:
        return PackagingPayload(packagingType=PAIR, packagingQuantity=2)
    return PackagingPayload(packagingType=normalized, packagingQuantity=positive_int(quantity))


def derive_size_code(label: str | None) -> str:
    """Upper-case a size label and drop its whitespace (``"x large"`` -> ``"XLARGE"``)."""
    return "".join((label or "").split()).upper()


def format_price(value: Any) -> str:
    """Format a backend number as a 2-decimal draft string ("" when absent)."""
    number = to_number(value)
    if number is None:
        return ""
    return f"{number:.2f}"
