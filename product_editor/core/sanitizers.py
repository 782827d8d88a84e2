"""Field sanitizers for free-text numeric input.

Every numeric value passes through one of these before it is stored on a
draft, so the draft only ever holds canonical strings.
"""

import re
from typing import Any

_NON_DECIMAL = re.compile(r"[^0-9.]")
_NON_DIGIT = re.compile(r"\D")

MAX_DECIMALS = 2


def sanitize_decimal(value: Any) -> str:
    """Normalize input into a decimal string with at most 2 fractional digits.

    A trailing "." is preserved so partially typed values survive
    (``"12."`` stays ``"12."``). Extra dots are folded into the fraction.

    Args:
        value: Raw input (str, number or None)

    Returns:
        Sanitized string, possibly empty
    """
    if value is None:
        return ""
    cleaned = _NON_DECIMAL.sub("", str(value))
    if "." not in cleaned:
        return cleaned

    head, _, rest = cleaned.partition(".")
    decimals = rest.replace(".", "")[:MAX_DECIMALS]
    safe_head = head or ("0" if decimals else "")
    if decimals:
        return f"{safe_head}.{decimals}"
    return f"{safe_head}."


def sanitize_integer(value: Any) -> str:
    """Strip every non-digit character."""
    if value is None:
        return ""
    return _NON_DIGIT.sub("", str(value))


def is_non_empty(value: Any) -> bool:
    """Check whether a value has visible content once trimmed."""
    if value is None:
        return False
    return str(value).strip() != ""


def to_number(value: Any) -> float | None:
    """Parse a sanitized string into a finite float.

    Returns:
        The number, or None for blank / unparseable / non-finite input
    """
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number
