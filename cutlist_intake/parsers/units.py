"""Unit conversion, number parsing and dimension-order policy.

All sizes are normalized to millimetres before they reach a CutPart.
"""

import re
from typing import Any, Optional, Tuple


# Conversion factors to millimetres
UNIT_FACTORS = {
    "mm": 1.0,
    "cm": 10.0,
    "inch": 25.4,
}

# Dimension-order policies for a parsed "A x B" pair
DIM_ORDERS = ("LxW", "WxL", "infer")

_THOUSANDS = re.compile(r'^\d{1,3}(?:,\d{3})+(?:\.\d+)?$')
_DECIMAL_COMMA = re.compile(r'^\d+,\d+$')
_FRACTION = re.compile(r'^(?:(\d+)\s+)?(\d+)/(\d+)$')
_NUMBER = re.compile(r'^[+-]?\d*\.?\d+(?:e[+-]?\d+)?$', re.IGNORECASE)
_UNIT_SUFFIX = re.compile(r'\s*(?:mm|cm|in|inch|inches|")$', re.IGNORECASE)


def check_units(units: str) -> str:
    """Return ``units`` if supported, else raise ValueError."""
    if units not in UNIT_FACTORS:
        raise ValueError(f"Unknown units {units!r}; expected one of {sorted(UNIT_FACTORS)}")
    return units


def check_dim_order(order: str) -> str:
    """Return ``order`` if supported, else raise ValueError."""
    if order not in DIM_ORDERS:
        raise ValueError(f"Unknown dimension order {order!r}; expected one of {list(DIM_ORDERS)}")
    return order


def to_mm(value: float, units: str = "mm") -> float:
    """
    Convert a value to millimetres.

    Args:
        value: Numeric value in ``units``
        units: "mm", "cm" or "inch"

    Returns:
        Value in millimetres, rounded to 0.1 mm
    """
    return round(value * UNIT_FACTORS[check_units(units)], 1)


def parse_number(value: Any) -> Optional[float]:
    """
    Parse a cell or token into a float.

    Accepts numbers, "1,200" (thousands), "18,5" (decimal comma),
    "3/4" and "1 1/2" (fractions), and trailing unit suffixes ("720mm").

    Returns:
        The parsed value, or None when the input is empty or not numeric
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)

    text = str(value).strip()
    if not text:
        return None
    text = _UNIT_SUFFIX.sub("", text).strip()

    if _THOUSANDS.match(text):
        text = text.replace(",", "")
    elif _DECIMAL_COMMA.match(text):
        text = text.replace(",", ".")

    fraction = _FRACTION.match(text)
    if fraction:
        whole, num, den = fraction.groups()
        if int(den) == 0:
            return None
        return float(whole or 0) + int(num) / int(den)

    if not _NUMBER.match(text):
        return None
    return float(text)


def apply_dim_order(first: float, second: float, order: str = "LxW") -> Tuple[float, float]:
    """
    Assign a parsed pair to (L, W).

    - "LxW": first value is L
    - "WxL": first value is W
    - "infer": the larger value becomes L
    """
    check_dim_order(order)
    if order == "WxL":
        return second, first
    if order == "infer" and second > first:
        return second, first
    return first, second
