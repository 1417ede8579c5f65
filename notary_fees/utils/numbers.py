"""Permissive numeric coercion.

Fee definitions and form inputs arrive as untyped JSON. Every read site picks
its own default; these helpers only decide what counts as "a number".
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Optional


def to_decimal(value: Any) -> Optional[Decimal]:
    """Return ``value`` as a finite Decimal, or None when it is not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, (int, float)):
        d = Decimal(str(value))
    elif isinstance(value, str):
        s = value.strip().replace(",", "")
        if not s:
            return None
        try:
            d = Decimal(s)
        except InvalidOperation:
            return None
    else:
        return None
    return d if d.is_finite() else None


def decimal_or(value: Any, default: Decimal) -> Decimal:
    d = to_decimal(value)
    return default if d is None else d


def to_json_number(value: Optional[Decimal]) -> Any:
    """Decimal -> int when integral, float otherwise (JSON has no Decimal)."""
    if value is None:
        return None
    if value == value.to_integral_value():
        return int(value)
    return float(value)
