"""Notary fee evaluator.

evaluate(fee_type, input_data) -> CalculationDetail

Steps, always in this order:
1) primary method (FIXED / PERCENT / TIERED / VALUE_BASED / FORMULA)
2) additional fees from the formula, whatever the method
3) clamp subtotal to min_fee, then max_fee (max wins if max < min)

The evaluator is permissive: a missing or non-numeric ``property_value``,
missing tiers or missing additional fees contribute zero instead of raising.
The only rejected input is an unknown calculation method.

No rounding here; display formatting is done by reporting.format.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, List, Mapping, Optional, Union

from ..fee_types.loader import parse_calculation_method, parse_fee_type
from ..fee_types.schema import AdditionalFeeDef, CalculationMethod, FeeTypeConfig, TierDef
from ..utils.numbers import decimal_or, to_decimal
from .detail import AdditionalFeeLine, CalculationDetail, TierFeeLine

_LOGGER = logging.getLogger(__name__)

_ZERO = Decimal("0")
_ONE = Decimal("1")
_UNBOUNDED = Decimal("Infinity")

PROPERTY_VALUE_KEY = "property_value"
NUM_COPIES_KEY = "num_copies"
PER_UNIT_SUFFIX = "_fee"


def _strip_suffix(name: str, suffix: str) -> str:
    return name[: -len(suffix)] if suffix and name.endswith(suffix) else name


def _property_value(input_data: Mapping[str, Any]) -> Decimal:
    return decimal_or(input_data.get(PROPERTY_VALUE_KEY), _ZERO)


def _unit_quantity(fee: AdditionalFeeDef, input_data: Mapping[str, Any]) -> Decimal:
    """copy_fee -> input["copy"], else input["num_copies"], else 1."""
    if not fee.per_unit:
        return _ONE
    for key in (_strip_suffix(fee.name, PER_UNIT_SUFFIX), NUM_COPIES_KEY):
        qty = to_decimal(input_data.get(key))
        if qty is not None:
            return qty
    return _ONE


def _tiered_lines(tiers: tuple[TierDef, ...], property_value: Decimal) -> List[TierFeeLine]:
    lines: List[TierFeeLine] = []
    remaining = property_value
    for tier in tiers:
        if remaining > 0 and property_value > tier.from_value:
            upper = _UNBOUNDED if tier.to_value is None else tier.to_value
            applied = min(remaining, upper - tier.from_value)
            index = len(lines) + 1
            lines.append(
                TierFeeLine(
                    tier=index,
                    from_value=tier.from_value,
                    to_value=tier.to_value,
                    rate=tier.rate,
                    amount=applied * tier.rate,
                    description=tier.description or f"Tier {index}",
                )
            )
            remaining -= applied
    return lines


def _clamp(subtotal: Decimal, min_fee: Optional[Decimal], max_fee: Optional[Decimal]) -> Decimal:
    total = subtotal
    if min_fee is not None and total < min_fee:
        total = min_fee
    if max_fee is not None and total > max_fee:
        total = max_fee
    return total


def evaluate(
    fee_type: Union[FeeTypeConfig, Mapping[str, Any]],
    input_data: Optional[Mapping[str, Any]] = None,
) -> CalculationDetail:
    """Compute the fee breakdown for one fee type and one set of form inputs.

    Raises ConfigurationError if the calculation method is not recognized.
    """
    cfg = parse_fee_type(fee_type)
    data: Mapping[str, Any] = input_data or {}
    method = parse_calculation_method(cfg.calculation_method)

    base_fee: Optional[Decimal] = None
    percentage_fee: Optional[Decimal] = None
    tiered: Optional[List[TierFeeLine]] = None
    subtotal = _ZERO

    if method in (CalculationMethod.FIXED, CalculationMethod.VALUE_BASED, CalculationMethod.FORMULA):
        # VALUE_BASED and FORMULA have no distinct pricing yet; both use the base fee.
        base_fee = cfg.base_fee if cfg.base_fee is not None else _ZERO
        subtotal = base_fee
    elif method is CalculationMethod.PERCENT:
        percentage = cfg.percentage if cfg.percentage is not None else _ZERO
        percentage_fee = _property_value(data) * percentage
        subtotal = percentage_fee
    elif method is CalculationMethod.TIERED:
        if cfg.formula is not None and cfg.formula.tiers is not None:
            tiered = _tiered_lines(cfg.formula.tiers, _property_value(data))
            subtotal = sum((t.amount for t in tiered), _ZERO)
    else:  # pragma: no cover - parse_calculation_method only returns known members
        raise AssertionError(f"unhandled calculation method {method}")

    extras: Optional[List[AdditionalFeeLine]] = None
    if cfg.formula is not None and cfg.formula.additional_fees is not None:
        extras = []
        for fee in cfg.formula.additional_fees:
            qty = _unit_quantity(fee, data)
            line = AdditionalFeeLine(
                name=fee.name,
                amount=fee.amount,
                quantity=qty,
                total=fee.amount * qty,
                description=fee.description or fee.name,
            )
            extras.append(line)
            subtotal += line.total

    total_fee = _clamp(subtotal, cfg.min_fee, cfg.max_fee)
    _LOGGER.debug(
        "Evaluated fee type %s (%s): subtotal=%s total=%s",
        cfg.id or cfg.name or "-",
        method.value,
        subtotal,
        total_fee,
    )

    return CalculationDetail(
        subtotal=subtotal,
        total_fee=total_fee,
        base_fee=base_fee,
        percentage_fee=percentage_fee,
        tiered_fees=None if tiered is None else tuple(tiered),
        additional_fees=None if extras is None else tuple(extras),
    )


__all__ = ["evaluate", "PROPERTY_VALUE_KEY", "NUM_COPIES_KEY"]
