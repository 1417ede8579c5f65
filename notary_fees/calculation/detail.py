"""Calculation breakdown produced by the evaluator.

One CalculationDetail per evaluation; persisted as-is by the record service.
``to_dict`` emits the camelCase audit shape stored with each calculation.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Tuple

from ..utils.numbers import decimal_or, to_decimal, to_json_number

_ZERO = Decimal("0")


def _expect_mapping(data: Any, kind: str) -> None:
    if not isinstance(data, Mapping):
        raise ValueError(f"{kind} must be an object, got {type(data).__name__}")


@dataclass(frozen=True)
class TierFeeLine:
    tier: int  # 1-based, counts contributing tiers only
    from_value: Decimal
    to_value: Optional[Decimal]
    rate: Decimal
    amount: Decimal
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tier": self.tier,
            "from": to_json_number(self.from_value),
            "to": to_json_number(self.to_value),
            "rate": to_json_number(self.rate),
            "amount": to_json_number(self.amount),
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TierFeeLine":
        _expect_mapping(data, "TierFeeLine")
        return cls(
            tier=int(data.get("tier") or 0),
            from_value=decimal_or(data.get("from"), _ZERO),
            to_value=to_decimal(data.get("to")),
            rate=decimal_or(data.get("rate"), _ZERO),
            amount=decimal_or(data.get("amount"), _ZERO),
            description=str(data.get("description") or ""),
        )


@dataclass(frozen=True)
class AdditionalFeeLine:
    name: str
    amount: Decimal
    quantity: Decimal
    total: Decimal
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "amount": to_json_number(self.amount),
            "quantity": to_json_number(self.quantity),
            "total": to_json_number(self.total),
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AdditionalFeeLine":
        _expect_mapping(data, "AdditionalFeeLine")
        return cls(
            name=str(data.get("name") or ""),
            amount=decimal_or(data.get("amount"), _ZERO),
            quantity=decimal_or(data.get("quantity"), Decimal("1")),
            total=decimal_or(data.get("total"), _ZERO),
            description=str(data.get("description") or ""),
        )


@dataclass(frozen=True)
class CalculationDetail:
    subtotal: Decimal
    total_fee: Decimal
    base_fee: Optional[Decimal] = None
    percentage_fee: Optional[Decimal] = None
    tiered_fees: Optional[Tuple[TierFeeLine, ...]] = None
    additional_fees: Optional[Tuple[AdditionalFeeLine, ...]] = None

    @property
    def clamped(self) -> bool:
        return self.total_fee != self.subtotal

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.base_fee is not None:
            out["baseFee"] = to_json_number(self.base_fee)
        if self.percentage_fee is not None:
            out["percentageFee"] = to_json_number(self.percentage_fee)
        if self.tiered_fees is not None:
            out["tieredFees"] = [t.to_dict() for t in self.tiered_fees]
        if self.additional_fees is not None:
            out["additionalFees"] = [a.to_dict() for a in self.additional_fees]
        out["subtotal"] = to_json_number(self.subtotal)
        out["totalFee"] = to_json_number(self.total_fee)
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CalculationDetail":
        _expect_mapping(data, "CalculationDetail")
        tiered = data.get("tieredFees")
        extra = data.get("additionalFees")
        return cls(
            subtotal=decimal_or(data.get("subtotal"), _ZERO),
            total_fee=decimal_or(data.get("totalFee"), _ZERO),
            base_fee=to_decimal(data.get("baseFee")),
            percentage_fee=to_decimal(data.get("percentageFee")),
            tiered_fees=None if tiered is None else tuple(TierFeeLine.from_dict(t) for t in tiered),
            additional_fees=None if extra is None else tuple(AdditionalFeeLine.from_dict(a) for a in extra),
        )


__all__ = ["TierFeeLine", "AdditionalFeeLine", "CalculationDetail"]
