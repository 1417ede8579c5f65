"""Fee type schema.

Immutable value objects for a notary fee type: the calculation method, its
numeric parameters and the optional formula (tiers + additional fees).
Built once by the loader; the evaluator only reads them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple


class CalculationMethod(str, Enum):
    FIXED = "FIXED"  # flat fee
    PERCENT = "PERCENT"  # share of property value
    VALUE_BASED = "VALUE_BASED"  # falls back to FIXED
    TIERED = "TIERED"  # progressive brackets
    FORMULA = "FORMULA"  # falls back to FIXED


@dataclass(frozen=True)
class TierDef:
    from_value: Decimal
    to_value: Optional[Decimal] = None  # None = unbounded
    rate: Decimal = Decimal("0")
    description: Optional[str] = None


@dataclass(frozen=True)
class AdditionalFeeDef:
    name: str
    amount: Decimal = Decimal("0")
    per_unit: bool = False
    description: Optional[str] = None


@dataclass(frozen=True)
class FormulaSchema:
    tiers: Optional[Tuple[TierDef, ...]] = None
    additional_fees: Optional[Tuple[AdditionalFeeDef, ...]] = None
    # Kept for round-tripping definitions; never evaluated.
    custom_formula: Optional[str] = None


@dataclass(frozen=True)
class FeeTypeConfig:
    calculation_method: CalculationMethod
    base_fee: Optional[Decimal] = None
    percentage: Optional[Decimal] = None  # fraction, 0.015 = 1.5%
    formula: Optional[FormulaSchema] = None
    min_fee: Optional[Decimal] = None
    max_fee: Optional[Decimal] = None
    id: str = ""
    document_group_id: str = ""
    name: str = ""
    status: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class DocumentGroup:
    id: str
    name: str = ""
    status: bool = True
