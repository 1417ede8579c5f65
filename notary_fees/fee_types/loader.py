"""Definition loader for notary fee types.

Loads YAML/JSON definitions (document groups + fee types) from
notary_fees/definitions, or any directory given by the caller.

Definitions arrive as untyped JSON, so this is the one place that checks the
calculation method and the shape of the formula. The loader:
- accepts camelCase (as stored by the web backend) and snake_case keys
- normalizes numbers to Decimal
- raises ConfigurationError with a readable context path on bad structure

Missing or unparsable optional numbers become None; the evaluator applies its
own defaults at each read site.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import yaml

from ..config import DEFINITIONS_DIR
from ..errors import ConfigurationError
from ..utils.numbers import decimal_or, to_decimal, to_json_number
from .schema import AdditionalFeeDef, CalculationMethod, DocumentGroup, FeeTypeConfig, FormulaSchema, TierDef

_ZERO = Decimal("0")


def _as_list(x: Any) -> List[Any]:
    if x is None:
        return []
    if isinstance(x, (list, tuple)):
        return list(x)
    return [x]


def _pick(obj: Mapping[str, Any], *keys: str) -> Any:
    for k in keys:
        if k in obj and obj[k] is not None:
            return obj[k]
    return None


def _require(obj: Mapping[str, Any], *keys: str, ctx: str) -> Any:
    v = _pick(obj, *keys)
    if v is None:
        raise ConfigurationError(f"Missing required key '{keys[0]}' in {ctx}")
    return v


def _parse_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "active"}
    return bool(value)


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value)
    return s if s else None


def parse_calculation_method(value: Any) -> CalculationMethod:
    if isinstance(value, CalculationMethod):
        return value
    if isinstance(value, str):
        try:
            return CalculationMethod(value.strip().upper())
        except ValueError:
            pass
    raise ConfigurationError(f"Invalid calculation method: {value!r}")


def _parse_tiers(items: Iterable[Any], *, ctx: str) -> Tuple[TierDef, ...]:
    out: List[TierDef] = []
    for i, it in enumerate(items):
        tctx = f"{ctx}.tiers[{i}]"
        if not isinstance(it, Mapping):
            raise ConfigurationError(f"tier must be an object in {tctx}")
        out.append(
            TierDef(
                from_value=decimal_or(_pick(it, "from", "from_value"), _ZERO),
                to_value=to_decimal(_pick(it, "to", "to_value")),
                rate=decimal_or(it.get("rate"), _ZERO),
                description=_optional_text(it.get("description")),
            )
        )
    return tuple(out)


def _parse_additional_fees(items: Iterable[Any], *, ctx: str) -> Tuple[AdditionalFeeDef, ...]:
    out: List[AdditionalFeeDef] = []
    for i, it in enumerate(items):
        actx = f"{ctx}.additionalFees[{i}]"
        if not isinstance(it, Mapping):
            raise ConfigurationError(f"additional fee must be an object in {actx}")
        name = str(_require(it, "name", ctx=actx)).strip()
        if not name:
            raise ConfigurationError(f"additional fee name cannot be empty in {actx}")
        out.append(
            AdditionalFeeDef(
                name=name,
                amount=decimal_or(it.get("amount"), _ZERO),
                per_unit=_parse_bool(_pick(it, "perUnit", "per_unit"), False),
                description=_optional_text(it.get("description")),
            )
        )
    return tuple(out)


def _parse_formula(obj: Any, *, ctx: str) -> Optional[FormulaSchema]:
    if obj is None:
        return None
    if not isinstance(obj, Mapping):
        raise ConfigurationError(f"formula must be an object in {ctx}")
    tiers = _pick(obj, "tiers")
    fees = _pick(obj, "additionalFees", "additional_fees")
    fctx = f"{ctx}.formula"
    return FormulaSchema(
        tiers=None if tiers is None else _parse_tiers(_as_list(tiers), ctx=fctx),
        additional_fees=None if fees is None else _parse_additional_fees(_as_list(fees), ctx=fctx),
        custom_formula=_optional_text(_pick(obj, "customFormula", "custom_formula")),
    )


def parse_fee_type(obj: Mapping[str, Any], *, ctx: str = "fee_type") -> FeeTypeConfig:
    if isinstance(obj, FeeTypeConfig):
        return obj
    if not isinstance(obj, Mapping):
        raise ConfigurationError(f"fee type must be an object in {ctx}")
    method = parse_calculation_method(_pick(obj, "calculationMethod", "calculation_method"))
    return FeeTypeConfig(
        calculation_method=method,
        base_fee=to_decimal(_pick(obj, "baseFee", "base_fee")),
        percentage=to_decimal(obj.get("percentage")),
        formula=_parse_formula(obj.get("formula"), ctx=ctx),
        min_fee=to_decimal(_pick(obj, "minFee", "min_fee")),
        max_fee=to_decimal(_pick(obj, "maxFee", "max_fee")),
        id=str(_pick(obj, "id") or ""),
        document_group_id=str(_pick(obj, "documentGroupId", "document_group_id") or ""),
        name=str(_pick(obj, "name") or ""),
        status=_parse_bool(obj.get("status"), True),
        created_at=_parse_datetime(_pick(obj, "createdAt", "created_at")),
        updated_at=_parse_datetime(_pick(obj, "updatedAt", "updated_at")),
    )


def parse_document_group(obj: Mapping[str, Any], *, ctx: str = "document_group") -> DocumentGroup:
    if not isinstance(obj, Mapping):
        raise ConfigurationError(f"document group must be an object in {ctx}")
    return DocumentGroup(
        id=str(_require(obj, "id", ctx=ctx)).strip(),
        name=str(obj.get("name") or ""),
        status=_parse_bool(obj.get("status"), True),
    )


def _load_one(path: Path) -> Dict[str, Any]:
    raw = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(raw) or {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Top-level YAML must be a mapping in {path}")
        return data
    if path.suffix.lower() == ".json":
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ConfigurationError(f"Top-level JSON must be an object in {path}")
        return data
    raise ConfigurationError(f"Unsupported definition file type: {path}")


def load_definitions(
    definitions_dir: Path | None = None,
) -> Tuple[List[DocumentGroup], List[FeeTypeConfig]]:
    base = Path(definitions_dir) if definitions_dir else DEFINITIONS_DIR
    if not base.exists():
        return [], []
    paths = sorted([p for p in base.iterdir() if p.is_file() and p.suffix.lower() in (".yaml", ".yml", ".json")])
    groups: List[DocumentGroup] = []
    fee_types: List[FeeTypeConfig] = []
    for p in paths:
        data = _load_one(p)
        for i, g in enumerate(_as_list(data.get("document_groups"))):
            groups.append(parse_document_group(g, ctx=f"definition({p.name}).document_groups[{i}]"))
        for i, ft in enumerate(_as_list(data.get("fee_types"))):
            fee_types.append(parse_fee_type(ft, ctx=f"definition({p.name}).fee_types[{i}]"))
    return groups, fee_types


def dump_formula(formula: FormulaSchema) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    if formula.tiers is not None:
        out["tiers"] = [
            {
                "from": to_json_number(t.from_value),
                "to": to_json_number(t.to_value),
                "rate": to_json_number(t.rate),
                **({"description": t.description} if t.description else {}),
            }
            for t in formula.tiers
        ]
    if formula.additional_fees is not None:
        out["additionalFees"] = [
            {
                "name": f.name,
                "amount": to_json_number(f.amount),
                "perUnit": f.per_unit,
                **({"description": f.description} if f.description else {}),
            }
            for f in formula.additional_fees
        ]
    if formula.custom_formula:
        out["customFormula"] = formula.custom_formula
    return out


def dump_fee_type(fee_type: FeeTypeConfig) -> Dict[str, Any]:
    """Inverse of parse_fee_type (camelCase, JSON-safe)."""
    return {
        "id": fee_type.id,
        "documentGroupId": fee_type.document_group_id,
        "name": fee_type.name,
        "calculationMethod": fee_type.calculation_method.value,
        "formula": None if fee_type.formula is None else dump_formula(fee_type.formula),
        "baseFee": to_json_number(fee_type.base_fee),
        "percentage": to_json_number(fee_type.percentage),
        "minFee": to_json_number(fee_type.min_fee),
        "maxFee": to_json_number(fee_type.max_fee),
        "status": fee_type.status,
        "createdAt": fee_type.created_at.isoformat() if fee_type.created_at else None,
        "updatedAt": fee_type.updated_at.isoformat() if fee_type.updated_at else None,
    }
