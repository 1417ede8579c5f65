from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, List, Optional

from ..calculation.detail import CalculationDetail
from ..config import DEFAULT_CURRENCY, ZERO_DECIMAL_CURRENCIES
from ..records.store import FeeCalculationRecord
from ..utils.numbers import to_decimal


def _md_escape(v: Any) -> str:
    s = "" if v is None else str(v)
    # Escape pipes so Markdown tables don't break
    return s.replace("|", "\\|").replace("\n", " ").strip()


def format_money(value: Any, currency: str = DEFAULT_CURRENCY) -> str:
    d = to_decimal(value)
    if d is None:
        return ""
    places = Decimal("1") if currency.upper() in ZERO_DECIMAL_CURRENCIES else Decimal("0.01")
    q = d.quantize(places, rounding=ROUND_HALF_UP)
    return f"{q:,} {currency}"


def _format_rate(rate: Decimal) -> str:
    pct = (rate * 100).normalize()
    return f"{pct:f}%"


def _format_qty(qty: Decimal) -> str:
    return f"{qty.normalize():f}"


def _tier_range(lo: Decimal, hi: Optional[Decimal], currency: str) -> str:
    if hi is None:
        return f"> {format_money(lo, currency)}"
    return f"{format_money(lo, currency)} - {format_money(hi, currency)}"


def render_calculation(detail: CalculationDetail, currency: str = DEFAULT_CURRENCY) -> str:
    rows = [
        "| Item | Basis | Quantity | Amount |",
        "|---|---|---:|---:|",
    ]
    if detail.base_fee is not None:
        rows.append(f"| Base fee | fixed | 1 | {format_money(detail.base_fee, currency)} |")
    if detail.percentage_fee is not None:
        rows.append(f"| Percentage fee | property value | 1 | {format_money(detail.percentage_fee, currency)} |")
    for t in detail.tiered_fees or ():
        basis = f"{_tier_range(t.from_value, t.to_value, currency)} @ {_format_rate(t.rate)}"
        rows.append(
            f"| {_md_escape(t.description)} | {_md_escape(basis)} | 1 | {format_money(t.amount, currency)} |"
        )
    for a in detail.additional_fees or ():
        rows.append(
            "| {name} | {unit} each | {qty} | {total} |".format(
                name=_md_escape(a.description),
                unit=format_money(a.amount, currency),
                qty=_format_qty(a.quantity),
                total=format_money(a.total, currency),
            )
        )
    rows.append(f"| **Subtotal** | | | {format_money(detail.subtotal, currency)} |")
    total_note = " (min/max limit applied)" if detail.clamped else ""
    rows.append(f"| **Total fee**{total_note} | | | **{format_money(detail.total_fee, currency)}** |")
    return "\n".join(rows)


def render_history_table(records: Iterable[FeeCalculationRecord], currency: str = DEFAULT_CURRENCY) -> str:
    rows: List[str] = [
        "| Calculation | Created (UTC) | User | Document group | Fee type | Total fee |",
        "|---|---|---|---|---|---:|",
    ]
    for r in records:
        rows.append(
            "| {id} | {created} | {user} | {group} | {fee_type} | {total} |".format(
                id=_md_escape(r.id),
                created=r.created_at.strftime("%Y-%m-%d %H:%M:%S"),
                user=_md_escape(r.user_id or "guest"),
                group=_md_escape(r.document_group_id),
                fee_type=_md_escape(r.fee_type_id),
                total=format_money(r.total_fee, currency),
            )
        )
    return "\n".join(rows)
