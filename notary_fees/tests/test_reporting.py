from textwrap import dedent

from conftest import GROUP_ID, TIERED_ID
from notary_fees.calculation import evaluate
from notary_fees.reporting.format import format_money, render_calculation, render_history_table

TIERS = [
    {"from": 0, "to": 100000000, "rate": 0.015},
    {"from": 100000000, "to": None, "rate": 0.01, "description": "Above 100M"},
]


def test_format_money_respects_currency_subdivision():
    assert format_money(1500000, "VND") == "1,500,000 VND"
    assert format_money("1234.5", "EUR") == "1,234.50 EUR"
    assert format_money(None, "VND") == ""


def test_render_calculation_snapshot():
    detail = evaluate(
        {
            "calculationMethod": "TIERED",
            "minFee": 5000000,
            "formula": {
                "tiers": TIERS,
                "additionalFees": [{"name": "copy_fee", "amount": 50000, "perUnit": True, "description": "Copy"}],
            },
        },
        {"property_value": 150000000, "num_copies": 2},
    )

    expected = dedent(
        """\
        | Item | Basis | Quantity | Amount |
        |---|---|---:|---:|
        | Tier 1 | 0 VND - 100,000,000 VND @ 1.5% | 1 | 1,500,000 VND |
        | Above 100M | > 100,000,000 VND @ 1% | 1 | 500,000 VND |
        | Copy | 50,000 VND each | 2 | 100,000 VND |
        | **Subtotal** | | | 2,100,000 VND |
        | **Total fee** (min/max limit applied) | | | **5,000,000 VND** |"""
    )
    assert render_calculation(detail, "VND") == expected


def test_render_calculation_fixed_fee():
    detail = evaluate({"calculationMethod": "FIXED", "baseFee": 500000}, {})
    out = render_calculation(detail, "VND")
    assert "| Base fee | fixed | 1 | 500,000 VND |" in out
    assert "limit applied" not in out


def test_render_history_table_marks_guests(service):
    record = service.create(GROUP_ID, TIERED_ID, {"property_value": 100000000})
    out = render_history_table([record], "VND")
    assert "| guest |" in out
    assert "1,550,000 VND" in out
