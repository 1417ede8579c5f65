from decimal import Decimal

from notary_fees.calculation import evaluate

FEE_TYPE = {
    "calculationMethod": "FIXED",
    "baseFee": 10000,
    "formula": {
        "additionalFees": [
            {"name": "page_fee", "amount": 2000, "perUnit": True},
            {"name": "stamp_fee", "amount": 5000, "perUnit": False},
        ]
    },
}


def _lines(input_data):
    return {line.name: line for line in evaluate(FEE_TYPE, input_data).additional_fees}


def test_named_input_wins_over_copy_count():
    lines = _lines({"page": 7, "num_copies": 3})
    assert lines["page_fee"].quantity == 7
    assert lines["page_fee"].total == Decimal("14000")


def test_copy_count_used_when_named_input_missing():
    assert _lines({"num_copies": 3})["page_fee"].quantity == 3


def test_quantity_defaults_to_one():
    assert _lines({})["page_fee"].quantity == 1


def test_zero_quantity_is_kept():
    lines = _lines({"page": 0, "num_copies": 4})
    assert lines["page_fee"].quantity == 0
    assert lines["page_fee"].total == 0


def test_flat_fee_ignores_inputs():
    lines = _lines({"stamp": 9, "num_copies": 9})
    assert lines["stamp_fee"].quantity == 1
    assert lines["stamp_fee"].total == Decimal("5000")


def test_additional_fees_add_to_subtotal():
    detail = evaluate(FEE_TYPE, {"page": 2})
    # 10,000 base + 4,000 pages + 5,000 stamp
    assert detail.subtotal == Decimal("19000")
    assert detail.total_fee == Decimal("19000")
