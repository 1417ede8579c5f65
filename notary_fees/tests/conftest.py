import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1].parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from notary_fees.fee_types import DocumentGroup, FeeTypeRegistry, parse_fee_type  # noqa: E402
from notary_fees.records import FeeCalculationService, FeeCalculationStore  # noqa: E402
from notary_fees.utils.trace import build_trace_logger  # noqa: E402

GROUP_ID = "550e8400-e29b-41d4-a716-446655440000"
TIERED_ID = "660e8400-e29b-41d4-a716-446655440111"
FIXED_ID = "660e8400-e29b-41d4-a716-446655440113"
INACTIVE_ID = "660e8400-e29b-41d4-a716-446655440199"

TIERS = [
    {"from": 0, "to": 100000000, "rate": 0.015},
    {"from": 100000000, "to": 500000000, "rate": 0.01},
    {"from": 500000000, "to": None, "rate": 0.005},
]


@pytest.fixture
def registry():
    reg = FeeTypeRegistry()
    reg.register_document_group(DocumentGroup(id=GROUP_ID, name="Hợp đồng mua bán nhà đất"))
    reg.create(
        parse_fee_type(
            {
                "id": TIERED_ID,
                "documentGroupId": GROUP_ID,
                "name": "Tiered property fee",
                "calculationMethod": "TIERED",
                "createdAt": "2024-11-10T08:00:00+00:00",
                "formula": {
                    "tiers": TIERS,
                    "additionalFees": [{"name": "copy_fee", "amount": 50000, "perUnit": True}],
                },
            }
        )
    )
    reg.create(
        {
            "id": FIXED_ID,
            "documentGroupId": GROUP_ID,
            "name": "Fixed copy certification",
            "calculationMethod": "FIXED",
            "createdAt": "2024-11-11T08:00:00+00:00",
            "baseFee": 500000,
        }
    )
    reg.create(
        {
            "id": INACTIVE_ID,
            "documentGroupId": GROUP_ID,
            "name": "Retired percentage fee",
            "calculationMethod": "PERCENT",
            "createdAt": "2024-11-12T08:00:00+00:00",
            "percentage": 0.02,
            "status": False,
        }
    )
    return reg


@pytest.fixture
def store(tmp_path):
    return FeeCalculationStore(tmp_path / "history.jsonl")


@pytest.fixture
def service(registry, store, tmp_path):
    return FeeCalculationService(registry, store, trace=build_trace_logger(tmp_path / "trace.jsonl"))
