import json
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from conftest import FIXED_ID, GROUP_ID, INACTIVE_ID, TIERED_ID
from notary_fees.errors import InactiveFeeTypeError, NotFoundError
from notary_fees.records import CalculationQuery, FeeCalculationService, FeeCalculationStore
from notary_fees.utils.trace import build_trace_logger


def test_create_persists_breakdown_and_total(service, store):
    record = service.create(GROUP_ID, TIERED_ID, {"property_value": 600000000, "num_copies": 2}, user_id="u-1")

    assert record.total_fee == Decimal("6100000")
    assert record.calculation_result.total_fee == record.total_fee
    assert record.input_data == {"property_value": 600000000, "num_copies": 2}
    assert record.user_id == "u-1"
    assert store.get(record.id) == record

    lines = store.path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    saved = json.loads(lines[0])
    assert saved["totalFee"] == 6100000
    assert saved["calculationResult"]["additionalFees"][0]["quantity"] == 2


def test_create_allows_guests(service):
    record = service.create(GROUP_ID, FIXED_ID, {})
    assert record.user_id is None
    assert record.total_fee == 500000


def test_create_rejects_unknown_document_group(service, store):
    with pytest.raises(NotFoundError, match="Document group"):
        service.create("missing", TIERED_ID, {})
    assert store.all() == []


def test_create_rejects_unknown_fee_type(service):
    with pytest.raises(NotFoundError, match="Fee type"):
        service.create(GROUP_ID, "missing", {})


def test_create_rejects_inactive_fee_type(service, store):
    with pytest.raises(InactiveFeeTypeError, match="Fee type is not active") as exc:
        service.create(GROUP_ID, INACTIVE_ID, {"property_value": 1000})
    assert exc.value.status_code == 400
    assert store.all() == []


def test_create_writes_audit_trace(service, tmp_path):
    record = service.create(GROUP_ID, FIXED_ID, {"num_copies": 1})
    events = [json.loads(line) for line in (tmp_path / "trace.jsonl").read_text(encoding="utf-8").splitlines()]

    assert len(events) == 1
    assert events[0]["phase"] == "fee_calculation"
    assert events[0]["calculation_id"] == record.id
    assert events[0]["fee_type_id"] == FIXED_ID
    assert events[0]["payload"]["calculation_method"] == "FIXED"
    assert events[0]["payload"]["calculation_result"]["totalFee"] == 500000
    assert events[0]["document_group_id"] == GROUP_ID
    assert events[0]["user_id"] is None
    assert events[0]["total_fee"] == 500000


def test_trace_replays_events_per_calculation(service):
    first = service.create(GROUP_ID, FIXED_ID, {}, user_id="u-1")
    second = service.create(GROUP_ID, TIERED_ID, {"property_value": 1000})

    assert [e["calculation_id"] for e in service.trace.events()] == [first.id, second.id]
    replay = list(service.trace.events(second.id))
    assert len(replay) == 1
    assert replay[0]["payload"]["calculation_method"] == "TIERED"
    assert replay[0]["payload"]["input_data"] == {"property_value": 1000}


def test_disabled_trace_writes_nothing(registry, store, tmp_path):
    trace = build_trace_logger(tmp_path / "off" / "trace.jsonl", enabled=False)
    FeeCalculationService(registry, store, trace=trace).create(GROUP_ID, FIXED_ID, {})
    assert not trace.path.exists()
    assert list(trace.events()) == []


def test_store_reload_restores_records(service, store):
    first = service.create(GROUP_ID, TIERED_ID, {"property_value": 150000000}, user_id="u-1")
    second = service.create(GROUP_ID, FIXED_ID, {})

    reloaded = FeeCalculationStore(store.path)
    assert reloaded.load() == 2
    assert reloaded.get(first.id) == first
    assert reloaded.get(second.id).calculation_result == second.calculation_result


def test_store_load_skips_malformed_lines(store):
    store.path.write_text('{"id": "x"}\nnot json\n\n', encoding="utf-8")
    assert store.load() == 0


def test_store_load_skips_records_with_non_object_breakdown(service, store):
    good = service.create(GROUP_ID, FIXED_ID, {})
    valid_line = store.path.read_text(encoding="utf-8")
    base = {
        "id": "bad",
        "documentGroupId": GROUP_ID,
        "feeTypeId": FIXED_ID,
        "totalFee": 1,
        "createdAt": "2024-11-10T08:00:00+00:00",
    }
    corrupt = [
        dict(base, calculationResult=[1]),
        dict(base, calculationResult={"subtotal": 1, "totalFee": 1, "tieredFees": [1]}),
        dict(base, calculationResult={"subtotal": 1, "totalFee": 1, "additionalFees": ["x"]}),
        [1, 2],
    ]
    store.path.write_text(
        "".join(json.dumps(c) + "\n" for c in corrupt) + valid_line,
        encoding="utf-8",
    )

    assert store.load() == 1
    assert store.get(good.id) == good


def test_find_one_unknown_raises(service):
    with pytest.raises(NotFoundError, match="Fee calculation with ID nope not found"):
        service.find_one("nope")


def _seed(service):
    a = service.create(GROUP_ID, TIERED_ID, {"property_value": 600000000}, user_id="u-1")
    b = service.create(GROUP_ID, FIXED_ID, {}, user_id="u-2")
    c = service.create(GROUP_ID, TIERED_ID, {"property_value": 10000000}, user_id="u-1")
    return a, b, c


def test_find_all_filters_by_user_and_fee_type(service):
    a, b, c = _seed(service)

    assert {r.id for r in service.find_all(CalculationQuery(user_id="u-1")).items} == {a.id, c.id}
    assert [r.id for r in service.find_all(CalculationQuery(fee_type_id=FIXED_ID)).items] == [b.id]
    assert service.find_all(CalculationQuery(document_group_id="other")).total == 0


def test_find_all_user_argument_overrides_query(service):
    a, b, c = _seed(service)
    result = service.find_all(CalculationQuery(user_id="u-1"), user_id="u-2")
    assert [r.id for r in result.items] == [b.id]


def test_find_all_sorts_by_total_fee(service):
    a, b, c = _seed(service)
    asc = service.find_all(CalculationQuery(sort_by="totalFee", sort_order="ASC"))
    assert [r.id for r in asc.items] == [c.id, b.id, a.id]


def test_find_all_sorts_by_created_at_newest_first(registry):
    store = FeeCalculationStore(None)
    service = FeeCalculationService(registry, store)
    old = service.create(GROUP_ID, FIXED_ID, {})
    store._records[old.id] = replace(old, created_at=datetime.now(timezone.utc) - timedelta(days=1))
    new = service.create(GROUP_ID, FIXED_ID, {})

    assert [r.id for r in service.find_all().items] == [new.id, old.id]


def test_find_my_calculations_paginates(service):
    _seed(service)
    page = service.find_my_calculations("u-1", CalculationQuery(limit=1, page=2))
    assert page.total == 2
    assert page.total_pages == 2
    assert len(page.items) == 1
    assert page.to_dict()["totalPages"] == 2


def test_find_all_rejects_bad_paging(service):
    with pytest.raises(ValueError):
        service.find_all(CalculationQuery(page=0))
    with pytest.raises(ValueError):
        service.find_all(CalculationQuery(sort_order="sideways"))
