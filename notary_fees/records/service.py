"""Fee calculation lifecycle: validate, evaluate, persist, list."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from ..calculation.evaluator import evaluate
from ..config import DEFAULT_PAGE, DEFAULT_PAGE_LIMIT
from ..errors import InactiveFeeTypeError
from ..fee_types.registry import FeeTypeRegistry
from ..utils.pagination import PaginatedResult, normalize_sort_order, paginate
from ..utils.trace import TraceLogger
from .store import FeeCalculationRecord, FeeCalculationStore

_LOGGER = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

CALCULATION_SORT_FIELDS = ("createdAt", "totalFee")


@dataclass(frozen=True)
class CalculationQuery:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_PAGE_LIMIT
    user_id: Optional[str] = None
    document_group_id: Optional[str] = None
    fee_type_id: Optional[str] = None
    sort_by: str = "createdAt"
    sort_order: str = "DESC"


class FeeCalculationService:
    def __init__(
        self,
        registry: FeeTypeRegistry,
        store: FeeCalculationStore,
        trace: Optional[TraceLogger] = None,
    ):
        self.registry = registry
        self.store = store
        self.trace = trace

    def create(
        self,
        document_group_id: str,
        fee_type_id: str,
        input_data: Optional[Mapping[str, Any]] = None,
        user_id: Optional[str] = None,
    ) -> FeeCalculationRecord:
        """Evaluate ``fee_type_id`` against ``input_data`` and persist the result.

        Raises NotFoundError for an unknown document group or fee type and
        InactiveFeeTypeError when the fee type is switched off.
        """
        self.registry.get_document_group(document_group_id)
        fee_type = self.registry.get(fee_type_id)
        if not fee_type.status:
            raise InactiveFeeTypeError(fee_type_id)

        data: Dict[str, Any] = dict(input_data or {})
        detail = evaluate(fee_type, data)

        record = self.store.add(
            FeeCalculationRecord(
                user_id=user_id or None,
                document_group_id=document_group_id,
                fee_type_id=fee_type_id,
                input_data=data,
                calculation_result=detail,
                total_fee=detail.total_fee,
            )
        )
        _LOGGER.info(
            "Fee calculation %s: fee_type=%s total=%s",
            record.id,
            fee_type_id,
            record.total_fee,
        )
        if self.trace is not None:
            self.trace.log_calculation(record, fee_type.calculation_method.value)
        return record

    def find_all(
        self,
        query: CalculationQuery | None = None,
        user_id: Optional[str] = None,
    ) -> PaginatedResult[FeeCalculationRecord]:
        q = query or CalculationQuery()
        if q.sort_by not in CALCULATION_SORT_FIELDS:
            raise ValueError(f"sort_by must be one of {CALCULATION_SORT_FIELDS}, got {q.sort_by!r}")
        order = normalize_sort_order(q.sort_order)

        items = self.store.all()
        owner = user_id or q.user_id
        if owner:
            items = [r for r in items if r.user_id == owner]
        if q.document_group_id:
            items = [r for r in items if r.document_group_id == q.document_group_id]
        if q.fee_type_id:
            items = [r for r in items if r.fee_type_id == q.fee_type_id]

        if q.sort_by == "totalFee":
            items.sort(key=lambda r: r.total_fee, reverse=(order == "DESC"))
        else:
            items.sort(key=lambda r: r.created_at or _EPOCH, reverse=(order == "DESC"))
        return paginate(items, q.page, q.limit)

    def find_one(self, calculation_id: str) -> FeeCalculationRecord:
        return self.store.get(calculation_id)

    def find_my_calculations(
        self,
        user_id: str,
        query: CalculationQuery | None = None,
    ) -> PaginatedResult[FeeCalculationRecord]:
        return self.find_all(query, user_id=user_id)
