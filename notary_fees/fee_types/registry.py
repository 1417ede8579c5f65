from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..config import DEFAULT_PAGE, DEFAULT_PAGE_LIMIT
from ..errors import ConfigurationError, NotFoundError
from ..utils.pagination import PaginatedResult, normalize_sort_order, paginate
from .loader import dump_fee_type, dump_formula, load_definitions, parse_calculation_method, parse_fee_type
from .schema import CalculationMethod, DocumentGroup, FeeTypeConfig, FormulaSchema

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

FEE_TYPE_SORT_FIELDS = ("createdAt", "name")

# FeeTypeConfig field -> definition key
_UPDATABLE_FIELDS = {
    "calculation_method": "calculationMethod",
    "base_fee": "baseFee",
    "percentage": "percentage",
    "formula": "formula",
    "min_fee": "minFee",
    "max_fee": "maxFee",
    "document_group_id": "documentGroupId",
    "name": "name",
    "status": "status",
    "created_at": "createdAt",
}


@dataclass(frozen=True)
class FeeTypeQuery:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_PAGE_LIMIT
    search: Optional[str] = None
    document_group_id: Optional[str] = None
    calculation_method: Optional[CalculationMethod] = None
    status: Optional[bool] = None
    sort_by: str = "createdAt"
    sort_order: str = "DESC"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class FeeTypeRegistry:
    """Lookup table for document groups and their fee types."""

    document_groups: Dict[str, DocumentGroup] = field(default_factory=dict)
    fee_types: Dict[str, FeeTypeConfig] = field(default_factory=dict)

    # ---- document groups ----
    def register_document_group(self, group: DocumentGroup) -> DocumentGroup:
        self.document_groups[group.id] = group
        return group

    def get_document_group(self, document_group_id: str) -> DocumentGroup:
        group = self.document_groups.get(document_group_id)
        if group is None:
            raise NotFoundError("Document group", document_group_id)
        return group

    # ---- fee types ----
    def create(self, fee_type: FeeTypeConfig | Dict[str, Any]) -> FeeTypeConfig:
        ft = parse_fee_type(fee_type)
        now = _now()
        ft = replace(
            ft,
            id=ft.id or str(uuid.uuid4()),
            created_at=ft.created_at or now,
            updated_at=ft.updated_at or now,
        )
        self.fee_types[ft.id] = ft
        return ft

    def get(self, fee_type_id: str) -> FeeTypeConfig:
        ft = self.fee_types.get(fee_type_id)
        if ft is None:
            raise NotFoundError("Fee type", fee_type_id)
        return ft

    def update(self, fee_type_id: str, **changes: Any) -> FeeTypeConfig:
        """Apply field changes and run the result back through parse_fee_type.

        Changes use FeeTypeConfig field names; the id cannot be changed.
        """
        current = self.get(fee_type_id)
        unknown = sorted(set(changes) - set(_UPDATABLE_FIELDS))
        if unknown:
            raise ConfigurationError(f"Invalid fee type update for {fee_type_id}: unknown field(s) {', '.join(unknown)}")

        merged = dump_fee_type(current)
        for key, value in changes.items():
            if isinstance(value, FormulaSchema):
                value = dump_formula(value)
            merged[_UPDATABLE_FIELDS[key]] = value
        merged["updatedAt"] = _now()

        updated = parse_fee_type(merged, ctx=f"fee_type({fee_type_id})")
        self.fee_types[fee_type_id] = updated
        return updated

    def update_status(self, fee_type_id: str, status: bool) -> FeeTypeConfig:
        return self.update(fee_type_id, status=bool(status))

    def remove(self, fee_type_id: str) -> None:
        if self.fee_types.pop(fee_type_id, None) is None:
            raise NotFoundError("Fee type", fee_type_id)

    def find_by_document_group(self, document_group_id: str) -> List[FeeTypeConfig]:
        return [ft for ft in self.fee_types.values() if ft.document_group_id == document_group_id and ft.status]

    def find_all(self, query: FeeTypeQuery | None = None) -> PaginatedResult[FeeTypeConfig]:
        q = query or FeeTypeQuery()
        if q.sort_by not in FEE_TYPE_SORT_FIELDS:
            raise ValueError(f"sort_by must be one of {FEE_TYPE_SORT_FIELDS}, got {q.sort_by!r}")
        order = normalize_sort_order(q.sort_order)

        items = list(self.fee_types.values())
        if q.document_group_id:
            items = [ft for ft in items if ft.document_group_id == q.document_group_id]
        if q.calculation_method:
            method = parse_calculation_method(q.calculation_method)
            items = [ft for ft in items if ft.calculation_method is method]
        if q.status is not None:
            items = [ft for ft in items if ft.status is q.status]
        if q.search:
            needle = q.search.strip().lower()
            items = [ft for ft in items if needle in ft.name.lower()]

        if q.sort_by == "name":
            items.sort(key=lambda ft: ft.name.lower(), reverse=(order == "DESC"))
        else:
            items.sort(key=lambda ft: ft.created_at or _EPOCH, reverse=(order == "DESC"))
        return paginate(items, q.page, q.limit)


def build_default_registry(definitions_dir=None) -> FeeTypeRegistry:
    """Registry populated from the YAML/JSON definitions."""

    reg = FeeTypeRegistry()
    groups, fee_types = load_definitions(definitions_dir)
    for g in groups:
        reg.register_document_group(g)
    for ft in fee_types:
        reg.create(ft)
    return reg
