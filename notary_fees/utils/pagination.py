"""Page/limit slicing shared by fee type listings and calculation history."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Sequence, TypeVar

T = TypeVar("T")

SORT_ORDERS = ("ASC", "DESC")


@dataclass(frozen=True)
class PaginatedResult(Generic[T]):
    items: List[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 20

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [it.to_dict() if hasattr(it, "to_dict") else it for it in self.items],
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "totalPages": self.total_pages,
        }


def normalize_sort_order(sort_order: str) -> str:
    order = (sort_order or "DESC").strip().upper()
    if order not in SORT_ORDERS:
        raise ValueError(f"sort_order must be one of {SORT_ORDERS}, got {sort_order!r}")
    return order


def paginate(items: Sequence[T], page: int, limit: int) -> PaginatedResult[T]:
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if limit < 1:
        raise ValueError(f"limit must be >= 1, got {limit}")
    start = (page - 1) * limit
    return PaginatedResult(items=list(items[start : start + limit]), total=len(items), page=page, limit=limit)
