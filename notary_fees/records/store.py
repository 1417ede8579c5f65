"""Calculation history.

Each calculation is persisted as an immutable record; the store keeps them in
memory and, when given a path, appends one JSON line per record so history
survives across CLI runs.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from ..calculation.detail import CalculationDetail
from ..errors import NotFoundError
from ..utils.numbers import decimal_or, to_json_number

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeeCalculationRecord:
    document_group_id: str
    fee_type_id: str
    input_data: Dict[str, Any]
    calculation_result: CalculationDetail
    total_fee: Decimal
    user_id: Optional[str] = None  # None for guests
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "documentGroupId": self.document_group_id,
            "feeTypeId": self.fee_type_id,
            "inputData": self.input_data,
            "calculationResult": self.calculation_result.to_dict(),
            "totalFee": to_json_number(self.total_fee),
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FeeCalculationRecord":
        created = datetime.fromisoformat(str(data["createdAt"]))
        if created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        return cls(
            id=str(data["id"]),
            user_id=data.get("userId"),
            document_group_id=str(data["documentGroupId"]),
            fee_type_id=str(data["feeTypeId"]),
            input_data=dict(data.get("inputData") or {}),
            calculation_result=CalculationDetail.from_dict(data.get("calculationResult") or {}),
            total_fee=decimal_or(data.get("totalFee"), Decimal("0")),
            created_at=created,
        )


@dataclass
class FeeCalculationStore:
    path: Optional[Path] = None
    _records: Dict[str, FeeCalculationRecord] = field(default_factory=dict, init=False, repr=False)

    def load(self) -> int:
        """Read the JSONL file (if any); malformed lines are skipped with a warning."""
        self._records.clear()
        if self.path is None or not self.path.exists():
            return 0
        with self.path.open("r", encoding="utf-8") as handle:
            for lineno, line in enumerate(handle, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    rec = FeeCalculationRecord.from_dict(json.loads(line))
                except (ValueError, KeyError, TypeError, AttributeError) as ex:
                    _LOGGER.warning("Skipping malformed record at %s:%d (%s)", self.path, lineno, ex)
                    continue
                self._records[rec.id] = rec
        return len(self._records)

    def add(self, record: FeeCalculationRecord) -> FeeCalculationRecord:
        self._records[record.id] = record
        if self.path is not None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(record.to_dict(), ensure_ascii=False, default=str) + "\n")
        return record

    def get(self, record_id: str) -> FeeCalculationRecord:
        rec = self._records.get(record_id)
        if rec is None:
            raise NotFoundError("Fee calculation", record_id)
        return rec

    def all(self) -> List[FeeCalculationRecord]:
        return list(self._records.values())


def build_store(path: Path | str | None, *, load: bool = True) -> FeeCalculationStore:
    store = FeeCalculationStore(Path(path) if path else None)
    if load:
        store.load()
    return store
