"""Audit trail of fee calculations.

Every persisted calculation is mirrored to a JSONL file so the figures can be
audited without the history store: which fee type and method produced the
total, the raw form inputs and the full breakdown.

Event shape (one per line):
  {"timestamp", "phase": "fee_calculation", "calculation_id", "fee_type_id",
   "document_group_id", "user_id", "total_fee", "payload": {...}}
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Iterator, Optional

from .numbers import to_json_number

if TYPE_CHECKING:
    from ..records.store import FeeCalculationRecord

CALCULATION_PHASE = "fee_calculation"


@dataclass
class TraceLogger:
    path: Path
    enabled: bool = True
    _initialized: bool = field(default=False, init=False, repr=False)

    def _append(self, event: Dict[str, Any]) -> None:
        if not self._initialized:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._initialized = True
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(event, ensure_ascii=False, default=str) + "\n")

    def log_calculation(self, record: "FeeCalculationRecord", calculation_method: str) -> None:
        """Append the audit event for one stored calculation."""
        if not self.enabled:
            return
        self._append(
            {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "phase": CALCULATION_PHASE,
                "calculation_id": record.id,
                "fee_type_id": record.fee_type_id,
                "document_group_id": record.document_group_id,
                "user_id": record.user_id,
                "total_fee": to_json_number(record.total_fee),
                "payload": {
                    "calculation_method": calculation_method,
                    "input_data": record.input_data,
                    "calculation_result": record.calculation_result.to_dict(),
                },
            }
        )

    def events(self, calculation_id: Optional[str] = None) -> Iterator[Dict[str, Any]]:
        """Replay the trace, optionally for a single calculation."""
        if not self.path.exists():
            return
        with self.path.open("r", encoding="utf-8") as handle:
            for line in handle:
                line = line.strip()
                if not line:
                    continue
                event = json.loads(line)
                if calculation_id is None or event.get("calculation_id") == calculation_id:
                    yield event


def build_trace_logger(path: Path | str, enabled: bool = True) -> TraceLogger:
    return TraceLogger(Path(path), enabled=enabled)


__all__ = ["CALCULATION_PHASE", "TraceLogger", "build_trace_logger"]
