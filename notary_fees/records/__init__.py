from .service import CalculationQuery, FeeCalculationService
from .store import FeeCalculationRecord, FeeCalculationStore, build_store

__all__ = [
    "CalculationQuery",
    "FeeCalculationService",
    "FeeCalculationRecord",
    "FeeCalculationStore",
    "build_store",
]
