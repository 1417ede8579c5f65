from .detail import AdditionalFeeLine, CalculationDetail, TierFeeLine
from .evaluator import evaluate

__all__ = ["evaluate", "CalculationDetail", "TierFeeLine", "AdditionalFeeLine"]
