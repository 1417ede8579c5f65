from .loader import dump_fee_type, dump_formula, load_definitions, parse_calculation_method, parse_document_group, parse_fee_type
from .registry import FeeTypeQuery, FeeTypeRegistry, build_default_registry
from .schema import AdditionalFeeDef, CalculationMethod, DocumentGroup, FeeTypeConfig, FormulaSchema, TierDef

__all__ = [
    "AdditionalFeeDef",
    "CalculationMethod",
    "DocumentGroup",
    "FeeTypeConfig",
    "FeeTypeQuery",
    "FeeTypeRegistry",
    "FormulaSchema",
    "TierDef",
    "build_default_registry",
    "dump_fee_type",
    "dump_formula",
    "load_definitions",
    "parse_calculation_method",
    "parse_document_group",
    "parse_fee_type",
]
