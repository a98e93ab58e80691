"""
CNC quoting engine.

QuoteSpec + MaterialCatalog -> geometry -> nesting -> weight & cost -> CalculatedQuote.
"""

from .calculators.material_lookup import FALLBACK_MATERIALS, MaterialCatalog
from .pricing_engine import PricingEngine, apply_material_defaults, calculate_quote, spec_fingerprint
from .schemas import (
    BarNestingResult, CalculatedQuote, CostFactors, CrossSection, Currency, Dimensions,
    LengthUnit, MaterialDefinition, OperationCost, ProductionOperation, QuoteSpec,
    SheetFormat, SheetNestingResult, default_quote_spec,
)

__all__ = [
    "BarNestingResult", "CalculatedQuote", "CostFactors", "CrossSection", "Currency",
    "Dimensions", "FALLBACK_MATERIALS", "LengthUnit", "MaterialCatalog", "MaterialDefinition",
    "OperationCost", "PricingEngine", "ProductionOperation", "QuoteSpec", "SheetFormat",
    "SheetNestingResult", "apply_material_defaults", "calculate_quote", "default_quote_spec",
    "spec_fingerprint",
]
