"""
Input and output models for the quoting engine.

QuoteSpec + MaterialDefinition go in, CalculatedQuote comes out.
Numeric inputs are lenient: blank, NaN or garbage values become 0
instead of failing validation, so a half-edited form still prices.
"""

import enum
import math
from typing import List, Optional

from pydantic import BaseModel, field_validator

from .calculators.parsing import parse_count, parse_number
from .config import settings


# --- Enums ---

class CrossSection(str, enum.Enum):
    RECTANGULAR = "RECTANGULAR"
    ROUND = "ROUND"
    HEX = "HEX"
    SHEET = "SHEET"


class LengthUnit(str, enum.Enum):
    MM = "mm"
    INCH = "inch"


class Currency(str, enum.Enum):
    CZK = "CZK"
    EUR = "EUR"
    USD = "USD"


class SheetFormat(str, enum.Enum):
    """Stock sheet sizes, width x length in mm."""
    SHEET_1000x2000 = "1000x2000"
    SHEET_1250x2500 = "1250x2500"
    SHEET_1500x3000 = "1500x3000"


# --- Inputs ---

class Dimensions(BaseModel):
    length: float = 0.0
    width: float = 0.0
    height: float = 0.0  # rectangular height, or sheet thickness
    unit: LengthUnit = LengthUnit.MM

    @field_validator("length", "width", "height", mode="before")
    @classmethod
    def _lenient_number(cls, v):
        return parse_number(v)

    class Config:
        frozen = True


class ProductionOperation(BaseModel):
    """One per-part production step, e.g. turning or milling."""
    id: str
    name: str = ""
    time_per_part_minutes: float = 0.0
    hourly_rate: float = 0.0  # CZK/h

    @field_validator("time_per_part_minutes", "hourly_rate", mode="before")
    @classmethod
    def _lenient_number(cls, v):
        return parse_number(v)

    class Config:
        frozen = True


class CostFactors(BaseModel):
    material_cost_per_kg: float = 0.0  # in the material currency
    setup_rate_per_hour: float = 0.0   # CZK/h
    post_process_cost_per_part: float = 0.0
    markup_percentage: float = 0.0

    @field_validator("*", mode="before")
    @classmethod
    def _lenient_number(cls, v):
        return parse_number(v)

    class Config:
        frozen = True


class QuoteSpec(BaseModel):
    customer_name: str = ""
    part_name: str = ""
    notes: str = ""

    quantity_good: int = 1
    quantity_scrap: int = 0

    material_id: str = ""
    cross_section: CrossSection = CrossSection.RECTANGULAR
    sheet_format: SheetFormat = SheetFormat.SHEET_1000x2000
    dimensions: Dimensions = Dimensions()
    cut_off_waste_percentage: float = 0.0

    material_currency: Currency = Currency.CZK
    material_exchange_rate: float = 1.0  # native -> CZK
    shipping_cost: float = 0.0           # native currency, one-off

    # Preparation times in hours (one-off per batch)
    time_3d: float = 0.0
    time_cam: float = 0.0
    time_machine_setup: float = 0.0
    time_inspection: float = 0.0
    time_expedition: float = 0.0

    operations: List[ProductionOperation] = []
    factors: CostFactors = CostFactors()

    @field_validator("quantity_good", "quantity_scrap", mode="before")
    @classmethod
    def _lenient_count(cls, v):
        return parse_count(v)

    @field_validator(
        "cut_off_waste_percentage", "material_exchange_rate", "shipping_cost",
        "time_3d", "time_cam", "time_machine_setup", "time_inspection", "time_expedition",
        mode="before",
    )
    @classmethod
    def _lenient_number(cls, v):
        return parse_number(v)

    @property
    def total_production_count(self) -> int:
        """Good parts plus scrap, everything that goes through the machine."""
        return self.quantity_good + self.quantity_scrap

    @property
    def setup_hours(self) -> float:
        return (self.time_3d + self.time_cam + self.time_machine_setup
                + self.time_inspection + self.time_expedition)

    class Config:
        frozen = True


class MaterialDefinition(BaseModel):
    id: str
    name: str
    density: float  # g/cm³
    default_price_per_kg: Optional[float] = None  # CZK

    @field_validator("density")
    @classmethod
    def _positive_density(cls, v):
        if not math.isfinite(v) or v <= 0:
            raise ValueError("density must be a positive number (g/cm³)")
        return v

    class Config:
        frozen = True


# --- Outputs ---

class BarNestingResult(BaseModel):
    stock_length_mm: float
    part_length_mm: float
    effective_length_mm: float
    pieces_per_bar: int
    utilization: float       # fraction of the bar used, 0..1
    remainder_mm: float
    total_length_needed_mm: float
    bars_needed: int
    fits: bool

    class Config:
        frozen = True


class SheetNestingResult(BaseModel):
    sheet_width_mm: float
    sheet_length_mm: float
    part_width_mm: float
    part_length_mm: float
    gap_mm: float

    # Grid layout (with gap): what the operator sees on the sheet
    standard_count: int
    rotated_count: int
    rotated: bool
    columns: int
    rows: int
    parts_per_sheet: int
    display_sheets_needed: int
    display_utilization: float

    # Pricing: stricter of grid fit and waste-inflated area fit
    area_fit: int
    effective_parts_per_sheet: int
    sheets_needed: int
    pricing_utilization: float
    fits: bool

    class Config:
        frozen = True


class OperationCost(BaseModel):
    id: str
    name: str
    hours: float  # for the whole batch, scrap included
    cost: float

    class Config:
        frozen = True


class CalculatedQuote(BaseModel):
    total_production_count: int

    # Weights (kg)
    material_weight: float                # total gross for the batch
    material_weight_per_part: float       # gross per produced part
    net_weight_per_part: float
    material_waste_weight_per_part: float
    material_waste_weight_total: float

    # Material cost, native currency and CZK
    material_cost_total_native: float
    material_cost_total_czk: float
    material_cost_per_part_native: float
    material_cost_per_part_czk: float
    material_waste_cost_native: float
    material_waste_cost_czk: float
    material_waste_cost_per_part_native: float
    material_waste_cost_per_part_czk: float
    exchange_rate: float

    shipping_cost_native: float
    shipping_cost_czk: float

    setup_hours_total: float
    setup_cost_total: float
    machining_cost_total: float
    total_machining_hours: float
    post_process_total: float

    subtotal: float
    markup_amount: float
    total_price: float
    price_per_part: float

    # Stock
    total_length_needed: float = 0.0  # mm, bars only
    bar_nesting: List[BarNestingResult] = []
    sheet_nesting: Optional[SheetNestingResult] = None
    sheet_count: int = 0

    operation_costs: List[OperationCost] = []
    notices: List[str] = []
    fits: bool = True

    class Config:
        frozen = True

    def _bar(self, stock_length_mm: float) -> Optional[BarNestingResult]:
        for bar in self.bar_nesting:
            if bar.stock_length_mm == stock_length_mm:
                return bar
        return None

    @property
    def bar_count_3m(self) -> int:
        bar = self._bar(3000)
        return bar.bars_needed if bar else 0

    @property
    def bar_count_6m(self) -> int:
        bar = self._bar(6000)
        return bar.bars_needed if bar else 0

    @property
    def pieces_per_3m_bar(self) -> int:
        bar = self._bar(3000)
        return bar.pieces_per_bar if bar else 0

    @property
    def pieces_per_6m_bar(self) -> int:
        bar = self._bar(6000)
        return bar.pieces_per_bar if bar else 0


def default_quote_spec() -> QuoteSpec:
    """Blank quote template: one aluminium block, 1 h setup, one CNC operation."""
    return QuoteSpec(
        quantity_good=1,
        quantity_scrap=0,
        material_id=settings.DEFAULT_MATERIAL_ID,
        cross_section=CrossSection.RECTANGULAR,
        sheet_format=SheetFormat.SHEET_1000x2000,
        dimensions=Dimensions(length=100, width=50, height=25, unit=LengthUnit.MM),
        time_machine_setup=1.0,
        operations=[
            ProductionOperation(
                id="op_1",
                name="CNC machining",
                time_per_part_minutes=settings.MACHINING_MINUTES_DEFAULT,
                hourly_rate=settings.MACHINING_RATE_DEFAULT,
            ),
        ],
        factors=CostFactors(
            material_cost_per_kg=settings.MATERIAL_COST_PER_KG_DEFAULT,
            setup_rate_per_hour=settings.SETUP_RATE_DEFAULT,
            post_process_cost_per_part=settings.POST_PROCESS_COST_DEFAULT,
            markup_percentage=settings.MARKUP_DEFAULT,
        ),
        material_currency=Currency.CZK,
        material_exchange_rate=1.0,
    )
