"""
Pricing Engine: weights, material cost and the full cost breakdown.

Combines geometry and nesting outputs into a CalculatedQuote.
Pure math, no I/O. Weight × price, hours × rate, subtotal × markup.

Input: QuoteSpec + MaterialCatalog
Output: CalculatedQuote (everything in CZK except the *_native fields)
"""

import hashlib
from typing import Iterable, List, Optional, Tuple, Union

from .calculators.geometry import bar_net_weight_kg, is_bar_profile, part_volume_mm3, sheet_volume_mm3
from .calculators.material_lookup import MaterialCatalog
from .calculators.nesting import nest_bars, nest_sheet, parse_sheet_format
from .config import settings
from .schemas import (
    BarNestingResult, CalculatedQuote, Currency, MaterialDefinition, OperationCost,
    QuoteSpec, SheetNestingResult,
)
from .weights import to_millimeters, weight_kg_from_volume


CatalogLike = Union[MaterialCatalog, Iterable[MaterialDefinition]]


class PricingEngine:
    """
    Stateless quote calculator.
    Safe to share between threads, calculate() reads only its arguments.
    """

    def __init__(self, sheet_gap_mm: Optional[float] = None):
        if sheet_gap_mm is None:
            sheet_gap_mm = settings.SHEET_GAP_MM
        self.sheet_gap_mm = sheet_gap_mm

    def calculate(self, spec: QuoteSpec, catalog: CatalogLike) -> CalculatedQuote:
        """
        Price a quote from scratch.

        Same spec and catalog always give the same result. Whole-batch
        figures cover good parts and scrap; per-part prices are spread over
        good parts only, so scrap is absorbed into the sellable price.
        """
        if not isinstance(catalog, MaterialCatalog):
            catalog = MaterialCatalog(catalog)

        notices = []
        total_count = spec.total_production_count
        sellable = max(spec.quantity_good, 1)
        if spec.quantity_good <= 0:
            notices.append("No good parts in the batch. Per-part prices are shown for 1 part.")

        material = catalog.get(spec.material_id)
        if material is None:
            notices.append(
                f"Material '{spec.material_id}' is not in the catalog. "
                f"Material weight and cost are 0."
            )
            density = 0.0
        else:
            density = material.density

        dims = spec.dimensions
        length = to_millimeters(dims.length, dims.unit)
        width = to_millimeters(dims.width, dims.unit)
        height = to_millimeters(dims.height, dims.unit)
        waste_pct = spec.cut_off_waste_percentage

        bar_nesting: List[BarNestingResult] = []
        sheet_nesting = None
        total_length_needed = 0.0
        sheet_count = 0

        if is_bar_profile(spec.cross_section):
            net, waste_per_part, gross_per_part, total_weight = self._bar_weights(
                spec, length, width, height, density,
            )
            bar_nesting = nest_bars(length, waste_pct, total_count)
            total_length_needed = bar_nesting[0].total_length_needed_mm if bar_nesting else 0.0
            for bar in bar_nesting:
                if not bar.fits:
                    notices.append(
                        f"Part does not fit a {bar.stock_length_mm:.0f} mm bar "
                        f"(effective length {bar.effective_length_mm:.1f} mm)."
                    )
            fits = any(bar.fits for bar in bar_nesting)
        else:
            sheet_nesting, net, waste_per_part, gross_per_part, total_weight = self._sheet_weights(
                spec, length, width, height, density, total_count,
            )
            sheet_count = sheet_nesting.sheets_needed
            fits = sheet_nesting.fits
            if not fits:
                notices.append(
                    f"Part {width:.1f} x {length:.1f} mm does not fit on sheet "
                    f"{spec.sheet_format.value} mm. Sheet count and material cost are 0."
                )

        total_waste_weight = waste_per_part * total_count

        # --- Material cost: native first, then converted to CZK ---
        rate = self._exchange_rate(spec)
        price_per_kg = spec.factors.material_cost_per_kg
        material_native = total_weight * price_per_kg
        material_czk = material_native * rate
        waste_native = total_waste_weight * price_per_kg
        waste_per_part_native = waste_per_part * price_per_kg

        shipping_native = spec.shipping_cost
        shipping_czk = shipping_native * rate

        # --- Labor ---
        setup_hours = spec.setup_hours
        setup_cost = setup_hours * spec.factors.setup_rate_per_hour
        operation_costs = self._operation_costs(spec, total_count)
        machining_cost = sum(op.cost for op in operation_costs)
        machining_hours = sum(op.hours for op in operation_costs)
        post_process = total_count * spec.factors.post_process_cost_per_part

        subtotal = material_czk + shipping_czk + setup_cost + machining_cost + post_process
        markup_amount = subtotal * (spec.factors.markup_percentage / 100.0)
        total_price = subtotal + markup_amount

        return CalculatedQuote(
            total_production_count=total_count,
            material_weight=total_weight,
            material_weight_per_part=gross_per_part,
            net_weight_per_part=net,
            material_waste_weight_per_part=waste_per_part,
            material_waste_weight_total=total_waste_weight,
            material_cost_total_native=material_native,
            material_cost_total_czk=material_czk,
            material_cost_per_part_native=material_native / sellable,
            material_cost_per_part_czk=material_czk / sellable,
            material_waste_cost_native=waste_native,
            material_waste_cost_czk=waste_native * rate,
            material_waste_cost_per_part_native=waste_per_part_native,
            material_waste_cost_per_part_czk=waste_per_part_native * rate,
            exchange_rate=rate,
            shipping_cost_native=shipping_native,
            shipping_cost_czk=shipping_czk,
            setup_hours_total=setup_hours,
            setup_cost_total=setup_cost,
            machining_cost_total=machining_cost,
            total_machining_hours=machining_hours,
            post_process_total=post_process,
            subtotal=subtotal,
            markup_amount=markup_amount,
            total_price=total_price,
            price_per_part=total_price / sellable,
            total_length_needed=total_length_needed,
            bar_nesting=bar_nesting,
            sheet_nesting=sheet_nesting,
            sheet_count=sheet_count,
            operation_costs=operation_costs,
            notices=notices,
            fits=fits,
        )

    def _bar_weights(self, spec: QuoteSpec, length: float, width: float, height: float,
                     density: float) -> Tuple[float, float, float, float]:
        """
        Returns (net, waste, gross) per part and the batch's total gross weight, in kg.
        Cut-off waste is a percentage of the net part weight.
        """
        net = bar_net_weight_kg(spec.cross_section, length, width, height, density)
        waste = net * (spec.cut_off_waste_percentage / 100.0)
        gross = net + waste
        return net, waste, gross, gross * spec.total_production_count

    def _sheet_weights(self, spec: QuoteSpec, length: float, width: float, thickness: float,
                       density: float, total_count: int):
        """
        Sheet stock is bought whole, so the batch weight is whole sheets.
        Per-part gross weight is that spread over every produced part.
        """
        sheet_w, sheet_l = parse_sheet_format(spec.sheet_format)
        nesting: SheetNestingResult = nest_sheet(
            sheet_w, sheet_l, width, length,
            spec.cut_off_waste_percentage, total_count,
            gap_mm=self.sheet_gap_mm,
        )
        weight_per_sheet = weight_kg_from_volume(sheet_volume_mm3(sheet_w, sheet_l, thickness), density)
        total_weight = nesting.sheets_needed * weight_per_sheet

        net = weight_kg_from_volume(part_volume_mm3(length, width, thickness), density)
        gross = total_weight / total_count if total_count > 0 else 0.0
        waste = max(0.0, gross - net)
        return nesting, net, waste, gross, total_weight

    def _exchange_rate(self, spec: QuoteSpec) -> float:
        """Native -> CZK multiplier. CZK material is always 1:1."""
        if spec.material_currency == Currency.CZK:
            return 1.0
        return spec.material_exchange_rate

    def _operation_costs(self, spec: QuoteSpec, total_count: int) -> List[OperationCost]:
        """Every operation runs on every produced part, scrap included."""
        costs = []
        for op in spec.operations:
            hours = (op.time_per_part_minutes / 60.0) * total_count
            costs.append(OperationCost(id=op.id, name=op.name, hours=hours, cost=hours * op.hourly_rate))
        return costs


def calculate_quote(spec: QuoteSpec, catalog: CatalogLike,
                    sheet_gap_mm: Optional[float] = None) -> CalculatedQuote:
    """Price a quote. Pure function of its arguments."""
    return PricingEngine(sheet_gap_mm=sheet_gap_mm).calculate(spec, catalog)


def apply_material_defaults(spec: QuoteSpec, material: MaterialDefinition) -> QuoteSpec:
    """
    Switch a quote to another material.
    The material's default price replaces the price per kg when it is set
    and non-zero.
    """
    update = {"material_id": material.id}
    if material.default_price_per_kg:
        update["factors"] = spec.factors.model_copy(
            update={"material_cost_per_kg": material.default_price_per_kg}
        )
    return spec.model_copy(update=update)


def spec_fingerprint(spec: QuoteSpec) -> str:
    """Stable hash of a quote spec, for callers that cache results."""
    return hashlib.sha256(spec.model_dump_json().encode("utf-8")).hexdigest()
