"""
Pricing engine: weights, currency conversion and the cost breakdown.

Tests:
1-4.   Totals and invariants (production count, subtotal, markup, idempotence)
5-9.   Bar weights (net/gross/waste, inch input, part longer than bar)
10-12. Sheet weights (whole sheets, no fit)
13-16. Currency and shipping
17-21. Labor (setup one-off, machining incl. scrap, operation order)
22-27. Degraded input (NaN, blanks, tiny lengths, unknown material, zero good parts)
28-32. Helpers (template quote, material defaults, fingerprint)
"""

import math

import pytest

from cnc_quoter.calculators.material_lookup import MaterialCatalog
from cnc_quoter.pricing_engine import (
    PricingEngine, apply_material_defaults, calculate_quote, spec_fingerprint,
)
from cnc_quoter.schemas import (
    CostFactors, CrossSection, Currency, Dimensions, LengthUnit, MaterialDefinition,
    ProductionOperation, QuoteSpec, SheetFormat, default_quote_spec,
)


# --- Test fixtures ---

def _bar_spec(**overrides):
    """Ø20 x 100 mm round steel, 100 good + 3 scrap, one CNC operation."""
    data = {
        "quantity_good": 100,
        "quantity_scrap": 3,
        "material_id": "TEST_STEEL",
        "cross_section": CrossSection.ROUND,
        "dimensions": Dimensions(length=100, width=20, height=0),
        "cut_off_waste_percentage": 0,
        "time_machine_setup": 1.0,
        "time_cam": 0.5,
        "operations": [
            ProductionOperation(id="op_1", name="Turning", time_per_part_minutes=15, hourly_rate=1500),
        ],
        "factors": CostFactors(
            material_cost_per_kg=50,
            setup_rate_per_hour=1200,
            post_process_cost_per_part=100,
            markup_percentage=20,
        ),
    }
    data.update(overrides)
    return QuoteSpec(**data)


def _sheet_spec(**overrides):
    """300 x 200 x 2 mm steel blank from 1000x2000 sheet, 100 good."""
    data = {
        "quantity_good": 100,
        "quantity_scrap": 0,
        "material_id": "TEST_STEEL",
        "cross_section": CrossSection.SHEET,
        "sheet_format": SheetFormat.SHEET_1000x2000,
        "dimensions": Dimensions(length=300, width=200, height=2),
        "factors": CostFactors(material_cost_per_kg=50),
    }
    data.update(overrides)
    return QuoteSpec(**data)


# ============================================================
# Totals and invariants
# ============================================================

def test_total_production_count_includes_scrap(catalog):
    spec = _bar_spec()
    assert spec.total_production_count == 103
    assert calculate_quote(spec, catalog).total_production_count == 103


def test_subtotal_is_exact_sum_of_components(catalog):
    q = calculate_quote(_bar_spec(shipping_cost=450), catalog)
    assert q.subtotal == (
        q.material_cost_total_czk + q.shipping_cost_czk + q.setup_cost_total
        + q.machining_cost_total + q.post_process_total
    )
    assert q.total_price == q.subtotal + q.markup_amount
    assert q.markup_amount == pytest.approx(q.subtotal * 0.20)


def test_price_per_part_spreads_over_good_parts_only(catalog):
    q = calculate_quote(_bar_spec(), catalog)
    assert q.price_per_part == pytest.approx(q.total_price / 100)
    assert q.material_cost_per_part_czk == pytest.approx(q.material_cost_total_czk / 100)


def test_same_inputs_same_outputs(catalog):
    spec = _bar_spec(cut_off_waste_percentage=7.5)
    first = calculate_quote(spec, catalog)
    second = calculate_quote(spec, catalog)
    assert first == second
    assert first.model_dump() == second.model_dump()


# ============================================================
# Bar weights
# ============================================================

def test_zero_waste_gross_equals_net(catalog):
    q = calculate_quote(_bar_spec(cut_off_waste_percentage=0), catalog)
    assert q.material_waste_weight_per_part == 0
    assert q.material_waste_weight_total == 0
    assert q.material_weight_per_part == q.net_weight_per_part
    assert q.net_weight_per_part == pytest.approx(0.2466, abs=1e-4)


def test_waste_inflates_gross_weight(catalog):
    q = calculate_quote(_bar_spec(cut_off_waste_percentage=10), catalog)
    net = q.net_weight_per_part
    assert q.material_waste_weight_per_part == pytest.approx(net * 0.10)
    assert q.material_weight_per_part == pytest.approx(net * 1.10)
    assert q.material_weight == pytest.approx(net * 1.10 * 103)
    assert q.material_waste_weight_total == pytest.approx(net * 0.10 * 103)


def test_inch_dimensions_match_mm(catalog):
    mm = calculate_quote(_bar_spec(dimensions=Dimensions(length=254, width=25.4, height=0)), catalog)
    inch = calculate_quote(
        _bar_spec(dimensions=Dimensions(length=10, width=1, height=0, unit=LengthUnit.INCH)),
        catalog,
    )
    assert inch.material_weight == pytest.approx(mm.material_weight)
    assert inch.total_length_needed == pytest.approx(mm.total_length_needed)


def test_bar_counts_for_3m_and_6m(catalog):
    spec = _bar_spec(dimensions=Dimensions(length=500, width=20, height=0), cut_off_waste_percentage=10)
    q = calculate_quote(spec, catalog)
    assert q.total_length_needed == pytest.approx(550 * 103)
    assert q.pieces_per_3m_bar == 5
    assert q.pieces_per_6m_bar == 10
    assert q.bar_count_3m == math.ceil(550 * 103 / 3000)
    assert q.bar_count_6m == math.ceil(550 * 103 / 6000)
    assert q.sheet_nesting is None
    assert q.sheet_count == 0
    assert q.fits


def test_part_longer_than_bar_is_flagged_not_zeroed(catalog):
    spec = _bar_spec(dimensions=Dimensions(length=7000, width=20, height=0))
    q = calculate_quote(spec, catalog)
    assert q.pieces_per_6m_bar == 0
    assert q.pieces_per_3m_bar == 0
    assert not q.fits
    assert any("does not fit a 6000 mm bar" in n for n in q.notices)
    assert q.material_cost_total_czk > 0


# ============================================================
# Sheet weights
# ============================================================

def test_sheet_weight_is_whole_sheets(catalog):
    q = calculate_quote(_sheet_spec(), catalog)
    nesting = q.sheet_nesting
    assert nesting.rotated
    assert nesting.effective_parts_per_sheet == 27
    assert q.sheet_count == 4
    # One sheet: 1000 x 2000 x 2 mm = 4000 cm³ x 7.85 = 31.4 kg
    assert q.material_weight == pytest.approx(4 * 31.4)
    assert q.net_weight_per_part == pytest.approx(0.942)
    assert q.material_weight_per_part == pytest.approx(4 * 31.4 / 100)
    assert q.material_waste_weight_per_part == pytest.approx(4 * 31.4 / 100 - 0.942)
    assert q.material_cost_total_czk == pytest.approx(4 * 31.4 * 50)
    assert q.bar_nesting == []


def test_sheet_gap_is_configurable(catalog):
    q = PricingEngine(sheet_gap_mm=0).calculate(_sheet_spec(), catalog)
    assert q.sheet_nesting.gap_mm == 0
    assert q.sheet_nesting.parts_per_sheet == 30
    assert q.sheet_count == 4   # ceil(100 / 30)


def test_part_larger_than_sheet(catalog):
    spec = _sheet_spec(dimensions=Dimensions(length=2500, width=1200, height=2))
    q = calculate_quote(spec, catalog)
    assert q.sheet_count == 0
    assert q.material_weight == 0
    assert q.material_waste_weight_per_part == 0
    assert not q.fits
    assert any("does not fit on sheet" in n for n in q.notices)


# ============================================================
# Currency and shipping
# ============================================================

def test_native_currency_converted_to_czk(catalog):
    spec = _bar_spec(material_currency=Currency.EUR, material_exchange_rate=25.0)
    q = calculate_quote(spec, catalog)
    assert q.exchange_rate == 25.0
    assert q.material_cost_total_czk == pytest.approx(q.material_cost_total_native * 25.0)
    assert q.material_cost_per_part_czk == pytest.approx(q.material_cost_per_part_native * 25.0)


def test_czk_round_trip_by_inverse_rate(catalog):
    rate = 24.317
    spec = _bar_spec(material_currency=Currency.USD, material_exchange_rate=rate,
                     cut_off_waste_percentage=12)
    q = calculate_quote(spec, catalog)
    back = q.material_cost_total_czk * (1 / rate)
    assert back == pytest.approx(q.material_cost_total_native, rel=1e-6)


def test_czk_material_ignores_stale_rate(catalog):
    spec = _bar_spec(material_currency=Currency.CZK, material_exchange_rate=25.0)
    q = calculate_quote(spec, catalog)
    assert q.exchange_rate == 1.0
    assert q.material_cost_total_czk == q.material_cost_total_native


def test_shipping_is_one_off_and_converted(catalog):
    spec = _bar_spec(shipping_cost=40, material_currency=Currency.EUR, material_exchange_rate=25)
    small = calculate_quote(spec, catalog)
    large = calculate_quote(spec.model_copy(update={"quantity_good": 1000}), catalog)
    assert small.shipping_cost_native == 40
    assert small.shipping_cost_czk == pytest.approx(1000)
    assert large.shipping_cost_czk == small.shipping_cost_czk


# ============================================================
# Labor
# ============================================================

def test_machining_charged_for_scrap_too(catalog):
    """100 good + 3 scrap, 15 min at 1500 CZK/h -> 38625 CZK."""
    q = calculate_quote(_bar_spec(), catalog)
    assert q.machining_cost_total == pytest.approx(38625)
    assert q.total_machining_hours == pytest.approx(25.75)
    assert q.operation_costs[0].name == "Turning"
    assert q.operation_costs[0].cost == pytest.approx(38625)


def test_setup_is_one_off(catalog):
    small = calculate_quote(_bar_spec(), catalog)
    large = calculate_quote(_bar_spec(quantity_good=5000), catalog)
    assert small.setup_hours_total == pytest.approx(1.5)
    assert small.setup_cost_total == pytest.approx(1.5 * 1200)
    assert large.setup_cost_total == small.setup_cost_total


def test_all_prep_times_count(catalog):
    spec = _bar_spec(time_3d=2, time_cam=1, time_machine_setup=0.5, time_inspection=0.25,
                     time_expedition=0.25)
    assert calculate_quote(spec, catalog).setup_hours_total == pytest.approx(4.0)


def test_post_process_charged_for_scrap_too(catalog):
    q = calculate_quote(_bar_spec(), catalog)
    assert q.post_process_total == pytest.approx(103 * 100)


def test_operation_order_does_not_change_cost(catalog):
    ops = [
        ProductionOperation(id="a", name="Saw", time_per_part_minutes=1.5, hourly_rate=800),
        ProductionOperation(id="b", name="Mill", time_per_part_minutes=12, hourly_rate=1650),
        ProductionOperation(id="c", name="Deburr", time_per_part_minutes=3, hourly_rate=600),
    ]
    forward = calculate_quote(_bar_spec(operations=ops), catalog)
    backward = calculate_quote(_bar_spec(operations=list(reversed(ops))), catalog)
    assert forward.machining_cost_total == pytest.approx(backward.machining_cost_total)
    assert [op.id for op in backward.operation_costs] == ["c", "b", "a"]


# ============================================================
# Degraded input
# ============================================================

def test_nan_and_blank_inputs_degrade_to_zero(catalog):
    spec = _bar_spec(
        quantity_scrap="",
        shipping_cost=float("nan"),
        time_cam=None,
        factors=CostFactors(material_cost_per_kg=float("nan"), setup_rate_per_hour="",
                            post_process_cost_per_part="abc", markup_percentage=None),
    )
    q = calculate_quote(spec, catalog)
    assert q.total_production_count == 100
    assert q.shipping_cost_czk == 0
    assert q.material_cost_total_czk == 0
    assert q.setup_cost_total == 0
    assert q.post_process_total == 0
    assert q.markup_amount == 0
    assert q.total_price == pytest.approx(q.machining_cost_total)


def test_blank_operation_fields(catalog):
    ops = [ProductionOperation(id="op_1", name="Milling", time_per_part_minutes="", hourly_rate=float("nan"))]
    q = calculate_quote(_bar_spec(operations=ops), catalog)
    assert q.machining_cost_total == 0


def test_tiny_part_length_prices_without_crashing(catalog):
    q = calculate_quote(_bar_spec(dimensions=Dimensions(length=1e-310, width=20)), catalog)
    assert q.pieces_per_3m_bar == 0
    assert not q.fits
    assert math.isfinite(q.total_price)


def test_zero_good_parts_divides_by_one(catalog):
    q = calculate_quote(_bar_spec(quantity_good=0, quantity_scrap=0), catalog)
    assert q.price_per_part == q.total_price
    assert any("No good parts" in n for n in q.notices)


def test_unknown_material_has_no_weight(catalog):
    q = calculate_quote(_bar_spec(material_id="UNOBTAINIUM"), catalog)
    assert q.material_weight == 0
    assert q.material_cost_total_czk == 0
    assert any("UNOBTAINIUM" in n for n in q.notices)


def test_plain_list_accepted_as_catalog(steel):
    q = calculate_quote(_bar_spec(), [steel])
    assert q.net_weight_per_part == pytest.approx(0.2466, abs=1e-4)


# ============================================================
# Helpers
# ============================================================

def test_default_quote_template_prices():
    """100x50x25 mm aluminium 6061, 1 h setup, 15 min at 1500 CZK/h, 20% markup."""
    q = calculate_quote(default_quote_spec(), MaterialCatalog.fallback())
    assert q.material_weight == pytest.approx(0.3375)
    assert q.material_cost_total_czk == pytest.approx(84.375)
    assert q.setup_cost_total == pytest.approx(1200)
    assert q.machining_cost_total == pytest.approx(375)
    assert q.post_process_total == pytest.approx(100)
    assert q.subtotal == pytest.approx(1759.375)
    assert q.total_price == pytest.approx(2111.25)
    assert q.notices == []


def test_apply_material_defaults_sets_price(catalog):
    brass = catalog.get("BRASS_C360")
    spec = apply_material_defaults(_bar_spec(), brass)
    assert spec.material_id == "BRASS_C360"
    assert spec.factors.material_cost_per_kg == 280
    assert spec.factors.setup_rate_per_hour == 1200


def test_zero_default_price_keeps_operator_price():
    unpriced = MaterialDefinition(id="SCRAP_AL", name="Odpad Al", density=2.7, default_price_per_kg=0)
    spec = apply_material_defaults(_bar_spec(), unpriced)
    assert spec.material_id == "SCRAP_AL"
    assert spec.factors.material_cost_per_kg == 50


def test_fingerprint_is_stable_and_sensitive():
    a = _bar_spec()
    b = _bar_spec()
    assert spec_fingerprint(a) == spec_fingerprint(b)
    assert spec_fingerprint(a) != spec_fingerprint(_bar_spec(quantity_good=101))
