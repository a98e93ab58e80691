"""
Stock nesting: how many parts fit per bar or per sheet.

Bar nesting is linear: effective part length (part + cut-off waste) laid end
to end along 3 m and 6 m reference bars.

Sheet nesting is a simple grid in two orientations, not a packing solver.
Pricing uses the stricter of the grid fit and a waste-inflated area fit.
Display and pricing figures are kept apart.
"""

import logging
import math
from typing import List, Optional, Tuple

from ..schemas import BarNestingResult, SheetFormat, SheetNestingResult

logger = logging.getLogger(__name__)

# Reference bar lengths quoted side by side so the operator can choose
STANDARD_BAR_LENGTHS_MM = (3000.0, 6000.0)

# Stand-in for a zero or negative effective length, forces a zero fit
SENTINEL_LENGTH_MM = 999999.0

DEFAULT_SHEET_GAP_MM = 5.0


def _whole_count(available: float, per_unit: float) -> int:
    """floor(available / per_unit), or 0 when the quotient is not a finite number."""
    if per_unit <= 0:
        return 0
    ratio = available / per_unit
    if not math.isfinite(ratio):
        return 0
    return max(0, math.floor(ratio))


def effective_length(part_length_mm: float, waste_percentage: float) -> float:
    """Part length inflated by the cut-off waste percentage."""
    return part_length_mm * (1 + waste_percentage / 100.0)


def stock_pieces_needed(total_length_mm: float, stock_length_mm: float) -> int:
    """
    Number of stock bars to buy for a total length.
    Always rounds up, you can't buy half a bar. Never negative.
    """
    if stock_length_mm <= 0:
        return 0
    return max(0, math.ceil(total_length_mm / stock_length_mm))


def nest_bar(part_length_mm: float, waste_percentage: float, stock_length_mm: float,
             total_production_count: int) -> BarNestingResult:
    """
    Lay parts end to end on one stock bar.

    bars_needed comes from the batch's total length, not from
    pieces_per_bar: a continuous estimate that ignores the offcut left at
    the end of each bar.
    """
    eff = effective_length(part_length_mm, waste_percentage)
    safe_eff = eff if eff > 0 else SENTINEL_LENGTH_MM

    pieces = _whole_count(stock_length_mm, safe_eff) if stock_length_mm > 0 else 0
    used = pieces * safe_eff
    utilization = used / stock_length_mm if stock_length_mm > 0 else 0.0

    total_length = eff * total_production_count
    return BarNestingResult(
        stock_length_mm=stock_length_mm,
        part_length_mm=part_length_mm,
        effective_length_mm=eff,
        pieces_per_bar=pieces,
        utilization=utilization,
        remainder_mm=stock_length_mm - used,
        total_length_needed_mm=total_length,
        bars_needed=stock_pieces_needed(total_length, stock_length_mm),
        fits=pieces > 0,
    )


def nest_bars(part_length_mm: float, waste_percentage: float, total_production_count: int,
              stock_lengths_mm=STANDARD_BAR_LENGTHS_MM) -> List[BarNestingResult]:
    """Bar nesting for every reference bar length."""
    return [
        nest_bar(part_length_mm, waste_percentage, stock_length, total_production_count)
        for stock_length in stock_lengths_mm
    ]


def parse_sheet_format(sheet_format) -> Tuple[float, float]:
    """
    Parse a sheet format like '1000x2000' into (width_mm, length_mm).
    Raises ValueError for anything else.
    """
    text = str(getattr(sheet_format, "value", sheet_format)).lower().strip()
    parts = text.split("x")
    if len(parts) != 2:
        raise ValueError(
            f"Invalid sheet format: {sheet_format!r}. "
            f"Expected WIDTHxLENGTH, e.g. {SheetFormat.SHEET_1000x2000.value}"
        )
    try:
        width, length = float(parts[0]), float(parts[1])
    except ValueError:
        raise ValueError(f"Invalid sheet format: {sheet_format!r}")
    return width, length


def grid_fit(sheet_width_mm: float, sheet_length_mm: float,
             part_width_mm: float, part_length_mm: float) -> Tuple[int, int]:
    """(columns, rows) of parts across the sheet width and along its length."""
    if part_width_mm <= 0 or part_length_mm <= 0:
        return 0, 0
    cols = _whole_count(sheet_width_mm, part_width_mm)
    rows = _whole_count(sheet_length_mm, part_length_mm)
    return cols, rows


def area_fit(sheet_width_mm: float, sheet_length_mm: float, part_width_mm: float,
             part_length_mm: float, waste_percentage: float) -> int:
    """Parts per sheet by area alone, with each part inflated by waste."""
    gross_part_area = part_width_mm * part_length_mm * (1 + waste_percentage / 100.0)
    if gross_part_area <= 0:
        return 0
    return _whole_count(sheet_width_mm * sheet_length_mm, gross_part_area)


def nest_sheet(sheet_width_mm: float, sheet_length_mm: float, part_width_mm: float,
               part_length_mm: float, waste_percentage: float, total_production_count: int,
               gap_mm: Optional[float] = None) -> SheetNestingResult:
    """
    Grid-nest a rectangular part on a stock sheet.

    Standard orientation puts the part width across the sheet width;
    rotated swaps them. Rotation wins only when strictly better.
    """
    gap = DEFAULT_SHEET_GAP_MM if gap_mm is None else gap_mm
    pitch_w = part_width_mm + gap
    pitch_l = part_length_mm + gap

    cols_std, rows_std = grid_fit(sheet_width_mm, sheet_length_mm, pitch_w, pitch_l)
    cols_rot, rows_rot = grid_fit(sheet_width_mm, sheet_length_mm, pitch_l, pitch_w)
    count_std = cols_std * rows_std
    count_rot = cols_rot * rows_rot

    rotated = count_rot > count_std
    cols, rows = (cols_rot, rows_rot) if rotated else (cols_std, rows_std)
    per_sheet = count_rot if rotated else count_std

    sheet_area = sheet_width_mm * sheet_length_mm
    part_area = part_width_mm * part_length_mm
    gross_part_area = part_area * (1 + waste_percentage / 100.0)

    by_area = area_fit(sheet_width_mm, sheet_length_mm, part_width_mm, part_length_mm,
                       waste_percentage)
    effective = max(0, min(per_sheet, by_area))

    if effective > 0:
        sheets = math.ceil(total_production_count / effective)
    else:
        sheets = 0
        logger.info(
            "Part %sx%s mm does not fit on sheet %sx%s mm",
            part_width_mm, part_length_mm, sheet_width_mm, sheet_length_mm,
        )

    display_sheets = math.ceil(total_production_count / per_sheet) if per_sheet > 0 else 0

    return SheetNestingResult(
        sheet_width_mm=sheet_width_mm,
        sheet_length_mm=sheet_length_mm,
        part_width_mm=part_width_mm,
        part_length_mm=part_length_mm,
        gap_mm=gap,
        standard_count=count_std,
        rotated_count=count_rot,
        rotated=rotated,
        columns=cols,
        rows=rows,
        parts_per_sheet=per_sheet,
        display_sheets_needed=display_sheets,
        display_utilization=(per_sheet * part_area / sheet_area) if sheet_area > 0 else 0.0,
        area_fit=by_area,
        effective_parts_per_sheet=effective,
        sheets_needed=sheets,
        pricing_utilization=(effective * gross_part_area / sheet_area) if sheet_area > 0 else 0.0,
        fits=effective > 0,
    )
