"""
Cross-section geometry for bar stock, plus part and sheet volumes.

All lengths in mm, areas in mm², volumes in mm³. Nothing is rounded here;
rounding is a presentation concern.
"""

import math
from typing import Callable, Dict

from ..schemas import CrossSection
from ..weights import weight_kg_from_volume


def rectangular_area(width_mm: float, height_mm: float) -> float:
    return width_mm * height_mm


def round_area(width_mm: float, height_mm: float) -> float:
    """Width is the diameter. Height is ignored."""
    return math.pi * (width_mm / 2) ** 2


def hex_area(width_mm: float, height_mm: float) -> float:
    """Width is the distance across flats. Height is ignored."""
    return (math.sqrt(3) / 2) * width_mm ** 2


def sheet_area(width_mm: float, height_mm: float) -> float:
    # Sheet parts are not bar profiles; nesting works from planar size instead.
    return 0.0


AREA_FORMULAS: Dict[CrossSection, Callable[[float, float], float]] = {
    CrossSection.RECTANGULAR: rectangular_area,
    CrossSection.ROUND: round_area,
    CrossSection.HEX: hex_area,
    CrossSection.SHEET: sheet_area,
}

BAR_PROFILES = (CrossSection.RECTANGULAR, CrossSection.ROUND, CrossSection.HEX)


def is_bar_profile(cross_section: CrossSection) -> bool:
    return cross_section in BAR_PROFILES


def cross_section_area(cross_section: CrossSection, width_mm: float, height_mm: float) -> float:
    """Cross-sectional area in mm² for a bar profile (0 for SHEET)."""
    if cross_section not in AREA_FORMULAS:
        raise ValueError(
            f"No area formula for cross section: {cross_section}. "
            f"Available: {[c.value for c in AREA_FORMULAS]}"
        )
    return AREA_FORMULAS[cross_section](width_mm, height_mm)


def bar_volume_mm3(cross_section: CrossSection, length_mm: float, width_mm: float,
                   height_mm: float) -> float:
    """Volume of one bar part: cross-section area × length."""
    return cross_section_area(cross_section, width_mm, height_mm) * length_mm


def part_volume_mm3(length_mm: float, width_mm: float, thickness_mm: float) -> float:
    """Volume of a flat part cut from sheet."""
    return length_mm * width_mm * thickness_mm


def sheet_volume_mm3(sheet_width_mm: float, sheet_length_mm: float, thickness_mm: float) -> float:
    """Volume of one whole stock sheet."""
    return sheet_width_mm * sheet_length_mm * thickness_mm


def bar_net_weight_kg(cross_section: CrossSection, length_mm: float, width_mm: float,
                      height_mm: float, density_g_cm3: float) -> float:
    """Net weight of one finished bar part, in kg."""
    volume = bar_volume_mm3(cross_section, length_mm, width_mm, height_mm)
    return weight_kg_from_volume(volume, density_g_cm3)
