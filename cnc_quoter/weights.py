# Unit and weight constants, metric throughout, densities in g/cm³

MM_PER_INCH = 25.4

MM3_PER_CM3 = 1000.0
G_PER_KG = 1000.0

LENGTH_UNITS = ("mm", "inch")


def to_millimeters(value: float, unit: str = "mm") -> float:
    """
    Normalize a length to millimeters.
    'inch' multiplies by 25.4, anything else is treated as mm already.
    """
    unit = getattr(unit, "value", unit)
    if unit == "inch":
        return value * MM_PER_INCH
    return value


def mm3_to_cm3(volume_mm3: float) -> float:
    """Convert cubic millimeters to cubic centimeters."""
    return volume_mm3 / MM3_PER_CM3


def weight_kg_from_volume(volume_mm3: float, density_g_cm3: float) -> float:
    """
    Calculate weight in kg from a volume in mm³ and a density in g/cm³.
    mm³ → cm³, then g → kg. Not rounded.
    """
    return mm3_to_cm3(volume_mm3) * density_g_cm3 / G_PER_KG


def weight_from_dimensions(length_mm: float, width_mm: float, thickness_mm: float,
                           density_g_cm3: float) -> float:
    """
    Calculate weight in kg of a solid rectangular block (plate, sheet, flat bar).
    """
    return weight_kg_from_volume(length_mm * width_mm * thickness_mm, density_g_cm3)
