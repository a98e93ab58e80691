"""
Lenient numeric parsing for quote inputs.

Quote fields come from editable forms, so a cleared or half-typed value must
never break a calculation. Anything that is not a finite number parses to
the default (0 unless told otherwise).
"""

import math


def parse_number(value, default: float = 0.0) -> float:
    """Parse a numeric value from user input. NaN, inf and garbage give default."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(str(value).strip().replace(",", "."))
    except (ValueError, TypeError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def parse_int(value, default: int = 0) -> int:
    """Parse an integer from user input. Fractions are truncated."""
    number = parse_number(value, default=float(default))
    return int(number)


def parse_count(value) -> int:
    """Parse a piece count. Negative counts are clamped to 0."""
    return max(0, parse_int(value))
