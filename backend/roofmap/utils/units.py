"""Unit conversion and label formatting. Internal representation is always metres."""

UNIT_TO_M = {
    "m": 1.0,
    "ft": 0.3048,
}

VALID_UNITS = set(UNIT_TO_M.keys())


def from_m(value: float, unit: str) -> float:
    """Convert a length from metres to the given unit."""
    if unit not in UNIT_TO_M:
        raise ValueError(f"Unknown unit '{unit}'. Valid: {VALID_UNITS}")
    return value / UNIT_TO_M[unit]


def area_from_m2(value: float, unit: str) -> float:
    """Convert an area from square metres to the square of the given unit."""
    if unit not in UNIT_TO_M:
        raise ValueError(f"Unknown unit '{unit}'. Valid: {VALID_UNITS}")
    return value / (UNIT_TO_M[unit] * UNIT_TO_M[unit])


def format_length(meters: float, unit: str = "m") -> str:
    return f"{from_m(meters, unit):.1f} {unit}"


def format_area(square_meters: float, unit: str = "m") -> str:
    return f"{area_from_m2(square_meters, unit):.2f} {unit}²"
