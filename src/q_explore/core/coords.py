"""Coordinate parsing and formatting."""

import re

LAT_RANGE = (-90.0, 90.0)
LNG_RANGE = (-180.0, 180.0)

# "40.7128, -74.0060", "40.7128,-74.0060" or "40.7128 -74.0060"
_COORD_PATTERN = re.compile(r"^(-?\d+\.?\d*)[,\s]+(-?\d+\.?\d*)$")


def in_range(lat: float, lng: float) -> bool:
    """Check that a coordinate pair lies within valid WGS84 bounds."""
    return LAT_RANGE[0] <= lat <= LAT_RANGE[1] and LNG_RANGE[0] <= lng <= LNG_RANGE[1]


def format_coords(lat: float, lng: float) -> str:
    """Format a coordinate pair with six decimals."""
    return f"{lat:.6f}, {lng:.6f}"


def parse_coordinates(text: str) -> tuple[float, float]:
    """Parse a typed or pasted ``lat, lng`` pair.

    Raises:
        ValueError: If the text is not a coordinate pair or is out of range.
    """
    match = _COORD_PATTERN.match((text or "").strip())
    if not match:
        raise ValueError(
            f"Could not parse coordinates from {text!r}; expected 'lat, lng'"
        )
    lat, lng = float(match.group(1)), float(match.group(2))
    if not in_range(lat, lng):
        raise ValueError(f"Coordinates out of range: {lat}, {lng}")
    return lat, lng
