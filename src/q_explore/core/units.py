"""Distance units and conversions.

All persisted and transmitted distances are in meters (the canonical unit).
Other units exist only for display, so every conversion starts from the
canonical value:

    display = from_canonical(meters, unit)
    meters = to_canonical(display, unit)

There is no unit-to-unit conversion: converting a displayed
value again would compound the display rounding.
"""

from dataclasses import dataclass

from q_explore.errors import UnknownUnit

CANONICAL_UNIT = "meters"


@dataclass(frozen=True)
class MeasurementUnit:
    """A display unit for distances.

    Attributes:
        name: Identifier used in settings ("meters", "miles", ...).
        meters_per_unit: Multiplicative factor to the canonical unit.
        step: Increment used by numeric input controls.
        decimals: Display precision.
        suffix: Short label appended to displayed values.
    """

    name: str
    meters_per_unit: float
    step: float
    decimals: int
    suffix: str

    @property
    def units_per_meter(self) -> float:
        return 1.0 / self.meters_per_unit

    @property
    def tolerance(self) -> float:
        """Half of the last displayed decimal place, in meters."""
        return 0.5 * 10 ** (-self.decimals) * self.meters_per_unit


UNITS: dict[str, MeasurementUnit] = {
    "meters": MeasurementUnit("meters", 1.0, 100, 0, "m"),
    "kilometers": MeasurementUnit("kilometers", 1000.0, 0.1, 1, "km"),
    "miles": MeasurementUnit("miles", 1609.34, 0.1, 1, "mi"),
    "feet": MeasurementUnit("feet", 0.3048, 100, 0, "ft"),
}

# Distance unit shown for each measurement system
UNIT_SYSTEMS: dict[str, str] = {
    "metric": "meters",
    "imperial": "miles",
}

_ALIASES = {unit.suffix: name for name, unit in UNITS.items()}


def get_unit(unit: "str | MeasurementUnit") -> MeasurementUnit:
    """Resolve a unit by name or suffix.

    Raises:
        UnknownUnit: If the identifier is not a supported unit.
    """
    if isinstance(unit, MeasurementUnit):
        return unit
    key = str(unit).strip().lower()
    key = _ALIASES.get(key, key)
    try:
        return UNITS[key]
    except KeyError:
        raise UnknownUnit(str(unit)) from None


def unit_for_system(system: str) -> MeasurementUnit:
    """Return the distance unit displayed by a measurement system."""
    try:
        return UNITS[UNIT_SYSTEMS[str(system).strip().lower()]]
    except KeyError:
        raise UnknownUnit(str(system)) from None


def to_canonical(value: float, unit: "str | MeasurementUnit") -> float:
    """Convert a displayed value into meters."""
    return float(value) * get_unit(unit).meters_per_unit


def from_canonical(meters: float, unit: "str | MeasurementUnit") -> float:
    """Convert meters into a unit, rounded to that unit's precision."""
    u = get_unit(unit)
    value = round(float(meters) * u.units_per_meter, u.decimals)
    return float(value)


def display_string(meters: float, unit: "str | MeasurementUnit") -> str:
    """Format a canonical distance for display, e.g. ``"3,000 m"``."""
    u = get_unit(unit)
    value = from_canonical(meters, u)
    return f"{value:,.{u.decimals}f} {u.suffix}"


def round_trip_tolerance(unit: "str | MeasurementUnit") -> float:
    """Maximum drift (meters) of ``to_canonical(from_canonical(v))``."""
    return get_unit(unit).tolerance
