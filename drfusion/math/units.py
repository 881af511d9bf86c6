"""
Scalar quantities tagged with physical units.

Only the handful of units the fusion core deals with are defined here:
speeds, accelerations and angles. Every unit knows the factor that takes
a value to the base unit of its dimension (m/s, m/s², radians), which is
all conversion needs.
"""

import math
from dataclasses import dataclass
from typing import Dict

from ..errors import UnitMismatchError
from .constants import (
    DEG_TO_RAD,
    GRAVITY_MS2,
    KMH_TO_MS,
    KNOTS_TO_MS,
    MPH_TO_MS,
)

SPEED = "speed"
ACCELERATION = "acceleration"
ANGLE = "angle"

@dataclass(frozen=True)
class Unit:
    """A unit of measure within one physical dimension."""

    symbol: str
    dimension: str
    factor: float  # value * factor = value in the dimension's base unit

    def __str__(self) -> str:
        return self.symbol

# Speed
METERS_PER_SECOND = Unit("m/s", SPEED, 1.0)
KILOMETERS_PER_HOUR = Unit("km/h", SPEED, KMH_TO_MS)
MILES_PER_HOUR = Unit("mph", SPEED, MPH_TO_MS)
KNOTS = Unit("kn", SPEED, KNOTS_TO_MS)

# Acceleration
METERS_PER_SECOND_SQUARED = Unit("m/s²", ACCELERATION, 1.0)
GRAVITY = Unit("g", ACCELERATION, GRAVITY_MS2)

# Angle
RADIANS = Unit("rad", ANGLE, 1.0)
DEGREES = Unit("deg", ANGLE, DEG_TO_RAD)

_UNITS_BY_SYMBOL: Dict[str, Unit] = {
    unit.symbol: unit
    for unit in (
        METERS_PER_SECOND, KILOMETERS_PER_HOUR, MILES_PER_HOUR, KNOTS,
        METERS_PER_SECOND_SQUARED, GRAVITY,
        RADIANS, DEGREES,
    )
}
# ASCII spelling for config files
_UNITS_BY_SYMBOL["m/s^2"] = METERS_PER_SECOND_SQUARED

def unit_from_symbol(symbol: str) -> Unit:
    """
    Look up a unit by its symbol.

    Args:
        symbol: Unit symbol, e.g. "m/s", "km/h", "g", "m/s²"

    Returns:
        The matching Unit

    Raises:
        KeyError: If the symbol is unknown
    """
    try:
        return _UNITS_BY_SYMBOL[symbol]
    except KeyError:
        raise KeyError(f"Unknown unit symbol: {symbol!r}") from None

def conversion_factor(source: Unit, target: Unit) -> float:
    """Factor that converts a value in `source` into `target`."""
    if source.dimension != target.dimension:
        raise UnitMismatchError(
            f"Cannot convert {source.dimension} ({source}) to {target.dimension} ({target})"
        )
    if source == target:
        return 1.0
    return source.factor / target.factor

@dataclass(frozen=True)
class Measurement:
    """A scalar value with a unit."""

    value: float
    unit: Unit

    @property
    def dimension(self) -> str:
        return self.unit.dimension

    def converted(self, unit: Unit) -> "Measurement":
        """Return the same quantity expressed in `unit`."""
        return Measurement(self.value * conversion_factor(self.unit, unit), unit)

    def value_in(self, unit: Unit) -> float:
        """Return the raw value expressed in `unit`."""
        return self.value * conversion_factor(self.unit, unit)

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.value)

    def _check(self, other: "Measurement") -> None:
        if not isinstance(other, Measurement):
            raise TypeError(f"Expected Measurement, got {type(other).__name__}")
        if other.dimension != self.dimension:
            raise UnitMismatchError(
                f"Cannot combine {self.dimension} with {other.dimension}"
            )

    def __add__(self, other: "Measurement") -> "Measurement":
        self._check(other)
        return Measurement(self.value + other.value_in(self.unit), self.unit)

    def __sub__(self, other: "Measurement") -> "Measurement":
        self._check(other)
        return Measurement(self.value - other.value_in(self.unit), self.unit)

    def __mul__(self, scalar: float) -> "Measurement":
        if isinstance(scalar, Measurement):
            return NotImplemented
        return Measurement(self.value * scalar, self.unit)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> "Measurement":
        if isinstance(scalar, Measurement):
            return NotImplemented
        return Measurement(self.value / scalar, self.unit)

    def __neg__(self) -> "Measurement":
        return Measurement(-self.value, self.unit)

    def __abs__(self) -> "Measurement":
        return Measurement(abs(self.value), self.unit)

    def __lt__(self, other: "Measurement") -> bool:
        self._check(other)
        return self.value < other.value_in(self.unit)

    def __le__(self, other: "Measurement") -> bool:
        self._check(other)
        return self.value <= other.value_in(self.unit)

    def __gt__(self, other: "Measurement") -> bool:
        self._check(other)
        return self.value > other.value_in(self.unit)

    def __ge__(self, other: "Measurement") -> bool:
        self._check(other)
        return self.value >= other.value_in(self.unit)

    def to_dict(self) -> dict:
        return {"value": self.value, "unit": self.unit.symbol}

    @classmethod
    def from_dict(cls, data: dict) -> "Measurement":
        return cls(float(data["value"]), unit_from_symbol(data["unit"]))

    def __str__(self) -> str:
        return f"{self.value:.3f} {self.unit}"
