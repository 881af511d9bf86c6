"""
Three-component vector quantity over a single unit.
"""

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ..errors import UnitMismatchError
from .units import Measurement, Unit, conversion_factor, unit_from_symbol

@dataclass(frozen=True)
class Vector3:
    """Immutable 3-vector whose components share one unit."""

    x: float
    y: float
    z: float
    unit: Unit

    def __post_init__(self):
        # Normalize numpy scalars and ints to float
        object.__setattr__(self, "x", float(self.x))
        object.__setattr__(self, "y", float(self.y))
        object.__setattr__(self, "z", float(self.z))

    @classmethod
    def from_array(cls, values: Sequence[float], unit: Unit) -> "Vector3":
        """Build a vector from any 3-element sequence or numpy array."""
        arr = np.asarray(values, dtype=float).reshape(-1)
        if arr.shape != (3,):
            raise ValueError(f"Vector3 needs exactly 3 components, got {arr.shape[0]}")
        return cls(arr[0], arr[1], arr[2], unit)

    @classmethod
    def zero(cls, unit: Unit) -> "Vector3":
        return cls(0.0, 0.0, 0.0, unit)

    @property
    def dimension(self) -> str:
        return self.unit.dimension

    def as_array(self) -> np.ndarray:
        """Get components as numpy array."""
        return np.array([self.x, self.y, self.z])

    def converted(self, unit: Unit) -> "Vector3":
        """Return the same vector expressed in `unit`."""
        factor = conversion_factor(self.unit, unit)
        return Vector3(self.x * factor, self.y * factor, self.z * factor, unit)

    def norm(self) -> float:
        """Euclidean norm of all three components."""
        return math.sqrt(self.x**2 + self.y**2 + self.z**2)

    def horizontal_norm(self) -> float:
        """Euclidean norm of the x, y components only."""
        return math.hypot(self.x, self.y)

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y) and math.isfinite(self.z)

    def _other_in_my_unit(self, other: "Vector3") -> "Vector3":
        if not isinstance(other, Vector3):
            raise TypeError(f"Expected Vector3, got {type(other).__name__}")
        if other.dimension != self.dimension:
            raise UnitMismatchError(
                f"Cannot combine {self.dimension} vector with {other.dimension} vector"
            )
        return other.converted(self.unit)

    def __add__(self, other: "Vector3") -> "Vector3":
        o = self._other_in_my_unit(other)
        return Vector3(self.x + o.x, self.y + o.y, self.z + o.z, self.unit)

    def __sub__(self, other: "Vector3") -> "Vector3":
        o = self._other_in_my_unit(other)
        return Vector3(self.x - o.x, self.y - o.y, self.z - o.z, self.unit)

    def __mul__(self, scalar: float) -> "Vector3":
        if isinstance(scalar, (Vector3, Measurement)):
            return NotImplemented
        return Vector3(self.x * scalar, self.y * scalar, self.z * scalar, self.unit)

    __rmul__ = __mul__

    def __neg__(self) -> "Vector3":
        return Vector3(-self.x, -self.y, -self.z, self.unit)

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "z": self.z, "unit": self.unit.symbol}

    @classmethod
    def from_dict(cls, data: dict) -> "Vector3":
        return cls(data["x"], data["y"], data["z"], unit_from_symbol(data["unit"]))

    def __str__(self) -> str:
        return f"[{self.x:.3f}, {self.y:.3f}, {self.z:.3f}] {self.unit}"
