"""
Position and fusion state representation.
"""

import math
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..math.units import Measurement, METERS_PER_SECOND
from ..math.vector import Vector3

class FixState(Enum):
    """GPS fix lifecycle of the fusion engine."""

    NO_FIX = "no_fix"      # no GPS location received yet
    HAS_FIX = "has_fix"    # at least one fix received; never reverts

@dataclass(frozen=True)
class Coordinate:
    """
    A geodetic position with speed and course.

    - latitude, longitude: degrees
    - speed: Measurement in a speed unit, None when unknown
    - course: degrees clockwise from true north, None when unknown
    - timestamp: seconds since epoch
    """

    latitude: float
    longitude: float
    speed: Optional[Measurement] = None
    course: Optional[float] = None
    timestamp: float = field(default_factory=time.time)

    @property
    def speed_known(self) -> bool:
        """True when the coordinate carries a usable speed."""
        return self.speed is not None

    @property
    def velocity_known(self) -> bool:
        """True when both speed and course are known."""
        return self.speed is not None and self.course is not None

    @property
    def speed_ms(self) -> Optional[float]:
        """Speed in m/s, or None when unknown."""
        if self.speed is None:
            return None
        return self.speed.value_in(METERS_PER_SECOND)

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.latitude) and math.isfinite(self.longitude)

    def velocity(self) -> Vector3:
        """
        Horizontal velocity in the integrator frame.

        Returns:
            Vector3 in m/s as (east, north, 0); zero when speed or
            course is unknown
        """
        if not self.velocity_known:
            return Vector3.zero(METERS_PER_SECOND)

        course_rad = self.course * math.pi / 180.0
        speed_ms = self.speed_ms
        return Vector3(
            speed_ms * math.sin(course_rad),
            speed_ms * math.cos(course_rad),
            0.0,
            METERS_PER_SECOND,
        )

    def to_dict(self) -> dict:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "speed": self.speed.to_dict() if self.speed is not None else None,
            "course": self.course,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Coordinate":
        speed = data.get("speed")
        return cls(
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            speed=Measurement.from_dict(speed) if speed is not None else None,
            course=data.get("course"),
            timestamp=float(data["timestamp"]),
        )

    def __str__(self) -> str:
        speed = str(self.speed) if self.speed is not None else "unknown"
        course = f"{self.course:.1f}°" if self.course is not None else "unknown"
        return (
            f"Coordinate(lat={self.latitude:.7f}, lon={self.longitude:.7f}, "
            f"speed={speed}, course={course})"
        )

@dataclass(frozen=True)
class FusionState:
    """
    Consistent snapshot of the fusion engine state.

    Produced under the engine lock; safe to hand to other threads.
    """

    fix_state: FixState = FixState.NO_FIX
    last_known_location: Optional[Coordinate] = None
    last_known_heading: Optional[float] = None
    current_speed: Optional[Measurement] = None
    latest_position: Optional[Coordinate] = None
    sample_count: int = 0

    @property
    def has_fix(self) -> bool:
        return self.fix_state is FixState.HAS_FIX
