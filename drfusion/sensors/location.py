"""
GPS location and compass heading fixes.
"""

import math
import time
from dataclasses import dataclass
from typing import Optional

from ..math.constants import (
    LATITUDE_MAX,
    LATITUDE_MIN,
    LONGITUDE_MAX,
    LONGITUDE_MIN,
    UNKNOWN_SENTINEL,
)
from ..math.units import METERS_PER_SECOND, Measurement
from ..reckoning.state import Coordinate

@dataclass
class LocationFix:
    """
    GPS fix as delivered by the location subsystem.

    Speed and course use -1 for "unknown", the convention of platform
    location services.
    """

    # Position (decimal degrees)
    latitude: float
    longitude: float

    # Velocity
    speed: float = UNKNOWN_SENTINEL    # m/s
    course: float = UNKNOWN_SENTINEL   # degrees clockwise from true north

    # Timestamp
    timestamp: Optional[float] = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = time.time()

    @property
    def is_valid(self) -> bool:
        """Check if the fix has a finite, in-range position."""
        return (math.isfinite(self.latitude) and
                math.isfinite(self.longitude) and
                LATITUDE_MIN <= self.latitude <= LATITUDE_MAX and
                LONGITUDE_MIN <= self.longitude <= LONGITUDE_MAX)

    @property
    def speed_known(self) -> bool:
        return math.isfinite(self.speed) and self.speed >= 0

    @property
    def course_known(self) -> bool:
        return math.isfinite(self.course) and self.course >= 0

    def to_coordinate(self) -> Coordinate:
        """Convert to a Coordinate, turning -1 sentinels into None."""
        return Coordinate(
            latitude=self.latitude,
            longitude=self.longitude,
            speed=Measurement(self.speed, METERS_PER_SECOND) if self.speed_known else None,
            course=self.course if self.course_known else None,
            timestamp=self.timestamp,
        )

@dataclass
class HeadingFix:
    """Compass heading update."""

    true_heading: float  # degrees clockwise from true north
    timestamp: Optional[float] = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = time.time()

    @property
    def is_valid(self) -> bool:
        # Negative true heading means the platform could not determine it
        return math.isfinite(self.true_heading) and self.true_heading >= 0
