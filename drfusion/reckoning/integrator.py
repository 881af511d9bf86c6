"""
Dead reckoning integrator.

Propagates a geodetic position from one earth-frame acceleration sample:

    acceleration -> velocity -> speed / course -> latitude / longitude

over a flat-earth local approximation. The integrator is stateless; the
previous position, speed and course all come in through the previous
Coordinate.
"""

import logging
import math
from typing import Optional, Tuple

from ..errors import ConfigError, InvalidSampleError
from ..math.constants import (
    EARTH_RADIUS_M,
    LONGITUDE_SCALING_LATITUDE,
    LONGITUDE_SCALING_LONGITUDE,
    LONGITUDE_SCALING_MODES,
    RAD_TO_DEG,
)
from ..math.transform import relabel_axes
from ..math.units import Measurement, METERS_PER_SECOND, METERS_PER_SECOND_SQUARED
from ..math.utils import clamp_latitude, wrap_degrees, wrap_longitude
from ..math.vector import Vector3
from .state import Coordinate

logger = logging.getLogger(__name__)

# Below this |cos| the longitude scale is undefined (pole, or ±90° lon in legacy mode)
_MIN_COS = 1e-12

class DeadReckoningIntegrator:
    """
    Integrates earth-frame acceleration into speed, course and position.

    Frame convention: the integrator works in (east, north, up). Incoming
    accelerations are in the earth frame produced by the orientation
    transform (X = true north) and are relabelled first.
    """

    def __init__(self,
                 longitude_scaling: str = LONGITUDE_SCALING_LATITUDE,
                 earth_radius: float = EARTH_RADIUS_M):
        """
        Initialize the integrator.

        Args:
            longitude_scaling: "latitude" scales the longitude delta by
                cos(latitude); "longitude" scales it by cos(longitude),
                reproducing the legacy behaviour
            earth_radius: Earth radius in meters
        """
        if longitude_scaling not in LONGITUDE_SCALING_MODES:
            raise ConfigError(
                f"longitude_scaling must be one of {LONGITUDE_SCALING_MODES}, "
                f"got {longitude_scaling!r}"
            )
        self.longitude_scaling = longitude_scaling
        self.earth_radius = earth_radius

    @staticmethod
    def prior_velocity(prev: Coordinate) -> Vector3:
        """
        Velocity reconstructed from the previous speed and course.

        An unknown speed (or course) means the prior state is treated as
        standing still.
        """
        if prev.velocity_known:
            return prev.velocity()
        return Vector3.zero(METERS_PER_SECOND)

    @staticmethod
    def integrate_velocity(prior: Vector3, acceleration: Vector3, dt: float) -> Vector3:
        """
        New velocity after accelerating for dt seconds.

        Args:
            prior: Prior velocity (east, north, up)
            acceleration: Acceleration in the integrator frame
            dt: Time step in seconds

        Returns:
            Velocity in m/s
        """
        accel = acceleration.converted(METERS_PER_SECOND_SQUARED)
        gained = Vector3(accel.x * dt, accel.y * dt, accel.z * dt, METERS_PER_SECOND)
        return prior.converted(METERS_PER_SECOND) + gained

    @staticmethod
    def course_from_velocity(velocity: Vector3) -> float:
        """
        Course in degrees clockwise from true north, [0, 360).

        atan2(east, north) is the inverse of the (sin, cos) decomposition
        used by `prior_velocity`. A zero velocity gives a course of 0.
        """
        return wrap_degrees(math.atan2(velocity.x, velocity.y) * RAD_TO_DEG)

    def propagate_position(self, prev: Coordinate, velocity: Vector3, dt: float) -> Tuple[float, float]:
        """
        Move the previous position along `velocity` for dt seconds.

        Returns:
            (latitude, longitude) in degrees
        """
        R = self.earth_radius
        delta_north = velocity.y * dt
        delta_east = velocity.x * dt

        delta_lat_rad = delta_north / R

        if self.longitude_scaling == LONGITUDE_SCALING_LONGITUDE:
            scale_angle = math.radians(prev.longitude)
        else:
            scale_angle = math.radians(prev.latitude)
        cos_scale = math.cos(scale_angle)

        if abs(cos_scale) < _MIN_COS:
            delta_lon_rad = 0.0
        else:
            delta_lon_rad = delta_east / (R * cos_scale)

        latitude = clamp_latitude(prev.latitude + delta_lat_rad * RAD_TO_DEG)
        longitude = wrap_longitude(prev.longitude + delta_lon_rad * RAD_TO_DEG)
        return latitude, longitude

    def integrate(self,
                  prev: Coordinate,
                  earth_acceleration: Vector3,
                  delta_time: float,
                  now: Optional[float] = None) -> Tuple[Measurement, Coordinate]:
        """
        Integrate one acceleration sample against the previous coordinate.

        Args:
            prev: Previous coordinate (last fix or last integration result)
            earth_acceleration: Acceleration in the earth frame (X = north)
            delta_time: Seconds since the previous sample, must be > 0
            now: Timestamp of the new coordinate (defaults to prev.timestamp + dt)

        Returns:
            (speed, new_coordinate)

        Raises:
            ValueError: If delta_time is not positive
            InvalidSampleError: If the acceleration is not finite
        """
        if not delta_time > 0:
            raise ValueError(f"delta_time must be positive, got {delta_time}")
        if not earth_acceleration.is_finite():
            raise InvalidSampleError(f"Non-finite acceleration: {earth_acceleration}")

        if now is None:
            now = prev.timestamp + delta_time

        acceleration = relabel_axes(earth_acceleration)
        logger.debug("acceleration east: %.4f, north: %.4f (%s)",
                     acceleration.x, acceleration.y, acceleration.unit)

        prior = self.prior_velocity(prev)
        velocity = self.integrate_velocity(prior, acceleration, delta_time)

        speed = Measurement(velocity.horizontal_norm(), METERS_PER_SECOND)
        course = self.course_from_velocity(velocity)
        latitude, longitude = self.propagate_position(prev, velocity, delta_time)

        logger.debug("course: %.2f deg, speed: %s", course, speed)

        coordinate = Coordinate(
            latitude=latitude,
            longitude=longitude,
            speed=speed,
            course=course,
            timestamp=now,
        )
        return speed, coordinate

_default_integrator = DeadReckoningIntegrator()

def integrate(prev: Coordinate,
              earth_acceleration: Vector3,
              delta_time: float,
              now: Optional[float] = None,
              longitude_scaling: str = LONGITUDE_SCALING_LATITUDE) -> Tuple[Measurement, Coordinate]:
    """
    Integrate one earth-frame acceleration sample.

    Convenience wrapper around DeadReckoningIntegrator.integrate.
    """
    if longitude_scaling == _default_integrator.longitude_scaling:
        integrator = _default_integrator
    else:
        integrator = DeadReckoningIntegrator(longitude_scaling=longitude_scaling)
    return integrator.integrate(prev, earth_acceleration, delta_time, now)
