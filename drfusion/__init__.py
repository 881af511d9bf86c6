"""
Dead reckoning sensor fusion core.

This package provides platform-independent implementations of:
- Unit-tagged quantities and 3-vectors
- Orientation transform from device body frame to earth frame
- Dead reckoning integration of acceleration into position, speed and course
- A thread-safe fusion engine with an append-only sample log
- A sensor session routing platform callbacks into the engine
"""

__version__ = "1.0.0"
__author__ = "DR Vehicle Team"

from .errors import DrFusionError, UnitMismatchError, InvalidSampleError, ConfigError
from .config import Config, configure_logging
from .math import Measurement, Vector3, transform, relabel_axes
from .reckoning import (
    Coordinate,
    FixState,
    FusionEngine,
    FusionState,
    DeadReckoningIntegrator,
    integrate,
)
from .sensors import DeviceMotionSample, MotionProcessor, LocationFix, HeadingFix
from .session import SensorSession, AuthorizationStatus

__all__ = [
    "DrFusionError",
    "UnitMismatchError",
    "InvalidSampleError",
    "ConfigError",
    "Config",
    "configure_logging",
    "Measurement",
    "Vector3",
    "transform",
    "relabel_axes",
    "Coordinate",
    "FixState",
    "FusionEngine",
    "FusionState",
    "DeadReckoningIntegrator",
    "integrate",
    "DeviceMotionSample",
    "MotionProcessor",
    "LocationFix",
    "HeadingFix",
    "SensorSession",
    "AuthorizationStatus",
]
