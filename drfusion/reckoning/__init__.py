"""
Dead reckoning: integration, sample store and fusion engine.
"""

from .state import Coordinate, FusionState, FixState
from .integrator import DeadReckoningIntegrator, integrate
from .samples import (
    SensorSample,
    LocationSample,
    AccelerationSample,
    HeadingSample,
    LocationSource,
    SampleLog,
    sample_from_record,
)
from .engine import FusionEngine

__all__ = [
    "Coordinate",
    "FusionState",
    "FixState",
    "DeadReckoningIntegrator",
    "integrate",
    "SensorSample",
    "LocationSample",
    "AccelerationSample",
    "HeadingSample",
    "LocationSource",
    "SampleLog",
    "sample_from_record",
    "FusionEngine",
]
