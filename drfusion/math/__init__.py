"""
Mathematical utilities for dead reckoning calculations.
"""

from .utils import (
    wrap_degrees,
    wrap_longitude,
    clamp_latitude,
    haversine_distance,
    calculate_bearing,
)
from .units import Unit, Measurement
from .vector import Vector3
from .transform import transform, relabel_axes, is_rotation_matrix, rotation_matrix_from_euler
from .constants import *

__all__ = [
    "wrap_degrees",
    "wrap_longitude",
    "clamp_latitude",
    "haversine_distance",
    "calculate_bearing",
    "Unit",
    "Measurement",
    "Vector3",
    "transform",
    "relabel_axes",
    "is_rotation_matrix",
    "rotation_matrix_from_euler",
]
