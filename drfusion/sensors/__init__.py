"""
Sensor data processing modules.
"""

from .motion import DeviceMotionSample, MotionProcessor
from .location import LocationFix, HeadingFix

__all__ = ["DeviceMotionSample", "MotionProcessor", "LocationFix", "HeadingFix"]
