"""
Exception hierarchy for the dead reckoning fusion core.
"""


class DrFusionError(Exception):
    """Base class for all drfusion errors."""


class UnitMismatchError(DrFusionError, ValueError):
    """Raised when quantities of different physical dimensions are combined."""


class InvalidSampleError(DrFusionError, ValueError):
    """Raised when a sensor sample is malformed (wrong shape, NaN, Inf)."""


class ConfigError(DrFusionError):
    """Raised for invalid configuration values."""
