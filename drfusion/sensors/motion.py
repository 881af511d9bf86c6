"""
Device motion processing: body-frame acceleration to earth frame.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..errors import InvalidSampleError
from ..math.transform import is_rotation_matrix, transform
from ..math.units import ACCELERATION, METERS_PER_SECOND_SQUARED, Unit
from ..math.vector import Vector3

logger = logging.getLogger(__name__)

@dataclass
class DeviceMotionSample:
    """One device motion update."""

    # Attitude as a body-to-earth rotation (3x3, row-major, X = true north)
    rotation_matrix: np.ndarray

    # User acceleration (gravity removed), body frame
    user_acceleration: np.ndarray

    # Attitude angles (radians), informational only
    yaw: float = 0.0
    pitch: float = 0.0
    roll: float = 0.0

    # Unit of user_acceleration; None defers to the processor input unit
    acceleration_unit: Optional[Unit] = None

    # Timestamp
    timestamp: Optional[float] = None

    def __post_init__(self):
        self.rotation_matrix = np.asarray(self.rotation_matrix, dtype=float)
        self.user_acceleration = np.asarray(self.user_acceleration, dtype=float)
        if self.timestamp is None:
            self.timestamp = time.time()

    def validate(self) -> None:
        """
        Check shape and finiteness.

        Raises:
            InvalidSampleError: If the sample cannot be used
        """
        if self.rotation_matrix.shape != (3, 3):
            raise InvalidSampleError(
                f"rotation matrix must be 3x3, got shape {self.rotation_matrix.shape}"
            )
        if self.user_acceleration.shape != (3,):
            raise InvalidSampleError(
                f"user acceleration must have 3 components, got shape {self.user_acceleration.shape}"
            )
        if not np.all(np.isfinite(self.rotation_matrix)):
            raise InvalidSampleError("rotation matrix contains non-finite values")
        if not np.all(np.isfinite(self.user_acceleration)):
            raise InvalidSampleError("user acceleration contains non-finite values")
        if self.acceleration_unit is not None and self.acceleration_unit.dimension != ACCELERATION:
            raise InvalidSampleError(f"{self.acceleration_unit} is not an acceleration unit")

    def acceleration(self, default_unit: Unit = METERS_PER_SECOND_SQUARED) -> Vector3:
        """Body-frame user acceleration as a Vector3."""
        return Vector3.from_array(self.user_acceleration, self.acceleration_unit or default_unit)

class MotionProcessor:
    """
    Turns device motion samples into earth-frame accelerations.
    """

    def __init__(self,
                 input_unit: Unit = METERS_PER_SECOND_SQUARED,
                 output_unit: Unit = METERS_PER_SECOND_SQUARED):
        """
        Initialize motion processor.

        Args:
            input_unit: Unit of samples that do not declare one; hosts
                whose motion framework reports g pass GRAVITY
            output_unit: Acceleration unit of the produced vectors
        """
        self.input_unit = input_unit
        self.output_unit = output_unit

        # Statistics
        self.sample_count = 0
        self.rejected_count = 0
        self.non_orthonormal_count = 0
        self.last_update_time = None

    def process(self, sample: DeviceMotionSample) -> Vector3:
        """
        Validate a sample and rotate its acceleration into the earth frame.

        Args:
            sample: Device motion sample

        Returns:
            Earth-frame acceleration (X = true north) in `output_unit`

        Raises:
            InvalidSampleError: If the sample is malformed
        """
        try:
            sample.validate()
        except InvalidSampleError:
            self.rejected_count += 1
            raise

        logger.debug("attitude yaw: %.4f, pitch: %.4f, roll: %.4f",
                     sample.yaw, sample.pitch, sample.roll)

        # Still applied; the transform only preserves norm for a true rotation
        if not is_rotation_matrix(sample.rotation_matrix):
            self.non_orthonormal_count += 1
            logger.debug("attitude matrix is not orthonormal: %s", sample.rotation_matrix.tolist())

        body = sample.acceleration(self.input_unit).converted(self.output_unit)
        earth = transform(sample.rotation_matrix, body)

        self.sample_count += 1
        self.last_update_time = sample.timestamp

        return earth

    def get_statistics(self) -> dict:
        """Get processor statistics."""
        return {
            'sample_count': self.sample_count,
            'rejected_count': self.rejected_count,
            'non_orthonormal_count': self.non_orthonormal_count,
            'last_update_time': self.last_update_time,
            'input_unit': self.input_unit.symbol,
            'output_unit': self.output_unit.symbol
        }
