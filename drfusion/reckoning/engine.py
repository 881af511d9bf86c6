"""
Fusion engine: the single owner of dead reckoning state.

Motion samples arrive on one thread at a fixed rate while GPS fixes and
compass headings arrive irregularly on others. Every state transition
runs under one lock, so integrating a sample against the last known
location and appending the result is atomic. Listeners are notified
after the lock is released, once per successful append.
"""

import logging
import math
import threading
from typing import Callable, List, Optional

from ..errors import InvalidSampleError
from ..math.units import ACCELERATION, Measurement, Unit
from ..math.vector import Vector3
from .integrator import DeadReckoningIntegrator
from .samples import (
    AccelerationSample,
    AnySample,
    HeadingSample,
    LocationSample,
    LocationSource,
    SampleLog,
    write_jsonl,
)
from .state import Coordinate, FixState, FusionState

logger = logging.getLogger(__name__)

Listener = Callable[[AnySample], None]

class FusionEngine:
    """
    Fuses GPS fixes, headings and earth-frame acceleration into a position.

    State machine:
        NO_FIX  --first location fix-->  HAS_FIX
        HAS_FIX --location fix-->        HAS_FIX (baseline reset)

    There is no way back to NO_FIX short of `reset()`: when GPS goes
    quiet, integration continues from the last baseline.
    """

    def __init__(self,
                 integrator: Optional[DeadReckoningIntegrator] = None,
                 max_samples: Optional[int] = None):
        """
        Initialize the fusion engine.

        Args:
            integrator: Dead reckoning integrator (default settings if None)
            max_samples: Bound on the sample log, None for unbounded
        """
        self.integrator = integrator or DeadReckoningIntegrator()

        self._lock = threading.RLock()
        self._log = SampleLog(maxlen=max_samples)
        self._listeners: List[Listener] = []

        self._fix_state = FixState.NO_FIX
        self._last_known_location: Optional[Coordinate] = None
        self._last_known_heading: Optional[float] = None
        self._current_speed: Optional[Measurement] = None

        # Statistics
        self.integration_count = 0
        self.fix_count = 0
        self.heading_count = 0
        self.rejected_count = 0

    # ------------------------------------------------------------------
    # Transitions

    def append_acceleration_sample(self,
                                   earth_acceleration: Vector3,
                                   delta_time: float,
                                   now: float) -> Optional[AnySample]:
        """
        Record one earth-frame acceleration sample.

        With a baseline, the sample is integrated and the dead-reckoned
        position is appended. Without one, the raw acceleration is
        appended and integration waits for the first fix.

        Args:
            earth_acceleration: Acceleration in the earth frame (X = north)
            delta_time: Seconds covered by the sample
            now: Sample timestamp (seconds since epoch)

        Returns:
            The appended sample, or None if the sample was rejected
        """
        if not earth_acceleration.is_finite():
            self._reject(f"non-finite acceleration {earth_acceleration}")
            return None
        if earth_acceleration.dimension != ACCELERATION:
            self._reject(f"{earth_acceleration.unit} is not an acceleration unit")
            return None
        if not (math.isfinite(delta_time) and delta_time > 0):
            self._reject(f"invalid delta_time {delta_time}")
            return None

        rejection = None
        with self._lock:
            prev = self._last_known_location
            if prev is None:
                sample = AccelerationSample(now, earth_acceleration)
                self._log.append(sample)
            else:
                try:
                    speed, location = self.integrator.integrate(
                        prev, earth_acceleration, delta_time, now
                    )
                except (InvalidSampleError, ValueError) as e:
                    rejection = str(e)
                else:
                    if location.is_finite:
                        self._last_known_location = location
                        self._current_speed = speed
                        self.integration_count += 1
                        sample = LocationSample(now, location, LocationSource.DEAD_RECKONING)
                        self._log.append(sample)
                    else:
                        rejection = f"integration produced {location}"

        if rejection is not None:
            self._reject(rejection)
            return None

        self._notify(sample)
        return sample

    def append_location_fix(self, fix: Coordinate) -> Optional[AnySample]:
        """
        Replace the dead reckoning baseline with an authoritative fix.

        Args:
            fix: GPS position; its speed is None when unknown

        Returns:
            The appended sample, or None if the fix was rejected
        """
        if not fix.is_finite:
            self._reject(f"non-finite location fix {fix}")
            return None

        with self._lock:
            if self._fix_state is FixState.NO_FIX:
                logger.info("First location fix: %s", fix)
            self._fix_state = FixState.HAS_FIX
            self._last_known_location = fix
            self._current_speed = fix.speed
            self.fix_count += 1

            sample = LocationSample(fix.timestamp, fix, LocationSource.GPS)
            self._log.append(sample)

        logger.debug("Location fix: %s", fix)
        self._notify(sample)
        return sample

    def append_heading(self, heading: float, now: float) -> Optional[AnySample]:
        """
        Record a true heading in degrees.

        Headings are logged for consumers; the integrator does not use them.
        """
        if not math.isfinite(heading):
            self._reject(f"non-finite heading {heading}")
            return None

        with self._lock:
            self._last_known_heading = heading
            self.heading_count += 1
            sample = HeadingSample(now, heading)
            self._log.append(sample)

        self._notify(sample)
        return sample

    def reset(self) -> None:
        """Drop all state and samples, returning to NO_FIX."""
        with self._lock:
            self._fix_state = FixState.NO_FIX
            self._last_known_location = None
            self._last_known_heading = None
            self._current_speed = None
            self._log.clear()
            self.integration_count = 0
            self.fix_count = 0
            self.heading_count = 0
            self.rejected_count = 0

    # ------------------------------------------------------------------
    # Readers

    def latest_position(self) -> Optional[Coordinate]:
        """Last propagated or fixed position."""
        with self._lock:
            return self._log.latest_location()

    def latest_speed(self, unit: Optional[Unit] = None) -> Optional[Measurement]:
        """Current speed, optionally converted to `unit`."""
        with self._lock:
            speed = self._current_speed
        if speed is not None and unit is not None:
            return speed.converted(unit)
        return speed

    @property
    def last_known_heading(self) -> Optional[float]:
        with self._lock:
            return self._last_known_heading

    @property
    def last_known_location(self) -> Optional[Coordinate]:
        with self._lock:
            return self._last_known_location

    @property
    def fix_state(self) -> FixState:
        with self._lock:
            return self._fix_state

    def snapshot(self) -> FusionState:
        """Consistent view of the whole state."""
        with self._lock:
            return FusionState(
                fix_state=self._fix_state,
                last_known_location=self._last_known_location,
                last_known_heading=self._last_known_heading,
                current_speed=self._current_speed,
                latest_position=self._log.latest_location(),
                sample_count=len(self._log),
            )

    def samples(self) -> List[AnySample]:
        """Copy of the sample log."""
        with self._lock:
            return self._log.snapshot()

    def export_samples(self, path) -> int:
        """Write the sample log to `path` as JSON lines (outside the lock)."""
        samples = self.samples()
        write_jsonl(samples, path)
        return len(samples)

    def get_statistics(self) -> dict:
        """Get engine statistics."""
        with self._lock:
            return {
                'fix_state': self._fix_state.value,
                'integrations': self.integration_count,
                'fixes': self.fix_count,
                'headings': self.heading_count,
                'rejected': self.rejected_count,
                'samples': len(self._log),
                'total_samples': self._log.total_appended,
            }

    # ------------------------------------------------------------------
    # Listeners

    def add_listener(self, listener: Listener) -> None:
        """Register a callback invoked with each appended sample."""
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        with self._lock:
            self._listeners.remove(listener)

    def _notify(self, sample: AnySample) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(sample)
            except Exception:
                logger.exception("Listener %r failed for %s sample", listener, sample.kind)

    def _reject(self, reason: str) -> None:
        with self._lock:
            self.rejected_count += 1
        logger.warning("Dropping sample: %s", reason)
