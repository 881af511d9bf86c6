"""
Sensor session: the boundary between platform sensor callbacks and the
fusion engine.

The platform (a phone's motion and location services, a serial GPS plus
an IMU driver, a replay file) calls the `on_*` methods from whatever
threads it uses. Optionally the session polls a motion source itself on
a background thread at the configured update interval.
"""

import logging
import threading
import time
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from .config import Config
from .errors import InvalidSampleError
from .math.units import Measurement, Unit
from .reckoning.engine import FusionEngine, Listener
from .reckoning.integrator import DeadReckoningIntegrator
from .reckoning.state import Coordinate
from .sensors.location import HeadingFix, LocationFix
from .sensors.motion import DeviceMotionSample, MotionProcessor

logger = logging.getLogger(__name__)

MotionSource = Callable[[], Optional[DeviceMotionSample]]

class AuthorizationStatus(Enum):
    """Location access permission as reported by the platform."""

    NOT_DETERMINED = "not_determined"
    REQUESTED = "requested"
    AUTHORIZED = "authorized"
    DENIED = "denied"

class SensorSession:
    """
    Routes device motion, location and heading updates into a FusionEngine.
    """

    def __init__(self,
                 config: Optional[Config] = None,
                 engine: Optional[FusionEngine] = None,
                 motion_source: Optional[MotionSource] = None,
                 authorization: AuthorizationStatus = AuthorizationStatus.AUTHORIZED,
                 request_authorization: Optional[Callable[[], None]] = None):
        """
        Initialize the session.

        Args:
            config: Configuration (defaults if None)
            engine: Fusion engine; built from the configuration if None
            motion_source: Callable polled by `start()` for motion samples
            authorization: Initial location permission. Platforms without a
                permission model keep the default AUTHORIZED.
            request_authorization: Called when the permission is still
                undetermined and must be asked for
        """
        self.config = config or Config()

        if engine is None:
            integrator = DeadReckoningIntegrator(
                longitude_scaling=self.config.longitude_scaling
            )
            engine = FusionEngine(integrator=integrator, max_samples=self.config.max_samples)
        self.engine = engine

        self.motion_processor = MotionProcessor(input_unit=self.config.acceleration_unit)
        self.motion_source = motion_source
        self.update_interval = self.config.motion_update_interval_s

        self._state_lock = threading.Lock()
        self._location_tracking_enabled = self.config.enable_location_tracking
        self._authorization = authorization
        self._request_authorization = request_authorization

        # Threading control
        self._stop_event = threading.Event()
        self._motion_thread: Optional[threading.Thread] = None

        # Statistics
        self.ignored_fix_count = 0
        self.sensor_errors: List[Dict[str, object]] = []
        self.start_time = time.time()

    # ------------------------------------------------------------------
    # Sensor callbacks

    def on_device_motion(self, sample: DeviceMotionSample) -> None:
        """Handle one device motion update."""
        try:
            earth_acceleration = self.motion_processor.process(sample)
        except InvalidSampleError as e:
            logger.warning("Dropping device motion sample: %s", e)
            return

        self.engine.append_acceleration_sample(
            earth_acceleration, self.update_interval, sample.timestamp
        )

    def on_location_update(self, fixes: Sequence[LocationFix]) -> None:
        """
        Handle a batch of location fixes; only the most recent one is used.
        """
        logger.debug("Location update: %s", fixes)
        if not fixes:
            return

        if not self.accepting_location_fixes:
            with self._state_lock:
                self.ignored_fix_count += 1
            logger.debug("Ignoring location fix (tracking=%s, authorization=%s)",
                         self.location_tracking_enabled, self.authorization.value)
            return

        fix = fixes[-1]
        if not fix.is_valid:
            logger.warning("Dropping invalid location fix: %s", fix)
            return

        self.engine.append_location_fix(fix.to_coordinate())

    def on_heading_update(self, fix: HeadingFix) -> None:
        """Handle a compass heading update."""
        if not fix.is_valid:
            logger.warning("Dropping invalid heading: %s", fix)
            return
        self.engine.append_heading(fix.true_heading, fix.timestamp)
        logger.debug("Heading updated to %.1f", fix.true_heading)

    def on_sensor_error(self, source: str, error: BaseException) -> None:
        """
        Report that a sensor failed to start or stopped delivering.

        Non-fatal: the last known state stays valid, the sensor simply
        contributes no further samples.
        """
        logger.error("%s sensor error: %s", source, error)
        with self._state_lock:
            self.sensor_errors.append({
                'source': source,
                'error': str(error),
                'time': time.time(),
            })

    # ------------------------------------------------------------------
    # Location tracking and authorization

    @property
    def location_tracking_enabled(self) -> bool:
        with self._state_lock:
            return self._location_tracking_enabled

    @location_tracking_enabled.setter
    def location_tracking_enabled(self, enabled: bool) -> None:
        with self._state_lock:
            self._location_tracking_enabled = bool(enabled)
        logger.info("Location tracking %s", "enabled" if enabled else "disabled")

    def toggle_location_tracking(self) -> bool:
        """Flip location tracking; returns the new setting."""
        with self._state_lock:
            self._location_tracking_enabled = not self._location_tracking_enabled
            enabled = self._location_tracking_enabled
        logger.info("Location tracking %s", "enabled" if enabled else "disabled")
        return enabled

    @property
    def authorization(self) -> AuthorizationStatus:
        with self._state_lock:
            return self._authorization

    @property
    def accepting_location_fixes(self) -> bool:
        with self._state_lock:
            return (self._location_tracking_enabled and
                    self._authorization is AuthorizationStatus.AUTHORIZED)

    def on_authorization_changed(self, status: AuthorizationStatus) -> AuthorizationStatus:
        """
        Apply a location permission change.

        NOT_DETERMINED asks for permission (when a requester is set) and
        moves to REQUESTED. DENIED leaves dead reckoning running from the
        last baseline without new fixes.

        Returns:
            The resulting status
        """
        logger.info("Location authorization changed to %s", status.value)

        if status is AuthorizationStatus.NOT_DETERMINED and self._request_authorization is not None:
            self._request_authorization()
            status = AuthorizationStatus.REQUESTED
        elif status is AuthorizationStatus.DENIED:
            logger.warning("Location access denied, continuing with motion sensors only")

        with self._state_lock:
            self._authorization = status
        return status

    # ------------------------------------------------------------------
    # Motion polling

    @property
    def running(self) -> bool:
        return self._motion_thread is not None and self._motion_thread.is_alive()

    def start(self) -> bool:
        """
        Start polling the motion source on a background thread.

        Returns:
            True if the thread was started
        """
        if self.motion_source is None:
            self.on_sensor_error("motion", RuntimeError("no motion source configured"))
            return False
        if self.running:
            logger.info("Session already running")
            return False

        self._stop_event.clear()
        self._motion_thread = threading.Thread(
            target=self._motion_loop, name="drfusion-motion", daemon=True
        )
        self._motion_thread.start()
        logger.info("Motion updates started at %.3fs interval", self.update_interval)
        return True

    def stop(self, timeout: float = 2.0) -> None:
        """
        Stop the polling thread and wait for it to finish.

        If the thread outlives `timeout` it is kept, so `running` stays
        True and `start()` will not launch a second poller.
        """
        self._stop_event.set()
        thread = self._motion_thread
        if thread is None:
            return
        thread.join(timeout=timeout)
        if thread.is_alive():
            logger.warning("Motion thread did not stop within %.1fs", timeout)
            return
        self._motion_thread = None

    def _motion_loop(self):
        """Device motion polling loop."""
        while not self._stop_event.is_set():
            try:
                sample = self.motion_source()
            except Exception as e:
                self.on_sensor_error("motion", e)
                sample = None

            if sample is not None:
                self.on_device_motion(sample)

            self._stop_event.wait(self.update_interval)

    # ------------------------------------------------------------------
    # Outputs

    def latest_position(self) -> Optional[Coordinate]:
        return self.engine.latest_position()

    def latest_speed(self, unit: Optional[Unit] = None) -> Optional[Measurement]:
        return self.engine.latest_speed(unit)

    def add_listener(self, listener: Listener) -> None:
        self.engine.add_listener(listener)

    def export_samples(self, path) -> int:
        """Write the sample log as JSON lines; returns the sample count."""
        return self.engine.export_samples(path)

    def get_status(self) -> dict:
        """Get current position and health for external consumers."""
        state = self.engine.snapshot()
        position = state.latest_position
        speed = state.current_speed

        with self._state_lock:
            errors = len(self.sensor_errors)
            ignored = self.ignored_fix_count

        return {
            'timestamp': time.time(),
            'uptime': time.time() - self.start_time,
            'fix_state': state.fix_state.value,
            'position': position.to_dict() if position is not None else None,
            'speed': speed.to_dict() if speed is not None else None,
            'heading': state.last_known_heading,
            'location_tracking': self.location_tracking_enabled,
            'authorization': self.authorization.value,
            'sensor_errors': errors,
            'ignored_fixes': ignored,
            'engine': self.engine.get_statistics(),
            'motion': self.motion_processor.get_statistics(),
        }
