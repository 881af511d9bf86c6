#!/usr/bin/env python3
"""
Integration tests for the complete sensor session pipeline.
"""

import unittest
import math
import numpy as np
import sys
import os
import tempfile
import threading
import time
from unittest import mock

# Add package to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from drfusion.config import Config
from drfusion.math.transform import rotation_matrix_from_euler
from drfusion.math.units import GRAVITY, METERS_PER_SECOND_SQUARED, KILOMETERS_PER_HOUR
from drfusion.reckoning.samples import AccelerationSample, LocationSample, LocationSource, SampleLog
from drfusion.reckoning.state import FixState
from drfusion.sensors.location import LocationFix, HeadingFix
from drfusion.sensors.motion import DeviceMotionSample, MotionProcessor
from drfusion.session import SensorSession, AuthorizationStatus

def motion(accel, rotation=None, timestamp=None, unit=None):
    return DeviceMotionSample(
        rotation_matrix=np.eye(3) if rotation is None else rotation,
        user_acceleration=accel,
        acceleration_unit=unit,
        timestamp=timestamp,
    )

class TestMotionProcessor(unittest.TestCase):
    """Test device motion to earth-frame acceleration."""

    def setUp(self):
        self.processor = MotionProcessor()

    def test_default_input_is_ms2(self):
        out = self.processor.process(motion([1.0, 0.0, 0.0]))
        self.assertEqual(out.unit, METERS_PER_SECOND_SQUARED)
        self.assertAlmostEqual(out.x, 1.0)

    def test_g_input_converted_to_ms2(self):
        processor = MotionProcessor(input_unit=GRAVITY)
        out = processor.process(motion([1.0, 0.0, 0.0]))
        self.assertEqual(out.unit, METERS_PER_SECOND_SQUARED)
        self.assertAlmostEqual(out.x, 9.80665)

    def test_sample_unit_overrides_input_unit(self):
        processor = MotionProcessor(input_unit=GRAVITY)
        out = processor.process(motion([2.0, 0.0, 0.0], unit=METERS_PER_SECOND_SQUARED))
        self.assertAlmostEqual(out.x, 2.0)

    def test_non_orthonormal_attitude_counted(self):
        out = self.processor.process(motion([1.0, 0.0, 0.0], rotation=np.eye(3) * 2.0))
        self.assertAlmostEqual(out.x, 2.0)
        self.processor.process(motion([1.0, 0.0, 0.0]))

        stats = self.processor.get_statistics()
        self.assertEqual(stats['non_orthonormal_count'], 1)
        self.assertEqual(stats['sample_count'], 2)

    def test_rotation_applied(self):
        """Test a device yawed 90° reports its X axis along earth Y."""
        R = rotation_matrix_from_euler(math.pi / 2, 0.0, 0.0)
        out = self.processor.process(motion([1.0, 0.0, 0.0], rotation=R, unit=METERS_PER_SECOND_SQUARED))
        np.testing.assert_allclose(out.as_array(), [0.0, 1.0, 0.0], atol=1e-12)

    def test_malformed_samples_rejected(self):
        from drfusion.errors import InvalidSampleError

        bad = [
            motion([float('nan'), 0.0, 0.0]),
            motion([0.0, 0.0, 0.0], rotation=np.full((3, 3), np.inf)),
            motion([0.0, 0.0]),
            motion([0.0, 0.0, 0.0], rotation=np.eye(2)),
        ]
        for sample in bad:
            with self.assertRaises(InvalidSampleError):
                self.processor.process(sample)

        stats = self.processor.get_statistics()
        self.assertEqual(stats['rejected_count'], 4)
        self.assertEqual(stats['sample_count'], 0)

class TestLocationFix(unittest.TestCase):
    """Test location fix conversion."""

    def test_sentinels_become_none(self):
        c = LocationFix(37.0, -122.0, speed=-1.0, course=-1.0, timestamp=1.0).to_coordinate()
        self.assertIsNone(c.speed)
        self.assertIsNone(c.course)

    def test_known_speed_and_course(self):
        c = LocationFix(37.0, -122.0, speed=4.0, course=180.0, timestamp=1.0).to_coordinate()
        self.assertAlmostEqual(c.speed_ms, 4.0)
        self.assertEqual(c.course, 180.0)
        self.assertEqual(c.timestamp, 1.0)

    def test_validity(self):
        self.assertTrue(LocationFix(0.0, 0.0).is_valid)
        self.assertFalse(LocationFix(91.0, 0.0).is_valid)
        self.assertFalse(LocationFix(0.0, float('nan')).is_valid)
        self.assertFalse(LocationFix(0.0, 180.5).is_valid)
        self.assertTrue(LocationFix(-90.0, -180.0).is_valid)
        self.assertFalse(HeadingFix(-1.0).is_valid)
        self.assertTrue(HeadingFix(0.0).is_valid)

class TestSensorSession(unittest.TestCase):
    """Test the session routing sensor callbacks into the engine."""

    def setUp(self):
        self.session = SensorSession()
        self.engine = self.session.engine

    def test_motion_before_fix(self):
        self.session.on_device_motion(motion([0.1, 0.0, 0.0], timestamp=1.0))
        samples = self.engine.samples()
        self.assertEqual(len(samples), 1)
        self.assertIsInstance(samples[0], AccelerationSample)
        self.assertIs(self.engine.fix_state, FixState.NO_FIX)

    def test_motion_after_fix_dead_reckons(self):
        """Test 1 m/s² north for one 0.1 s interval from rest."""
        self.session.on_location_update([LocationFix(0.0, 0.0, speed=0.0, course=0.0, timestamp=0.0)])
        self.session.on_device_motion(motion([1.0, 0.0, 0.0], timestamp=0.1))

        speed = self.session.latest_speed()
        self.assertAlmostEqual(speed.value, 0.1)
        self.assertAlmostEqual(self.session.latest_speed(KILOMETERS_PER_HOUR).value, 0.36)

        position = self.session.latest_position()
        self.assertAlmostEqual(position.course, 0.0)
        self.assertGreater(position.latitude, 0.0)
        self.assertAlmostEqual(position.longitude, 0.0)
        self.assertEqual(position.timestamp, 0.1)

        last = self.engine.samples()[-1]
        self.assertIsInstance(last, LocationSample)
        self.assertIs(last.source, LocationSource.DEAD_RECKONING)

    def test_g_reporting_host(self):
        """Test 1 g north for 0.1 s when the host reports acceleration in g."""
        config = Config()
        config.set("acceleration_unit", "g")
        session = SensorSession(config=config)

        session.on_location_update([LocationFix(0.0, 0.0, speed=0.0, course=0.0, timestamp=0.0)])
        session.on_device_motion(motion([1.0, 0.0, 0.0], timestamp=0.1))

        self.assertAlmostEqual(session.latest_speed().value, 0.980665)
        self.assertEqual(session.get_status()['motion']['input_unit'], "g")

    def test_invalid_motion_dropped(self):
        with self.assertLogs('drfusion.session', level='WARNING'):
            self.session.on_device_motion(motion([float('nan'), 0.0, 0.0]))
        self.assertEqual(self.engine.samples(), [])

    def test_batch_uses_last_fix(self):
        self.session.on_location_update([
            LocationFix(1.0, 1.0, timestamp=1.0),
            LocationFix(2.0, 2.0, timestamp=2.0),
        ])
        self.assertEqual(self.session.latest_position().latitude, 2.0)
        self.assertEqual(len(self.engine.samples()), 1)

    def test_empty_batch_ignored(self):
        self.session.on_location_update([])
        self.assertEqual(self.engine.samples(), [])

    def test_invalid_fix_dropped(self):
        with self.assertLogs('drfusion.session', level='WARNING'):
            self.session.on_location_update([LocationFix(120.0, 0.0)])
        self.assertIs(self.engine.fix_state, FixState.NO_FIX)

    def test_heading_update(self):
        self.session.on_heading_update(HeadingFix(123.0, timestamp=3.0))
        self.assertEqual(self.engine.last_known_heading, 123.0)

        with self.assertLogs('drfusion.session', level='WARNING'):
            self.session.on_heading_update(HeadingFix(-1.0, timestamp=4.0))
        self.assertEqual(self.engine.last_known_heading, 123.0)

    def test_location_tracking_toggle(self):
        self.session.location_tracking_enabled = False
        self.session.on_location_update([LocationFix(1.0, 1.0)])
        self.assertIs(self.engine.fix_state, FixState.NO_FIX)
        self.assertEqual(self.session.ignored_fix_count, 1)

        self.assertTrue(self.session.toggle_location_tracking())
        self.session.on_location_update([LocationFix(1.0, 1.0)])
        self.assertIs(self.engine.fix_state, FixState.HAS_FIX)

    def test_tracking_disabled_from_config(self):
        config = Config()
        config.set("enable_location_tracking", False)
        session = SensorSession(config=config)
        self.assertFalse(session.accepting_location_fixes)

    def test_sensor_error_is_non_fatal(self):
        self.session.on_location_update([LocationFix(1.0, 1.0, timestamp=1.0)])

        with self.assertLogs('drfusion.session', level='ERROR'):
            self.session.on_sensor_error("motion", RuntimeError("device motion not available"))

        self.assertEqual(len(self.session.sensor_errors), 1)
        self.assertEqual(self.session.sensor_errors[0]['source'], "motion")
        self.assertEqual(self.session.latest_position().latitude, 1.0)

    def test_status(self):
        self.session.on_location_update([LocationFix(1.0, 2.0, speed=3.0, course=4.0, timestamp=1.0)])
        status = self.session.get_status()

        self.assertEqual(status['fix_state'], 'has_fix')
        self.assertEqual(status['position']['latitude'], 1.0)
        self.assertEqual(status['speed'], {'value': 3.0, 'unit': 'm/s'})
        self.assertEqual(status['authorization'], 'authorized')
        self.assertIn('engine', status)
        self.assertIn('motion', status)

    def test_export_samples(self):
        self.session.on_location_update([LocationFix(1.0, 2.0, timestamp=1.0)])
        self.session.on_device_motion(motion([0.0, 0.1, 0.0], timestamp=1.1))
        self.session.on_heading_update(HeadingFix(10.0, timestamp=1.2))

        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "session.jsonl")
            self.assertEqual(self.session.export_samples(path), 3)
            restored = SampleLog.load_jsonl(path)

        self.assertEqual(restored.snapshot(), self.engine.samples())

    def test_config_applied_to_engine(self):
        config = Config()
        config.set("longitude_scaling", "longitude")
        config.set("max_samples", 2)
        config.set("motion_update_interval_s", 0.05)
        session = SensorSession(config=config)

        self.assertEqual(session.engine.integrator.longitude_scaling, "longitude")
        self.assertEqual(session.update_interval, 0.05)
        for i in range(4):
            session.on_heading_update(HeadingFix(float(i), timestamp=float(i)))
        self.assertEqual(len(session.engine.samples()), 2)

class TestAuthorization(unittest.TestCase):
    """Test location permission transitions."""

    def setUp(self):
        self.requester = mock.Mock()
        self.session = SensorSession(
            authorization=AuthorizationStatus.NOT_DETERMINED,
            request_authorization=self.requester,
        )

    def test_not_determined_requests(self):
        status = self.session.on_authorization_changed(AuthorizationStatus.NOT_DETERMINED)
        self.assertIs(status, AuthorizationStatus.REQUESTED)
        self.requester.assert_called_once_with()

        self.session.on_location_update([LocationFix(1.0, 1.0)])
        self.assertIs(self.session.engine.fix_state, FixState.NO_FIX)

    def test_authorized_accepts_fixes(self):
        self.session.on_authorization_changed(AuthorizationStatus.AUTHORIZED)
        self.session.on_location_update([LocationFix(1.0, 1.0)])
        self.assertIs(self.session.engine.fix_state, FixState.HAS_FIX)

    def test_denied_degrades_to_motion_only(self):
        """Test denial stops fixes but dead reckoning continues from the baseline."""
        self.session.on_authorization_changed(AuthorizationStatus.AUTHORIZED)
        self.session.on_location_update([LocationFix(0.0, 0.0, speed=0.0, course=0.0, timestamp=0.0)])

        with self.assertLogs('drfusion.session', level='WARNING'):
            self.session.on_authorization_changed(AuthorizationStatus.DENIED)

        self.session.on_location_update([LocationFix(50.0, 50.0, timestamp=0.05)])
        self.session.on_device_motion(motion([0.1, 0.0, 0.0], timestamp=0.1))

        position = self.session.latest_position()
        self.assertLess(position.latitude, 1.0)
        self.assertGreater(position.latitude, 0.0)
        self.assertEqual(self.session.ignored_fix_count, 1)

class TestMotionPolling(unittest.TestCase):
    """Test the background motion polling thread."""

    def test_polls_motion_source(self):
        config = Config()
        config.set("motion_update_interval_s", 0.01)

        def source():
            return motion([0.0, 0.0, 0.0], timestamp=time.time())

        session = SensorSession(config=config, motion_source=source)
        self.assertTrue(session.start())
        self.assertFalse(session.start())

        deadline = time.time() + 5.0
        while len(session.engine.samples()) < 3 and time.time() < deadline:
            time.sleep(0.01)
        session.stop()

        self.assertGreaterEqual(len(session.engine.samples()), 3)
        self.assertFalse(session.running)

    def test_source_errors_reported(self):
        config = Config()
        config.set("motion_update_interval_s", 0.01)
        calls = []

        def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise IOError("sensor unavailable")
            return motion([0.0, 0.0, 0.0], timestamp=time.time())

        session = SensorSession(config=config, motion_source=flaky)
        with self.assertLogs('drfusion.session', level='ERROR'):
            session.start()
            deadline = time.time() + 5.0
            while len(session.engine.samples()) < 1 and time.time() < deadline:
                time.sleep(0.01)
            session.stop()

        self.assertEqual(len(session.sensor_errors), 1)
        self.assertGreaterEqual(len(session.engine.samples()), 1)

    def test_stop_timeout_keeps_thread(self):
        """Test a poller stuck past the join timeout blocks a second start."""
        config = Config()
        config.set("motion_update_interval_s", 0.01)
        entered = threading.Event()
        release = threading.Event()

        def blocking():
            entered.set()
            release.wait(5.0)
            return None

        session = SensorSession(config=config, motion_source=blocking)
        self.assertTrue(session.start())
        self.assertTrue(entered.wait(5.0))

        with self.assertLogs('drfusion.session', level='WARNING'):
            session.stop(timeout=0.05)
        self.assertTrue(session.running)
        self.assertFalse(session.start())

        release.set()
        session.stop()
        self.assertFalse(session.running)
        self.assertTrue(session.start())
        release.set()
        session.stop()
        self.assertFalse(session.running)

    def test_start_without_source(self):
        session = SensorSession()
        with self.assertLogs('drfusion.session', level='ERROR'):
            self.assertFalse(session.start())
        self.assertEqual(session.sensor_errors[0]['source'], "motion")

if __name__ == '__main__':
    unittest.main()
