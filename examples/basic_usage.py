#!/usr/bin/env python3
"""
Basic usage example of the dead reckoning fusion core.

Simulates a pedestrian walking north-east: GPS is available for the first
20 seconds, after which the position is carried forward from device motion
alone.
"""

import sys
import os
import math
import tempfile
import numpy as np

# Add package to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from drfusion import Config, configure_logging, SensorSession
from drfusion.math import rotation_matrix_from_euler, haversine_distance
from drfusion.math.units import KILOMETERS_PER_HOUR
from drfusion.reckoning.samples import LocationSource
from drfusion.sensors import DeviceMotionSample, LocationFix, HeadingFix

def simulate_walk(duration=40.0, dt=0.1, gps_until=20.0, start_time=1700000000.0):
    """
    Simulate a walk along a fixed course.

    Args:
        duration: Simulation duration in seconds
        dt: Motion update interval in seconds
        gps_until: GPS fixes stop after this many seconds
        start_time: Timestamp of the first update

    Yields:
        (timestamp, motion, fix, heading) tuples; fix and heading may be None
    """
    # Walk parameters
    course_deg = 45.0
    accel_g = 0.05        # forward acceleration while speeding up
    accel_time = 2.0      # seconds
    start_lat = 48.8584
    start_lon = 2.2945

    # Noise parameters
    rng = np.random.default_rng(7)
    accel_noise = 0.002   # g
    gps_noise = 0.000005  # degrees (~0.5 m)

    rotation = rotation_matrix_from_euler(math.radians(course_deg), 0.0, 0.0)
    earth_radius = 6378137.0

    steps = int(round(duration / dt))
    for i in range(steps + 1):
        t = i * dt
        timestamp = start_time + t

        # True speed and distance travelled
        a = accel_g * 9.80665
        if t <= accel_time:
            speed = a * t
            distance = 0.5 * a * t * t
        else:
            speed = a * accel_time
            distance = 0.5 * a * accel_time ** 2 + speed * (t - accel_time)

        forward = accel_g if 0 < t <= accel_time else 0.0
        motion = DeviceMotionSample(
            rotation_matrix=rotation,
            user_acceleration=[forward + rng.normal(0, accel_noise),
                               rng.normal(0, accel_noise),
                               rng.normal(0, accel_noise)],
            yaw=math.radians(course_deg),
            timestamp=timestamp,
        )

        fix = None
        heading = None
        if i % 50 == 0:
            heading = HeadingFix(course_deg + rng.normal(0, 2.0), timestamp=timestamp)
            if t <= gps_until:
                north = distance * math.cos(math.radians(course_deg))
                east = distance * math.sin(math.radians(course_deg))
                fix = LocationFix(
                    latitude=start_lat + math.degrees(north / earth_radius) + rng.normal(0, gps_noise),
                    longitude=start_lon + math.degrees(
                        east / (earth_radius * math.cos(math.radians(start_lat)))
                    ) + rng.normal(0, gps_noise),
                    speed=speed,
                    course=course_deg,
                    timestamp=timestamp,
                )

        yield timestamp, motion, fix, heading

def main():
    """Main example function."""
    print("Dead Reckoning Fusion - Basic Usage Example")
    print("=" * 50)

    config = Config()
    config.set("log_level", "WARNING")
    # The simulated device reports user acceleration in g
    config.set("acceleration_unit", "g")
    configure_logging(config)

    session = SensorSession(config=config)
    print(f"Motion update interval: {session.update_interval:.2f} s")
    print()

    start = None
    for timestamp, motion, fix, heading in simulate_walk(dt=session.update_interval):
        if fix is not None:
            session.on_location_update([fix])
            if start is None:
                start = fix
        if heading is not None:
            session.on_heading_update(heading)
        session.on_device_motion(motion)

        if heading is not None:
            print_status(session, start)

    print("Simulation completed!")

    stats = session.get_status()['engine']
    print("\n=== Final Statistics ===")
    print(f"GPS fixes: {stats['fixes']}")
    print(f"Integrations: {stats['integrations']}")
    print(f"Headings: {stats['headings']}")
    print(f"Rejected samples: {stats['rejected']}")

    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "walk.jsonl")
        count = session.export_samples(path)
        print(f"Exported {count} samples")

def print_status(session: SensorSession, start: LocationFix):
    """Print current position and speed."""
    position = session.latest_position()
    if position is None:
        print("  No fix yet")
        return

    samples = session.engine.samples()
    last_location = next(
        (s for s in reversed(samples) if s.location is not None), None
    )
    source = last_location.source if last_location is not None else LocationSource.GPS
    travelled = haversine_distance(start.latitude, start.longitude,
                                   position.latitude, position.longitude)
    speed = session.latest_speed(KILOMETERS_PER_HOUR)

    print(f"Time: {position.timestamp - start.timestamp:5.1f}s ({source.value})")
    print(f"  Position: {position.latitude:.6f}, {position.longitude:.6f}")
    print(f"  Travelled: {travelled:6.2f} m")
    if speed is not None:
        print(f"  Speed: {speed.value:5.2f} km/h")
    if position.course is not None:
        print(f"  Course: {position.course:6.1f}°")
    print()

if __name__ == "__main__":
    main()
