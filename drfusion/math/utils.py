"""
Mathematical utility functions for dead reckoning.
"""

import math

from .constants import (
    EARTH_RADIUS_M,
    LATITUDE_MAX,
    LATITUDE_MIN,
    LONGITUDE_MAX,
    LONGITUDE_MIN,
)

def wrap_degrees(angle):
    """
    Wrap a bearing to [0, 360) degrees.

    Args:
        angle (float): Angle in degrees

    Returns:
        float: Wrapped angle in [0, 360)
    """
    wrapped = angle % 360.0
    # -1e-17 % 360.0 rounds to exactly 360.0
    return 0.0 if wrapped == 360.0 else wrapped

def wrap_longitude(longitude):
    """
    Wrap a longitude to [-180, 180) degrees.

    Args:
        longitude (float): Longitude in degrees

    Returns:
        float: Longitude in [-180, 180)
    """
    if LONGITUDE_MIN <= longitude < LONGITUDE_MAX:
        return longitude
    span = LONGITUDE_MAX - LONGITUDE_MIN
    return (longitude - LONGITUDE_MIN) % span + LONGITUDE_MIN

def clamp_latitude(latitude):
    """Clamp a latitude to [-90, 90] degrees."""
    return max(LATITUDE_MIN, min(LATITUDE_MAX, latitude))

def haversine_distance(lat1, lon1, lat2, lon2):
    """
    Calculate the great circle distance between two points on Earth.

    Args:
        lat1, lon1: Latitude and longitude of first point (degrees)
        lat2, lon2: Latitude and longitude of second point (degrees)

    Returns:
        float: Distance in meters
    """
    # Convert to radians
    lat1, lon1, lat2, lon2 = map(math.radians, [lat1, lon1, lat2, lon2])

    # Haversine formula
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = math.sin(dlat/2)**2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon/2)**2
    c = 2 * math.asin(math.sqrt(a))

    return EARTH_RADIUS_M * c

def calculate_bearing(lat1, lon1, lat2, lon2):
    """
    Calculate the initial bearing from one GPS coordinate to another.

    Args:
        lat1, lon1: Starting latitude and longitude (degrees)
        lat2, lon2: Ending latitude and longitude (degrees)

    Returns:
        float: Bearing in degrees clockwise from true north, [0, 360)
    """
    # Convert to radians
    lat1, lon1, lat2, lon2 = map(math.radians, [lat1, lon1, lat2, lon2])

    dlon = lon2 - lon1

    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)

    return wrap_degrees(math.degrees(math.atan2(y, x)))
