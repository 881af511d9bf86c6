"""
Mathematical and physical constants for dead reckoning.
"""

import math

# Earth parameters
EARTH_RADIUS_M = 6378137.0  # WGS-84 equatorial radius in meters
GRAVITY_MS2 = 9.80665       # Standard gravity in m/s²

# Conversion factors
DEG_TO_RAD = math.pi / 180.0
RAD_TO_DEG = 180.0 / math.pi
KMH_TO_MS = 1000.0 / 3600.0
MPH_TO_MS = 1609.344 / 3600.0
KNOTS_TO_MS = 1852.0 / 3600.0

# Geodetic bounds (degrees)
LATITUDE_MIN = -90.0
LATITUDE_MAX = 90.0
LONGITUDE_MIN = -180.0
LONGITUDE_MAX = 180.0

# Device motion defaults
DEFAULT_MOTION_UPDATE_INTERVAL_S = 0.1  # 10 Hz device motion updates

# Location fix sentinel for "unknown" speed/course
UNKNOWN_SENTINEL = -1.0

# Longitude delta scaling modes
LONGITUDE_SCALING_LATITUDE = "latitude"    # cos(latitude), geodesically correct
LONGITUDE_SCALING_LONGITUDE = "longitude"  # cos(longitude), legacy behaviour
LONGITUDE_SCALING_MODES = (LONGITUDE_SCALING_LATITUDE, LONGITUDE_SCALING_LONGITUDE)
