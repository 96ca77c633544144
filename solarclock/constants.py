"""Named astronomical constants and configuration defaults.

The solar position series are the low-order pysolar approximations: a
Fourier series for the solar declination and another for the "time
adjustment" (equation of time).  Each series is stored as a constant term
followed by ``(cos, sin)`` coefficient pairs for harmonics 1, 2, 3, ...
"""

from __future__ import annotations

from datetime import time, timedelta
from typing import Dict, Tuple

# Solar declination, degrees, evaluated at 2*pi*n/366 for day-of-year n.
DECLINATION_PERIOD_DAYS = 366.0
DECLINATION_CONSTANT_DEG = 0.322003
DECLINATION_HARMONICS: Tuple[Tuple[float, float], ...] = (
    (-22.971, 3.94638),
    (-0.357898, 0.019334),
    (-0.14398, 0.05928),
)

# Time adjustment, seconds, evaluated at 279.134 + 0.985647*n degrees.
TIME_ADJUSTMENT_EPOCH_DEG = 279.134
TIME_ADJUSTMENT_RATE_DEG = 0.985647
TIME_ADJUSTMENT_CONSTANT_S = 5.0323
TIME_ADJUSTMENT_HARMONICS: Tuple[Tuple[float, float], ...] = (
    (-430.847, -100.976),
    (12.5024, 595.275),
    (18.25, 3.6858),
    (0.0, -12.47),
)

SOLAR_NOON_HOUR = 12.0
DEGREES_PER_HOUR = 15.0
SECONDS_PER_HOUR = 3600.0
SECONDS_PER_DAY = 86400.0

# Apparent altitude of the solar centre at the horizon crossing, degrees.
# -0.833 combines atmospheric refraction (0.5667) and the solar semi-diameter.
TWILIGHT_ANGLES: Dict[str, float] = {
    "official": -0.833,
    "civil": -6.0,
    "nautical": -12.0,
    "astronomical": -18.0,
}
DEFAULT_TWILIGHT = "official"

EARTH_EQUATORIAL_RADIUS_M = 6378137.0  # WGS84
MIN_ELEVATION_M = -500.0

# Reference zone and target clock hours.
DEFAULT_REFERENCE_OFFSET = timedelta(hours=1)
DEFAULT_TARGET_SUNRISE = time(8, 0)
DEFAULT_TARGET_NOON = time(14, 0)
DEFAULT_TARGET_SUNSET = time(20, 0)
MAX_REFERENCE_OFFSET = timedelta(hours=24)

DEFAULT_LATITUDE = 38.34599467937726
DEFAULT_LONGITUDE = -0.49068757240971655

DEFAULT_WINDOW_RADIUS_DAYS = 1
# Widening limit when the query interval touches an end knot of the window.
MAX_WINDOW_RADIUS_DAYS = 3
DEFAULT_MODEL_CACHE_SIZE = 64

OUTPUT_FORMAT = "%Y-%m-%d %H:%M:%S %z"
