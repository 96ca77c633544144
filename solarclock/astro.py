"""Sunrise, solar noon and sunset instants from a low-order solar position model."""

from __future__ import annotations

import math
from datetime import UTC, date, datetime, timedelta
from functools import lru_cache
from typing import Optional, Sequence, Tuple

from .constants import (
    DECLINATION_CONSTANT_DEG,
    DECLINATION_HARMONICS,
    DECLINATION_PERIOD_DAYS,
    DEFAULT_TWILIGHT,
    DEGREES_PER_HOUR,
    EARTH_EQUATORIAL_RADIUS_M,
    SECONDS_PER_HOUR,
    SOLAR_NOON_HOUR,
    TIME_ADJUSTMENT_CONSTANT_S,
    TIME_ADJUSTMENT_EPOCH_DEG,
    TIME_ADJUSTMENT_HARMONICS,
    TIME_ADJUSTMENT_RATE_DEG,
    TWILIGHT_ANGLES,
)
from .domain import GeoCoordinate, SolarEventSet

__all__ = [
    "compute_events",
    "solar_declination_degrees",
    "time_adjustment_hours",
    "hour_angle_cosine",
]


def _harmonic_series(
    angle_rad: float, constant: float, harmonics: Sequence[Tuple[float, float]]
) -> float:
    total = constant
    for order, (cos_coef, sin_coef) in enumerate(harmonics, start=1):
        total += cos_coef * math.cos(order * angle_rad) + sin_coef * math.sin(order * angle_rad)
    return total


def solar_declination_degrees(day_of_year: int) -> float:
    """Solar declination for a day of the year, in degrees."""

    angle = 2.0 * math.pi * day_of_year / DECLINATION_PERIOD_DAYS
    return _harmonic_series(angle, DECLINATION_CONSTANT_DEG, DECLINATION_HARMONICS)


def time_adjustment_hours(day_of_year: int) -> float:
    """Equation-of-time correction in hours; positive when the sun runs fast."""

    angle = math.radians(TIME_ADJUSTMENT_EPOCH_DEG + TIME_ADJUSTMENT_RATE_DEG * day_of_year)
    seconds = _harmonic_series(angle, TIME_ADJUSTMENT_CONSTANT_S, TIME_ADJUSTMENT_HARMONICS)
    return seconds / SECONDS_PER_HOUR


def _horizon_dip_degrees(elev_m: float) -> float:
    """Approximate depression of the horizon due to observer height."""

    if elev_m <= 0:
        return 0.0
    # Small-angle approximation valid for h << R.
    return math.degrees(math.sqrt(2.0 * elev_m / EARTH_EQUATORIAL_RADIUS_M))


def _twilight_altitude_degrees(twilight: str, elev_m: float) -> float:
    try:
        base_altitude = TWILIGHT_ANGLES[twilight]
    except KeyError as exc:
        raise ValueError(f"Unsupported twilight selector: {twilight}") from exc
    return base_altitude - _horizon_dip_degrees(elev_m)


def hour_angle_cosine(latitude: float, declination: float, altitude: float) -> float:
    """Cosine of the hour angle at which the sun crosses *altitude*.

    All arguments are degrees.  Values above 1 mean the sun never climbs to
    *altitude* that day, values below -1 mean it never drops beneath it.
    """

    lat_rad = math.radians(latitude)
    decl_rad = math.radians(declination)
    zenith_rad = math.radians(90.0 - altitude)
    return (math.cos(zenith_rad) / (math.cos(lat_rad) * math.cos(decl_rad))) - (
        math.tan(lat_rad) * math.tan(decl_rad)
    )


def _at_hours(midnight: datetime, hours: float) -> datetime:
    return midnight + timedelta(microseconds=round(hours * SECONDS_PER_HOUR * 1_000_000))


@lru_cache(maxsize=1024)
def compute_events(
    day: date,
    coordinate: GeoCoordinate,
    twilight: str = DEFAULT_TWILIGHT,
) -> SolarEventSet:
    """Compute sunrise, solar noon and sunset for the given UTC date and location.

    Parameters
    ----------
    day:
        Calendar date expressed in UTC.
    coordinate:
        Observer position; elevation lowers the horizon by its geometric dip.
    twilight:
        Key of :data:`TWILIGHT_ANGLES` selecting the horizon altitude.

    Returns
    -------
    SolarEventSet
        Sunrise and sunset are ``None`` when the sun stays above (``polar_day``)
        or below (``polar_night``) the horizon altitude all day.
    """

    day_of_year = day.timetuple().tm_yday
    declination = solar_declination_degrees(day_of_year)
    noon_hours = (
        SOLAR_NOON_HOUR
        - coordinate.longitude / DEGREES_PER_HOUR
        - time_adjustment_hours(day_of_year)
    )

    midnight = datetime.combine(day, datetime.min.time(), tzinfo=UTC)
    noon = _at_hours(midnight, noon_hours)

    altitude = _twilight_altitude_degrees(twilight, coordinate.elevation_m)
    cos_ha = hour_angle_cosine(coordinate.latitude, declination, altitude)

    sunrise: Optional[datetime] = None
    sunset: Optional[datetime] = None
    if cos_ha > 1.0:
        status = "polar_night"
    elif cos_ha < -1.0:
        status = "polar_day"
    else:
        status = "ok"
        half_day_hours = math.degrees(math.acos(cos_ha)) / DEGREES_PER_HOUR
        sunrise = _at_hours(midnight, noon_hours - half_day_hours)
        sunset = _at_hours(midnight, noon_hours + half_day_hours)

    return SolarEventSet(day=day, sunrise=sunrise, noon=noon, sunset=sunset, status=status)
