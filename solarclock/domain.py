"""Immutable value types shared by the solar clock components."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Iterator, Optional, Tuple

import numpy as np

from .constants import (
    DEFAULT_REFERENCE_OFFSET,
    DEFAULT_TARGET_NOON,
    DEFAULT_TARGET_SUNRISE,
    DEFAULT_TARGET_SUNSET,
    DEFAULT_TWILIGHT,
    MAX_REFERENCE_OFFSET,
    MIN_ELEVATION_M,
    TWILIGHT_ANGLES,
)
from .errors import DegenerateAnchorSet, InvalidConfig, InvalidCoordinate, NonMonotonicInput


class EventKind(str, Enum):
    """Solar events used as interpolation anchors, in daily order."""

    sunrise = "sunrise"
    noon = "noon"
    sunset = "sunset"


@dataclass(frozen=True)
class GeoCoordinate:
    """Observer position in degrees (east-positive longitude)."""

    latitude: float
    longitude: float
    elevation_m: float = 0.0

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise InvalidCoordinate(f"latitude must be within [-90, 90]: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise InvalidCoordinate(f"longitude must be within [-180, 180]: {self.longitude}")
        if not (math.isfinite(self.elevation_m) and self.elevation_m >= MIN_ELEVATION_M):
            raise InvalidCoordinate(f"elevation must be >= {MIN_ELEVATION_M} m: {self.elevation_m}")


@dataclass(frozen=True)
class SolarReferenceConfig:
    """Fixed reference offset and the clock hours solar events are pinned to."""

    reference_offset: timedelta = DEFAULT_REFERENCE_OFFSET
    target_sunrise: time = DEFAULT_TARGET_SUNRISE
    target_noon: time = DEFAULT_TARGET_NOON
    target_sunset: time = DEFAULT_TARGET_SUNSET
    twilight: str = DEFAULT_TWILIGHT

    def __post_init__(self) -> None:
        if abs(self.reference_offset) >= MAX_REFERENCE_OFFSET:
            raise InvalidConfig(f"reference offset out of range: {self.reference_offset}")
        for value in (self.target_sunrise, self.target_noon, self.target_sunset):
            if value.tzinfo is not None:
                raise InvalidConfig(f"target times must be naive times of day: {value}")
        if not self.target_sunrise < self.target_noon < self.target_sunset:
            raise InvalidConfig(
                "targets must be ordered sunrise < noon < sunset: "
                f"{self.target_sunrise} / {self.target_noon} / {self.target_sunset}"
            )
        if self.twilight not in TWILIGHT_ANGLES:
            raise InvalidConfig(f"Unsupported twilight selector: {self.twilight}")

    @property
    def tz(self) -> timezone:
        return timezone(self.reference_offset)

    def target_for(self, kind: EventKind) -> time:
        return {
            EventKind.sunrise: self.target_sunrise,
            EventKind.noon: self.target_noon,
            EventKind.sunset: self.target_sunset,
        }[kind]


@dataclass(frozen=True)
class SolarEventSet:
    """UTC instants of one day's solar events.

    ``sunrise`` and ``sunset`` are ``None`` during polar day or polar night;
    ``status`` tells which.  Solar noon is always defined.
    """

    day: date
    sunrise: Optional[datetime]
    noon: datetime
    sunset: Optional[datetime]
    status: str = "ok"

    def get(self, kind: EventKind) -> Optional[datetime]:
        return getattr(self, kind.value)

    def present(self) -> Iterator[Tuple[EventKind, datetime]]:
        """Yield ``(kind, instant)`` for each event that occurs."""
        for kind in EventKind:
            instant = self.get(kind)
            if instant is not None:
                yield kind, instant


def to_timestamp(instant: datetime) -> float:
    """Seconds since the POSIX epoch for an aware datetime."""
    if instant.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    return instant.timestamp()


@dataclass(frozen=True)
class AnchorPoint:
    """Real event instant paired with the correction that moves it onto its target."""

    instant: datetime
    delta: timedelta
    kind: EventKind

    @property
    def x(self) -> float:
        return to_timestamp(self.instant)

    @property
    def y(self) -> float:
        return self.delta.total_seconds()


@dataclass(frozen=True)
class AnchorSet:
    """Anchors ordered by strictly increasing instant."""

    points: Tuple[AnchorPoint, ...]
    days: Tuple[date, ...] = field(default=())

    def __post_init__(self) -> None:
        for previous, current in zip(self.points, self.points[1:]):
            if current.instant == previous.instant:
                raise DegenerateAnchorSet(
                    f"duplicate anchor instant {current.instant.isoformat()} "
                    f"({previous.kind.value}/{current.kind.value})"
                )
            if current.instant < previous.instant:
                raise NonMonotonicInput(
                    f"anchor {current.instant.isoformat()} precedes {previous.instant.isoformat()}"
                )

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[AnchorPoint]:
        return iter(self.points)

    def xs(self) -> np.ndarray:
        return np.array([point.x for point in self.points], dtype=float)

    def ys(self) -> np.ndarray:
        return np.array([point.y for point in self.points], dtype=float)


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of converting one civil instant to solar clock time."""

    input_utc: datetime
    solar_instant: datetime
    solar_local: datetime
    formatted: str
    delta_applied: timedelta
    extrapolated: bool = False

    @property
    def delta_seconds(self) -> float:
        return self.delta_applied.total_seconds()
