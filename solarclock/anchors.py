"""Anchor construction over a window of consecutive UTC days."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from typing import Iterable, List, Tuple

from .astro import compute_events
from .constants import DEFAULT_WINDOW_RADIUS_DAYS
from .domain import AnchorPoint, AnchorSet, GeoCoordinate, SolarReferenceConfig
from .targets import compute_targets


def window_dates(center: date, radius: int = DEFAULT_WINDOW_RADIUS_DAYS) -> Tuple[date, ...]:
    """Return ``center - radius`` .. ``center + radius`` inclusive."""

    if radius < 1:
        raise ValueError(f"window radius must be at least 1 day: {radius}")
    return tuple(center + timedelta(days=offset) for offset in range(-radius, radius + 1))


def window_for(instant: datetime, radius: int = DEFAULT_WINDOW_RADIUS_DAYS) -> Tuple[date, ...]:
    """Window of UTC dates centred on the UTC date of *instant*."""

    if instant.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    return window_dates(instant.astimezone(UTC).date(), radius)


def build_anchors(
    dates: Iterable[date],
    coordinate: GeoCoordinate,
    config: SolarReferenceConfig,
) -> AnchorSet:
    """Pair each real event with its target and order the anchors by real instant.

    Events that do not occur (polar day/night) contribute no anchor.  Two
    anchors at the same instant raise :class:`DegenerateAnchorSet`.
    """

    days = tuple(sorted(set(dates)))
    points: List[AnchorPoint] = []
    for day in days:
        real = compute_events(day, coordinate, config.twilight)
        targets = compute_targets(day, config)
        for kind, instant in real.present():
            target = targets.get(kind)
            points.append(AnchorPoint(instant=instant, delta=target - instant, kind=kind))

    points.sort(key=lambda point: point.instant)
    return AnchorSet(points=tuple(points), days=days)
