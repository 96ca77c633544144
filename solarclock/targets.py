"""Target instants: where each solar event should land on the reference clock."""

from __future__ import annotations

from datetime import UTC, date, datetime

from .domain import EventKind, SolarEventSet, SolarReferenceConfig


def target_instant(day: date, kind: EventKind, config: SolarReferenceConfig) -> datetime:
    """UTC instant of *kind*'s target clock time on *day* in the reference offset."""

    local = datetime.combine(day, config.target_for(kind), tzinfo=config.tz)
    return local.astimezone(UTC)


def compute_targets(day: date, config: SolarReferenceConfig) -> SolarEventSet:
    """Target sunrise, noon and sunset for *day*.

    The reference offset is fixed, so every target exists on every day.
    """

    return SolarEventSet(
        day=day,
        sunrise=target_instant(day, EventKind.sunrise, config),
        noon=target_instant(day, EventKind.noon, config),
        sunset=target_instant(day, EventKind.sunset, config),
    )
