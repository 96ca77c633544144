from __future__ import annotations

import warnings
from datetime import UTC, date, datetime, time, timedelta, timezone

import pytest

from solarclock import (
    DegradedExtrapolation,
    GeoCoordinate,
    ModelCache,
    SolarClock,
    SolarReferenceConfig,
    compute_events,
    convert,
    evaluate,
    shared_cache,
    window_for,
)
from solarclock.domain import to_timestamp
from solarclock.pipeline import _effective_jobs

BERLIN = GeoCoordinate(latitude=52.52, longitude=13.405)
ALICANTE = GeoCoordinate(latitude=38.34599467937726, longitude=-0.49068757240971655)
CONFIG = SolarReferenceConfig(
    reference_offset=timedelta(hours=1),
    target_sunrise=time(8, 0),
    target_noon=time(14, 0),
    target_sunset=time(20, 0),
)
CET = timezone(timedelta(hours=1))
CEST = timezone(timedelta(hours=2))


def _clock(coordinate: GeoCoordinate = BERLIN, **kwargs) -> SolarClock:
    return SolarClock(coordinate, CONFIG, cache=ModelCache(), **kwargs)


def assert_near_time(dt: datetime, expected: datetime, tolerance: float = 2.0) -> None:
    diff = abs((dt - expected).total_seconds())
    assert diff <= tolerance, f"{dt} is too far from expected {expected} (diff {diff}s)"


def test_berlin_solstice_sunrise_lands_on_target():
    real = compute_events(date(2024, 6, 21), BERLIN)
    result = convert(real.sunrise, BERLIN, CONFIG, cache=ModelCache())
    assert result.delta_applied > timedelta(hours=4)
    assert_near_time(result.solar_local, datetime(2024, 6, 21, 8, 0, tzinfo=CET), 1.0)
    assert result.solar_local.utcoffset() == timedelta(hours=1)
    assert result.formatted.startswith("2024-06-21 08:00:00") or result.formatted.startswith(
        "2024-06-21 07:59:59"
    )
    assert result.formatted.endswith("+0100")
    assert not result.extrapolated


@pytest.mark.parametrize(
    "civil, expected",
    [
        (datetime(2026, 2, 3, 8, 6, 6, tzinfo=CET), time(8, 0)),
        (datetime(2026, 2, 3, 13, 15, 43, tzinfo=CET), time(14, 0)),
        (datetime(2026, 2, 3, 18, 25, 19, tzinfo=CET), time(20, 0)),
    ],
)
def test_fixed_reference_date(civil: datetime, expected: time):
    # Inputs are truncated to whole seconds, hence the tolerance.
    result = _clock(ALICANTE).convert(civil)
    assert_near_time(result.solar_local, datetime.combine(date(2026, 2, 3), expected, CET))


def test_every_event_maps_to_its_target():
    clock = _clock()
    day = date(2024, 10, 5)
    real = compute_events(day, BERLIN)
    for kind, instant in real.present():
        result = clock.convert(instant)
        target = datetime.combine(day, CONFIG.target_for(kind), CET)
        assert_near_time(result.solar_instant, target, 1e-3)


def test_dst_invariance():
    # 02:00 +01:00 and 03:00 +02:00 are the same instant on the spring-forward night.
    clock = _clock(ALICANTE)
    before_jump = clock.convert(datetime(2026, 3, 29, 2, 0, 0, tzinfo=CET))
    after_jump = clock.convert(datetime(2026, 3, 29, 3, 0, 0, tzinfo=CEST))
    assert before_jump == after_jump


def test_continuity_across_utc_midnight():
    clock = _clock()
    before = clock.convert(datetime(2024, 3, 10, 23, 59, 59, 500000, tzinfo=UTC))
    after = clock.convert(datetime(2024, 3, 11, 0, 0, 0, 500000, tzinfo=UTC))
    assert abs(after.delta_seconds - before.delta_seconds) < 1.0
    gap = after.solar_instant - before.solar_instant
    assert timedelta(seconds=0.5) < gap <= timedelta(seconds=1)


@pytest.mark.parametrize(
    "coordinate, day",
    [
        (GeoCoordinate(latitude=-18.14, longitude=178.44), date(2024, 11, 4)),
        (GeoCoordinate(latitude=8.52, longitude=179.2), date(2024, 11, 4)),
        (GeoCoordinate(latitude=-18.14, longitude=-179.9), date(2024, 2, 12)),
        (GeoCoordinate(latitude=80.0, longitude=180.0), date(2024, 11, 4)),
    ],
)
def test_continuity_across_utc_midnight_near_date_line(coordinate: GeoCoordinate, day: date):
    # Next-day noon (east) or previous-day noon (west) crosses UTC midnight here.
    clock = _clock(coordinate)
    midnight = datetime.combine(day, time(0, 0), UTC)
    before = clock.convert(midnight - timedelta(microseconds=1))
    after = clock.convert(midnight)
    assert abs(after.delta_seconds - before.delta_seconds) < 1e-3
    assert not before.extrapolated and not after.extrapolated


def test_adjacent_windows_agree_at_midnight():
    clock = _clock()
    midnight = datetime(2024, 3, 11, 0, 0, tzinfo=UTC)
    earlier = clock.model_for(midnight - timedelta(microseconds=1))
    later = clock.model_for(midnight)
    assert earlier is not later
    t = to_timestamp(midnight)
    assert evaluate(earlier, t) == pytest.approx(evaluate(later, t), abs=1e-6)


def test_wider_window_matches_default_inside_the_day():
    instant = datetime(2024, 8, 1, 15, 30, tzinfo=UTC)
    narrow = _clock().convert(instant)
    wide = _clock(window_radius=3).convert(instant)
    assert narrow.delta_seconds == pytest.approx(wide.delta_seconds, abs=1e-6)


def test_solar_time_increases_through_the_day():
    clock = _clock()
    start = datetime(2024, 12, 1, tzinfo=UTC)
    results = [clock.convert(start + timedelta(minutes=20 * step)) for step in range(3 * 72)]
    instants = [result.solar_instant for result in results]
    assert all(b > a for a, b in zip(instants, instants[1:]))


def test_polar_day_uses_noon_anchors():
    svalbard = GeoCoordinate(latitude=78.2232, longitude=15.6469)
    real = compute_events(date(2025, 6, 21), svalbard)
    assert real.sunrise is None
    result = _clock(svalbard).convert(real.noon)
    assert_near_time(result.solar_local, datetime(2025, 6, 21, 14, 0, tzinfo=CET), 1e-3)


def test_outside_window_is_extrapolated_with_warning():
    # Polar night at the date line: the next day's noon falls before 23:59 UTC.
    coordinate = GeoCoordinate(latitude=80.0, longitude=180.0)
    clock = _clock(coordinate, max_window_radius=1)
    with pytest.warns(DegradedExtrapolation):
        result = clock.convert(datetime(2024, 11, 3, 23, 59, tzinfo=UTC))
    assert result.extrapolated


def test_window_widens_instead_of_extrapolating():
    coordinate = GeoCoordinate(latitude=80.0, longitude=180.0)
    instant = datetime(2024, 11, 3, 23, 59, tzinfo=UTC)
    with warnings.catch_warnings():
        warnings.simplefilter("error", DegradedExtrapolation)
        result = _clock(coordinate).convert(instant)
    assert not result.extrapolated
    fixed = _clock(coordinate, window_radius=3, max_window_radius=3).convert(instant)
    assert result.delta_seconds == pytest.approx(fixed.delta_seconds, abs=1e-6)


def test_inside_window_does_not_warn():
    clock = _clock()
    with warnings.catch_warnings():
        warnings.simplefilter("error", DegradedExtrapolation)
        result = clock.convert(datetime(2024, 11, 3, 23, 59, tzinfo=UTC))
    assert not result.extrapolated


def test_naive_datetime_rejected():
    with pytest.raises(ValueError):
        _clock().convert(datetime(2024, 6, 21, 12, 0))


def test_model_cache_reused_within_window():
    cache = ModelCache(maxsize=4)
    clock = SolarClock(BERLIN, CONFIG, cache=cache)
    clock.convert(datetime(2024, 6, 21, 6, 0, tzinfo=UTC))
    clock.convert(datetime(2024, 6, 21, 18, 0, tzinfo=UTC))
    assert cache.stats() == {"size": 1, "capacity": 4, "hits": 1, "misses": 1}
    clock.convert(datetime(2024, 6, 22, 6, 0, tzinfo=UTC))
    assert len(cache) == 2


def test_model_cache_evicts_least_recently_used():
    cache = ModelCache(maxsize=2)
    cache.put("a", 1)
    cache.put("b", 2)
    assert cache.get("a") == 1
    cache.put("c", 3)
    assert "a" in cache and "c" in cache
    assert "b" not in cache
    assert cache.get_or_build("d", lambda: 4) == 4
    assert len(cache) == 2
    with pytest.raises(ValueError):
        ModelCache(maxsize=0)


def test_free_function_matches_clock():
    instant = datetime(2024, 4, 2, 9, 15, tzinfo=CEST)
    assert convert(instant, BERLIN, CONFIG) == _clock().convert(instant)


def test_free_function_uses_shared_cache():
    cache = shared_cache()
    cache.clear()
    instant = datetime(2024, 4, 2, 9, 15, tzinfo=CEST)
    convert(instant, BERLIN, CONFIG)
    key = (window_for(instant), BERLIN, CONFIG)
    assert key in cache
    convert(instant, BERLIN, CONFIG)
    assert cache.stats()["hits"] == 1


@pytest.mark.parametrize("n_jobs", [1, 2])
def test_convert_many_keeps_input_order(n_jobs: int):
    clock = _clock()
    start = datetime(2024, 5, 1, 3, 0, tzinfo=UTC)
    instants = [start + timedelta(hours=13 * step) for step in range(12)][::-1]
    results = clock.convert_many(instants, n_jobs=n_jobs)
    assert [result.input_utc for result in results] == instants
    assert results == [clock.convert(instant) for instant in instants]
    assert clock.convert_many([]) == []


@pytest.mark.parametrize(
    "n_jobs, n_tasks, expected",
    [(None, 10, 4), (-1, 10, 4), (-2, 10, 3), (-8, 10, 1), (2, 10, 2), (8, 3, 3), (-1, 1, 1)],
)
def test_n_jobs_follows_joblib(monkeypatch: pytest.MonkeyPatch, n_jobs, n_tasks, expected):
    monkeypatch.setattr("solarclock.pipeline.cpu_count", lambda: 4)
    assert _effective_jobs(n_jobs, n_tasks) == expected


def test_n_jobs_zero_rejected():
    with pytest.raises(ValueError):
        _clock().convert_many([datetime(2024, 5, 1, tzinfo=UTC)], n_jobs=0)


def test_invalid_window_radius():
    with pytest.raises(ValueError):
        SolarClock(BERLIN, CONFIG, window_radius=0)
    with pytest.raises(ValueError):
        SolarClock(BERLIN, CONFIG, window_radius=3, max_window_radius=2)
