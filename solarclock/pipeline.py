"""Civil date-time to solar clock conversion."""

from __future__ import annotations

import json
import logging
import warnings
from datetime import UTC, date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from joblib import Parallel, cpu_count, delayed

from .anchors import build_anchors, window_for
from .cache import ModelCache
from .constants import DEFAULT_WINDOW_RADIUS_DAYS, MAX_WINDOW_RADIUS_DAYS, OUTPUT_FORMAT
from .domain import ConversionResult, GeoCoordinate, SolarReferenceConfig, to_timestamp
from .errors import DegradedExtrapolation
from .interpolation import InterpolationModel, build_model, evaluate

__all__ = ["SolarClock", "convert", "shared_cache", "to_utc"]

LOGGER = logging.getLogger(__name__)

_SHARED_CACHE: ModelCache[InterpolationModel] = ModelCache()


def shared_cache() -> ModelCache[InterpolationModel]:
    """Process-wide model cache used when no cache is passed explicitly."""
    return _SHARED_CACHE


def to_utc(civil_datetime: datetime) -> datetime:
    if civil_datetime.tzinfo is None or civil_datetime.utcoffset() is None:
        raise ValueError("datetime must be timezone-aware")
    return civil_datetime.astimezone(UTC)


def _effective_jobs(n_jobs: Optional[int], n_tasks: int) -> int:
    # joblib semantics: None means every CPU, -1 every CPU, -2 all but one.
    if n_jobs == 0:
        raise ValueError("n_jobs == 0 has no meaning")
    if n_jobs is None:
        n_jobs = cpu_count()
    elif n_jobs < 0:
        n_jobs = max(cpu_count() + 1 + n_jobs, 1)
    return max(1, min(n_jobs, n_tasks))


def _interior(model: InterpolationModel, t: float) -> bool:
    # Both knots of the enclosing interval have a neighbour on each side, so
    # their slopes do not depend on where the window ends.
    index = model.interval(t)
    return 1 <= index <= len(model) - 3


class SolarClock:
    """Converter bound to one observer position and reference configuration.

    Parameters
    ----------
    coordinate:
        Observer position.
    config:
        Reference offset and target clock hours.
    cache:
        Model cache; the shared process-wide cache when omitted.
    window_radius:
        Days on each side of the query date used for anchors.
    max_window_radius:
        Largest radius the window is widened to when the query interval
        touches an end knot.  Equal to ``window_radius`` disables widening.
    """

    def __init__(
        self,
        coordinate: GeoCoordinate,
        config: SolarReferenceConfig,
        cache: Optional[ModelCache[InterpolationModel]] = None,
        window_radius: int = DEFAULT_WINDOW_RADIUS_DAYS,
        max_window_radius: Optional[int] = None,
    ):
        if window_radius < 1:
            raise ValueError(f"window radius must be at least 1 day: {window_radius}")
        if max_window_radius is None:
            max_window_radius = max(window_radius, MAX_WINDOW_RADIUS_DAYS)
        if max_window_radius < window_radius:
            raise ValueError(
                f"max window radius {max_window_radius} is below window radius {window_radius}"
            )
        self.coordinate = coordinate
        self.config = config
        self.cache = cache if cache is not None else _SHARED_CACHE
        self.window_radius = window_radius
        self.max_window_radius = max_window_radius

    def _build(self, window: Tuple[date, ...]) -> InterpolationModel:
        anchors = build_anchors(window, self.coordinate, self.config)
        model = build_model(anchors)
        LOGGER.debug(
            json.dumps(
                {
                    "event": "model_built",
                    "window": [day.isoformat() for day in window],
                    "anchors": len(anchors),
                }
            )
        )
        return model

    def _window_model(self, window: Tuple[date, ...]) -> InterpolationModel:
        key = (window, self.coordinate, self.config)
        return self.cache.get_or_build(key, lambda: self._build(window))

    def model_for(self, instant: datetime) -> InterpolationModel:
        """Return the (cached) correction model used for *instant*.

        The window starts at ``window_radius`` days around the UTC date of
        *instant* and grows one day at a time, up to ``max_window_radius``,
        until the interval holding *instant* lies between interior knots.
        """
        t = to_timestamp(to_utc(instant))
        radius = self.window_radius
        while True:
            model = self._window_model(window_for(instant, radius))
            if radius >= self.max_window_radius or _interior(model, t):
                return model
            radius += 1

    def convert(self, civil_datetime: datetime) -> ConversionResult:
        """Convert an offset-aware civil date-time to solar clock time.

        Raises
        ------
        ValueError
            If the datetime is naive.
        InsufficientAnchors
            If the window holds fewer than two events.
        """
        instant = to_utc(civil_datetime)
        model = self.model_for(instant)
        t = to_timestamp(instant)

        delta_seconds = evaluate(model, t)
        extrapolated = not model.covers(t)
        if extrapolated:
            low, high = model.domain
            LOGGER.warning(
                json.dumps(
                    {
                        "event": "degraded_extrapolation",
                        "instant": instant.isoformat(),
                        "window_start": datetime.fromtimestamp(low, UTC).isoformat(),
                        "window_end": datetime.fromtimestamp(high, UTC).isoformat(),
                    }
                )
            )
            warnings.warn(
                DegradedExtrapolation(
                    f"{instant.isoformat()} lies outside the anchor window; "
                    "extrapolating linearly"
                ),
                stacklevel=2,
            )

        delta = timedelta(seconds=delta_seconds)
        solar_instant = instant + delta
        solar_local = solar_instant.astimezone(self.config.tz)
        return ConversionResult(
            input_utc=instant,
            solar_instant=solar_instant,
            solar_local=solar_local,
            formatted=solar_local.strftime(OUTPUT_FORMAT),
            delta_applied=delta,
            extrapolated=extrapolated,
        )

    def _convert_group(
        self, instants: Sequence[datetime], indices: Sequence[int]
    ) -> List[ConversionResult]:
        return [self.convert(instants[index]) for index in indices]

    def convert_many(
        self, civil_datetimes: Iterable[datetime], n_jobs: Optional[int] = None
    ) -> List[ConversionResult]:
        """Convert many instants, one task per date window.

        Results keep the input order.  Windows are converted in parallel
        threads so they share this converter's model cache.  ``n_jobs``
        follows joblib: ``None`` or ``-1`` uses every CPU.
        """
        instants = [to_utc(value) for value in civil_datetimes]
        groups: Dict[Tuple[date, ...], List[int]] = {}
        for index, instant in enumerate(instants):
            groups.setdefault(window_for(instant, self.window_radius), []).append(index)
        tasks = list(groups.values())
        if not tasks:
            return []

        n_jobs = _effective_jobs(n_jobs, len(tasks))
        if n_jobs == 1:
            chunks = [self._convert_group(instants, indices) for indices in tasks]
        else:
            chunks = Parallel(n_jobs=n_jobs, prefer="threads")(
                delayed(self._convert_group)(instants, indices) for indices in tasks
            )

        results: List[Optional[ConversionResult]] = [None] * len(instants)
        for indices, chunk in zip(tasks, chunks):
            for index, result in zip(indices, chunk):
                results[index] = result
        return results  # type: ignore[return-value]

    def __repr__(self) -> str:
        return (
            f"SolarClock(lat={self.coordinate.latitude}, lon={self.coordinate.longitude}, "
            f"offset={self.config.reference_offset})"
        )


def convert(
    civil_datetime: datetime,
    coordinate: GeoCoordinate,
    config: SolarReferenceConfig,
    cache: Optional[ModelCache[InterpolationModel]] = None,
) -> ConversionResult:
    """Convert *civil_datetime* to solar clock time for *coordinate* and *config*."""

    return SolarClock(coordinate, config, cache=cache).convert(civil_datetime)
