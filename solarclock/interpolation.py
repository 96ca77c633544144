"""Shape-preserving piecewise cubic Hermite interpolation (PCHIP).

Knot derivatives follow Fritsch-Carlson with the Fritsch-Butland weighted
harmonic mean: zero at local extrema, otherwise a harmonic mean of the two
adjacent secants weighted by the interval lengths.  End knots use a
one-sided three-point estimate clipped so it never points against the
first/last secant.  On every interval the curve stays monotone and inside
the range of its two endpoint values.

Outside the knot range the curve continues linearly with the end slope.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union

import numpy as np

from .domain import AnchorSet
from .errors import InsufficientAnchors, NonMonotonicInput

ArrayLike = Union[float, np.ndarray, list, tuple]


@dataclass(frozen=True, eq=False)
class InterpolationModel:
    """Knots, values and derivative estimates of a fitted PCHIP curve."""

    x: np.ndarray
    y: np.ndarray
    slopes: np.ndarray

    @property
    def domain(self) -> Tuple[float, float]:
        return float(self.x[0]), float(self.x[-1])

    def covers(self, x: float) -> bool:
        low, high = self.domain
        return low <= x <= high

    def interval(self, x: float) -> int:
        """Index of the knot interval holding *x*; -1 below the first knot."""
        return int(np.searchsorted(self.x, x, side="right")) - 1

    def __len__(self) -> int:
        return int(self.x.size)

    def __call__(self, x: ArrayLike):
        return evaluate(self, x)


def _edge_slope(h0: float, h1: float, m0: float, m1: float) -> float:
    slope = ((2.0 * h0 + h1) * m0 - h0 * m1) / (h0 + h1)
    if np.sign(slope) != np.sign(m0):
        return 0.0
    if np.sign(m0) != np.sign(m1) and abs(slope) > 3.0 * abs(m0):
        return 3.0 * m0
    return float(slope)


def _pchip_slopes(h: np.ndarray, secants: np.ndarray) -> np.ndarray:
    slopes = np.zeros(secants.size + 1, dtype=float)
    if secants.size == 1:
        slopes[:] = secants[0]
        return slopes

    w1 = 2.0 * h[1:] + h[:-1]
    w2 = h[1:] + 2.0 * h[:-1]
    same_sign = np.sign(secants[:-1]) * np.sign(secants[1:]) > 0
    with np.errstate(divide="ignore", invalid="ignore"):
        harmonic = (w1 + w2) / (w1 / secants[:-1] + w2 / secants[1:])
    slopes[1:-1] = np.where(same_sign, harmonic, 0.0)

    slopes[0] = _edge_slope(h[0], h[1], secants[0], secants[1])
    slopes[-1] = _edge_slope(h[-1], h[-2], secants[-1], secants[-2])
    return slopes


def _frozen(values: np.ndarray) -> np.ndarray:
    values.setflags(write=False)
    return values


def fit_pchip(x: ArrayLike, y: ArrayLike) -> InterpolationModel:
    """Fit a monotone cubic interpolant through ``(x, y)``.

    Raises
    ------
    InsufficientAnchors
        Fewer than two knots.
    NonMonotonicInput
        ``x`` is not strictly increasing.
    """

    xs = np.array(x, dtype=float).ravel()
    ys = np.array(y, dtype=float).ravel()
    if xs.shape != ys.shape:
        raise ValueError(f"x and y must have the same length: {xs.size} != {ys.size}")
    if xs.size < 2:
        raise InsufficientAnchors(f"at least 2 anchors are required, got {xs.size}")
    if not (np.all(np.isfinite(xs)) and np.all(np.isfinite(ys))):
        raise ValueError("knots and values must be finite")

    h = np.diff(xs)
    if np.any(h <= 0):
        position = int(np.argmax(h <= 0))
        raise NonMonotonicInput(
            f"x must be strictly increasing: x[{position + 1}]={xs[position + 1]!r} "
            f"<= x[{position}]={xs[position]!r}"
        )

    secants = np.diff(ys) / h
    slopes = _pchip_slopes(h, secants)
    return InterpolationModel(x=_frozen(xs), y=_frozen(ys), slopes=_frozen(slopes))


def build_model(anchors: AnchorSet) -> InterpolationModel:
    """Fit the correction curve delta(real instant) through an anchor set."""

    return fit_pchip(anchors.xs(), anchors.ys())


def evaluate(model: InterpolationModel, x: ArrayLike):
    """Evaluate *model* at *x* (scalar or array).

    Returns a float for scalar input and an array otherwise.
    """

    q = np.asarray(x, dtype=float)
    xs, ys, ds = model.x, model.y, model.slopes

    idx = np.clip(np.searchsorted(xs, q, side="right") - 1, 0, xs.size - 2)
    x0 = xs[idx]
    h = xs[idx + 1] - x0
    t = (q - x0) / h
    t2 = t * t
    t3 = t2 * t
    inside = (
        ys[idx] * (2.0 * t3 - 3.0 * t2 + 1.0)
        + h * ds[idx] * (t3 - 2.0 * t2 + t)
        + ys[idx + 1] * (-2.0 * t3 + 3.0 * t2)
        + h * ds[idx + 1] * (t3 - t2)
    )
    below = ys[0] + ds[0] * (q - xs[0])
    above = ys[-1] + ds[-1] * (q - xs[-1])
    result = np.where(q < xs[0], below, np.where(q > xs[-1], above, inside))
    if result.ndim == 0:
        return float(result)
    return result
