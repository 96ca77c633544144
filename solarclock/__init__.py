"""Solar clock: civil time re-aligned so solar events fall on fixed clock hours."""

from .anchors import build_anchors, window_dates, window_for
from .astro import compute_events
from .cache import ModelCache
from .constants import TWILIGHT_ANGLES
from .domain import (
    AnchorPoint,
    AnchorSet,
    ConversionResult,
    EventKind,
    GeoCoordinate,
    SolarEventSet,
    SolarReferenceConfig,
)
from .errors import (
    DegenerateAnchorSet,
    DegradedExtrapolation,
    InsufficientAnchors,
    InvalidConfig,
    InvalidCoordinate,
    NonMonotonicInput,
    SolarClockError,
)
from .interpolation import InterpolationModel, build_model, evaluate, fit_pchip
from .pipeline import SolarClock, convert, shared_cache
from .targets import compute_targets

__all__ = [
    "AnchorPoint",
    "AnchorSet",
    "ConversionResult",
    "DegenerateAnchorSet",
    "DegradedExtrapolation",
    "EventKind",
    "GeoCoordinate",
    "InsufficientAnchors",
    "InterpolationModel",
    "InvalidConfig",
    "InvalidCoordinate",
    "ModelCache",
    "NonMonotonicInput",
    "SolarClock",
    "SolarClockError",
    "SolarEventSet",
    "SolarReferenceConfig",
    "TWILIGHT_ANGLES",
    "build_anchors",
    "build_model",
    "compute_events",
    "compute_targets",
    "convert",
    "evaluate",
    "fit_pchip",
    "shared_cache",
    "window_dates",
    "window_for",
]
