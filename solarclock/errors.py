"""Exceptions raised by the solar clock core."""

from __future__ import annotations


class SolarClockError(Exception):
    """Base class for solar clock computation failures."""


class InvalidCoordinate(SolarClockError, ValueError):
    """Raised when latitude, longitude or elevation is out of range."""


class InvalidConfig(SolarClockError, ValueError):
    """Raised when a reference configuration is unusable."""


class InsufficientAnchors(SolarClockError):
    """Raised when fewer than two anchors are available to build a curve."""


class NonMonotonicInput(SolarClockError):
    """Raised when interpolation knots are not strictly increasing."""


class DegenerateAnchorSet(SolarClockError):
    """Raised when two anchors share the same instant."""


class DegradedExtrapolation(UserWarning):
    """Issued when a query falls outside the anchor window.

    The returned value is still defined (linear extrapolation), only its
    accuracy is reduced.
    """
