"""
errors.py
=========
Exception hierarchy for the Panchangam engine.

A degenerate sunrise/sunset (polar day or night) is *not* an error; it is
returned as ``sunriseset.NoEvent``.
"""

from typing import Optional


class PanchangamError(Exception):
    """Base class for every error raised by the engine."""


class InvalidInput(PanchangamError, ValueError):
    """Out-of-range latitude, longitude, index or option. Raised before any computation."""


class UnresolvedBoundary(PanchangamError):
    """A boundary search could not bracket a root inside its safety window."""

    def __init__(self, message: str, target: Optional[float] = None,
                 guess: Optional[float] = None):
        super().__init__(message)
        self.target = target
        self.guess = guess


class SanityViolation(PanchangamError):
    """An anga segment with an implausible duration (upstream ephemeris failure)."""

    def __init__(self, message: str, duration_days: Optional[float] = None):
        super().__init__(message)
        self.duration_days = duration_days
