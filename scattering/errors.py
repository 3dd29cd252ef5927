"""Exceptions raised by the :mod:`scattering` package."""
from __future__ import annotations


class ScatteringError(Exception):
    """Base exception for interaction finding errors."""


class ConfigurationError(ScatteringError, ValueError):
    """Invalid collision-term configuration or channel table."""


class ProbabilityOverflowError(ScatteringError, RuntimeError):
    """An acceptance probability exceeded one: the timestep is too large."""


class UnknownParticleError(ScatteringError, LookupError):
    """A particle name or PDG code is not present in the type registry."""


__all__ = [
    "ScatteringError",
    "ConfigurationError",
    "ProbabilityOverflowError",
    "UnknownParticleError",
]
