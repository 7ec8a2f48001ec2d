"""
Exception hierarchy for the MCMC posterior model.

All errors raised by the posterior layer derive from PosteriorModelError so
that the optimization driver can catch them with a single clause.
"""

from typing import Optional


class PosteriorModelError(Exception):
    """Base class for posterior model errors."""


class ConfigurationError(PosteriorModelError):
    """Invalid construction-time configuration (particle count, unknown kinds)."""


class SamplingError(PosteriorModelError):
    """The sampler could not produce the requested hyperparameter samples."""


class ModelFitError(PosteriorModelError):
    """
    A surrogate model failed to fit or update.

    Attributes:
        particle_index: Index of the failing particle, if raised by an ensemble
    """

    def __init__(self, message: str, particle_index: Optional[int] = None):
        super().__init__(message)
        self.particle_index = particle_index


class RotationInconsistencyError(PosteriorModelError):
    """Particles disagree on whether the criteria rotation cycled."""
