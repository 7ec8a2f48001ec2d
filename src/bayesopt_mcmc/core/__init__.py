"""
Core module for the MCMC posterior model.

This module contains the fundamental classes and interfaces shared by the
posterior layer and its collaborators.

Components:
- config: Settings management
- types: Enums, prediction records and the particle record
- dataset: Observation store shared by surrogates
- base: Abstract collaborator contracts and the PosteriorModel facade
- exceptions: Error taxonomy
"""

from bayesopt_mcmc.core.base import (
    BaseCriteria,
    BaseSampler,
    BaseSurrogateModel,
    PosteriorModel,
)
from bayesopt_mcmc.core.config import LearningType, MCMCSettings
from bayesopt_mcmc.core.dataset import Dataset
from bayesopt_mcmc.core.exceptions import (
    ConfigurationError,
    ModelFitError,
    PosteriorModelError,
    RotationInconsistencyError,
    SamplingError,
)
from bayesopt_mcmc.core.types import (
    CriteriaType,
    KernelType,
    ModelPrediction,
    ModelType,
    Particle,
)

__all__ = [
    "BaseCriteria",
    "BaseSampler",
    "BaseSurrogateModel",
    "PosteriorModel",
    "LearningType",
    "MCMCSettings",
    "Dataset",
    "ConfigurationError",
    "ModelFitError",
    "PosteriorModelError",
    "RotationInconsistencyError",
    "SamplingError",
    "CriteriaType",
    "KernelType",
    "ModelPrediction",
    "ModelType",
    "Particle",
]
