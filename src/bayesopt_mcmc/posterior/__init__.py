"""
Posterior models over surrogate hyperparameters.

Components:
- mcmc: Ensemble of MCMC particles with averaged criteria
- empirical: Single MAP point estimate
"""

from typing import Optional

import numpy as np

from bayesopt_mcmc.core.base import PosteriorModel
from bayesopt_mcmc.core.config import LearningType, MCMCSettings
from bayesopt_mcmc.core.dataset import Dataset
from bayesopt_mcmc.core.exceptions import ConfigurationError
from bayesopt_mcmc.posterior.empirical import EmpiricalBayesModel
from bayesopt_mcmc.posterior.mcmc import MCMCModel, build_particles


def create_posterior_model(
    dimension: int,
    settings: Optional[MCMCSettings] = None,
    rng: Optional[np.random.Generator] = None,
    dataset: Optional[Dataset] = None,
) -> PosteriorModel:
    """
    Create the posterior model selected by `settings.learning_type`.

    Raises:
        ConfigurationError: If the learning type is unknown
    """
    settings = settings if settings is not None else MCMCSettings()
    try:
        learning_type = LearningType(settings.learning_type)
    except ValueError:
        raise ConfigurationError(f"Unsupported learning type: {settings.learning_type}") from None

    if learning_type == LearningType.MCMC:
        return MCMCModel(dimension, settings, rng=rng, dataset=dataset)
    return EmpiricalBayesModel(dimension, settings, rng=rng, dataset=dataset)


__all__ = [
    "MCMCModel",
    "EmpiricalBayesModel",
    "build_particles",
    "create_posterior_model",
]
