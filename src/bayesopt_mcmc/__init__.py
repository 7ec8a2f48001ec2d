"""
bayesopt-mcmc: MCMC posterior models for Bayesian optimization

Replaces a single point-estimate surrogate with an ensemble of surrogates, one
per hyperparameter sample drawn by MCMC, and averages their criteria
(acquisition function) values into one decision signal.

Key Features:
- Slice sampling of Gaussian process kernel hyperparameters
- Fixed-size particle ensembles with lock-step fit, update and evaluation
- Ensemble-averaged Expected Improvement, LCB and PI criteria
- GP-Hedge criteria portfolios driven by a canonical particle
- Empirical Bayes (MAP) alternative with the same interface

Modules:
- core: Settings, base classes, types and errors
- models: Surrogate models (Gaussian process)
- criteria: Acquisition functions and the Hedge portfolio
- sampling: Hyperparameter samplers
- posterior: MCMC and empirical Bayes posterior models
- utils: Candidate designs
"""

__version__ = "0.1.0"

from bayesopt_mcmc.core.config import MCMCSettings
from bayesopt_mcmc.core.dataset import Dataset
from bayesopt_mcmc.core.exceptions import (
    ConfigurationError,
    ModelFitError,
    PosteriorModelError,
    RotationInconsistencyError,
    SamplingError,
)
from bayesopt_mcmc.posterior import (
    EmpiricalBayesModel,
    MCMCModel,
    create_posterior_model,
)

__all__ = [
    "__version__",
    "MCMCSettings",
    "Dataset",
    "ConfigurationError",
    "ModelFitError",
    "PosteriorModelError",
    "RotationInconsistencyError",
    "SamplingError",
    "EmpiricalBayesModel",
    "MCMCModel",
    "create_posterior_model",
]
