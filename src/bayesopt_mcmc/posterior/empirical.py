"""
Empirical Bayes posterior model.

The single point-estimate alternative to MCMCModel: one surrogate whose
hyperparameters are set to the maximum a posteriori estimate, and one
criteria bound to it.
"""

import logging
from typing import Optional, Tuple

import numpy as np
from scipy.optimize import minimize

from bayesopt_mcmc.core.base import PosteriorModel
from bayesopt_mcmc.core.config import MCMCSettings
from bayesopt_mcmc.core.dataset import Dataset
from bayesopt_mcmc.core.exceptions import ConfigurationError
from bayesopt_mcmc.core.types import ModelPrediction
from bayesopt_mcmc.criteria import create_criteria
from bayesopt_mcmc.models import create_surrogate

logger = logging.getLogger(__name__)


class EmpiricalBayesModel(PosteriorModel):
    """
    Posterior model with MAP hyperparameters.

    Hyperparameters are learned at construction and whenever
    update_hyperparameters() is called; fitting reuses the current estimate.
    """

    def __init__(
        self,
        dimension: int,
        settings: Optional[MCMCSettings] = None,
        rng: Optional[np.random.Generator] = None,
        dataset: Optional[Dataset] = None,
    ):
        settings = settings if settings is not None else MCMCSettings()
        if dimension < 1:
            raise ConfigurationError(f"dimension must be positive, got {dimension}")
        super().__init__(dimension, settings, dataset)
        self.rng = rng if rng is not None else np.random.default_rng(settings.random_seed)

        self.surrogate = create_surrogate(settings.surrogate, self.dataset, settings)
        self.criteria = create_criteria(settings.criteria, self.surrogate, settings, self.rng)
        self.update_hyperparameters()

    @property
    def n_particles(self) -> int:
        return 1

    def update_hyperparameters(self) -> np.ndarray:
        """
        Set the surrogate hyperparameters to the MAP estimate.

        With no observations the prior mean is used. If the optimizer does
        not reach a finite optimum the previous hyperparameters are kept.
        """
        if self.dataset.n_samples == 0:
            self.surrogate.configure(self.surrogate.default_hyperparameters())
            return self.surrogate.hyperparameters

        def objective(theta):
            value = -self.surrogate.log_posterior(theta)
            return value if np.isfinite(value) else 1e300

        result = minimize(
            objective,
            self.surrogate.hyperparameters,
            method="L-BFGS-B",
        )
        if np.all(np.isfinite(result.x)) and np.isfinite(result.fun) and result.fun < 1e300:
            self.surrogate.configure(result.x)
            logger.info(f"MAP hyperparameters {result.x} (neg. log posterior {result.fun:.4f})")
        else:
            logger.warning(f"Hyperparameter optimization failed: {result.message}")
        return self.surrogate.hyperparameters

    def fit_surrogate_model(self) -> None:
        self.surrogate.fit()

    def update_surrogate_model(self) -> None:
        self.surrogate.update()

    def evaluate_criteria(self, query: np.ndarray) -> float:
        return self.criteria.evaluate(query)

    def update_criteria(self, query: np.ndarray) -> None:
        self.criteria.update(query)

    def criteria_requires_comparison(self) -> bool:
        return self.criteria.requires_comparison()

    def set_first_criterium(self) -> None:
        self.criteria.initialize_rotation()

    def set_next_criterium(self, previous_result: np.ndarray) -> bool:
        self.criteria.push_result(previous_result)
        return self.criteria.rotate()

    def get_best_criteria(self) -> Tuple[np.ndarray, str]:
        return self.criteria.best_known()

    def get_prediction(self, query: np.ndarray) -> ModelPrediction:
        return self.surrogate.predict(query)
