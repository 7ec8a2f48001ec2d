"""
Base classes and abstract interfaces for the MCMC posterior model.

This module defines the abstract base classes that establish the interface
contracts between the posterior layer and its collaborators: surrogate
models, criteria (acquisition functions) and hyperparameter samplers, plus
the PosteriorModel facade exposed to the optimization driver.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

import numpy as np

from bayesopt_mcmc.core.config import MCMCSettings
from bayesopt_mcmc.core.dataset import Dataset
from bayesopt_mcmc.core.types import ModelPrediction


class BaseSurrogateModel(ABC):
    """
    Abstract base class for surrogate models.

    A surrogate reads its observations from a borrowed Dataset and is
    configured with one hyperparameter vector at a time.
    """

    def __init__(self, dataset: Dataset, settings: MCMCSettings):
        """Initialize the surrogate model."""
        self.dataset = dataset
        self.settings = settings
        self.hyperparameters = self.default_hyperparameters()
        self.is_fitted = False

    @property
    def dimension(self) -> int:
        return self.dataset.dimension

    @property
    @abstractmethod
    def n_hyperparameters(self) -> int:
        """Length of the hyperparameter vector."""

    @abstractmethod
    def default_hyperparameters(self) -> np.ndarray:
        """Hyperparameters used before any sampling (the prior mean)."""

    def configure(self, hyperparameters: np.ndarray) -> None:
        """
        Set the hyperparameters used by subsequent fits.

        Args:
            hyperparameters: Vector of length n_hyperparameters

        Raises:
            ValueError: If the vector has the wrong length or non-finite values
        """
        theta = np.asarray(hyperparameters, dtype=float).ravel()
        if theta.shape[0] != self.n_hyperparameters:
            raise ValueError(
                f"Expected {self.n_hyperparameters} hyperparameters, got {theta.shape[0]}"
            )
        if not np.all(np.isfinite(theta)):
            raise ValueError("Hyperparameters must be finite")
        self.hyperparameters = theta.copy()
        self.is_fitted = False

    @abstractmethod
    def fit(self) -> None:
        """
        Fit the model from the full dataset.

        Raises:
            ModelFitError: On numerical failure
        """

    @abstractmethod
    def update(self) -> None:
        """
        Incorporate the dataset's latest observation.

        Raises:
            ModelFitError: On numerical failure
        """

    @abstractmethod
    def predict(self, query: np.ndarray) -> ModelPrediction:
        """Predictive distribution at a single query point."""

    @abstractmethod
    def log_marginal_likelihood(self, theta: np.ndarray) -> float:
        """Log evidence of the dataset under hyperparameters theta."""

    @abstractmethod
    def log_prior(self, theta: np.ndarray) -> float:
        """Log prior density of hyperparameters theta."""

    def log_posterior(self, theta: np.ndarray) -> float:
        """Unnormalized log posterior of the hyperparameters."""
        log_prior = self.log_prior(theta)
        if not np.isfinite(log_prior):
            return -np.inf
        return log_prior + self.log_marginal_likelihood(theta)


class BaseCriteria(ABC):
    """
    Abstract base class for criteria (acquisition functions).

    Criteria are bound to one surrogate model and return values where larger
    is better. Every criteria carries a rotation cursor over `cycle_length`
    positions; single criteria have a cycle of length one.
    """

    name: str = "criteria"

    def __init__(self, surrogate_model: BaseSurrogateModel, **kwargs):
        """Initialize the criteria."""
        self.surrogate_model = surrogate_model
        self.kwargs = kwargs
        self.queries: List[np.ndarray] = []
        self.results: List[np.ndarray] = []
        self.cursor: Optional[int] = None

    @property
    def cycle_length(self) -> int:
        return 1

    @abstractmethod
    def evaluate(self, query: np.ndarray) -> float:
        """Criteria value at a query point."""

    def update(self, query: np.ndarray) -> None:
        """Record that `query` was the point chosen this round."""
        self.queries.append(np.asarray(query, dtype=float).copy())

    def requires_comparison(self) -> bool:
        return False

    def _check_rotation(self) -> None:
        if self.cursor is None:
            raise RuntimeError("Criteria rotation not initialized; call initialize_rotation() first")

    def initialize_rotation(self) -> None:
        """Move the cursor to the first criterion of the rotation."""
        self.cursor = 0
        self.results = []

    def push_result(self, previous_result: np.ndarray) -> None:
        """Store the point found with the currently selected criterion."""
        self._check_rotation()
        self.results.append(np.asarray(previous_result, dtype=float).copy())

    def rotate(self) -> bool:
        """
        Advance the cursor.

        Returns:
            True iff the cursor cycled back to the first position
        """
        self._check_rotation()
        self.cursor = (self.cursor + 1) % self.cycle_length
        return self.cursor == 0

    def best_known(self) -> Tuple[np.ndarray, str]:
        """Best point found so far and the name of the criterion that found it."""
        if self.results:
            return self.results[-1].copy(), self.name
        return self.surrogate_model.dataset.min_point(), self.name


class BaseSampler(ABC):
    """Abstract base class for hyperparameter samplers."""

    @abstractmethod
    def draw_particles(self, count: int, rng: np.random.Generator) -> np.ndarray:
        """
        Draw hyperparameter samples.

        Args:
            count: Number of samples requested
            rng: Random number generator

        Returns:
            Array of shape (count, n_hyperparameters)

        Raises:
            SamplingError: If `count` valid samples cannot be produced
        """


class PosteriorModel(ABC):
    """
    Abstract posterior model exposed to the optimization driver.

    Owns the Dataset shared by its surrogates. The expected call sequence in
    one outer-loop iteration is: add_sample, fit_surrogate_model or
    update_surrogate_model, set_first_criterium, then evaluate_criteria and
    set_next_criterium until it reports a full rotation, get_best_criteria,
    and finally update_criteria with the chosen point. The model does not
    enforce this order.
    """

    def __init__(self, dimension: int, settings: MCMCSettings, dataset: Optional[Dataset] = None):
        self.dimension = dimension
        self.settings = settings
        self.dataset = dataset if dataset is not None else Dataset(dimension)

    def set_samples(self, X: np.ndarray, y: np.ndarray) -> None:
        self.dataset.set_samples(X, y)

    def add_sample(self, x: np.ndarray, y: float) -> None:
        self.dataset.add_sample(x, y)

    @abstractmethod
    def fit_surrogate_model(self) -> None:
        pass

    @abstractmethod
    def update_surrogate_model(self) -> None:
        pass

    @abstractmethod
    def evaluate_criteria(self, query: np.ndarray) -> float:
        pass

    @abstractmethod
    def update_criteria(self, query: np.ndarray) -> None:
        pass

    @abstractmethod
    def criteria_requires_comparison(self) -> bool:
        pass

    @abstractmethod
    def set_first_criterium(self) -> None:
        pass

    @abstractmethod
    def set_next_criterium(self, previous_result: np.ndarray) -> bool:
        pass

    @abstractmethod
    def get_best_criteria(self) -> Tuple[np.ndarray, str]:
        pass

    @abstractmethod
    def get_prediction(self, query: np.ndarray) -> ModelPrediction:
        pass
