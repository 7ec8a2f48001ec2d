"""
Type definitions and data structures for the MCMC posterior model.

This module contains the enums, prediction records and the particle record
shared across the posterior layer.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional, Tuple

import numpy as np
from pydantic import BaseModel, ConfigDict, Field
from scipy.stats import norm

if TYPE_CHECKING:
    from bayesopt_mcmc.core.base import BaseCriteria, BaseSurrogateModel


class ModelType(str, Enum):
    """Available surrogate model types."""
    GAUSSIAN_PROCESS = "gaussian_process"


class CriteriaType(str, Enum):
    """Available criteria (acquisition function) types."""
    EXPECTED_IMPROVEMENT = "ei"
    LOWER_CONFIDENCE_BOUND = "lcb"
    PROBABILITY_OF_IMPROVEMENT = "pi"
    HEDGE = "hedge"


class KernelType(str, Enum):
    """Available covariance kernels."""
    MATERN52 = "matern52"
    SQUARED_EXPONENTIAL = "squared_exponential"


class ModelPrediction(BaseModel):
    """
    Gaussian predictive distribution of a surrogate model at one query point.
    """
    model_config = ConfigDict(frozen=True)

    mean: float = Field(..., description="Predicted mean")
    variance: float = Field(..., description="Predicted variance")
    std: float = Field(..., description="Predicted standard deviation")
    model_type: ModelType = Field(..., description="Model type used for prediction")

    def confidence_interval(self, level: float = 0.95) -> Tuple[float, float]:
        """Central interval holding `level` of the predictive mass."""
        half_width = norm.ppf(0.5 + level / 2.0) * self.std
        return (float(self.mean - half_width), float(self.mean + half_width))

    def pdf(self, y: float) -> float:
        """Predictive density at y."""
        if self.std <= 0:
            return float("inf") if y == self.mean else 0.0
        return float(norm.pdf(y, loc=self.mean, scale=self.std))

    def sample(self, rng: np.random.Generator, size: Optional[int] = None):
        """Draw from the predictive distribution."""
        return rng.normal(self.mean, self.std, size=size)


@dataclass(frozen=True, eq=False)
class Particle:
    """
    One MCMC particle: a sampled hyperparameter vector together with the
    surrogate configured from it and the criteria bound to that surrogate.

    The hyperparameter vector is a read-only copy; only the internal state of
    the surrogate and criteria changes as observations arrive.
    """
    index: int
    hyperparameters: np.ndarray
    surrogate: "BaseSurrogateModel"
    criteria: "BaseCriteria"
