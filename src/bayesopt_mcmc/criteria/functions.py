"""
Single acquisition functions used as criteria.

All criteria follow the minimization convention of the posterior layer: the
objective is minimized, and criteria values are larger where a query point is
more promising. Each criteria is bound to exactly one surrogate model, which
in an MCMC ensemble is the surrogate of its own particle.
"""

import logging

import numpy as np
from scipy.stats import norm

from bayesopt_mcmc.core.base import BaseCriteria, BaseSurrogateModel
from bayesopt_mcmc.core.types import CriteriaType

logger = logging.getLogger(__name__)


class ExpectedImprovement(BaseCriteria):
    """
    Expected Improvement criteria.

    EI(x) = E[max(y_min - f(x) - xi, 0)]

    where y_min is the current best (minimum) observed value.
    """

    name = CriteriaType.EXPECTED_IMPROVEMENT.value

    def __init__(self, surrogate_model: BaseSurrogateModel, xi: float = 0.0, **kwargs):
        """
        Initialize Expected Improvement.

        Args:
            surrogate_model: Surrogate model used for predictions
            xi: Exploration margin (higher values encourage more exploration)
            **kwargs: Additional parameters
        """
        super().__init__(surrogate_model, **kwargs)
        self.xi = xi

    def evaluate(self, query: np.ndarray) -> float:
        pred = self.surrogate_model.predict(query)
        return self._calculate_ei(pred.mean, pred.std)

    def _calculate_ei(self, mean: float, std: float) -> float:
        """
        Calculate Expected Improvement value.

        Args:
            mean: Predicted mean
            std: Predicted standard deviation

        Returns:
            Expected Improvement value
        """
        current_best = self.surrogate_model.dataset.min_value()
        improvement = current_best - mean - self.xi

        if std <= 0:
            return max(improvement, 0.0)

        # Standardize improvement
        z = improvement / std
        ei = improvement * norm.cdf(z) + std * norm.pdf(z)

        return float(max(ei, 0.0))


class LowerConfidenceBound(BaseCriteria):
    """
    Lower Confidence Bound criteria, negated so that larger is better.

    LCB(x) = -(mu(x) - beta * sigma(x))
    """

    name = CriteriaType.LOWER_CONFIDENCE_BOUND.value

    def __init__(self, surrogate_model: BaseSurrogateModel, beta: float = 1.0, **kwargs):
        super().__init__(surrogate_model, **kwargs)
        self.beta = beta

    def evaluate(self, query: np.ndarray) -> float:
        pred = self.surrogate_model.predict(query)
        return float(-(pred.mean - self.beta * pred.std))


class ProbabilityOfImprovement(BaseCriteria):
    """
    Probability of Improvement criteria.

    PI(x) = P(f(x) < y_min - xi)
    """

    name = CriteriaType.PROBABILITY_OF_IMPROVEMENT.value

    def __init__(self, surrogate_model: BaseSurrogateModel, xi: float = 0.0, **kwargs):
        super().__init__(surrogate_model, **kwargs)
        self.xi = xi

    def evaluate(self, query: np.ndarray) -> float:
        pred = self.surrogate_model.predict(query)
        improvement = self.surrogate_model.dataset.min_value() - pred.mean - self.xi

        if pred.std <= 0:
            return 1.0 if improvement > 0 else 0.0

        return float(norm.cdf(improvement / pred.std))
