"""
GP-Hedge portfolio criteria.

Cycles through a portfolio of acquisition functions. During one outer-loop
iteration the driver optimizes each portfolio member in turn and pushes the
point it found; best_known() then rewards every candidate by its predicted
value and picks a member with the Hedge (exponential weights) rule.

Based on:
- Hoffman et al. (2011) "Portfolio Allocation for Bayesian Optimization"
"""

import logging
from typing import List, Tuple

import numpy as np

from bayesopt_mcmc.core.base import BaseCriteria, BaseSurrogateModel
from bayesopt_mcmc.core.types import CriteriaType

logger = logging.getLogger(__name__)


class GPHedge(BaseCriteria):
    """
    Hedge rotation over a list of criteria bound to the same surrogate.

    The cursor selects the member used by evaluate(). rotate() advances it
    and reports True when it wraps back to the first member. Gains persist
    across rotations for the lifetime of the instance.
    """

    name = CriteriaType.HEDGE.value

    def __init__(
        self,
        surrogate_model: BaseSurrogateModel,
        criteria_list: List[BaseCriteria],
        rng: np.random.Generator,
        eta: float = 1.0,
        **kwargs
    ):
        """
        Initialize the Hedge portfolio.

        Args:
            surrogate_model: Surrogate model shared by all members
            criteria_list: Portfolio members, in rotation order
            rng: Random number generator for the Hedge draw
            eta: Learning rate of the exponential weights
            **kwargs: Additional parameters
        """
        super().__init__(surrogate_model, **kwargs)
        if not criteria_list:
            raise ValueError("Hedge portfolio needs at least one criteria")
        self.criteria_list = list(criteria_list)
        self.rng = rng
        self.eta = eta
        self.gains = np.zeros(len(self.criteria_list))
        self.probabilities = np.full(len(self.criteria_list), 1.0 / len(self.criteria_list))

    @property
    def cycle_length(self) -> int:
        return len(self.criteria_list)

    @property
    def current(self) -> BaseCriteria:
        return self.criteria_list[self.cursor or 0]

    def requires_comparison(self) -> bool:
        return True

    def evaluate(self, query: np.ndarray) -> float:
        return self.current.evaluate(query)

    def update(self, query: np.ndarray) -> None:
        super().update(query)
        for criteria in self.criteria_list:
            criteria.update(query)

    def best_known(self) -> Tuple[np.ndarray, str]:
        """
        Choose among the candidates pushed this rotation.

        Each candidate is rewarded with the negated predicted mean at that
        point. The chosen member is drawn with probability proportional to
        exp(eta * (gain - max gain)).
        """
        if not self.results:
            return self.surrogate_model.dataset.min_point(), self.name

        n_results = min(len(self.results), self.cycle_length)
        rewards = np.array([
            -self.surrogate_model.predict(point).mean
            for point in self.results[:n_results]
        ])
        self.gains[:n_results] += rewards

        gains = self.gains[:n_results]
        weights = np.exp(self.eta * (gains - np.max(gains)))
        probabilities = weights / np.sum(weights)
        self.probabilities = np.zeros(self.cycle_length)
        self.probabilities[:n_results] = probabilities

        chosen = int(self.rng.choice(n_results, p=probabilities))
        label = self.criteria_list[chosen].name
        logger.debug(f"Hedge probabilities {probabilities}, chose {label}")
        return self.results[chosen].copy(), label
