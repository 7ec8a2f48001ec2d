"""
Criteria (acquisition functions) for the posterior layer.

Criteria kinds are looked up by name in an open registry; the "hedge" kind
builds a GP-Hedge portfolio from the settings' `hedge_criteria` list.
"""

from typing import Callable, Dict

import numpy as np

from bayesopt_mcmc.core.base import BaseCriteria, BaseSurrogateModel
from bayesopt_mcmc.core.config import MCMCSettings
from bayesopt_mcmc.core.exceptions import ConfigurationError
from bayesopt_mcmc.core.types import CriteriaType
from bayesopt_mcmc.criteria.functions import (
    ExpectedImprovement,
    LowerConfidenceBound,
    ProbabilityOfImprovement,
)
from bayesopt_mcmc.criteria.hedge import GPHedge

CriteriaFactory = Callable[[BaseSurrogateModel, MCMCSettings, np.random.Generator], BaseCriteria]

_CRITERIA: Dict[str, CriteriaFactory] = {
    CriteriaType.EXPECTED_IMPROVEMENT.value:
        lambda surrogate, settings, rng: ExpectedImprovement(surrogate, xi=settings.ei_xi),
    CriteriaType.LOWER_CONFIDENCE_BOUND.value:
        lambda surrogate, settings, rng: LowerConfidenceBound(surrogate, beta=settings.lcb_beta),
    CriteriaType.PROBABILITY_OF_IMPROVEMENT.value:
        lambda surrogate, settings, rng: ProbabilityOfImprovement(surrogate, xi=settings.ei_xi),
}


def register_criteria(kind: str, factory: CriteriaFactory) -> None:
    """Register a criteria factory under a kind name."""
    _CRITERIA[kind.lower()] = factory


def _create_hedge(
    surrogate: BaseSurrogateModel,
    settings: MCMCSettings,
    rng: np.random.Generator,
) -> GPHedge:
    members = []
    for kind in settings.hedge_criteria:
        if kind.lower() == CriteriaType.HEDGE.value:
            raise ConfigurationError("A Hedge portfolio cannot contain another Hedge portfolio")
        members.append(create_criteria(kind, surrogate, settings, rng))
    if not members:
        raise ConfigurationError("Hedge portfolio is empty")
    return GPHedge(surrogate, members, rng=rng, eta=settings.hedge_eta)


_CRITERIA[CriteriaType.HEDGE.value] = _create_hedge


def get_criteria_factory(kind: str) -> CriteriaFactory:
    """
    Resolve a criteria kind.

    Raises:
        ConfigurationError: If the kind is not registered
    """
    try:
        return _CRITERIA[kind.lower()]
    except KeyError:
        raise ConfigurationError(
            f"Unsupported criteria: {kind}. Available: {sorted(_CRITERIA)}"
        ) from None


def create_criteria(
    kind: str,
    surrogate: BaseSurrogateModel,
    settings: MCMCSettings,
    rng: np.random.Generator,
) -> BaseCriteria:
    """Create a criteria bound to `surrogate` by kind name."""
    return get_criteria_factory(kind)(surrogate, settings, rng)


__all__ = [
    "ExpectedImprovement",
    "LowerConfidenceBound",
    "ProbabilityOfImprovement",
    "GPHedge",
    "register_criteria",
    "get_criteria_factory",
    "create_criteria",
]
