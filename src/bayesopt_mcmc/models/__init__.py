"""
Surrogate models for the posterior layer.

Surrogate kinds are looked up by name in an open registry so that the
settings' `surrogate` selector can name user-registered models too.
"""

from typing import Dict, Type

from bayesopt_mcmc.core.base import BaseSurrogateModel
from bayesopt_mcmc.core.config import MCMCSettings
from bayesopt_mcmc.core.dataset import Dataset
from bayesopt_mcmc.core.exceptions import ConfigurationError
from bayesopt_mcmc.core.types import ModelType
from bayesopt_mcmc.models.gaussian_process import GaussianProcessModel

_SURROGATES: Dict[str, Type[BaseSurrogateModel]] = {
    ModelType.GAUSSIAN_PROCESS.value: GaussianProcessModel,
}


def register_surrogate(kind: str, model_class: Type[BaseSurrogateModel]) -> None:
    """Register a surrogate model class under a kind name."""
    _SURROGATES[kind.lower()] = model_class


def get_surrogate_class(kind: str) -> Type[BaseSurrogateModel]:
    """
    Resolve a surrogate kind.

    Raises:
        ConfigurationError: If the kind is not registered
    """
    try:
        return _SURROGATES[kind.lower()]
    except KeyError:
        raise ConfigurationError(
            f"Unsupported surrogate model: {kind}. Available: {sorted(_SURROGATES)}"
        ) from None


def create_surrogate(kind: str, dataset: Dataset, settings: MCMCSettings) -> BaseSurrogateModel:
    """Create a surrogate model by kind name."""
    return get_surrogate_class(kind)(dataset, settings)


__all__ = [
    "GaussianProcessModel",
    "register_surrogate",
    "get_surrogate_class",
    "create_surrogate",
]
