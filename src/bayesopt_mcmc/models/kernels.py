"""
Stationary ARD covariance kernels for the Gaussian process surrogate.
"""

from typing import Callable, Dict

import numpy as np
from scipy.spatial.distance import cdist

from bayesopt_mcmc.core.exceptions import ConfigurationError
from bayesopt_mcmc.core.types import KernelType

SQRT5 = np.sqrt(5.0)


def scaled_distance(X1: np.ndarray, X2: np.ndarray, length_scales: np.ndarray) -> np.ndarray:
    """Euclidean distance between rows after dividing each column by its length-scale."""
    return cdist(np.atleast_2d(X1) / length_scales, np.atleast_2d(X2) / length_scales)


def matern52(X1: np.ndarray, X2: np.ndarray, length_scales: np.ndarray, variance: float) -> np.ndarray:
    r = scaled_distance(X1, X2, length_scales)
    return variance * (1.0 + SQRT5 * r + 5.0 / 3.0 * r ** 2) * np.exp(-SQRT5 * r)


def squared_exponential(
    X1: np.ndarray, X2: np.ndarray, length_scales: np.ndarray, variance: float
) -> np.ndarray:
    r = scaled_distance(X1, X2, length_scales)
    return variance * np.exp(-0.5 * r ** 2)


KERNELS: Dict[str, Callable[..., np.ndarray]] = {
    KernelType.MATERN52.value: matern52,
    KernelType.SQUARED_EXPONENTIAL.value: squared_exponential,
}


def get_kernel(name: str) -> Callable[..., np.ndarray]:
    """
    Look up a kernel function by name.

    Raises:
        ConfigurationError: If the kernel is unknown
    """
    try:
        return KERNELS[name.lower()]
    except KeyError:
        raise ConfigurationError(
            f"Unknown kernel: {name}. Available: {sorted(KERNELS)}"
        ) from None
