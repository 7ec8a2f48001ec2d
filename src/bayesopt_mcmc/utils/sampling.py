"""
Candidate designs for optimizing criteria.

This module provides space-filling and uniform random designs used to
generate initial points and candidate query points for the posterior model.
"""

import logging
from typing import List, Optional, Tuple

import numpy as np
from scipy.spatial.distance import pdist
from scipy.stats import qmc

logger = logging.getLogger(__name__)


def _scale(unit_samples: np.ndarray, bounds: List[Tuple[float, float]]) -> np.ndarray:
    lower = np.array([low for low, _ in bounds], dtype=float)
    upper = np.array([high for _, high in bounds], dtype=float)
    return qmc.scale(unit_samples, lower, upper)


def _check_bounds(bounds: List[Tuple[float, float]]) -> None:
    if not bounds:
        raise ValueError("Bounds cannot be empty")
    for low, high in bounds:
        if not low < high:
            raise ValueError(f"Invalid bounds ({low}, {high}): lower must be below upper")


def latin_hypercube_sampling(
    bounds: List[Tuple[float, float]],
    n_samples: int,
    rng: Optional[np.random.Generator] = None,
    n_restarts: int = 10,
) -> np.ndarray:
    """
    Generate Latin Hypercube samples within specified bounds.

    Args:
        bounds: List of (min, max) tuples for each dimension
        n_samples: Number of samples to generate
        rng: Random number generator
        n_restarts: Designs drawn; the one with the largest minimum
            pairwise distance is kept

    Returns:
        Array of shape (n_samples, n_dimensions) with samples
    """
    _check_bounds(bounds)
    n_dimensions = len(bounds)

    sampler = qmc.LatinHypercube(d=n_dimensions, seed=rng)

    best_samples = sampler.random(n_samples)
    best_min_dist = _compute_min_distance(best_samples)

    # Maximin over several random designs
    for _ in range(n_restarts - 1):
        candidate_samples = sampler.random(n_samples)
        min_dist = _compute_min_distance(candidate_samples)
        if min_dist > best_min_dist:
            best_samples = candidate_samples
            best_min_dist = min_dist

    logger.debug(f"Generated {n_samples} Latin Hypercube samples in {n_dimensions}D space")
    return _scale(best_samples, bounds)


def random_sampling(
    bounds: List[Tuple[float, float]],
    n_samples: int,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """
    Generate uniform random samples within specified bounds.

    Args:
        bounds: List of (min, max) tuples for each dimension
        n_samples: Number of samples to generate
        rng: Random number generator

    Returns:
        Array of shape (n_samples, n_dimensions) with samples
    """
    _check_bounds(bounds)
    rng = rng if rng is not None else np.random.default_rng()

    samples = rng.uniform(size=(n_samples, len(bounds)))

    logger.debug(f"Generated {n_samples} random samples in {len(bounds)}D space")
    return _scale(samples, bounds)


def _compute_min_distance(samples: np.ndarray) -> float:
    """Compute minimum pairwise distance in a sample set."""
    if samples.shape[0] < 2:
        return float("inf")
    return float(pdist(samples).min())
