"""
Utilities module for the MCMC posterior model.

Components:
- sampling: Space-filling and random candidate designs
"""

from bayesopt_mcmc.utils.sampling import (
    latin_hypercube_sampling,
    random_sampling,
)

__all__ = [
    "latin_hypercube_sampling",
    "random_sampling",
]
