"""
Hyperparameter samplers.

Components:
- slice_sampler: Coordinate-wise slice sampler and its factory
"""

from bayesopt_mcmc.sampling.slice_sampler import SamplingResult, SliceSampler, create_sampler

__all__ = [
    "SamplingResult",
    "SliceSampler",
    "create_sampler",
]
