"""
Slice sampler for surrogate hyperparameters.

Coordinate-wise slice sampling with stepping out and shrinkage, drawing
hyperparameter particles from an unnormalized log posterior.

Based on:
- Neal (2003) "Slice Sampling", Annals of Statistics 31(3)
- Snoek et al. (2012) "Practical Bayesian Optimization of Machine Learning Algorithms"
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import numpy as np

from bayesopt_mcmc.core.base import BaseSampler, BaseSurrogateModel
from bayesopt_mcmc.core.config import MCMCSettings
from bayesopt_mcmc.core.exceptions import SamplingError

logger = logging.getLogger(__name__)


@dataclass
class SamplingResult:
    """Outcome of one sampler run."""
    samples: np.ndarray          # shape (n_samples, n_hyperparameters)
    n_evaluations: int           # log-density evaluations
    burn_in: int
    thinning: int


class SliceSampler(BaseSampler):
    """
    Univariate slice sampling applied to each coordinate in random order.

    Args:
        log_density: Unnormalized log density of the hyperparameters
        initial: Starting state of the chain
        burn_in: Sweeps discarded before the first kept sample
        thinning: Sweeps between kept samples
        width: Initial bracket width
        max_stepping_out: Bracket expansions allowed on each side
        max_shrinkage: Bracket shrinkages allowed per coordinate update
    """

    def __init__(
        self,
        log_density: Callable[[np.ndarray], float],
        initial: np.ndarray,
        burn_in: int = 100,
        thinning: int = 1,
        width: float = 1.0,
        max_stepping_out: int = 50,
        max_shrinkage: int = 100,
    ):
        self.log_density = log_density
        self.initial = np.asarray(initial, dtype=float).ravel().copy()
        self.burn_in = burn_in
        self.thinning = thinning
        self.width = width
        self.max_stepping_out = max_stepping_out
        self.max_shrinkage = max_shrinkage
        self.last_result: Optional[SamplingResult] = None
        self._n_evaluations = 0

    def _log_density(self, x: np.ndarray) -> float:
        self._n_evaluations += 1
        value = float(self.log_density(x))
        # NaN is treated as outside the support
        return value if not np.isnan(value) else -np.inf

    def draw_particles(self, count: int, rng: np.random.Generator) -> np.ndarray:
        if count < 1:
            raise SamplingError(f"Cannot draw {count} particles")

        self._n_evaluations = 0
        x = self.initial.copy()
        log_p = self._log_density(x)
        if not np.isfinite(log_p):
            raise SamplingError(
                f"Log density is not finite at the initial state {x}"
            )

        samples = np.empty((count, x.shape[0]))
        n_kept = 0
        n_sweeps = self.burn_in + count * self.thinning
        for sweep in range(1, n_sweeps + 1):
            x, log_p = self._sweep(x, log_p, rng)
            if sweep > self.burn_in and (sweep - self.burn_in) % self.thinning == 0:
                samples[n_kept] = x
                n_kept += 1

        if not np.all(np.isfinite(samples)):
            raise SamplingError("Slice sampler produced non-finite samples")

        self.last_result = SamplingResult(
            samples=samples.copy(),
            n_evaluations=self._n_evaluations,
            burn_in=self.burn_in,
            thinning=self.thinning,
        )
        logger.info(
            f"Drew {count} particles with {self._n_evaluations} density evaluations"
        )
        return samples

    def _sweep(self, x: np.ndarray, log_p: float, rng: np.random.Generator) -> Tuple[np.ndarray, float]:
        for i in rng.permutation(x.shape[0]):
            x, log_p = self._update_coordinate(x, log_p, int(i), rng)
        return x, log_p

    def _update_coordinate(
        self, x: np.ndarray, log_p: float, i: int, rng: np.random.Generator
    ) -> Tuple[np.ndarray, float]:
        log_y = log_p - rng.exponential()
        left = x[i] - self.width * rng.uniform()
        right = left + self.width

        def at(value: float) -> float:
            x_new = x.copy()
            x_new[i] = value
            return self._log_density(x_new)

        steps = 0
        while at(left) > log_y:
            left -= self.width
            steps += 1
            if steps > self.max_stepping_out:
                raise SamplingError(f"Stepping out exceeded {self.max_stepping_out} steps (left, coordinate {i})")
        steps = 0
        while at(right) > log_y:
            right += self.width
            steps += 1
            if steps > self.max_stepping_out:
                raise SamplingError(f"Stepping out exceeded {self.max_stepping_out} steps (right, coordinate {i})")

        for _ in range(self.max_shrinkage):
            candidate = rng.uniform(left, right)
            log_p_new = at(candidate)
            if log_p_new > log_y:
                x_new = x.copy()
                x_new[i] = candidate
                return x_new, log_p_new
            if candidate < x[i]:
                left = candidate
            else:
                right = candidate

        raise SamplingError(f"Shrinkage exceeded {self.max_shrinkage} steps (coordinate {i})")


def create_sampler(surrogate: BaseSurrogateModel, settings: MCMCSettings) -> SliceSampler:
    """Slice sampler targeting the hyperparameter posterior of `surrogate`."""
    return SliceSampler(
        log_density=surrogate.log_posterior,
        initial=surrogate.default_hyperparameters(),
        burn_in=settings.burn_in,
        thinning=settings.thinning,
        width=settings.slice_width,
        max_stepping_out=settings.max_stepping_out,
        max_shrinkage=settings.max_shrinkage,
    )
