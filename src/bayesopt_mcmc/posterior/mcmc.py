"""
Posterior model over surrogate hyperparameters based on MCMC particles.

A single surrogate conditioned on one hyperparameter vector underestimates
uncertainty when data is scarce. MCMCModel keeps one surrogate and one
criteria per sampled hyperparameter vector and averages criteria values over
the ensemble (a Monte Carlo approximation of Bayesian model averaging).

The criteria selection protocol (comparison requirement, best pick) and the
predictive distribution are answered by the canonical particle alone, so
that the driver sees one coherent decision whatever the ensemble size.
Rotation commands still go to every particle to keep their cursors aligned.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Any, Callable, List, Optional, Tuple

import numpy as np

from bayesopt_mcmc.core.base import (
    BaseCriteria,
    BaseSampler,
    BaseSurrogateModel,
    PosteriorModel,
)
from bayesopt_mcmc.core.config import MCMCSettings
from bayesopt_mcmc.core.dataset import Dataset
from bayesopt_mcmc.core.exceptions import (
    ConfigurationError,
    ModelFitError,
    RotationInconsistencyError,
    SamplingError,
)
from bayesopt_mcmc.core.types import ModelPrediction, Particle
from bayesopt_mcmc.criteria import get_criteria_factory
from bayesopt_mcmc.models import get_surrogate_class
from bayesopt_mcmc.sampling import create_sampler

logger = logging.getLogger(__name__)

SurrogateFactory = Callable[[Dataset, MCMCSettings], BaseSurrogateModel]
CriteriaFactory = Callable[[BaseSurrogateModel, MCMCSettings, np.random.Generator], BaseCriteria]


def build_particles(
    dimension: int,
    settings: MCMCSettings,
    rng: np.random.Generator,
    dataset: Dataset,
    sampler: Optional[BaseSampler] = None,
    surrogate_factory: Optional[SurrogateFactory] = None,
    criteria_factory: Optional[CriteriaFactory] = None,
) -> List[Particle]:
    """
    Draw hyperparameter samples and build one particle per sample.

    Args:
        dimension: Number of input dimensions
        settings: Particle count and kind selectors
        rng: Random source for the sampler and the criteria
        dataset: Observations shared by every surrogate
        sampler: Hyperparameter sampler; defaults to a slice sampler on the
            log posterior of a surrogate of the configured kind
        surrogate_factory: Overrides the surrogate kind lookup
        criteria_factory: Overrides the criteria kind lookup

    Returns:
        Exactly `settings.n_particles` particles, in sampled order

    Raises:
        ConfigurationError: Invalid particle count, dimension or kinds
        SamplingError: Wrong number of samples or invalid hyperparameters

    The build is atomic: on failure no particle outlives the call.
    """
    if dimension < 1:
        raise ConfigurationError(f"dimension must be positive, got {dimension}")
    if dataset.dimension != dimension:
        raise ConfigurationError(
            f"Dataset dimension {dataset.dimension} does not match model dimension {dimension}"
        )
    n_particles = settings.n_particles
    if n_particles < 1:
        raise ConfigurationError(f"n_particles must be at least 1, got {n_particles}")

    if surrogate_factory is None:
        surrogate_factory = get_surrogate_class(settings.surrogate)
    if criteria_factory is None:
        criteria_factory = get_criteria_factory(settings.criteria)

    if sampler is None:
        sampler = create_sampler(surrogate_factory(dataset, settings), settings)

    samples = np.asarray(sampler.draw_particles(n_particles, rng), dtype=float)
    if samples.ndim != 2 or samples.shape[0] != n_particles:
        raise SamplingError(
            f"Sampler returned samples of shape {samples.shape}, "
            f"expected {n_particles} rows"
        )
    if not np.all(np.isfinite(samples)):
        raise SamplingError("Sampler returned non-finite hyperparameters")

    particles: List[Particle] = []
    try:
        for index, sample in enumerate(samples):
            hyperparameters = sample.copy()
            hyperparameters.flags.writeable = False

            surrogate = surrogate_factory(dataset, settings)
            try:
                surrogate.configure(hyperparameters)
            except ValueError as e:
                raise SamplingError(f"Particle {index} has invalid hyperparameters: {e}") from e

            criteria = criteria_factory(surrogate, settings, rng)
            particles.append(Particle(index, hyperparameters, surrogate, criteria))
            logger.debug(f"Built particle {index} with hyperparameters {hyperparameters}")
    except Exception:
        logger.error(
            f"Particle set construction failed after {len(particles)} of {n_particles} particles"
        )
        particles.clear()
        raise

    return particles


class MCMCModel(PosteriorModel):
    """
    Ensemble posterior model with one surrogate and criteria per MCMC particle.

    The particle count is fixed for the lifetime of an instance. A
    hyperparameter refresh builds a new instance (see resample()).

    Args:
        dimension: Number of input dimensions
        settings: Posterior model settings
        rng: Random number generator; defaults to one seeded from settings
        dataset: Observations; a new empty Dataset when omitted
        sampler: Hyperparameter sampler override
        surrogate_factory: Surrogate construction override
        criteria_factory: Criteria construction override
    """

    def __init__(
        self,
        dimension: int,
        settings: Optional[MCMCSettings] = None,
        rng: Optional[np.random.Generator] = None,
        dataset: Optional[Dataset] = None,
        sampler: Optional[BaseSampler] = None,
        surrogate_factory: Optional[SurrogateFactory] = None,
        criteria_factory: Optional[CriteriaFactory] = None,
    ):
        settings = settings if settings is not None else MCMCSettings()
        if dimension < 1:
            raise ConfigurationError(f"dimension must be positive, got {dimension}")
        super().__init__(dimension, settings, dataset)
        self.rng = rng if rng is not None else np.random.default_rng(settings.random_seed)
        self._surrogate_factory = surrogate_factory
        self._criteria_factory = criteria_factory

        self._particles: Tuple[Particle, ...] = tuple(build_particles(
            dimension,
            settings,
            self.rng,
            self.dataset,
            sampler=sampler,
            surrogate_factory=surrogate_factory,
            criteria_factory=criteria_factory,
        ))

        logger.info(
            f"Initialized MCMC posterior model with {self.n_particles} particles "
            f"({settings.surrogate}, {settings.criteria})"
        )

    # Particle access. The canonical particle answers for the selection
    # protocol; _each_particle() is the broadcast path.

    @property
    def _canonical(self) -> Particle:
        return self._particles[0]

    def _each_particle(self) -> Tuple[Particle, ...]:
        return self._particles

    @property
    def n_particles(self) -> int:
        return len(self._particles)

    @property
    def particles(self) -> Tuple[Particle, ...]:
        """Borrowed view of the particles, in sampled order."""
        return self._particles

    @property
    def hyperparameters(self) -> np.ndarray:
        """Copy of the particle hyperparameters, shape (n_particles, n_hyperparameters)."""
        return np.vstack([particle.hyperparameters for particle in self._particles])

    def _fan_out(self, task: Callable[[Particle], Any]) -> List[Any]:
        """
        Run `task` on every particle and return results in particle order.

        Sequentially, the first failure propagates immediately. With worker
        threads, every task completes first and the lowest-index failure is
        raised.
        """
        particles = self._each_particle()
        n_workers = min(self.settings.n_workers, len(particles))
        if n_workers <= 1:
            return [task(particle) for particle in particles]

        with ThreadPoolExecutor(max_workers=n_workers) as executor:
            futures = [executor.submit(task, particle) for particle in particles]
            wait(futures)

        for future in futures:
            error = future.exception()
            if error is not None:
                raise error
        return [future.result() for future in futures]

    def _refit(self, method: str) -> None:
        def task(particle: Particle) -> None:
            try:
                getattr(particle.surrogate, method)()
            except ModelFitError as e:
                raise ModelFitError(
                    f"Particle {particle.index}: {e}", particle_index=particle.index
                ) from e

        try:
            self._fan_out(task)
        except ModelFitError as e:
            logger.error(f"Surrogate {method} failed: {e}")
            raise

    def fit_surrogate_model(self) -> None:
        """Fit every particle's surrogate from the full dataset."""
        self._refit("fit")

    def update_surrogate_model(self) -> None:
        """Incorporate the latest observation in every particle's surrogate."""
        self._refit("update")

    def evaluate_criteria(self, query: np.ndarray) -> float:
        """
        Ensemble-averaged criteria value at `query`.

        Values are summed in particle order and divided by the particle
        count, so the result is reproducible across runs and exact for a
        single particle.
        """
        values = self._fan_out(lambda particle: particle.criteria.evaluate(query))
        return sum(values) / len(values)

    def update_criteria(self, query: np.ndarray) -> None:
        for particle in self._each_particle():
            particle.criteria.update(query)

    def criteria_requires_comparison(self) -> bool:
        return self._canonical.criteria.requires_comparison()

    def set_first_criterium(self) -> None:
        for particle in self._each_particle():
            particle.criteria.initialize_rotation()

    def set_next_criterium(self, previous_result: np.ndarray) -> bool:
        """
        Record the point found with the current criterion and rotate.

        The result comes from optimizing the averaged criteria, so it is
        common to all particles and is tracked by the canonical particle
        only. Every particle advances its cursor.

        Returns:
            True iff the rotation cycled back to the first criterion

        Raises:
            RotationInconsistencyError: If particles disagree on the cycle
            RuntimeError: If set_first_criterium() has not been called
        """
        self._canonical.criteria.push_result(previous_result)

        rotated = [particle.criteria.rotate() for particle in self._each_particle()]
        if any(flag != rotated[0] for flag in rotated):
            raise RotationInconsistencyError(
                f"Particles disagree on criteria rotation: {rotated}"
            )
        return rotated[-1]

    def get_best_criteria(self) -> Tuple[np.ndarray, str]:
        """Best point of the last rotation and the name of the winning criterion."""
        return self._canonical.criteria.best_known()

    def get_prediction(self, query: np.ndarray) -> ModelPrediction:
        """
        Predictive distribution of the canonical particle's surrogate.

        This is not a mixture over the ensemble.
        """
        return self._canonical.surrogate.predict(query)

    def resample(self, sampler: Optional[BaseSampler] = None) -> "MCMCModel":
        """
        Build a new ensemble from fresh samples on the same dataset.

        This instance is left unchanged; the caller replaces it with the
        returned model.
        """
        logger.info(f"Resampling {self.n_particles} particles on {self.dataset.n_samples} observations")
        return MCMCModel(
            self.dimension,
            self.settings,
            rng=self.rng,
            dataset=self.dataset,
            sampler=sampler,
            surrogate_factory=self._surrogate_factory,
            criteria_factory=self._criteria_factory,
        )
