"""
Gaussian process surrogate model.

Zero-mean GP on centered targets with an ARD kernel. The hyperparameter
vector holds the log length-scales, one per input dimension; signal variance
and noise are fixed from settings. Each MCMC particle owns one instance
configured with its own sampled length-scales.
"""

import logging
from typing import Optional

import numpy as np
from scipy.linalg import LinAlgError, cho_solve, cholesky, solve_triangular
from scipy.stats import norm

from bayesopt_mcmc.core.base import BaseSurrogateModel
from bayesopt_mcmc.core.config import MCMCSettings
from bayesopt_mcmc.core.dataset import Dataset
from bayesopt_mcmc.core.exceptions import ModelFitError
from bayesopt_mcmc.core.types import ModelPrediction, ModelType
from bayesopt_mcmc.models.kernels import get_kernel

logger = logging.getLogger(__name__)

JITTER = 1e-10


class GaussianProcessModel(BaseSurrogateModel):
    """
    Gaussian process regression with Cholesky-based inference.

    fit() factorizes the full covariance matrix; update() extends the
    existing Cholesky factor by one row when exactly one observation was
    appended since the last fit, and falls back to a full refit otherwise
    (several new points, or observations replaced with set_samples).
    """

    def __init__(self, dataset: Dataset, settings: MCMCSettings):
        super().__init__(dataset, settings)
        self.kernel = get_kernel(settings.kernel)
        self._chol: Optional[np.ndarray] = None
        self._alpha: Optional[np.ndarray] = None
        self._y_mean = 0.0
        self._n_fitted = 0
        self._fitted_revision = -1

    @property
    def n_hyperparameters(self) -> int:
        return self.dimension

    def default_hyperparameters(self) -> np.ndarray:
        return np.full(self.dimension, self.settings.kernel_hp_mean, dtype=float)

    def log_prior(self, theta: np.ndarray) -> float:
        theta = np.asarray(theta, dtype=float)
        return float(np.sum(norm.logpdf(
            theta, loc=self.settings.kernel_hp_mean, scale=self.settings.kernel_hp_std
        )))

    def _covariance(self, X1: np.ndarray, X2: np.ndarray, theta: np.ndarray) -> np.ndarray:
        return self.kernel(X1, X2, np.exp(theta), self.settings.signal_variance)

    def _factorize(self, theta: np.ndarray):
        X, y = self.dataset.X, self.dataset.y
        K = self._covariance(X, X, theta)
        K[np.diag_indices_from(K)] += self.settings.noise + JITTER
        try:
            L = cholesky(K, lower=True)
        except (LinAlgError, ValueError) as e:
            raise ModelFitError(f"Covariance matrix is not positive definite: {e}") from e
        y_mean = float(np.mean(y))
        alpha = cho_solve((L, True), y - y_mean)
        return L, alpha, y_mean

    def log_marginal_likelihood(self, theta: np.ndarray) -> float:
        """
        Log evidence of the centered targets.

        Returns -inf when the covariance cannot be factorized, so that
        samplers treat such hyperparameters as outside the support.
        """
        n = self.dataset.n_samples
        if n == 0:
            return 0.0
        try:
            L, alpha, y_mean = self._factorize(np.asarray(theta, dtype=float))
        except ModelFitError:
            return -np.inf
        yc = self.dataset.y - y_mean
        return float(
            -0.5 * yc @ alpha
            - np.sum(np.log(np.diag(L)))
            - 0.5 * n * np.log(2.0 * np.pi)
        )

    def fit(self) -> None:
        if self.dataset.n_samples == 0:
            raise ModelFitError("Cannot fit a Gaussian process without observations")
        self._chol, self._alpha, self._y_mean = self._factorize(self.hyperparameters)
        self._n_fitted = self.dataset.n_samples
        self._fitted_revision = self.dataset.revision
        self.is_fitted = True
        logger.debug(f"Fitted GP on {self._n_fitted} points with theta={self.hyperparameters}")

    def update(self) -> None:
        n = self.dataset.n_samples
        if (
            not self.is_fitted
            or self._fitted_revision != self.dataset.revision
            or n != self._n_fitted + 1
        ):
            self.fit()
            return

        X, y = self.dataset.X, self.dataset.y
        x_new = X[-1:]
        k = self._covariance(X[:-1], x_new, self.hyperparameters).ravel()
        kss = self.settings.signal_variance + self.settings.noise + JITTER
        l_vec = solve_triangular(self._chol, k, lower=True)
        d2 = kss - l_vec @ l_vec
        if d2 <= 0:
            raise ModelFitError(
                "Covariance matrix lost positive definiteness on incremental update"
            )

        L = np.zeros((n, n))
        L[:-1, :-1] = self._chol
        L[-1, :-1] = l_vec
        L[-1, -1] = np.sqrt(d2)

        self._chol = L
        self._y_mean = float(np.mean(y))
        self._alpha = cho_solve((L, True), y - self._y_mean)
        self._n_fitted = n

    def predict(self, query: np.ndarray) -> ModelPrediction:
        if not self.is_fitted:
            raise RuntimeError("Model must be fitted before prediction")
        x = np.asarray(query, dtype=float).reshape(1, -1)
        k = self._covariance(self.dataset.X[:self._n_fitted], x, self.hyperparameters).ravel()
        mean = self._y_mean + k @ self._alpha
        v = solve_triangular(self._chol, k, lower=True)
        variance = max(self.settings.signal_variance - v @ v, 0.0)
        return ModelPrediction(
            mean=float(mean),
            variance=float(variance),
            std=float(np.sqrt(variance)),
            model_type=ModelType.GAUSSIAN_PROCESS,
        )
