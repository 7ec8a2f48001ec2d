"""
Observation store shared by the surrogate models of a posterior model.

Every particle's surrogate holds a borrowed reference to the same Dataset, so
a new observation is added once and seen by the whole ensemble.
"""

import logging
from typing import Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)


class Dataset:
    """
    Input points and observed (minimized) objective values.

    Args:
        dimension: Number of input dimensions
        X: Optional initial inputs of shape (n, dimension)
        y: Optional initial outputs of shape (n,)
    """

    def __init__(
        self,
        dimension: int,
        X: Optional[np.ndarray] = None,
        y: Optional[np.ndarray] = None,
    ):
        if dimension < 1:
            raise ValueError("dimension must be positive")
        self.dimension = dimension
        self._X = np.empty((0, dimension))
        self._y = np.empty(0)
        self.revision = 0
        if X is not None or y is not None:
            self.set_samples(X, y)

    @property
    def X(self) -> np.ndarray:
        return self._X

    @property
    def y(self) -> np.ndarray:
        return self._y

    @property
    def n_samples(self) -> int:
        return self._y.shape[0]

    def set_samples(self, X: np.ndarray, y: np.ndarray) -> None:
        """
        Replace all observations.

        Bumps `revision`, so that models fitted on the previous observations
        know they cannot be extended incrementally.
        """
        X = np.atleast_2d(np.asarray(X, dtype=float))
        y = np.asarray(y, dtype=float).ravel()
        if X.shape[1] != self.dimension:
            raise ValueError(
                f"Expected inputs with {self.dimension} columns, got {X.shape[1]}"
            )
        if X.shape[0] != y.shape[0]:
            raise ValueError(
                f"Got {X.shape[0]} input points but {y.shape[0]} outputs"
            )
        self._X = X.copy()
        self._y = y.copy()
        self.revision += 1
        logger.debug(f"Dataset reset with {self.n_samples} samples")

    def add_sample(self, x: np.ndarray, y: float) -> None:
        """Append a single observation."""
        x = np.asarray(x, dtype=float).ravel()
        if x.shape[0] != self.dimension:
            raise ValueError(
                f"Expected a point of dimension {self.dimension}, got {x.shape[0]}"
            )
        self._X = np.vstack([self._X, x])
        self._y = np.append(self._y, float(y))

    def last_sample(self) -> Tuple[np.ndarray, float]:
        if self.n_samples == 0:
            raise IndexError("Dataset is empty")
        return self._X[-1], float(self._y[-1])

    def min_index(self) -> int:
        if self.n_samples == 0:
            raise IndexError("Dataset is empty")
        return int(np.argmin(self._y))

    def min_point(self) -> np.ndarray:
        return self._X[self.min_index()].copy()

    def min_value(self) -> float:
        return float(self._y[self.min_index()])
