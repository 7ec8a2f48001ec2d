"""
Unit tests for the Gaussian process surrogate model.

Tests the GaussianProcessModel implementation including:
- Hyperparameter configuration
- Fitting and prediction with uncertainty quantification
- Incremental Cholesky updates
- Marginal likelihood and prior
- Error handling and edge cases
"""

import pytest
import numpy as np
from scipy.stats import norm

from bayesopt_mcmc.core.config import MCMCSettings
from bayesopt_mcmc.core.dataset import Dataset
from bayesopt_mcmc.core.exceptions import ConfigurationError, ModelFitError
from bayesopt_mcmc.core.types import ModelPrediction, ModelType
from bayesopt_mcmc.models import GaussianProcessModel, create_surrogate, register_surrogate
from bayesopt_mcmc.models.kernels import matern52, squared_exponential


@pytest.fixture
def settings():
    return MCMCSettings(noise=1e-6)


@pytest.fixture
def dataset():
    """Two-dimensional dataset from a smooth synthetic function."""
    rng = np.random.default_rng(42)
    X = rng.uniform(0, 1, size=(12, 2))
    y = np.sin(3 * X[:, 0]) + X[:, 1] ** 2
    return Dataset(2, X, y)


class TestKernels:
    """Test suite for covariance kernels."""

    @pytest.mark.parametrize("kernel", [matern52, squared_exponential])
    def test_diagonal_is_variance(self, kernel):
        """Test that k(x, x) equals the signal variance."""
        X = np.array([[0.1, 0.2], [0.5, 0.9]])
        K = kernel(X, X, np.array([0.3, 0.7]), 2.5)

        np.testing.assert_allclose(np.diag(K), 2.5)
        np.testing.assert_allclose(K, K.T)

    @pytest.mark.parametrize("kernel", [matern52, squared_exponential])
    def test_decays_with_distance(self, kernel):
        """Test that covariance decreases as points move apart."""
        x0 = np.zeros((1, 1))
        K = kernel(x0, np.array([[0.1], [0.5], [2.0]]), np.array([0.5]), 1.0).ravel()

        assert K[0] > K[1] > K[2] > 0

    def test_unknown_kernel(self, dataset):
        """Test that an unknown kernel name is a configuration error."""
        with pytest.raises(ConfigurationError, match="kernel"):
            GaussianProcessModel(dataset, MCMCSettings(kernel="periodic"))


class TestGaussianProcessModel:
    """Test suite for GaussianProcessModel class."""

    def test_initialization(self, dataset, settings):
        """Test model initialization and default hyperparameters."""
        model = GaussianProcessModel(dataset, settings)

        assert model.dimension == 2
        assert model.n_hyperparameters == 2
        np.testing.assert_array_equal(model.hyperparameters, [0.0, 0.0])
        assert not model.is_fitted

    def test_created_from_registry(self, dataset, settings):
        """Test creation by kind name."""
        model = create_surrogate("gaussian_process", dataset, settings)
        assert isinstance(model, GaussianProcessModel)

    def test_register_custom_surrogate(self, dataset, settings):
        """Test registering a surrogate class under a new kind name."""
        class ShortLengthScaleGP(GaussianProcessModel):
            def default_hyperparameters(self):
                return np.full(self.dimension, -1.0)

        register_surrogate("short_gp", ShortLengthScaleGP)

        model = create_surrogate("SHORT_GP", dataset, settings)
        assert isinstance(model, ShortLengthScaleGP)
        np.testing.assert_array_equal(model.hyperparameters, [-1.0, -1.0])

    def test_unknown_surrogate_kind(self, dataset, settings):
        """Test that an unregistered kind is a configuration error."""
        with pytest.raises(ConfigurationError, match="Unsupported surrogate"):
            create_surrogate("random_forest", dataset, settings)

    def test_configure(self, dataset, settings):
        """Test setting hyperparameters."""
        model = GaussianProcessModel(dataset, settings)
        theta = np.array([-1.0, 0.5])

        model.configure(theta)
        theta[0] = 10.0

        np.testing.assert_array_equal(model.hyperparameters, [-1.0, 0.5])

    @pytest.mark.parametrize("theta", [[0.0], [0.0, 1.0, 2.0], [np.inf, 0.0]])
    def test_configure_invalid(self, dataset, settings, theta):
        """Test that wrongly sized or non-finite hyperparameters are rejected."""
        model = GaussianProcessModel(dataset, settings)
        with pytest.raises(ValueError):
            model.configure(np.array(theta))

    def test_fit_and_interpolate(self, dataset, settings):
        """Test that a nearly noiseless GP interpolates its training data."""
        model = GaussianProcessModel(dataset, settings)
        model.configure(np.log([0.2, 0.2]))
        model.fit()

        assert model.is_fitted
        for x, y in zip(dataset.X, dataset.y):
            pred = model.predict(x)
            assert isinstance(pred, ModelPrediction)
            assert pred.model_type == ModelType.GAUSSIAN_PROCESS
            assert pred.mean == pytest.approx(y, abs=1e-2)
            assert pred.std < 5e-2

    def test_uncertainty_grows_away_from_data(self, dataset, settings):
        """Test that predictive std is larger far from observations."""
        model = GaussianProcessModel(dataset, settings)
        model.configure(np.log([0.3, 0.3]))
        model.fit()

        near = model.predict(dataset.X[0] + 1e-3)
        far = model.predict(np.array([5.0, 5.0]))

        assert far.std > near.std
        assert far.std == pytest.approx(np.sqrt(settings.signal_variance), rel=1e-3)
        assert far.mean == pytest.approx(np.mean(dataset.y), abs=1e-6)

    def test_update_matches_refit(self, dataset, settings):
        """Test that the incremental update equals a full refit."""
        X, y = dataset.X, dataset.y
        incremental = Dataset(2, X[:-1], y[:-1])
        model = GaussianProcessModel(incremental, settings)
        model.configure(np.log([0.4, 0.6]))
        model.fit()

        incremental.add_sample(X[-1], y[-1])
        model.update()

        reference = GaussianProcessModel(Dataset(2, X, y), settings)
        reference.configure(np.log([0.4, 0.6]))
        reference.fit()

        for query in [np.array([0.2, 0.3]), np.array([0.9, 0.1]), X[-1]]:
            pred, ref = model.predict(query), reference.predict(query)
            assert pred.mean == pytest.approx(ref.mean, abs=1e-5)
            assert pred.variance == pytest.approx(ref.variance, abs=1e-5)

    def test_update_after_several_samples_refits(self, dataset, settings):
        """Test that update falls back to a refit when several points were added."""
        X, y = dataset.X, dataset.y
        partial = Dataset(2, X[:5], y[:5])
        model = GaussianProcessModel(partial, settings)
        model.fit()

        partial.set_samples(X, y)
        model.update()

        reference = GaussianProcessModel(Dataset(2, X, y), settings)
        reference.fit()
        query = np.array([0.3, 0.6])
        assert model.predict(query).mean == pytest.approx(reference.predict(query).mean, abs=1e-6)

    def test_update_after_replaced_samples_refits(self, dataset, settings):
        """Test that replacing the observations forces a refit even when one point longer."""
        X, y = dataset.X, dataset.y
        data = Dataset(2, X[:5], y[:5])
        model = GaussianProcessModel(data, settings)
        model.fit()

        replaced_X, replaced_y = X[6:], y[6:]
        assert replaced_X.shape[0] == 6
        data.set_samples(replaced_X, replaced_y)
        model.update()

        reference = GaussianProcessModel(Dataset(2, replaced_X, replaced_y), settings)
        reference.fit()
        for query in [np.array([0.3, 0.6]), replaced_X[0]]:
            pred, ref = model.predict(query), reference.predict(query)
            assert pred.mean == pytest.approx(ref.mean, abs=1e-6)
            assert pred.variance == pytest.approx(ref.variance, abs=1e-6)

    def test_update_before_fit(self, dataset, settings):
        """Test that update on an unfitted model fits it."""
        model = GaussianProcessModel(dataset, settings)
        model.update()
        assert model.is_fitted

    def test_fit_without_data(self, settings):
        """Test that fitting an empty dataset fails."""
        model = GaussianProcessModel(Dataset(1), settings)
        with pytest.raises(ModelFitError, match="without observations"):
            model.fit()

    def test_predict_before_fit(self, dataset, settings):
        """Test that prediction requires a fitted model."""
        model = GaussianProcessModel(dataset, settings)
        with pytest.raises(RuntimeError, match="fitted"):
            model.predict(np.array([0.5, 0.5]))

    def test_fit_failure_on_indefinite_covariance(self, dataset, settings):
        """Test that a covariance that is not positive definite raises ModelFitError."""
        model = GaussianProcessModel(dataset, settings)
        model.kernel = lambda X1, X2, length_scales, variance: -np.ones((len(X1), len(X2)))

        with pytest.raises(ModelFitError, match="positive definite"):
            model.fit()

    def test_update_failure_on_indefinite_covariance(self, dataset, settings):
        """Test that the incremental update detects loss of positive definiteness."""
        X, y = dataset.X, dataset.y
        data = Dataset(2, X[:-1], y[:-1])
        model = GaussianProcessModel(data, settings)
        model.fit()

        data.add_sample(X[0], y[0])
        model.kernel = lambda X1, X2, length_scales, variance: 10.0 * np.ones((len(X1), len(X2)))

        with pytest.raises(ModelFitError, match="incremental update"):
            model.update()

    def test_configure_resets_fit(self, dataset, settings):
        """Test that new hyperparameters invalidate the fit."""
        model = GaussianProcessModel(dataset, settings)
        model.fit()
        model.configure(np.array([0.5, 0.5]))
        assert not model.is_fitted


class TestMarginalLikelihood:
    """Test suite for hyperparameter densities."""

    def test_log_prior(self, dataset):
        """Test the normal prior on log length-scales."""
        settings = MCMCSettings(kernel_hp_mean=0.5, kernel_hp_std=2.0)
        model = GaussianProcessModel(dataset, settings)
        theta = np.array([0.1, -1.0])

        expected = norm.logpdf(theta, loc=0.5, scale=2.0).sum()
        assert model.log_prior(theta) == pytest.approx(expected)

    def test_empty_dataset_likelihood(self, settings):
        """Test that an empty dataset contributes nothing."""
        model = GaussianProcessModel(Dataset(1), settings)
        assert model.log_marginal_likelihood(np.array([0.0])) == 0.0
        assert model.log_posterior(np.array([0.0])) == pytest.approx(norm.logpdf(0.0))

    def test_likelihood_is_finite(self, dataset, settings):
        """Test that the evidence is finite for reasonable length-scales."""
        model = GaussianProcessModel(dataset, settings)
        assert np.isfinite(model.log_marginal_likelihood(np.log([0.5, 0.5])))

    def test_likelihood_prefers_plausible_length_scales(self, dataset):
        """Test that absurdly short length-scales have lower evidence."""
        model = GaussianProcessModel(dataset, MCMCSettings(noise=1e-4))

        plausible = model.log_marginal_likelihood(np.log([0.5, 0.5]))
        tiny = model.log_marginal_likelihood(np.log([1e-4, 1e-4]))

        assert plausible > tiny

    def test_indefinite_covariance_gives_minus_infinity(self, dataset, settings):
        """Test that an unfactorizable covariance maps to -inf."""
        model = GaussianProcessModel(dataset, settings)
        model.kernel = lambda X1, X2, length_scales, variance: -np.ones((len(X1), len(X2)))

        assert model.log_marginal_likelihood(np.array([0.0, 0.0])) == -np.inf


class TestModelPrediction:
    """Test suite for the predictive distribution record."""

    @pytest.fixture
    def prediction(self):
        return ModelPrediction(
            mean=1.0, variance=4.0, std=2.0, model_type=ModelType.GAUSSIAN_PROCESS
        )

    def test_confidence_interval(self, prediction):
        """Test the central interval of a Gaussian prediction."""
        low, high = prediction.confidence_interval(0.95)

        assert low == pytest.approx(1.0 - 1.959964 * 2.0, abs=1e-5)
        assert high == pytest.approx(1.0 + 1.959964 * 2.0, abs=1e-5)

    def test_pdf(self, prediction):
        """Test the predictive density."""
        assert prediction.pdf(1.0) == pytest.approx(norm.pdf(0.0) / 2.0)
        assert prediction.pdf(3.0) == pytest.approx(norm.pdf(1.0) / 2.0)

    def test_pdf_degenerate(self):
        """Test the density of a deterministic prediction."""
        prediction = ModelPrediction(
            mean=0.5, variance=0.0, std=0.0, model_type=ModelType.GAUSSIAN_PROCESS
        )
        assert prediction.pdf(0.5) == float("inf")
        assert prediction.pdf(0.6) == 0.0

    def test_sample(self, prediction):
        """Test drawing from the predictive distribution."""
        draws = prediction.sample(np.random.default_rng(0), size=5000)

        assert draws.shape == (5000,)
        assert np.mean(draws) == pytest.approx(1.0, abs=0.1)
        assert np.std(draws) == pytest.approx(2.0, abs=0.1)

    def test_frozen(self, prediction):
        """Test that predictions cannot be modified."""
        with pytest.raises(ValueError):
            prediction.mean = 3.0
