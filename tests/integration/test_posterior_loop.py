"""
Integration tests for the posterior layer.

This module runs the full outer-loop protocol against real collaborators:
- Slice-sampled Gaussian process particles
- Ensemble-averaged criteria with a GP-Hedge portfolio
- Incremental updates, resampling and the empirical Bayes alternative
- The command-line interface
"""

import json

import pytest
import numpy as np
import pandas as pd
from click.testing import CliRunner

from bayesopt_mcmc.cli import main
from bayesopt_mcmc.core.config import MCMCSettings
from bayesopt_mcmc.core.dataset import Dataset
from bayesopt_mcmc.posterior import EmpiricalBayesModel, MCMCModel, create_posterior_model
from bayesopt_mcmc.utils import latin_hypercube_sampling

BOUNDS = [(0.0, 1.0)]


def objective(x):
    """One-dimensional test function with its minimum near x = 0.76."""
    x = float(np.asarray(x).ravel()[0])
    return float(np.sin(6 * x) + 0.5 * x)


def run_iteration(model, rng, n_candidates=200):
    """One outer-loop iteration; returns the chosen point and its criterion."""
    model.set_first_criterium()
    rotated = False
    steps = 0
    while not rotated:
        candidates = latin_hypercube_sampling(BOUNDS, n_candidates, rng=rng, n_restarts=1)
        values = [model.evaluate_criteria(c) for c in candidates]
        rotated = model.set_next_criterium(candidates[int(np.argmax(values))])
        steps += 1

    best, label = model.get_best_criteria()
    model.update_criteria(best)
    return best, label, steps


@pytest.fixture
def initial_data():
    rng = np.random.default_rng(0)
    X = latin_hypercube_sampling(BOUNDS, 5, rng=rng)
    y = np.array([objective(x) for x in X])
    return X, y


class TestMCMCPosteriorLoop:
    """Integration tests for MCMCModel inside an optimization loop."""

    def test_hedge_loop(self, initial_data):
        """Test several iterations of the protocol with a Hedge portfolio."""
        X, y = initial_data
        rng = np.random.default_rng(1)
        settings = MCMCSettings(n_particles=4, criteria="hedge", burn_in=20, noise=1e-4)

        model = MCMCModel(1, settings, rng=rng)
        model.set_samples(X, y)
        model = model.resample()
        model.fit_surrogate_model()

        assert model.n_particles == 4
        assert model.criteria_requires_comparison() is True
        assert model.hyperparameters.shape == (4, 1)

        for _ in range(4):
            best, label, steps = run_iteration(model, rng)

            assert steps == 3
            assert label in {"ei", "lcb", "pi"}
            assert 0.0 <= best[0] <= 1.0

            model.add_sample(best, objective(best))
            model.update_surrogate_model()

            prediction = model.get_prediction(best)
            assert np.isfinite(prediction.mean)
            assert prediction.std < np.sqrt(settings.signal_variance)

        assert model.dataset.n_samples == 9
        for particle in model.particles:
            assert len(particle.criteria.queries) == 4
            assert particle.surrogate.dataset is model.dataset

    def test_averaged_criteria(self, initial_data):
        """Test that the averaged criteria equals the mean over real GP particles."""
        X, y = initial_data
        settings = MCMCSettings(n_particles=5, criteria="ei", burn_in=20, noise=1e-4)
        model = MCMCModel(1, settings, rng=np.random.default_rng(2), dataset=Dataset(1, X, y))
        model.fit_surrogate_model()

        for query in np.linspace(0, 1, 7):
            query = np.array([query])
            per_particle = [p.criteria.evaluate(query) for p in model.particles]
            assert model.evaluate_criteria(query) == pytest.approx(np.mean(per_particle))

    def test_single_criteria_rotates_once(self, initial_data):
        """Test that a single criteria finishes a rotation in one step."""
        X, y = initial_data
        settings = MCMCSettings(n_particles=3, criteria="lcb", burn_in=10, noise=1e-4)
        model = MCMCModel(1, settings, rng=np.random.default_rng(3), dataset=Dataset(1, X, y))
        model.fit_surrogate_model()

        best, label, steps = run_iteration(model, np.random.default_rng(4))

        assert steps == 1
        assert label == "lcb"

    def test_parallel_matches_sequential(self, initial_data):
        """Test that worker threads give the same ensemble decisions."""
        X, y = initial_data
        results = []
        for n_workers in (1, 4):
            settings = MCMCSettings(n_particles=4, burn_in=10, noise=1e-4, n_workers=n_workers)
            model = MCMCModel(1, settings, rng=np.random.default_rng(5), dataset=Dataset(1, X, y))
            model.fit_surrogate_model()
            results.append([model.evaluate_criteria(np.array([q])) for q in (0.1, 0.5, 0.9)])

        assert results[0] == results[1]

    def test_resample_keeps_dataset(self, initial_data):
        """Test that resampling builds a new ensemble on the same observations."""
        X, y = initial_data
        settings = MCMCSettings(n_particles=3, burn_in=10, noise=1e-4)
        model = MCMCModel(1, settings, rng=np.random.default_rng(6), dataset=Dataset(1, X, y))
        old_hyperparameters = model.hyperparameters

        new_model = model.resample()

        assert new_model is not model
        assert new_model.dataset is model.dataset
        assert new_model.n_particles == 3
        np.testing.assert_array_equal(model.hyperparameters, old_hyperparameters)


class TestEmpiricalPosteriorLoop:
    """Integration tests for the empirical Bayes alternative."""

    def test_loop(self, initial_data):
        """Test the same protocol on a MAP point estimate."""
        X, y = initial_data
        rng = np.random.default_rng(7)
        settings = MCMCSettings(learning_type="empirical", criteria="hedge", noise=1e-4)

        model = create_posterior_model(1, settings, rng=rng, dataset=Dataset(1, X, y))
        assert isinstance(model, EmpiricalBayesModel)
        model.fit_surrogate_model()

        for _ in range(3):
            best, label, steps = run_iteration(model, rng)
            assert steps == 3
            model.add_sample(best, objective(best))
            model.update_hyperparameters()
            model.fit_surrogate_model()

        assert model.dataset.n_samples == 8


class TestCLI:
    """Integration tests for the command-line interface."""

    @pytest.fixture
    def data_file(self, tmp_path, initial_data):
        X, y = initial_data
        path = tmp_path / "observations.csv"
        pd.DataFrame({"x": X[:, 0], "y": y}).to_csv(path, index=False)
        return path

    def test_info(self):
        """Test the info command."""
        result = CliRunner().invoke(main, ["info"])

        assert result.exit_code == 0
        assert "bayesopt-mcmc 0.1.0" in result.output
        assert "n_particles: 10" in result.output

    def test_suggest(self, tmp_path, data_file):
        """Test suggesting a point with a settings file and JSON output."""
        config = tmp_path / "settings.json"
        config.write_text(json.dumps({
            "n_particles": 3,
            "burn_in": 10,
            "noise": 1e-4,
            "criteria": "hedge",
            "random_seed": 0,
        }))
        output = tmp_path / "suggestion.json"

        result = CliRunner().invoke(main, [
            "--config", str(config),
            "suggest", str(data_file),
            "--bounds", "0,1",
            "--n-candidates", "100",
            "-o", str(output),
        ])

        assert result.exit_code == 0, result.output
        assert "Suggested point" in result.output

        suggestion = json.loads(output.read_text())
        assert 0.0 <= suggestion["point"]["x"] <= 1.0
        assert suggestion["criteria"] in {"ei", "lcb", "pi"}
        assert suggestion["n_particles"] == 3
        assert len(suggestion["length_scales"]) == 3
        assert all(len(row) == 1 for row in suggestion["length_scales"])
        low, high = suggestion["predicted_interval"]
        assert low <= suggestion["predicted_mean"] <= high
        assert "95% interval" in result.output

    def test_suggest_missing_objective(self, data_file):
        """Test that an unknown objective column is reported."""
        result = CliRunner().invoke(main, ["suggest", str(data_file), "--objective", "cost"])

        assert result.exit_code != 0
        assert "not found" in result.output

    def test_suggest_bad_bounds(self, data_file):
        """Test that malformed bounds are rejected."""
        result = CliRunner().invoke(main, ["suggest", str(data_file), "--bounds", "0;1"])
        assert result.exit_code != 0

    def test_invalid_settings(self, tmp_path, data_file):
        """Test that invalid settings are reported as a CLI error."""
        config = tmp_path / "settings.json"
        config.write_text(json.dumps({"noise": -1.0}))

        result = CliRunner().invoke(main, ["--config", str(config), "info"])

        assert result.exit_code != 0
        assert "Invalid settings" in result.output
