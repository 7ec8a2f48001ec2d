"""
Command-line interface for bayesopt-mcmc.

This module provides a CLI for inspecting settings and for suggesting the
next query point from a CSV file of observations.
"""

import json
import logging
from typing import List, Optional, Tuple

import click
import numpy as np
import pandas as pd

from bayesopt_mcmc import __version__
from bayesopt_mcmc.core.config import MCMCSettings
from bayesopt_mcmc.core.dataset import Dataset
from bayesopt_mcmc.core.exceptions import PosteriorModelError
from bayesopt_mcmc.posterior import MCMCModel, create_posterior_model
from bayesopt_mcmc.utils.sampling import latin_hypercube_sampling

logger = logging.getLogger(__name__)


def _parse_bounds(values: Tuple[str, ...]) -> List[Tuple[float, float]]:
    bounds = []
    for value in values:
        try:
            low, high = (float(part) for part in value.split(","))
        except ValueError:
            raise click.BadParameter(f"Expected 'low,high', got '{value}'", param_hint="--bounds")
        bounds.append((low, high))
    return bounds


@click.group()
@click.version_option(version=__version__)
@click.option('--debug/--no-debug', default=False, help='Enable debug logging')
@click.option('--config', type=click.Path(exists=True), help='JSON settings file')
@click.pass_context
def main(ctx: click.Context, debug: bool, config: Optional[str]) -> None:
    """
    bayesopt-mcmc: MCMC posterior models for Bayesian optimization.
    """
    overrides = {}
    if config:
        with open(config, 'r') as f:
            overrides = json.load(f)
    if debug:
        overrides["log_level"] = "DEBUG"

    try:
        settings = MCMCSettings(**overrides)
    except ValueError as e:
        raise click.ClickException(f"Invalid settings: {e}")

    logging.basicConfig(
        level=settings.log_level.value,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )
    ctx.obj = settings


@main.command()
@click.pass_obj
def info(settings: MCMCSettings) -> None:
    """Show version and effective settings."""
    click.echo(f"bayesopt-mcmc {__version__}")
    click.echo("=" * 40)
    for key, value in settings.to_dict().items():
        click.echo(f"{key}: {value}")


@main.command()
@click.argument('data_file', type=click.Path(exists=True))
@click.option('--objective', default='y', help='Name of the objective column')
@click.option('--bounds', '-b', multiple=True, help="Search bounds 'low,high', one per input column")
@click.option('--n-candidates', default=1000, help='Candidate points per criterion')
@click.option('--output', '-o', type=click.Path(), help='Write the suggestion as JSON')
@click.pass_obj
def suggest(
    settings: MCMCSettings,
    data_file: str,
    objective: str,
    bounds: Tuple[str, ...],
    n_candidates: int,
    output: Optional[str],
) -> None:
    """Suggest the next point to evaluate from observations in DATA_FILE (CSV)."""
    df = pd.read_csv(data_file)
    if objective not in df.columns:
        raise click.ClickException(f"Objective column '{objective}' not found in {data_file}")

    inputs = [column for column in df.columns if column != objective]
    X = df[inputs].to_numpy(dtype=float)
    y = df[objective].to_numpy(dtype=float)
    click.echo(f"Loaded {len(df)} observations with inputs {inputs}")

    if bounds:
        search_bounds = _parse_bounds(bounds)
        if len(search_bounds) != len(inputs):
            raise click.BadParameter(
                f"Got {len(search_bounds)} bounds for {len(inputs)} inputs", param_hint="--bounds"
            )
    else:
        search_bounds = list(zip(X.min(axis=0), X.max(axis=0)))

    rng = np.random.default_rng(settings.random_seed)
    try:
        dataset = Dataset(len(inputs), X, y)
        model = create_posterior_model(len(inputs), settings, rng=rng, dataset=dataset)
        model.fit_surrogate_model()

        # One Hedge rotation; single criteria rotate after one step
        model.set_first_criterium()
        rotated = False
        while not rotated:
            candidates = latin_hypercube_sampling(search_bounds, n_candidates, rng=rng)
            values = [model.evaluate_criteria(candidate) for candidate in candidates]
            rotated = model.set_next_criterium(candidates[int(np.argmax(values))])

        best, label = model.get_best_criteria()
        model.update_criteria(best)
        prediction = model.get_prediction(best)
    except (PosteriorModelError, ValueError) as e:
        raise click.ClickException(str(e))

    suggestion = {
        "point": dict(zip(inputs, best.tolist())),
        "criteria": label,
        "predicted_mean": prediction.mean,
        "predicted_std": prediction.std,
        "predicted_interval": list(prediction.confidence_interval(0.95)),
        "n_particles": model.n_particles,
    }
    if isinstance(model, MCMCModel):
        suggestion["length_scales"] = np.exp(model.hyperparameters).tolist()

    click.echo(f"Suggested point: {suggestion['point']}")
    click.echo(f"Criteria: {label}")
    click.echo(f"Prediction: {prediction.mean:.4f} +/- {prediction.std:.4f}")
    low, high = suggestion["predicted_interval"]
    click.echo(f"95% interval: [{low:.4f}, {high:.4f}]")

    if output:
        with open(output, 'w') as f:
            json.dump(suggestion, f, indent=2)
        click.echo(f"Suggestion saved to {output}")


if __name__ == '__main__':
    main()
