"""Command line interface."""

from pathlib import Path

import click
import pandas as pd
import statsmodels.api as sm
import statsmodels.formula.api as smf
from returns.result import Failure

from modelperf import __version__
from modelperf.io.tables import print_table, save_tables
from modelperf.logging import configure_logging
from modelperf.models.families import FittedModel
from modelperf.models.introspection import from_statsmodels
from modelperf.performance.compare import compare_performance


logger = configure_logging(__name__)

_GLM_FAMILIES = {
    "binomial": sm.families.Binomial,
    "poisson": sm.families.Poisson,
}


def fit_formula(formula: str, data: pd.DataFrame, family: str) -> FittedModel:
    """Fit ``formula`` by least squares (gaussian) or as a GLM."""
    if family == "gaussian":
        result = smf.ols(formula, data=data).fit()
    else:
        result = smf.glm(formula, data=data, family=_GLM_FAMILIES[family]()).fit()
    return from_statsmodels(result, name=formula)


@click.group()
@click.version_option(version=__version__)
def main():
    """Command line interface for modelperf."""


@main.command()
@click.argument(
    "data", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option(
    "-f",
    "--formula",
    "formulas",
    multiple=True,
    required=True,
    help="Model formula, e.g. 'y ~ x1 + x2'. Repeat for every model.",
)
@click.option(
    "--family",
    type=click.Choice(["gaussian", "binomial", "poisson"]),
    default="gaussian",
    show_default=True,
)
@click.option(
    "-m",
    "--metrics",
    multiple=True,
    default=("all",),
    show_default=True,
    help="'all', 'common' or metric names. Repeat for several metrics.",
)
@click.option("--rank", is_flag=True, help="Rank models by performance score.")
@click.option("--quiet", is_flag=True, help="Suppress advisory warnings.")
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Also save the table as CSV, Markdown and LaTeX.",
)
def compare(data, formulas, family, metrics, rank, quiet, output_dir):
    """Fit every formula to the CSV file DATA and compare the models."""
    frame = pd.read_csv(data)
    logger.info(f"Loaded {data} with {len(frame)} rows")
    fits = [fit_formula(formula, frame, family) for formula in formulas]
    comparison = compare_performance(
        *fits, metrics=list(metrics), rank=rank, verbose=not quiet
    )
    print_table(comparison, title="Comparison of model performance")

    if output_dir is not None:
        saved = save_tables(comparison, output_dir=output_dir)
        if isinstance(saved, Failure):
            raise click.ClickException(f"Could not save tables: {saved.failure()}")
