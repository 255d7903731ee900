"""
Comparison of the performance of several models.
"""

import warnings

import numpy as np
import pandas as pd
from beartype import beartype
from beartype.typing import Any, Dict, List, Optional, Sequence

from modelperf.constants import MODELPERF_VERBOSE
from modelperf.errors import HeterogeneousDataWarning
from modelperf.logging import configure_logging
from modelperf.models.families import FittedModel
from modelperf.models.introspection import as_fitted_model, get_response
from modelperf.performance.dispatch import model_performance
from modelperf.performance.metric_sets import MetricRequest
from modelperf.performance.results import (
    ComparisonTable,
    PerformanceDiagnostics,
    order_columns,
)

__all__ = [
    "LOWER_IS_BETTER",
    "compare_performance",
    "fit_on_same_data",
    "rank_performance",
]

logger = configure_logging(__name__)

# Indices for which smaller values indicate a better model.
LOWER_IS_BETTER = frozenset(
    {
        "AIC",
        "BIC",
        "LOOIC",
        "LOOIC_SE",
        "ELPD_SE",
        "WAIC",
        "RMSE",
        "Sigma",
        "Log_loss",
    }
)

_EXCLUDED_FROM_RANK = frozenset({"ELPD_SE", "LOOIC_SE"})


def fit_on_same_data(models: Sequence[FittedModel]) -> bool:
    """
    Whether all models share the same response: same number of observations
    and identical values (missing values compare equal).
    """
    responses = [get_response(model) for model in models]
    first = responses[0]
    return all(
        response.shape == first.shape
        and np.array_equal(response, first, equal_nan=True)
        for response in responses[1:]
    )


def _model_names(
    models: Sequence[FittedModel], names: Optional[Sequence[str]]
) -> List[str]:
    if names is not None:
        if len(names) != len(models):
            raise ValueError(f"Got {len(names)} names for {len(models)} models")
        resolved = [str(name) for name in names]
    else:
        resolved = [
            model.name if model.name is not None else f"Model{i}"
            for i, model in enumerate(models, start=1)
        ]
    if len(set(resolved)) != len(resolved):
        raise ValueError(f"Model names must be unique, got {resolved}")
    return resolved


@beartype
def rank_performance(table: pd.DataFrame) -> pd.DataFrame:
    """
    Add a ``Performance_Score`` column and sort models by it.

    Each index is rescaled to [0, 1] across models, reversed for indices
    where lower is better, so that 1 marks the best model on that index. The
    score is the mean over the rescaled indices. Indices without variation
    across models, or missing for some model, do not enter the score.
    """
    indices = [
        column
        for column in table.columns
        if column not in ("Name", "Model", "Response")
        and column not in _EXCLUDED_FROM_RANK
        and pd.api.types.is_numeric_dtype(table[column])
    ]
    rescaled = {}
    for column in indices:
        values = table[column].astype(float)
        if values.isna().any():
            continue
        spread = values.max() - values.min()
        if spread == 0:
            continue
        normalized = (values - values.min()) / spread
        if column in LOWER_IS_BETTER:
            normalized = 1.0 - normalized
        rescaled[column] = normalized

    ranked = table.copy()
    if rescaled:
        ranked["Performance_Score"] = pd.DataFrame(rescaled).mean(axis=1)
    else:
        ranked["Performance_Score"] = np.nan
    logger.debug(f"ranking on {sorted(rescaled)}")
    return ranked.sort_values(
        "Performance_Score", ascending=False, kind="stable"
    ).reset_index(drop=True)


def compare_performance(
    *models: Any,
    metrics: MetricRequest = "all",
    rank: bool = False,
    verbose: bool = MODELPERF_VERBOSE,
    names: Optional[Sequence[str]] = None,
    **kwargs: Any,
) -> ComparisonTable:
    """
    Compute and compare indices of performance of several models.

    Args:
        *models: Fitted-model records, statsmodels results or arviz
            InferenceData objects; model families may be mixed.
        metrics: ``"all"``, ``"common"`` or a collection of metric names,
            resolved for each model's family.
        rank: Add ``Performance_Score`` and sort models by it.
        verbose: Warn when the models were probably not fit on the same
            data.
        names: Names of the models. Defaults to the records' names, then
            ``Model1``, ``Model2``, ...
        **kwargs: Passed to `model_performance`.

    Returns:
        One row per model with ``Name`` and ``Model`` first and the indices in
        canonical order. Indices missing for some models are kept as NaN.
    """
    if not models:
        raise ValueError("At least one model is required")
    fits = [as_fitted_model(model) for model in models]
    model_names = _model_names(fits, names)

    if verbose and len(fits) > 1 and not fit_on_same_data(fits):
        warnings.warn(
            "When comparing models, please note that probably not all models "
            "were fit from same data.",
            HeterogeneousDataWarning,
            stacklevel=2,
        )

    rows: List[Dict[str, Any]] = []
    diagnostics: Dict[str, Optional[PerformanceDiagnostics]] = {}
    for name, fit in zip(model_names, fits):
        performance = model_performance(
            fit, metrics=metrics, verbose=verbose, **kwargs
        )
        row: Dict[str, Any] = {"Name": name, "Model": fit.family.value}
        if performance is None:
            diagnostics[name] = None
        else:
            row.update(performance.to_dict())
            diagnostics[name] = performance.diagnostics
        rows.append(row)

    table = pd.DataFrame(rows)
    table = table[order_columns(table.columns)]
    if rank:
        table = rank_performance(table)
    return ComparisonTable(table=table, diagnostics=diagnostics, ranked=rank)
