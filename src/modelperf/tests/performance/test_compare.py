"""
Tests for comparing the performance of several models.
"""

import warnings
from dataclasses import replace

import numpy as np
import pandas as pd
import pytest

from modelperf.errors import HeterogeneousDataWarning, InapplicableModelWarning
from modelperf.models.families import LinearFit, ModelInfo
from modelperf.performance.compare import (
    compare_performance,
    fit_on_same_data,
    rank_performance,
)


LM_COLUMNS = ["Name", "Model", "AIC", "BIC", "R2", "R2_adjusted", "RMSE", "Sigma"]


def heterogeneous_warnings(caught):
    return [w for w in caught if issubclass(w.category, HeterogeneousDataWarning)]


def test_compare_linear_models_on_same_data(lm1, lm2, lm3):
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        comparison = compare_performance(lm1, lm2, lm3, verbose=True)

    assert comparison.columns == LM_COLUMNS
    assert list(comparison.table["Name"]) == ["lm1", "lm2", "lm3"]
    assert list(comparison.table["Model"]) == ["lm", "lm", "lm"]
    assert not heterogeneous_warnings(caught)
    assert comparison.kind == "compare_performance"
    assert len(comparison) == 3


def test_compare_warns_once_for_different_data(lm1, lm2, lm3, lm4):
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        comparison = compare_performance(lm1, lm2, lm3, lm4, verbose=True)

    assert comparison.columns == LM_COLUMNS
    assert len(comparison) == 4
    emitted = heterogeneous_warnings(caught)
    assert len(emitted) == 1
    assert "probably not all models were fit from same data" in str(
        emitted[0].message
    )


def test_compare_quiet_for_different_data(lm1, lm2, lm3, lm4):
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        comparison = compare_performance(lm1, lm2, lm3, lm4, verbose=False)

    assert comparison.columns == LM_COLUMNS
    assert not heterogeneous_warnings(caught)


def test_compare_rows_match_single_model_performance(lm1, lm2):
    from modelperf.performance.dispatch import model_performance

    comparison = compare_performance(lm1, lm2)
    single = model_performance(lm2)
    row = comparison.table.iloc[1]
    for column in single.columns:
        assert row[column] == pytest.approx(single[column])


def test_compare_accepts_statsmodels_results(ols_results):
    comparison = compare_performance(ols_results["lm1"], ols_results["lm2"])
    assert list(comparison.table["Name"]) == ["Model1", "Model2"]
    assert comparison.columns == LM_COLUMNS


def test_compare_explicit_names(lm1, lm2):
    comparison = compare_performance(lm1, lm2, names=["small", "large"])
    assert list(comparison.table["Name"]) == ["small", "large"]


@pytest.mark.parametrize(
    "names",
    [["same", "same"], ["only_one"]],
)
def test_compare_rejects_invalid_names(lm1, lm2, names):
    with pytest.raises(ValueError):
        compare_performance(lm1, lm2, names=names)


def test_compare_requires_a_model():
    with pytest.raises(ValueError):
        compare_performance()


def test_compare_common_metrics(lm1, lm2):
    comparison = compare_performance(lm1, lm2, metrics="common")
    assert comparison.columns == ["Name", "Model", "AIC", "BIC", "R2", "RMSE"]


def test_compare_keeps_partially_missing_columns(lm1, sampled_fit):
    no_sigma = replace(sampled_fit, sigma=None)
    comparison = compare_performance(lm1, no_sigma, verbose=False)

    assert list(comparison.table["Model"]) == ["lm", "stanreg"]
    assert comparison.columns.index("Name") == 0
    assert comparison.columns.index("Model") == 1
    assert "Sigma" in comparison.columns
    assert np.isnan(comparison.table.loc[1, "Sigma"])
    assert np.isnan(comparison.table.loc[0, "LOOIC"])
    assert not np.isnan(comparison.table.loc[1, "LOOIC"])
    assert comparison.columns.index("AIC") < comparison.columns.index("LOOIC")


def test_compare_mixed_families_with_family_options(lm1, sampled_fit):
    comparison = compare_performance(lm1, sampled_fit, verbose=False, ci=0.89)

    assert list(comparison.table["Model"]) == ["lm", "stanreg"]
    assert comparison.diagnostics["stan_lm"].r2_bayes.ci == 0.89
    assert not np.isnan(comparison.table.loc[0, "AIC"])


def test_compare_linear_with_averaged_bayes_factor(lm1, bayesfactor_fit):
    comparison = compare_performance(
        lm1,
        bayesfactor_fit,
        verbose=False,
        average=True,
        n_draws=500,
        rng=np.random.default_rng(3),
    )
    assert list(comparison.table["Model"]) == ["lm", "BFBayesFactor"]
    assert not np.isnan(comparison.table.loc[1, "R2"])


def test_compare_inapplicable_model_keeps_identity_row(lm1, bayesfactor_fit):
    correlation = replace(
        bayesfactor_fit,
        info=ModelInfo(is_linear=True, is_correlation=True),
    )
    with pytest.warns(InapplicableModelWarning):
        comparison = compare_performance(lm1, correlation, verbose=False)

    row = comparison.table.iloc[1]
    assert row["Model"] == "BFBayesFactor"
    assert np.isnan(row["AIC"])
    assert comparison.diagnostics["bf"] is None
    assert comparison.diagnostics["lm1"] is not None


def test_compare_rank(lm1, lm2, lm3):
    comparison = compare_performance(lm1, lm2, lm3, rank=True)
    scores = comparison.table["Performance_Score"]

    assert comparison.ranked
    assert comparison.columns[-1] == "Performance_Score"
    assert scores.is_monotonic_decreasing
    assert scores.between(0.0, 1.0).all()
    assert comparison.table.iloc[-1]["Name"] == "lm1"
    assert scores.iloc[-1] == pytest.approx(0.0)


def test_rank_performance_orientation():
    table = pd.DataFrame(
        {
            "Name": ["a", "b"],
            "Model": ["lm", "lm"],
            "AIC": [10.0, 20.0],
            "R2": [0.2, 0.4],
        }
    )
    ranked = rank_performance(table)
    assert list(ranked["Name"]) == ["a", "b"]
    assert list(ranked["Performance_Score"]) == pytest.approx([0.5, 0.5])

    table["R2"] = [0.4, 0.2]
    ranked = rank_performance(table)
    assert list(ranked["Name"]) == ["a", "b"]
    assert list(ranked["Performance_Score"]) == pytest.approx([1.0, 0.0])


def test_rank_performance_skips_incomplete_indices():
    table = pd.DataFrame(
        {
            "Name": ["a", "b"],
            "Model": ["lm", "stanreg"],
            "AIC": [10.0, np.nan],
            "RMSE": [2.0, 1.0],
        }
    )
    ranked = rank_performance(table)
    assert list(ranked["Name"]) == ["b", "a"]
    assert list(ranked["Performance_Score"]) == pytest.approx([1.0, 0.0])


def test_fit_on_same_data_compares_values():
    y = np.array([1.0, 2.0, np.nan, 4.0])
    fitted = np.array([1.0, 2.0, 3.0, 4.0])
    a = LinearFit(response=y, fitted=fitted, n_coefficients=1)
    b = LinearFit(response=y.copy(), fitted=fitted, n_coefficients=2)
    shifted = LinearFit(response=y + 1.0, fitted=fitted, n_coefficients=1)

    assert fit_on_same_data([a, b])
    assert not fit_on_same_data([a, shifted])
