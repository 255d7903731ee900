from dataclasses import replace

import numpy as np
import pytest

from modelperf.metrics.r2 import (
    r2_adjusted,
    r2_bayes,
    r2_bayes_draws,
    r2_loo,
    r2_nagelkerke,
    r2_ols,
    r2_tjur,
    summarize_r2_draws,
)
from modelperf.models.families import ModelInfo


def test_r2_ols_matches_statsmodels(ols_results):
    result = ols_results["lm3"]
    r2 = r2_ols(result.model.endog, np.asarray(result.fittedvalues))
    assert r2 == pytest.approx(result.rsquared)
    assert r2_adjusted(r2, int(result.nobs), 6) == pytest.approx(
        result.rsquared_adj
    )


def test_r2_tjur_requires_both_classes():
    with pytest.raises(ValueError, match="both outcome classes"):
        r2_tjur(np.ones(4), np.full(4, 0.7))


def test_r2_nagelkerke_rescales_cox_snell(poisson_result):
    n = int(poisson_result.nobs)
    r2 = r2_nagelkerke(
        float(poisson_result.llf), float(poisson_result.llnull), n
    )
    cox_snell = poisson_result.pseudo_rsquared(kind="cs")
    maximum = 1.0 - np.exp(2.0 * poisson_result.llnull / n)
    assert r2 == pytest.approx(cox_snell / maximum)
    assert cox_snell < r2 <= 1.0


def test_r2_bayes_draws_are_proportions(sampled_fit):
    draws = r2_bayes_draws(
        sampled_fit.epred, sampled_fit.response, sampled_fit.info, sampled_fit.sigma
    )
    assert draws.shape == (sampled_fit.n_draws,)
    assert np.all((draws > 0.0) & (draws < 1.0))


def test_r2_bayes_draws_binomial_variance():
    epred = np.array([[0.2, 0.8], [0.5, 0.5]])
    draws = r2_bayes_draws(
        epred, np.array([0.0, 1.0]), ModelInfo.from_family("binomial")
    )
    var_fit = np.var(epred[0], ddof=1)
    assert draws[0] == pytest.approx(var_fit / (var_fit + 0.16))
    assert draws[1] == 0.0


def test_r2_bayes_draws_rejects_mismatched_sigma(sampled_fit):
    with pytest.raises(ValueError, match="sigma draws"):
        r2_bayes_draws(
            sampled_fit.epred,
            sampled_fit.response,
            sampled_fit.info,
            sampled_fit.sigma[:5],
        )


def test_r2_bayes_summary(sampled_fit):
    provenance = r2_bayes(sampled_fit, ci=0.9)
    r2 = provenance.estimates["R2"]
    low, high = provenance.interval()

    assert set(provenance.estimates) == {"R2"}
    assert provenance.ci_method == "HDI"
    assert low < r2 < high
    assert provenance.se["R2"] > 0.0
    assert r2 == pytest.approx(np.median(provenance.draws["R2"]))


def test_r2_bayes_close_to_ols(sampled_fit):
    ols_fitted = sampled_fit.epred.mean(axis=0)
    ols_r2 = r2_ols(sampled_fit.response, ols_fitted)
    assert r2_bayes(sampled_fit).estimates["R2"] == pytest.approx(ols_r2, abs=0.1)


def test_summarize_r2_draws_interval_width():
    draws = np.random.default_rng(0).beta(20, 10, size=4000)
    narrow = summarize_r2_draws({"R2": draws}, ci=0.5)
    wide = summarize_r2_draws({"R2": draws}, ci=0.99)
    assert (narrow.ci_high["R2"] - narrow.ci_low["R2"]) < (
        wide.ci_high["R2"] - wide.ci_low["R2"]
    )


def test_r2_loo_close_to_in_sample_r2(sampled_fit):
    ols_r2 = r2_ols(sampled_fit.response, sampled_fit.epred.mean(axis=0))
    loo = r2_loo(sampled_fit, rng=np.random.default_rng(4))
    assert 0.0 < loo < 1.0
    assert loo == pytest.approx(ols_r2, abs=0.1)


def test_r2_loo_rejects_mismatched_draws(sampled_fit):
    truncated = replace(
        sampled_fit,
        epred=sampled_fit.epred[:100],
        sigma=sampled_fit.sigma[:100],
    )
    with pytest.raises(ValueError, match="draws"):
        r2_loo(truncated)
