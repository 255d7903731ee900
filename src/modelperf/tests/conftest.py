import numpy as np
import pandas as pd
import pytest
import statsmodels.api as sm
import statsmodels.formula.api as smf
from scipy import stats
from scipy.special import expit
from sklearn.datasets import load_iris

from modelperf.models.families import (
    Algorithm,
    BayesFactorCandidate,
    BayesFactorFit,
    ModelInfo,
    SampledFit,
)
from modelperf.models.introspection import from_statsmodels


N_CHAINS = 4
N_DRAWS = 250


def exact_linear_posterior(rng, design, y, total_draws):
    """
    Draws from the posterior of a gaussian linear model under flat priors:
    scaled inverse chi-squared residual variance, multivariate normal
    coefficients given the variance.
    """
    n, p = design.shape
    beta_hat, *_ = np.linalg.lstsq(design, y, rcond=None)
    residuals = y - design @ beta_hat
    s2 = residuals @ residuals / (n - p)
    sig2 = s2 * (n - p) / rng.chisquare(n - p, size=total_draws)
    chol = np.linalg.cholesky(np.linalg.inv(design.T @ design))
    z = rng.standard_normal((total_draws, p))
    beta = beta_hat + (z @ chol.T) * np.sqrt(sig2)[:, np.newaxis]
    return beta, sig2


def gaussian_bic(design, y):
    n, p = design.shape
    beta_hat, *_ = np.linalg.lstsq(design, y, rcond=None)
    rss = np.sum((y - design @ beta_hat) ** 2)
    return n * np.log(rss / n) + (p + 1) * np.log(n)


@pytest.fixture(scope="session")
def iris():
    data = load_iris(as_frame=True)
    frame = data.frame.rename(
        columns={
            "sepal length (cm)": "Sepal_Length",
            "sepal width (cm)": "Sepal_Width",
            "petal length (cm)": "Petal_Length",
            "petal width (cm)": "Petal_Width",
        }
    )
    frame["Species"] = pd.Categorical.from_codes(
        frame.pop("target"), categories=list(data.target_names)
    )
    frame["Virginica"] = (frame["Species"] == "virginica").astype(float)
    return frame


@pytest.fixture(scope="session")
def ols_results(iris):
    return {
        "lm1": smf.ols("Sepal_Length ~ Species", data=iris).fit(),
        "lm2": smf.ols("Sepal_Length ~ Species + Petal_Length", data=iris).fit(),
        "lm3": smf.ols("Sepal_Length ~ Species * Petal_Length", data=iris).fit(),
        "lm4": smf.ols("Sepal_Length ~ Species", data=iris.iloc[1:]).fit(),
    }


@pytest.fixture(scope="session")
def lm1(ols_results):
    return from_statsmodels(ols_results["lm1"], name="lm1")


@pytest.fixture(scope="session")
def lm2(ols_results):
    return from_statsmodels(ols_results["lm2"], name="lm2")


@pytest.fixture(scope="session")
def lm3(ols_results):
    return from_statsmodels(ols_results["lm3"], name="lm3")


@pytest.fixture(scope="session")
def lm4(ols_results):
    return from_statsmodels(ols_results["lm4"], name="lm4")


@pytest.fixture(scope="session")
def logit_result(iris):
    return smf.glm(
        "Virginica ~ Sepal_Length", data=iris, family=sm.families.Binomial()
    ).fit()


@pytest.fixture(scope="session")
def poisson_result():
    rng = np.random.default_rng(7)
    x = rng.uniform(-1.0, 1.0, size=120)
    counts = rng.poisson(np.exp(0.5 + 0.8 * x))
    frame = pd.DataFrame({"x": x, "counts": counts.astype(float)})
    return smf.glm("counts ~ x", data=frame, family=sm.families.Poisson()).fit()


@pytest.fixture(scope="session")
def sampled_fit():
    """Exact posterior of y = 1 + 2x + e, 4 chains of 250 draws."""
    rng = np.random.default_rng(20240611)
    n_obs = 60
    x = rng.normal(size=n_obs)
    y = 1.0 + 2.0 * x + rng.normal(size=n_obs)
    design = np.column_stack([np.ones(n_obs), x])
    beta, sig2 = exact_linear_posterior(rng, design, y, N_CHAINS * N_DRAWS)
    sigma = np.sqrt(sig2)
    epred = beta @ design.T
    log_likelihood = stats.norm.logpdf(y, epred, sigma[:, np.newaxis])
    return SampledFit(
        response=y,
        log_likelihood=log_likelihood.reshape(N_CHAINS, N_DRAWS, n_obs),
        epred=epred,
        algorithm=Algorithm("sampling", chains=N_CHAINS, iterations=N_DRAWS),
        sigma=sigma,
        draws={"b_Intercept": beta[:, 0], "b_x": beta[:, 1]},
        name="stan_lm",
    )


@pytest.fixture(scope="session")
def sampled_logit_fit():
    """Laplace approximation of a logistic regression posterior."""
    rng = np.random.default_rng(11)
    n_obs = 80
    x = rng.normal(size=n_obs)
    y = rng.binomial(1, expit(-0.3 + 1.5 * x)).astype(float)
    design = np.column_stack([np.ones(n_obs), x])
    result = sm.GLM(y, design, family=sm.families.Binomial()).fit()
    beta = rng.multivariate_normal(
        result.params, result.cov_params(), size=N_CHAINS * N_DRAWS
    )
    epred = expit(beta @ design.T)
    log_likelihood = stats.bernoulli.logpmf(y, epred)
    return SampledFit(
        response=y,
        log_likelihood=log_likelihood.reshape(N_CHAINS, N_DRAWS, n_obs),
        epred=epred,
        info=ModelInfo.from_family("bernoulli"),
        name="stan_logit",
    )


@pytest.fixture(scope="session")
def regression_data():
    rng = np.random.default_rng(5)
    n_obs = 80
    x1 = rng.normal(size=n_obs)
    x2 = rng.normal(size=n_obs)
    y = 0.5 + 1.2 * x1 + 0.4 * x2 + rng.normal(scale=0.8, size=n_obs)
    return {"y": y, "x1": x1, "x2": x2}


def bayes_factor_candidate(rng, name, design, y, log_bf=0.0, n_draws=2000):
    coefficients, sig2 = exact_linear_posterior(rng, design, y, n_draws)
    return BayesFactorCandidate(
        name=name,
        log_bf=log_bf,
        design=design,
        coefficients=coefficients,
        sig2=sig2,
    )


@pytest.fixture(scope="session")
def bayesfactor_fit(regression_data):
    """
    Intercept-only denominator against ``x1`` and ``x1 + x2``, with Bayes
    factors from the BIC approximation.
    """
    rng = np.random.default_rng(3)
    y = regression_data["y"]
    ones = np.ones_like(y)
    designs = {
        "x1": np.column_stack([ones, regression_data["x1"]]),
        "x1 + x2": np.column_stack(
            [ones, regression_data["x1"], regression_data["x2"]]
        ),
    }
    bic_null = gaussian_bic(ones[:, np.newaxis], y)
    numerators = tuple(
        bayes_factor_candidate(
            rng,
            name,
            design,
            y,
            log_bf=float((bic_null - gaussian_bic(design, y)) / 2.0),
        )
        for name, design in designs.items()
    )
    return BayesFactorFit(
        response=y,
        denominator=BayesFactorCandidate(name="1"),
        numerators=numerators,
        name="bf",
    )


@pytest.fixture(scope="session")
def even_bayesfactor_fit(regression_data):
    """``x1 + x2`` against ``x1`` with a Bayes factor of exactly one."""
    rng = np.random.default_rng(13)
    y = regression_data["y"]
    ones = np.ones_like(y)
    return BayesFactorFit(
        response=y,
        denominator=bayes_factor_candidate(
            rng, "x1", np.column_stack([ones, regression_data["x1"]]), y
        ),
        numerators=(
            bayes_factor_candidate(
                rng,
                "x1 + x2",
                np.column_stack(
                    [ones, regression_data["x1"], regression_data["x2"]]
                ),
                y,
            ),
        ),
    )
