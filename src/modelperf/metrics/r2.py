"""
Coefficients of determination.

Frequentist variants (OLS R2, adjusted R2, Tjur's and Nagelkerke's R2) are
closed-form. The Bayesian R2 follows Gelman, Goodrich, Gabry & Vehtari
(2018), "R-squared for Bayesian regression models": for every posterior draw
the variance of the expected response is divided by itself plus the
(modelled) residual variance. The LOO-adjusted R2 replaces the in-sample
expected response with its leave-one-out counterpart obtained by
Pareto-smoothed importance weighting.
"""

import warnings
from dataclasses import dataclass, field

import numpy as np
from beartype import beartype
from beartype.typing import Dict, Mapping, Optional, Tuple
from jaxtyping import Float, jaxtyped

from modelperf.constants import MODELPERF_CI
from modelperf.metrics.information_criteria import (
    relative_efficiency,
    require_cross_validation,
)
from modelperf.models.families import ModelInfo, SampledFit

__all__ = [
    "R2Provenance",
    "r2_adjusted",
    "r2_bayes",
    "r2_bayes_draws",
    "r2_loo",
    "r2_nagelkerke",
    "r2_ols",
    "r2_tjur",
    "summarize_r2_draws",
]


@jaxtyped(typechecker=beartype)
def r2_ols(
    response: Float[np.ndarray, "obs"],
    fitted: Float[np.ndarray, "obs"],
) -> float:
    """
    Proportion of variance explained by a least squares fit with intercept.

    Examples:
        >>> y = np.array([1.0, 2.0, 3.0, 4.0])
        >>> r2_ols(y, np.array([1.1, 1.9, 3.2, 3.8]))
        0.98
    """
    rss = np.sum((response - fitted) ** 2)
    tss = np.sum((response - response.mean()) ** 2)
    return float(np.round(1.0 - rss / tss, 12))


@beartype
def r2_adjusted(r2: float, n_obs: int, n_coefficients: int) -> float:
    """
    R2 adjusted for the number of coefficients (intercept included).

    Examples:
        >>> round(r2_adjusted(0.5, 101, 11), 4)
        0.4444
    """
    return 1.0 - (1.0 - r2) * (n_obs - 1) / (n_obs - n_coefficients)


@jaxtyped(typechecker=beartype)
def r2_tjur(
    response: Float[np.ndarray, "obs"],
    fitted: Float[np.ndarray, "obs"],
) -> float:
    """
    Tjur's coefficient of discrimination for binary outcomes: the difference
    of the mean predicted probabilities of the two outcome groups.

    Examples:
        >>> r2_tjur(np.array([0.0, 0.0, 1.0, 1.0]), np.array([0.2, 0.4, 0.6, 0.8]))
        0.4
    """
    events = response == 1
    if events.all() or not events.any():
        raise ValueError("Tjur's R2 needs both outcome classes")
    return float(np.round(fitted[events].mean() - fitted[~events].mean(), 12))


@beartype
def r2_nagelkerke(
    log_likelihood: float, null_log_likelihood: float, n_obs: int
) -> float:
    """
    Nagelkerke's pseudo-R2: Cox & Snell's R2 rescaled to a maximum of one.
    """
    cox_snell = 1.0 - np.exp(2.0 / n_obs * (null_log_likelihood - log_likelihood))
    maximum = 1.0 - np.exp(2.0 / n_obs * null_log_likelihood)
    return float(cox_snell / maximum)


@dataclass(frozen=True)
class R2Provenance:
    """
    Summary of a Bayesian R2 posterior.

    Attributes:
        estimates: Point estimates by index name (e.g. "R2", "R2_marginal").
        se: Posterior standard deviations by index name.
        ci_low: Lower credible interval bounds by index name.
        ci_high: Upper credible interval bounds by index name.
        ci: Probability mass of the credible intervals.
        ci_method: Interval method.
        centrality: Point estimate used.
        draws: The posterior draws by index name.
    """

    estimates: Dict[str, float]
    se: Dict[str, float]
    ci_low: Dict[str, float]
    ci_high: Dict[str, float]
    ci: float = 0.95
    ci_method: str = "HDI"
    centrality: str = "median"
    draws: Dict[str, np.ndarray] = field(default_factory=dict, repr=False)

    def interval(self, name: str = "R2") -> Tuple[float, float]:
        return self.ci_low[name], self.ci_high[name]


def _residual_variance(
    epred: np.ndarray,
    response: np.ndarray,
    info: ModelInfo,
    sigma: Optional[np.ndarray],
) -> np.ndarray:
    if info.is_linear and sigma is not None:
        return np.asarray(sigma, dtype=float) ** 2
    if info.is_binomial:
        return np.mean(epred * (1.0 - epred), axis=1)
    if info.family == "poisson":
        return np.mean(epred, axis=1)
    return np.var(response[np.newaxis, :] - epred, axis=1, ddof=1)


@jaxtyped(typechecker=beartype)
def r2_bayes_draws(
    epred: Float[np.ndarray, "draw obs"],
    response: Float[np.ndarray, "obs"],
    info: ModelInfo,
    sigma: Optional[np.ndarray] = None,
) -> Float[np.ndarray, "draw"]:
    """
    Posterior draws of the Bayesian R2.

    The residual variance is modelled where the family allows it (sigma^2
    for gaussian models, ``mu * (1 - mu)`` for binomial and ``mu`` for
    Poisson models) and residual-based otherwise.
    """
    if sigma is not None and np.asarray(sigma).shape[0] != epred.shape[0]:
        raise ValueError(
            f"{np.asarray(sigma).shape[0]} sigma draws for "
            f"{epred.shape[0]} draws of the expected response"
        )
    var_fit = np.var(epred, axis=1, ddof=1)
    var_res = _residual_variance(epred, response, info, sigma)
    return var_fit / (var_fit + var_res)


@beartype
def summarize_r2_draws(
    draws: Mapping[str, np.ndarray],
    ci: float = MODELPERF_CI,
) -> R2Provenance:
    """
    Summarize R2 draws by their median, standard deviation and highest
    density interval.
    """
    az = require_cross_validation()
    estimates, se, ci_low, ci_high = {}, {}, {}, {}
    for name, values in draws.items():
        values = np.asarray(values, dtype=float)
        low, high = az.hdi(values, hdi_prob=ci)
        estimates[name] = float(np.median(values))
        se[name] = float(np.std(values, ddof=1))
        ci_low[name] = float(low)
        ci_high[name] = float(high)
    return R2Provenance(
        estimates=estimates,
        se=se,
        ci_low=ci_low,
        ci_high=ci_high,
        ci=ci,
        draws={name: np.asarray(values) for name, values in draws.items()},
    )


@beartype
def r2_bayes(fit: SampledFit, ci: float = MODELPERF_CI) -> R2Provenance:
    """
    Bayesian R2 of a sampled model.

    Multilevel models with population-level predictions (``epred_fixed``)
    additionally get ``R2_marginal``; ``R2`` then is the conditional R2.
    """
    draws = {
        "R2": r2_bayes_draws(fit.epred, fit.response, fit.info, fit.sigma),
    }
    if fit.epred_fixed is not None:
        draws["R2_marginal"] = r2_bayes_draws(
            fit.epred_fixed, fit.response, fit.info, fit.sigma
        )
    return summarize_r2_draws(draws, ci=ci)


@beartype
def r2_loo(
    fit: SampledFit,
    n_bootstrap: int = 4000,
    rng: Optional[np.random.Generator] = None,
) -> float:
    """
    LOO-adjusted R2.

    Leave-one-out predictions are importance-weighted averages of the
    expected response with Pareto-smoothed weights. The ratio of the LOO
    residual variance to the response variance is bootstrapped with
    Dirichlet weights (Bayesian bootstrap) and the median returned.
    """
    az = require_cross_validation()
    rng = rng if rng is not None else np.random.default_rng()
    chains, draws, n = fit.log_likelihood.shape
    if chains * draws != fit.n_draws:
        raise ValueError(
            f"{chains * draws} log-likelihood draws for {fit.n_draws} draws "
            "of the expected response"
        )
    log_ratios = -fit.log_likelihood.reshape(chains * draws, n).T
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        log_weights, _ = az.psislw(log_ratios, reff=relative_efficiency(fit))
    weights = np.exp(np.asarray(log_weights)).T
    weights = weights / weights.sum(axis=0, keepdims=True)
    epred_loo = np.sum(weights * fit.epred, axis=0)

    y = fit.response
    error = epred_loo - y
    bootstrap = rng.dirichlet(np.ones(n), size=n_bootstrap)
    correction = n / (n - 1)
    var_y = (bootstrap @ y**2 - (bootstrap @ y) ** 2) * correction
    var_error = (bootstrap @ error**2 - (bootstrap @ error) ** 2) * correction
    return float(np.median(1.0 - var_error / var_y))
