"""
Information criteria.

AIC and BIC are computed from the maximized log-likelihood. The Bayesian
criteria (ELPD/LOOIC and WAIC) are estimated from pointwise log-likelihood
draws with arviz, which is a required backend: `require_cross_validation`
raises `MissingDependencyError` when it cannot be imported.
"""

import importlib
import warnings
from types import ModuleType

import numpy as np
from beartype import beartype
from beartype.typing import Dict

from modelperf.errors import MissingDependencyError
from modelperf.logging import configure_logging
from modelperf.models.families import SampledFit

__all__ = [
    "aic",
    "bic",
    "looic",
    "relative_efficiency",
    "require_cross_validation",
    "waic",
]

logger = configure_logging(__name__)


@beartype
def aic(log_likelihood: float, n_parameters: int) -> float:
    """
    Akaike information criterion.

    Examples:
        >>> aic(-10.0, 3)
        26.0
    """
    return float(-2.0 * log_likelihood + 2.0 * n_parameters)


@beartype
def bic(log_likelihood: float, n_parameters: int, n_obs: int) -> float:
    """
    Bayesian (Schwarz) information criterion.

    Examples:
        >>> round(bic(-10.0, 3, 100), 4)
        33.8155
    """
    return float(-2.0 * log_likelihood + np.log(n_obs) * n_parameters)


def require_cross_validation() -> ModuleType:
    """
    Import the leave-one-out backend.

    Raises:
        MissingDependencyError: If arviz is not installed.
    """
    try:
        return importlib.import_module("arviz")
    except ImportError as e:
        raise MissingDependencyError(
            "Package `arviz` required for LOO and WAIC. Please install it."
        ) from e


def _as_inference_data(fit: SampledFit):
    az = require_cross_validation()
    return az.from_dict(log_likelihood={"obs": fit.log_likelihood})


@beartype
def relative_efficiency(fit: SampledFit) -> float:
    """
    Relative effective sample size of the pointwise likelihood draws.

    The mean over observations of the effective sample size of
    ``exp(log_likelihood)``, divided by the number of draws. A single chain
    counts as fully efficient.
    """
    az = require_cross_validation()
    chains, draws, _ = fit.log_likelihood.shape
    if chains == 1:
        return 1.0
    likelihood = az.convert_to_dataset({"likelihood": np.exp(fit.log_likelihood)})
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        ess = az.ess(likelihood, method="mean")["likelihood"].values
    return float(np.nanmean(ess) / (chains * draws))


@beartype
def looic(fit: SampledFit) -> Dict[str, float]:
    """
    Leave-one-out cross-validation information criterion.

    The expected log predictive density is estimated with Pareto-smoothed
    importance sampling.

    Returns:
        ``ELPD``, ``ELPD_SE``, ``LOOIC`` (``-2 * ELPD``) and ``LOOIC_SE``.
    """
    az = require_cross_validation()
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        loo = az.loo(
            _as_inference_data(fit),
            pointwise=True,
            reff=relative_efficiency(fit),
        )
    bad_k = int(np.sum(np.asarray(loo.pareto_k) > 0.7))
    if bad_k:
        logger.debug(
            f"{bad_k} Pareto k estimates above 0.7, LOO estimate may be unreliable"
        )
    elpd = float(loo.elpd_loo)
    elpd_se = float(loo.se)
    return {
        "ELPD": elpd,
        "ELPD_SE": elpd_se,
        "LOOIC": -2.0 * elpd,
        "LOOIC_SE": 2.0 * elpd_se,
    }


@beartype
def waic(fit: SampledFit) -> float:
    """Widely applicable information criterion on the deviance scale."""
    az = require_cross_validation()
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        result = az.waic(_as_inference_data(fit))
    return -2.0 * float(result.elpd_waic)
