"""
Per-model performance dispatch.

`model_performance` converts its argument into a fitted-model record and
selects the handler registered for the record's family tag. Every handler
resolves the requested metric set, attempts each metric that applies to the
model's outcome type, and assembles the outcomes into a one-row table.
"""

import warnings

import numpy as np
from beartype import beartype
from beartype.typing import Any, Callable, Dict, List, Optional, Tuple

from modelperf.constants import MODELPERF_CI, MODELPERF_SEED, MODELPERF_VERBOSE
from modelperf.errors import InapplicableModelWarning
from modelperf.logging import configure_logging
from modelperf.metrics.information_criteria import (
    aic,
    bic,
    looic,
    require_cross_validation,
    waic,
)
from modelperf.metrics.r2 import (
    r2_adjusted,
    r2_bayes,
    r2_loo,
    r2_nagelkerke,
    r2_ols,
    r2_tjur,
)
from modelperf.metrics.residuals import residual_sigma, rmse
from modelperf.metrics.scoring import log_loss, pcp, score
from modelperf.models.families import (
    GeneralizedLinearFit,
    LinearFit,
    ModelFamily,
    ModelInfo,
    SampledFit,
)
from modelperf.models.introspection import (
    as_fitted_model,
    find_algorithm,
    find_response,
    get_sigma,
    is_multivariate,
    model_info,
)
from modelperf.performance.bayesfactor import performance_bayesfactor
from modelperf.performance.metric_sets import MetricRequest, resolve_metrics
from modelperf.performance.results import (
    MetricOutcome,
    ModelPerformance,
    assemble_performance,
    attempt,
    attempt_metric,
)

__all__ = [
    "model_performance",
    "performance_glm",
    "performance_lm",
    "performance_sampled",
]

logger = configure_logging(__name__)


def _has_continuous_prediction(info: ModelInfo) -> bool:
    return not (info.is_ordinal or info.is_multinomial or info.is_categorical)


def _score_columns(response, predicted, info: ModelInfo) -> Dict[str, float]:
    family = "binomial" if info.is_binomial else info.family
    scores = score(response, predicted, family=family)
    return {
        "Score_log": scores["logarithmic"],
        "Score_spherical": scores["spherical"],
    }


@beartype
def performance_lm(
    fit: LinearFit,
    metrics: MetricRequest = "all",
    verbose: bool = MODELPERF_VERBOSE,
    **kwargs: Any,
) -> ModelPerformance:
    """
    Indices of an ordinary least squares fit: AIC, BIC, R2, adjusted R2,
    RMSE and the residual standard deviation.

    The residual variance counts as a parameter of the information criteria.
    Options meant for other model families are ignored.
    """
    metrics = resolve_metrics(metrics, fit.family)
    n_parameters = fit.n_coefficients + 1
    outcomes: List[Tuple[str, MetricOutcome]] = []

    if "AIC" in metrics:
        outcomes.append(
            ("AIC", attempt_metric("AIC", lambda: aic(fit.log_likelihood, n_parameters)))
        )
    if "BIC" in metrics:
        outcomes.append(
            (
                "BIC",
                attempt_metric(
                    "BIC", lambda: bic(fit.log_likelihood, n_parameters, fit.n_obs)
                ),
            )
        )
    if "R2" in metrics:
        outcomes.append(
            ("R2", attempt_metric("R2", lambda: r2_ols(fit.response, fit.fitted)))
        )
    if "R2_ADJUSTED" in metrics:
        outcomes.append(
            (
                "R2_ADJUSTED",
                attempt_metric(
                    "R2_ADJUSTED",
                    lambda: r2_adjusted(
                        r2_ols(fit.response, fit.fitted),
                        fit.n_obs,
                        fit.n_coefficients,
                    ),
                    column="R2_adjusted",
                ),
            )
        )
    if "RMSE" in metrics:
        outcomes.append(
            ("RMSE", attempt_metric("RMSE", lambda: rmse(fit.response, fit.fitted)))
        )
    if "SIGMA" in metrics:
        outcomes.append(
            (
                "SIGMA",
                attempt_metric(
                    "SIGMA",
                    lambda: residual_sigma(fit.residuals, fit.df_residual),
                    column="Sigma",
                ),
            )
        )

    return assemble_performance(outcomes)


@beartype
def performance_glm(
    fit: GeneralizedLinearFit,
    metrics: MetricRequest = "all",
    verbose: bool = MODELPERF_VERBOSE,
    **kwargs: Any,
) -> ModelPerformance:
    """
    Indices of a generalized linear model.

    The R2 is Tjur's R2 for binary outcomes, the ordinary R2 for gaussian
    models with identity link and Nagelkerke's R2 otherwise. Log-loss and
    PCP apply to binary outcomes, the scoring rules to binary and count
    outcomes.
    Options meant for other model families are ignored.
    """
    metrics = resolve_metrics(metrics, fit.family)
    info = model_info(fit)
    n_parameters = fit.n_coefficients + int(fit.has_dispersion)
    outcomes: List[Tuple[str, MetricOutcome]] = []

    def r2_columns() -> Dict[str, float]:
        if info.is_binomial:
            return {"R2_Tjur": r2_tjur(fit.response, fit.fitted)}
        if info.is_linear:
            return {"R2": r2_ols(fit.response, fit.fitted)}
        return {
            "R2_Nagelkerke": r2_nagelkerke(
                fit.log_likelihood, fit.null_log_likelihood, fit.n_obs
            )
        }

    if "AIC" in metrics:
        outcomes.append(
            ("AIC", attempt_metric("AIC", lambda: aic(fit.log_likelihood, n_parameters)))
        )
    if "BIC" in metrics:
        outcomes.append(
            (
                "BIC",
                attempt_metric(
                    "BIC", lambda: bic(fit.log_likelihood, n_parameters, fit.n_obs)
                ),
            )
        )
    if "R2" in metrics:
        outcomes.append(("R2", attempt_metric("R2", r2_columns)))
    if "RMSE" in metrics and _has_continuous_prediction(info):
        outcomes.append(
            ("RMSE", attempt_metric("RMSE", lambda: rmse(fit.response, fit.fitted)))
        )
    if "SIGMA" in metrics:
        outcomes.append(
            ("SIGMA", attempt_metric("SIGMA", lambda: get_sigma(fit), column="Sigma"))
        )
    if "LOGLOSS" in metrics and info.is_binomial:
        outcomes.append(
            (
                "LOGLOSS",
                attempt_metric(
                    "LOGLOSS",
                    lambda: log_loss(fit.response, fit.fitted),
                    column="Log_loss",
                ),
            )
        )
    if "SCORE" in metrics and (info.is_binomial or info.is_count):
        outcomes.append(
            (
                "SCORE",
                attempt_metric(
                    "SCORE", lambda: _score_columns(fit.response, fit.fitted, info)
                ),
            )
        )
    if "PCP" in metrics and info.is_binomial:
        outcomes.append(
            ("PCP", attempt_metric("PCP", lambda: pcp(fit.response, fit.fitted)))
        )

    return assemble_performance(outcomes)


@beartype
def performance_sampled(
    fit: SampledFit,
    metrics: MetricRequest = "all",
    verbose: bool = MODELPERF_VERBOSE,
    ci: float = MODELPERF_CI,
    rng: Optional[np.random.Generator] = None,
    **kwargs: Any,
) -> Optional[ModelPerformance]:
    """
    Indices of a Bayesian model estimated by MCMC sampling.

    Args:
        fit: Sampled model.
        metrics: ``"all"`` (LOOIC, WAIC, R2, R2_adjusted, RMSE, Sigma,
            Log_loss, Score), ``"common"`` (LOOIC, WAIC, R2, RMSE) or a
            collection of metric names.
        verbose: Warn when the model was not estimated by sampling.
        ci: Probability mass of the R2 credible interval.
        rng: Random number generator of the LOO-R2 bootstrap.
        **kwargs: Options meant for other model families, ignored.

    Returns:
        One-row performance table, or ``None`` if the model has no
        posterior draws from sampling.

    Raises:
        MissingDependencyError: If the leave-one-out backend is not
            installed.
    """
    metrics = resolve_metrics(metrics, fit.family)

    algorithm = find_algorithm(fit)
    if algorithm.algorithm != "sampling":
        if verbose:
            warnings.warn(
                "`model_performance()` only possible for models fit using "
                "the 'sampling' algorithm.",
                InapplicableModelWarning,
                stacklevel=3,
            )
        return None

    require_cross_validation()

    info = model_info(fit)
    rng = rng if rng is not None else np.random.default_rng(MODELPERF_SEED)
    leading: Dict[str, Any] = {}
    if is_multivariate(fit):
        leading["Response"] = ", ".join(find_response(fit))

    epred_mean = fit.epred.mean(axis=0)
    outcomes: List[Tuple[str, MetricOutcome]] = []
    r2_provenance = None

    if "LOOIC" in metrics:
        outcomes.append(("LOOIC", attempt_metric("LOOIC", lambda: looic(fit))))
    if "WAIC" in metrics:
        outcomes.append(("WAIC", attempt_metric("WAIC", lambda: waic(fit))))
    if "R2" in metrics:
        r2 = attempt("R2", lambda: r2_bayes(fit, ci=ci))
        r2_provenance = r2.value_or(None)
        outcomes.append(
            (
                "R2",
                r2.bind(
                    lambda provenance: attempt_metric(
                        "R2", lambda: provenance.estimates
                    )
                ),
            )
        )
    if "R2_ADJUSTED" in metrics and info.is_linear:
        outcomes.append(
            (
                "R2_ADJUSTED",
                attempt_metric(
                    "R2_ADJUSTED", lambda: r2_loo(fit, rng=rng), column="R2_adjusted"
                ),
            )
        )
    if "RMSE" in metrics and _has_continuous_prediction(info):
        outcomes.append(
            ("RMSE", attempt_metric("RMSE", lambda: rmse(fit.response, epred_mean)))
        )
    if "SIGMA" in metrics:
        outcomes.append(
            ("SIGMA", attempt_metric("SIGMA", lambda: _median_sigma(fit), column="Sigma"))
        )
    if "LOGLOSS" in metrics and info.is_binomial:
        outcomes.append(
            (
                "LOGLOSS",
                attempt_metric(
                    "LOGLOSS",
                    lambda: log_loss(fit.response, epred_mean),
                    column="Log_loss",
                ),
            )
        )
    if "SCORE" in metrics and (info.is_binomial or info.is_count):
        outcomes.append(
            (
                "SCORE",
                attempt_metric(
                    "SCORE", lambda: _score_columns(fit.response, epred_mean, info)
                ),
            )
        )

    return assemble_performance(outcomes, leading=leading, r2_bayes=r2_provenance)


def _median_sigma(fit: SampledFit) -> float:
    sigma = get_sigma(fit)
    if sigma is None:
        raise ValueError("Model has no residual standard deviation")
    return float(np.median(sigma))


_HANDLERS: Dict[ModelFamily, Callable[..., Optional[ModelPerformance]]] = {
    ModelFamily.LINEAR: performance_lm,
    ModelFamily.GENERALIZED: performance_glm,
    ModelFamily.SAMPLED: performance_sampled,
    ModelFamily.BAYES_FACTOR: performance_bayesfactor,
}


def model_performance(
    model: Any,
    metrics: MetricRequest = "all",
    verbose: bool = MODELPERF_VERBOSE,
    **kwargs: Any,
) -> Optional[ModelPerformance]:
    """
    Compute indices of model performance.

    Args:
        model: A fitted-model record, a statsmodels OLS/GLM result or an
            arviz InferenceData object.
        metrics: ``"all"``, ``"common"`` or a collection of metric names.
            Metrics that do not apply to the model are skipped.
        verbose: Emit advisory warnings.
        **kwargs: Passed to the family's handler (e.g. ``ci`` and ``rng``
            for sampled models, ``average`` and ``prior_odds`` for Bayes
            factor models). Handlers ignore options of other families.

    Returns:
        One-row performance table, or ``None`` when no index can be computed
        for this model.

    Examples:
        >>> fit = LinearFit(
        ...     response=np.array([1.0, 2.0, 3.0, 4.0, 6.0]),
        ...     fitted=np.array([1.2, 1.8, 3.1, 4.3, 5.6]),
        ...     n_coefficients=2,
        ... )
        >>> model_performance(fit).columns
        ['AIC', 'BIC', 'R2', 'R2_adjusted', 'RMSE', 'Sigma']
    """
    fit = as_fitted_model(model)
    handler = _HANDLERS[fit.family]
    logger.debug(f"model_performance: {fit.family.value} via {handler.__name__}")
    return handler(fit, metrics=metrics, verbose=verbose, **kwargs)
