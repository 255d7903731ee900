"""
Performance of Bayes factor model comparisons.

A `BayesFactorFit` holds several competing linear models. Indices are
computed for the first numerator model or, with ``average=True``, from the
Bayesian model average: every model's posterior draws are mixed in
proportion to its posterior model probability.
"""

import warnings

import numpy as np
from beartype import beartype
from beartype.typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from modelperf.constants import (
    MODELPERF_AVERAGING_DRAWS,
    MODELPERF_CI,
    MODELPERF_SEED,
    MODELPERF_VERBOSE,
)
from modelperf.errors import InapplicableModelWarning
from modelperf.logging import configure_logging
from modelperf.metrics.averaging import (
    bayesfactor_models,
    posterior_model_probabilities,
    weighted_posteriors,
)
from modelperf.metrics.r2 import r2_bayes_draws, summarize_r2_draws
from modelperf.models.families import BayesFactorCandidate, BayesFactorFit
from modelperf.models.introspection import get_response, get_sigma, model_info
from modelperf.performance.metric_sets import MetricRequest, resolve_metrics
from modelperf.performance.results import (
    MetricOutcome,
    ModelPerformance,
    assemble_performance,
    attempt,
    attempt_metric,
)

__all__ = [
    "average_posteriors",
    "performance_bayesfactor",
    "sigma_draws",
]

logger = configure_logging(__name__)


def _candidate_r2(
    candidate: BayesFactorCandidate,
    fit: BayesFactorFit,
    n_draws: int,
) -> np.ndarray:
    if candidate.is_intercept_only:
        return np.zeros(n_draws)
    if candidate.sig2 is None:
        raise ValueError("This is not a linear model.")
    return r2_bayes_draws(
        candidate.linear_predictor(),
        get_response(fit),
        fit.info,
        np.sqrt(np.asarray(candidate.sig2, dtype=float)),
    )


def _candidate_sigma(
    candidate: BayesFactorCandidate,
    fit: BayesFactorFit,
    n_draws: int,
    is_denominator: bool,
) -> np.ndarray:
    if candidate.is_intercept_only:
        return np.full(n_draws, np.std(get_response(fit), ddof=1))
    if is_denominator:
        return np.asarray(get_sigma(fit.reciprocal()), dtype=float)
    return np.asarray(get_sigma(fit.select(fit.numerators.index(candidate))))


@beartype
def average_posteriors(
    fit: BayesFactorFit,
    draws_of: Callable[[BayesFactorCandidate, bool], Dict[str, np.ndarray]],
    prior_odds: Optional[Sequence[float]] = None,
    n_draws: int = MODELPERF_AVERAGING_DRAWS,
    rng: Optional[np.random.Generator] = None,
) -> Dict[str, np.ndarray]:
    """
    Bayesian model average of posterior draws.

    Args:
        fit: Bayes factor fit.
        draws_of: Returns the draws of one model, given the model and whether
            it is the denominator.
        prior_odds: Prior odds of every numerator against the denominator,
            uniform when omitted.
        n_draws: Size of the averaged sample.
        rng: Random number generator used to subsample the draws.

    Returns:
        Mixed draws by parameter. Parameters a model does not have count as
        0 for that model, and models with zero posterior probability do not
        contribute.
    """
    table = bayesfactor_models(fit)
    weights = posterior_model_probabilities(table["log_BF"].tolist(), prior_odds)
    candidates = [fit.denominator, *fit.numerators]
    params = [
        draws_of(candidate, index == 0) if weight > 0 else {}
        for index, (candidate, weight) in enumerate(zip(candidates, weights))
    ]
    kept = [(p, w) for p, w in zip(params, weights) if w > 0]
    logger.debug(
        "posterior model probabilities: "
        + ", ".join(f"{m}={w:.3f}" for m, w in zip(table["Model"], weights))
    )
    return weighted_posteriors(
        [p for p, _ in kept],
        [w for _, w in kept],
        missing=0.0,
        n_draws=n_draws,
        rng=rng,
    )


@beartype
def sigma_draws(
    fit: BayesFactorFit,
    average: bool = False,
    prior_odds: Optional[Sequence[float]] = None,
    n_draws: int = MODELPERF_AVERAGING_DRAWS,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """
    Posterior draws of the residual standard deviation.

    Without averaging these are the draws of the first numerator model.
    The intercept-only model contributes the standard deviation of the
    response.
    """
    if not average:
        return np.asarray(get_sigma(fit), dtype=float)
    return average_posteriors(
        fit,
        lambda candidate, is_denominator: {
            "sigma": _candidate_sigma(candidate, fit, n_draws, is_denominator)
        },
        prior_odds=prior_odds,
        n_draws=n_draws,
        rng=rng,
    )["sigma"]


def _r2_draws(
    fit: BayesFactorFit,
    average: bool,
    prior_odds: Optional[Sequence[float]],
    n_draws: int,
    rng: np.random.Generator,
) -> np.ndarray:
    if not average:
        return _candidate_r2(fit.numerators[0], fit, n_draws)
    return average_posteriors(
        fit,
        lambda candidate, _: {"R2": _candidate_r2(candidate, fit, n_draws)},
        prior_odds=prior_odds,
        n_draws=n_draws,
        rng=rng,
    )["R2"]


@beartype
def performance_bayesfactor(
    fit: BayesFactorFit,
    metrics: MetricRequest = "all",
    verbose: bool = MODELPERF_VERBOSE,
    average: bool = False,
    prior_odds: Optional[Sequence[float]] = None,
    n_draws: int = MODELPERF_AVERAGING_DRAWS,
    ci: float = MODELPERF_CI,
    rng: Optional[np.random.Generator] = None,
    **kwargs: Any,
) -> Optional[ModelPerformance]:
    """
    Indices of a Bayes factor comparison of linear models: R2 and Sigma.

    Args:
        fit: Bayes factor fit.
        metrics: ``"all"`` (R2 and Sigma) or a collection of metric names.
        verbose: Unused, the inapplicable-model warning is always emitted.
        average: Compute the indices from the Bayesian model average instead
            of the first numerator model.
        prior_odds: Prior odds of the numerators against the denominator
            used for averaging.
        n_draws: Size of the averaged posterior sample.
        ci: Probability mass of the R2 credible interval.
        rng: Random number generator used for averaging.
        **kwargs: Options meant for other model families, ignored.

    Returns:
        One-row performance table, or ``None`` for models other than linear
        regressions (correlations, t-tests, proportions, meta-analyses).
    """
    tokens = resolve_metrics(metrics, fit.family)
    info = model_info(fit)
    if (
        not info.is_linear
        or info.is_correlation
        or info.is_ttest
        or info.is_binomial
        or info.is_meta
    ):
        warnings.warn(
            f"Can produce {' & '.join(tokens)} only for linear models.",
            InapplicableModelWarning,
            stacklevel=3,
        )
        return None

    rng = rng if rng is not None else np.random.default_rng(MODELPERF_SEED)
    outcomes: List[Tuple[str, MetricOutcome]] = []
    r2_provenance = None

    if "R2" in tokens:
        r2 = attempt(
            "R2",
            lambda: summarize_r2_draws(
                {"R2": _r2_draws(fit, average, prior_odds, n_draws, rng)}, ci=ci
            ),
        )
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
    if "SIGMA" in tokens:
        outcomes.append(
            (
                "SIGMA",
                attempt_metric(
                    "SIGMA",
                    lambda: np.median(
                        sigma_draws(fit, average, prior_odds, n_draws, rng)
                    ),
                    column="Sigma",
                ),
            )
        )

    return assemble_performance(outcomes, r2_bayes=r2_provenance)
