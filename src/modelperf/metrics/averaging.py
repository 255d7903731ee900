"""
Bayesian model averaging of posterior draws.

Posterior model probabilities are obtained by combining each model's Bayes
factor against a common reference with its prior odds. Averaged posteriors
are mixtures of the models' draws, each model contributing a number of draws
proportional to its posterior probability.
"""

import numpy as np
import pandas as pd
from beartype import beartype
from beartype.typing import Dict, List, Mapping, Optional, Sequence
from scipy.special import logsumexp

from modelperf.logging import configure_logging
from modelperf.models.families import BayesFactorFit

__all__ = [
    "allocate_draws",
    "bayesfactor_models",
    "posterior_model_probabilities",
    "weighted_posteriors",
]

logger = configure_logging(__name__)


@beartype
def bayesfactor_models(fit: BayesFactorFit) -> pd.DataFrame:
    """
    Bayes factors of all models of a Bayes factor fit against its
    denominator, the denominator first.

    Returns:
        DataFrame with columns ``Model``, ``log_BF`` and ``BF``.
    """
    candidates = [fit.denominator, *fit.numerators]
    log_bf = [0.0] + [float(candidate.log_bf) for candidate in fit.numerators]
    return pd.DataFrame(
        {
            "Model": [candidate.name for candidate in candidates],
            "log_BF": log_bf,
            "BF": np.exp(log_bf),
        }
    )


@beartype
def posterior_model_probabilities(
    log_bf: Sequence[float],
    prior_odds: Optional[Sequence[float]] = None,
) -> np.ndarray:
    """
    Posterior probabilities of competing models.

    Args:
        log_bf: Log Bayes factors of every model against the first one
            (the first entry is the reference, usually 0).
        prior_odds: Prior odds of every model but the first against the
            first. Uniform when omitted.

    Returns:
        Probabilities summing to one. Models with zero prior odds get zero
        probability.

    Examples:
        >>> np.round(posterior_model_probabilities([0.0, np.log(3.0)]), 6)
        array([0.25, 0.75])
        >>> np.round(posterior_model_probabilities([0.0, 0.0, 0.0], [1.0, 0.0]), 6)
        array([0.5, 0.5, 0. ])
    """
    log_bf = np.asarray(log_bf, dtype=float)
    if prior_odds is None:
        odds = np.ones_like(log_bf)
    else:
        odds = np.concatenate([[1.0], np.asarray(prior_odds, dtype=float)])
        if odds.shape != log_bf.shape:
            raise ValueError(
                f"Expected {log_bf.shape[0] - 1} prior odds, got {odds.shape[0] - 1}"
            )
        if np.any(odds < 0):
            raise ValueError("Prior odds must not be negative")
    with np.errstate(divide="ignore"):
        log_posterior = np.log(odds) + log_bf
    return np.exp(log_posterior - logsumexp(log_posterior))


@beartype
def allocate_draws(weights: Sequence[float], n_draws: int) -> np.ndarray:
    """
    Split ``n_draws`` proportionally to ``weights`` (largest remainder).

    Examples:
        >>> allocate_draws([0.5, 0.25, 0.25], 10)
        array([5, 3, 2])
        >>> allocate_draws([1.0, 0.0], 4)
        array([4, 0])
    """
    weights = np.asarray(weights, dtype=float)
    weights = weights / weights.sum()
    exact = weights * n_draws
    counts = np.floor(exact).astype(int)
    remainder = n_draws - counts.sum()
    if remainder:
        order = np.argsort(-(exact - counts), kind="stable")
        counts[order[:remainder]] += 1
    return counts


@beartype
def weighted_posteriors(
    params: Sequence[Mapping[str, np.ndarray]],
    weights: Sequence[float],
    missing: float = 0.0,
    n_draws: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
) -> Dict[str, np.ndarray]:
    """
    Mix posterior draws of several models.

    Args:
        params: Posterior draws of each model, by parameter name.
        weights: Posterior model probabilities (or odds; they are
            normalized).
        missing: Value used for parameters a model does not have.
        n_draws: Size of the mixed sample, the smallest number of draws of
            any model by default.
        rng: Random number generator used to subsample the draws.

    Returns:
        Mixed draws by parameter name. Models without posterior mass do not
        contribute.
    """
    if len(params) != len(weights):
        raise ValueError(f"{len(params)} posteriors but {len(weights)} weights")
    rng = rng if rng is not None else np.random.default_rng()

    sizes = [len(next(iter(p.values()))) for p in params]
    if n_draws is None:
        n_draws = min(sizes)
    counts = allocate_draws(weights, n_draws)

    names: List[str] = []
    for p in params:
        names.extend(name for name in p if name not in names)

    mixed: Dict[str, List[np.ndarray]] = {name: [] for name in names}
    for p, size, count in zip(params, sizes, counts):
        if count == 0:
            continue
        rows = rng.choice(size, size=count, replace=count > size)
        for name in names:
            if name in p:
                mixed[name].append(np.asarray(p[name], dtype=float)[rows])
            else:
                mixed[name].append(np.full(count, missing, dtype=float))

    logger.debug(f"mixed {n_draws} draws from models with counts {counts.tolist()}")
    return {name: np.concatenate(chunks) for name, chunks in mixed.items()}
