"""
Probability-based accuracy indices for binary and count outcomes.

- log-loss of binary predictions
- logarithmic and spherical proper scoring rules (Gneiting & Raftery, 2007)
  for Bernoulli and Poisson predictive distributions
- percentage of correct predictions (Herron, 1999)
"""

import numpy as np
from beartype import beartype
from beartype.typing import Dict
from jaxtyping import Float, jaxtyped
from scipy import stats

__all__ = ["log_loss", "pcp", "score"]

_EPSILON = 1e-15


@jaxtyped(typechecker=beartype)
def log_loss(
    response: Float[np.ndarray, "obs"],
    probability: Float[np.ndarray, "obs"],
) -> float:
    """
    Mean negative log-likelihood of binary outcomes.

    Examples:
        >>> round(log_loss(np.array([1.0, 0.0]), np.array([0.8, 0.2])), 6)
        0.223144
    """
    p = np.clip(probability, _EPSILON, 1.0 - _EPSILON)
    return float(-np.mean(response * np.log(p) + (1.0 - response) * np.log(1.0 - p)))


@jaxtyped(typechecker=beartype)
def score(
    response: Float[np.ndarray, "obs"],
    predicted: Float[np.ndarray, "obs"],
    family: str = "binomial",
) -> Dict[str, float]:
    """
    Logarithmic and spherical proper scoring rules.

    For every observation the predictive distribution is the Bernoulli
    (``family="binomial"``) or Poisson (``family="poisson"``) distribution
    with the predicted mean. The logarithmic score is the log probability of
    the observed outcome; the spherical score is that probability divided by
    the L2 norm of the predictive distribution. Both are averaged and higher
    is better.

    Examples:
        >>> scores = score(np.array([1.0, 0.0]), np.array([0.5, 0.5]))
        >>> round(scores["logarithmic"], 4), round(scores["spherical"], 4)
        (-0.6931, 0.7071)
    """
    family = family.lower()
    if family in ("binomial", "bernoulli"):
        support = np.array([0.0, 1.0])
        pmf = stats.bernoulli.pmf(support[np.newaxis, :], predicted[:, np.newaxis])
        p_observed = stats.bernoulli.pmf(response, predicted)
    elif family == "poisson":
        support = np.arange(0.0, max(response.max(), predicted.max() * 4) + 20.0)
        pmf = stats.poisson.pmf(support[np.newaxis, :], predicted[:, np.newaxis])
        p_observed = stats.poisson.pmf(response, predicted)
    else:
        raise ValueError(f"Scoring rules are not available for family '{family}'")

    norm = np.sqrt(np.sum(pmf**2, axis=1))
    p_observed = np.clip(p_observed, _EPSILON, None)
    return {
        "logarithmic": float(np.mean(np.log(p_observed))),
        "spherical": float(np.mean(p_observed / norm)),
    }


@jaxtyped(typechecker=beartype)
def pcp(
    response: Float[np.ndarray, "obs"],
    probability: Float[np.ndarray, "obs"],
) -> float:
    """
    Percentage of correct predictions: the mean predicted probability of the
    observed outcome.

    Examples:
        >>> pcp(np.array([1.0, 0.0]), np.array([0.75, 0.25]))
        0.75
    """
    events = response == 1
    correct = probability[events].sum() + (1.0 - probability[~events]).sum()
    return float(correct / response.shape[0])
