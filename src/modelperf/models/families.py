"""
Fitted-model records consumed by the performance dispatchers.

Each supported model family is represented by one frozen record type that
carries exactly the pieces the metric computations read: the observed
response, fitted values or posterior draws, the fitting algorithm and the
outcome-type flags. Together they form the closed union `FittedModel`; the
dispatchers select their handler from the class-level `family` tag.

Records are built directly or through the adapters in
`modelperf.models.introspection` (statsmodels results, arviz InferenceData).
"""

from dataclasses import dataclass, field, replace
from enum import Enum

import numpy as np
from beartype.typing import ClassVar, Dict, Optional, Tuple, Union

__all__ = [
    "Algorithm",
    "BayesFactorCandidate",
    "BayesFactorFit",
    "FittedModel",
    "GeneralizedLinearFit",
    "LinearFit",
    "ModelFamily",
    "ModelInfo",
    "SampledFit",
]


class ModelFamily(Enum):
    """
    Tags of the supported model families.

    The value is the label written to the "Model" column of comparison
    tables.
    """

    LINEAR = "lm"
    GENERALIZED = "glm"
    SAMPLED = "stanreg"
    BAYES_FACTOR = "BFBayesFactor"


_BINOMIAL_FAMILIES = ("binomial", "bernoulli", "quasibinomial", "beta_binomial")
_COUNT_FAMILIES = (
    "poisson",
    "quasipoisson",
    "negativebinomial",
    "negative_binomial",
    "zero_inflated_poisson",
)
_ORDINAL_FAMILIES = ("cumulative", "ordinal", "sratio", "cratio", "acat")


@dataclass(frozen=True)
class ModelInfo:
    """
    Outcome-type flags of a fitted model.

    Attributes:
        family: Name of the response distribution (e.g. "gaussian").
        link: Name of the link function (e.g. "identity").
        is_linear: Gaussian response with identity link.
        is_binomial: Binary or binomial response.
        is_count: Count response (Poisson, negative binomial, ...).
        is_ordinal: Ordered categorical response.
        is_multinomial: Multinomial response.
        is_categorical: Unordered categorical response.
        is_correlation: Model of a correlation (Bayes factor tests).
        is_ttest: t-test model (Bayes factor tests).
        is_meta: Meta-analytic model (Bayes factor tests).
        is_multivariate: More than one response variable.
    """

    family: str = "gaussian"
    link: str = "identity"
    is_linear: bool = False
    is_binomial: bool = False
    is_count: bool = False
    is_ordinal: bool = False
    is_multinomial: bool = False
    is_categorical: bool = False
    is_correlation: bool = False
    is_ttest: bool = False
    is_meta: bool = False
    is_multivariate: bool = False

    @classmethod
    def from_family(
        cls,
        family: str,
        link: Optional[str] = None,
        multivariate: bool = False,
    ) -> "ModelInfo":
        """
        Derive the outcome flags from a distribution family name.

        Examples:
            >>> ModelInfo.from_family("Binomial").is_binomial
            True
            >>> info = ModelInfo.from_family("gaussian")
            >>> info.is_linear, info.link
            (True, 'identity')
        """
        name = family.lower()
        default_links = {
            "gaussian": "identity",
            "binomial": "logit",
            "bernoulli": "logit",
            "poisson": "log",
        }
        link = (link or default_links.get(name, "identity")).lower()
        return cls(
            family=name,
            link=link,
            is_linear=name == "gaussian" and link == "identity",
            is_binomial=name in _BINOMIAL_FAMILIES,
            is_count=name in _COUNT_FAMILIES,
            is_ordinal=name in _ORDINAL_FAMILIES,
            is_multinomial=name == "multinomial",
            is_categorical=name == "categorical",
            is_multivariate=multivariate,
        )


@dataclass(frozen=True)
class Algorithm:
    """
    Estimation algorithm of a fitted model.

    Only models estimated with ``algorithm == "sampling"`` carry the
    posterior draws needed for the Bayesian indices.
    """

    algorithm: str
    chains: Optional[int] = None
    iterations: Optional[int] = None
    warmup: Optional[int] = None


def _vector(values, name: str) -> np.ndarray:
    array = np.asarray(values, dtype=float)
    if array.ndim != 1:
        raise ValueError(f"{name} must be one-dimensional, got {array.shape}")
    return array


def _check_length(array: np.ndarray, n: int, name: str) -> None:
    if array.shape[-1] != n:
        raise ValueError(
            f"{name} has {array.shape[-1]} observations, response has {n}"
        )


@dataclass(frozen=True, eq=False)
class LinearFit:
    """
    Ordinary least squares fit.

    Attributes:
        response: Observed response values.
        fitted: Fitted values.
        n_coefficients: Number of estimated coefficients, intercept included.
        name: Optional name used as identity in comparison tables.
        info: Outcome flags, gaussian with identity link by default.
        algorithm: Estimation algorithm.
    """

    family: ClassVar[ModelFamily] = ModelFamily.LINEAR

    response: np.ndarray
    fitted: np.ndarray
    n_coefficients: int
    name: Optional[str] = None
    info: ModelInfo = field(
        default_factory=lambda: ModelInfo.from_family("gaussian")
    )
    algorithm: Algorithm = field(default_factory=lambda: Algorithm("OLS"))

    def __post_init__(self):
        response = _vector(self.response, "response")
        fitted = _vector(self.fitted, "fitted")
        _check_length(fitted, response.shape[0], "fitted")
        if not 0 < self.n_coefficients < response.shape[0]:
            raise ValueError(
                f"n_coefficients={self.n_coefficients} must be positive and "
                f"smaller than the number of observations ({response.shape[0]})"
            )
        object.__setattr__(self, "response", response)
        object.__setattr__(self, "fitted", fitted)

    @property
    def n_obs(self) -> int:
        return int(self.response.shape[0])

    @property
    def residuals(self) -> np.ndarray:
        return self.response - self.fitted

    @property
    def df_residual(self) -> int:
        return self.n_obs - self.n_coefficients

    @property
    def log_likelihood(self) -> float:
        """Gaussian log-likelihood at the maximum likelihood estimate of sigma."""
        n = self.n_obs
        rss = float(np.sum(self.residuals**2))
        return -0.5 * n * (np.log(2 * np.pi) + np.log(rss / n) + 1.0)


@dataclass(frozen=True, eq=False)
class GeneralizedLinearFit:
    """
    Maximum likelihood fit of a generalized linear model.

    Attributes:
        response: Observed response values (0/1 for binomial models).
        fitted: Fitted means on the response scale.
        n_coefficients: Number of estimated coefficients, intercept included.
        log_likelihood: Log-likelihood of the fitted model.
        null_log_likelihood: Log-likelihood of the intercept-only model.
        scale: Estimated dispersion (1 for binomial and Poisson models).
        has_dispersion: Whether the dispersion was estimated and counts as a
            parameter for the information criteria.
        info: Outcome flags.
        name: Optional name used as identity in comparison tables.
        algorithm: Estimation algorithm.
    """

    family: ClassVar[ModelFamily] = ModelFamily.GENERALIZED

    response: np.ndarray
    fitted: np.ndarray
    n_coefficients: int
    log_likelihood: float
    null_log_likelihood: float
    info: ModelInfo
    scale: float = 1.0
    has_dispersion: bool = False
    name: Optional[str] = None
    algorithm: Algorithm = field(default_factory=lambda: Algorithm("ML"))

    def __post_init__(self):
        response = _vector(self.response, "response")
        fitted = _vector(self.fitted, "fitted")
        _check_length(fitted, response.shape[0], "fitted")
        object.__setattr__(self, "response", response)
        object.__setattr__(self, "fitted", fitted)

    @property
    def n_obs(self) -> int:
        return int(self.response.shape[0])

    @property
    def df_residual(self) -> int:
        return self.n_obs - self.n_coefficients


@dataclass(frozen=True, eq=False)
class SampledFit:
    """
    Bayesian model with posterior draws.

    Attributes:
        response: Observed response values of the (first) response variable.
        log_likelihood: Pointwise log-likelihood draws, shaped
            ``(chain, draw, obs)`` or ``(draw, obs)`` for a single chain.
        epred: Draws of the expected response, shaped ``(draw, obs)``.
        algorithm: Estimation algorithm; indices require "sampling".
        info: Outcome flags of the (first) response variable.
        epred_fixed: Draws of the expected response from the population-level
            effects only, used for the marginal R2 of multilevel models.
        sigma: Draws of the residual standard deviation.
        draws: Other parameter draws by name.
        responses: Names of the response variables.
        name: Optional name used as identity in comparison tables.
    """

    family: ClassVar[ModelFamily] = ModelFamily.SAMPLED

    response: np.ndarray
    log_likelihood: np.ndarray
    epred: np.ndarray
    algorithm: Algorithm = field(default_factory=lambda: Algorithm("sampling"))
    info: ModelInfo = field(
        default_factory=lambda: ModelInfo.from_family("gaussian")
    )
    epred_fixed: Optional[np.ndarray] = None
    sigma: Optional[np.ndarray] = None
    draws: Dict[str, np.ndarray] = field(default_factory=dict)
    responses: Tuple[str, ...] = ("y",)
    name: Optional[str] = None

    def __post_init__(self):
        response = _vector(self.response, "response")
        n = response.shape[0]

        log_likelihood = np.asarray(self.log_likelihood, dtype=float)
        if log_likelihood.ndim == 2:
            log_likelihood = log_likelihood[np.newaxis, ...]
        if log_likelihood.ndim != 3:
            raise ValueError(
                "log_likelihood must be shaped (chain, draw, obs) or "
                f"(draw, obs), got {log_likelihood.shape}"
            )
        _check_length(log_likelihood, n, "log_likelihood")

        epred = np.asarray(self.epred, dtype=float)
        if epred.ndim != 2:
            raise ValueError(f"epred must be (draw, obs), got {epred.shape}")
        _check_length(epred, n, "epred")

        if self.epred_fixed is not None:
            epred_fixed = np.asarray(self.epred_fixed, dtype=float)
            _check_length(epred_fixed, n, "epred_fixed")
            object.__setattr__(self, "epred_fixed", epred_fixed)
        if self.sigma is not None:
            object.__setattr__(
                self, "sigma", np.asarray(self.sigma, dtype=float).ravel()
            )
        if not self.responses:
            raise ValueError("At least one response name is required")

        object.__setattr__(self, "response", response)
        object.__setattr__(self, "log_likelihood", log_likelihood)
        object.__setattr__(self, "epred", epred)
        object.__setattr__(self, "responses", tuple(self.responses))

    @property
    def n_obs(self) -> int:
        return int(self.response.shape[0])

    @property
    def n_draws(self) -> int:
        return int(self.epred.shape[0])

    @property
    def is_multivariate(self) -> bool:
        return self.info.is_multivariate or len(self.responses) > 1


@dataclass(frozen=True, eq=False)
class BayesFactorCandidate:
    """
    One model of a Bayes factor comparison, with its posterior draws.

    Attributes:
        name: Model terms, ``"1"`` for the intercept-only model.
        log_bf: Log Bayes factor against the denominator model.
        design: Design matrix ``(obs, p)``.
        coefficients: Coefficient draws ``(draw, p)``.
        sig2: Draws of the residual variance.
    """

    name: str
    log_bf: float = 0.0
    design: Optional[np.ndarray] = None
    coefficients: Optional[np.ndarray] = None
    sig2: Optional[np.ndarray] = None

    @property
    def is_intercept_only(self) -> bool:
        return self.name.strip() == "1"

    def linear_predictor(self) -> np.ndarray:
        """Posterior draws of the linear predictor, shaped ``(draw, obs)``."""
        if self.design is None or self.coefficients is None:
            raise ValueError(f"Model '{self.name}' carries no posterior draws")
        design = np.asarray(self.design, dtype=float)
        coefficients = np.atleast_2d(np.asarray(self.coefficients, dtype=float))
        return coefficients @ design.T


@dataclass(frozen=True, eq=False)
class BayesFactorFit:
    """
    A set of competing linear models compared through Bayes factors.

    Every numerator model carries its Bayes factor against the shared
    denominator model (typically the intercept-only model).

    Attributes:
        response: Observed response values.
        denominator: The reference model.
        numerators: Competing models, each with ``log_bf`` against
            ``denominator``.
        info: Outcome flags of the tested model.
        name: Optional name used as identity in comparison tables.
    """

    family: ClassVar[ModelFamily] = ModelFamily.BAYES_FACTOR

    response: np.ndarray
    denominator: BayesFactorCandidate
    numerators: Tuple[BayesFactorCandidate, ...]
    info: ModelInfo = field(
        default_factory=lambda: ModelInfo.from_family("gaussian")
    )
    name: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "response", _vector(self.response, "response"))
        object.__setattr__(self, "numerators", tuple(self.numerators))
        if not self.numerators:
            raise ValueError("A Bayes factor fit needs at least one numerator")

    @property
    def n_obs(self) -> int:
        return int(self.response.shape[0])

    def select(self, index: int) -> "BayesFactorFit":
        """Restrict the comparison to the numerator at ``index`` (0-based)."""
        return replace(self, numerators=(self.numerators[index],))

    def reciprocal(self) -> "BayesFactorFit":
        """
        Invert the first comparison: the first numerator becomes the
        denominator and the old denominator its only numerator.
        """
        first = self.numerators[0]
        return replace(
            self,
            denominator=replace(first, log_bf=0.0),
            numerators=(replace(self.denominator, log_bf=-first.log_bf),),
        )


FittedModel = Union[LinearFit, GeneralizedLinearFit, SampledFit, BayesFactorFit]
