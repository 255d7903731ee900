"""
Model introspection for fitted-model records.

The performance dispatchers never look inside fitting libraries directly.
They read algorithm metadata, outcome flags, responses and parameter draws
through the accessors in this module, and `as_fitted_model` converts results
of the supported fitting libraries into the records of
`modelperf.models.families`:

- statsmodels OLS / WLS results → `LinearFit`
- statsmodels GLM results → `GeneralizedLinearFit`
- arviz ``InferenceData`` → `SampledFit` (see `from_inference_data`)
"""

from dataclasses import replace

import numpy as np
from beartype import beartype
from beartype.typing import Any, Dict, Optional, Tuple

from modelperf.errors import UnsupportedModelError
from modelperf.logging import configure_logging
from modelperf.models.families import (
    Algorithm,
    BayesFactorFit,
    FittedModel,
    GeneralizedLinearFit,
    LinearFit,
    ModelInfo,
    SampledFit,
)

__all__ = [
    "as_fitted_model",
    "find_algorithm",
    "find_response",
    "from_inference_data",
    "from_statsmodels",
    "get_parameters",
    "get_response",
    "get_sigma",
    "is_multivariate",
    "model_info",
]

logger = configure_logging(__name__)

FITTED_MODEL_TYPES = (LinearFit, GeneralizedLinearFit, SampledFit, BayesFactorFit)

_FAMILIES_WITHOUT_DISPERSION = ("binomial", "poisson", "negativebinomial")


def find_algorithm(model: FittedModel) -> Algorithm:
    if isinstance(model, BayesFactorFit):
        return Algorithm("sampling")
    return model.algorithm


def model_info(model: FittedModel) -> ModelInfo:
    return model.info


def is_multivariate(model: FittedModel) -> bool:
    if isinstance(model, SampledFit):
        return model.is_multivariate
    return model.info.is_multivariate


def find_response(model: FittedModel) -> Tuple[str, ...]:
    """Names of the response variables."""
    if isinstance(model, SampledFit):
        return model.responses
    return ("y",)


def get_response(model: FittedModel) -> np.ndarray:
    return model.response


def get_sigma(model: FittedModel) -> Optional[np.ndarray | float]:
    """
    Residual standard deviation.

    A float for maximum likelihood fits, posterior draws for Bayesian fits
    and ``None`` when the model carries no residual scale.
    """
    if isinstance(model, LinearFit):
        rss = float(np.sum(model.residuals**2))
        return float(np.sqrt(rss / model.df_residual))
    if isinstance(model, GeneralizedLinearFit):
        return float(np.sqrt(model.scale))
    if isinstance(model, SampledFit):
        return model.sigma
    if isinstance(model, BayesFactorFit):
        sig2 = get_parameters(model).get("sig2")
        if sig2 is None:
            raise ValueError("This is not a linear model.")
        return np.sqrt(sig2)
    raise UnsupportedModelError(f"Unsupported model type: {type(model)!r}")


def get_parameters(model: FittedModel) -> Dict[str, np.ndarray]:
    """
    Posterior draws by parameter name.

    For Bayes factor fits the draws of the first numerator model are
    returned, coefficients named ``b0, b1, ...``.
    """
    if isinstance(model, SampledFit):
        parameters = dict(model.draws)
        if model.sigma is not None:
            parameters.setdefault("sigma", model.sigma)
        return parameters
    if isinstance(model, BayesFactorFit):
        candidate = model.numerators[0]
        parameters = {}
        if candidate.coefficients is not None:
            coefficients = np.atleast_2d(candidate.coefficients)
            for j in range(coefficients.shape[1]):
                parameters[f"b{j}"] = coefficients[:, j]
        if candidate.sig2 is not None:
            parameters["sig2"] = np.asarray(candidate.sig2, dtype=float)
        return parameters
    raise UnsupportedModelError(
        f"{type(model).__name__} carries no posterior draws"
    )


@beartype
def from_statsmodels(result: Any, name: Optional[str] = None) -> FittedModel:
    """
    Convert a fitted statsmodels OLS/WLS or GLM result into a record.

    Args:
        result: Result returned by ``fit()`` of a statsmodels regression or
            GLM model, wrapped or unwrapped.
        name: Optional identity used in comparison tables.

    Returns:
        `LinearFit` or `GeneralizedLinearFit`.

    Raises:
        UnsupportedModelError: If the result is of another model class.
    """
    from statsmodels.genmod.generalized_linear_model import GLMResults
    from statsmodels.regression.linear_model import RegressionResults

    inner = getattr(result, "_results", result)

    if isinstance(inner, GLMResults):
        family = type(inner.model.family).__name__.lower()
        link = type(inner.model.family.link).__name__.lower()
        return GeneralizedLinearFit(
            response=np.asarray(inner.model.endog, dtype=float),
            fitted=np.asarray(inner.fittedvalues, dtype=float),
            n_coefficients=int(round(inner.df_model + inner.model.k_constant)),
            log_likelihood=float(inner.llf),
            null_log_likelihood=float(inner.llnull),
            info=ModelInfo.from_family(family, link),
            scale=float(inner.scale),
            has_dispersion=family not in _FAMILIES_WITHOUT_DISPERSION,
            name=name,
        )

    if isinstance(inner, RegressionResults):
        return LinearFit(
            response=np.asarray(inner.model.endog, dtype=float),
            fitted=np.asarray(inner.fittedvalues, dtype=float),
            n_coefficients=int(round(inner.df_model + inner.model.k_constant)),
            name=name,
        )

    raise UnsupportedModelError(
        f"Unsupported statsmodels result: {type(inner).__name__}"
    )


@beartype
def from_inference_data(
    idata: Any,
    var_name: str = "y",
    epred_var: str = "mu",
    sigma_var: Optional[str] = "sigma",
    epred_fixed_var: Optional[str] = None,
    family: str = "gaussian",
    link: Optional[str] = None,
    name: Optional[str] = None,
) -> SampledFit:
    """
    Build a `SampledFit` from an arviz ``InferenceData`` object.

    Args:
        idata: InferenceData with ``posterior``, ``log_likelihood`` and
            ``observed_data`` groups.
        var_name: Name of the observed variable.
        epred_var: Posterior variable holding the expected response per
            observation.
        sigma_var: Posterior variable holding the residual standard
            deviation, if any.
        epred_fixed_var: Posterior variable holding the expected response
            without group-level effects, if any.
        family: Response distribution.
        link: Link function, the family default if omitted.
        name: Optional identity used in comparison tables.

    Returns:
        SampledFit with draws flattened over chains.
    """
    for group in ("posterior", "log_likelihood", "observed_data"):
        if not hasattr(idata, group):
            raise UnsupportedModelError(f"InferenceData has no '{group}' group")

    posterior = idata.posterior
    response = np.asarray(idata.observed_data[var_name].values, dtype=float)
    n = response.shape[-1]
    chains = int(posterior.sizes["chain"])
    draws = int(posterior.sizes["draw"])

    def flatten(variable: str) -> np.ndarray:
        values = np.asarray(posterior[variable].values, dtype=float)
        return values.reshape(chains * draws, *values.shape[2:])

    parameters = {
        variable: flatten(variable)
        for variable in posterior.data_vars
        if variable not in (epred_var, epred_fixed_var, sigma_var)
    }
    log_likelihood = np.asarray(
        idata.log_likelihood[var_name].values, dtype=float
    ).reshape(chains, draws, n)

    logger.debug(
        f"InferenceData with {chains} chains x {draws} draws, {n} observations"
    )
    return SampledFit(
        response=response,
        log_likelihood=log_likelihood,
        epred=flatten(epred_var).reshape(chains * draws, n),
        algorithm=Algorithm("sampling", chains=chains, iterations=draws),
        info=ModelInfo.from_family(family, link),
        epred_fixed=(
            flatten(epred_fixed_var).reshape(chains * draws, n)
            if epred_fixed_var is not None
            else None
        ),
        sigma=flatten(sigma_var) if sigma_var is not None else None,
        draws=parameters,
        responses=(var_name,),
        name=name,
    )


def as_fitted_model(model: Any, name: Optional[str] = None) -> FittedModel:
    """
    Return ``model`` as a fitted-model record.

    Records pass through unchanged (with ``name`` applied when given);
    statsmodels results and arviz InferenceData are converted.

    Raises:
        UnsupportedModelError: If the object cannot be interpreted.
    """
    if isinstance(model, FITTED_MODEL_TYPES):
        if name is not None and model.name != name:
            return replace(model, name=name)
        return model

    module = type(model).__module__
    if module.startswith("statsmodels"):
        return from_statsmodels(model, name=name)
    if hasattr(model, "posterior") and hasattr(model, "log_likelihood"):
        return from_inference_data(model, name=name)

    raise UnsupportedModelError(
        f"Cannot compute performance indices for objects of type "
        f"{type(model).__name__}"
    )
