from modelperf.models.families import (
    Algorithm,
    BayesFactorCandidate,
    BayesFactorFit,
    FittedModel,
    GeneralizedLinearFit,
    LinearFit,
    ModelFamily,
    ModelInfo,
    SampledFit,
)
from modelperf.models.introspection import (
    as_fitted_model,
    from_inference_data,
    from_statsmodels,
)

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
    "as_fitted_model",
    "from_inference_data",
    "from_statsmodels",
]
