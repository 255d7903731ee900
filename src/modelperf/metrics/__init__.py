from modelperf.metrics.averaging import (
    bayesfactor_models,
    posterior_model_probabilities,
    weighted_posteriors,
)
from modelperf.metrics.information_criteria import aic, bic, looic, waic
from modelperf.metrics.r2 import (
    R2Provenance,
    r2_adjusted,
    r2_bayes,
    r2_loo,
    r2_nagelkerke,
    r2_ols,
    r2_tjur,
)
from modelperf.metrics.residuals import residual_sigma, rmse
from modelperf.metrics.scoring import log_loss, pcp, score

__all__ = [
    "R2Provenance",
    "aic",
    "bayesfactor_models",
    "bic",
    "log_loss",
    "looic",
    "pcp",
    "posterior_model_probabilities",
    "r2_adjusted",
    "r2_bayes",
    "r2_loo",
    "r2_nagelkerke",
    "r2_ols",
    "r2_tjur",
    "residual_sigma",
    "rmse",
    "score",
    "waic",
    "weighted_posteriors",
]
