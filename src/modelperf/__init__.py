"""
modelperf

modelperf computes indices of model performance (AIC, BIC, R2, RMSE, LOOIC,
WAIC, log-loss, proper scoring rules) for frequentist and Bayesian models
and assembles them into comparison tables.
"""

from importlib import metadata

import modelperf.io
import modelperf.logging
import modelperf.metrics
import modelperf.models
import modelperf.performance
from modelperf.performance import compare_performance, model_performance


try:
    __version__ = metadata.version(__package__)
except metadata.PackageNotFoundError:
    __version__ = "unknown"

del metadata

__all__ = [
    "compare_performance",
    "io",
    "logging",
    "metrics",
    "model_performance",
    "models",
    "performance",
]
