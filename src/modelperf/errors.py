"""
Exception and warning types raised by modelperf.

Recoverable problems are absorbed at the smallest scope: a failing metric is
omitted from its row, an inapplicable model yields no row and a
`InapplicableModelWarning`, and models fit on different data only trigger a
`HeterogeneousDataWarning`. A missing cross-validation backend is the only
condition surfaced to the caller as an exception.
"""

__all__ = [
    "HeterogeneousDataWarning",
    "InapplicableModelWarning",
    "MissingDependencyError",
    "ModelPerformanceError",
    "PerformanceWarning",
    "UnknownMetricError",
    "UnsupportedModelError",
]


class ModelPerformanceError(Exception):
    """Base class for errors raised by modelperf."""


class MissingDependencyError(ModelPerformanceError, ImportError):
    """A required computational backend is not installed."""


class UnknownMetricError(ModelPerformanceError, ValueError):
    """A requested metric token is not part of the metric vocabulary."""


class UnsupportedModelError(ModelPerformanceError, TypeError):
    """The object is neither a fitted-model record nor adaptable to one."""


class PerformanceWarning(UserWarning):
    """Base class for warnings emitted by modelperf."""


class InapplicableModelWarning(PerformanceWarning):
    """The requested indices cannot be computed for this kind of model."""


class HeterogeneousDataWarning(PerformanceWarning):
    """Compared models were probably not fit on the same data."""
