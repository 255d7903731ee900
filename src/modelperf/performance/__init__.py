from modelperf.performance.bayesfactor import performance_bayesfactor
from modelperf.performance.compare import compare_performance, rank_performance
from modelperf.performance.dispatch import (
    model_performance,
    performance_glm,
    performance_lm,
    performance_sampled,
)
from modelperf.performance.metric_sets import resolve_metrics
from modelperf.performance.results import (
    ComparisonTable,
    MetricOmission,
    ModelPerformance,
    PerformanceDiagnostics,
)

__all__ = [
    "ComparisonTable",
    "MetricOmission",
    "ModelPerformance",
    "PerformanceDiagnostics",
    "compare_performance",
    "model_performance",
    "performance_bayesfactor",
    "performance_glm",
    "performance_lm",
    "performance_sampled",
    "rank_performance",
    "resolve_metrics",
]
