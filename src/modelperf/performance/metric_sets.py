"""
Resolution of metric requests into canonical metric tokens.

A request is either a sentinel (``"all"`` or ``"common"``), which expands to
a fixed list per model family, or any collection of metric names. Names are
case-insensitive; ``"log_loss"`` and ``"R2_adj"`` are accepted aliases.
"""

from beartype import beartype
from beartype.typing import Dict, Iterable, Tuple, Union

from modelperf.errors import UnknownMetricError
from modelperf.models.families import ModelFamily

__all__ = [
    "ALL_METRICS",
    "COMMON_METRICS",
    "METRIC_VOCABULARY",
    "MetricRequest",
    "resolve_metrics",
]

MetricRequest = Union[str, Iterable[str]]

ALL_METRICS: Dict[ModelFamily, Tuple[str, ...]] = {
    ModelFamily.LINEAR: ("AIC", "BIC", "R2", "R2_ADJUSTED", "RMSE", "SIGMA"),
    ModelFamily.GENERALIZED: (
        "AIC",
        "BIC",
        "R2",
        "RMSE",
        "SIGMA",
        "LOGLOSS",
        "SCORE",
        "PCP",
    ),
    ModelFamily.SAMPLED: (
        "LOOIC",
        "WAIC",
        "R2",
        "R2_ADJUSTED",
        "RMSE",
        "SIGMA",
        "LOGLOSS",
        "SCORE",
    ),
    ModelFamily.BAYES_FACTOR: ("R2", "SIGMA"),
}

COMMON_METRICS: Dict[ModelFamily, Tuple[str, ...]] = {
    ModelFamily.LINEAR: ("AIC", "BIC", "R2", "RMSE"),
    ModelFamily.GENERALIZED: ("AIC", "BIC", "R2", "RMSE"),
    ModelFamily.SAMPLED: ("LOOIC", "WAIC", "R2", "RMSE"),
    ModelFamily.BAYES_FACTOR: ("R2",),
}

METRIC_VOCABULARY = frozenset(
    token for tokens in ALL_METRICS.values() for token in tokens
)

_ALIASES = {
    "LOG_LOSS": "LOGLOSS",
    "R2_ADJ": "R2_ADJUSTED",
}


@beartype
def resolve_metrics(
    metrics: MetricRequest,
    family: ModelFamily,
    strict: bool = True,
) -> Tuple[str, ...]:
    """
    Normalize a metric request for a model family.

    Args:
        metrics: ``"all"``, ``"common"``, a metric name or a collection of
            metric names.
        family: Family of the model the metrics are computed for.
        strict: Raise for names outside the metric vocabulary. Otherwise
            such names are kept and simply never computed.

    Returns:
        Upper-case metric tokens without duplicates, in request order.

    Raises:
        UnknownMetricError: If ``strict`` and a name is not a known metric.

    Examples:
        >>> resolve_metrics("common", ModelFamily.SAMPLED)
        ('LOOIC', 'WAIC', 'R2', 'RMSE')
        >>> resolve_metrics(["rmse", "Log_Loss", "RMSE"], ModelFamily.SAMPLED)
        ('RMSE', 'LOGLOSS')
    """
    requested = [metrics] if isinstance(metrics, str) else list(metrics)
    sentinels = {token.lower() for token in requested}
    if sentinels == {"all"}:
        return ALL_METRICS[family]
    if sentinels == {"common"}:
        return COMMON_METRICS[family]

    tokens = []
    for token in requested:
        token = token.upper()
        token = _ALIASES.get(token, token)
        if strict and token not in METRIC_VOCABULARY:
            raise UnknownMetricError(
                f"Unknown metric '{token}'. Available metrics: "
                f"{sorted(METRIC_VOCABULARY)}"
            )
        if token not in tokens:
            tokens.append(token)
    return tuple(tokens)
