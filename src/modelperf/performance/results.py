"""
Result types of the performance dispatchers.

Each attempted metric yields a `MetricOutcome`: ``Success`` with the
metric's columns, or ``Failure`` with a `MetricOmission` explaining why the
metric is absent. Outcomes are assembled into a one-row `ModelPerformance`
table; omission reasons and the Bayesian R2 provenance travel alongside the
table in `PerformanceDiagnostics` instead of being attached to it.
"""

import math
from dataclasses import dataclass, field

import numpy as np
import pandas as pd
from beartype.typing import (
    Any,
    Callable,
    ClassVar,
    Dict,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
    Union,
)
from returns.result import Failure, Result, Success

from modelperf.errors import MissingDependencyError
from modelperf.logging import configure_logging
from modelperf.metrics.r2 import R2Provenance

__all__ = [
    "CANONICAL_COLUMNS",
    "ComparisonTable",
    "MetricOmission",
    "MetricOutcome",
    "ModelPerformance",
    "PerformanceDiagnostics",
    "assemble_performance",
    "attempt",
    "attempt_metric",
    "order_columns",
]

logger = configure_logging(__name__)

T = TypeVar("T")

IDENTITY_COLUMNS = ("Name", "Model", "Response")

CANONICAL_COLUMNS = (
    "AIC",
    "BIC",
    "ELPD",
    "ELPD_SE",
    "LOOIC",
    "LOOIC_SE",
    "WAIC",
    "R2",
    "R2_marginal",
    "R2_Tjur",
    "R2_Nagelkerke",
    "R2_adjusted",
    "RMSE",
    "Sigma",
    "Log_loss",
    "Score_log",
    "Score_spherical",
    "PCP",
)


@dataclass(frozen=True)
class MetricOmission:
    """Why a requested metric is missing from a performance row."""

    metric: str
    reason: str


MetricOutcome = Result[Dict[str, float], MetricOmission]


def _finite_columns(value: Union[Mapping[str, Any], float, None], column: str):
    columns = value if isinstance(value, Mapping) else {column: value}
    kept = {}
    for name, item in columns.items():
        if item is None:
            continue
        item = float(np.asarray(item, dtype=float).reshape(()))
        if not math.isnan(item):
            kept[name] = item
    return kept


def attempt(
    metric: str,
    compute: Callable[[], T],
) -> Result[T, MetricOmission]:
    """
    Run a computation on behalf of ``metric``, converting any exception into
    a `MetricOmission`. A missing backend is not recoverable and propagates.
    """
    try:
        return Success(compute())
    except MissingDependencyError:
        raise
    except Exception as e:
        logger.debug(f"{metric} omitted: {type(e).__name__}: {e}")
        return Failure(MetricOmission(metric, f"{type(e).__name__}: {e}"))


def attempt_metric(
    metric: str,
    compute: Callable[[], Union[Mapping[str, Any], float, None]],
    column: Optional[str] = None,
) -> MetricOutcome:
    """
    Run one metric computation.

    Args:
        metric: Metric token, used in the omission record.
        compute: Returns a scalar for single-column metrics or a mapping of
            column names to scalars.
        column: Column name of a scalar result, ``metric`` by default.

    Returns:
        ``Success`` with the non-missing columns, or ``Failure`` when the
        computation raised or every value is missing. NaN values are dropped,
        never turned into zeros.

    Examples:
        >>> attempt_metric("RMSE", lambda: 1.5)
        <Success: {'RMSE': 1.5}>
        >>> attempt_metric("RMSE", lambda: float("nan")).failure().reason
        'not a number'
    """
    return attempt(
        metric, lambda: _finite_columns(compute(), column or metric)
    ).bind(lambda columns: _require_columns(metric, columns))


def _require_columns(metric: str, columns: Dict[str, float]) -> MetricOutcome:
    if not columns:
        logger.debug(f"{metric} omitted: not a number")
        return Failure(MetricOmission(metric, "not a number"))
    return Success(columns)


@dataclass(frozen=True)
class PerformanceDiagnostics:
    """
    Side information of a performance row.

    Attributes:
        omitted: Reasons of attempted metrics that are missing from the row.
        r2_bayes: Provenance of the Bayesian R2, when computed.
    """

    omitted: Dict[str, str] = field(default_factory=dict)
    r2_bayes: Optional[R2Provenance] = None


@dataclass(frozen=True, eq=False)
class ModelPerformance:
    """
    Indices of performance of a single model.

    Attributes:
        table: One-row DataFrame, one column per index.
        diagnostics: Omission reasons and R2 provenance.
    """

    kind: ClassVar[str] = "performance_model"

    table: pd.DataFrame
    diagnostics: PerformanceDiagnostics = field(
        default_factory=PerformanceDiagnostics
    )

    @property
    def columns(self) -> List[str]:
        return list(self.table.columns)

    def to_dict(self) -> Dict[str, Any]:
        return self.table.iloc[0].to_dict()

    def __getitem__(self, column: str) -> Any:
        return self.table.iloc[0][column]

    def __contains__(self, column: str) -> bool:
        return column in self.table.columns

    def __rich__(self):
        from modelperf.io.tables import generate_rich_table

        return generate_rich_table(self.table, title="Indices of model performance")


@dataclass(frozen=True, eq=False)
class ComparisonTable:
    """
    Indices of performance of several models, one row per model.

    Attributes:
        table: DataFrame with ``Name`` and ``Model`` first.
        diagnostics: Diagnostics of every model by name, ``None`` for models
            without indices.
        ranked: Whether rows are sorted by ``Performance_Score``.
    """

    kind: ClassVar[str] = "compare_performance"

    table: pd.DataFrame
    diagnostics: Dict[str, Optional[PerformanceDiagnostics]] = field(
        default_factory=dict
    )
    ranked: bool = False

    @property
    def columns(self) -> List[str]:
        return list(self.table.columns)

    def __len__(self) -> int:
        return len(self.table)

    def __rich__(self):
        from modelperf.io.tables import generate_rich_table

        return generate_rich_table(self.table, title="Comparison of model performance")


def assemble_performance(
    outcomes: Sequence[Tuple[str, MetricOutcome]],
    leading: Optional[Mapping[str, Any]] = None,
    r2_bayes: Optional[R2Provenance] = None,
) -> ModelPerformance:
    """
    Build a one-row performance table from metric outcomes.

    Columns that are missing for the whole row are dropped.
    """
    row: Dict[str, Any] = dict(leading or {})
    omitted: Dict[str, str] = {}
    for metric, outcome in outcomes:
        if isinstance(outcome, Success):
            row.update(outcome.unwrap())
        else:
            omitted[metric] = outcome.failure().reason

    table = pd.DataFrame([row]).dropna(axis=1, how="all")
    table = table[order_columns(table.columns)]
    return ModelPerformance(
        table=table,
        diagnostics=PerformanceDiagnostics(omitted=omitted, r2_bayes=r2_bayes),
    )


def order_columns(columns: Sequence[str]) -> List[str]:
    """
    Identity columns first, then indices in canonical order, then any other
    columns in their original order.

    Examples:
        >>> order_columns(["RMSE", "AIC", "Custom", "Model", "Name"])
        ['Name', 'Model', 'AIC', 'RMSE', 'Custom']
    """
    columns = list(columns)
    known = [c for c in (*IDENTITY_COLUMNS, *CANONICAL_COLUMNS) if c in columns]
    return known + [c for c in columns if c not in known]
