"""Metrics: Named, direction-tagged scoring functions over holdout predictions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from sklearn import metrics as skm

from sklearn_tune.exceptions import UnknownMetric


class Direction(Enum):
    """Whether larger or smaller metric values are better."""

    MAXIMIZE = "maximize"
    MINIMIZE = "minimize"


@dataclass
class FoldPredictions:
    """
    Per-row predictions for the holdout rows of one split.

    Attributes:
        split_id: Identifier of the split the rows were held out from.
        row_ids: Row labels in the originally loaded data.
        y_true: Observed outcome.
        y_pred: Hard predictions (class labels or numeric values).
        probabilities: Class probabilities (n_rows x n_classes), if available.
        classes: Class labels matching the probability columns.
    """

    split_id: str
    row_ids: np.ndarray
    y_true: np.ndarray
    y_pred: np.ndarray
    probabilities: Optional[np.ndarray] = None
    classes: Optional[Tuple] = None

    @property
    def n_rows(self) -> int:
        """Number of predicted rows."""
        return len(self.y_true)

    def to_frame(self, outcome: str = "truth") -> pd.DataFrame:
        """Predictions as a DataFrame, one probability column per class."""
        frame = pd.DataFrame(
            {
                "split_id": self.split_id,
                "row_id": self.row_ids,
                outcome: self.y_true,
                "pred": self.y_pred,
            }
        )
        if self.probabilities is not None and self.classes is not None:
            for i, cls in enumerate(self.classes):
                frame[f"pred_{cls}"] = self.probabilities[:, i]
        return frame

    def __repr__(self) -> str:
        proba_str = ", proba" if self.probabilities is not None else ""
        return f"FoldPredictions(split={self.split_id}, n_rows={self.n_rows}{proba_str})"


@dataclass(frozen=True)
class Metric:
    """
    A named scoring function.

    Attributes:
        name: Metric name used in records and summaries.
        func: Callable computing the value from FoldPredictions.
        direction: Whether to maximize or minimize the value.
        needs_proba: Whether the metric uses class probabilities.
    """

    name: str
    func: Callable[[FoldPredictions], float] = field(compare=False)
    direction: Direction = Direction.MAXIMIZE
    needs_proba: bool = False

    def __call__(self, predictions: FoldPredictions) -> float:
        if self.needs_proba and predictions.probabilities is None:
            raise ValueError(
                f"Metric {self.name!r} needs class probabilities but the "
                f"estimator produced none"
            )
        return float(self.func(predictions))

    def __repr__(self) -> str:
        return f"Metric({self.name}, {self.direction.value})"


def _positive_column(p: FoldPredictions) -> Tuple[np.ndarray, object]:
    if p.probabilities.shape[1] != 2:
        raise ValueError(f"Binary metric requires 2 classes, got {p.probabilities.shape[1]}")
    return p.probabilities[:, 1], p.classes[1]


def _roc_auc(p: FoldPredictions) -> float:
    if p.probabilities.shape[1] == 2:
        scores, positive = _positive_column(p)
        return skm.roc_auc_score(np.asarray(p.y_true) == positive, scores)
    return skm.roc_auc_score(
        p.y_true, p.probabilities, multi_class="ovr", labels=list(p.classes)
    )


def _brier(p: FoldPredictions) -> float:
    scores, positive = _positive_column(p)
    return skm.brier_score_loss(np.asarray(p.y_true) == positive, scores)


def _rmse(p: FoldPredictions) -> float:
    return float(np.sqrt(skm.mean_squared_error(p.y_true, p.y_pred)))


_BUILTINS: List[Metric] = [
    Metric("accuracy", lambda p: skm.accuracy_score(p.y_true, p.y_pred)),
    Metric(
        "error_rate",
        lambda p: 1.0 - skm.accuracy_score(p.y_true, p.y_pred),
        Direction.MINIMIZE,
    ),
    Metric("balanced_accuracy", lambda p: skm.balanced_accuracy_score(p.y_true, p.y_pred)),
    Metric("f1_macro", lambda p: skm.f1_score(p.y_true, p.y_pred, average="macro")),
    Metric("kappa", lambda p: skm.cohen_kappa_score(p.y_true, p.y_pred)),
    Metric("roc_auc", _roc_auc, needs_proba=True),
    Metric(
        "log_loss",
        lambda p: skm.log_loss(p.y_true, p.probabilities, labels=list(p.classes)),
        Direction.MINIMIZE,
        needs_proba=True,
    ),
    Metric("brier_score", _brier, Direction.MINIMIZE, needs_proba=True),
    Metric("mse", lambda p: skm.mean_squared_error(p.y_true, p.y_pred), Direction.MINIMIZE),
    Metric("rmse", _rmse, Direction.MINIMIZE),
    Metric("mae", lambda p: skm.mean_absolute_error(p.y_true, p.y_pred), Direction.MINIMIZE),
    Metric("rsq", lambda p: skm.r2_score(p.y_true, p.y_pred)),
]

_REGISTRY: Dict[str, Metric] = {m.name: m for m in _BUILTINS}


def register_metric(metric: Metric) -> Metric:
    """Register a custom metric so it can be referenced by name."""
    _REGISTRY[metric.name] = metric
    return metric


def get_metric(name: str) -> Metric:
    """Look up a registered metric by name."""
    try:
        return _REGISTRY[name]
    except KeyError:
        raise UnknownMetric(name, sorted(_REGISTRY)) from None


def available_metrics() -> List[str]:
    """Names of all registered metrics."""
    return sorted(_REGISTRY)


class MetricSet:
    """
    Ordered collection of metrics evaluated together on each holdout.

    Example:
        metrics = MetricSet(["roc_auc", "accuracy"])
        metrics.compute(predictions)  # {"roc_auc": 0.87, "accuracy": 0.81}
    """

    def __init__(self, metrics: Sequence[Union[str, Metric]]) -> None:
        resolved: List[Metric] = []
        for m in metrics:
            metric = get_metric(m) if isinstance(m, str) else m
            if metric.name in (r.name for r in resolved):
                raise ValueError(f"Metric {metric.name!r} given more than once")
            resolved.append(metric)
        if not resolved:
            raise ValueError("MetricSet needs at least one metric")
        self._metrics = resolved

    @classmethod
    def coerce(cls, metrics: Union[MetricSet, Sequence[Union[str, Metric]], str, Metric]) -> MetricSet:
        """Build a MetricSet from names, Metric objects or an existing set."""
        if isinstance(metrics, MetricSet):
            return metrics
        if isinstance(metrics, (str, Metric)):
            return cls([metrics])
        return cls(list(metrics))

    @property
    def names(self) -> List[str]:
        return [m.name for m in self._metrics]

    @property
    def needs_proba(self) -> bool:
        """Whether any metric uses class probabilities."""
        return any(m.needs_proba for m in self._metrics)

    def get(self, name: str) -> Metric:
        for metric in self._metrics:
            if metric.name == name:
                return metric
        raise UnknownMetric(name, self.names)

    def direction(self, name: str) -> Direction:
        return self.get(name).direction

    def compute(self, predictions: FoldPredictions) -> Dict[str, float]:
        """Compute every metric; errors propagate."""
        return {m.name: m(predictions) for m in self._metrics}

    def compute_safe(
        self, predictions: FoldPredictions
    ) -> Tuple[Dict[str, float], Dict[str, Exception]]:
        """
        Compute every metric, collecting per-metric errors instead of raising.

        A metric can be undefined on a particular holdout (for example ROC AUC
        when only one class is present), and a user-registered metric can fail
        for its own reasons. Either way the error is reported in the second
        mapping and the metric is omitted from the first.
        """
        values: Dict[str, float] = {}
        errors: Dict[str, Exception] = {}
        for metric in self._metrics:
            try:
                value = metric(predictions)
            except Exception as e:
                errors[metric.name] = e
                continue
            if np.isfinite(value):
                values[metric.name] = value
            else:
                errors[metric.name] = ValueError(f"{metric.name} is not finite: {value}")
        return values, errors

    def __iter__(self) -> Iterator[Metric]:
        return iter(self._metrics)

    def __len__(self) -> int:
        return len(self._metrics)

    def __contains__(self, name: str) -> bool:
        return name in self.names

    def __repr__(self) -> str:
        return f"MetricSet({self.names})"
