"""Estimator, transform and metric contracts."""

from sklearn_tune.core.model.estimator import (
    Estimator,
    FittedModel,
    FittedTransform,
    SklearnEstimator,
    SklearnTransform,
    Transform,
)
from sklearn_tune.core.model.metrics import (
    Direction,
    FoldPredictions,
    Metric,
    MetricSet,
    available_metrics,
    get_metric,
    register_metric,
)

__all__ = [
    "Estimator",
    "FittedModel",
    "Transform",
    "FittedTransform",
    "SklearnEstimator",
    "SklearnTransform",
    "Direction",
    "FoldPredictions",
    "Metric",
    "MetricSet",
    "available_metrics",
    "get_metric",
    "register_metric",
]
