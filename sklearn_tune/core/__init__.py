"""Core components of the resampling and tuning engine."""

from sklearn_tune.core.data import Dataset, Resample, ResamplingConfig, Split
from sklearn_tune.core.model import Estimator, MetricSet, SklearnEstimator
from sklearn_tune.core.tuning import TuningConfig, TuningOrchestrator

__all__ = [
    "Dataset",
    "Split",
    "Resample",
    "ResamplingConfig",
    "Estimator",
    "SklearnEstimator",
    "MetricSet",
    "TuningConfig",
    "TuningOrchestrator",
]
