"""
sklearn-tune

Resampling and hyperparameter tuning engine for sklearn-compatible models:
stratified partitioning, k-fold and validation splits, grid and space-filling
configuration spaces, parallel (split x configuration) evaluation, metric
aggregation, deterministic selection and a leakage-checked final fit.
"""

from sklearn_tune.audit.logger import AuditLogger
from sklearn_tune.core.data.cv import Resample, ResamplingConfig, ResamplingScheme, Split
from sklearn_tune.core.data.dataset import Dataset
from sklearn_tune.core.data.partitioner import (
    initial_split,
    kfold,
    make_resamples,
    repeated_kfold,
    split,
    validation_split,
)
from sklearn_tune.core.model.estimator import (
    Estimator,
    FittedModel,
    FittedTransform,
    SklearnEstimator,
    SklearnTransform,
    Transform,
)
from sklearn_tune.core.model.metrics import Direction, Metric, MetricSet, register_metric
from sklearn_tune.core.tuning.aggregation import MetricRecord, MetricSummary, summarize
from sklearn_tune.core.tuning.evaluator import (
    EvaluationFailure,
    EvaluationResult,
    ResamplingEvaluator,
    evaluate,
)
from sklearn_tune.core.tuning.finalize import FinalFitResult, finalize
from sklearn_tune.core.tuning.orchestrator import TuningConfig, TuningOrchestrator, TuningResult
from sklearn_tune.core.tuning.selection import (
    SelectionResult,
    best,
    select_best,
    select_by_one_std_err,
    top_n,
)
from sklearn_tune.exceptions import (
    InsufficientRows,
    InvalidFoldCount,
    InvalidFraction,
    LeakageViolation,
    NoSuccessfulConfigurations,
    TrainingFailure,
    TuningError,
    UnknownColumn,
    UnknownMetric,
)
from sklearn_tune.persistence.store import RecordStore
from sklearn_tune.search.configuration import Configuration
from sklearn_tune.search.parameter import log_sweep
from sklearn_tune.search.space import ParameterGrid, SearchSpace, space_filling_design

__version__ = "0.1.0"

__all__ = [
    # Data
    "Dataset",
    "Split",
    "Resample",
    "ResamplingConfig",
    "ResamplingScheme",
    "split",
    "kfold",
    "repeated_kfold",
    "initial_split",
    "validation_split",
    "make_resamples",
    # Model
    "Estimator",
    "FittedModel",
    "Transform",
    "FittedTransform",
    "SklearnEstimator",
    "SklearnTransform",
    "Direction",
    "Metric",
    "MetricSet",
    "register_metric",
    # Search
    "Configuration",
    "ParameterGrid",
    "SearchSpace",
    "log_sweep",
    "space_filling_design",
    # Tuning
    "ResamplingEvaluator",
    "EvaluationResult",
    "EvaluationFailure",
    "evaluate",
    "MetricRecord",
    "MetricSummary",
    "summarize",
    "SelectionResult",
    "best",
    "top_n",
    "select_best",
    "select_by_one_std_err",
    "FinalFitResult",
    "finalize",
    "TuningConfig",
    "TuningOrchestrator",
    "TuningResult",
    # Audit and persistence
    "AuditLogger",
    "RecordStore",
    # Errors
    "TuningError",
    "InvalidFraction",
    "InvalidFoldCount",
    "InsufficientRows",
    "UnknownColumn",
    "UnknownMetric",
    "TrainingFailure",
    "NoSuccessfulConfigurations",
    "LeakageViolation",
]
