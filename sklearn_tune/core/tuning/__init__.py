"""Evaluation, aggregation, selection and final fit."""

from sklearn_tune.core.tuning.aggregation import (
    MetricRecord,
    MetricSummary,
    collect_predictions,
    records_to_frame,
    summaries_to_frame,
    summarize,
)
from sklearn_tune.core.tuning.evaluator import (
    EvaluationFailure,
    EvaluationResult,
    ResamplingEvaluator,
    evaluate,
)
from sklearn_tune.core.tuning.finalize import FinalFitResult, check_leakage, finalize
from sklearn_tune.core.tuning.orchestrator import (
    SelectionRule,
    TuningConfig,
    TuningOrchestrator,
    TuningResult,
)
from sklearn_tune.core.tuning.selection import (
    SelectionResult,
    best,
    rank,
    select_best,
    select_by_one_std_err,
    show_best,
    top_n,
)

__all__ = [
    "MetricRecord",
    "MetricSummary",
    "summarize",
    "records_to_frame",
    "summaries_to_frame",
    "collect_predictions",
    "EvaluationFailure",
    "EvaluationResult",
    "ResamplingEvaluator",
    "evaluate",
    "FinalFitResult",
    "check_leakage",
    "finalize",
    "SelectionRule",
    "TuningConfig",
    "TuningOrchestrator",
    "TuningResult",
    "SelectionResult",
    "best",
    "rank",
    "select_best",
    "select_by_one_std_err",
    "show_best",
    "top_n",
]
