"""ResamplingEvaluator: Fit and score every (split, configuration) pair."""

from __future__ import annotations

import logging
import threading
import time
import traceback
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple, Union

from sklearn_tune.core.data.cv import Resample, Split
from sklearn_tune.core.data.dataset import Dataset
from sklearn_tune.core.model.estimator import Estimator
from sklearn_tune.core.model.metrics import MetricSet
from sklearn_tune.core.tuning.aggregation import MetricRecord
from sklearn_tune.exceptions import TrainingFailure
from sklearn_tune.execution.base import Executor
from sklearn_tune.execution.local import LocalExecutor
from sklearn_tune.search.configuration import Configuration
from sklearn_tune.search.space import as_configurations

if TYPE_CHECKING:
    from sklearn_tune.audit.logger import AuditLogger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluationFailure:
    """
    A (split, configuration) pair, or one metric of it, that produced no value.

    Attributes:
        split_id: Identifier of the split.
        configuration: Configuration being evaluated.
        error_type: Class name of the underlying error.
        message: Underlying error message.
        config_order: Position of the configuration in enumeration order.
        metric: Metric name when only that metric failed; None when training
            (or prediction) failed and the whole pair produced nothing.
        trace: Formatted traceback of the underlying error.
    """

    split_id: str
    configuration: Configuration
    error_type: str
    message: str
    config_order: int = 0
    metric: Optional[str] = None
    trace: Optional[str] = field(default=None, repr=False, compare=False)

    @property
    def is_training_failure(self) -> bool:
        return self.metric is None

    def __repr__(self) -> str:
        what = f"metric={self.metric}" if self.metric else "fit"
        return (
            f"EvaluationFailure(split={self.split_id}, config={self.configuration}, "
            f"{what}, {self.error_type}: {self.message})"
        )


@dataclass
class EvaluationResult:
    """
    Outcome of evaluating a configuration space over a resample.

    Attributes:
        records: Metric records, sorted by (config_order, split, metric).
        failures: Failed pairs and failed metrics, in the same order.
        n_tasks: Number of (split, configuration) pairs requested.
        n_completed: Number of pairs that were run (successfully or not).
        cancelled: Whether dispatch stopped early (timeout or cancellation).
        total_time: Wall-clock seconds spent evaluating.
    """

    records: List[MetricRecord] = field(default_factory=list)
    failures: List[EvaluationFailure] = field(default_factory=list)
    n_tasks: int = 0
    n_completed: int = 0
    cancelled: bool = False
    total_time: float = 0.0

    @property
    def failed_pairs(self) -> List[Tuple[str, Configuration]]:
        """Distinct (split_id, configuration) pairs that failed to train."""
        return [(f.split_id, f.configuration) for f in self.failures if f.is_training_failure]

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)

    def __repr__(self) -> str:
        cancelled_str = ", cancelled" if self.cancelled else ""
        return (
            f"EvaluationResult(records={len(self.records)}, failures={len(self.failures)}, "
            f"completed={self.n_completed}/{self.n_tasks}{cancelled_str})"
        )


@dataclass
class _PairTask:
    dataset: Dataset
    split: Split
    split_order: int
    configuration: Configuration
    config_order: int
    estimator: Estimator
    metrics: MetricSet
    keep_predictions: bool


@dataclass
class _PairOutcome:
    task_key: Tuple[int, int]
    split_id: str
    configuration: Configuration
    records: List[MetricRecord]
    failures: List[EvaluationFailure]
    scores: Dict[str, float]
    fit_time: float


def _failure(task: _PairTask, error: BaseException, metric: Optional[str] = None) -> EvaluationFailure:
    cause = error.cause if isinstance(error, TrainingFailure) else error
    return EvaluationFailure(
        split_id=task.split.id,
        configuration=task.configuration,
        error_type=type(cause).__name__,
        message=str(cause),
        config_order=task.config_order,
        metric=metric,
        trace="".join(traceback.format_exception(type(cause), cause, cause.__traceback__)),
    )


def _evaluate_pair(task: _PairTask) -> _PairOutcome:
    """Fit on the split's training rows and score its holdout rows."""
    split_id = task.split.id
    outcome = _PairOutcome(
        task_key=(task.config_order, task.split_order),
        split_id=split_id,
        configuration=task.configuration,
        records=[],
        failures=[],
        scores={},
        fit_time=0.0,
    )
    train = task.split.train(task.dataset)
    holdout = task.split.holdout(task.dataset)

    start_time = time.time()
    try:
        fitted = task.estimator.fit(train, task.configuration)
    except TrainingFailure as e:
        outcome.failures.append(_failure(task, e))
        return outcome
    except Exception as e:
        outcome.failures.append(_failure(task, TrainingFailure(task.configuration, e)))
        return outcome
    outcome.fit_time = time.time() - start_time

    try:
        predictions = task.estimator.predict_holdout(fitted, holdout, split_id=split_id)
    except Exception as e:
        outcome.failures.append(_failure(task, e))
        return outcome

    values, errors = task.metrics.compute_safe(predictions)
    kept = predictions if task.keep_predictions else None
    for metric in task.metrics:
        if metric.name in values:
            outcome.records.append(
                MetricRecord(
                    configuration=task.configuration,
                    split_id=split_id,
                    metric=metric.name,
                    value=values[metric.name],
                    config_order=task.config_order,
                    predictions=kept,
                )
            )
        else:
            outcome.failures.append(_failure(task, errors[metric.name], metric=metric.name))
    outcome.scores = values
    return outcome


class ResamplingEvaluator:
    """
    Evaluates every configuration on every split of a resample.

    Each (split, configuration) pair is an independent task: it slices its own
    training and holdout rows, fits, predicts and scores, and returns its
    records. Results are merged only after each task completes. A pair whose
    fit fails yields no records and one EvaluationFailure; the run continues.

    Tasks are dispatched in batches of the executor's worker count. Before
    each batch the timeout budget and the cancel event are checked; once
    either trips, no further batch is dispatched and the records already
    collected are returned with ``cancelled=True``.
    """

    def __init__(
        self,
        estimator: Estimator,
        metrics: Union[MetricSet, Sequence[str], str],
        executor: Optional[Executor] = None,
        keep_predictions: bool = False,
        timeout: Optional[float] = None,
        audit_logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Initialize the evaluator.

        Args:
            estimator: Estimator to fit for each pair.
            metrics: Metrics computed on every holdout.
            executor: Execution backend (default: LocalExecutor on all cores).
            keep_predictions: Retain per-row holdout predictions on records.
            timeout: Budget in seconds after which no new tasks are dispatched.
            audit_logger: Optional audit logger.
        """
        if timeout is not None and timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")
        self.estimator = estimator
        self.metrics = MetricSet.coerce(metrics)
        self.executor = executor if executor is not None else LocalExecutor()
        self.keep_predictions = keep_predictions
        self.timeout = timeout
        self.audit_logger = audit_logger

    def evaluate(
        self,
        dataset: Dataset,
        resample: Union[Resample, Sequence[Split]],
        configurations: Any = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> EvaluationResult:
        """
        Evaluate configurations over the splits of a resample.

        Args:
            dataset: The rows the resample indexes into.
            resample: A Resample, or any sequence of Splits.
            configurations: ParameterGrid, sequence of Configurations or dicts,
                or None for a single empty configuration.
            cancel_event: Setting this event stops further dispatch.

        Returns:
            EvaluationResult with records and failures.
        """
        splits = list(resample)
        if not splits:
            raise ValueError("Resample contains no splits")
        if isinstance(resample, Resample) and resample.n_rows != dataset.n_rows:
            raise ValueError(
                f"Resample was built for {resample.n_rows} rows but dataset has "
                f"{dataset.n_rows}"
            )
        configs = as_configurations(configurations)

        tasks = [
            _PairTask(
                dataset=dataset,
                split=split,
                split_order=split_order,
                configuration=config,
                config_order=config_order,
                estimator=self.estimator,
                metrics=self.metrics,
                keep_predictions=self.keep_predictions,
            )
            for config_order, config in enumerate(configs)
            for split_order, split in enumerate(splits)
        ]

        logger.info(
            f"Evaluating {len(configs)} configurations x {len(splits)} splits "
            f"on {self.executor.n_workers} workers"
        )

        start_time = time.time()
        outcomes: List[_PairOutcome] = []
        cancelled = False
        batch_size = max(1, self.executor.n_workers)
        for offset in range(0, len(tasks), batch_size):
            if cancel_event is not None and cancel_event.is_set():
                cancelled = True
            elif self.timeout is not None and time.time() - start_time >= self.timeout:
                cancelled = True
            if cancelled:
                self._warn(
                    f"Evaluation stopped after {len(outcomes)}/{len(tasks)} tasks; "
                    f"no further tasks dispatched"
                )
                break
            outcomes.extend(self.executor.map(_evaluate_pair, tasks[offset:offset + batch_size]))

        outcomes.sort(key=lambda o: o.task_key)
        result = EvaluationResult(
            n_tasks=len(tasks),
            n_completed=len(outcomes),
            cancelled=cancelled,
            total_time=time.time() - start_time,
        )
        metric_order = {name: i for i, name in enumerate(self.metrics.names)}
        for outcome in outcomes:
            result.records.extend(
                sorted(outcome.records, key=lambda r: metric_order[r.metric])
            )
            result.failures.extend(outcome.failures)
            self._report(outcome)

        if result.failures:
            n_failed = len(result.failed_pairs)
            self._warn(
                f"{n_failed} of {len(outcomes)} (split, configuration) pairs failed "
                f"to train; {len(result.failures) - n_failed} metric values were undefined"
            )
        return result

    def _report(self, outcome: _PairOutcome) -> None:
        for failure in outcome.failures:
            if self.audit_logger:
                self.audit_logger.log_failure(failure)
                continue
            what = f"metric {failure.metric}" if failure.metric else "fit"
            logger.warning(
                f"[{failure.split_id}] {failure.configuration}: {what} failed "
                f"({failure.error_type}: {failure.message})"
            )
            if failure.trace:
                logger.debug(failure.trace)
        if self.audit_logger and outcome.scores:
            self.audit_logger.log_fold(
                split_id=outcome.split_id,
                configuration=outcome.configuration,
                scores=outcome.scores,
                fit_time=outcome.fit_time,
            )

    def _warn(self, message: str) -> None:
        if self.audit_logger:
            self.audit_logger.log_warning(message)
        else:
            logger.warning(message)

    def __repr__(self) -> str:
        return (
            f"ResamplingEvaluator(estimator={self.estimator!r}, metrics={self.metrics.names}, "
            f"executor={self.executor!r})"
        )


def evaluate(
    dataset: Dataset,
    resample: Union[Resample, Sequence[Split]],
    configurations: Any,
    estimator: Estimator,
    metrics: Union[MetricSet, Sequence[str], str],
    n_workers: int = -1,
    keep_predictions: bool = False,
    timeout: Optional[float] = None,
    executor: Optional[Executor] = None,
    cancel_event: Optional[threading.Event] = None,
    audit_logger: Optional[AuditLogger] = None,
) -> EvaluationResult:
    """
    Evaluate every (split, configuration) pair; see ResamplingEvaluator.

    ``n_workers`` is ignored when an explicit ``executor`` is given.
    """
    evaluator = ResamplingEvaluator(
        estimator=estimator,
        metrics=metrics,
        executor=executor if executor is not None else LocalExecutor(n_workers=n_workers),
        keep_predictions=keep_predictions,
        timeout=timeout,
        audit_logger=audit_logger,
    )
    return evaluator.evaluate(dataset, resample, configurations, cancel_event=cancel_event)
