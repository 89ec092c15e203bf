"""TuningOrchestrator: End-to-end split, tune, select and final fit."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import pandas as pd

from sklearn_tune.core.data.cv import Resample, ResamplingConfig, Split
from sklearn_tune.core.data.dataset import Dataset
from sklearn_tune.core.data.partitioner import initial_split, make_resamples
from sklearn_tune.core.model.estimator import Estimator
from sklearn_tune.core.model.metrics import MetricSet
from sklearn_tune.core.tuning.aggregation import MetricSummary, summaries_to_frame, summarize
from sklearn_tune.core.tuning.evaluator import EvaluationResult, ResamplingEvaluator
from sklearn_tune.core.tuning.finalize import FinalFitResult, finalize
from sklearn_tune.core.tuning.selection import (
    SelectionResult,
    select_best,
    select_by_one_std_err,
    top_n,
)
from sklearn_tune.exceptions import InvalidFraction, NoSuccessfulConfigurations
from sklearn_tune.execution.base import Executor
from sklearn_tune.execution.local import LocalExecutor

if TYPE_CHECKING:
    from sklearn_tune.audit.logger import AuditLogger


class SelectionRule(Enum):
    """How the final configuration is chosen from the ranking."""

    BEST = "best"
    ONE_STD_ERR = "one_std_err"


@dataclass
class TuningConfig:
    """
    Configuration for a tuning run.

    Attributes:
        resampling: How the training pool is resampled for tuning.
        test_fraction: Proportion of rows kept for training by the initial
            split; the rest form the test set.
        test_strata: Optional column to stratify the initial split on.
        seed: Seed for the initial split.
        metrics: Metric names computed on every holdout.
        selection_metric: Metric to rank by (default: first of ``metrics``).
        selection_rule: Pick the best mean, or the simplest within one
            standard error of it.
        n_workers: Parallel workers (-1 = all cores).
        keep_predictions: Retain per-row holdout predictions.
        timeout: Evaluation budget in seconds (None = unbounded).
        verbose: Verbosity level (0=silent, 1=progress).
    """

    resampling: ResamplingConfig = field(default_factory=ResamplingConfig)
    test_fraction: float = 0.75
    test_strata: Optional[str] = None
    seed: int = 42
    metrics: List[str] = field(default_factory=lambda: ["roc_auc", "accuracy"])
    selection_metric: Optional[str] = None
    selection_rule: SelectionRule = SelectionRule.BEST
    n_workers: int = -1
    keep_predictions: bool = False
    timeout: Optional[float] = None
    verbose: int = 1

    def __post_init__(self) -> None:
        """Validate configuration."""
        if isinstance(self.resampling, dict):
            self.resampling = ResamplingConfig.from_dict(self.resampling)
        if isinstance(self.selection_rule, str):
            self.selection_rule = SelectionRule(self.selection_rule)
        if not 0.0 < self.test_fraction < 1.0:
            raise InvalidFraction(self.test_fraction)
        if isinstance(self.metrics, str):
            self.metrics = [self.metrics]
        self.metrics = list(self.metrics)
        if not self.metrics:
            raise ValueError("At least one metric is required")
        if self.selection_metric is None:
            self.selection_metric = self.metrics[0]
        elif self.selection_metric not in self.metrics:
            raise ValueError(
                f"selection_metric {self.selection_metric!r} is not among metrics {self.metrics}"
            )
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> TuningConfig:
        """Create a configuration from a plain (e.g. YAML-loaded) dictionary."""
        return cls(**config)


@dataclass
class TuningResult:
    """
    Everything a tuning run produced.

    Attributes:
        test_split: The initial train/test split.
        train: Training pool used for tuning and the final fit.
        test: Test set, used once by the final fit.
        resample: Resample built over the training pool.
        evaluation: Records and failures from the evaluator.
        summaries: Per-configuration metric summaries.
        selection: The selected configuration.
        final: Final fit on the training pool, scored on the test set.
        total_time: Total time in seconds.
    """

    test_split: Split
    train: Dataset
    test: Dataset
    resample: Resample
    evaluation: EvaluationResult
    summaries: List[MetricSummary]
    selection: SelectionResult
    final: Optional[FinalFitResult] = None
    total_time: float = 0.0

    @property
    def best_configuration(self):
        return self.selection.configuration

    @property
    def test_metrics(self) -> Dict[str, float]:
        return self.final.metrics if self.final else {}

    def show_best(self, metric: Optional[str] = None, n: int = 5) -> pd.DataFrame:
        """The best ``n`` configurations as a DataFrame."""
        metric = metric or self.selection.metric
        return summaries_to_frame(top_n(self.summaries, metric, n=n))

    def __repr__(self) -> str:
        return (
            f"TuningResult(best={self.selection.configuration}, "
            f"test={self.test_metrics}, time={self.total_time:.1f}s)"
        )


class TuningOrchestrator:
    """
    Main coordinator for a tuning run.

    This class handles:
    - Splitting off a test set before anything is fit
    - Resampling the training pool
    - Evaluating every (split, configuration) pair
    - Summarizing, ranking and selecting a configuration
    - Refitting on the training pool and scoring the test set once
    """

    def __init__(
        self,
        estimator: Estimator,
        configurations: Any,
        tuning_config: Optional[TuningConfig] = None,
        executor: Optional[Executor] = None,
        audit_logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            estimator: Estimator to tune.
            configurations: Configuration space (ParameterGrid, sequence of
                Configurations or dicts, or None for fixed parameters only).
            tuning_config: Tuning configuration.
            executor: Optional executor (default: LocalExecutor with
                ``tuning_config.n_workers``).
            audit_logger: Optional logger for auditing.
        """
        self.estimator = estimator
        self.configurations = configurations
        self.tuning_config = tuning_config or TuningConfig()
        self.executor = executor or LocalExecutor(n_workers=self.tuning_config.n_workers)
        self.audit_logger = audit_logger
        self.metrics = MetricSet.coerce(self.tuning_config.metrics)

    def run(self, dataset: Dataset, cancel_event: Optional[threading.Event] = None) -> TuningResult:
        """
        Run the full workflow on a dataset.

        Args:
            dataset: The full dataset.
            cancel_event: Setting this event stops dispatch of new tasks.

        Returns:
            TuningResult with the selection and test metrics.
        """
        start_time = time.time()
        config = self.tuning_config

        test_split, train, test = initial_split(
            dataset, config.test_fraction, stratify_by=config.test_strata, seed=config.seed
        )
        resample = make_resamples(train, config.resampling)
        self._log_stage(
            f"Split {dataset.n_rows} rows into {train.n_rows} train / {test.n_rows} test; "
            f"{resample}"
        )

        evaluation, summaries, selection = self.tune(train, resample, cancel_event=cancel_event)
        final = self.last_fit(selection, train, test, resample)

        return TuningResult(
            test_split=test_split,
            train=train,
            test=test,
            resample=resample,
            evaluation=evaluation,
            summaries=summaries,
            selection=selection,
            final=final,
            total_time=time.time() - start_time,
        )

    def tune(
        self,
        train: Dataset,
        resample: Resample,
        cancel_event: Optional[threading.Event] = None,
    ):
        """
        Evaluate, summarize and select on an existing resample.

        Returns:
            Tuple of (EvaluationResult, summaries, SelectionResult).

        Raises:
            NoSuccessfulConfigurations: If every pair failed.
        """
        config = self.tuning_config
        evaluator = ResamplingEvaluator(
            estimator=self.estimator,
            metrics=self.metrics,
            executor=self.executor,
            keep_predictions=config.keep_predictions,
            timeout=config.timeout,
            audit_logger=self.audit_logger,
        )
        evaluation = evaluator.evaluate(train, resample, self.configurations, cancel_event=cancel_event)
        summaries = summarize(evaluation.records)

        metric = config.selection_metric
        direction = self.metrics.direction(metric)
        try:
            if config.selection_rule == SelectionRule.ONE_STD_ERR:
                selection = select_by_one_std_err(summaries, metric, direction)
            else:
                selection = select_best(summaries, metric, direction)
        except NoSuccessfulConfigurations as e:
            if self.audit_logger:
                self.audit_logger.log_error(
                    f"No configuration produced {metric} "
                    f"({len(evaluation.failures)} failures)",
                    exc=e,
                )
            raise

        if self.audit_logger:
            self.audit_logger.log_selection(
                selection,
                rule=config.selection_rule.value,
                n_failures=len(evaluation.failures),
            )
        elif config.verbose >= 1:
            print(
                f"Selected {selection.configuration} with {metric}="
                f"{selection.summary.mean:.4f} ({len(evaluation.failures)} failures)"
            )
        return evaluation, summaries, selection

    def last_fit(
        self,
        selection: SelectionResult,
        train: Dataset,
        test: Dataset,
        resample: Optional[Resample] = None,
    ) -> FinalFitResult:
        """Refit the selected configuration and score the test set once."""
        final = finalize(
            self.estimator,
            selection.configuration,
            train,
            test,
            self.metrics,
            resample=resample,
        )
        if self.audit_logger:
            self.audit_logger.log_final(final)
        elif self.tuning_config.verbose >= 1:
            print(f"Test metrics: {final.metrics}")
        return final

    def _log_stage(self, message: str) -> None:
        if self.audit_logger:
            self.audit_logger.log_stage(message)
        elif self.tuning_config.verbose >= 1:
            print(message)

    def __repr__(self) -> str:
        return (
            f"TuningOrchestrator(estimator={self.estimator!r}, "
            f"metrics={self.metrics.names})"
        )
