"""AuditLogger: Logging for per-fold timing, scores, failures and selection."""

from __future__ import annotations

import json
import logging
import sys
import threading
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from sklearn_tune.core.tuning.evaluator import EvaluationFailure
    from sklearn_tune.core.tuning.finalize import FinalFitResult
    from sklearn_tune.core.tuning.selection import SelectionResult
    from sklearn_tune.search.configuration import Configuration


@dataclass
class FoldLog:
    """Log entry for a single (split, configuration) evaluation."""

    split_id: str
    config_id: str
    params: Dict[str, Any]
    scores: Dict[str, float]
    fit_time: float
    timestamp: str


@dataclass
class FailureLog:
    """Log entry for a failed pair or an undefined metric."""

    split_id: str
    config_id: str
    params: Dict[str, Any]
    error_type: str
    message: str
    metric: Optional[str]
    timestamp: str
    trace: Optional[str] = None


@dataclass
class SelectionLog:
    """Log entry for a selection decision."""

    metric: str
    direction: str
    config_id: str
    params: Dict[str, Any]
    mean: float
    std_err: float
    n: int
    timestamp: str
    extra: Dict[str, Any] = field(default_factory=dict)


class AuditLogger:
    """
    Logger for tracking a tuning run.

    Records:
    - Per-split timing and scores
    - Failed pairs and undefined metrics
    - Selection decisions and final test metrics

    Entries are appended under a lock, so evaluation workers on threads can
    log concurrently.
    """

    def __init__(
        self,
        log_file: Optional[str] = None,
        console_level: int = logging.INFO,
        file_level: int = logging.DEBUG,
        name: str = "sklearn_tune.audit",
    ) -> None:
        """
        Initialize the audit logger.

        Args:
            log_file: Path to log file (optional).
            console_level: Logging level for console output.
            file_level: Logging level for file output.
            name: Logger name.
        """
        self.name = name
        self._fold_logs: List[FoldLog] = []
        self._failure_logs: List[FailureLog] = []
        self._selection_logs: List[SelectionLog] = []
        self._final_metrics: Dict[str, float] = {}
        self._lock = threading.Lock()

        self._logger = logging.getLogger(name)
        self._logger.setLevel(logging.DEBUG)
        self._logger.handlers.clear()
        self._logger.propagate = False

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(console_level)
        console_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
        )
        self._logger.addHandler(console_handler)

        if log_file:
            self.log_file = Path(log_file)
            self.log_file.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(file_level)
            file_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
                )
            )
            self._logger.addHandler(file_handler)
        else:
            self.log_file = None

    def log_fold(
        self,
        split_id: str,
        configuration: Configuration,
        scores: Dict[str, float],
        fit_time: float,
    ) -> None:
        """
        Log results from one (split, configuration) evaluation.

        Args:
            split_id: Identifier of the split.
            configuration: Configuration that was fit.
            scores: Metric values on the holdout.
            fit_time: Time to fit in seconds.
        """
        entry = FoldLog(
            split_id=split_id,
            config_id=configuration.config_id,
            params=configuration.to_dict(),
            scores=dict(scores),
            fit_time=fit_time,
            timestamp=datetime.now().isoformat(),
        )
        with self._lock:
            self._fold_logs.append(entry)

        scores_str = ", ".join(f"{k}={v:.4f}" for k, v in scores.items())
        self._logger.debug(
            f"[{split_id}] {configuration.config_id}: {scores_str}, time={fit_time:.2f}s"
        )

    def log_failure(self, failure: EvaluationFailure) -> None:
        """Log a failed pair or an undefined metric."""
        entry = FailureLog(
            split_id=failure.split_id,
            config_id=failure.configuration.config_id,
            params=failure.configuration.to_dict(),
            error_type=failure.error_type,
            message=failure.message,
            metric=failure.metric,
            timestamp=datetime.now().isoformat(),
            trace=failure.trace,
        )
        with self._lock:
            self._failure_logs.append(entry)

        what = f"metric {failure.metric}" if failure.metric else "fit"
        self._logger.warning(
            f"[{failure.split_id}] {failure.configuration}: {what} failed "
            f"({failure.error_type}: {failure.message})"
        )
        if failure.trace:
            self._logger.debug(failure.trace)

    def log_selection(self, selection: SelectionResult, **extra: Any) -> None:
        """Log which configuration was selected and on what evidence."""
        summary = selection.summary
        entry = SelectionLog(
            metric=summary.metric,
            direction=selection.direction.value,
            config_id=summary.config_id,
            params=selection.configuration.to_dict(),
            mean=summary.mean,
            std_err=summary.std_err,
            n=summary.n,
            timestamp=datetime.now().isoformat(),
            extra=extra,
        )
        with self._lock:
            self._selection_logs.append(entry)

        self._logger.info(
            f"Selected {selection.configuration}: {summary.metric}={summary.mean:.4f} "
            f"(std_err={summary.std_err:.4f}, n={summary.n})"
        )

    def log_final(self, result: FinalFitResult) -> None:
        """Log the test-set metrics of the final fit."""
        with self._lock:
            self._final_metrics = dict(result.metrics)
        scores_str = ", ".join(f"{k}={v:.4f}" for k, v in result.metrics.items())
        self._logger.info(f"Test set: {scores_str} (fit {result.fit_time:.2f}s)")

    def log_stage(self, message: str) -> None:
        """Log progress through the stages of a run."""
        self._logger.info(message)

    def log_warning(self, message: str) -> None:
        """Log a warning."""
        self._logger.warning(message)

    def log_error(self, message: str, exc: Optional[Exception] = None) -> None:
        """Log an error."""
        if exc:
            self._logger.error(f"{message}: {exc}", exc_info=True)
        else:
            self._logger.error(message)

    @property
    def fold_logs(self) -> List[FoldLog]:
        return list(self._fold_logs)

    @property
    def failure_logs(self) -> List[FailureLog]:
        return list(self._failure_logs)

    def get_fold_summary(self, config_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Get summary statistics for fold logs.

        Args:
            config_id: Filter by configuration id (optional).

        Returns:
            Dictionary with summary statistics.
        """
        logs = self._fold_logs
        if config_id:
            logs = [l for l in logs if l.config_id == config_id]

        if not logs:
            return {}

        times = [l.fit_time for l in logs]
        return {
            "n_folds": len(logs),
            "n_configurations": len({l.config_id for l in logs}),
            "n_failures": len(
                [f for f in self._failure_logs if not config_id or f.config_id == config_id]
            ),
            "total_time": sum(times),
            "mean_time": sum(times) / len(times),
        }

    def export_logs(self, path: str) -> None:
        """
        Export all logs to a JSON file.

        Args:
            path: Output file path.
        """
        export_data = {
            "fold_logs": [asdict(l) for l in self._fold_logs],
            "failure_logs": [asdict(l) for l in self._failure_logs],
            "selection_logs": [asdict(l) for l in self._selection_logs],
            "final_metrics": self._final_metrics,
        }

        with open(path, "w") as f:
            json.dump(export_data, f, indent=2, default=str)

    def clear(self) -> None:
        """Clear all stored logs."""
        with self._lock:
            self._fold_logs.clear()
            self._failure_logs.clear()
            self._selection_logs.clear()
            self._final_metrics = {}

    def __repr__(self) -> str:
        return (
            f"AuditLogger(name={self.name}, folds={len(self._fold_logs)}, "
            f"failures={len(self._failure_logs)})"
        )
