"""Tests for AuditLogger."""

import json
import logging

import pytest

from sklearn_tune.audit.logger import AuditLogger
from sklearn_tune.core.model.metrics import Direction
from sklearn_tune.core.tuning.aggregation import MetricSummary
from sklearn_tune.core.tuning.evaluator import EvaluationFailure
from sklearn_tune.core.tuning.selection import select_best
from sklearn_tune.search.configuration import Configuration


@pytest.fixture
def audit_logger():
    """Audit logger that prints nothing below WARNING."""
    return AuditLogger(name="sklearn_tune.audit.test", console_level=logging.WARNING)


def _failure(split_id="Fold1", metric=None):
    return EvaluationFailure(
        split_id=split_id,
        configuration=Configuration(value="boom"),
        error_type="ValueError",
        message="cannot fit boom",
        metric=metric,
    )


class TestAuditLoggerInit:
    """Tests for AuditLogger initialization."""

    def test_logger_does_not_propagate(self, audit_logger):
        """Verify the audit logger has its own handlers."""
        logger = logging.getLogger("sklearn_tune.audit.test")

        assert logger.propagate is False
        console = [h for h in logger.handlers if type(h) is logging.StreamHandler]
        assert len(console) == 1
        assert console[0].level == logging.WARNING

    def test_file_handler_created(self, tmp_path):
        """Verify a log file gets a second handler."""
        log_file = tmp_path / "logs" / "run.log"

        audit = AuditLogger(log_file=str(log_file), name="sklearn_tune.audit.test_file")
        audit.log_stage("starting")

        assert log_file.exists()
        assert "starting" in log_file.read_text()


class TestAuditLoggerEntries:
    """Tests for logged entries."""

    def test_log_fold(self, audit_logger):
        """Verify fold entries keep ids, params and scores."""
        config = Configuration(C=0.1)

        audit_logger.log_fold("Fold1", config, {"accuracy": 0.8}, fit_time=0.5)

        entry = audit_logger.fold_logs[0]
        assert entry.split_id == "Fold1"
        assert entry.config_id == config.config_id
        assert entry.params == {"C": 0.1}
        assert entry.scores == {"accuracy": 0.8}

    def test_log_failure(self, audit_logger):
        """Verify failure entries keep the error details."""
        audit_logger.log_failure(_failure(metric="roc_auc"))

        entry = audit_logger.failure_logs[0]
        assert entry.error_type == "ValueError"
        assert entry.metric == "roc_auc"

    def test_failure_trace_written_to_file(self, tmp_path):
        """Verify a failure's traceback is kept and written at DEBUG."""
        log_file = tmp_path / "run.log"
        audit = AuditLogger(
            log_file=str(log_file),
            console_level=logging.ERROR,
            name="sklearn_tune.audit.test_trace",
        )
        failure = EvaluationFailure(
            split_id="Fold1",
            configuration=Configuration(value="boom"),
            error_type="ValueError",
            message="cannot fit boom",
            trace="Traceback (most recent call last):\nValueError: cannot fit boom\n",
        )

        audit.log_failure(failure)

        assert audit.failure_logs[0].trace == failure.trace
        assert "Traceback (most recent call last)" in log_file.read_text()

    def test_warning_and_error_written_to_file(self, tmp_path):
        """Verify warnings and errors, with exception details, reach the log file."""
        log_file = tmp_path / "run.log"
        audit = AuditLogger(
            log_file=str(log_file),
            console_level=logging.CRITICAL,
            name="sklearn_tune.audit.test_levels",
        )

        audit.log_warning("Evaluation stopped early")
        try:
            raise ValueError("no configuration left")
        except ValueError as e:
            audit.log_error("Selection failed", exc=e)

        text = log_file.read_text()
        assert "WARNING - Evaluation stopped early" in text
        assert "ERROR - Selection failed: no configuration left" in text
        assert "Traceback" in text

    def test_fold_summary(self, audit_logger):
        """Verify summary statistics over fold entries."""
        a, b = Configuration(C=0.1), Configuration(C=1.0)
        audit_logger.log_fold("Fold1", a, {"accuracy": 0.8}, fit_time=1.0)
        audit_logger.log_fold("Fold2", a, {"accuracy": 0.7}, fit_time=3.0)
        audit_logger.log_fold("Fold1", b, {"accuracy": 0.9}, fit_time=2.0)
        audit_logger.log_failure(_failure())

        summary = audit_logger.get_fold_summary()

        assert summary["n_folds"] == 3
        assert summary["n_configurations"] == 2
        assert summary["n_failures"] == 1
        assert summary["total_time"] == pytest.approx(6.0)
        assert audit_logger.get_fold_summary(a.config_id)["mean_time"] == pytest.approx(2.0)

    def test_empty_summary(self, audit_logger):
        """Verify an empty logger summarizes to an empty dict."""
        assert audit_logger.get_fold_summary() == {}

    def test_clear(self, audit_logger):
        """Verify clearing drops all entries."""
        audit_logger.log_fold("Fold1", Configuration(), {"accuracy": 1.0}, fit_time=0.1)
        audit_logger.log_failure(_failure())

        audit_logger.clear()

        assert audit_logger.fold_logs == []
        assert audit_logger.failure_logs == []


class TestAuditLoggerExport:
    """Tests for JSON export."""

    def test_export_logs(self, audit_logger, tmp_path):
        """Verify every entry kind is exported."""
        summary = MetricSummary(Configuration(C=1.0), "accuracy", 0.85, 0.01, 5)
        audit_logger.log_fold("Fold1", Configuration(C=1.0), {"accuracy": 0.85}, fit_time=0.2)
        audit_logger.log_failure(_failure())
        audit_logger.log_selection(select_best([summary], "accuracy"), rule="best")

        path = tmp_path / "audit.json"
        audit_logger.export_logs(str(path))
        data = json.loads(path.read_text())

        assert len(data["fold_logs"]) == 1
        assert len(data["failure_logs"]) == 1
        assert data["selection_logs"][0]["direction"] == Direction.MAXIMIZE.value
        assert data["selection_logs"][0]["extra"] == {"rule": "best"}
        assert data["final_metrics"] == {}
