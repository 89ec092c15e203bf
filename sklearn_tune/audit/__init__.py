"""Audit logging for tuning runs."""

from sklearn_tune.audit.logger import AuditLogger, FailureLog, FoldLog, SelectionLog

__all__ = ["AuditLogger", "FoldLog", "FailureLog", "SelectionLog"]
