"""Execution backends for parallel evaluation."""

from sklearn_tune.execution.base import Executor
from sklearn_tune.execution.local import LocalExecutor, SequentialExecutor, available_cores

__all__ = ["Executor", "LocalExecutor", "SequentialExecutor", "available_cores"]
