"""LocalExecutor: Single-machine execution backend using joblib."""

from __future__ import annotations

import os
from typing import Callable, List, Optional, TypeVar

from joblib import Parallel, delayed

from sklearn_tune.execution.base import Executor

T = TypeVar("T")
R = TypeVar("R")


def available_cores() -> int:
    """Number of processing cores visible to this process."""
    return os.cpu_count() or 1


class LocalExecutor(Executor):
    """
    Local execution backend built on ``joblib.Parallel``.

    The pool never exceeds the number of available cores. The default
    threading backend works with any estimator, including ones that cannot
    be pickled; use ``backend="loky"`` for process-based parallelism.
    """

    def __init__(
        self,
        n_workers: int = -1,
        backend: str = "threading",
        prefer: Optional[str] = None,
    ) -> None:
        """
        Initialize the local executor.

        Args:
            n_workers: Number of parallel workers.
                      Use -1 for all cores, 0 for sequential execution.
            backend: joblib backend ("threading", "loky", "multiprocessing").
            prefer: Soft hint for joblib ("threads" or "processes").
        """
        cores = available_cores()
        if n_workers == -1:
            n_workers = cores
        elif n_workers == 0:
            n_workers = 1
        elif n_workers < -1:
            raise ValueError(f"n_workers must be >= -1, got {n_workers}")

        self._n_workers = min(n_workers, cores)
        self._backend = backend
        self._prefer = prefer

    @property
    def n_workers(self) -> int:
        """Number of workers."""
        return self._n_workers

    @property
    def backend(self) -> str:
        """joblib backend name."""
        return self._backend

    def map(self, fn: Callable[[T], R], items: List[T]) -> List[R]:
        """
        Apply a function to a list of items in parallel.

        Args:
            fn: Function to apply.
            items: Items to process.

        Returns:
            List of results, in the order of ``items``.
        """
        if not items:
            return []

        if self._n_workers == 1:
            return [fn(item) for item in items]

        results = Parallel(
            n_jobs=min(self._n_workers, len(items)),
            backend=self._backend,
            prefer=self._prefer,
        )(delayed(fn)(item) for item in items)
        return list(results)

    def shutdown(self, wait: bool = True) -> None:
        """joblib pools are scoped to each ``map`` call; nothing to release."""

    def __repr__(self) -> str:
        return f"LocalExecutor(n_workers={self._n_workers}, backend={self._backend})"


class SequentialExecutor(Executor):
    """
    Sequential (non-parallel) executor.

    Useful for debugging or when parallelism is not needed.
    """

    def map(self, fn: Callable[[T], R], items: List[T]) -> List[R]:
        """Apply function sequentially."""
        return [fn(item) for item in items]

    def shutdown(self, wait: bool = True) -> None:
        """No-op for sequential executor."""
        pass

    @property
    def n_workers(self) -> int:
        """Always 1 worker."""
        return 1

    def __repr__(self) -> str:
        return "SequentialExecutor()"
