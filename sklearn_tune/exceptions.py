"""Error types raised by the resampling and tuning engine."""

from __future__ import annotations

from typing import Any, Optional


class TuningError(Exception):
    """Base class for all sklearn-tune errors."""


class InvalidFraction(TuningError, ValueError):
    """Raised when a split fraction lies outside the open interval (0, 1)."""

    def __init__(self, fraction: Any) -> None:
        self.fraction = fraction
        super().__init__(f"fraction must be in (0, 1), got {fraction!r}")


class InvalidFoldCount(TuningError, ValueError):
    """Raised when a fold count is not an integer >= 2."""

    def __init__(self, k: Any) -> None:
        self.k = k
        super().__init__(f"k must be an integer >= 2, got {k!r}")


class InsufficientRows(TuningError, ValueError):
    """Raised when there are too few rows (or rows in a stratum) to partition."""

    def __init__(self, message: str, stratum: Any = None, n_rows: Optional[int] = None) -> None:
        self.stratum = stratum
        self.n_rows = n_rows
        super().__init__(message)


class UnknownColumn(TuningError, KeyError):
    """Raised when a referenced column is absent from the dataset."""

    def __init__(self, column: Any, available: Optional[list] = None) -> None:
        self.column = column
        self.available = list(available) if available is not None else []
        super().__init__(column)

    def __str__(self) -> str:
        return f"Unknown column {self.column!r}. Available: {self.available}"


class UnknownMetric(TuningError, KeyError):
    """Raised when a metric name is not registered."""

    def __init__(self, name: str, available: Optional[list] = None) -> None:
        self.name = name
        self.available = list(available) if available is not None else []
        super().__init__(name)

    def __str__(self) -> str:
        return f"Unknown metric {self.name!r}. Available: {self.available}"


class TrainingFailure(TuningError, RuntimeError):
    """
    Raised when an estimator cannot be fit for a configuration.

    Attributes:
        configuration: The configuration that failed.
        cause: The underlying exception.
    """

    def __init__(self, configuration: Any, cause: BaseException) -> None:
        self.configuration = configuration
        self.cause = cause
        super().__init__(
            f"Training failed for {configuration}: {type(cause).__name__}: {cause}"
        )


class NoSuccessfulConfigurations(TuningError, RuntimeError):
    """Raised when no configuration produced a value for the ranking metric."""

    def __init__(self, metric: str) -> None:
        self.metric = metric
        super().__init__(
            f"No configuration produced a value for metric {metric!r}; "
            f"nothing to rank"
        )


class LeakageViolation(TuningError, RuntimeError):
    """Raised when evaluation rows overlap the rows a model is trained on."""

    def __init__(self, message: str, overlap: Optional[list] = None) -> None:
        self.overlap = list(overlap) if overlap is not None else []
        super().__init__(message)
