"""Resampling configuration and split management."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple

import numpy as np

from sklearn_tune.exceptions import InvalidFoldCount, InvalidFraction, LeakageViolation


class ResamplingScheme(Enum):
    """Resampling schemes used for tuning."""

    KFOLD = "kfold"
    REPEATED_KFOLD = "repeated_kfold"
    VALIDATION = "validation"


def _frozen_indices(indices) -> np.ndarray:
    array = np.sort(np.asarray(indices, dtype=np.int64))
    array.flags.writeable = False
    return array


@dataclass(frozen=True)
class Split:
    """
    A pair of disjoint row-position sets over a dataset.

    Attributes:
        train_indices: Positions of training rows (sorted, read-only).
        holdout_indices: Positions of held-out rows (sorted, read-only).
        fold_idx: Index of this split within its repeat (0-based).
        repeat_idx: Index of the repeat (for repeated k-fold).
        label: Explicit identifier; derived from the indices when empty.
    """

    train_indices: np.ndarray
    holdout_indices: np.ndarray
    fold_idx: int = 0
    repeat_idx: int = 0
    label: str = ""

    def __post_init__(self) -> None:
        train = _frozen_indices(self.train_indices)
        holdout = _frozen_indices(self.holdout_indices)
        overlap = np.intersect1d(train, holdout)
        if overlap.size:
            raise LeakageViolation(
                f"Split {self.label or self.fold_idx} has {overlap.size} rows "
                f"in both train and holdout",
                overlap=overlap.tolist(),
            )
        object.__setattr__(self, "train_indices", train)
        object.__setattr__(self, "holdout_indices", holdout)

    @property
    def id(self) -> str:
        """Human-readable split identifier."""
        if self.label:
            return self.label
        return f"Fold{self.fold_idx + 1}"

    @property
    def n_train(self) -> int:
        """Number of training rows."""
        return len(self.train_indices)

    @property
    def n_holdout(self) -> int:
        """Number of held-out rows."""
        return len(self.holdout_indices)

    def train(self, dataset):
        """Training rows of ``dataset`` as a new Dataset."""
        return dataset.take(self.train_indices)

    def holdout(self, dataset):
        """Held-out rows of ``dataset`` as a new Dataset."""
        return dataset.take(self.holdout_indices)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Split):
            return NotImplemented
        return (
            self.id == other.id
            and np.array_equal(self.train_indices, other.train_indices)
            and np.array_equal(self.holdout_indices, other.holdout_indices)
        )

    def __hash__(self) -> int:
        return hash((self.id, self.train_indices.tobytes(), self.holdout_indices.tobytes()))

    def __repr__(self) -> str:
        return f"Split(id={self.id}, n_train={self.n_train}, n_holdout={self.n_holdout})"


@dataclass(frozen=True)
class Resample:
    """
    An ordered collection of splits over the same dataset.

    Attributes:
        splits: The splits, in enumeration order.
        n_rows: Number of rows in the resampled dataset.
        scheme: Scheme that generated the splits.
        seed: Seed used to generate the splits.
        strata: Stratification column, if any.
    """

    splits: Tuple[Split, ...]
    n_rows: int
    scheme: ResamplingScheme = ResamplingScheme.KFOLD
    seed: Optional[int] = None
    strata: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "splits", tuple(self.splits))
        ids = [s.id for s in self.splits]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Split ids must be unique, got {ids}")

    @property
    def n_splits(self) -> int:
        """Number of splits."""
        return len(self.splits)

    @property
    def ids(self) -> Tuple[str, ...]:
        """Split identifiers in order."""
        return tuple(s.id for s in self.splits)

    def __iter__(self) -> Iterator[Split]:
        return iter(self.splits)

    def __len__(self) -> int:
        return len(self.splits)

    def __getitem__(self, item: int) -> Split:
        return self.splits[item]

    def __repr__(self) -> str:
        strata_str = f", strata={self.strata}" if self.strata else ""
        return (
            f"Resample(scheme={self.scheme.value}, n_splits={self.n_splits}, "
            f"n_rows={self.n_rows}{strata_str})"
        )


@dataclass
class ResamplingConfig:
    """
    Resampling configuration used while tuning.

    Attributes:
        scheme: Resampling scheme.
        n_splits: Number of folds (k-fold schemes).
        n_repeats: Number of repeats (repeated k-fold).
        fraction: Proportion of rows used for training (validation scheme).
        strata: Optional column to stratify on.
        seed: Random seed for reproducibility.
    """

    scheme: ResamplingScheme = ResamplingScheme.KFOLD
    n_splits: int = 10
    n_repeats: int = 1
    fraction: float = 0.75
    strata: Optional[str] = None
    seed: int = 42

    def __post_init__(self) -> None:
        """Validate configuration."""
        if isinstance(self.scheme, str):
            self.scheme = ResamplingScheme(self.scheme)
        if self.scheme != ResamplingScheme.VALIDATION:
            if isinstance(self.n_splits, bool) or not isinstance(self.n_splits, (int, np.integer)) or self.n_splits < 2:
                raise InvalidFoldCount(self.n_splits)
        if self.n_repeats < 1:
            raise ValueError(f"n_repeats must be >= 1, got {self.n_repeats}")
        if not 0.0 < self.fraction < 1.0:
            raise InvalidFraction(self.fraction)

    @property
    def total_splits(self) -> int:
        """Total number of splits the scheme produces."""
        if self.scheme == ResamplingScheme.VALIDATION:
            return 1
        if self.scheme == ResamplingScheme.REPEATED_KFOLD:
            return self.n_splits * self.n_repeats
        return self.n_splits

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> ResamplingConfig:
        """Create a configuration from a plain dictionary."""
        return cls(**config)

    def __repr__(self) -> str:
        strata_str = f", strata={self.strata}" if self.strata else ""
        return (
            f"ResamplingConfig(scheme={self.scheme.value}, n_splits={self.n_splits}, "
            f"n_repeats={self.n_repeats}{strata_str})"
        )
