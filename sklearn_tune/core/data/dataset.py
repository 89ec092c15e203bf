"""Dataset: Immutable view over a tabular dataset with a designated outcome."""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from sklearn_tune.exceptions import UnknownColumn


@dataclass(frozen=True)
class Dataset:
    """
    Immutable container for a dataset snapshot.

    Rows keep the index labels of the frame they were loaded from, so a subset
    produced by ``take`` can always be traced back to the original rows via
    ``row_ids``. All operations return new Datasets; nothing mutates in place.

    Attributes:
        frame: The underlying DataFrame.
        outcome: Name of the outcome column.
        predictors: Predictor column names (defaults to all other columns).
        metadata: Additional metadata carried along with the data.
    """

    frame: pd.DataFrame
    outcome: str
    predictors: Tuple[str, ...] = ()
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate columns and fill default predictors."""
        columns = list(self.frame.columns)
        if self.outcome not in self.frame.columns:
            raise UnknownColumn(self.outcome, columns)

        if not self.predictors:
            predictors = tuple(c for c in columns if c != self.outcome)
        else:
            predictors = tuple(self.predictors)
            for name in predictors:
                if name not in self.frame.columns:
                    raise UnknownColumn(name, columns)
        object.__setattr__(self, "predictors", predictors)

        if not self.frame.index.is_unique:
            raise ValueError("Dataset frame index must be unique to identify rows")

        if self.frame[self.outcome].isnull().any():
            nan_count = int(self.frame[self.outcome].isnull().sum())
            warnings.warn(f"Outcome column {self.outcome!r} contains {nan_count} missing values")

    @classmethod
    def from_records(
        cls,
        rows: Sequence[Dict[str, Any]],
        outcome: str,
        predictors: Optional[Sequence[str]] = None,
    ) -> Dataset:
        """Build a dataset from a sequence of row mappings."""
        return cls(
            frame=pd.DataFrame.from_records(list(rows)),
            outcome=outcome,
            predictors=tuple(predictors or ()),
        )

    @property
    def n_rows(self) -> int:
        """Number of rows."""
        return len(self.frame)

    def __len__(self) -> int:
        return len(self.frame)

    @property
    def row_ids(self) -> np.ndarray:
        """Index labels of the rows in the originally loaded data."""
        return self.frame.index.to_numpy()

    @property
    def X(self) -> pd.DataFrame:
        """Predictor columns."""
        return self.frame.loc[:, list(self.predictors)]

    @property
    def y(self) -> pd.Series:
        """Outcome column."""
        return self.frame[self.outcome]

    def column(self, name: str) -> pd.Series:
        """Get a column by name, raising UnknownColumn if absent."""
        if name not in self.frame.columns:
            raise UnknownColumn(name, list(self.frame.columns))
        return self.frame[name]

    def row(self, position: int) -> Dict[str, Any]:
        """Get the row at a position as a mapping from column name to value."""
        return self.frame.iloc[position].to_dict()

    def take(self, indices: np.ndarray) -> Dataset:
        """Create a new dataset from the rows at the given positions."""
        return Dataset(
            frame=self.frame.iloc[np.asarray(indices, dtype=np.int64)].copy(),
            outcome=self.outcome,
            predictors=self.predictors,
            metadata=self.metadata,
        )

    def with_frame(self, frame: pd.DataFrame, predictors: Optional[Sequence[str]] = None) -> Dataset:
        """Create a new dataset over a different frame with the same outcome."""
        return Dataset(
            frame=frame,
            outcome=self.outcome,
            predictors=tuple(predictors) if predictors is not None else (),
            metadata=self.metadata,
        )

    def with_metadata(self, key: str, value: Any) -> Dataset:
        """Create a new dataset with additional metadata."""
        new_metadata = dict(self.metadata)
        new_metadata[key] = value
        return Dataset(
            frame=self.frame,
            outcome=self.outcome,
            predictors=self.predictors,
            metadata=new_metadata,
        )

    def __repr__(self) -> str:
        return (
            f"Dataset(n_rows={self.n_rows}, outcome={self.outcome}, "
            f"n_predictors={len(self.predictors)})"
        )
