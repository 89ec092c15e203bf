"""Data handling components."""

from sklearn_tune.core.data.cv import Resample, ResamplingConfig, ResamplingScheme, Split
from sklearn_tune.core.data.dataset import Dataset
from sklearn_tune.core.data.partitioner import (
    initial_split,
    kfold,
    make_resamples,
    repeated_kfold,
    split,
    validation_split,
)

__all__ = [
    "Dataset",
    "Split",
    "Resample",
    "ResamplingConfig",
    "ResamplingScheme",
    "split",
    "kfold",
    "repeated_kfold",
    "initial_split",
    "validation_split",
    "make_resamples",
]
