"""Partitioner: Deterministic, optionally stratified dataset splitting."""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd
from pandas.api.types import is_bool_dtype, is_float_dtype, is_integer_dtype

from sklearn_tune.core.data.cv import Resample, ResamplingConfig, ResamplingScheme, Split
from sklearn_tune.core.data.dataset import Dataset
from sklearn_tune.exceptions import InsufficientRows, InvalidFoldCount, InvalidFraction

logger = logging.getLogger(__name__)

# Integer columns with more distinct values than this are binned like floats.
MAX_INTEGER_LEVELS = 10
N_STRATA_BINS = 4


def _check_fraction(fraction: float) -> None:
    if isinstance(fraction, bool) or not isinstance(fraction, (int, float, np.floating)):
        raise InvalidFraction(fraction)
    if not 0.0 < float(fraction) < 1.0:
        raise InvalidFraction(fraction)


def _check_k(k: int) -> None:
    if isinstance(k, bool) or not isinstance(k, (int, np.integer)) or k < 2:
        raise InvalidFoldCount(k)


def strata_codes(dataset: Dataset, stratify_by: str) -> Optional[np.ndarray]:
    """
    Integer stratum code for every row, or None if stratification is dropped.

    Categorical, boolean, object and low-cardinality integer columns are used
    as is. Other numeric columns are binned into quartiles; if fewer than two
    bins survive, stratification is dropped with a warning. Codes follow the
    order of first appearance so the result depends only on the data.
    """
    values = dataset.column(stratify_by)

    if is_float_dtype(values) or (
        is_integer_dtype(values)
        and not is_bool_dtype(values)
        and values.nunique() > MAX_INTEGER_LEVELS
    ):
        binned = None
        if values.nunique() >= 2:
            binned = pd.qcut(values, q=N_STRATA_BINS, duplicates="drop")
        if binned is None or binned.cat.categories.size < 2:
            logger.warning(
                f"Column {stratify_by!r} has too few distinct values to bin; "
                f"falling back to unstratified sampling"
            )
            return None
        values = binned.astype(str)

    codes, _ = pd.factorize(values, sort=False)
    if (codes < 0).any():
        raise ValueError(f"Stratification column {stratify_by!r} contains missing values")
    return codes


def _groups(codes: Optional[np.ndarray], n_rows: int) -> List[np.ndarray]:
    if codes is None:
        return [np.arange(n_rows, dtype=np.int64)]
    return [
        np.flatnonzero(codes == code).astype(np.int64)
        for code in range(int(codes.max()) + 1)
    ]


def _split_positions(
    dataset: Dataset,
    fraction: float,
    stratify_by: Optional[str],
    seed: int,
) -> Tuple[np.ndarray, np.ndarray]:
    _check_fraction(fraction)
    codes = strata_codes(dataset, stratify_by) if stratify_by is not None else None
    rng = np.random.default_rng(seed)

    train_parts = []
    holdout_parts = []
    for group in _groups(codes, dataset.n_rows):
        permuted = rng.permutation(group)
        n_train = int(math.ceil(fraction * len(permuted)))
        train_parts.append(permuted[:n_train])
        holdout_parts.append(permuted[n_train:])

    train = np.concatenate(train_parts) if train_parts else np.array([], dtype=np.int64)
    holdout = np.concatenate(holdout_parts) if holdout_parts else np.array([], dtype=np.int64)
    if len(train) == 0 or len(holdout) == 0:
        raise InsufficientRows(
            f"Cannot split {dataset.n_rows} rows with fraction={fraction}: "
            f"one side would be empty",
            n_rows=dataset.n_rows,
        )
    return train, holdout


def split(
    dataset: Dataset,
    fraction: float,
    stratify_by: Optional[str] = None,
    seed: int = 42,
    label: str = "",
) -> Split:
    """
    Split a dataset into disjoint train and holdout positions.

    Args:
        dataset: Dataset to split.
        fraction: Proportion of rows placed in train, in (0, 1).
        stratify_by: Optional column whose per-class proportions are preserved.
        seed: Seed for all randomness.
        label: Optional identifier for the split.

    Returns:
        A Split whose train part holds ceil(fraction * n) rows (per stratum
        when stratified).
    """
    train, holdout = _split_positions(dataset, fraction, stratify_by, seed)
    return Split(train_indices=train, holdout_indices=holdout, label=label)


def initial_split(
    dataset: Dataset,
    fraction: float = 0.75,
    stratify_by: Optional[str] = None,
    seed: int = 42,
) -> Tuple[Split, Dataset, Dataset]:
    """
    Split off a test set that is never used during tuning.

    Returns:
        Tuple of (split, training pool, test set).
    """
    test_split = split(dataset, fraction, stratify_by=stratify_by, seed=seed, label="test")
    return test_split, test_split.train(dataset), test_split.holdout(dataset)


def validation_split(
    dataset: Dataset,
    fraction: float = 0.75,
    stratify_by: Optional[str] = None,
    seed: int = 42,
) -> Resample:
    """Single train/validation split wrapped as a one-split resample."""
    single = split(dataset, fraction, stratify_by=stratify_by, seed=seed, label="validation")
    return Resample(
        splits=(single,),
        n_rows=dataset.n_rows,
        scheme=ResamplingScheme.VALIDATION,
        seed=seed,
        strata=stratify_by,
    )


def _fold_assignment(
    dataset: Dataset,
    k: int,
    stratify_by: Optional[str],
    rng: np.random.Generator,
) -> List[np.ndarray]:
    """Holdout positions for each of k folds."""
    if dataset.n_rows < k:
        raise InsufficientRows(
            f"Cannot make {k} folds from {dataset.n_rows} rows",
            n_rows=dataset.n_rows,
        )

    codes = strata_codes(dataset, stratify_by) if stratify_by is not None else None
    groups = _groups(codes, dataset.n_rows)
    if codes is not None:
        values = dataset.column(stratify_by)
        for group in groups:
            if len(group) < k:
                stratum = values.iloc[group[0]]
                raise InsufficientRows(
                    f"Stratum {stratum!r} of {stratify_by!r} has {len(group)} rows; "
                    f"need at least {k} to place one in every fold",
                    stratum=stratum,
                    n_rows=len(group),
                )

    folds: List[List[np.ndarray]] = [[] for _ in range(k)]
    offset = 0
    for group in groups:
        chunks = np.array_split(rng.permutation(group), k)
        # array_split front-loads the larger chunks; rotating by the running
        # remainder keeps overall fold sizes within one row of each other.
        for j, chunk in enumerate(chunks):
            folds[(j + offset) % k].append(chunk)
        offset = (offset + len(group) % k) % k

    return [np.concatenate(parts) for parts in folds]


def _kfold_splits(
    dataset: Dataset,
    k: int,
    stratify_by: Optional[str],
    seed: int,
    repeat_idx: int = 0,
    repeated: bool = False,
) -> List[Split]:
    rng = np.random.default_rng(seed)
    holdouts = _fold_assignment(dataset, k, stratify_by, rng)
    all_rows = np.arange(dataset.n_rows, dtype=np.int64)

    splits = []
    for fold_idx, holdout in enumerate(holdouts):
        label = f"Repeat{repeat_idx + 1}_Fold{fold_idx + 1}" if repeated else ""
        splits.append(
            Split(
                train_indices=np.setdiff1d(all_rows, holdout, assume_unique=True),
                holdout_indices=holdout,
                fold_idx=fold_idx,
                repeat_idx=repeat_idx,
                label=label,
            )
        )
    return splits


def kfold(
    dataset: Dataset,
    k: int,
    stratify_by: Optional[str] = None,
    seed: int = 42,
) -> Resample:
    """
    Partition all rows into k folds; each fold is the holdout of one split.

    Args:
        dataset: Dataset to partition.
        k: Number of folds (integer >= 2).
        stratify_by: Optional column whose class proportions each fold keeps.
        seed: Seed for all randomness.

    Returns:
        Resample with k splits whose holdouts cover every row exactly once.
    """
    _check_k(k)
    return Resample(
        splits=tuple(_kfold_splits(dataset, k, stratify_by, seed)),
        n_rows=dataset.n_rows,
        scheme=ResamplingScheme.KFOLD,
        seed=seed,
        strata=stratify_by,
    )


def repeated_kfold(
    dataset: Dataset,
    k: int,
    n_repeats: int,
    stratify_by: Optional[str] = None,
    seed: int = 42,
) -> Resample:
    """K-fold repeated ``n_repeats`` times; repeat r is seeded with ``seed + r``."""
    _check_k(k)
    if n_repeats < 1:
        raise ValueError(f"n_repeats must be >= 1, got {n_repeats}")

    splits: List[Split] = []
    for repeat_idx in range(n_repeats):
        splits.extend(
            _kfold_splits(
                dataset, k, stratify_by, seed + repeat_idx,
                repeat_idx=repeat_idx, repeated=True,
            )
        )
    return Resample(
        splits=tuple(splits),
        n_rows=dataset.n_rows,
        scheme=ResamplingScheme.REPEATED_KFOLD,
        seed=seed,
        strata=stratify_by,
    )


def make_resamples(dataset: Dataset, config: ResamplingConfig) -> Resample:
    """Build the resample described by a ResamplingConfig."""
    if config.scheme == ResamplingScheme.VALIDATION:
        return validation_split(
            dataset, config.fraction, stratify_by=config.strata, seed=config.seed
        )
    if config.scheme == ResamplingScheme.REPEATED_KFOLD:
        return repeated_kfold(
            dataset, config.n_splits, config.n_repeats,
            stratify_by=config.strata, seed=config.seed,
        )
    return kfold(dataset, config.n_splits, stratify_by=config.strata, seed=config.seed)
