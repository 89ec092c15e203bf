"""Property tests for partitioning, aggregation and selection."""

import math
import random

import numpy as np
import pandas as pd
import pytest

from sklearn_tune.core.data.dataset import Dataset
from sklearn_tune.core.data.partitioner import kfold, repeated_kfold, split
from sklearn_tune.core.tuning.aggregation import MetricRecord, MetricSummary, summarize
from sklearn_tune.core.tuning.selection import select_best
from sklearn_tune.search.configuration import Configuration


def _dataset(n_rows, n_classes, seed):
    rng = np.random.default_rng(seed)
    labels = np.array([f"c{i % n_classes}" for i in range(n_rows)])
    rng.shuffle(labels)
    frame = pd.DataFrame({"x": rng.normal(size=n_rows), "label": labels})
    return Dataset(frame=frame, outcome="label")


CASES = [(n, c, k, seed) for n in (23, 60, 101) for c in (2, 3) for k in (2, 3, 5) for seed in (0, 7)]


class TestPartitionProperties:
    """Holdouts of a k-fold resample partition the rows."""

    @pytest.mark.parametrize("n_rows,n_classes,k,seed", CASES)
    def test_kfold_holdouts_partition_rows(self, n_rows, n_classes, k, seed):
        """Verify holdouts are disjoint, cover all rows and never meet their train part."""
        ds = _dataset(n_rows, n_classes, seed)
        resample = kfold(ds, k, seed=seed)

        holdouts = np.concatenate([s.holdout_indices for s in resample])
        np.testing.assert_array_equal(np.sort(holdouts), np.arange(n_rows))
        for s in resample:
            assert np.intersect1d(s.train_indices, s.holdout_indices).size == 0
            assert s.n_train + s.n_holdout == n_rows

    @pytest.mark.parametrize("n_rows,n_classes,k,seed", CASES)
    def test_stratified_kfold_balanced(self, n_rows, n_classes, k, seed):
        """Verify every fold has n_c/k rows of each class within one."""
        ds = _dataset(n_rows, n_classes, seed)
        resample = kfold(ds, k, stratify_by="label", seed=seed)
        y = ds.y.to_numpy()

        sizes = [s.n_holdout for s in resample]
        assert max(sizes) - min(sizes) <= 1
        for cls in np.unique(y):
            n_c = int((y == cls).sum())
            for s in resample:
                count = int((y[s.holdout_indices] == cls).sum())
                assert abs(count - n_c / k) < 1

    @pytest.mark.parametrize("fraction", [0.5, 0.6, 0.75, 0.9])
    @pytest.mark.parametrize("seed", [0, 1, 2])
    def test_stratified_split_counts(self, fraction, seed):
        """Verify each class puts n_c - ceil(fraction * n_c) rows in the holdout."""
        ds = _dataset(97, 3, seed)
        result = split(ds, fraction, stratify_by="label", seed=seed)
        y = ds.y.to_numpy()

        for cls in np.unique(y):
            n_c = int((y == cls).sum())
            held = int((y[result.holdout_indices] == cls).sum())
            assert held == n_c - math.ceil(fraction * n_c)

    def test_repeated_kfold_deterministic(self):
        """Verify repeated resamples are reproducible from the seed."""
        ds = _dataset(60, 3, 0)

        a = repeated_kfold(ds, 5, 3, stratify_by="label", seed=123)
        b = repeated_kfold(ds, 5, 3, stratify_by="label", seed=123)

        assert [s.holdout_indices.tobytes() for s in a] == [s.holdout_indices.tobytes() for s in b]


class TestAggregationProperties:
    """Summaries do not depend on record arrival order."""

    @pytest.mark.parametrize("seed", range(5))
    def test_permutation_invariance(self, seed):
        """Verify shuffling records leaves summaries bit-identical."""
        rng = random.Random(seed)
        records = [
            MetricRecord(Configuration(i=i), f"Fold{j}", metric, rng.uniform(0, 1), config_order=i)
            for i in range(4)
            for j in range(10)
            for metric in ("accuracy", "roc_auc")
        ]
        expected = [(s.config_id, s.metric, s.mean, s.std_err, s.n) for s in summarize(records)]

        rng.shuffle(records)
        shuffled = [(s.config_id, s.metric, s.mean, s.std_err, s.n) for s in summarize(records)]

        assert shuffled == expected

    def test_selection_tie_break_by_std_err(self):
        """Verify equal means select the smaller standard error regardless of input order."""
        a = MetricSummary(Configuration(i=0), "accuracy", 0.8, 0.03, 5, config_order=0)
        b = MetricSummary(Configuration(i=1), "accuracy", 0.8, 0.01, 5, config_order=1)

        assert select_best([a, b], "accuracy").configuration == b.configuration
        assert select_best([b, a], "accuracy").configuration == b.configuration
