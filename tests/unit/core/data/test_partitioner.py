"""Tests for the partitioner."""

import math

import numpy as np
import pandas as pd
import pytest

from sklearn_tune.core.data.cv import ResamplingConfig, ResamplingScheme
from sklearn_tune.core.data.dataset import Dataset
from sklearn_tune.core.data.partitioner import (
    initial_split,
    kfold,
    make_resamples,
    repeated_kfold,
    split,
    strata_codes,
    validation_split,
)
from sklearn_tune.exceptions import (
    InsufficientRows,
    InvalidFoldCount,
    InvalidFraction,
    UnknownColumn,
)


class TestSplit:
    """Tests for split()."""

    def test_train_size_is_ceiling(self, ten_row_dataset):
        """Verify train holds ceil(fraction * n) rows."""
        result = split(ten_row_dataset, 0.75, seed=1)

        assert result.n_train == 8
        assert result.n_holdout == 2

    def test_union_is_all_rows(self, imbalanced_dataset):
        """Verify no row is lost or duplicated."""
        result = split(imbalanced_dataset, 0.6, seed=3)

        combined = np.concatenate([result.train_indices, result.holdout_indices])
        np.testing.assert_array_equal(np.sort(combined), np.arange(imbalanced_dataset.n_rows))

    @pytest.mark.parametrize("fraction", [0.0, 1.0, -0.1, 1.5])
    def test_invalid_fraction_raises(self, ten_row_dataset, fraction):
        """Verify fractions outside (0, 1) raise InvalidFraction."""
        with pytest.raises(InvalidFraction):
            split(ten_row_dataset, fraction, seed=1)

    def test_unknown_stratify_column_raises(self, ten_row_dataset):
        """Verify an absent stratify column raises UnknownColumn."""
        with pytest.raises(UnknownColumn):
            split(ten_row_dataset, 0.5, stratify_by="missing", seed=1)

    def test_empty_holdout_raises(self):
        """Verify a split that would leave one side empty raises."""
        ds = Dataset(frame=pd.DataFrame({"x": [1.0], "y": ["a"]}), outcome="y")

        with pytest.raises(InsufficientRows):
            split(ds, 0.5, seed=1)

    def test_stratified_counts_per_class(self, imbalanced_dataset):
        """Verify each class contributes ceil(fraction * n_c) rows to train."""
        result = split(imbalanced_dataset, 0.75, stratify_by="children", seed=7)
        y = imbalanced_dataset.y.to_numpy()

        assert (y[result.train_indices] == "yes").sum() == math.ceil(0.75 * 30)
        assert (y[result.train_indices] == "no").sum() == math.ceil(0.75 * 90)

    def test_deterministic(self, imbalanced_dataset):
        """Verify identical arguments give byte-identical splits."""
        a = split(imbalanced_dataset, 0.75, stratify_by="children", seed=11)
        b = split(imbalanced_dataset, 0.75, stratify_by="children", seed=11)

        assert a.train_indices.tobytes() == b.train_indices.tobytes()
        assert a.holdout_indices.tobytes() == b.holdout_indices.tobytes()

    def test_different_seeds_differ(self, imbalanced_dataset):
        """Verify the seed controls the partition."""
        a = split(imbalanced_dataset, 0.75, seed=1)
        b = split(imbalanced_dataset, 0.75, seed=2)

        assert not np.array_equal(a.holdout_indices, b.holdout_indices)


class TestInitialAndValidationSplit:
    """Tests for initial_split() and validation_split()."""

    def test_initial_split_returns_disjoint_sets(self, imbalanced_dataset):
        """Verify training pool and test set are disjoint by row id."""
        test_split, train, test = initial_split(imbalanced_dataset, 0.75, stratify_by="children", seed=5)

        assert test_split.id == "test"
        assert train.n_rows + test.n_rows == imbalanced_dataset.n_rows
        assert len(np.intersect1d(train.row_ids, test.row_ids)) == 0

    def test_validation_split_is_single_split_resample(self, imbalanced_dataset):
        """Verify the validation scheme yields one split."""
        resample = validation_split(imbalanced_dataset, 0.75, seed=5)

        assert resample.scheme == ResamplingScheme.VALIDATION
        assert resample.ids == ("validation",)
        assert resample[0].n_train == 90


class TestKFold:
    """Tests for kfold()."""

    def test_three_folds_over_nine_rows(self, nine_row_dataset):
        """Verify each fold's parts are disjoint and holdouts cover all rows once."""
        resample = kfold(nine_row_dataset, 3, seed=42)

        holdouts = [s.holdout_indices for s in resample]
        for s in resample:
            assert len(np.intersect1d(s.train_indices, s.holdout_indices)) == 0
            assert s.n_train + s.n_holdout == 9
        np.testing.assert_array_equal(np.sort(np.concatenate(holdouts)), np.arange(9))

    def test_fold_sizes_differ_by_at_most_one(self, imbalanced_dataset):
        """Verify fold sizes are balanced when n is not divisible by k."""
        resample = kfold(imbalanced_dataset, 7, seed=0)
        sizes = [s.n_holdout for s in resample]

        assert max(sizes) - min(sizes) <= 1

    def test_stratified_fold_sizes_differ_by_at_most_one(self, imbalanced_dataset):
        """Verify stratification keeps overall fold sizes balanced."""
        resample = kfold(imbalanced_dataset, 7, stratify_by="children", seed=0)
        sizes = [s.n_holdout for s in resample]

        assert max(sizes) - min(sizes) <= 1
        assert sum(sizes) == imbalanced_dataset.n_rows

    def test_stratified_class_counts_per_fold(self, imbalanced_dataset):
        """Verify every fold holds 30/k "yes" rows within one."""
        resample = kfold(imbalanced_dataset, 4, stratify_by="children", seed=0)
        y = imbalanced_dataset.y.to_numpy()

        for s in resample:
            n_yes = (y[s.holdout_indices] == "yes").sum()
            assert abs(n_yes - 30 / 4) <= 1

    def test_split_ids(self, nine_row_dataset):
        """Verify fold ids are 1-based."""
        resample = kfold(nine_row_dataset, 3, seed=0)

        assert resample.ids == ("Fold1", "Fold2", "Fold3")

    @pytest.mark.parametrize("k", [1, 0, 2.5, True])
    def test_invalid_k_raises(self, nine_row_dataset, k):
        """Verify k must be an integer >= 2."""
        with pytest.raises(InvalidFoldCount):
            kfold(nine_row_dataset, k, seed=0)

    def test_more_folds_than_rows_raises(self, nine_row_dataset):
        """Verify k > n raises InsufficientRows."""
        with pytest.raises(InsufficientRows):
            kfold(nine_row_dataset, 10, seed=0)

    def test_stratum_smaller_than_k_raises(self, ten_row_dataset):
        """Verify a class with fewer rows than k raises InsufficientRows."""
        with pytest.raises(InsufficientRows) as exc_info:
            kfold(ten_row_dataset, 5, stratify_by="label", seed=0)

        assert exc_info.value.stratum == "b"
        assert exc_info.value.n_rows == 4

    def test_unknown_stratify_column_raises(self, ten_row_dataset):
        """Verify an absent stratify column raises UnknownColumn."""
        with pytest.raises(UnknownColumn):
            kfold(ten_row_dataset, 2, stratify_by="nope", seed=0)

    def test_deterministic(self, imbalanced_dataset):
        """Verify identical arguments give identical resamples."""
        a = kfold(imbalanced_dataset, 5, stratify_by="children", seed=9)
        b = kfold(imbalanced_dataset, 5, stratify_by="children", seed=9)

        assert a == b
        for sa, sb in zip(a, b):
            assert sa.holdout_indices.tobytes() == sb.holdout_indices.tobytes()


class TestRepeatedKFold:
    """Tests for repeated_kfold()."""

    def test_each_repeat_is_a_partition(self, nine_row_dataset):
        """Verify holdouts of each repeat cover all rows exactly once."""
        resample = repeated_kfold(nine_row_dataset, 3, 2, seed=0)

        assert resample.n_splits == 6
        for repeat in range(2):
            holdouts = [s.holdout_indices for s in resample if s.repeat_idx == repeat]
            np.testing.assert_array_equal(np.sort(np.concatenate(holdouts)), np.arange(9))

    def test_ids_include_repeat(self, nine_row_dataset):
        """Verify repeated split ids name the repeat and the fold."""
        resample = repeated_kfold(nine_row_dataset, 3, 2, seed=0)

        assert resample.ids[0] == "Repeat1_Fold1"
        assert resample.ids[-1] == "Repeat2_Fold3"

    def test_repeats_use_different_seeds(self, imbalanced_dataset):
        """Verify repeats produce different partitions."""
        resample = repeated_kfold(imbalanced_dataset, 3, 2, seed=0)

        assert not np.array_equal(resample[0].holdout_indices, resample[3].holdout_indices)


class TestStrataCodes:
    """Tests for numeric strata binning."""

    def test_numeric_column_is_binned_into_quartiles(self):
        """Verify a continuous column is stratified by quartile."""
        frame = pd.DataFrame({"x": np.arange(40, dtype=float), "y": np.arange(40, dtype=float)})
        ds = Dataset(frame=frame, outcome="y")

        codes = strata_codes(ds, "y")

        assert sorted(set(codes.tolist())) == [0, 1, 2, 3]
        assert np.bincount(codes).tolist() == [10, 10, 10, 10]

    def test_constant_numeric_column_falls_back(self):
        """Verify a column that cannot be binned disables stratification."""
        frame = pd.DataFrame({"x": np.arange(20, dtype=float), "y": np.ones(20)})
        ds = Dataset(frame=frame, outcome="y")

        assert strata_codes(ds, "y") is None

    def test_categorical_codes_in_order_of_appearance(self, ten_row_dataset):
        """Verify categorical codes follow first appearance."""
        codes = strata_codes(ten_row_dataset, "label")

        assert codes[:2].tolist() == [0, 1]


class TestMakeResamples:
    """Tests for make_resamples()."""

    def test_dispatch_kfold(self, imbalanced_dataset):
        """Verify k-fold config builds a k-fold resample."""
        resample = make_resamples(imbalanced_dataset, ResamplingConfig(n_splits=4, strata="children"))

        assert resample.scheme == ResamplingScheme.KFOLD
        assert resample.n_splits == 4
        assert resample.strata == "children"

    def test_dispatch_repeated(self, imbalanced_dataset):
        """Verify repeated config builds a repeated resample."""
        config = ResamplingConfig(scheme="repeated_kfold", n_splits=3, n_repeats=2)

        assert make_resamples(imbalanced_dataset, config).n_splits == 6

    def test_dispatch_validation(self, imbalanced_dataset):
        """Verify validation config builds a single split."""
        config = ResamplingConfig(scheme="validation", fraction=0.8)

        assert make_resamples(imbalanced_dataset, config).n_splits == 1
