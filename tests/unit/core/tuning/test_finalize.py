"""Tests for the final fit and leakage checks."""

import numpy as np
import pytest
from sklearn.linear_model import LogisticRegression

from sklearn_tune.core.data.partitioner import initial_split, kfold
from sklearn_tune.core.model.estimator import SklearnEstimator
from sklearn_tune.core.tuning.finalize import TEST_SPLIT_ID, check_leakage, finalize
from sklearn_tune.exceptions import LeakageViolation, TrainingFailure
from sklearn_tune.search.configuration import Configuration


class TestCheckLeakage:
    """Tests for check_leakage()."""

    def test_disjoint_sets_pass(self, imbalanced_dataset):
        """Verify a proper initial split passes."""
        _, train, test = initial_split(imbalanced_dataset, 0.75, seed=0)

        check_leakage(train, test, kfold(train, 5, seed=0))

    def test_overlapping_rows_raise(self, imbalanced_dataset):
        """Verify shared rows are reported."""
        train = imbalanced_dataset.take(np.arange(0, 80))
        test = imbalanced_dataset.take(np.arange(70, 120))

        with pytest.raises(LeakageViolation) as exc_info:
            check_leakage(train, test)

        assert exc_info.value.overlap == list(range(70, 80))

    def test_resample_over_full_data_raises(self, imbalanced_dataset):
        """Verify a resample built on all rows cannot be paired with a test set."""
        _, train, test = initial_split(imbalanced_dataset, 0.75, seed=0)
        full_resample = kfold(imbalanced_dataset, 5, seed=0)

        with pytest.raises(LeakageViolation):
            check_leakage(train, test, full_resample)


class TestFinalize:
    """Tests for finalize()."""

    def test_scores_test_set_once(self, classification_dataset):
        """Verify one record per metric on the test split."""
        _, train, test = initial_split(classification_dataset, 0.75, stratify_by="target", seed=1)
        estimator = SklearnEstimator(LogisticRegression, fixed_params={"max_iter": 500})

        result = finalize(estimator, Configuration(C=1.0), train, test, ["accuracy", "roc_auc"])

        assert [r.metric for r in result.records] == ["accuracy", "roc_auc"]
        assert all(r.split_id == TEST_SPLIT_ID for r in result.records)
        assert result.metrics["accuracy"] > 0.7
        assert result.fitted_model.n_train == train.n_rows

    def test_predictions_cover_test_rows(self, classification_dataset):
        """Verify retained predictions are exactly the test rows."""
        _, train, test = initial_split(classification_dataset, 0.75, seed=1)
        estimator = SklearnEstimator(LogisticRegression, fixed_params={"max_iter": 500})

        result = finalize(estimator, Configuration(), train, test, "accuracy")

        np.testing.assert_array_equal(result.predictions.row_ids, test.row_ids)

    def test_leakage_checked_before_fit(self, constant_estimator, ten_row_dataset):
        """Verify an overlapping test set raises before any model is fit."""
        with pytest.raises(LeakageViolation):
            finalize(
                constant_estimator,
                Configuration(value="boom"),
                ten_row_dataset,
                ten_row_dataset.take(np.array([0, 1])),
                ["accuracy"],
            )

    def test_training_failure_propagates(self, constant_estimator, ten_row_dataset):
        """Verify a failing final fit raises TrainingFailure."""
        _, train, test = initial_split(ten_row_dataset, 0.7, seed=0)

        with pytest.raises(TrainingFailure):
            finalize(constant_estimator, Configuration(value="boom"), train, test, ["accuracy"])
