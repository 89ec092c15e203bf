"""Final fit: refit the selected configuration and score the test set once."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Union

import numpy as np

from sklearn_tune.core.data.cv import Resample
from sklearn_tune.core.data.dataset import Dataset
from sklearn_tune.core.model.estimator import Estimator, FittedModel
from sklearn_tune.core.model.metrics import FoldPredictions, MetricSet
from sklearn_tune.core.tuning.aggregation import MetricRecord
from sklearn_tune.exceptions import LeakageViolation
from sklearn_tune.search.configuration import Configuration

TEST_SPLIT_ID = "test"


@dataclass
class FinalFitResult:
    """
    Result of refitting on the training pool and scoring the test set.

    Attributes:
        fitted_model: Model fit on the full training pool.
        records: One metric record per metric, on the test set.
        predictions: Test-set predictions, when retained.
        fit_time: Time to fit in seconds.
    """

    fitted_model: FittedModel
    records: List[MetricRecord]
    predictions: Optional[FoldPredictions] = None
    fit_time: float = 0.0

    @property
    def metrics(self) -> Dict[str, float]:
        """Test metrics by name."""
        return {r.metric: r.value for r in self.records}

    def __repr__(self) -> str:
        scores = ", ".join(f"{k}={v:.4f}" for k, v in self.metrics.items())
        return f"FinalFitResult({scores})"


def check_leakage(
    train: Dataset,
    test: Dataset,
    resample: Optional[Resample] = None,
) -> None:
    """
    Verify that no test row was seen during tuning.

    Rows are compared by their labels in the originally loaded data.

    Raises:
        LeakageViolation: If a test row is in the training pool or in any
            split of the resample.
    """
    test_ids = test.row_ids
    overlap = np.intersect1d(train.row_ids, test_ids)
    if overlap.size:
        raise LeakageViolation(
            f"{overlap.size} test rows are also in the training pool",
            overlap=overlap.tolist(),
        )
    if resample is None:
        return
    if resample.n_rows != train.n_rows:
        raise LeakageViolation(
            f"Resample covers {resample.n_rows} rows but the training pool has "
            f"{train.n_rows}; it was not built from this training pool"
        )
    pool_ids = train.row_ids
    for split in resample:
        for part in (split.train_indices, split.holdout_indices):
            overlap = np.intersect1d(pool_ids[part], test_ids)
            if overlap.size:
                raise LeakageViolation(
                    f"Split {split.id} uses {overlap.size} test rows",
                    overlap=overlap.tolist(),
                )


def finalize(
    estimator: Estimator,
    configuration: Configuration,
    train: Dataset,
    test: Dataset,
    metrics: Union[MetricSet, Sequence[str], str],
    resample: Optional[Resample] = None,
    keep_predictions: bool = True,
) -> FinalFitResult:
    """
    Refit on the full training pool and score exactly once on the test set.

    Args:
        estimator: Estimator to fit.
        configuration: The selected configuration.
        train: The full training pool (not a single fold).
        test: The test set split off before any tuning.
        metrics: Metrics to compute on the test set.
        resample: The resample used for tuning, checked for test rows.
        keep_predictions: Retain test-set predictions on the result.

    Returns:
        FinalFitResult with the fitted model and test metric records.

    Raises:
        LeakageViolation: If the test set overlaps training rows.
        TrainingFailure: If the final fit fails.
    """
    metric_set = MetricSet.coerce(metrics)
    check_leakage(train, test, resample)

    start_time = time.time()
    fitted = estimator.fit(train, configuration)
    fit_time = time.time() - start_time

    predictions = estimator.predict_holdout(fitted, test, split_id=TEST_SPLIT_ID)
    values = metric_set.compute(predictions)
    kept = predictions if keep_predictions else None
    records = [
        MetricRecord(
            configuration=configuration,
            split_id=TEST_SPLIT_ID,
            metric=name,
            value=value,
            predictions=kept,
        )
        for name, value in values.items()
    ]
    return FinalFitResult(
        fitted_model=fitted,
        records=records,
        predictions=kept,
        fit_time=fit_time,
    )
