"""Metric records and their per-configuration summaries."""

from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from sklearn_tune.core.model.metrics import FoldPredictions
from sklearn_tune.search.configuration import Configuration


@dataclass(frozen=True)
class MetricRecord:
    """
    One metric value for one configuration on one split.

    Attributes:
        configuration: Configuration that was fit.
        split_id: Identifier of the split scored on.
        metric: Metric name.
        value: Metric value.
        config_order: Position of the configuration in enumeration order.
        predictions: Holdout predictions, when retained.
    """

    configuration: Configuration
    split_id: str
    metric: str
    value: float
    config_order: int = 0
    predictions: Optional[FoldPredictions] = None

    @property
    def config_id(self) -> str:
        return self.configuration.config_id

    def __repr__(self) -> str:
        return (
            f"MetricRecord(config={self.config_id}, split={self.split_id}, "
            f"{self.metric}={self.value:.4f})"
        )


@dataclass(frozen=True)
class MetricSummary:
    """
    Aggregate of one metric across the splits of one configuration.

    Attributes:
        configuration: The summarized configuration.
        metric: Metric name.
        mean: Arithmetic mean over contributing splits.
        std_err: Sample standard deviation / sqrt(n); nan when n == 1.
        n: Number of splits that produced a value.
        config_order: Position of the configuration in enumeration order.
    """

    configuration: Configuration
    metric: str
    mean: float
    std_err: float
    n: int
    config_order: int = 0

    @property
    def config_id(self) -> str:
        return self.configuration.config_id

    def __repr__(self) -> str:
        return (
            f"MetricSummary(config={self.configuration}, {self.metric}: "
            f"mean={self.mean:.4f}, std_err={self.std_err:.4f}, n={self.n})"
        )


def _mean_and_std_err(values: Sequence[float]) -> Tuple[float, float]:
    # Sorting first makes the floating point result independent of the order
    # records arrived in.
    ordered = sorted(values)
    n = len(ordered)
    mean = math.fsum(ordered) / n
    if n < 2:
        return mean, float("nan")
    variance = math.fsum((v - mean) ** 2 for v in ordered) / (n - 1)
    return mean, math.sqrt(variance) / math.sqrt(n)


def summarize(records: Iterable[MetricRecord]) -> List[MetricSummary]:
    """
    Collapse metric records into one summary per (configuration, metric).

    Non-finite values do not contribute. Configurations without any value for
    a metric produce no summary for it. The result is independent of the
    order of ``records`` and is sorted by (config_order, metric).

    Args:
        records: Metric records from one or more evaluations.

    Returns:
        List of MetricSummary.
    """
    groups: Dict[Tuple[Configuration, str], List[float]] = defaultdict(list)
    orders: Dict[Configuration, int] = {}
    for record in records:
        order = orders.get(record.configuration)
        orders[record.configuration] = (
            record.config_order if order is None else min(order, record.config_order)
        )
        if np.isfinite(record.value):
            groups[(record.configuration, record.metric)].append(float(record.value))

    summaries = []
    for (configuration, metric), values in groups.items():
        mean, std_err = _mean_and_std_err(values)
        summaries.append(
            MetricSummary(
                configuration=configuration,
                metric=metric,
                mean=mean,
                std_err=std_err,
                n=len(values),
                config_order=orders[configuration],
            )
        )
    summaries.sort(key=lambda s: (s.config_order, s.metric, s.config_id))
    return summaries


def records_to_frame(records: Iterable[MetricRecord]) -> pd.DataFrame:
    """Metric records as a long DataFrame, one column per hyperparameter."""
    rows = []
    for record in records:
        row = dict(record.configuration)
        row.update(
            {
                "config_id": record.config_id,
                "config_order": record.config_order,
                "split_id": record.split_id,
                "metric": record.metric,
                "value": record.value,
            }
        )
        rows.append(row)
    return pd.DataFrame(rows)


def summaries_to_frame(summaries: Iterable[MetricSummary]) -> pd.DataFrame:
    """Summaries as a DataFrame, one column per hyperparameter."""
    rows = []
    for summary in summaries:
        row = dict(summary.configuration)
        row.update(
            {
                "config_id": summary.config_id,
                "config_order": summary.config_order,
                "metric": summary.metric,
                "mean": summary.mean,
                "std_err": summary.std_err,
                "n": summary.n,
            }
        )
        rows.append(row)
    return pd.DataFrame(rows)


def collect_predictions(
    records: Iterable[MetricRecord],
    configuration: Optional[Configuration] = None,
) -> pd.DataFrame:
    """
    Retained holdout predictions as one DataFrame.

    Each (split, configuration) pair is included once even though every
    metric record of the pair carries the same predictions.

    Args:
        records: Records from an evaluation run with predictions retained.
        configuration: Restrict to a single configuration.
    """
    frames = []
    seen = set()
    for record in records:
        if record.predictions is None:
            continue
        if configuration is not None and record.configuration != configuration:
            continue
        key = (record.configuration, record.split_id)
        if key in seen:
            continue
        seen.add(key)
        frame = record.predictions.to_frame()
        frame.insert(0, "config_id", record.config_id)
        frames.append(frame)
    if not frames:
        return pd.DataFrame()
    return pd.concat(frames, ignore_index=True)
