"""Selector: Deterministic ranking of configurations by summarized metrics."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Union

from sklearn_tune.core.model.metrics import Direction, get_metric
from sklearn_tune.core.tuning.aggregation import MetricSummary
from sklearn_tune.exceptions import NoSuccessfulConfigurations
from sklearn_tune.search.configuration import Configuration


@dataclass(frozen=True)
class SelectionResult:
    """
    The configuration chosen by a tuning run.

    Attributes:
        configuration: The selected configuration.
        summary: The summary the choice was made on.
        ranked: All summaries for the metric, best first.
        direction: Direction the ranking used.
    """

    configuration: Configuration
    summary: MetricSummary
    ranked: Sequence[MetricSummary]
    direction: Direction

    @property
    def metric(self) -> str:
        return self.summary.metric

    def __repr__(self) -> str:
        return (
            f"SelectionResult(config={self.configuration}, {self.metric}="
            f"{self.summary.mean:.4f}, n_ranked={len(self.ranked)})"
        )


def _resolve_direction(metric: str, direction: Optional[Union[Direction, str]]) -> Direction:
    if direction is None:
        return get_metric(metric).direction
    if isinstance(direction, str):
        return Direction(direction)
    return direction


def _sort_key(summary: MetricSummary, direction: Direction):
    mean = -summary.mean if direction == Direction.MAXIMIZE else summary.mean
    std_err = math.inf if math.isnan(summary.std_err) else summary.std_err
    return (mean, std_err, summary.config_order, summary.config_id)


def rank(
    summaries: Sequence[MetricSummary],
    metric: str,
    direction: Optional[Union[Direction, str]] = None,
) -> List[MetricSummary]:
    """
    All summaries for ``metric``, best first.

    Ties on the mean are broken by smaller standard error (nan last), then by
    position in the enumeration order, then by configuration id.

    Raises:
        NoSuccessfulConfigurations: If no summary exists for the metric.
    """
    direction = _resolve_direction(metric, direction)
    candidates = [s for s in summaries if s.metric == metric and not math.isnan(s.mean)]
    if not candidates:
        raise NoSuccessfulConfigurations(metric)
    return sorted(candidates, key=lambda s: _sort_key(s, direction))


def best(
    summaries: Sequence[MetricSummary],
    metric: str,
    direction: Optional[Union[Direction, str]] = None,
    n: int = 1,
) -> List[MetricSummary]:
    """The best ``n`` summaries for ``metric``."""
    if n < 1:
        raise ValueError(f"n must be >= 1, got {n}")
    return rank(summaries, metric, direction)[:n]


def top_n(
    summaries: Sequence[MetricSummary],
    metric: str,
    n: int = 5,
    direction: Optional[Union[Direction, str]] = None,
) -> List[MetricSummary]:
    """The best ``n`` summaries for ``metric`` (default 5)."""
    return best(summaries, metric, direction, n=n)


show_best = top_n


def select_best(
    summaries: Sequence[MetricSummary],
    metric: str,
    direction: Optional[Union[Direction, str]] = None,
) -> SelectionResult:
    """
    The single best configuration for ``metric``.

    Args:
        summaries: Summaries from ``summarize``.
        metric: Metric to rank by.
        direction: Defaults to the registered direction of the metric.

    Returns:
        SelectionResult holding the configuration, its summary and the full
        ranking.
    """
    direction = _resolve_direction(metric, direction)
    ranked = rank(summaries, metric, direction)
    return SelectionResult(
        configuration=ranked[0].configuration,
        summary=ranked[0],
        ranked=tuple(ranked),
        direction=direction,
    )


def select_by_one_std_err(
    summaries: Sequence[MetricSummary],
    metric: str,
    direction: Optional[Union[Direction, str]] = None,
    prefer: Optional[Callable[[Configuration], Any]] = None,
) -> SelectionResult:
    """
    The simplest configuration within one standard error of the best.

    Args:
        summaries: Summaries from ``summarize``.
        metric: Metric to rank by.
        direction: Defaults to the registered direction of the metric.
        prefer: Sort key over configurations, simplest first. Defaults to
            enumeration order.

    Returns:
        SelectionResult for the chosen configuration. The ranking is the
        usual best-first ranking.
    """
    direction = _resolve_direction(metric, direction)
    ranked = rank(summaries, metric, direction)
    top = ranked[0]
    margin = 0.0 if math.isnan(top.std_err) else top.std_err
    if direction == Direction.MAXIMIZE:
        within = [s for s in ranked if s.mean >= top.mean - margin]
    else:
        within = [s for s in ranked if s.mean <= top.mean + margin]

    if prefer is None:
        chosen = min(within, key=lambda s: (s.config_order, s.config_id))
    else:
        chosen = min(within, key=lambda s: (prefer(s.configuration), _sort_key(s, direction)))
    return SelectionResult(
        configuration=chosen.configuration,
        summary=chosen,
        ranked=tuple(ranked),
        direction=direction,
    )
