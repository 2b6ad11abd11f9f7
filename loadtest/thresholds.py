"""
Threshold evaluation for a finished run.

Collects the observed value of every gated metric (Locust's aggregated
request statistics plus the per-API failure rates) and compares each
against its :class:`~loadtest.scenario.Threshold`.  Used both by the
``quitting`` hook of a live run and by the offline
:mod:`loadtest.check_thresholds` CLI.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from loadtest.metrics import MetricsRegistry
from loadtest.scenario import Threshold

HTTP_REQ_FAILED = "http_req_failed"
HTTP_REQ_DURATION = "http_req_duration"


@dataclass(frozen=True)
class ThresholdResult:
    threshold: Threshold
    observed: float | None
    passed: bool


def observation_key(threshold: Threshold) -> str:
    """Key under which *threshold*'s observed value is looked up."""
    return f"{threshold.metric}:{threshold.statistic}"


def evaluate(
    thresholds: Iterable[Threshold], observed: Mapping[str, float | None]
) -> list[ThresholdResult]:
    """
    Compare each threshold with its observed value.

    A threshold whose metric has no observation fails: a gate that could
    not be measured must not silently pass.
    """
    results = []
    for threshold in thresholds:
        value = observed.get(observation_key(threshold))
        passed = value is not None and threshold.passes(value)
        results.append(ThresholdResult(threshold=threshold, observed=value, passed=passed))
    return results


def observe_environment(
    stats_total: Any,
    metrics: MetricsRegistry,
    thresholds: Iterable[Threshold],
) -> dict[str, float | None]:
    """
    Build the observed values for *thresholds* from a live run.

    Args:
        stats_total: Locust's aggregated ``StatsEntry``
            (``environment.stats.total``).
        metrics: The per-API failure-rate registry.
        thresholds: Thresholds whose observations are needed.
    """
    rates = metrics.snapshot()
    observed: dict[str, float | None] = {}
    for threshold in thresholds:
        key = observation_key(threshold)
        if threshold.metric == HTTP_REQ_FAILED and threshold.statistic == "rate":
            observed[key] = stats_total.fail_ratio if stats_total.num_requests else None
        elif threshold.metric == HTTP_REQ_DURATION and threshold.statistic.startswith("p"):
            if not stats_total.num_requests:
                observed[key] = None
            else:
                percent = float(threshold.statistic[1:]) / 100
                observed[key] = float(stats_total.get_response_time_percentile(percent))
        elif threshold.metric in rates and threshold.statistic == "rate":
            snap = rates[threshold.metric]
            observed[key] = snap.rate if snap.total else None
        else:
            observed[key] = None
    return observed


def all_passed(results: Iterable[ThresholdResult]) -> bool:
    return all(result.passed for result in results)


def format_summary(results: list[ThresholdResult]) -> str:
    """Render a fixed-width results table for logs and CI output."""
    lines = [
        "Performance Threshold Check",
        "-" * 72,
        f"{'Metric':<26}{'Threshold':>16}{'Actual':>16}{'Status':>14}",
        "-" * 72,
    ]
    for result in results:
        actual = "n/a" if result.observed is None else f"{result.observed:.4f}"
        status = "PASS" if result.passed else "FAIL"
        lines.append(
            f"{result.threshold.metric:<26}{result.threshold.expression:>16}{actual:>16}{status:>14}"
        )
    lines.append("-" * 72)
    lines.append(f"Overall: {'PASS' if all_passed(results) else 'FAIL'}")
    return "\n".join(lines)
