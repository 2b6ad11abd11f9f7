"""
Validate a finished headless run's CSV output against the thresholds.

A live run already gates itself in the ``quitting`` hook; this script
re-checks the files it left behind so a CI job can gate (or re-gate
with a different threshold file) without re-running the load.  It reads:

- the ``*_stats.csv`` file that Locust generates, from which the
  **Aggregated** row yields the HTTP failure rate and latency
  percentiles;
- the ``*_api_failures.csv`` file written by the quitting hook, which
  holds one failure rate per external API.

Exit codes follow a three-state convention so that CI can distinguish
"thresholds breached" from "script crashed":

- ``0``: all thresholds passed
- ``1``: at least one threshold was breached
- ``2``: the script itself failed (missing file, bad YAML, etc.)
"""

from __future__ import annotations

import argparse
import csv
import sys
from pathlib import Path
from typing import Any

from loadtest.scenario import Threshold, load_scenario
from loadtest.thresholds import (
    HTTP_REQ_DURATION,
    HTTP_REQ_FAILED,
    all_passed,
    evaluate,
    format_summary,
    observation_key,
)

# Three-state exit codes so CI can tell "test failed" from "script crashed".
EXIT_PASS = 0
EXIT_THRESHOLD_BREACH = 1
EXIT_SCRIPT_ERROR = 2


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for the threshold checker."""
    parser = argparse.ArgumentParser(
        description="Check Locust CSV output against load-test thresholds."
    )
    parser.add_argument(
        "--stats",
        required=True,
        type=Path,
        help="Path to Locust *_stats.csv file",
    )
    parser.add_argument(
        "--api-failures",
        type=Path,
        default=None,
        help="Path to *_api_failures.csv (default: derived from --stats)",
    )
    parser.add_argument(
        "--scenario",
        type=Path,
        default=None,
        help="YAML scenario file whose thresholds replace the built-in ones",
    )
    return parser.parse_args(argv)


def _default_api_failures_path(stats_path: Path) -> Path:
    """``run_stats.csv`` → ``run_api_failures.csv``."""
    name = stats_path.name
    if name.endswith("_stats.csv"):
        name = name[: -len("_stats.csv")]
    else:
        name = stats_path.stem
    return stats_path.with_name(f"{name}_api_failures.csv")


def _load_aggregated_row(stats_path: Path) -> dict[str, str]:
    """
    Find and return the ``Aggregated`` summary row from a Locust stats CSV.

    Locust writes one row per endpoint plus a final ``Aggregated`` row
    that summarises all traffic.  Both the ``Name`` and ``Type`` columns
    are checked, since the column layout varies between Locust versions.

    Raises:
        ValueError: If no ``Aggregated`` row is found.
    """
    with stats_path.open("r", encoding="utf-8", newline="") as handle:
        rows = list(csv.DictReader(handle))

    for row in rows:
        if row.get("Name") == "Aggregated" or row.get("Type") == "Aggregated":
            return row

    raise ValueError("Could not find 'Aggregated' row in stats CSV")


def _parse_float(value: Any, field_name: str) -> float:
    """
    Coerce *value* to ``float``, stripping ``%`` suffixes if present.

    Raises:
        ValueError: If the value is missing, empty, or non-numeric.
    """
    if value is None:
        raise ValueError(f"Missing field: {field_name}")

    text = str(value).strip().replace("%", "")
    if text == "":
        raise ValueError(f"Empty value for field: {field_name}")

    try:
        return float(text)
    except ValueError as exc:
        raise ValueError(f"Non-numeric value for {field_name}: {value}") from exc


def _extract_percentile_ms(row: dict[str, str], statistic: str) -> float:
    """
    Extract a latency percentile (``statistic`` like ``"p95"``) from the row.

    Different Locust versions label percentile columns differently, so
    several known variants are tried in order.
    """
    pct = statistic[1:]
    candidates = (f"{pct}%", f"{pct}%ile", f"{pct}th percentile", statistic)
    for candidate in candidates:
        if candidate in row and row[candidate] not in (None, ""):
            return _parse_float(row[candidate], candidate)
    raise ValueError(f"Could not find {statistic} column in stats CSV")


def _compute_failure_rate(row: dict[str, str]) -> float:
    """
    Compute ``Failure Count / Request Count`` as a fraction.

    Raises:
        ValueError: If counts are missing or ``Request Count`` is zero.
    """
    request_count = _parse_float(row.get("Request Count"), "Request Count")
    failure_count = _parse_float(row.get("Failure Count"), "Failure Count")

    if request_count <= 0:
        raise ValueError("Request Count must be > 0 for threshold checks")

    return failure_count / request_count


def _load_api_failure_rates(path: Path) -> dict[str, float | None]:
    """Read ``Name,Samples,Failures,Rate`` rows; metrics with no samples map to ``None``."""
    with path.open("r", encoding="utf-8", newline="") as handle:
        rows = list(csv.DictReader(handle))

    rates: dict[str, float | None] = {}
    for row in rows:
        name = row.get("Name")
        if not name:
            continue
        samples = _parse_float(row.get("Samples"), f"{name} Samples")
        failures = _parse_float(row.get("Failures"), f"{name} Failures")
        rates[name] = failures / samples if samples > 0 else None
    return rates


def collect_observations(
    thresholds: tuple[Threshold, ...],
    aggregated_row: dict[str, str],
    api_rates: dict[str, float | None],
) -> dict[str, float | None]:
    """Map each threshold to its observed value from the CSV files."""
    observed: dict[str, float | None] = {}
    for threshold in thresholds:
        key = observation_key(threshold)
        if threshold.metric == HTTP_REQ_FAILED and threshold.statistic == "rate":
            observed[key] = _compute_failure_rate(aggregated_row)
        elif threshold.metric == HTTP_REQ_DURATION and threshold.statistic.startswith("p"):
            observed[key] = _extract_percentile_ms(aggregated_row, threshold.statistic)
        elif threshold.statistic == "rate":
            observed[key] = api_rates.get(threshold.metric)
        else:
            observed[key] = None
    return observed


def main(argv: list[str] | None = None) -> int:
    """
    Entry point: load thresholds, parse both CSVs, compare, and print results.

    Returns:
        ``EXIT_PASS`` (0) if all thresholds are met,
        ``EXIT_THRESHOLD_BREACH`` (1) if any are exceeded, or
        ``EXIT_SCRIPT_ERROR`` (2) on unexpected failures.
    """
    args = parse_args(argv)

    try:
        scenario = load_scenario(args.scenario)
        row = _load_aggregated_row(args.stats)
        api_failures_path = args.api_failures or _default_api_failures_path(args.stats)
        api_rates = _load_api_failure_rates(api_failures_path)

        observed = collect_observations(scenario.thresholds, row, api_rates)
        results = evaluate(scenario.thresholds, observed)
        print(format_summary(results))
        return EXIT_PASS if all_passed(results) else EXIT_THRESHOLD_BREACH
    except Exception as exc:  # pragma: no cover - defensive CLI guard
        print(f"Threshold check failed: {exc}", file=sys.stderr)
        return EXIT_SCRIPT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
