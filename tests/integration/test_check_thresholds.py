"""
Integration tests for the offline threshold checker CLI.

Builds Locust-style ``*_stats.csv`` files plus the per-API failure CSV
in a temporary directory and runs :func:`loadtest.check_thresholds.main`
against them, asserting on the three-state exit code.
"""

from __future__ import annotations

import csv
from pathlib import Path

import pytest

from loadtest.check_thresholds import (
    EXIT_PASS,
    EXIT_SCRIPT_ERROR,
    EXIT_THRESHOLD_BREACH,
    main,
)
from loadtest.metrics import API_METRICS, MetricsRegistry

pytestmark = pytest.mark.integration

STATS_HEADER = ["Type", "Name", "Request Count", "Failure Count", "50%", "95%", "99%"]


def _write_stats(path: Path, *, requests: int, failures: int, p95: float) -> Path:
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle)
        writer.writerow(STATS_HEADER)
        writer.writerow(["GET", "/api.php [GET]", requests // 4, 0, 300, 900, 1100])
        writer.writerow(["", "Aggregated", requests, failures, 400, p95, p95 * 1.2])
    return path


def _write_api_failures(path: Path, failures_per_100: dict[str, int]) -> Path:
    metrics = MetricsRegistry()
    for name in API_METRICS:
        for i in range(100):
            metrics.record(name, i < failures_per_100.get(name, 0))
    return metrics.write_csv(path)


def test_passing_run_exits_zero(tmp_path, capsys):
    """Test that a healthy run passes every gate and prints the table."""
    # Arrange
    stats = _write_stats(tmp_path / "run_stats.csv", requests=4000, failures=40, p95=2500)
    _write_api_failures(tmp_path / "run_api_failures.csv", {"location_api_failures": 20})

    # Act
    exit_code = main(["--stats", str(stats)])

    # Assert
    assert exit_code == EXIT_PASS
    output = capsys.readouterr().out
    assert "Overall: PASS" in output
    assert "location_api_failures" in output


def test_api_failure_rate_breach_exits_one(tmp_path):
    stats = _write_stats(tmp_path / "run_stats.csv", requests=4000, failures=40, p95=2500)
    _write_api_failures(tmp_path / "run_api_failures.csv", {"exchange_api_failures": 15})

    assert main(["--stats", str(stats)]) == EXIT_THRESHOLD_BREACH


def test_http_failure_rate_breach_exits_one(tmp_path):
    stats = _write_stats(tmp_path / "run_stats.csv", requests=1000, failures=200, p95=2500)
    _write_api_failures(tmp_path / "run_api_failures.csv", {})

    assert main(["--stats", str(stats)]) == EXIT_THRESHOLD_BREACH


def test_p95_breach_exits_one(tmp_path):
    stats = _write_stats(tmp_path / "run_stats.csv", requests=1000, failures=0, p95=31000)
    _write_api_failures(tmp_path / "run_api_failures.csv", {})

    assert main(["--stats", str(stats)]) == EXIT_THRESHOLD_BREACH


def test_explicit_api_failures_path_and_scenario_file(tmp_path):
    """Test that --scenario replaces the built-in thresholds."""
    # Arrange
    stats = _write_stats(tmp_path / "stats.csv", requests=1000, failures=0, p95=31000)
    api_failures = _write_api_failures(tmp_path / "rates.csv", {"quiz_api_failures": 40})
    scenario = tmp_path / "lenient.yml"
    scenario.write_text(
        "stages:\n"
        "  - {duration: 10s, target: 1}\n"
        "thresholds:\n"
        "  http_req_duration: ['p(99)<60000']\n"
        "  quiz_api_failures: ['rate<0.5']\n",
        encoding="utf-8",
    )

    # Act
    exit_code = main(
        [
            "--stats",
            str(stats),
            "--api-failures",
            str(api_failures),
            "--scenario",
            str(scenario),
        ]
    )

    # Assert
    assert exit_code == EXIT_PASS


def test_missing_api_failures_file_is_a_script_error(tmp_path, capsys):
    stats = _write_stats(tmp_path / "run_stats.csv", requests=1000, failures=0, p95=100)

    assert main(["--stats", str(stats)]) == EXIT_SCRIPT_ERROR
    assert "Threshold check failed" in capsys.readouterr().err


def test_stats_without_aggregated_row_is_a_script_error(tmp_path):
    stats = tmp_path / "run_stats.csv"
    stats.write_text(",".join(STATS_HEADER) + "\n", encoding="utf-8")
    _write_api_failures(tmp_path / "run_api_failures.csv", {})

    assert main(["--stats", str(stats)]) == EXIT_SCRIPT_ERROR
