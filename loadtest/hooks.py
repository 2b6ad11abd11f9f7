"""
Locust lifecycle hooks.

* ``test_start`` / ``test_stop`` emit the advisory lines that bracket a
  run; ``test_start`` also clears the per-API metrics so a second run
  started from the web UI does not inherit the first run's counts.
* ``report_to_master`` / ``worker_report`` ship each worker's per-API
  counts to the master in a distributed run.
* ``quitting`` evaluates every threshold, logs the summary table, writes
  the per-API rates next to Locust's ``--csv`` output, and sets a
  non-zero process exit code when any threshold is breached.

No state flows from these hooks into iterations.
"""

from __future__ import annotations

import logging
from typing import Any

from locust.runners import WorkerRunner

from loadtest.config import get_config
from loadtest.metrics import METRICS, MetricsRegistry
from loadtest.scenario import Scenario, load_scenario
from loadtest.thresholds import all_passed, evaluate, format_summary, observe_environment

logger = logging.getLogger(__name__)

REPORT_KEY = "api_failures"


def on_test_start(environment: Any = None, metrics: MetricsRegistry = METRICS, **_kwargs) -> None:
    logger.info("Starting load test with reduced load to respect external APIs")
    metrics.reset()


def on_test_stop(environment: Any = None, **_kwargs) -> None:
    logger.info("Load test completed")


def on_report_to_master(
    client_id: Any = None, data: dict | None = None, metrics: MetricsRegistry = METRICS, **_kwargs
) -> None:
    """Attach (and reset) this worker's per-API counts to its stats report."""
    if data is not None:
        data[REPORT_KEY] = metrics.drain()


def on_worker_report(
    client_id: Any = None, data: dict | None = None, metrics: MetricsRegistry = METRICS, **_kwargs
) -> None:
    """Merge a worker's per-API counts into the master's registry."""
    if data and REPORT_KEY in data:
        metrics.merge(data[REPORT_KEY])


def on_quitting(
    environment: Any,
    metrics: MetricsRegistry = METRICS,
    scenario: Scenario | None = None,
    **_kwargs,
) -> bool:
    """
    Gate the finished run on its thresholds.

    Returns:
        ``True`` if every threshold passed.  Workers skip evaluation and
        return ``True``: only the master sees the aggregated numbers.
    """
    if isinstance(getattr(environment, "runner", None), WorkerRunner):
        return True

    if scenario is None:
        scenario = load_scenario(get_config().SCENARIO_FILE)

    observed = observe_environment(environment.stats.total, metrics, scenario.thresholds)
    results = evaluate(scenario.thresholds, observed)
    logger.info("\n%s", format_summary(results))

    csv_prefix = getattr(getattr(environment, "parsed_options", None), "csv_prefix", None)
    if csv_prefix:
        path = metrics.write_csv(f"{csv_prefix}_api_failures.csv")
        logger.info("Per-API failure rates written to %s", path)

    passed = all_passed(results)
    if not passed:
        logger.error("One or more thresholds were breached")
    # Locust otherwise exits 1 whenever any request failed.
    environment.process_exit_code = 0 if passed else 1
    return passed


def register(events: Any) -> None:
    """Attach every hook to a Locust ``Events`` instance."""
    events.test_start.add_listener(on_test_start)
    events.test_stop.add_listener(on_test_stop)
    events.report_to_master.add_listener(on_report_to_master)
    events.worker_report.add_listener(on_worker_report)
    events.quitting.add_listener(on_quitting)
