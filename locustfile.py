# ruff: noqa: E402
"""
Locust entrypoint for the History Quiz API load test.

This is the file that the ``locust`` CLI discovers and loads.  It exposes
the user class and the staged load shape, and registers the lifecycle
hooks that log the run boundaries and gate it on thresholds.

Usage examples::

    # Headless CI run; exits non-zero when a threshold is breached:
    locust -f locustfile.py --headless --csv results/run

    # Re-check a finished run offline:
    loadtest-check-thresholds --stats results/run_stats.csv \\
        --api-failures results/run_api_failures.csv

The load shape owns the user count and run time, so ``-u``, ``-r`` and
``--run-time`` are ignored.
"""

from __future__ import annotations

import sys
from pathlib import Path

from locust import events

# Locust may be invoked from any directory.  Inserting the project root
# onto ``sys.path`` lets ``loadtest`` resolve without an install.
PROJECT_ROOT = Path(__file__).resolve().parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from loadtest import hooks
from loadtest.shape import StagedShape
from loadtest.users import HistoryQuizUser

__all__ = ["HistoryQuizUser", "StagedShape"]

hooks.register(events)
