"""
Shared pytest fixtures for the load-test suite.

Fixtures provide a testing configuration (fake API hosts, zero
think-time), an isolated metrics registry per test so counts never leak
between tests, and a recording sleep so pauses can be asserted without
waiting.

Key Concepts Demonstrated:
- Selecting the testing config through the environment before import
- Function-scoped fixtures for isolation of process-wide state
"""

from __future__ import annotations

import os

import pytest

# Locust monkey-patches the stdlib with gevent on import; that has to
# happen before requests pulls in ssl.
import locust  # noqa: F401

# Set testing environment before importing the package.
os.environ["LOADTEST_ENV"] = "testing"

from loadtest.config import TestingConfig, get_config
from loadtest.metrics import MetricsRegistry


@pytest.fixture
def config():
    """Testing configuration with non-routable hosts and no think-time."""
    return get_config("testing")


@pytest.fixture
def paced_config():
    """Testing configuration that keeps the real think-time values."""

    class PacedConfig(TestingConfig):
        THINK_TIME_SCALE = 1.0

    return PacedConfig


@pytest.fixture
def metrics():
    """A fresh registry with the four per-API failure rates."""
    return MetricsRegistry()


@pytest.fixture
def recorded_sleeps():
    """A list that the ``sleeper`` fixture appends each pause to."""
    return []


@pytest.fixture
def sleeper(recorded_sleeps):
    """Sleep replacement that records the requested pause and returns at once."""

    def _sleep(seconds: float) -> None:
        recorded_sleeps.append(seconds)

    return _sleep
