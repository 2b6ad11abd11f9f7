"""
Load test configuration.

Defines environment-specific configuration classes for the load test.
Each class captures the base URLs of the external APIs exercised by a
virtual user, as well as operational settings such as the request
timeout and think-time scale.  The ``get_config`` factory selects the
right class based on the ``LOADTEST_ENV`` environment variable (or an
explicit key).

Key Concepts Demonstrated:
- Class-based configuration with inheritance for DRY defaults
- Environment-variable overrides for CI and local runs
- Separate testing configuration with zero think-time and fake URLs
"""

from __future__ import annotations

import os


class Config:
    """
    Base (shared) configuration for the load test.

    All environment-specific classes inherit from ``Config`` so that
    common defaults only need to be stated once.
    """

    QUIZ_API_URL: str = os.environ.get("QUIZ_API_URL", "https://opentdb.com")
    LOCATION_API_URL: str = os.environ.get(
        "LOCATION_API_URL", "https://nominatim.openstreetmap.org"
    )
    TIME_API_URL: str = os.environ.get("TIME_API_URL", "https://timeapi.io")
    EXCHANGE_API_URL: str = os.environ.get(
        "EXCHANGE_API_URL", "https://api.exchangerate-api.com/v4"
    )

    # Identifies the load test to Nominatim, whose usage policy rejects
    # requests without a descriptive User-Agent.
    CLIENT_USER_AGENT: str = "HistoryQuizApp-k6-LoadTest/1.0"

    # Seconds a virtual user waits for any single response.  An expired
    # timeout is recorded as a failed check, never as a fatal error.
    REQUEST_TIMEOUT: float = float(os.environ.get("REQUEST_TIMEOUT", "30"))

    # Multiplier applied to the fixed think-time pauses between calls.
    THINK_TIME_SCALE: float = float(os.environ.get("THINK_TIME_SCALE", "1.0"))

    # Optional YAML file overriding the built-in stages and thresholds.
    SCENARIO_FILE: str | None = os.environ.get("SCENARIO_FILE") or None


class DevelopmentConfig(Config):
    """Local runs against the real public APIs."""


class TestingConfig(Config):
    """
    Test-suite overrides.

    Points every API at a non-routable test host so that unit tests never
    accidentally hit the real services, and disables think-time so
    iterations complete instantly.
    """

    QUIZ_API_URL: str = "http://quiz.test"
    LOCATION_API_URL: str = "http://location.test"
    TIME_API_URL: str = "http://time.test"
    EXCHANGE_API_URL: str = "http://exchange.test/v4"
    THINK_TIME_SCALE: float = 0.0
    SCENARIO_FILE: str | None = None


class ProductionConfig(Config):
    """
    Full-scale runs (CI performance gate).

    All values are expected to come from environment variables set by the
    CI job, so it adds nothing to the base class.
    """


# Lookup table mapping environment name strings to their config classes.
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}


def get_config(env: str | None = None) -> type[Config]:
    """
    Return the configuration class for the given environment.

    Args:
        env: One of ``"development"``, ``"testing"``, or
            ``"production"``.  When *None*, the ``LOADTEST_ENV``
            environment variable is consulted, falling back to
            ``"development"`` if unset.

    Returns:
        The ``Config`` subclass matching the requested environment,
        or ``DevelopmentConfig`` if the key is unrecognised.
    """
    if env is None:
        env = os.environ.get("LOADTEST_ENV", "development")
    return config.get(env, config["default"])
