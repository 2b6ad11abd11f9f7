"""
Per-iteration driver: one virtual user's pass over the four APIs.

An iteration is straight-line code.  The four calls run in a fixed
order, each followed by a fixed think-time pause, and every call always
executes: a timeout, a refused connection, a 5xx or a garbled body on
one API is recorded as a failed check for that API and the iteration
moves on to the next call.

Each call records exactly one boolean (``failed``) into its API's
:class:`~loadtest.metrics.FailureRate`.  Locust's own request statistics
only see HTTP-level failures (transport errors and non-200 statuses), so
the aggregated Locust failure ratio stays an HTTP failure rate while the
body checks feed the per-API metrics.

Key Concepts Demonstrated:
- ``catch_response=True`` to decide the Locust outcome in-band
- Randomised coordinates per iteration to defeat upstream caching
- Injected RNG and sleep so iterations are deterministic under test
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import requests

from loadtest.config import Config, get_config
from loadtest.metrics import (
    EXCHANGE_FAILURES,
    LOCATION_FAILURES,
    METRICS,
    QUIZ_FAILURES,
    TIME_FAILURES,
    MetricsRegistry,
)
from loadtest.validation import exchange_ok, location_ok, quiz_ok, time_ok

logger = logging.getLogger(__name__)

# Central Jakarta.  Every iteration jitters around this point so the
# geocoding and time APIs see distinct coordinates.
BASE_LATITUDE = -6.175392
BASE_LONGITUDE = 106.827153
JITTER_DEGREES = 0.005


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lon: float


def jitter_coordinates(rng: Any = random) -> Coordinates:
    """
    Return the base point shifted by up to ±0.005° on each axis.

    The two offsets are drawn independently and uniformly from
    ``[-0.005, 0.005)``.
    """
    lat_offset = rng.random() * (2 * JITTER_DEGREES) - JITTER_DEGREES
    lon_offset = rng.random() * (2 * JITTER_DEGREES) - JITTER_DEGREES
    return Coordinates(lat=BASE_LATITUDE + lat_offset, lon=BASE_LONGITUDE + lon_offset)


@dataclass(frozen=True)
class ApiCall:
    """
    Everything needed to issue and judge one GET.

    Attributes:
        api: Human-readable API name used in log lines.
        metric: Name of the failure-rate metric this call feeds.
        url: Absolute URL without the query string.
        request_name: Stable Locust stats name (the query varies per
            iteration, so the raw URL would explode the stats table).
        predicate: Returns ``True`` when the response passes all checks.
        think_time: Seconds to pause after the call.
    """

    api: str
    metric: str
    url: str
    request_name: str
    predicate: Callable[[Any], bool]
    think_time: float
    params: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)


def build_calls(config: type[Config], coords: Coordinates) -> list[ApiCall]:
    """Return the four calls of one iteration, in the order they must run."""
    return [
        ApiCall(
            api="Quiz",
            metric=QUIZ_FAILURES,
            url=f"{config.QUIZ_API_URL}/api.php",
            request_name="/api.php [GET]",
            params={"amount": 5, "category": 23, "type": "boolean", "difficulty": "easy"},
            predicate=quiz_ok,
            think_time=2,
        ),
        ApiCall(
            api="Location",
            metric=LOCATION_FAILURES,
            url=f"{config.LOCATION_API_URL}/reverse",
            request_name="/reverse [GET]",
            params={"format": "json", "lat": coords.lat, "lon": coords.lon, "zoom": 10},
            headers={"User-Agent": config.CLIENT_USER_AGENT},
            predicate=location_ok,
            think_time=2,
        ),
        ApiCall(
            api="Time",
            metric=TIME_FAILURES,
            url=f"{config.TIME_API_URL}/api/time/current/coordinate",
            request_name="/api/time/current/coordinate [GET]",
            params={"latitude": coords.lat, "longitude": coords.lon},
            headers={"Accept": "application/json", "Content-Type": "application/json"},
            predicate=time_ok,
            think_time=2,
        ),
        ApiCall(
            api="Exchange",
            metric=EXCHANGE_FAILURES,
            url=f"{config.EXCHANGE_API_URL}/latest/USD",
            request_name="/latest/USD [GET]",
            headers={"Accept": "application/json"},
            predicate=exchange_ok,
            think_time=3,
        ),
    ]


def _execute(client: Any, call: ApiCall, timeout: float) -> bool:
    """Issue *call* and return whether every check passed."""
    try:
        with client.get(
            call.url,
            params=call.params or None,
            headers=call.headers or None,
            timeout=timeout,
            name=call.request_name,
            catch_response=True,
        ) as response:
            status = getattr(response, "status_code", None)
            if status != 200:
                error = getattr(response, "error", None)
                reason = f"Expected 200, got {status}" if not error else str(error)
                response.failure(reason)
                logger.warning("%s API request failed: %s", call.api, reason)
                return False

            response.success()
            passed = call.predicate(response)
            if not passed:
                logger.warning("%s API response failed validation", call.api)
            return passed
    except requests.RequestException as exc:
        logger.warning("%s API request failed: %s", call.api, exc)
        return False


def run_iteration(
    client: Any,
    *,
    config: type[Config] | None = None,
    metrics: MetricsRegistry = METRICS,
    rng: Any = random,
    sleep: Callable[[float], Any] | None = None,
    user_id: int | str = 0,
) -> dict[str, bool]:
    """
    Run one virtual-user iteration against all four APIs.

    Args:
        client: An HTTP session with Locust's ``get(..., name=,
            catch_response=)`` signature (normally ``HttpUser.client``).
        config: Configuration class; defaults to :func:`get_config`.
        metrics: Registry receiving one boolean per API.
        rng: Source of randomness for the coordinate jitter.
        sleep: Pause function.  Resolved at call time so gevent's
            patched ``time.sleep`` is used inside Locust.
        user_id: Virtual-user number shown in log lines.

    Returns:
        Mapping of metric name to the call's success boolean.
    """
    config = config or get_config()
    pause = sleep or time.sleep
    coords = jitter_coordinates(rng)

    outcomes: dict[str, bool] = {}
    for call in build_calls(config, coords):
        logger.info("VU %s: Testing %s API", user_id, call.api)
        try:
            success = _execute(client, call, config.REQUEST_TIMEOUT)
        except Exception:
            logger.exception("VU %s: %s API call raised", user_id, call.api)
            success = False
        metrics.record(call.metric, not success)
        outcomes[call.metric] = success
        pause(call.think_time * config.THINK_TIME_SCALE)

    return outcomes
