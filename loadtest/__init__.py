"""
History Quiz API load test.

Drives many concurrent Locust virtual users through a fixed sequence of
calls against the four public APIs the History Quiz app depends on
(Open Trivia DB, Nominatim reverse geocoding, TimeAPI and ExchangeRate-API),
ramping concurrency through a staged schedule and gating the run on
failure-rate and latency thresholds.

Key Concepts Demonstrated:
- Locust ``HttpUser`` + ``LoadTestShape`` for staged ramp-up / ramp-down
- Defensive response validation that never raises into a virtual user
- Per-API failure-rate metrics gated at the end of the run
"""

from __future__ import annotations

import logging

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

__version__ = "1.0.0"
