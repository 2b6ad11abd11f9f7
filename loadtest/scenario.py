"""
Scenario configuration: ramp stages and pass/fail thresholds.

The ramp schedule and thresholds are static data.  Locust consumes the
stages through :class:`~loadtest.shape.StagedShape`; the thresholds are
evaluated once, after the run, by :mod:`loadtest.thresholds`.

Stages and thresholds can also be loaded from a YAML file so a CI job can
run a gentler or harsher profile without touching code::

    stages:
      - {duration: 10s, target: 200}
      - {duration: 20s, target: 200}
    thresholds:
      http_req_failed: ["rate<0.2"]
      quiz_api_failures: ["rate<0.1"]

Any malformed value raises :class:`ScenarioError` while loading, before a
single virtual user is spawned.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml


class ScenarioError(ValueError):
    """Raised when a stage, duration or threshold expression is malformed."""


_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}

_THRESHOLD_EXPR = re.compile(
    r"^\s*(?P<stat>rate|p\((?P<pct>\d+(?:\.\d+)?)\))\s*<\s*(?P<limit>[-+]?\d+(?:\.\d+)?(?:[eE][-+]?\d+)?)\s*$"
)


def parse_duration(value: str | int | float) -> float:
    """
    Convert a duration such as ``"10s"``, ``"2m"`` or ``"1m30s"`` to seconds.

    Bare numbers are taken as seconds.

    Raises:
        ScenarioError: If *value* is empty, negative or not a duration.
    """
    if isinstance(value, bool):
        raise ScenarioError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        if value < 0:
            raise ScenarioError(f"Duration must not be negative: {value!r}")
        return float(value)

    text = str(value).strip()
    if not text:
        raise ScenarioError("Duration must not be empty")

    total = 0.0
    position = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if position != len(text):
        raise ScenarioError(f"Invalid duration: {value!r}")
    return total


@dataclass(frozen=True)
class Stage:
    """One ramp step: move linearly to *target* users over *duration* seconds."""

    duration: float
    target: int

    def __post_init__(self) -> None:
        if self.duration < 0:
            raise ScenarioError(f"Stage duration must not be negative: {self.duration}")
        if self.target < 0:
            raise ScenarioError(f"Stage target must not be negative: {self.target}")


@dataclass(frozen=True)
class Threshold:
    """
    A pass/fail gate on one metric.

    Attributes:
        metric: Metric name, e.g. ``"http_req_failed"`` or
            ``"quiz_api_failures"``.
        statistic: ``"rate"`` or a percentile such as ``"p95"``.
        limit: The observed value must be strictly below this.
    """

    metric: str
    statistic: str
    limit: float

    @property
    def expression(self) -> str:
        if self.statistic == "rate":
            return f"rate<{self.limit:g}"
        return f"p({self.statistic[1:]})<{self.limit:g}"

    def passes(self, observed: float) -> bool:
        return observed < self.limit


@dataclass(frozen=True)
class Scenario:
    """Ramp stages plus the thresholds that decide whether the run passed."""

    stages: tuple[Stage, ...]
    thresholds: tuple[Threshold, ...]


STAGES: tuple[Stage, ...] = (
    Stage(duration=10, target=200),
    Stage(duration=20, target=200),
    Stage(duration=20, target=300),
    Stage(duration=20, target=300),
    Stage(duration=10, target=0),
)

THRESHOLDS: tuple[Threshold, ...] = (
    Threshold("http_req_failed", "rate", 0.2),
    Threshold("http_req_duration", "p95", 30000),
    Threshold("quiz_api_failures", "rate", 0.1),
    Threshold("location_api_failures", "rate", 0.3),
    Threshold("time_api_failures", "rate", 0.3),
    Threshold("exchange_api_failures", "rate", 0.1),
)

DEFAULT_SCENARIO = Scenario(stages=STAGES, thresholds=THRESHOLDS)


def total_duration(stages: tuple[Stage, ...] = STAGES) -> float:
    """Return the length of the whole ramp schedule in seconds."""
    return float(sum(stage.duration for stage in stages))


def _locate(stages: tuple[Stage, ...], elapsed: float) -> tuple[Stage, int, float] | None:
    """Return ``(stage, users at stage start, stage start time)`` for *elapsed*."""
    start_users = 0
    stage_start = 0.0
    for stage in stages:
        stage_end = stage_start + stage.duration
        if elapsed < stage_end:
            return stage, start_users, stage_start
        start_users = stage.target
        stage_start = stage_end
    return None


def target_at(stages: tuple[Stage, ...], elapsed: float) -> int | None:
    """
    Return the target concurrency *elapsed* seconds into the run.

    Each stage moves linearly from the previous stage's target (``0`` for
    the first stage) to its own target.  Returns ``None`` once the whole
    schedule has elapsed, which tells Locust to stop the run.
    """
    located = _locate(stages, max(elapsed, 0.0))
    if located is None:
        return None

    stage, start_users, stage_start = located
    progress = (max(elapsed, 0.0) - stage_start) / stage.duration
    return round(start_users + (stage.target - start_users) * progress)


def spawn_rate_at(stages: tuple[Stage, ...], elapsed: float) -> float:
    """Return the users-per-second slope of the stage active at *elapsed*."""
    located = _locate(stages, max(elapsed, 0.0))
    if located is None:
        return 1.0

    stage, start_users, _ = located
    slope = abs(stage.target - start_users) / stage.duration
    return max(slope, 1.0)


def parse_threshold(metric: str, expression: str) -> Threshold:
    """
    Parse an expression such as ``"rate<0.1"`` or ``"p(95)<30000"``.

    Raises:
        ScenarioError: If the expression is not understood.
    """
    match = _THRESHOLD_EXPR.match(str(expression))
    if match is None:
        raise ScenarioError(f"Invalid threshold for {metric}: {expression!r}")

    pct = match.group("pct")
    statistic = "rate" if pct is None else f"p{float(pct):g}"
    return Threshold(metric=metric, statistic=statistic, limit=float(match.group("limit")))


def _parse_stages(raw: Any) -> tuple[Stage, ...]:
    if not isinstance(raw, list) or not raw:
        raise ScenarioError("Scenario must define a non-empty list of stages")

    stages = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict) or "duration" not in item or "target" not in item:
            raise ScenarioError(f"Stage {index} must define duration and target")
        target = item["target"]
        if isinstance(target, bool) or not isinstance(target, int):
            raise ScenarioError(f"Stage {index} target must be an integer: {target!r}")
        stages.append(Stage(duration=parse_duration(item["duration"]), target=target))
    return tuple(stages)


def _parse_thresholds(raw: Any) -> tuple[Threshold, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, dict):
        raise ScenarioError("Scenario thresholds must be a mapping of metric to expressions")

    thresholds = []
    for metric, expressions in raw.items():
        if isinstance(expressions, str):
            expressions = [expressions]
        if not isinstance(expressions, list):
            raise ScenarioError(f"Thresholds for {metric} must be a list")
        thresholds.extend(parse_threshold(str(metric), expr) for expr in expressions)
    return tuple(thresholds)


def load_scenario(path: str | Path | None = None) -> Scenario:
    """
    Load stages and thresholds from a YAML file.

    Args:
        path: YAML file path.  When *None* the built-in
            :data:`DEFAULT_SCENARIO` is returned.  A file that omits
            ``thresholds`` keeps the built-in ones.

    Raises:
        ScenarioError: If the file contents are malformed.
    """
    if path is None:
        return DEFAULT_SCENARIO

    with Path(path).open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    if not isinstance(data, dict):
        raise ScenarioError("Scenario file must contain a mapping")

    stages = _parse_stages(data.get("stages"))
    if "thresholds" in data:
        thresholds = _parse_thresholds(data["thresholds"])
    else:
        thresholds = THRESHOLDS
    return Scenario(stages=stages, thresholds=thresholds)
