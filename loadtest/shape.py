"""
Staged ramp for Locust.

Locust asks the shape for ``(user_count, spawn_rate)`` about once a
second.  :class:`StagedShape` answers from the linear stage schedule in
:mod:`loadtest.scenario` and returns ``None`` once the schedule, including
the ramp-down to zero, has elapsed, which ends the run.
"""

from __future__ import annotations

from locust import LoadTestShape

from loadtest.config import get_config
from loadtest.scenario import Stage, load_scenario, spawn_rate_at, target_at


class StagedShape(LoadTestShape):
    """
    Ramp 0 → 200 → 200 → 300 → 300 → 0 users over 80 seconds.

    Stages come from ``SCENARIO_FILE`` when configured, otherwise from the
    built-in schedule.
    """

    stages: tuple[Stage, ...] | None = None

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if self.stages is None:
            self.stages = load_scenario(get_config().SCENARIO_FILE).stages

    def tick(self) -> tuple[int, float] | None:
        run_time = self.get_run_time()
        users = target_at(self.stages, run_time)
        if users is None:
            return None
        return users, spawn_rate_at(self.stages, run_time)
