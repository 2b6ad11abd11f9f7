"""
Locust user class for the History Quiz load test.

Defines :class:`HistoryQuizUser`, whose single task is one full
iteration over the quiz, location, time and exchange-rate APIs.  The
think-time between calls lives inside the iteration, so the user waits
zero seconds between iterations.
"""

from __future__ import annotations

import itertools
import random

from locust import HttpUser, constant, task

from loadtest.config import get_config
from loadtest.driver import run_iteration

_user_ids = itertools.count(1)


class HistoryQuizUser(HttpUser):
    """
    One simulated History Quiz player.

    Every URL the user requests is absolute, so ``host`` only satisfies
    Locust's start-up check and names the first API in the web UI.

    Attributes:
        user_id: Sequential virtual-user number used in log lines.
    """

    wait_time = constant(0)
    host = get_config().QUIZ_API_URL

    user_id: int

    def on_start(self) -> None:
        """Assign this virtual user its number and its own RNG."""
        self.user_id = next(_user_ids)
        self.rng = random.Random()

    @task
    def play_round(self) -> None:
        """Fetch questions, resolve location and time, then exchange rates."""
        run_iteration(
            self.client,
            config=get_config(),
            rng=self.rng,
            user_id=self.user_id,
        )
