"""
Test doubles for the load-test suite.

:class:`FakeResponse` mimics the object Locust yields from
``client.get(..., catch_response=True)``: a ``requests``-style response
that is also a context manager with ``success()`` / ``failure()``.
:class:`FakeClient` routes each GET to a canned response (or exception)
by URL and records every call so tests can assert order and arguments.
"""

from __future__ import annotations

import json
from typing import Any


class FakeResponse:
    """Configurable stand-in for Locust's ``ResponseContextManager``."""

    def __init__(self, status_code: int = 200, text: str | None = "", error: Exception | None = None):
        self.status_code = status_code
        self.text = text
        self.error = error
        self.outcome: str | None = None
        self.failure_reason: Any = None

    @classmethod
    def from_json(cls, payload: Any, status_code: int = 200) -> "FakeResponse":
        return cls(status_code=status_code, text=json.dumps(payload))

    def json(self) -> Any:
        # json.JSONDecodeError subclasses ValueError, like requests' own error.
        return json.loads(self.text)

    def success(self) -> None:
        self.outcome = "success"

    def failure(self, reason: Any) -> None:
        self.outcome = "failure"
        self.failure_reason = reason

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc_info: Any) -> bool:
        return False


class FakeClient:
    """
    Minimal ``HttpSession`` replacement keyed by URL suffix.

    Args:
        routes: Maps a URL suffix (e.g. ``"/api.php"``) to a
            :class:`FakeResponse` or an exception instance to raise.
    """

    def __init__(self, routes: dict[str, Any]):
        self.routes = routes
        self.calls: list[dict[str, Any]] = []

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"url": url, **kwargs})
        for suffix, outcome in self.routes.items():
            if url.endswith(suffix):
                if isinstance(outcome, BaseException):
                    raise outcome
                return outcome
        return FakeResponse(status_code=404, text="not found")


QUIZ_OK_BODY = {
    "response_code": 0,
    "results": [
        {
            "category": "History",
            "type": "boolean",
            "difficulty": "easy",
            "question": "The Magna Carta was signed in 1215.",
            "correct_answer": "True",
            "incorrect_answers": ["False"],
        }
    ],
}

LOCATION_OK_BODY = {
    "display_name": "Gambir, Central Jakarta, Special capital Region of Jakarta, Indonesia",
    "address": {"city": "Central Jakarta", "country": "Indonesia", "country_code": "id"},
}

TIME_OK_BODY = {"year": 2026, "month": 10, "day": 18, "timeZone": "Asia/Jakarta"}

EXCHANGE_OK_BODY = {"result": "success", "base": "USD", "rates": {"EUR": 0.9, "IDR": 15500}}


def healthy_routes() -> dict[str, FakeResponse]:
    """Fresh responses for an iteration in which every API is healthy."""
    return {
        "/api.php": FakeResponse.from_json(QUIZ_OK_BODY),
        "/reverse": FakeResponse.from_json(LOCATION_OK_BODY),
        "/api/time/current/coordinate": FakeResponse.from_json(TIME_OK_BODY),
        "/latest/USD": FakeResponse.from_json(EXCHANGE_OK_BODY),
    }
