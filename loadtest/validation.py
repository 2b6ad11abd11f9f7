"""
Defensive response validation.

Every check in this module answers a plain ``True``/``False`` and never
raises: external APIs under load return truncated bodies, HTML error
pages, rate-limit notices and empty responses, and none of those may
abort a virtual user's iteration.  A malformed body is simply a failed
check.

Key Concepts Demonstrated:
- Typed nested-value lookup that distinguishes "key absent" from
  "not an object" without exceptions
- Strict equality so ``True`` never matches ``1``
- One success predicate per external API
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any


class _Unset:
    """Marker for "no expected value supplied" (``None`` is a valid JSON value)."""

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


class LookupStatus(enum.Enum):
    FOUND = "found"
    MISSING = "missing"
    NOT_AN_OBJECT = "not_an_object"


@dataclass(frozen=True)
class Lookup:
    """Result of walking a dot-separated path through a JSON document."""

    status: LookupStatus
    value: Any = None

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND


def lookup_path(data: Any, path: str) -> Lookup:
    """
    Walk *data* key by key along a dot-separated *path*.

    Args:
        data: A parsed JSON document.
        path: Keys separated by dots, e.g. ``"address.country_code"``.

    Returns:
        ``FOUND`` with the resolved value, ``MISSING`` when a key is
        absent, or ``NOT_AN_OBJECT`` when a value along the way is not a
        JSON object and therefore cannot hold the next key.
    """
    current = data
    for key in path.split("."):
        if not isinstance(current, dict):
            return Lookup(LookupStatus.NOT_AN_OBJECT)
        if key not in current:
            return Lookup(LookupStatus.MISSING)
        current = current[key]
    return Lookup(LookupStatus.FOUND, current)


def _strict_equal(actual: Any, expected: Any) -> bool:
    """Deep equality where booleans and numbers never compare equal."""
    if isinstance(actual, bool) or isinstance(expected, bool):
        return isinstance(actual, bool) and isinstance(expected, bool) and actual is expected
    if isinstance(actual, dict) and isinstance(expected, dict):
        return actual.keys() == expected.keys() and all(
            _strict_equal(actual[key], expected[key]) for key in actual
        )
    if isinstance(actual, list) and isinstance(expected, list):
        return len(actual) == len(expected) and all(
            _strict_equal(a, e) for a, e in zip(actual, expected)
        )
    return actual == expected


def _body_text(response: Any) -> str | None:
    text = getattr(response, "text", None)
    if isinstance(text, str):
        return text
    return None


def safe_json_check(response: Any, path: str, expected: Any = UNSET) -> bool:
    """
    Return whether *response*'s JSON body has *path*, optionally equal to *expected*.

    Returns ``False`` (never raises) when the body is absent or empty,
    cannot be decoded (invalid, or nested too deeply for the decoder),
    lacks a segment of *path*, or resolves to a value that differs from
    *expected*.  Without *expected*, any present value (including JSON
    ``null``) passes.
    """
    if not _body_text(response):
        return False

    try:
        data = response.json()
    except (ValueError, RecursionError):
        return False

    result = lookup_path(data, path)
    if not result.found:
        return False
    if expected is UNSET:
        return True
    return _strict_equal(result.value, expected)


def body_contains(response: Any, *needles: str) -> bool:
    """Return ``True`` when the body contains any of *needles*."""
    text = _body_text(response)
    if not text:
        return False
    return any(needle in text for needle in needles)


def _status_ok(response: Any) -> bool:
    return getattr(response, "status_code", None) == 200


# =====================================================================
# Per-API success predicates
# =====================================================================


def quiz_ok(response: Any) -> bool:
    """Open Trivia DB: ``response_code`` 0 and a ``results`` payload."""
    if not _status_ok(response):
        return False
    return safe_json_check(response, "response_code", 0) and body_contains(response, "results")


def location_ok(response: Any) -> bool:
    """
    Nominatim: the coordinates resolve to Indonesia.

    Falls back to a plain ``"Indonesia"`` substring when the structured
    ``address.country_code`` field is absent.
    """
    if not _status_ok(response):
        return False
    return safe_json_check(response, "address.country_code", "id") or body_contains(
        response, "Indonesia"
    )


def time_ok(response: Any) -> bool:
    """TimeAPI: the body names a time zone (either casing)."""
    if not _status_ok(response):
        return False
    return body_contains(response, "timeZone", "timezone")


def exchange_ok(response: Any) -> bool:
    """ExchangeRate-API: a success marker plus a ``rates`` table."""
    if not _status_ok(response):
        return False
    succeeded = safe_json_check(response, "result", "success") or safe_json_check(
        response, "success", True
    )
    return succeeded and body_contains(response, "rates")
