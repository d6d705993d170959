"""Kickoff and nudge-window predicates.

Both are pure and take ``now`` explicitly; callers re-evaluate them at the
moment of each write because a fixture can go live between read and write.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from app.utils.dates import now_unix_seconds

# States where the match hasn't actually started playing.
NON_STARTED_STATES = frozenset({
    "NS",
    "TBD",
    "PST",
    "POSTP",
    "CANC",
    "CANCELLED",
    "ABD",
    "SUSP",
})

NOT_STARTED_STATE = "NS"


@dataclass(frozen=True)
class FixtureTiming:
    fixture_id: int
    start_ts: int
    state: str
    result: str | None = None
    group_fixture_id: int | None = None


def _get(fixture: Any, key: str) -> Any:
    if isinstance(fixture, dict):
        return fixture.get(key)
    return getattr(fixture, key, None)


def has_match_started(fixture: Any, *, now: int | None = None) -> bool:
    """A fixture has started once it has a result, or once its kickoff has
    passed and its state is not one of the "not actually playing" states."""
    if _get(fixture, "result"):
        return True
    current = now_unix_seconds() if now is None else now
    if int(_get(fixture, "start_ts")) > current:
        return False
    return str(_get(fixture, "state")) not in NON_STARTED_STATES


def is_in_nudge_window(fixture: Any, *, window_minutes: int, now: int | None = None) -> bool:
    """True when the fixture is exactly "NS" and kicks off in [now, now + window]."""
    if str(_get(fixture, "state")) != NOT_STARTED_STATE:
        return False
    current = now_unix_seconds() if now is None else now
    start_ts = int(_get(fixture, "start_ts"))
    return current <= start_ts <= current + window_minutes * 60
