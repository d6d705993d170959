"""Prediction reminders for fixtures about to kick off.

For every active group, every "NS" fixture inside the reminder window and
every joined member who has not predicted it, one ``prediction_reminder``
activity event is written. Re-runs are safe: the store's unique key drops
events that already exist.
"""
from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass
from typing import Any

from sqlalchemy.engine import Engine

from app.core.config import settings
from app.core.event_log import log_reminders_run
from app.db.group_store import find_active_groups, find_group_fixtures_with_fixture_details, find_members_with_users
from app.db.prediction_store import find_prediction_user_ids_by_group_fixture_ids, insert_activity_event
from app.services.eligibility import is_in_nudge_window
from app.utils.dates import clamp_int, now_unix_seconds, utc_from_unix

logger = logging.getLogger(__name__)

EVENT_TYPE = "prediction_reminder"
MIN_WINDOW_HOURS = 1
MAX_WINDOW_HOURS = 24


@dataclass
class ReminderRunResult:
    reminders_created: int
    candidates: int
    groups_processed: int
    dry_run: bool

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def run_prediction_reminders(
    engine: Engine,
    *,
    window_hours: int | None = None,
    now: int | None = None,
    dry_run: bool = False,
) -> ReminderRunResult:
    started = time.monotonic()
    hours = clamp_int(window_hours if window_hours is not None else settings.reminder_window_hours, MIN_WINDOW_HOURS, MAX_WINDOW_HOURS)
    current = now_unix_seconds() if now is None else now
    created_at = utc_from_unix(current)

    groups = find_active_groups(engine)
    created = 0
    candidates = 0

    for group in groups:
        fixtures = [
            gf
            for gf in find_group_fixtures_with_fixture_details(engine, group.id)
            if is_in_nudge_window(gf, window_minutes=hours * 60, now=current)
        ]
        if not fixtures:
            continue
        member_ids = [m.user_id for m in find_members_with_users(engine, group.id)]
        predicted: dict[int, set[int]] = {}
        for row in find_prediction_user_ids_by_group_fixture_ids(engine, group.id, [gf.id for gf in fixtures]):
            predicted.setdefault(row.group_fixture_id, set()).add(row.user_id)

        pending = [
            (gf, user_id)
            for gf in fixtures
            for user_id in member_ids
            if user_id not in predicted.get(gf.id, set())
        ]
        candidates += len(pending)
        if dry_run or not pending:
            continue

        with engine.begin() as conn:
            for gf, user_id in pending:
                body = f"{gf.name or 'Your next match'} starts soon, predict now!"
                if insert_activity_event(
                    conn,
                    user_id=user_id,
                    group_id=group.id,
                    fixture_id=gf.fixture_id,
                    event_type=EVENT_TYPE,
                    body=body,
                    now=created_at,
                ):
                    created += 1

    result = ReminderRunResult(
        reminders_created=created,
        candidates=candidates,
        groups_processed=len(groups),
        dry_run=dry_run,
    )
    logger.info("prediction reminders: %s", result.to_dict())
    log_reminders_run(
        duration_seconds=time.monotonic() - started,
        reminders_created=created,
        groups_processed=len(groups),
        dry_run=dry_run,
    )
    return result
