from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.engine import Engine, Row

from app.core.config import settings
from app.core.errors import ApiError, BadRequestError, ConflictError, NotFoundError
from app.core.event_log import log_nudge_rejected, log_nudge_sent
from app.db.group_store import find_group_fixture_by_group_and_fixture, find_group_fixtures_with_fixture_details, find_group_rules
from app.db.integrity import DuplicateRowError
from app.db.prediction_store import (
    create_nudge_event,
    find_nudges_by_nudger_in_group,
    find_prediction,
    find_prediction_user_ids_by_group_fixture_ids,
)
from app.services.eligibility import NOT_STARTED_STATE, is_in_nudge_window
from app.services.permissions import assert_group_member, is_joined_member
from app.utils.dates import now_unix_seconds, utc_from_unix

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NudgeTarget:
    fixture_id: int
    nudged_by_me: bool


def nudge_window_minutes(rules: Row | None) -> int:
    if rules is None or rules.nudge_window_minutes is None:
        return settings.default_nudge_window_minutes
    return int(rules.nudge_window_minutes)


def _check_nudge(
    engine: Engine,
    group_id: int,
    nudger_id: int,
    target_id: int,
    fixture_id: int,
    now: int,
) -> None:
    assert_group_member(engine, group_id, nudger_id)
    if nudger_id == target_id:
        raise BadRequestError("Cannot nudge yourself")
    if not is_joined_member(engine, group_id, target_id):
        raise NotFoundError("Target user is not a member of this group")

    rules = find_group_rules(engine, group_id)
    if rules is None or not rules.nudge_enabled:
        raise BadRequestError("Nudging is disabled for this group")

    group_fixture = find_group_fixture_by_group_and_fixture(engine, group_id, fixture_id)
    if group_fixture is None:
        raise NotFoundError(f"Fixture {fixture_id} does not belong to group {group_id}")
    if group_fixture.state != NOT_STARTED_STATE:
        raise BadRequestError("Fixture is not open for nudges")
    if not is_in_nudge_window(group_fixture, window_minutes=nudge_window_minutes(rules), now=now):
        raise BadRequestError("Fixture is not within the nudge window")

    if find_prediction(engine, target_id, group_fixture.id) is not None:
        raise BadRequestError("User has already predicted this fixture")


def send_nudge(
    engine: Engine,
    group_id: int,
    nudger_id: int,
    target_id: int,
    fixture_id: int,
    *,
    now: int | None = None,
) -> dict[str, str]:
    """Record a reminder from one member to another for an upcoming fixture.

    Preconditions are checked in a fixed order and the first failure wins. The
    duplicate check is left to the store's unique key: the insert is attempted
    and a violation becomes a 409.
    """
    current = now_unix_seconds() if now is None else now
    try:
        _check_nudge(engine, group_id, nudger_id, target_id, fixture_id, current)
        try:
            create_nudge_event(
                engine,
                group_id=group_id,
                fixture_id=fixture_id,
                nudger_user_id=nudger_id,
                target_user_id=target_id,
                now=utc_from_unix(current),
            )
        except DuplicateRowError as exc:
            raise ConflictError("Already nudged") from exc
    except ApiError as exc:
        log_nudge_rejected(group_id, nudger_id, reason=exc.message)
        raise

    log_nudge_sent(group_id, nudger_id, target_id, fixture_id)
    return {"status": "success", "message": "Nudge sent"}


def find_nudge_targets(
    engine: Engine,
    group_id: int,
    requester_id: int,
    user_ids: list[int],
    *,
    window_minutes: int,
    now: int | None = None,
) -> dict[int, NudgeTarget]:
    """Earliest unpredicted in-window fixture per user.

    The requester and users with nothing to predict inside the window are
    absent from the result.
    """
    current = now_unix_seconds() if now is None else now
    fixtures_in_window = [
        gf
        for gf in find_group_fixtures_with_fixture_details(engine, group_id)
        if is_in_nudge_window(gf, window_minutes=window_minutes, now=current)
    ]
    if not fixtures_in_window:
        return {}
    fixtures_in_window.sort(key=lambda gf: (gf.start_ts, gf.fixture_id))

    predicted: dict[int, set[int]] = {}
    group_fixture_ids = [gf.id for gf in fixtures_in_window]
    for row in find_prediction_user_ids_by_group_fixture_ids(engine, group_id, group_fixture_ids):
        predicted.setdefault(row.group_fixture_id, set()).add(row.user_id)

    fixture_ids = [gf.fixture_id for gf in fixtures_in_window]
    nudged_by_me = {
        (row.target_user_id, row.fixture_id)
        for row in find_nudges_by_nudger_in_group(engine, group_id, requester_id, fixture_ids)
    }

    out: dict[int, NudgeTarget] = {}
    for user_id in user_ids:
        # A member cannot nudge themselves, so they are never offered as a target.
        if user_id == requester_id:
            continue
        for gf in fixtures_in_window:
            if user_id in predicted.get(gf.id, set()):
                continue
            out[user_id] = NudgeTarget(
                fixture_id=gf.fixture_id,
                nudged_by_me=(user_id, gf.fixture_id) in nudged_by_me,
            )
            break
    return out
