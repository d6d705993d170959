"""Group ranking: per-member points and stats, competition-ranked.

The ranking is a view recomputed from raw predictions; only the result is
cached (see ranking_cache) and writers invalidate it. Nudge fields are added
per request on top of the cached base.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, replace
from typing import Any

from sqlalchemy.engine import Engine

from app.db.coerce import parse_points
from app.db.group_store import find_group_rules, find_members_with_users
from app.db.prediction_store import find_member_prediction_rows
from app.services.nudges import find_nudge_targets, nudge_window_minutes
from app.services.permissions import assert_group_member
from app.services.ranking_cache import ranking_cache

logger = logging.getLogger(__name__)

NUDGE_FIELDS = ("nudgeable", "nudge_fixture_id", "nudged_by_me")


@dataclass
class RankingItem:
    rank: int
    user_id: int
    username: str | None
    total_points: int = 0
    prediction_count: int = 0
    correct_score_count: int = 0
    correct_outcome_count: int = 0
    nudgeable: bool | None = None
    nudge_fixture_id: int | None = None
    nudged_by_me: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if not self.nudgeable:
            for key in NUDGE_FIELDS:
                data.pop(key, None)
        return data


def sort_key(item: RankingItem) -> tuple[int, int, str]:
    # Username only breaks full ties, for a stable order.
    return (-item.total_points, -item.correct_score_count, (item.username or "").casefold())


def assign_competition_ranks(items: list[RankingItem]) -> list[RankingItem]:
    """Sort and rank in place: ties share a rank, the next rank skips ("1224")."""
    items.sort(key=sort_key)
    for index, item in enumerate(items):
        prev = items[index - 1] if index > 0 else None
        if (
            prev is not None
            and prev.total_points == item.total_points
            and prev.correct_score_count == item.correct_score_count
        ):
            item.rank = prev.rank
        else:
            item.rank = index + 1
    return items


def compute_base_ranking(engine: Engine, group_id: int) -> list[RankingItem]:
    """Fold prediction rows per joined member; members without rows get zeros."""
    members = find_members_with_users(engine, group_id)
    rows = find_member_prediction_rows(engine, group_id)

    by_user: dict[int, RankingItem] = {
        m.user_id: RankingItem(rank=0, user_id=m.user_id, username=m.username) for m in members
    }
    for row in rows:
        item = by_user.get(row.user_id)
        if item is None:
            item = RankingItem(rank=0, user_id=row.user_id, username=row.username)
            by_user[row.user_id] = item
        item.total_points += parse_points(row.points)
        item.prediction_count += 1
        if row.winning_correct_score:
            item.correct_score_count += 1
        if row.winning_match_winner:
            item.correct_outcome_count += 1

    return assign_competition_ranks(list(by_user.values()))


def get_group_ranking(
    engine: Engine,
    group_id: int,
    user_id: int,
    *,
    now: int | None = None,
) -> list[RankingItem]:
    logger.debug("get_group_ranking group=%s user=%s", group_id, user_id)
    assert_group_member(engine, group_id, user_id)

    base = ranking_cache.get_or_set(group_id, lambda: compute_base_ranking(engine, group_id))
    items = [replace(item) for item in base]

    rules = find_group_rules(engine, group_id)
    if rules is not None and rules.nudge_enabled:
        targets = find_nudge_targets(
            engine,
            group_id,
            user_id,
            [item.user_id for item in items],
            window_minutes=nudge_window_minutes(rules),
            now=now,
        )
        for item in items:
            target = targets.get(item.user_id)
            if target is None:
                continue
            item.nudgeable = True
            item.nudge_fixture_id = target.fixture_id
            item.nudged_by_me = target.nudged_by_me

    return items
