from __future__ import annotations

import logging
from enum import Enum

from sqlalchemy.engine import Engine

from app.core.errors import BadRequestError, NotFoundError
from app.db.group_store import count_joined_members, find_group, find_member, update_group_status, upsert_member
from app.services.ranking_cache import invalidate_ranking_cache
from app.utils.dates import now_unix_seconds, utc_from_unix

logger = logging.getLogger(__name__)


class GroupStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    ENDED = "ended"


class MemberStatus(str, Enum):
    JOINED = "joined"
    LEFT = "left"


_STATUS_ORDER: dict[GroupStatus, int] = {
    GroupStatus.DRAFT: 0,
    GroupStatus.ACTIVE: 1,
    GroupStatus.ENDED: 2,
}


def can_transition(current: GroupStatus, target: GroupStatus) -> bool:
    return _STATUS_ORDER[target] == _STATUS_ORDER[current] + 1


def transition_group_status(engine: Engine, group_id: int, target: GroupStatus, *, now: int | None = None) -> GroupStatus:
    group = find_group(engine, group_id)
    if group is None:
        raise NotFoundError(f"Group {group_id} not found")
    current = GroupStatus(group.status)
    if not can_transition(current, target):
        raise BadRequestError(f"Cannot move group from {current.value} to {target.value}")
    ts = now_unix_seconds() if now is None else now
    update_group_status(engine, group_id, target.value, now=utc_from_unix(ts))
    logger.info("group %s status %s -> %s", group_id, current.value, target.value)
    return target


def join_group(engine: Engine, group_id: int, user_id: int, *, now: int | None = None) -> None:
    group = find_group(engine, group_id)
    if group is None:
        raise NotFoundError(f"Group {group_id} not found")
    if group.status == GroupStatus.ENDED.value:
        raise BadRequestError("Group has ended")
    member = find_member(engine, group_id, user_id)
    if member is not None and member.status == MemberStatus.JOINED.value:
        return
    if group.max_members is not None and count_joined_members(engine, group_id) >= group.max_members:
        raise BadRequestError("Group is full")
    ts = now_unix_seconds() if now is None else now
    upsert_member(engine, group_id, user_id, status=MemberStatus.JOINED.value, now=utc_from_unix(ts))
    invalidate_ranking_cache([group_id])


def leave_group(engine: Engine, group_id: int, user_id: int, *, now: int | None = None) -> None:
    member = find_member(engine, group_id, user_id)
    if member is None or member.status != MemberStatus.JOINED.value:
        raise NotFoundError("Member not found")
    ts = now_unix_seconds() if now is None else now
    upsert_member(engine, group_id, user_id, status=MemberStatus.LEFT.value, now=utc_from_unix(ts))
    invalidate_ranking_cache([group_id])
